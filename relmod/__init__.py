"""relmod - nightly and stable release pipelines for published modules."""

__version__ = "0.4.0"
