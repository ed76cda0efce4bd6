"""Process and network boundaries."""
