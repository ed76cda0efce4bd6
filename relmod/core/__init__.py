"""Core types shared by every layer: results, exit codes, config."""

from .config import ConfigError, ProjectConfig, load_config
from .errors import ErrorCode
from .project import Project, ProjectError, detect_project
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "ProjectConfig",
    "load_config",
    # errors
    "ErrorCode",
    # project
    "Project",
    "ProjectError",
    "detect_project",
    # result
    "Err",
    "Ok",
    "Result",
]
