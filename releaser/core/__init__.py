"""Core types shared by every layer."""

from .config import ConfigError, find_settings_file, load_yaml
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "ConfigError",
    "find_settings_file",
    "load_yaml",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
