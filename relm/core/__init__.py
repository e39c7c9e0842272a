"""Core domain types and logic."""

from .config import Config, ConfigError, SigningConfig, load_config
from .errors import ErrorCode
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "SigningConfig",
    "load_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
