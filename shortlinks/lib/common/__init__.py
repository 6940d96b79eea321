"""Common utilities for shortlinks."""

from .validators import is_valid_url, is_valid_short_code
from .urls import PublicOrigin
from .logging_config import setup_logging, JsonFormatter

__all__ = [
    "is_valid_url",
    "is_valid_short_code",
    "PublicOrigin",
    "setup_logging",
    "JsonFormatter",
]
