"""Common utilities for shortlinks."""

from .validators import is_valid_url, normalize_url, encode_alias, encode_aliases
from .url_builder import build_short_url
from .logging_config import setup_logging

__all__ = [
    "is_valid_url",
    "normalize_url",
    "encode_alias",
    "encode_aliases",
    "build_short_url",
    "setup_logging",
]
