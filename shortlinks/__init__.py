"""Short, redirectable links for long URLs."""

from .errors import (
    LinkError,
    InvalidLink,
    StoreOpenFailure,
    StoreAccessFailure,
    LinkEncodingFailure,
    LinkDecodingFailure,
    LinkNotFound,
    ShortCodeExhausted,
)
from .models import Link
from .shortcode import ShortCodeGenerator
from .manager import LinkManager

__all__ = [
    "LinkError",
    "InvalidLink",
    "StoreOpenFailure",
    "StoreAccessFailure",
    "LinkEncodingFailure",
    "LinkDecodingFailure",
    "LinkNotFound",
    "ShortCodeExhausted",
    "Link",
    "ShortCodeGenerator",
    "LinkManager",
]
