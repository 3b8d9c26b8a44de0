"""Storage layer for link records."""

from .base import LinkStoreBase
from .sqlite import SQLiteLinkStore
from .cache import RedisCache
from .codec import encode_link, decode_link

__all__ = ["LinkStoreBase", "SQLiteLinkStore", "RedisCache", "encode_link", "decode_link"]
