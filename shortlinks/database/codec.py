"""Binary encoding of link records.

Layout (all length prefixes are unsigned 64-bit little-endian)::

    u64(16) identifier[16]
    u64(n)  original_url[n]
    u64(m)  short_code[m]
    u8      tag                      0 = no aliases, 1 = aliases follow
    u64(k)  { u64(len) alias[len] } * k

Strings are UTF-8. The field order is fixed and the layout must stay
byte-stable so that previously written stores remain readable.
"""

import struct
import uuid
from typing import List, Optional, Tuple

from ..errors import LinkDecodingFailure, LinkEncodingFailure
from ..models import Link

_LENGTH = struct.Struct("<Q")
_TAG = struct.Struct("<B")

IDENTIFIER_SIZE = 16
NO_ALIASES = 0
HAS_ALIASES = 1


def _pack_bytes(parts: List[bytes], data: bytes) -> None:
    parts.append(_LENGTH.pack(len(data)))
    parts.append(data)


def _pack_str(parts: List[bytes], value: str, field: str) -> None:
    if not isinstance(value, str):
        raise LinkEncodingFailure(f"{field} must be a string, got {type(value).__name__}")
    try:
        _pack_bytes(parts, value.encode("utf-8"))
    except UnicodeEncodeError as e:
        raise LinkEncodingFailure(f"{field} is not encodable as UTF-8: {e}") from e


def encode_link(link: Link) -> bytes:
    """Encode a link record.

    Args:
        link: The record to encode

    Returns:
        Encoded bytes

    Raises:
        LinkEncodingFailure: If a field has the wrong type or cannot be encoded
    """
    if not isinstance(link.identifier, uuid.UUID):
        raise LinkEncodingFailure("identifier must be a UUID")

    parts: List[bytes] = []
    _pack_bytes(parts, link.identifier.bytes)
    _pack_str(parts, link.original_url, "original_url")
    _pack_str(parts, link.short_code, "short_code")

    if link.aliases is None:
        parts.append(_TAG.pack(NO_ALIASES))
    else:
        parts.append(_TAG.pack(HAS_ALIASES))
        parts.append(_LENGTH.pack(len(link.aliases)))
        for alias in link.aliases:
            _pack_str(parts, alias, "alias")

    return b"".join(parts)


class _Reader:
    """Cursor over an encoded record."""

    def __init__(self, data: bytes):
        self.data = memoryview(data)
        self.offset = 0

    def take(self, size: int) -> bytes:
        end = self.offset + size
        if end > len(self.data):
            raise LinkDecodingFailure(
                f"truncated record: need {size} bytes at offset {self.offset}, "
                f"have {len(self.data) - self.offset}"
            )
        chunk = self.data[self.offset:end].tobytes()
        self.offset = end
        return chunk

    def length(self) -> int:
        return _LENGTH.unpack(self.take(_LENGTH.size))[0]

    def tag(self) -> int:
        return _TAG.unpack(self.take(_TAG.size))[0]

    def string(self, field: str) -> str:
        raw = self.take(self.length())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise LinkDecodingFailure(f"{field} is not valid UTF-8") from e

    def finish(self) -> None:
        remaining = len(self.data) - self.offset
        if remaining:
            raise LinkDecodingFailure(f"{remaining} trailing bytes after record")


def decode_link(data: bytes) -> Link:
    """Decode a link record.

    Args:
        data: Bytes produced by ``encode_link``

    Returns:
        The decoded record

    Raises:
        LinkDecodingFailure: If the bytes are not a valid encoding
    """
    reader = _Reader(data)

    identifier_size = reader.length()
    if identifier_size != IDENTIFIER_SIZE:
        raise LinkDecodingFailure(f"identifier must be {IDENTIFIER_SIZE} bytes, got {identifier_size}")
    identifier = uuid.UUID(bytes=reader.take(IDENTIFIER_SIZE))

    original_url = reader.string("original_url")
    short_code = reader.string("short_code")

    aliases: Optional[Tuple[str, ...]]
    tag = reader.tag()
    if tag == NO_ALIASES:
        aliases = None
    elif tag == HAS_ALIASES:
        count = reader.length()
        # Each alias needs at least its length prefix.
        if count > (len(reader.data) - reader.offset) // _LENGTH.size:
            raise LinkDecodingFailure(f"alias count {count} exceeds record size")
        aliases = tuple(reader.string("alias") for _ in range(count))
    else:
        raise LinkDecodingFailure(f"invalid aliases tag: {tag}")

    reader.finish()

    return Link(
        identifier=identifier,
        original_url=original_url,
        short_code=short_code,
        aliases=aliases,
    )
