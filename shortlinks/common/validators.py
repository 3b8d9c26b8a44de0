"""Validation and normalization utilities for links."""

import ipaddress
import re
from urllib.parse import quote, unquote_to_bytes, urlsplit, urlunsplit, SplitResult
from typing import Iterable, Optional, Tuple

from ..errors import InvalidLink

MAX_URL_LENGTH = 2048

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")
_WHITESPACE_OR_CONTROL_RE = re.compile(r"[\s\x00-\x1f\x7f]")

# Checked after percent-decoding, so "%" here means an escape that decoded to "%"
# or one that is not a valid escape at all
_FORBIDDEN_HOST_RE = re.compile(r'[\x00-\x20"#%/:<>?@\[\\\]^`{|}\x7f]')


def _normalize_host(host: str) -> str:
    """Return the host in ASCII, lower-case form.

    IPv6 literals keep their brackets. Registered names are percent-decoded,
    checked for forbidden characters and IDNA-encoded when not ASCII.

    Raises:
        ValueError: If the host is not valid
    """
    if host.startswith("["):
        if not host.endswith("]"):
            raise ValueError(f"unterminated IPv6 address {host!r}")
        return f"[{ipaddress.IPv6Address(host[1:-1]).compressed}]"

    try:
        decoded = unquote_to_bytes(host).decode("utf-8")
    except UnicodeError as e:
        raise ValueError(f"host is not valid UTF-8: {e}") from e

    forbidden = _FORBIDDEN_HOST_RE.search(decoded)
    if forbidden:
        raise ValueError(f"forbidden character {forbidden.group()!r} in host")

    if not decoded.isascii():
        try:
            decoded = decoded.encode("idna").decode("ascii")
        except UnicodeError as e:
            raise ValueError(f"host is not a valid internationalized domain name: {e}") from e

    return decoded.lower()


def _split(url: str) -> Tuple[Optional[SplitResult], str]:
    if not url or not isinstance(url, str):
        return None, "URL is required"

    if len(url) > MAX_URL_LENGTH:
        return None, f"URL is too long (max {MAX_URL_LENGTH} characters)"

    if _WHITESPACE_OR_CONTROL_RE.search(url):
        return None, "URL must not contain whitespace or control characters"

    try:
        result = urlsplit(url)

        if not result.scheme or not _SCHEME_RE.match(result.scheme):
            return None, "URL must start with a valid scheme (e.g. https://)"

        # Check if netloc (host) exists
        if not result.hostname:
            return None, "URL must have a valid host"

        # Raises ValueError for non-numeric or out-of-range ports
        result.port

        userinfo, sep, hostport = result.netloc.rpartition("@")
        if hostport.startswith("["):
            host, bracket, port = hostport.partition("]")
            host += bracket
        else:
            host, colon, port = hostport.partition(":")
            port = colon + port

        try:
            host = _normalize_host(host)
        except ValueError as e:
            return None, f"URL must have a valid host: {e}"

        return result._replace(netloc=f"{userinfo}{sep}{host}{port}"), ""

    except ValueError as e:
        return None, f"Invalid URL format: {e}"


def is_valid_url(url: str) -> Tuple[bool, str]:
    """Validate a URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    result, error = _split(url)
    return result is not None, error


def normalize_url(url: str) -> str:
    """Validate a URL and return its normalized form.

    Scheme and host are lower-cased, a non-ASCII host is IDNA-encoded
    (``münchen.de`` becomes ``xn--mnchen-3ya.de``) and an empty path becomes ``/``.

    Args:
        url: The URL to normalize

    Returns:
        Normalized URL

    Raises:
        InvalidLink: If the URL is not valid
    """
    result, error = _split(url)
    if result is None:
        raise InvalidLink(f"Invalid URL: {error}")

    return urlunsplit((
        result.scheme.lower(),
        result.netloc,
        result.path or "/",
        result.query,
        result.fragment,
    ))


def encode_alias(alias: str) -> str:
    """Percent-encode an alias for use in URLs and keys.

    Everything except ``A-Z a-z 0-9 - . _ ~`` is escaped, so ``"my link"``
    becomes ``"my%20link"`` and ``/`` becomes ``%2F``.

    Args:
        alias: Raw alias

    Returns:
        Encoded alias

    Raises:
        InvalidLink: If the alias is not a string
    """
    if not isinstance(alias, str):
        raise InvalidLink(f"Invalid alias: expected a string, got {type(alias).__name__}")
    try:
        return quote(alias, safe="")
    except UnicodeEncodeError as e:
        raise InvalidLink(f"Invalid alias: {e}") from e


def encode_aliases(aliases: Optional[Iterable[str]]) -> Optional[Tuple[str, ...]]:
    """Encode aliases, keeping caller order. ``None`` stays ``None``."""
    if aliases is None:
        return None
    if isinstance(aliases, str):
        raise InvalidLink("Invalid aliases: expected a sequence of strings, got a single string")
    return tuple(encode_alias(alias) for alias in aliases)
