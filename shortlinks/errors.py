"""
Error classes for link handling.

Every failure raised by the link manager or the store is one of these kinds.
Collaborator errors (sqlite3, struct, unicode) are wrapped with ``raise ... from``
so the original cause stays attached.
"""

from typing import Optional


class LinkError(Exception):
    """
    Base error for link handling.

    Attributes:
        message: Error message (default: "Link error")
    """
    message: str = "Link error"

    def __init__(self, message: Optional[str] = None):
        """
        Initialize link error.

        Args:
            message: Error message (overrides default)
        """
        self.message = message or self.message
        super().__init__(self.message)


class InvalidLink(LinkError):
    """The given URL could not be parsed or validated."""
    message = "failed to parse given url"


class StoreOpenFailure(LinkError):
    """The store could not be opened (inaccessible path or corrupt file)."""
    message = "failed to open link store"


class StoreAccessFailure(LinkError):
    """An I/O or storage error occurred during a store operation."""
    message = "failed to access link store"


class LinkEncodingFailure(LinkError):
    """A link record could not be serialized."""
    message = "encoding of link failed"


class LinkDecodingFailure(LinkError):
    """Stored bytes are not a valid link record encoding."""
    message = "decoding of stored link failed"


class LinkNotFound(LinkError):
    """No record is stored under the given short code."""

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"link not found: {short_code}")


class ShortCodeExhausted(LinkError):
    """No unused short code was found within the retry budget."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"unable to generate a unique short code after {attempts} attempts")
