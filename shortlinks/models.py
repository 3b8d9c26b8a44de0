"""Data models for link records."""

import uuid
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Link:
    """A shortened link as stored under its short code.

    ``original_url`` is the validated, normalized source URL. ``aliases`` are
    percent-encoded alternate names kept in caller order; they are attributes of
    the record, not lookup keys.
    """

    identifier: uuid.UUID
    original_url: str
    short_code: str
    aliases: Optional[Tuple[str, ...]] = None

    @property
    def storage_key(self) -> bytes:
        """Key under which the record is stored."""
        return self.short_code.encode("utf-8")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "identifier": str(self.identifier),
            "original_url": self.original_url,
            "short_code": self.short_code,
            "aliases": list(self.aliases) if self.aliases is not None else None,
        }
