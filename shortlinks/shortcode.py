"""Short code generation utilities."""

import math
import random
import string
import uuid
from typing import Optional


class ShortCodeGenerator:
    """Generate short codes for links."""

    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

    # 62**22 > 2**128, so longer codes carry no extra identifier bits
    MAX_LENGTH = 22

    def __init__(self, default_length: int = 7):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
        """
        if not 1 <= default_length <= self.MAX_LENGTH:
            raise ValueError(f"default_length must be between 1 and {self.MAX_LENGTH}")
        self.default_length = default_length
        self._random = random.SystemRandom()

    def generate_from_identifier(self, identifier: uuid.UUID, length: Optional[int] = None) -> str:
        """Generate short code from the leading bits of an identifier.

        Args:
            identifier: Record identifier
            length: Length of the code (uses default if not specified)

        Returns:
            Short code of exactly ``length`` characters
        """
        length = length or self.default_length

        # Keep as many leading bits as fit in `length` base62 digits
        bits = min(128, int(length * math.log2(len(self.BASE62_CHARS))))
        value = identifier.int >> (128 - bits)

        return self._int_to_base62(value).rjust(length, self.BASE62_CHARS[0])

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code
        """
        length = length or self.default_length
        return ''.join(self._random.choices(self.BASE62_CHARS, k=length))

    def candidates(self, identifier: uuid.UUID, attempts: int, length: Optional[int] = None):
        """Yield short code candidates for a new record.

        The first candidate derives from the identifier, the rest are random.

        Args:
            identifier: Record identifier
            attempts: Number of candidates to yield
            length: Length of the codes (uses default if not specified)
        """
        for attempt in range(attempts):
            if attempt == 0:
                yield self.generate_from_identifier(identifier, length)
            else:
                yield self.generate_random(length)

    def _int_to_base62(self, num: int) -> str:
        """Convert integer to base62 string.

        Args:
            num: Integer to convert

        Returns:
            Base62 string
        """
        if num == 0:
            return self.BASE62_CHARS[0]

        result = []
        base = len(self.BASE62_CHARS)

        while num > 0:
            remainder = num % base
            result.append(self.BASE62_CHARS[remainder])
            num = num // base

        return ''.join(reversed(result))

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code has valid format (base62).

        Args:
            code: Code to validate

        Returns:
            True if valid format
        """
        return bool(code) and all(c in ShortCodeGenerator.BASE62_CHARS for c in code)
