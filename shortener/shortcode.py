"""Short id generation utilities."""

import random
import string
import uuid
from typing import Optional


class ShortCodeGenerator:
    """Generate short ids for URLs."""

    # Base62 characters (alphanumeric, case-sensitive)
    BASE62_CHARS = string.ascii_letters + string.digits  # a-zA-Z0-9

    def __init__(self, default_length: int = 8):
        """Initialize short id generator.

        Args:
            default_length: Default length for generated ids
        """
        self.default_length = default_length
        self._random = random.SystemRandom()

    def generate_random(self, length: Optional[int] = None) -> str:
        """Generate a random short id.

        Args:
            length: Length of the id (uses default if not specified)

        Returns:
            Random short id
        """
        length = length or self.default_length
        return ''.join(self._random.choices(self.BASE62_CHARS, k=length))

    def generate_from_uuid(self, length: Optional[int] = None) -> str:
        """Generate short id from a UUID4.

        Args:
            length: Length of the id (uses default if not specified)

        Returns:
            Short id based on UUID
        """
        length = length or self.default_length
        return self._int_to_base62(uuid.uuid4().int)[:length]

    def _int_to_base62(self, num: int) -> str:
        """Convert integer to base62 string."""
        if num == 0:
            return self.BASE62_CHARS[0]

        result = []
        base = len(self.BASE62_CHARS)

        while num > 0:
            remainder = num % base
            result.append(self.BASE62_CHARS[remainder])
            num = num // base

        return ''.join(reversed(result))
