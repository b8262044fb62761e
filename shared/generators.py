"""
One-time code generators.

CodeGenerator draws from an injected random source (``secrets.SystemRandom``
by default) so tests can pass a seeded ``random.Random`` instead.
"""

from __future__ import annotations

import random
import secrets
import string
import uuid
from typing import Optional

from errors import ValidationError


class CodeGenerator:
    """Produces numeric OTPs or opaque unique codes."""

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        self._rng = rng if rng is not None else secrets.SystemRandom()

    def generate(self, digit_count: int = 0) -> str:
        """Generate a one-time code.

        Args:
            digit_count: Number of decimal digits. ``0`` produces an opaque
                unique code instead of a numeric one.

        Returns:
            The plaintext code.

        Raises:
            ValidationError: if *digit_count* is negative.
        """
        if digit_count < 0:
            raise ValidationError(
                "digit_count must be zero or positive", field="digit_count"
            )
        if digit_count == 0:
            return self.opaque_code()
        return self.numeric_code(digit_count)

    def numeric_code(self, length: int = 6) -> str:
        """Return *length* uniformly distributed decimal digits.

        ``randrange`` rejection-samples random bits, so every digit is
        equally likely (no ``byte % 10`` skew).
        """
        return "".join(string.digits[self._rng.randrange(10)] for _ in range(length))

    def opaque_code(self) -> str:
        """Return a random 128-bit value as lowercase UUID text."""
        return str(uuid.UUID(int=self._rng.getrandbits(128), version=4))
