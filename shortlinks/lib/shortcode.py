"""Short code generation utilities."""

import secrets
import string
from typing import Optional


class ShortCodeGenerator:
    """Generate random short codes for URLs."""

    # URL-safe alphabet (letters, digits, hyphen, underscore)
    ALPHABET = string.ascii_letters + string.digits + "-_"

    def __init__(self, default_length: int = 7):
        """Initialize short code generator.

        Args:
            default_length: Default length for generated codes
        """
        if default_length <= 0:
            raise ValueError("default_length must be positive")
        self.default_length = default_length

    def generate(self, length: Optional[int] = None) -> str:
        """Generate a random short code.

        Every character is drawn independently from the CSPRNG so that
        consecutive codes cannot be predicted from each other.

        Args:
            length: Length of the code (uses default if not specified)

        Returns:
            Random short code of exactly ``length`` characters

        Raises:
            ValueError: If length is not positive
        """
        if length is None:
            length = self.default_length
        if length <= 0:
            raise ValueError(f"Short code length must be positive, got {length}")

        return "".join(secrets.choice(self.ALPHABET) for _ in range(length))

    @staticmethod
    def is_valid_format(code: str) -> bool:
        """Check if code only uses URL-safe characters.

        Args:
            code: Code to validate

        Returns:
            True if valid format
        """
        return bool(code) and all(c in ShortCodeGenerator.ALPHABET for c in code)
