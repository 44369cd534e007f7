"""
Code Generator
==============
Fixed-width numeric codes from a cryptographically secure source.
"""

import secrets
from typing import Callable
import structlog

from ..errors import TransientError

logger = structlog.get_logger(__name__)


class CodeGenerator:
    """Generates zero-padded numeric codes of a fixed width."""

    def __init__(
        self,
        width: int = 6,
        randbelow: Callable[[int], int] = secrets.randbelow,
    ):
        """
        Args:
            width: Number of digits in each code
            randbelow: Secure source of integers in ``[0, n)``
        """
        if width < 1:
            raise ValueError("width must be at least 1")
        self.width = width
        self._space = 10 ** width
        self._randbelow = randbelow

    def generate(self) -> str:
        """
        Generate a uniformly random code of exactly ``width`` digits.

        Raises:
            TransientError: If the random source fails
        """
        try:
            value = self._randbelow(self._space)
        except (OSError, NotImplementedError) as e:
            logger.error("otp_random_source_failed", error=str(e))
            raise TransientError("Random source unavailable", last_exception=e) from e
        return str(value).zfill(self.width)
