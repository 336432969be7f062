"""Password hashing.

bcrypt is used directly. Inputs longer than bcrypt's 72-byte limit are
truncated on both hash and verify so the two always agree.
"""

from __future__ import annotations

import logging
from typing import Protocol

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72


class HashingError(Exception):
    """Raised when a password cannot be hashed."""


class PasswordHasher(Protocol):
    """One-way credential hashing with a verify counterpart."""

    def hash(self, password: str) -> str:
        ...

    def verify(self, password: str, hashed: str) -> bool:
        ...


def _password_bytes(password: str) -> bytes:
    password_bytes = password.encode("utf-8")
    if len(password_bytes) > BCRYPT_MAX_BYTES:
        logger.warning(
            "Password exceeds %d bytes (%d bytes), truncating",
            BCRYPT_MAX_BYTES,
            len(password_bytes),
        )
        password_bytes = password_bytes[:BCRYPT_MAX_BYTES]
    return password_bytes


class BcryptPasswordHasher:
    """Salted bcrypt hashing with a fixed work factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password.

        Args:
            password: Plain text password.

        Returns:
            The bcrypt hash as a string (salt and cost included).

        Raises:
            HashingError: If bcrypt rejects the input.
        """
        if not isinstance(password, str):
            raise HashingError(f"Password must be a string, got {type(password).__name__}")
        try:
            salt = bcrypt.gensalt(rounds=self.rounds)
            hashed = bcrypt.hashpw(_password_bytes(password), salt)
        except (ValueError, TypeError) as exc:
            raise HashingError(str(exc)) from exc
        return hashed.decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """Check a password against a stored bcrypt hash.

        A malformed stored hash counts as a mismatch.
        """
        if not isinstance(password, str) or not isinstance(hashed, str):
            return False
        try:
            return bcrypt.checkpw(_password_bytes(password), hashed.encode("utf-8"))
        except ValueError:
            logger.warning("Stored password hash is not a valid bcrypt hash")
            return False
