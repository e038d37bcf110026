"""bcrypt-backed PIN verification."""

import logging
from typing import Optional, Protocol

import bcrypt

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10


class CredentialVerifier(Protocol):
    """Protocol for one-way credential comparison."""

    def verify(self, secret: str, stored_hash: Optional[str]) -> bool:
        """Return True when secret matches stored_hash."""
        ...


def hash_pin(pin: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """
    Hash a PIN using bcrypt.

    Args:
        pin: Plain PIN
        rounds: bcrypt cost factor

    Returns:
        Hashed PIN suitable for Account.pin_hash
    """
    return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


class BcryptVerifier:
    """
    Verify PINs against bcrypt hashes.

    bcrypt.checkpw compares the full digest, so timing does not depend on
    how many leading bytes match. A malformed stored hash is logged and
    reported as a mismatch.
    """

    def verify(self, secret: str, stored_hash: Optional[str]) -> bool:
        if not secret or not stored_hash:
            return False

        try:
            return bcrypt.checkpw(secret.encode("utf-8"), stored_hash.encode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.error(f"Stored PIN hash is malformed: {type(e).__name__}: {e}")
            return False
