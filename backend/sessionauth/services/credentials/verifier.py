"""Password verification against a stored one-way hash."""

from __future__ import annotations

import logging

from sessionauth.services._shared.ports import PasswordHasher

log = logging.getLogger(__name__)


class CredentialVerifier:
    """
    Compare a submitted password with a stored hash.

    Fails closed: an error raised by the hashing primitive (unknown method,
    corrupt digest, ...) counts as a mismatch. The plaintext never reaches
    the logs.
    """

    def __init__(self, hasher: PasswordHasher) -> None:
        self.hasher = hasher

    def verify(self, password: str, stored_hash: str | None) -> bool:
        if not password or not stored_hash:
            return False
        try:
            return bool(self.hasher.compare(password, stored_hash))
        except Exception as exc:  # hashing backends raise a variety of types
            log.warning("credentials.hash_error", extra={"error": type(exc).__name__})
            return False
