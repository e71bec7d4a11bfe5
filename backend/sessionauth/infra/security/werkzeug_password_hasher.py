from __future__ import annotations

from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from sessionauth.services._shared.ports import PasswordHasher


@dataclass(slots=True)
class WerkzeugPasswordHasher(PasswordHasher):
    """
    Adapter over :mod:`werkzeug.security`.

    :param method: Werkzeug hash method spec (e.g. ``"scrypt"``, ``"pbkdf2:sha256:600000"``).
    """

    method: str = "scrypt"

    def hash(self, plaintext: str) -> str:
        if not isinstance(plaintext, str) or not plaintext:
            raise ValueError("Password must be a non-empty string.")
        return generate_password_hash(plaintext, method=self.method)

    def compare(self, plaintext: str, digest: str) -> bool:
        if not digest:
            return False
        # ``check_password_hash`` uses ``hmac.compare_digest`` internally.
        return bool(check_password_hash(digest, plaintext))
