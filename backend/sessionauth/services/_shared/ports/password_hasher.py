from __future__ import annotations

from typing import Protocol


class PasswordHasher(Protocol):
    """
    One-way password hash capability.

    Both operations must be safe against timing side-channels.
    """

    def hash(self, plaintext: str) -> str: ...

    def compare(self, plaintext: str, digest: str) -> bool: ...
