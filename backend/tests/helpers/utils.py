"""Tiny helpers shared across test modules."""

from __future__ import annotations

import base64
from contextlib import contextmanager


@contextmanager
def not_raises(exception: type[BaseException]):
    """Context manager asserting that an exception is *not* raised.

    Parameters
    ----------
    exception: type[BaseException]
        Exception type that should not be raised within the context.
    """
    try:
        yield
    except exception as exc:  # pragma: no cover
        raise AssertionError(f"Did raise {exception}: {exc}") from exc


def flip_signature_byte(token: str, index: int = 0) -> str:
    """Return ``token`` with one byte of its signature segment inverted.

    The signature is decoded, the byte at ``index`` is XOR-ed with ``0xFF``
    and the segment re-encoded, so the result is still well-formed base64url.
    """
    header, payload, signature = token.split(".")
    raw = bytearray(base64.urlsafe_b64decode(signature + "=" * (-len(signature) % 4)))
    raw[index] ^= 0xFF
    tampered = base64.urlsafe_b64encode(bytes(raw)).rstrip(b"=").decode()
    return f"{header}.{payload}.{tampered}"
