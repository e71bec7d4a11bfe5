"""Repository package exposing persistence-layer access for user records."""

from __future__ import annotations

from sessionauth.repositories.user import SqlAlchemyUserDirectory

__all__ = ["SqlAlchemyUserDirectory"]
