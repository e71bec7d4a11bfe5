"""SQLAlchemy implementation of the user directory port."""

from __future__ import annotations

from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sessionauth.models.user import User
from sessionauth.services._shared.errors import ConflictError, violates
from sessionauth.services._shared.ports import UserDirectory


class SqlAlchemyUserDirectory(UserDirectory):
    """Persistence-only directory for :class:`User`.

    It NEVER handles tokens or password hashing; callers pass an already
    hashed password.

    :param session: Session used for reads and writes.
    :param commit: Commit after ``create`` (``False`` leaves the transaction to the caller).
    """

    def __init__(self, session: Session, *, commit: bool = True) -> None:
        self.session = session
        self.commit = commit

    def find_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def create(self, *, email: str, password_hash: str, **fields: Any) -> User:
        """Insert a new user.

        :param email: Login email.
        :param password_hash: Output of the password hasher.
        :param fields: Optional profile columns (``full_name``).
        :returns: The persisted user, with its id assigned.
        :raises ConflictError: If the email is already registered.
        """
        user = User(
            email=email,
            password_hash=password_hash,
            full_name=fields.get("full_name"),
        )
        self.session.add(user)
        try:
            if self.commit:
                self.session.commit()
            else:
                self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            if violates(exc, "uq_users_email", column="users.email"):
                raise ConflictError("User", "email already registered") from exc
            raise
        return user
