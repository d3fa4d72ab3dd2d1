"""Storage interface shared by the in-memory, relational and document backends."""

import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from uuid import uuid4

from .models import (
    CONVERSION_STATUSES,
    UPDATABLE_CONVERSION_FIELDS,
    ConversionRecord,
    UserRecord,
)


class StorageError(RuntimeError):
    """Raised for storage configuration or backend failures."""

    pass


class DuplicateUserError(ValueError):
    """Raised when a username or email is already registered."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"A user with this {field} already exists")


def new_id() -> str:
    return uuid4().hex


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_conversion_update(fields: dict) -> dict:
    """Reject unknown fields and statuses before an update reaches a backend."""
    unknown = set(fields) - UPDATABLE_CONVERSION_FIELDS
    if unknown:
        raise ValueError(f"Cannot update conversion fields: {sorted(unknown)}")
    status = fields.get("status")
    if status is not None and status not in CONVERSION_STATUSES:
        raise ValueError(f"Invalid conversion status: {status}")
    return fields


class Storage(ABC):
    """Persistence for users, conversion records and login sessions.

    One backend is chosen at process start (see ``create_storage``) and used
    for the lifetime of the process.
    """

    name: str = "base"

    def connect(self) -> None:
        pass

    def disconnect(self) -> None:
        pass

    def ping(self) -> bool:
        return True

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.disconnect()

    # --- Users ---

    @abstractmethod
    def create_user(self, username: str, email: str, password_hash: str) -> UserRecord: ...

    @abstractmethod
    def get_user(self, user_id: str) -> UserRecord | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> UserRecord | None: ...

    @abstractmethod
    def get_user_by_email(self, email: str) -> UserRecord | None: ...

    # --- Conversions ---

    @abstractmethod
    def create_conversion(
        self,
        user_id: str,
        original_filename: str,
        original_size: int,
        status: str = "pending",
    ) -> ConversionRecord: ...

    @abstractmethod
    def get_conversion(self, conversion_id: str) -> ConversionRecord | None: ...

    @abstractmethod
    def update_conversion(self, conversion_id: str, **fields) -> ConversionRecord | None:
        """Update whitelisted fields; returns None when the record does not exist."""

    @abstractmethod
    def list_user_conversions(self, user_id: str) -> list[ConversionRecord]:
        """Return a user's conversions, newest first."""

    @abstractmethod
    def delete_conversion(self, conversion_id: str) -> bool: ...

    # --- Sessions ---

    @abstractmethod
    def create_session(self, user_id: str, ttl_seconds: int) -> str: ...

    @abstractmethod
    def get_session_user_id(self, token: str) -> str | None:
        """Resolve a session token; expired sessions are removed and yield None."""

    @abstractmethod
    def delete_session(self, token: str) -> None: ...
