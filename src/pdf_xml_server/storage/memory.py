"""In-process storage backend."""

import threading
from datetime import timedelta

from ..logger import logger
from .base import (
    DuplicateUserError,
    Storage,
    new_id,
    new_session_token,
    utcnow,
    validate_conversion_update,
)
from .models import ConversionRecord, SessionRecord, UserRecord


class MemoryStorage(Storage):
    """Dictionary-backed storage; contents are lost when the process exits."""

    name = "memory"

    def __init__(self):
        self._lock = threading.Lock()
        self._users: dict[str, UserRecord] = {}
        self._conversions: dict[str, ConversionRecord] = {}
        self._sessions: dict[str, SessionRecord] = {}

    def connect(self) -> None:
        logger.info("using in-memory storage")

    # --- Users ---

    def create_user(self, username: str, email: str, password_hash: str) -> UserRecord:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    raise DuplicateUserError("email")
                if user.username == username:
                    raise DuplicateUserError("username")
            user = UserRecord(
                id=new_id(), username=username, email=email, password=password_hash
            )
            self._users[user.id] = user
        logger.info("user created", user_id=user.id)
        return user.model_copy()

    def get_user(self, user_id: str) -> UserRecord | None:
        with self._lock:
            user = self._users.get(user_id)
        return user.model_copy() if user else None

    def get_user_by_username(self, username: str) -> UserRecord | None:
        with self._lock:
            user = next((u for u in self._users.values() if u.username == username), None)
        return user.model_copy() if user else None

    def get_user_by_email(self, email: str) -> UserRecord | None:
        with self._lock:
            user = next((u for u in self._users.values() if u.email == email), None)
        return user.model_copy() if user else None

    # --- Conversions ---

    def create_conversion(
        self,
        user_id: str,
        original_filename: str,
        original_size: int,
        status: str = "pending",
    ) -> ConversionRecord:
        validate_conversion_update({"status": status})
        now = utcnow()
        record = ConversionRecord(
            id=new_id(),
            user_id=user_id,
            original_filename=original_filename,
            original_size=original_size,
            status=status,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._conversions[record.id] = record
        return record.model_copy(deep=True)

    def get_conversion(self, conversion_id: str) -> ConversionRecord | None:
        with self._lock:
            record = self._conversions.get(conversion_id)
        return record.model_copy(deep=True) if record else None

    def update_conversion(self, conversion_id: str, **fields) -> ConversionRecord | None:
        validate_conversion_update(fields)
        with self._lock:
            record = self._conversions.get(conversion_id)
            if record is None:
                return None
            updated = record.model_copy(update={**fields, "updated_at": utcnow()}, deep=True)
            self._conversions[conversion_id] = updated
        return updated.model_copy(deep=True)

    def list_user_conversions(self, user_id: str) -> list[ConversionRecord]:
        with self._lock:
            records = [r for r in reversed(self._conversions.values()) if r.user_id == user_id]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in records]

    def delete_conversion(self, conversion_id: str) -> bool:
        with self._lock:
            return self._conversions.pop(conversion_id, None) is not None

    # --- Sessions ---

    def create_session(self, user_id: str, ttl_seconds: int) -> str:
        session = SessionRecord(
            token=new_session_token(),
            user_id=user_id,
            expires_at=utcnow() + timedelta(seconds=ttl_seconds),
        )
        with self._lock:
            self._sessions[session.token] = session
        return session.token

    def get_session_user_id(self, token: str) -> str | None:
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            if session.expires_at <= utcnow():
                del self._sessions[token]
                return None
            return session.user_id

    def delete_session(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)
