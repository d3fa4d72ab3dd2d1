"""Document-store backend: one JSON document per record on the filesystem."""

import os
import tempfile
import threading
from datetime import timedelta
from pathlib import Path
from typing import Iterator, TypeVar

from pydantic import BaseModel

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

DEFAULT_STORAGE_DIR = "./data/documents"

RecordT = TypeVar("RecordT", bound=BaseModel)


class DocumentStorage(Storage):
    """Stores users, conversions and sessions as JSON documents.

    Layout::

        <base_dir>/users/<id>.json
        <base_dir>/conversions/<id>.json
        <base_dir>/sessions/<token>.json
    """

    name = "documents"

    def __init__(self, base_dir: str | Path | None = None):
        self._base_dir = Path(base_dir or os.getenv("STORAGE_DIR", DEFAULT_STORAGE_DIR))
        self._users_dir = self._base_dir / "users"
        self._conversions_dir = self._base_dir / "conversions"
        self._sessions_dir = self._base_dir / "sessions"
        self._lock = threading.RLock()

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    def connect(self) -> None:
        for directory in (self._users_dir, self._conversions_dir, self._sessions_dir):
            directory.mkdir(parents=True, exist_ok=True)
        logger.info("using document storage", base_dir=str(self._base_dir))

    def ping(self) -> bool:
        return self._conversions_dir.is_dir() and os.access(self._conversions_dir, os.W_OK)

    def _write(self, directory: Path, key: str, record: BaseModel) -> None:
        # Write to a temp file in the same directory so the rename is atomic
        fd, tmp_name = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.model_dump_json(indent=2))
            os.replace(tmp_name, directory / f"{key}.json")
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _read(self, directory: Path, key: str, model: type[RecordT]) -> RecordT | None:
        path = directory / f"{key}.json"
        # Keys come from URLs and cookies; refuse anything that escapes the directory
        if path.parent != directory or not path.is_file():
            return None
        return model.model_validate_json(path.read_text(encoding="utf-8"))

    def _scan(self, directory: Path, model: type[RecordT]) -> Iterator[RecordT]:
        for path in sorted(directory.glob("*.json")):
            yield model.model_validate_json(path.read_text(encoding="utf-8"))

    def _delete(self, directory: Path, key: str) -> bool:
        path = directory / f"{key}.json"
        if path.parent != directory or not path.is_file():
            return False
        path.unlink()
        return True

    # --- Users ---

    def create_user(self, username: str, email: str, password_hash: str) -> UserRecord:
        with self._lock:
            for user in self._scan(self._users_dir, UserRecord):
                if user.email == email:
                    raise DuplicateUserError("email")
                if user.username == username:
                    raise DuplicateUserError("username")
            user = UserRecord(
                id=new_id(), username=username, email=email, password=password_hash
            )
            self._write(self._users_dir, user.id, user)
        logger.info("user created", user_id=user.id)
        return user

    def get_user(self, user_id: str) -> UserRecord | None:
        with self._lock:
            return self._read(self._users_dir, user_id, UserRecord)

    def get_user_by_username(self, username: str) -> UserRecord | None:
        with self._lock:
            return next(
                (u for u in self._scan(self._users_dir, UserRecord) if u.username == username),
                None,
            )

    def get_user_by_email(self, email: str) -> UserRecord | None:
        with self._lock:
            return next(
                (u for u in self._scan(self._users_dir, UserRecord) if u.email == email),
                None,
            )

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
            self._write(self._conversions_dir, record.id, record)
        return record

    def get_conversion(self, conversion_id: str) -> ConversionRecord | None:
        with self._lock:
            return self._read(self._conversions_dir, conversion_id, ConversionRecord)

    def update_conversion(self, conversion_id: str, **fields) -> ConversionRecord | None:
        validate_conversion_update(fields)
        with self._lock:
            record = self._read(self._conversions_dir, conversion_id, ConversionRecord)
            if record is None:
                return None
            updated = record.model_copy(update={**fields, "updated_at": utcnow()})
            self._write(self._conversions_dir, conversion_id, updated)
        return updated

    def list_user_conversions(self, user_id: str) -> list[ConversionRecord]:
        with self._lock:
            records = [
                r
                for r in self._scan(self._conversions_dir, ConversionRecord)
                if r.user_id == user_id
            ]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records

    def delete_conversion(self, conversion_id: str) -> bool:
        with self._lock:
            deleted = self._delete(self._conversions_dir, conversion_id)
        logger.info("conversion deleted", conversion_id=conversion_id, deleted=deleted)
        return deleted

    # --- Sessions ---

    def create_session(self, user_id: str, ttl_seconds: int) -> str:
        session = SessionRecord(
            token=new_session_token(),
            user_id=user_id,
            expires_at=utcnow() + timedelta(seconds=ttl_seconds),
        )
        with self._lock:
            self._write(self._sessions_dir, session.token, session)
        return session.token

    def get_session_user_id(self, token: str) -> str | None:
        with self._lock:
            session = self._read(self._sessions_dir, token, SessionRecord)
            if session is None:
                return None
            if session.expires_at <= utcnow():
                self._delete(self._sessions_dir, token)
                return None
            return session.user_id

    def delete_session(self, token: str) -> None:
        with self._lock:
            self._delete(self._sessions_dir, token)
