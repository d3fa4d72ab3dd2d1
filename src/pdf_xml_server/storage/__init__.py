import os

from .base import DuplicateUserError, Storage, StorageError
from .documents import DocumentStorage
from .memory import MemoryStorage
from .models import (
    CONVERSION_STATUSES,
    ConversionRecord,
    ConversionStatus,
    SessionRecord,
    UserRecord,
)
from .postgres import PostgresStorage

STORAGE_BACKENDS: dict[str, type[Storage]] = {
    "memory": MemoryStorage,
    "postgres": PostgresStorage,
    "documents": DocumentStorage,
}


def create_storage(backend: str | None = None) -> Storage:
    """Instantiate the storage backend chosen for this process.

    Args:
        backend: "memory", "postgres" or "documents". Defaults to the
            STORAGE_BACKEND env var, then "memory".

    Raises:
        StorageError: If the backend name is unknown.
    """
    name = (backend or os.getenv("STORAGE_BACKEND", "memory")).strip().lower()
    try:
        storage_cls = STORAGE_BACKENDS[name]
    except KeyError:
        raise StorageError(
            f"Unknown storage backend '{name}'. Choose one of: {', '.join(STORAGE_BACKENDS)}"
        ) from None
    return storage_cls()


__all__ = [
    "CONVERSION_STATUSES",
    "ConversionRecord",
    "ConversionStatus",
    "DocumentStorage",
    "DuplicateUserError",
    "MemoryStorage",
    "PostgresStorage",
    "SessionRecord",
    "Storage",
    "StorageError",
    "STORAGE_BACKENDS",
    "UserRecord",
    "create_storage",
]
