from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ConversionStatus = Literal["pending", "processing", "completed", "failed"]

CONVERSION_STATUSES: tuple[str, ...] = ("pending", "processing", "completed", "failed")

# Fields a caller may change after a conversion record is created
UPDATABLE_CONVERSION_FIELDS = frozenset(
    {"status", "xml_content", "converted_size", "metadata"}
)


class UserRecord(BaseModel):
    id: str
    username: str
    email: str
    password: str  # scrypt hash, never the plain password


class ConversionRecord(BaseModel):
    id: str
    user_id: str
    original_filename: str
    original_size: int
    converted_size: int | None = None
    status: ConversionStatus = "pending"
    xml_content: str | None = None
    metadata: dict | None = None
    created_at: datetime
    updated_at: datetime


class SessionRecord(BaseModel):
    token: str
    user_id: str
    expires_at: datetime = Field(description="UTC expiry time")
