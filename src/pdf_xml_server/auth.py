"""Password hashing and cookie-session authentication."""

import hashlib
import hmac
import os
import re
import secrets

from fastapi import Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field, field_validator

from .logger import logger
from .storage import Storage, UserRecord

SESSION_COOKIE = "session_id"
DEFAULT_SESSION_TTL_SECONDS = 24 * 60 * 60  # 1 day

# scrypt parameters: N=2^14, r=8, p=1, 64-byte key
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
SCRYPT_KEY_LENGTH = 64

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def session_ttl_seconds() -> int:
    return int(os.getenv("SESSION_TTL_SECONDS", str(DEFAULT_SESSION_TTL_SECONDS)))


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SCRYPT_KEY_LENGTH,
    )


def hash_password(password: str) -> str:
    """Hash a password as ``<hex digest>.<hex salt>``."""
    salt = secrets.token_hex(16)
    return f"{_scrypt(password, salt).hex()}.{salt}"


def verify_password(supplied: str, stored: str) -> bool:
    """Compare a password against a stored hash in constant time.

    Malformed stored hashes never match.
    """
    hashed, sep, salt = stored.partition(".")
    if not sep or not hashed or not salt:
        return False
    try:
        expected = bytes.fromhex(hashed)
    except ValueError:
        logger.warn("stored password hash is not valid hex")
        return False
    return hmac.compare_digest(expected, _scrypt(supplied, salt))


class RegisterRequest(BaseModel):
    email: str
    username: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Invalid email format")
        return v


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    username: str
    email: str

    @classmethod
    def from_record(cls, user: UserRecord) -> "UserResponse":
        return cls(id=user.id, username=user.username, email=user.email)


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def start_session(response: Response, storage: Storage, user: UserRecord) -> None:
    ttl = session_ttl_seconds()
    token = storage.create_session(user.id, ttl)
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=ttl,
        httponly=True,
        samesite="lax",
    )
    logger.info("session started", user_id=user.id)


def end_session(request: Request, response: Response, storage: Storage) -> None:
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        storage.delete_session(token)
    response.delete_cookie(SESSION_COOKIE)


def optional_user(
    request: Request, storage: Storage = Depends(get_storage)
) -> UserRecord | None:
    token = request.cookies.get(SESSION_COOKIE)
    if not token:
        return None
    user_id = storage.get_session_user_id(token)
    if user_id is None:
        return None
    return storage.get_user(user_id)


def current_user(user: UserRecord | None = Depends(optional_user)) -> UserRecord:
    """FastAPI dependency resolving the logged-in user or answering 401."""
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
