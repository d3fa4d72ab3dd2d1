"""FastAPI REST API for PDF to XML conversion."""

import os
from contextlib import asynccontextmanager
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, HTTPException, Request, Response, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .auth import (
    LoginRequest,
    RegisterRequest,
    UserResponse,
    current_user,
    end_session,
    get_storage,
    hash_password,
    optional_user,
    start_session,
    verify_password,
)
from .conversions import (
    ConversionAccessError,
    ConversionNotFoundError,
    ConversionNotReadyError,
    ConversionService,
)
from .converter import DocumentBuilder
from .logger import logger
from .storage import (
    ConversionRecord,
    DuplicateUserError,
    PostgresStorage,
    Storage,
    UserRecord,
    create_storage,
)

# Maximum file size for uploads (20MB)
MAX_UPLOAD_SIZE = 20 * 1024 * 1024


# --- Response Models ---


class HealthResponse(BaseModel):
    status: str
    checks: dict[str, bool] = Field(default_factory=dict)


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    message: str
    error: str | None = None


def _error(status_code: int, message: str, error: str | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, error=error).model_dump(exclude_none=True),
    )


def content_disposition(filename: str) -> str:
    """Attachment header that survives non-ASCII and quote characters.

    Headers are latin-1 encoded, so names that need escaping get an ASCII
    ``filename`` fallback plus an RFC 5987 ``filename*`` parameter.
    """
    quoted = quote(filename, safe="")
    if quoted == filename:
        return f'attachment; filename="{filename}"'
    fallback = "".join(
        c if c.isascii() and c.isprintable() and c not in '"\\' else "_" for c in filename
    )
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quoted}"


def get_service(request: Request) -> ConversionService:
    return request.app.state.service


def create_app(storage: Storage | None = None) -> FastAPI:
    """Build the application.

    Args:
        storage: Backend to use. When None, the backend named by
            STORAGE_BACKEND is created and connected at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("starting server")

        store = storage or create_storage()
        store.connect()
        migrations_dir = os.getenv("MIGRATIONS_DIR")
        if isinstance(store, PostgresStorage) and migrations_dir:
            store.run_migrations(migrations_dir)

        app.state.storage = store
        app.state.service = ConversionService(store, DocumentBuilder())
        logger.info("storage ready", backend=store.name)

        yield

        store.disconnect()
        logger.info("server shutdown")

    app = FastAPI(
        title="PDF to XML API",
        description="Converts uploaded PDFs into structural XML and keeps conversion history",
        version=__version__,
        lifespan=lifespan,
    )
    _register_exception_handlers(app)
    _register_routes(app)
    return app


# --- Exception Handlers ---


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0]["msg"].removeprefix("Value error, ") if errors else "Invalid request"
        return _error(400, message)

    @app.exception_handler(ConversionNotFoundError)
    async def not_found_handler(request, exc: ConversionNotFoundError):
        return _error(404, str(exc))

    @app.exception_handler(ConversionAccessError)
    async def access_denied_handler(request, exc: ConversionAccessError):
        return _error(403, str(exc))

    @app.exception_handler(ConversionNotReadyError)
    async def not_ready_handler(request, exc: ConversionNotReadyError):
        return _error(400, str(exc))


def _register_routes(app: FastAPI) -> None:
    # --- Health Endpoints ---

    @app.get("/health", response_model=HealthResponse)
    def health():
        """Liveness check."""
        return HealthResponse(status="healthy")

    @app.get("/ready", response_model=HealthResponse)
    def ready(storage: Storage = Depends(get_storage)):
        """Readiness check - verifies the storage backend responds."""
        checks = {"storage": storage.ping()}
        status = "healthy" if all(checks.values()) else "unhealthy"
        return HealthResponse(status=status, checks=checks)

    # --- Auth Endpoints ---

    @app.post("/api/register", response_model=UserResponse, status_code=201)
    def register(
        payload: RegisterRequest,
        response: Response,
        storage: Storage = Depends(get_storage),
    ):
        if storage.get_user_by_email(payload.email):
            raise HTTPException(status_code=400, detail="Email already in use")
        if storage.get_user_by_username(payload.username):
            raise HTTPException(status_code=400, detail="Username already taken")

        try:
            user = storage.create_user(
                username=payload.username,
                email=payload.email,
                password_hash=hash_password(payload.password),
            )
        except DuplicateUserError as e:
            detail = "Email already in use" if e.field == "email" else "Username already taken"
            raise HTTPException(status_code=400, detail=detail) from e

        start_session(response, storage, user)
        return UserResponse.from_record(user)

    @app.post("/api/login", response_model=UserResponse)
    def login(
        payload: LoginRequest,
        response: Response,
        storage: Storage = Depends(get_storage),
    ):
        user = storage.get_user_by_email(payload.email)
        if user is None or not verify_password(payload.password, user.password):
            logger.info("login rejected")
            raise HTTPException(status_code=401, detail="Invalid email or password")
        start_session(response, storage, user)
        return UserResponse.from_record(user)

    @app.post("/api/logout", response_model=MessageResponse)
    def logout(request: Request, response: Response, storage: Storage = Depends(get_storage)):
        end_session(request, response, storage)
        return MessageResponse(message="Logged out")

    @app.get("/api/user", response_model=UserResponse)
    def get_current_user(user: UserRecord | None = Depends(optional_user)):
        if user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return UserResponse.from_record(user)

    # --- Conversion Endpoints ---

    @app.post("/api/conversions", response_model=ConversionRecord)
    def create_conversion(
        file: UploadFile | None = File(None),
        user: UserRecord = Depends(current_user),
        service: ConversionService = Depends(get_service),
    ):
        """Upload a PDF and convert it to XML."""
        if file is None:
            raise HTTPException(status_code=400, detail="No file uploaded")

        file_name = file.filename or "document.pdf"
        if file.content_type != "application/pdf" and not file_name.lower().endswith(".pdf"):
            raise HTTPException(status_code=400, detail="Only PDF files are allowed!")

        pdf_bytes = file.file.read(MAX_UPLOAD_SIZE + 1)
        if len(pdf_bytes) > MAX_UPLOAD_SIZE:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size is {MAX_UPLOAD_SIZE // (1024 * 1024)}MB",
            )
        if not pdf_bytes.startswith(b"%PDF-"):
            raise HTTPException(
                status_code=400,
                detail="Invalid PDF file. File does not have valid PDF header.",
            )

        try:
            return service.create_conversion(user.id, file_name, pdf_bytes)
        except Exception as e:
            return _error(500, "Conversion failed", error=str(e))

    @app.get("/api/conversions", response_model=list[ConversionRecord])
    def list_conversions(
        user: UserRecord = Depends(current_user),
        service: ConversionService = Depends(get_service),
    ):
        return service.list_conversions(user.id)

    @app.get("/api/conversions/{conversion_id}", response_model=ConversionRecord)
    def get_conversion(
        conversion_id: str,
        user: UserRecord = Depends(current_user),
        service: ConversionService = Depends(get_service),
    ):
        return service.get_conversion(user.id, conversion_id)

    @app.delete("/api/conversions/{conversion_id}", response_model=MessageResponse)
    def delete_conversion(
        conversion_id: str,
        user: UserRecord = Depends(current_user),
        service: ConversionService = Depends(get_service),
    ):
        if not service.delete_conversion(user.id, conversion_id):
            raise HTTPException(status_code=500, detail="Failed to delete conversion")
        return MessageResponse(message="Conversion deleted successfully")

    @app.get("/api/conversions/{conversion_id}/download")
    def download_conversion(
        conversion_id: str,
        user: UserRecord = Depends(current_user),
        service: ConversionService = Depends(get_service),
    ):
        """Download the XML produced for a completed conversion."""
        filename, xml = service.download(user.id, conversion_id)
        return Response(
            content=xml,
            media_type="application/xml",
            headers={"Content-Disposition": content_disposition(filename)},
        )


app = create_app()
