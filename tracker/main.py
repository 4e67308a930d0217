"""tracker - personal goal tracker service."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from tracker.core.config import constants, settings
from tracker.core.db_client import close_connection, init_db
from tracker.core.errors import (
    DatabaseError,
    TaskIdMismatchError,
    TaskValidationError,
    classify_error_with_response,
)
from tracker.core.logging import configure_logfire, instrument_fastapi
from tracker.interface.task_router import router as task_router
from tracker.interface.user_router import router as user_router


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Startup
    configure_logfire()

    if settings.is_production:
        settings.require_credential("secret_key", "Session signing key")

    await init_db()
    logger.info("Database initialized")
    yield
    # Shutdown
    await close_connection()


app = FastAPI(
    title="tracker",
    description="Personal goal tracker: daily habits, progress goals and one-time tasks",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

# Register routers
app.include_router(task_router)
app.include_router(user_router)


def _error_body(exc: Exception) -> dict:
    response = classify_error_with_response(exc)
    return {"error": response.message, **response.model_dump(mode="json")}


@app.exception_handler(TaskIdMismatchError)
async def id_mismatch_handler(_request: Request, exc: TaskIdMismatchError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


@app.exception_handler(TaskValidationError)
async def task_validation_handler(request: Request, exc: TaskValidationError) -> JSONResponse:
    logger.info("request_rejected", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=constants.HTTP_UNPROCESSABLE, content=_error_body(exc))


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("request_rejected", extra={"path": request.url.path, "error_count": exc.error_count()})
    content = _error_body(exc)
    content["detail"] = exc.errors(include_url=False, include_context=False, include_input=False)
    return JSONResponse(status_code=constants.HTTP_UNPROCESSABLE, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """422 for malformed request bodies; rejected input values are not echoed back."""
    errors = [{key: value for key, value in error.items() if key not in {"input", "ctx"}} for error in exc.errors()]
    logger.info("request_rejected", extra={"path": request.url.path, "error_count": len(errors)})
    return JSONResponse(status_code=constants.HTTP_UNPROCESSABLE, content={"detail": errors})


@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    logger.error("storage_failure", extra={"path": request.url.path, "error": str(exc)})
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=_error_body(exc))


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=constants.HTTP_OK)
