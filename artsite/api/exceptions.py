"""Mapping of engine errors onto HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from artsite._utils import logger
from artsite.exceptions import (
    BackupError,
    ComponentNotFoundError,
    InvalidPayloadError,
    MalformedArchiveError,
    NoComponentsSelectedError,
    NotFoundOrForbiddenError,
    StorageError,
    UnauthorizedError,
)

STATUS_BY_ERROR = {
    InvalidPayloadError: HTTP_400_BAD_REQUEST,
    NoComponentsSelectedError: HTTP_400_BAD_REQUEST,
    MalformedArchiveError: HTTP_400_BAD_REQUEST,
    UnauthorizedError: HTTP_401_UNAUTHORIZED,
    NotFoundOrForbiddenError: HTTP_404_NOT_FOUND,
    ComponentNotFoundError: HTTP_404_NOT_FOUND,
    StorageError: HTTP_500_INTERNAL_SERVER_ERROR,
}


def status_for(exc: BackupError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return HTTP_500_INTERNAL_SERVER_ERROR


def error_response(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


async def backup_error_handler(request: Request, exc: BackupError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({status_code}): {exc}")
    return error_response(status_code, exc.error, str(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}" for err in exc.errors()
    )
    return error_response(HTTP_400_BAD_REQUEST, InvalidPayloadError.error, details or "Invalid request")


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return error_response(HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BackupError, backup_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
