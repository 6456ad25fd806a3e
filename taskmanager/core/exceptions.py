from datetime import datetime, timezone
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class ErrorTypes:
    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


# FastAPI answers malformed requests with 422
VALIDATION_STATUS_CODE = 422


_STATUS_ERROR_TYPES = {
    status.HTTP_400_BAD_REQUEST: ErrorTypes.VALIDATION_ERROR,
    status.HTTP_401_UNAUTHORIZED: ErrorTypes.UNAUTHORIZED,
    status.HTTP_403_FORBIDDEN: ErrorTypes.FORBIDDEN,
    status.HTTP_404_NOT_FOUND: ErrorTypes.ENTITY_NOT_FOUND,
    status.HTTP_409_CONFLICT: ErrorTypes.DUPLICATE_ENTRY,
}


class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = ErrorTypes.INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
        self.message = message


class EntityNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    error = ErrorTypes.ENTITY_NOT_FOUND

    def __init__(self, entity_name: str):
        super().__init__(f"{entity_name} not found")


class DuplicateEntryError(AppError):
    status_code = status.HTTP_409_CONFLICT
    error = ErrorTypes.DUPLICATE_ENTRY


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    error = ErrorTypes.UNAUTHORIZED


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    error = ErrorTypes.FORBIDDEN


def error_body(status_code: int, message, error: str, path: str) -> dict:
    return {
        "statusCode": status_code,
        "message": message,
        "error": error,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": path,
    }


async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.message, exc.error, request.url.path),
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    error = _STATUS_ERROR_TYPES.get(exc.status_code, ErrorTypes.INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.status_code, exc.detail, error, request.url.path),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=VALIDATION_STATUS_CODE,
        content=error_body(
            VALIDATION_STATUS_CODE, messages, ErrorTypes.VALIDATION_ERROR, request.url.path
        ),
    )


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=error_body(
            status.HTTP_409_CONFLICT, "Duplicate entry found", ErrorTypes.DUPLICATE_ENTRY, request.url.path
        ),
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Internal server error",
            ErrorTypes.INTERNAL_SERVER_ERROR,
            request.url.path,
        ),
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
