"""Application error taxonomy and the handlers that render it.

Every error raised by the services is an ``AppError``. Operational errors
carry a message that is safe to show to the client verbatim; anything else
is logged with full detail and surfaced only as a generic 500.
"""

from asgi_correlation_id import correlation_id
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.identity.core.logging import get_logger

logger = get_logger(__name__)

GENERIC_ERROR_MESSAGE = "Internal Server Error"


class AppError(Exception):
    """Base class for errors raised by the identity core."""

    kind: str = "Internal"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    operational: bool = True
    default_message: str = GENERIC_ERROR_MESSAGE

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def client_message(self) -> str:
        """Message that may be shown to the client."""
        return self.message if self.operational else GENERIC_ERROR_MESSAGE


class BadRequestError(AppError):
    kind = "BadRequest"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class UnauthorizedError(AppError):
    kind = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidOrExpiredTokenError(UnauthorizedError):
    """Generic token failure. Sub-reasons are logged, never returned."""

    kind = "InvalidOrExpiredToken"
    default_message = "Invalid or expired token"


class ForbiddenError(AppError):
    kind = "Forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    kind = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ConflictError(AppError):
    kind = "Conflict"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class LockedError(AppError):
    kind = "Locked"
    status_code = status.HTTP_423_LOCKED
    default_message = "Account is temporarily locked due to multiple failed login attempts"


class EmailDeliveryError(AppError):
    kind = "EmailDeliveryFailed"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to send email"


class InternalError(AppError):
    kind = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    operational = False


def error_envelope(code: int, msg: str) -> dict[str, object]:
    """Build the standard error response body."""
    return {
        "status": "error",
        "code": code,
        "msg": msg,
        "request_id": correlation_id.get(),
    }


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that render the response envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.operational:
            logger.info(
                "Request failed",
                kind=exc.kind,
                status_code=exc.status_code,
                path=request.url.path,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=error_envelope(exc.status_code, exc.client_message),
            )

        logger.error(
            "Non-operational error",
            kind=exc.kind,
            error=exc.message,
            path=request.url.path,
            exc_info=exc,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        msg = exc.detail if isinstance(exc.detail, str) else "Request failed"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_envelope(exc.status_code, msg),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        msg = errors[0]["msg"].removeprefix("Value error, ") if errors else "Invalid request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_envelope(status.HTTP_400_BAD_REQUEST, msg),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception",
            exc_info=exc,
            request_id=correlation_id.get(),
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_envelope(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE),
        )
