"""
Error taxonomy for the Smart Cart API and the handlers that render it.

Every error leaves the service as `{"success": false, "message": ..., "error"?: ...}`.
"""
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from logging_utils import get_app_logger

logger = get_app_logger(__name__)


class SmartCartError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"

    def __init__(self, message: Optional[str] = None, error: Optional[str] = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)

    def to_payload(self) -> dict:
        payload = {"success": False, "message": self.message}
        if self.error is not None:
            payload["error"] = self.error
        return payload


class MissingFieldsError(SmartCartError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing fields"


class NotFoundError(SmartCartError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidCodeError(SmartCartError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "❌ Invalid code"


class ExpiredCodeError(SmartCartError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "❌ Code expired"


class StoreError(SmartCartError):
    """Underlying data-access failure. `error` carries the driver's message verbatim."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Database error"

    def relabel(self, message: str) -> "StoreError":
        return StoreError(message, self.error)


async def _smart_cart_exception_handler(request: Request, exc: SmartCartError):
    if exc.status_code >= 500:
        logger.error(f"request_failed | method={request.method} path={request.url.path} status_code={exc.status_code} message={exc.message} error={exc.error}")
    else:
        logger.warning(f"request_rejected | method={request.method} path={request.url.path} status_code={exc.status_code} message={exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def _validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"validation_error | method={request.method} path={request.url.path} errors={exc.errors()}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=MissingFieldsError().to_payload())


async def _general_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"unhandled_exception | method={request.method} path={request.url.path} exception_type={type(exc).__name__} exception_message={str(exc)}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "message": "Server error", "error": str(exc)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the given FastAPI instance."""
    app.add_exception_handler(SmartCartError, _smart_cart_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
    app.add_exception_handler(Exception, _general_exception_handler)
