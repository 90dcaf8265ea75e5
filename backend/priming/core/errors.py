"""
API errors and centralized exception handlers.

Every failure leaves the API as ``{"error": str, "code": int, "details"?: [str]}``.
"""

import logging
import traceback
from enum import IntEnum

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from priming.core.config import get_settings

logger = logging.getLogger(__name__)


class ErrorCode(IntEnum):
    # Authentication
    ACCESS_DENIED = 1001
    INVALID_TOKEN = 1002
    WRONG_PASSWORD = 1003
    USER_NOT_FOUND = 1004
    MISSING_CREDENTIALS = 1005

    # Registration / validation
    INVALID_PASSWORD = 2001
    INVALID_EMAIL = 2002
    EMAIL_EXISTS = 2003
    CODE_EXISTS = 2004
    MISSING_DATA = 2005
    NOT_EVALUATOR = 2006

    # Server
    SERVER_ERROR = 5001


class ApiError(Exception):
    """An error with a status code and domain code, rendered as the error envelope."""

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: list[str] | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {"error": self.message, "code": int(self.code)}
        if self.details:
            body["details"] = self.details
        return body


def not_found(message: str, code: ErrorCode = ErrorCode.USER_NOT_FOUND) -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, code, message)


def bad_request(message: str, code: ErrorCode, details: list[str] | None = None) -> ApiError:
    return ApiError(status.HTTP_400_BAD_REQUEST, code, message, details)


def forbidden(message: str, code: ErrorCode = ErrorCode.ACCESS_DENIED) -> ApiError:
    return ApiError(status.HTTP_403_FORBIDDEN, code, message)


def _format_validation_error(err: dict) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
    return f"{loc}: {err.get('msg')}" if loc else str(err.get("msg"))


def add_error_handlers(app: FastAPI):
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid or incomplete data",
                "code": int(ErrorCode.MISSING_DATA),
                "details": [_format_validation_error(e) for e in exc.errors()],
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        # Driver and library messages stay out of production responses
        content = {
            "error": "An internal server error occurred",
            "code": int(ErrorCode.SERVER_ERROR),
        }
        if not get_settings().is_production:
            content["error"] = str(exc) or content["error"]
            content["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )
