import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from bid_accounts.core.request_id import REQUEST_ID_HEADER, resolve_request_id


logger = logging.getLogger(__name__)


class AccountError(Exception):
    """Base class for failures surfaced to API clients"""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Something went wrong"

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.message
        self.extra = extra
        super().__init__(self.message)


class ValidationError(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class DuplicateEmailError(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "DUPLICATE_EMAIL"
    message = "Email already exists"


class NotFoundError(AccountError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "User not found"


class InvalidCredentialsError(AccountError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_CREDENTIALS"
    message = "Invalid email or password"


class EmailNotVerifiedError(AccountError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "EMAIL_NOT_VERIFIED"
    message = "Please verify your email before logging in"


class AlreadyVerifiedError(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ALREADY_VERIFIED"
    message = "Email is already verified"


class InvalidOrExpiredTokenError(AccountError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_OR_EXPIRED_TOKEN"
    message = "Invalid or expired verification token"


class InternalError(AccountError):
    pass


def _error_content(request: Request, message: Any, code: str, request_id: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    content = {
        "message": message,
        "code": code,
        "request_id": request_id or resolve_request_id(request),
    }
    content.update(extra)
    return content


def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("%s %s failed: %s (%s)", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.message, exc.code, **exc.extra),
    )


def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.detail, "HTTP_EXCEPTION"),
        headers=getattr(exc, "headers", None),
    )


def starlette_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_content(request, exc.detail, "HTTP_EXCEPTION"),
    )


def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    fields = sorted({str(err["loc"][-1]) for err in errors if err.get("loc")})
    message = "Invalid request body"
    if fields:
        message = f"Invalid value for: {', '.join(fields)}"
    logger.info("%s %s rejected: %s", request.method, request.url.path, message)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_content(request, message, ValidationError.code),
    )


def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    # Runs outside RequestIdMiddleware, so the id is resolved and echoed here
    request_id = resolve_request_id(request)
    logger.error(
        "Unhandled error on %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
        extra={"request_id": request_id},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_content(request, InternalError.message, InternalError.code, request_id=request_id),
        headers={REQUEST_ID_HEADER: request_id},
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(AccountError, account_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, starlette_http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
