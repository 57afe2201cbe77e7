"""Translate service exceptions into HTTP responses."""

from typing import Dict, Type

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from skillbridge.auth import (
    AuthError,
    CredentialValidationError,
    EmailAlreadyRegisteredError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    InvalidSessionError,
)
from skillbridge.logging import get_logger
from skillbridge.marketplace import (
    AlreadyReviewedError,
    CategoryExistsError,
    CategoryNotFoundError,
    DuplicateSubmissionError,
    JobNotFoundError,
    MarketplaceError,
    MarketplaceValidationError,
    SubmissionNotAllowedError,
    SubmissionNotFoundError,
    SubmissionUploadError,
)
from skillbridge.payments import (
    PaymentConfigurationError,
    PaymentError,
    TransactionNotFoundError,
    TransactionStateError,
    UnknownPlanError,
)
from skillbridge.persistence import PersistenceError, RecordNotFoundError

from .schemas import ErrorResponse

logger = get_logger(__name__, component="api")

# Most specific class first; the first isinstance match wins.
STATUS_CODES: Dict[Type[Exception], int] = {
    CredentialValidationError: 400,
    EmailAlreadyRegisteredError: 409,
    InvalidCredentialsError: 401,
    EmailNotConfirmedError: 403,
    InvalidSessionError: 401,
    AuthError: 400,
    MarketplaceValidationError: 400,
    JobNotFoundError: 404,
    SubmissionNotFoundError: 404,
    CategoryNotFoundError: 404,
    SubmissionNotAllowedError: 403,
    DuplicateSubmissionError: 409,
    AlreadyReviewedError: 409,
    CategoryExistsError: 409,
    SubmissionUploadError: 400,
    MarketplaceError: 400,
    UnknownPlanError: 400,
    PaymentConfigurationError: 503,
    TransactionNotFoundError: 404,
    TransactionStateError: 409,
    PaymentError: 400,
    RecordNotFoundError: 404,
}


def status_code_for(exc: Exception) -> int:
    for exc_type, status_code in STATUS_CODES.items():
        if isinstance(exc, exc_type):
            return status_code
    return 500


def _domain_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = status_code_for(exc)
    body = ErrorResponse(
        detail=getattr(exc, "message", None) or str(exc),
        errors=getattr(exc, "errors", None),
    )
    logger.info(
        f"{request.method} {request.url.path} -> {status_code}: {body.detail}",
        extra={
            "event": "api.request.rejected",
            "status_code": status_code,
            "error_type": type(exc).__name__,
        },
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    if isinstance(exc, RecordNotFoundError):
        return _domain_error_handler(request, exc)
    logger.error(
        f"{request.method} {request.url.path} failed: {exc}",
        extra={"event": "api.request.failed", "error_type": type(exc).__name__},
    )
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def register_error_handlers(app: FastAPI) -> None:
    for exc_type in (AuthError, MarketplaceError, PaymentError):
        app.add_exception_handler(exc_type, _domain_error_handler)
    app.add_exception_handler(PersistenceError, _persistence_error_handler)
