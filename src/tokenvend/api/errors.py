"""Mapping of domain errors to HTTP responses."""

from __future__ import annotations

import logging
from typing import Dict, Type

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..domain.errors import (
    AlreadyIssued,
    ConflictError,
    InvalidStateError,
    NotFound,
    PaymentGatewayUnavailable,
    PaymentVerificationError,
    PermissionDeniedError,
    QuotaExceeded,
    TokenVendError,
    ValidationError,
    VerificationRequired,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR: Dict[Type[TokenVendError], int] = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    QuotaExceeded: status.HTTP_409_CONFLICT,
    InvalidStateError: status.HTTP_409_CONFLICT,
    VerificationRequired: status.HTTP_409_CONFLICT,
    AlreadyIssued: status.HTTP_200_OK,
    NotFound: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    ConflictError: status.HTTP_409_CONFLICT,
    PaymentVerificationError: status.HTTP_402_PAYMENT_REQUIRED,
    PaymentGatewayUnavailable: status.HTTP_502_BAD_GATEWAY,
}


def status_for(error: TokenVendError) -> int:
    for cls in type(error).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return status.HTTP_400_BAD_REQUEST


async def handle_domain_error(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, TokenVendError)
    body = {"detail": exc.message, "code": exc.code, **exc.extra()}
    if isinstance(exc, AlreadyIssued):
        body["already_issued"] = True
    return JSONResponse(status_code=status_for(exc), content=body)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "internal_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TokenVendError, handle_domain_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
