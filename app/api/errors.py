"""Translate integration-layer exceptions into HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.exceptions import (
    ConfigurationError,
    IntegrationError,
    NormalizationError,
    StoreError,
    TransactionNotFoundError,
    UnknownPlatformError,
    VendorHttpError,
    VendorTimeoutError,
)
from app.core.logging import get_logger

logger = get_logger(__name__)

# Most specific first; the first matching class wins
_STATUS_CODES: list[tuple[type[IntegrationError], int]] = [
    (VendorTimeoutError, 504),
    (VendorHttpError, 502),
    (NormalizationError, 422),
    (UnknownPlatformError, 404),
    (TransactionNotFoundError, 404),
    (ConfigurationError, 409),
    (StoreError, 500),
]


def status_code_for(exc: IntegrationError) -> int:
    for exc_type, status_code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return status_code
    return 500


async def integration_error_handler(request: Request, exc: IntegrationError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IntegrationError, integration_error_handler)
