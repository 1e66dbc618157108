"""
DRF integration for the domain error taxonomy.

Registered as ``REST_FRAMEWORK['EXCEPTION_HANDLER']``.
"""

from __future__ import annotations

import logging

from rest_framework import status  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import exception_handler as drf_exception_handler  # type: ignore

from shared.domain.exceptions import (
    BookingDomainError,
    Conflict,
    InvalidInput,
    InvalidTransition,
    NotFound,
    TransientStoreFailure,
)

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    NotFound: status.HTTP_404_NOT_FOUND,
    Conflict: status.HTTP_409_CONFLICT,
    InvalidInput: status.HTTP_400_BAD_REQUEST,
    InvalidTransition: status.HTTP_409_CONFLICT,
    TransientStoreFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: BookingDomainError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[error_type]
    return status.HTTP_400_BAD_REQUEST


def domain_exception_handler(exc, context):
    if isinstance(exc, BookingDomainError):
        code = status_for(exc)
        if code >= 500:
            logger.error(f"Transient ledger failure: {exc.message}")
        body = {"success": False, "error": exc.message, "code": exc.code}
        if exc.details is not None:
            body["details"] = exc.details
        headers = {"Retry-After": "1"} if code == status.HTTP_503_SERVICE_UNAVAILABLE else None
        return Response(body, status=code, headers=headers)
    return drf_exception_handler(exc, context)
