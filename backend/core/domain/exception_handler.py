"""
core.domain.exception_handler — DRF-compatible global exception handler.

Service layers raise ``core.domain.exceptions``; this handler turns them
into JSON error bodies of the form::

    {"detail": "<message>", "code": "<error_code>"}

``code`` is stable across releases and is what clients should branch
on.  Storage failures additionally carry a ``Retry-After`` header.

Registered in ``settings.py`` as ``REST_FRAMEWORK["EXCEPTION_HANDLER"]``.
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_default_handler

from core.domain.exceptions import (
    Conflict,
    DomainError,
    Forbidden,
    InvalidArgument,
    InvalidCategory,
    InvalidTransition,
    NotFound,
    StorageError,
)

logger = logging.getLogger(__name__)

STORAGE_RETRY_AFTER_SECONDS = 5

# (exception, HTTP status, error code); first match wins.
_ERROR_TABLE: tuple[tuple[type[DomainError], int, str], ...] = (
    (Forbidden,         403, "forbidden"),
    (NotFound,          404, "not_found"),
    (InvalidTransition, 409, "invalid_transition"),
    (Conflict,          409, "conflict"),
    (InvalidCategory,   422, "invalid_category"),
    (InvalidArgument,   400, "invalid_argument"),
    (StorageError,      503, "storage_unavailable"),
    (DomainError,       400, "domain_error"),
)


def describe(exc: DomainError) -> tuple[int, str]:
    """HTTP status and error code for a domain exception."""
    for exc_class, status_code, code in _ERROR_TABLE:
        if isinstance(exc, exc_class):
            return status_code, code
    return 400, "domain_error"


def domain_exception_handler(exc: Exception, context: dict) -> Response | None:
    """DRF's own exceptions keep their default rendering; domain errors are mapped here."""
    response = drf_default_handler(exc, context)
    if response is not None or not isinstance(exc, DomainError):
        return response

    status_code, code = describe(exc)
    view = context.get("view")
    log = logger.error if status_code >= 500 else logger.warning
    log("%s [%s] in %s: %s", code, status_code, type(view).__name__ if view else "unknown", exc)

    headers = {"Retry-After": str(STORAGE_RETRY_AFTER_SECONDS)} if status_code == 503 else None
    return Response({"detail": str(exc), "code": code}, status=status_code, headers=headers)
