"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  ``core.domain.exception_handler`` maps them to HTTP
responses.

Mapping cheatsheet
------------------
┌─────────────────────┬──────────────────────────────┬──────┐
│ Domain Exception    │ Meaning                      │ Code │
├─────────────────────┼──────────────────────────────┼──────┤
│ DomainError         │ generic rule violation       │ 400  │
│ InvalidArgument     │ malformed input              │ 400  │
│ InvalidCategory     │ category does not resolve    │ 422  │
│ Forbidden           │ caller role not allowed      │ 403  │
│ NotFound            │ referenced row missing       │ 404  │
│ Conflict            │ clashes with current state   │ 409  │
│ InvalidTransition   │ state machine refuses move   │ 409  │
│ StorageError        │ database failure             │ 503  │
└─────────────────────┴──────────────────────────────┴──────┘

Usage inside a service::

    from core.domain.exceptions import Forbidden

    if role not in ALLOWED_HANDOFFS["technician"]:
        raise Forbidden("Only reviewers may assign technicians.")
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class InvalidArgument(DomainError):
    """An input value is malformed (bad id, unknown status, empty text)."""

    def __init__(self, message: str = "Invalid argument.") -> None:
        super().__init__(message)


class InvalidCategory(DomainError):
    """
    The submitted category does not resolve to an office.

    Raised by report creation; the whole creation transaction is rolled
    back before this reaches the caller.  Maps to HTTP 422.
    """

    def __init__(self, message: str = "Invalid category.") -> None:
        super().__init__(message)


class Forbidden(DomainError):
    """
    The authenticated user does not hold a role allowed to perform
    this operation.

    Maps to HTTP 403.
    """

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist.

    Maps to HTTP 404.
    """

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Maps to HTTP 409.
    """

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A hand-off or status move that is not allowed from the current state.

    Example::

        raise InvalidTransition(
            current="Pending Approval",
            target="maintainer assignment",
            reason="A technician must be assigned first.",
        )
    """

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            message = " ".join(parts) + "."
            if reason:
                message = f"{message} {reason}"
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class StorageError(DomainError):
    """
    The database rejected or failed an operation.

    The surrounding transaction has already been rolled back when this
    is raised.  Maps to HTTP 503.
    """

    def __init__(self, message: str = "Storage is temporarily unavailable.") -> None:
        super().__init__(message)
