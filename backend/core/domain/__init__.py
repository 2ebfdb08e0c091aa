"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions     Domain-specific exceptions that map cleanly to HTTP responses.
notifications  Citizen notifications plus best-effort live push.
transactions   Helpers for ``transaction.atomic`` + ``select_for_update``.
access         Role lookup and role guards.

Usage from any app::

    from core.domain.exceptions import Forbidden, InvalidTransition
    from core.domain.notifications import NotificationDispatcher
    from core.domain.transactions import storage_guard
    from core.domain.access import require_role
"""
