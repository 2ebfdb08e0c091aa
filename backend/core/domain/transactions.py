"""
core.domain.transactions — Helpers for safe, atomic writes.

Wraps ``transaction.atomic`` and ``select_for_update`` into reusable
patterns so that every app's service layer follows the same approach.

Usage::

    from core.domain.transactions import lock_for_update, storage_guard

    with storage_guard("set status of report #%s", report_id):
        with transaction.atomic():
            report = lock_for_update(Report, report_id)
            if report is None:
                return None
            ...
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, TypeVar

from django.db import DatabaseError, models

from core.domain.exceptions import StorageError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=models.Model)


def lock_for_update(model_class: type[M], pk: Any, *, related: tuple[str, ...] = ()) -> M | None:
    """
    Acquire a row-level lock on the given model instance.

    Must be called inside an ``atomic()`` block.

    Args:
        model_class: The Django model class.
        pk:          Primary key value.
        related:     Forward relations to join; only the base row is locked.

    Returns:
        The locked instance, or ``None`` when no row has that pk.
    """
    qs = model_class.objects.select_for_update(of=("self",) if related else ())
    if related:
        qs = qs.select_related(*related)
    return qs.filter(pk=pk).first()


@contextmanager
def storage_guard(action: str, *args: Any) -> Iterator[None]:
    """
    Translate database failures into ``StorageError``.

    Place it *outside* ``transaction.atomic()`` so the rollback has
    already happened by the time the error is translated.  Domain errors
    pass through untouched.
    """
    try:
        yield
    except DatabaseError as exc:
        logger.exception("Storage failure while trying to " + action, *args)
        raise StorageError() from exc
