# Overview: Transaction and lookup primitives shared by the mutation services.

"""
Catalog Store helpers.

All writers go through transaction(): statements inside the block either
commit together or roll back together. IntegrityError from unique
constraints is translated to AlreadyExistsError so raw storage errors never
reach a response. Batch writes that can collide with another request run
through run_with_retry.
"""

from __future__ import annotations

import time
from contextlib import contextmanager

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..errors import AlreadyExistsError
from ..extensions import db
from ..models import Category

# Constraint/column fragments that identify each unique field in driver messages.
# SQLite: "UNIQUE constraint failed: commerces.subdomain"
# PostgreSQL: 'duplicate key value violates unique constraint "uq_commerces_subdomain"'
_UNIQUE_FIELDS = {
    "subdomain": ("uq_commerces_subdomain", "commerces.subdomain"),
    "email": ("uq_users_email", "users.email"),
}


def translate_integrity_error(exc: IntegrityError) -> Exception:
    message = str(getattr(exc, "orig", exc))
    for field, markers in _UNIQUE_FIELDS.items():
        if any(marker in message for marker in markers):
            return AlreadyExistsError(field)
    return exc


@contextmanager
def transaction():
    """
    Run a block of writes as one unit.

    Usage:
        with transaction():
            db.session.add(...)
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        translated = translate_integrity_error(exc)
        if translated is exc:
            raise
        raise translated from exc
    except Exception:
        db.session.rollback()
        raise


def get_by_id(model, entity_id: int, *, commerce_id: int | None = None):
    """Point lookup; when commerce_id is given the row must also match it."""
    query = db.session.query(model).filter(model.id == entity_id)
    if commerce_id is not None:
        query = query.filter(model.commerce_id == commerce_id)
    return query.first()


def lock_category_rows(ids: list[int]):
    """
    Categories named in a reorder batch, locked until the batch commits.

    SQLite ignores FOR UPDATE; PostgreSQL holds the row locks.
    """
    return db.session.query(Category).filter(Category.id.in_(ids)).with_for_update().all()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a catalog write, retrying when a concurrent writer gets in the way.

    Used by category reorder and option item reconciliation. A deadlock or
    lock timeout (OperationalError), or a row removed by another request
    mid-flush (StaleDataError), rolls back and runs func again. Whichever
    batch commits last wins.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Catalog write conflict, retrying (attempt %s of %s): %s",
                attempt + 1, attempts, exc.__class__.__name__,
            )
            time.sleep(backoff_base * (2 ** attempt))
