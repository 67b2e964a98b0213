from __future__ import annotations

import logging
from datetime import date, datetime, time

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .database import utcnow
from .querybuilder import FilterSet, Page, PageRequest, paginate

# purpose: append-only trail of state changes, written best-effort after the primary commit
# status: active

logger = logging.getLogger(__name__)


def as_text(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def record(
    db: Session,
    actor_id: str | None,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    old_value=None,
    new_value=None,
    details: str | None = None,
) -> bool:
    """Append one audit entry and commit it on its own.

    A failed write is rolled back and logged, never raised: callers have
    already committed their change and are expected to ignore the result.
    Returns True when the entry was stored.
    """
    try:
        db.add(
            models.AuditLog(
                user_id=actor_id,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                old_value=as_text(old_value),
                new_value=as_text(new_value),
                details=details,
                created_at=utcnow(),
            )
        )
        db.commit()
        return True
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning(
            "Audit write failed for %s %s %s: %s", action, entity_type, entity_id, exc
        )
        return False


def _entry_out(row) -> schemas.AuditEntryOut:
    entry, username = row
    return schemas.AuditEntryOut(
        id=entry.id,
        user_id=entry.user_id,
        username=username,
        action=entry.action,
        entity_type=entry.entity_type,
        entity_id=entry.entity_id,
        old_value=entry.old_value,
        new_value=entry.new_value,
        details=entry.details,
        created_at=entry.created_at,
    )


def search(
    db: Session,
    page: PageRequest,
    *,
    user_id: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: str | None = None,
    from_date: date | None = None,
    to_date: date | None = None,
) -> Page:
    """Newest-first audit entries, each carrying the actor's username."""
    filters = (
        FilterSet()
        .add(models.AuditLog.user_id, "eq", user_id)
        .add(models.AuditLog.entity_type, "eq", entity_type)
        .add(models.AuditLog.entity_id, "eq", entity_id)
        .add(models.AuditLog.action, "eq", action)
        .add(
            models.AuditLog.created_at,
            "ge",
            datetime.combine(from_date, time.min) if from_date else None,
        )
        .add(
            models.AuditLog.created_at,
            "le",
            datetime.combine(to_date, time.max) if to_date else None,
        )
    )
    stmt = select(models.AuditLog, models.User.username).outerjoin(
        models.User, models.AuditLog.user_id == models.User.id
    )
    return paginate(
        db,
        stmt,
        page,
        filters=filters,
        order_by=(models.AuditLog.created_at.desc(), models.AuditLog.id.desc()),
        transform=_entry_out,
    )
