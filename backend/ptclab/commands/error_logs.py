from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update

from .. import audit, models, schemas
from ..querybuilder import FilterSet, PageRequest, paginate
from ..rbac import Capability
from . import command

# purpose: front-end error reports kept in the database for later review
# status: active

logger = logging.getLogger(__name__)

DEFAULT_SEVERITY = "error"


@command("log_error", public=True, soft_auth=True, payload=schemas.ErrorLogCreate)
def log_error(db, user, request: schemas.ErrorLogCreate):
    entry = models.ErrorLog(
        **request.model_dump(exclude_none=True, exclude={"severity"}),
        severity=request.severity or DEFAULT_SEVERITY,
        user_id=user.id if user else None,
        username=user.username if user else None,
    )
    db.add(entry)
    db.commit()
    logger.info("Front-end error recorded: %s (%s)", request.title, entry.severity)
    return schemas.ErrorLogOut.model_validate(entry)


@command("list_error_logs", Capability.READ, payload=schemas.ErrorLogSearch)
def list_error_logs(db, user, request: schemas.ErrorLogSearch):
    filters = (
        FilterSet()
        .add(models.ErrorLog.severity, "eq", request.severity)
        .add(models.ErrorLog.module, "contains", request.module or None)
    )
    if request.unread_only:
        filters.add_clause(models.ErrorLog.is_read.is_(False))
    return paginate(
        db,
        select(models.ErrorLog),
        PageRequest.of(request.page, request.per_page),
        filters=filters,
        order_by=(models.ErrorLog.timestamp.desc(), models.ErrorLog.id.desc()),
        transform=lambda row: schemas.ErrorLogOut.model_validate(row[0]),
    )


@command("get_unread_error_count", Capability.READ)
def get_unread_error_count(db, user) -> int:
    return db.execute(
        select(func.count(models.ErrorLog.id)).where(models.ErrorLog.is_read.is_(False))
    ).scalar_one()


@command("mark_errors_read", Capability.READ)
def mark_errors_read(db, user):
    db.execute(
        update(models.ErrorLog)
        .where(models.ErrorLog.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return None


@command("clear_error_logs", Capability.MANAGE)
def clear_error_logs(db, user):
    result = db.execute(delete(models.ErrorLog).execution_options(synchronize_session=False))
    db.commit()
    audit.record(
        db, user.id, "delete", "error_log",
        old_value=result.rowcount, details="Error log cleared",
    )
    return None
