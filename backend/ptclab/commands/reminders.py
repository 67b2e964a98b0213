from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import case, select

from .. import audit, models, schemas
from ..database import utcnow
from ..errors import NotFound
from ..querybuilder import UpdateSet
from ..rbac import Capability
from . import command, fetch

# purpose: due-date reminders with snooze escalation; "due soon" is computed per query
# status: active

DUE_SOON_DAYS = 7
ESCALATE_AFTER_SNOOZES = 2
OPEN_STATUSES = ("active", "snoozed")
URGENCY_RANK = {"critical": 0, "high": 1, "normal": 2, "low": 3}


def _reminder_query():
    return (
        select(
            models.Reminder,
            models.Specimen.accession_number,
            models.User.display_name,
        )
        .outerjoin(models.Specimen, models.Reminder.specimen_id == models.Specimen.id)
        .outerjoin(models.User, models.Reminder.assigned_to == models.User.id)
    )


def _reminder_out(row) -> schemas.ReminderOut:
    reminder, accession, assigned_name = row
    return schemas.ReminderOut.model_validate(reminder).model_copy(
        update={"specimen_accession": accession, "assigned_name": assigned_name}
    )


def _load_reminder(db, reminder_id: str) -> schemas.ReminderOut:
    row = db.execute(
        _reminder_query()
        .where(models.Reminder.id == reminder_id)
        .execution_options(populate_existing=True)
    ).first()
    if row is None:
        raise NotFound("Reminder not found")
    return _reminder_out(row)


@command("list_reminders", Capability.READ)
def list_reminders(db, user):
    rows = db.execute(
        _reminder_query().order_by(models.Reminder.due_date, models.Reminder.id)
    ).all()
    return [_reminder_out(row) for row in rows]


@command("get_active_reminders", Capability.READ)
def get_active_reminders(db, user, today: date | None = None):
    """Open reminders due within the week, most urgent first."""
    today = today or date.today()
    rank = case(URGENCY_RANK, value=models.Reminder.urgency, else_=len(URGENCY_RANK))
    rows = db.execute(
        _reminder_query()
        .where(
            models.Reminder.status.in_(OPEN_STATUSES),
            models.Reminder.due_date <= today + timedelta(days=DUE_SOON_DAYS),
        )
        .order_by(rank, models.Reminder.due_date, models.Reminder.id)
    ).all()
    return [_reminder_out(row) for row in rows]


@command("create_reminder", Capability.WRITE, payload=schemas.ReminderCreate)
def create_reminder(db, user, request: schemas.ReminderCreate):
    reminder = models.Reminder(**request.model_dump(exclude_none=True), created_by=user.id)
    db.add(reminder)
    db.commit()
    audit.record(db, user.id, "create", "reminder", reminder.id, new_value=request.title)
    return _load_reminder(db, reminder.id)


@command("update_reminder", Capability.WRITE, payload=schemas.ReminderUpdate)
def update_reminder(db, user, request: schemas.ReminderUpdate):
    UpdateSet.from_payload(request).apply(db, models.Reminder, request.id, "Reminder")
    db.commit()
    audit.record(db, user.id, "update", "reminder", request.id, details="Reminder updated")
    return _load_reminder(db, request.id)


@command("delete_reminder", Capability.WRITE)
def delete_reminder(db, user, id: str):
    reminder = fetch(db, models.Reminder, id, "Reminder")
    title = reminder.title
    db.delete(reminder)
    db.commit()
    audit.record(db, user.id, "delete", "reminder", id, old_value=title, details="Reminder deleted")
    return None


@command("dismiss_reminder")
def dismiss_reminder(db, user, id: str, snooze: bool = False):
    reminder = fetch(db, models.Reminder, id, "Reminder")
    if snooze:
        reminder.status = "snoozed"
        reminder.snooze_count += 1
        reminder.due_date = reminder.due_date + timedelta(days=1)
        if reminder.snooze_count >= ESCALATE_AFTER_SNOOZES:
            reminder.urgency = "critical"
    else:
        reminder.status = "dismissed"
    reminder.updated_at = utcnow()
    db.commit()
    audit.record(db, user.id, "snooze" if snooze else "dismiss", "reminder", id)
    return _load_reminder(db, id)
