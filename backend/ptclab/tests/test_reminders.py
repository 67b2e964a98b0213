from ptclab.commands import invoke

TODAY = "2024-06-10"


def create_reminder(call, title, due_date, urgency="normal", **fields):
    return call(
        "create_reminder",
        title=title,
        reminder_type=fields.pop("reminder_type", "custom"),
        due_date=due_date,
        urgency=urgency,
        **fields,
    )


def test_active_reminders_ordered_by_urgency_rank(call):
    create_reminder(call, "low soon", "2024-06-11", "low")
    create_reminder(call, "critical later", "2024-06-16", "critical")
    create_reminder(call, "high", "2024-06-12", "high")
    create_reminder(call, "normal", "2024-06-09", "normal")
    create_reminder(call, "critical first", "2024-06-10", "critical")
    create_reminder(call, "far away", "2024-06-30", "critical")
    done = create_reminder(call, "finished", "2024-06-10", "critical")
    call("update_reminder", id=done["id"], status="completed")

    titles = [r["title"] for r in call("get_active_reminders", today=TODAY)]
    assert titles == ["critical first", "critical later", "high", "normal", "low soon"]


def test_snooze_pushes_due_date_and_escalates(call, make_user):
    reminder = create_reminder(call, "Subculture batch 7", "2024-06-10", "normal",
                               reminder_type="subculture_due")
    guest = make_user("guest")

    once = call("dismiss_reminder", token=guest, id=reminder["id"], snooze=True)
    assert once["status"] == "snoozed"
    assert once["snooze_count"] == 1
    assert once["due_date"] == "2024-06-11"
    assert once["urgency"] == "normal"

    twice = call("dismiss_reminder", token=guest, id=reminder["id"], snooze=True)
    assert twice["snooze_count"] == 2
    assert twice["due_date"] == "2024-06-12"
    assert twice["urgency"] == "critical"

    actions = [e["action"] for e in call("get_audit_log", entity_type="reminder")["items"]]
    assert actions[:2] == ["snooze", "snooze"]


def test_dismiss_removes_from_active(call):
    reminder = create_reminder(call, "Check permit", "2024-06-10")
    dismissed = call("dismiss_reminder", id=reminder["id"])
    assert dismissed["status"] == "dismissed"
    assert call("get_active_reminders", today=TODAY) == []


def test_reminder_links_specimen_and_assignee(call, new_specimen):
    specimen = new_specimen()
    admin = call("get_current_user")
    reminder = create_reminder(
        call, "Disease test", "2024-06-20",
        reminder_type="disease_test", specimen_id=specimen["id"], assigned_to=admin["id"],
    )
    assert reminder["specimen_accession"] == specimen["accession_number"]
    assert reminder["assigned_name"] == "Administrator"
    assert [r["id"] for r in call("list_reminders")] == [reminder["id"]]


def test_reminder_writes_need_write_capability(call, state, make_user):
    reminder = create_reminder(call, "Media expiry", "2024-06-20", reminder_type="media_expiry")
    guest = make_user("guest")
    assert invoke(state, "delete_reminder", guest, id=reminder["id"])["kind"] == "permission_denied"
    call("delete_reminder", id=reminder["id"])
    assert call("list_reminders") == []
