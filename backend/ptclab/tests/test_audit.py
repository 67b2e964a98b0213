import logging

from sqlalchemy import func, select

from ptclab import audit, models


def block_audit_writes(state):
    with state.engine.begin() as connection:
        connection.exec_driver_sql(
            "CREATE TRIGGER block_audit BEFORE INSERT ON audit_log "
            "BEGIN SELECT RAISE(ABORT, 'audit log is read-only'); END;"
        )


def test_record_returns_true_and_stores_entry(state):
    with state.session() as db:
        admin = db.execute(select(models.User).where(models.User.username == "admin")).scalar_one()
        assert audit.record(db, admin.id, "create", "widget", "w1", old_value=None, new_value=2.0)
        entry = db.execute(
            select(models.AuditLog).where(models.AuditLog.entity_id == "w1")
        ).scalar_one()
    assert entry.new_value == "2"
    assert entry.old_value is None


def test_record_swallows_storage_errors(state, caplog):
    block_audit_writes(state)
    with state.session() as db:
        with caplog.at_level(logging.WARNING, logger="ptclab.audit"):
            assert audit.record(db, None, "create", "widget", "w2") is False
        # the session is still usable afterwards
        assert db.execute(select(func.count(models.User.id))).scalar_one() >= 1
    assert "Audit write failed" in caplog.text


def test_business_operation_survives_audit_failure(call, new_specimen, state):
    block_audit_writes(state)
    specimen = new_specimen(location="Bench 1")
    assert specimen["accession_number"].endswith("-ASP-OFF-001")

    updated = call("update_specimen", id=specimen["id"], location="Bench 2")
    assert updated["location"] == "Bench 2"

    call("delete_specimen", id=specimen["id"])
    assert call("get_specimen", id=specimen["id"])["is_archived"] is True
    with state.session() as db:
        assert db.execute(select(func.count(models.AuditLog.id))).scalar_one() == 1


def test_audit_log_search_filters_and_joins_username(call, new_specimen):
    specimen = new_specimen()
    call("update_specimen", id=specimen["id"], notes="checked")
    page = call("get_audit_log", entity_type="specimen", entity_id=specimen["id"])
    actions = [entry["action"] for entry in page["items"]]
    assert actions == ["update", "create"]
    assert all(entry["username"] == "admin" for entry in page["items"])
    assert page["items"][1]["new_value"] == specimen["accession_number"]

    assert call("get_audit_log", action="archive")["total"] == 0


def test_audit_log_requires_manage(state, make_user):
    from ptclab.commands import invoke

    token = make_user("tech")
    result = invoke(state, "get_audit_log", token)
    assert result["ok"] is False
    assert result["kind"] == "permission_denied"
