from datetime import date

import pytest

from ptclab import models, schemas
from ptclab.errors import InvalidRequest, NoFieldsToUpdate, NotFound
from ptclab.querybuilder import FilterSet, PageRequest, UpdateSet, paginate
from sqlalchemy import select


def test_filters_skip_missing_values():
    filters = (
        FilterSet()
        .add(models.Specimen.stage, "eq", "callus")
        .add(models.Specimen.species_id, "eq", None)
        .add(models.Specimen.location, "contains", "Shelf 2")
    )
    assert len(filters) == 2
    sql, params = filters.render()
    assert sql.startswith("WHERE ")
    assert "specimens.stage = ?" in sql
    assert "?" in sql and "Shelf 2" not in sql
    assert params[0] == "callus"
    assert any("Shelf 2" in str(p) for p in params[1:])


def test_empty_filter_renders_nothing():
    assert FilterSet().render() == ("", [])


def test_hostile_text_is_bound_not_spliced():
    hostile = "x'; DROP TABLE specimens; --"
    sql, params = FilterSet().add(models.Specimen.notes, "eq", hostile).render()
    assert "DROP TABLE" not in sql
    assert params == [hostile]


def test_in_operator_expands_to_placeholders():
    sql, params = FilterSet().add(models.Specimen.stage, "in", ["callus", "shoot"]).render()
    assert sql.count("?") == 2
    assert params == ["callus", "shoot"]


def test_unknown_operator_is_rejected():
    with pytest.raises(ValueError):
        FilterSet().add(models.Specimen.stage, "regex", "x")


def test_update_set_stamps_updated_at_and_rejects_empty():
    with pytest.raises(NoFieldsToUpdate):
        UpdateSet().values()

    payload = schemas.SpecimenUpdate(id="s1", location="Room B", notes=None)
    updates = UpdateSet.from_payload(payload)
    assert "location" in updates
    assert "notes" not in updates
    assert "id" not in updates
    values = updates.values()
    assert values["location"] == "Room B"
    assert "updated_at" in values

    sql, params = updates.render(models.Specimen, "s1")
    assert sql.startswith("UPDATE specimens SET")
    assert params[0] == "Room B"
    assert params[-1] == "s1"


def test_update_unknown_row_is_not_found(state):
    with state.session() as db:
        with pytest.raises(NotFound):
            UpdateSet().set("location", "x").apply(db, models.Specimen, "missing", "Specimen")


def test_page_request_validation():
    assert PageRequest.of().offset == 0
    assert PageRequest.of(3, 50).offset == 100
    with pytest.raises(InvalidRequest):
        PageRequest(page=0)
    with pytest.raises(InvalidRequest):
        PageRequest(per_page=0)


def _seed_error_logs(state, count, severity="warning"):
    with state.session() as db:
        for n in range(count):
            db.add(models.ErrorLog(title=f"e{n}", message="m", severity=severity))
        db.add(models.ErrorLog(title="other", message="m", severity="info"))
        db.commit()


def test_pagination_windows(state):
    _seed_error_logs(state, 105)
    stmt = select(models.ErrorLog)
    order = (models.ErrorLog.title,)
    with state.session() as db:
        filters = FilterSet().add(models.ErrorLog.severity, "eq", "warning")
        first = paginate(db, stmt, PageRequest(1, 50), order_by=order, filters=filters)
        third = paginate(db, stmt, PageRequest(3, 50), order_by=order, filters=filters)
        fourth = paginate(db, stmt, PageRequest(4, 50), order_by=order, filters=filters)
    assert first.total == 105
    assert first.total_pages == 3
    assert len(first.items) == 50
    assert len(third.items) == 5
    assert fourth.items == []
    assert fourth.total == 105


def test_paged_command_rejects_bad_page(state, admin_token):
    from ptclab.commands import invoke

    result = invoke(state, "list_error_logs", admin_token, per_page=0)
    assert result["ok"] is False
    assert result["kind"] == "invalid_request"


def test_paged_command_filters(call, state):
    _seed_error_logs(state, 7)
    page = call("list_error_logs", severity="warning", per_page=5, page=2)
    assert page["total"] == 7
    assert page["total_pages"] == 2
    assert len(page["items"]) == 2


def test_specimen_search_treats_wildcards_literally(call, new_specimen):
    new_specimen(notes="100% sterile")
    new_specimen(notes="1000 sterile")
    found = call("search_specimens", query="100%")
    assert found["total"] == 1
    assert found["items"][0]["notes"] == "100% sterile"
    assert date.fromisoformat(found["items"][0]["initiation_date"]) == date(2024, 3, 1)
