from datetime import date

from ptclab.commands import invoke


def test_accession_numbers_increase_per_species_and_date(new_specimen):
    first = new_specimen("CIT-LIM", "2024-05-02")
    other_species = new_specimen("CIT-SIN", "2024-05-02")
    second = new_specimen("CIT-LIM", "2024-05-02")
    other_day = new_specimen("CIT-LIM", "2024-05-03")
    third = new_specimen("CIT-LIM", "2024-05-02")

    assert first["accession_number"] == "2024-05-02-CIT-LIM-001"
    assert second["accession_number"] == "2024-05-02-CIT-LIM-002"
    assert third["accession_number"] == "2024-05-02-CIT-LIM-003"
    assert other_species["accession_number"] == "2024-05-02-CIT-SIN-001"
    assert other_day["accession_number"] == "2024-05-03-CIT-LIM-001"
    assert first["qr_code_data"] == "PTC:2024-05-02-CIT-LIM-001"


def test_archived_specimens_keep_their_sequence(call, new_specimen):
    first = new_specimen("NAN-DOM", "2024-01-10")
    call("delete_specimen", id=first["id"])
    again = new_specimen("NAN-DOM", "2024-01-10")
    assert again["accession_number"] == "2024-01-10-NAN-DOM-002"


def test_species_code_prefix_does_not_leak(call, new_specimen):
    call("create_species", genus="Citrus", species_name="x limonia", species_code="CIT-LIM-X")
    codes = {row["species_code"]: row["id"] for row in call("list_species")}
    call("create_specimen", species_id=codes["CIT-LIM-X"], initiation_date="2024-02-02")
    call("create_specimen", species_id=codes["CIT-LIM-X"], initiation_date="2024-02-02")
    assert new_specimen("CIT-LIM", "2024-02-02")["accession_number"] == "2024-02-02-CIT-LIM-001"


def test_specimen_round_trip(call, new_specimen):
    created = new_specimen(
        "ASP-OFF",
        stage="shoot_meristem",
        location="Growth room A",
        provenance="Field 4",
        employee_id="E-17",
    )
    assert created["species_code"] == "ASP-OFF"
    assert created["species_name"] == "Asparagus officinalis"
    assert created["subculture_count"] == 0
    assert created["is_archived"] is False

    fetched = call("get_specimen_by_accession", accession_number=created["accession_number"])
    assert fetched["id"] == created["id"]
    assert fetched["stage"] == "shoot_meristem"
    assert fetched["employee_id"] == "E-17"


def test_delete_is_a_soft_archive(call, state, admin_token, new_specimen):
    keep = new_specimen()
    gone = new_specimen()
    call("delete_specimen", id=gone["id"])

    archived = call("get_specimen", id=gone["id"])
    assert archived["is_archived"] is True
    assert archived["archived_at"] is not None

    listing = call("list_specimens")
    assert [row["id"] for row in listing["items"]] == [keep["id"]]
    result = invoke(
        state, "get_specimen_by_accession", admin_token,
        accession_number=gone["accession_number"],
    )
    assert result["kind"] == "not_found"
    assert call("search_specimens", archived=True)["total"] == 2


def test_search_combines_filters(call, new_specimen, species_ids):
    new_specimen("CIT-LIM", stage="callus", location="Shelf 1", quarantine_flag=True)
    new_specimen("CIT-LIM", stage="shoot", location="Shelf 1")
    new_specimen("ASP-OFF", stage="callus", location="Shelf 2")

    assert call("search_specimens", query="Shelf 1")["total"] == 2
    assert call("search_specimens", stage="callus")["total"] == 2
    assert call("search_specimens", species_id=species_ids["CIT-LIM"], stage="callus")["total"] == 1
    assert call("search_specimens", quarantine_only=True)["total"] == 1
    page = call("search_specimens", per_page=2, page=2)
    assert page["total"] == 3
    assert len(page["items"]) == 1


def test_subculture_passages_track_specimen_counter(call, new_specimen):
    specimen = new_specimen(location="Bench 1")
    for n in range(1, 5):
        passage = call(
            "create_subculture",
            specimen_id=specimen["id"],
            date=f"2024-04-0{n}",
            location_from="Bench 1",
            location_to=f"Shelf {n}",
        )
        assert passage["passage_number"] == n
        assert passage["performer_name"] == "Administrator"

    refreshed = call("get_specimen", id=specimen["id"])
    assert refreshed["subculture_count"] == 4
    assert refreshed["location"] == "Shelf 4"

    history = call("list_subcultures", specimen_id=specimen["id"])
    assert [row["passage_number"] for row in history] == [4, 3, 2, 1]

    entries = call("get_audit_log", entity_type="subculture")["items"]
    assert entries[0]["details"] == "Passage #4 recorded"


def test_subculture_for_missing_specimen(state, admin_token):
    result = invoke(
        state, "create_subculture", admin_token, specimen_id="missing", date="2024-01-01"
    )
    assert result["kind"] == "not_found"


def test_subculture_update(call, new_specimen):
    specimen = new_specimen()
    passage = call("create_subculture", specimen_id=specimen["id"], date="2024-04-01")
    updated = call("update_subculture", id=passage["id"], observations="healthy shoots")
    assert updated["observations"] == "healthy shoots"
    assert updated["passage_number"] == 1


def test_specimen_stats(call, new_specimen):
    a = new_specimen("CIT-LIM", stage="callus", quarantine_flag=True)
    new_specimen("CIT-LIM", stage="callus")
    b = new_specimen("ASP-OFF", stage="shoot")
    call("delete_specimen", id=b["id"])
    call("create_subculture", specimen_id=a["id"], date="2024-06-10")
    call("create_subculture", specimen_id=a["id"], date="2024-05-01")

    stats = call("get_specimen_stats", today=date(2024, 6, 12).isoformat())
    assert stats["total_specimens"] == 3
    assert stats["active_specimens"] == 2
    assert stats["quarantined"] == 1
    assert stats["archived"] == 1
    assert stats["by_stage"] == [{"stage": "callus", "count": 2}]
    assert stats["by_species"] == [{"species_code": "CIT-LIM", "count": 2}]
    assert stats["recent_subcultures"] == 1


def test_tags_are_seeded(call):
    tags = call("list_tags", category="Disease")
    names = [tag["name"] for tag in tags]
    assert names[0] == "Disease"
    assert "Viroid" in names
