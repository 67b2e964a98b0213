TODAY = "2024-06-15"


def flags_by_type(call):
    flags = {}
    for flag in call("get_compliance_flags", today=TODAY):
        flags.setdefault(flag["flag_type"], []).append(flag)
    return flags


def test_compliance_record_crud(call, new_specimen):
    specimen = new_specimen("CIT-SIN")
    record = call(
        "create_compliance_record",
        specimen_id=specimen["id"],
        record_type="disease_test",
        agency="USDA_APHIS",
        test_type="HLB",
        test_date="2024-01-10",
        test_result="pending",
    )
    assert record["specimen_accession"] == specimen["accession_number"]
    assert record["status"] == "valid"

    updated = call("update_compliance_record", id=record["id"], test_result="negative")
    assert updated["test_result"] == "negative"

    assert [r["id"] for r in call("list_compliance_records", specimen_id=specimen["id"])] == [record["id"]]
    entry = call("get_audit_log", entity_type="compliance", action="create")["items"][0]
    assert entry["details"] == "Compliance record: disease_test"

    call("delete_compliance_record", id=record["id"])
    assert call("list_compliance_records") == []


def test_expired_permit_flag(call, new_specimen):
    expired = new_specimen("ASP-OFF", permit_number="P-1", permit_expiry="2024-06-14")
    new_specimen("ASP-OFF", permit_number="P-2", permit_expiry="2024-06-15")
    flags = flags_by_type(call)
    assert [f["specimen_id"] for f in flags["expired_permit"]] == [expired["id"]]
    assert flags["expired_permit"][0]["severity"] == "critical"
    assert flags["expired_permit"][0]["message"] == "Permit has expired"


def test_citrus_needs_recent_hlb_result(call, new_specimen):
    tested = new_specimen("CIT-LIM")
    stale = new_specimen("CIT-LIM")
    pending = new_specimen("CIT-PAR")
    untested = new_specimen("CIT-RET")
    new_specimen("ASP-OFF")

    call("create_compliance_record", specimen_id=tested["id"], record_type="disease_test",
         test_type="HLB", test_date="2024-03-01", test_result="negative")
    call("create_compliance_record", specimen_id=stale["id"], record_type="disease_test",
         test_type="HLB", test_date="2023-06-01", test_result="negative")
    call("create_compliance_record", specimen_id=pending["id"], record_type="disease_test",
         test_type="HLB", test_date="2024-05-01")

    missing = {f["specimen_id"] for f in flags_by_type(call)["missing_hlb_test"]}
    assert missing == {stale["id"], pending["id"], untested["id"]}


def test_quarantine_flags(call, new_specimen):
    held = new_specimen("ASP-OFF", quarantine_flag=True)
    released = new_specimen("ASP-OFF", quarantine_flag=True)
    call("update_specimen", id=released["id"], quarantine_release_date="2024-07-01")
    positive = new_specimen("NAN-DOM")
    call("create_compliance_record", specimen_id=positive["id"], record_type="disease_test",
         test_type="CTV", test_date="2024-06-01", test_result="positive")
    call("create_compliance_record", specimen_id=positive["id"], record_type="disease_test",
         test_type="CVd", test_date="2024-06-02", test_result="positive")

    flags = flags_by_type(call)
    assert [f["specimen_id"] for f in flags["quarantine_no_release"]] == [held["id"]]
    assert flags["quarantine_no_release"][0]["severity"] == "high"
    assert [f["specimen_id"] for f in flags["positive_not_quarantined"]] == [positive["id"]]


def test_archived_specimens_raise_no_flags(call, new_specimen):
    specimen = new_specimen("CIT-SIN", quarantine_flag=True, permit_expiry="2020-01-01")
    assert len(call("get_compliance_flags", today=TODAY)) == 3
    call("delete_specimen", id=specimen["id"])
    assert call("get_compliance_flags", today=TODAY) == []
