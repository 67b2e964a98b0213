from __future__ import annotations

from datetime import date

from sqlalchemy import select

from .. import audit, models, schemas
from ..errors import NotFound
from ..querybuilder import UpdateSet
from ..rbac import Capability
from . import command, fetch

# purpose: permits, disease tests and inspections per specimen, plus regulatory flags
# status: active

RECENT_LIMIT = 200
CITRUS_PREFIX = "CIT-"
HLB_TEST = "HLB"


def _record_query():
    return select(models.ComplianceRecord, models.Specimen.accession_number).outerjoin(
        models.Specimen, models.ComplianceRecord.specimen_id == models.Specimen.id
    )


def _record_out(row) -> schemas.ComplianceOut:
    record, accession = row
    return schemas.ComplianceOut.model_validate(record).model_copy(
        update={"specimen_accession": accession}
    )


def _load_record(db, record_id: str) -> schemas.ComplianceOut:
    row = db.execute(
        _record_query()
        .where(models.ComplianceRecord.id == record_id)
        .execution_options(populate_existing=True)
    ).first()
    if row is None:
        raise NotFound("Compliance record not found")
    return _record_out(row)


def _year_before(day: date) -> date:
    try:
        return day.replace(year=day.year - 1)
    except ValueError:
        # 29 February
        return day.replace(year=day.year - 1, day=28)


@command("list_compliance_records", Capability.READ)
def list_compliance_records(db, user, specimen_id: str | None = None):
    stmt = _record_query().order_by(
        models.ComplianceRecord.created_at.desc(), models.ComplianceRecord.id.desc()
    )
    if specimen_id:
        stmt = stmt.where(models.ComplianceRecord.specimen_id == specimen_id)
    else:
        stmt = stmt.limit(RECENT_LIMIT)
    return [_record_out(row) for row in db.execute(stmt).all()]


@command("create_compliance_record", Capability.WRITE, payload=schemas.ComplianceCreate)
def create_compliance_record(db, user, request: schemas.ComplianceCreate):
    fetch(db, models.Specimen, request.specimen_id, "Specimen")
    record = models.ComplianceRecord(**request.model_dump(exclude_none=True), created_by=user.id)
    db.add(record)
    db.commit()
    audit.record(
        db, user.id, "create", "compliance", record.id,
        details=f"Compliance record: {request.record_type}",
    )
    return _load_record(db, record.id)


@command("update_compliance_record", Capability.WRITE, payload=schemas.ComplianceUpdate)
def update_compliance_record(db, user, request: schemas.ComplianceUpdate):
    UpdateSet.from_payload(request).apply(db, models.ComplianceRecord, request.id, "Compliance record")
    db.commit()
    audit.record(db, user.id, "update", "compliance", request.id)
    return _load_record(db, request.id)


@command("delete_compliance_record", Capability.WRITE)
def delete_compliance_record(db, user, id: str):
    record = fetch(db, models.ComplianceRecord, id, "Compliance record")
    record_type = record.record_type
    db.delete(record)
    db.commit()
    audit.record(
        db, user.id, "delete", "compliance", id,
        old_value=record_type, details="Compliance record deleted",
    )
    return None


def _flagged(db, stmt, flag_type: str, message: str, severity: str):
    return [
        schemas.ComplianceFlag(
            specimen_id=specimen_id,
            accession_number=accession,
            species_code=species_code,
            flag_type=flag_type,
            message=message,
            severity=severity,
        )
        for specimen_id, accession, species_code in db.execute(stmt).all()
    ]


@command("get_compliance_flags", Capability.READ)
def get_compliance_flags(db, user, today: date | None = None):
    """Specimens currently out of compliance, grouped by rule.

    Archived specimens never raise flags.
    """
    today = today or date.today()
    specimen, species, record = models.Specimen, models.Species, models.ComplianceRecord

    def candidates():
        return (
            select(specimen.id, specimen.accession_number, species.species_code)
            .join(species, specimen.species_id == species.id)
            .where(specimen.is_archived.is_(False))
            .order_by(specimen.accession_number)
        )

    tested = select(record.specimen_id).where(
        record.test_type == HLB_TEST,
        record.test_date >= _year_before(today),
        record.test_result.is_not(None),
    )
    positive = select(record.specimen_id).where(record.test_result == "positive")

    flags = []
    flags += _flagged(
        db,
        candidates().where(specimen.permit_expiry.is_not(None), specimen.permit_expiry < today),
        "expired_permit", "Permit has expired", "critical",
    )
    flags += _flagged(
        db,
        candidates().where(
            species.species_code.startswith(CITRUS_PREFIX, autoescape=True),
            specimen.id.not_in(tested),
        ),
        "missing_hlb_test", "Citrus specimen missing HLB test in last 12 months", "critical",
    )
    flags += _flagged(
        db,
        candidates().where(
            specimen.quarantine_flag.is_(True), specimen.quarantine_release_date.is_(None)
        ),
        "quarantine_no_release", "Quarantined specimen has no scheduled release date", "high",
    )
    flags += _flagged(
        db,
        candidates().where(specimen.quarantine_flag.is_(False), specimen.id.in_(positive)),
        "positive_not_quarantined",
        "Specimen has positive disease test but is not quarantined",
        "critical",
    )
    return flags
