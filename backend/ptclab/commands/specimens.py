from __future__ import annotations

from datetime import date, timedelta

from sqlalchemy import func, select, update

from .. import audit, identifiers, models, schemas
from ..database import utcnow
from ..errors import NotFound
from ..querybuilder import FilterSet, PageRequest, UpdateSet, paginate
from ..rbac import Capability
from . import command, fetch

# purpose: specimen registry with accession numbering and soft archive
# status: active

SEARCH_COLUMNS = (
    models.Specimen.accession_number,
    models.Specimen.notes,
    models.Specimen.location,
    models.Specimen.provenance,
)
NEWEST_FIRST = (models.Specimen.created_at.desc(), models.Specimen.id.desc())


def specimen_query():
    """Specimens joined with their species label and project name."""
    return (
        select(
            models.Specimen,
            models.Species.species_code,
            (models.Species.genus + " " + models.Species.species_name).label("species_name"),
            models.Project.name.label("project_name"),
        )
        .outerjoin(models.Species, models.Specimen.species_id == models.Species.id)
        .outerjoin(models.Project, models.Specimen.project_id == models.Project.id)
    )


def specimen_out(row) -> schemas.SpecimenOut:
    specimen, species_code, species_name, project_name = row
    return schemas.SpecimenOut.model_validate(specimen).model_copy(
        update={
            "species_code": species_code,
            "species_name": species_name,
            "project_name": project_name,
        }
    )


def load_specimen(db, specimen_id: str) -> schemas.SpecimenOut:
    row = db.execute(specimen_query().where(models.Specimen.id == specimen_id)).first()
    if row is None:
        raise NotFound("Specimen not found")
    return specimen_out(row)


@command("list_specimens", Capability.READ)
def list_specimens(db, user, page: int | None = None, per_page: int | None = None):
    filters = FilterSet().add_clause(models.Specimen.is_archived.is_(False))
    return paginate(
        db,
        specimen_query(),
        PageRequest.of(page, per_page),
        filters=filters,
        order_by=NEWEST_FIRST,
        transform=specimen_out,
    )


@command("get_specimen", Capability.READ)
def get_specimen(db, user, id: str):
    return load_specimen(db, id)


@command("get_specimen_by_accession", Capability.READ)
def get_specimen_by_accession(db, user, accession_number: str):
    row = db.execute(
        specimen_query().where(
            models.Specimen.accession_number == accession_number,
            models.Specimen.is_archived.is_(False),
        )
    ).first()
    if row is None:
        raise NotFound(f"Specimen {accession_number} not found")
    return specimen_out(row)


@command("search_specimens", Capability.READ, payload=schemas.SpecimenSearch)
def search_specimens(db, user, request: schemas.SpecimenSearch):
    filters = (
        FilterSet()
        .add_any(SEARCH_COLUMNS, "contains", request.query)
        .add(models.Specimen.species_id, "eq", request.species_id)
        .add(models.Specimen.stage, "eq", request.stage)
        .add(models.Specimen.project_id, "eq", request.project_id)
    )
    if not request.archived:
        filters.add_clause(models.Specimen.is_archived.is_(False))
    if request.quarantine_only:
        filters.add_clause(models.Specimen.quarantine_flag.is_(True))
    return paginate(
        db,
        specimen_query(),
        PageRequest.of(request.page, request.per_page),
        filters=filters,
        order_by=NEWEST_FIRST,
        transform=specimen_out,
    )


@command("create_specimen", Capability.WRITE, payload=schemas.SpecimenCreate)
def create_specimen(db, user, request: schemas.SpecimenCreate):
    species = fetch(db, models.Species, request.species_id, "Species")
    accession = identifiers.accession_number(db, request.initiation_date, species.species_code)
    specimen = models.Specimen(
        **request.model_dump(exclude_none=True),
        accession_number=accession,
        qr_code_data=identifiers.qr_payload(accession),
        created_by=user.id,
    )
    db.add(specimen)
    db.commit()
    audit.record(
        db, user.id, "create", "specimen", specimen.id,
        new_value=accession, details="Specimen created",
    )
    return load_specimen(db, specimen.id)


@command("update_specimen", Capability.WRITE, payload=schemas.SpecimenUpdate)
def update_specimen(db, user, request: schemas.SpecimenUpdate):
    UpdateSet.from_payload(request).apply(db, models.Specimen, request.id, "Specimen")
    db.commit()
    audit.record(db, user.id, "update", "specimen", request.id, details="Specimen updated")
    return load_specimen(db, request.id)


@command("delete_specimen", Capability.MANAGE)
def delete_specimen(db, user, id: str):
    now = utcnow()
    result = db.execute(
        update(models.Specimen)
        .where(models.Specimen.id == id)
        .values(is_archived=True, archived_at=now, updated_at=now)
    )
    if result.rowcount == 0:
        raise NotFound("Specimen not found")
    db.commit()
    audit.record(db, user.id, "archive", "specimen", id, details="Specimen archived")
    return None


def _count(db, *criteria) -> int:
    stmt = select(func.count(models.Specimen.id))
    if criteria:
        stmt = stmt.where(*criteria)
    return db.execute(stmt).scalar_one()


@command("get_specimen_stats", Capability.READ)
def get_specimen_stats(db, user, today: date | None = None):
    today = today or date.today()
    active = models.Specimen.is_archived.is_(False)
    stage_counts = db.execute(
        select(models.Specimen.stage, func.count(models.Specimen.id).label("n"))
        .where(active)
        .group_by(models.Specimen.stage)
        .order_by(func.count(models.Specimen.id).desc(), models.Specimen.stage)
    ).all()
    species_counts = db.execute(
        select(models.Species.species_code, func.count(models.Specimen.id))
        .select_from(models.Specimen)
        .join(models.Species, models.Specimen.species_id == models.Species.id)
        .where(active)
        .group_by(models.Species.species_code)
        .order_by(func.count(models.Specimen.id).desc(), models.Species.species_code)
    ).all()
    recent = db.execute(
        select(func.count(models.Subculture.id)).where(
            models.Subculture.date >= today - timedelta(days=7)
        )
    ).scalar_one()
    return schemas.SpecimenStats(
        total_specimens=_count(db),
        active_specimens=_count(db, active),
        quarantined=_count(db, active, models.Specimen.quarantine_flag.is_(True)),
        archived=_count(db, models.Specimen.is_archived.is_(True)),
        by_stage=[schemas.StageCount(stage=stage, count=n) for stage, n in stage_counts],
        by_species=[schemas.SpeciesCount(species_code=code, count=n) for code, n in species_counts],
        recent_subcultures=recent,
    )
