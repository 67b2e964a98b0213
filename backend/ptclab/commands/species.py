from sqlalchemy import select

from .. import audit, models, schemas
from ..querybuilder import UpdateSet
from ..rbac import Capability
from . import command, fetch

# purpose: species catalogue and the tag taxonomy
# status: active


@command("list_species", Capability.READ)
def list_species(db, user):
    rows = db.execute(
        select(models.Species).order_by(models.Species.genus, models.Species.species_name)
    ).scalars()
    return [schemas.SpeciesOut.model_validate(row) for row in rows]


@command("create_species", Capability.MANAGE, payload=schemas.SpeciesCreate)
def create_species(db, user, request: schemas.SpeciesCreate):
    species = models.Species(**request.model_dump(exclude_none=True))
    db.add(species)
    db.commit()
    audit.record(
        db, user.id, "create", "species", species.id,
        new_value=species.species_code,
        details=f"Species {species.genus} {species.species_name} created",
    )
    return schemas.SpeciesOut.model_validate(species)


@command("update_species", Capability.MANAGE, payload=schemas.SpeciesUpdate)
def update_species(db, user, request: schemas.SpeciesUpdate):
    UpdateSet.from_payload(request).apply(db, models.Species, request.id, "Species")
    db.commit()
    audit.record(db, user.id, "update", "species", request.id, details="Species updated")
    return schemas.SpeciesOut.model_validate(fetch(db, models.Species, request.id, "Species"))


@command("list_tags", Capability.READ)
def list_tags(db, user, category: str | None = None):
    stmt = select(models.Tag).order_by(models.Tag.category, models.Tag.parent_tag_id.isnot(None), models.Tag.name)
    if category:
        stmt = stmt.where(models.Tag.category == category)
    return [schemas.TagOut.model_validate(row) for row in db.execute(stmt).scalars()]

