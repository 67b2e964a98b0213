from __future__ import annotations

from sqlalchemy import select

from .. import audit, models, schemas
from ..database import utcnow
from ..errors import NotFound
from ..querybuilder import UpdateSet
from ..rbac import Capability
from . import command, fetch

# purpose: passage history; each new passage advances the parent specimen's counter
# status: active


def subculture_query():
    return (
        select(
            models.Subculture,
            models.User.display_name.label("performer_name"),
            models.MediaBatch.name.label("media_batch_name"),
        )
        .outerjoin(models.User, models.Subculture.performed_by == models.User.id)
        .outerjoin(models.MediaBatch, models.Subculture.media_batch_id == models.MediaBatch.id)
    )


def subculture_out(row) -> schemas.SubcultureOut:
    subculture, performer_name, media_batch_name = row
    return schemas.SubcultureOut.model_validate(subculture).model_copy(
        update={"performer_name": performer_name, "media_batch_name": media_batch_name}
    )


def load_subculture(db, subculture_id: str) -> schemas.SubcultureOut:
    row = db.execute(subculture_query().where(models.Subculture.id == subculture_id)).first()
    if row is None:
        raise NotFound("Subculture not found")
    return subculture_out(row)


@command("list_subcultures", Capability.READ)
def list_subcultures(db, user, specimen_id: str):
    rows = db.execute(
        subculture_query()
        .where(models.Subculture.specimen_id == specimen_id)
        .order_by(models.Subculture.passage_number.desc())
    ).all()
    return [subculture_out(row) for row in rows]


@command("create_subculture", Capability.WRITE, payload=schemas.SubcultureCreate)
def create_subculture(db, user, request: schemas.SubcultureCreate):
    specimen = fetch(db, models.Specimen, request.specimen_id, "Specimen")
    passage_number = specimen.subculture_count + 1
    subculture = models.Subculture(
        **request.model_dump(exclude_none=True),
        passage_number=passage_number,
        performed_by=user.id,
    )
    db.add(subculture)
    specimen.subculture_count = passage_number
    specimen.updated_at = utcnow()
    if request.location_to:
        specimen.location = request.location_to
    db.commit()
    audit.record(
        db, user.id, "create", "subculture", subculture.id,
        details=f"Passage #{passage_number} recorded",
    )
    return load_subculture(db, subculture.id)


@command("update_subculture", Capability.WRITE, payload=schemas.SubcultureUpdate)
def update_subculture(db, user, request: schemas.SubcultureUpdate):
    UpdateSet.from_payload(request).apply(db, models.Subculture, request.id, "Subculture")
    db.commit()
    audit.record(db, user.id, "update", "subculture", request.id, details="Subculture updated")
    return load_subculture(db, request.id)
