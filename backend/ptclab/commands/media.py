from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from .. import audit, identifiers, models, schemas
from ..errors import NotFound
from ..querybuilder import UpdateSet
from ..rbac import Capability
from . import command, fetch
from .inventory import deduct_stock

# purpose: media batch records with hormone lines and reagent stock deduction
# status: active


def load_batch(db, batch_id: str) -> schemas.MediaBatchOut:
    batch = db.execute(
        select(models.MediaBatch)
        .options(selectinload(models.MediaBatch.hormones))
        .where(models.MediaBatch.id == batch_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if batch is None:
        raise NotFound("Media batch not found")
    return schemas.MediaBatchOut.model_validate(batch)


@command("list_media", Capability.READ)
def list_media(db, user):
    rows = db.execute(
        select(models.MediaBatch)
        .options(selectinload(models.MediaBatch.hormones))
        .order_by(models.MediaBatch.preparation_date.desc(), models.MediaBatch.batch_id.desc())
    ).scalars()
    return [schemas.MediaBatchOut.model_validate(row) for row in rows]


@command("get_media_batch", Capability.READ)
def get_media_batch(db, user, id: str):
    return load_batch(db, id)


@command("create_media_batch", Capability.WRITE, payload=schemas.MediaBatchCreate)
def create_media_batch(db, user, request: schemas.MediaBatchCreate):
    today = datetime.now(timezone.utc).date()
    batch_id = identifiers.media_batch_id(db, today)
    fields = request.model_dump(exclude_none=True, exclude={"hormones"})
    batch = models.MediaBatch(
        **fields,
        batch_id=batch_id,
        volume_remaining_ml=request.volume_prepared_ml,
        created_by=user.id,
    )
    db.add(batch)
    db.flush()

    usages = []
    for hormone in request.hormones:
        db.add(models.MediaHormone(media_batch_id=batch.id, **hormone.model_dump(exclude_none=True)))
        if hormone.reagent_batch_id and hormone.amount_used and hormone.amount_used > 0:
            change = deduct_stock(db, hormone.reagent_batch_id, hormone.amount_used)
            if change is not None:
                usages.append((hormone, change))
    db.commit()

    audit.record(
        db, user.id, "create", "media_batch", batch.id,
        new_value=batch_id, details="Media batch created",
    )
    for hormone, (old_stock, new_stock) in usages:
        audit.record(
            db, user.id, "update", "inventory_item", hormone.reagent_batch_id,
            old_value=old_stock, new_value=new_stock,
            details=f"Used in media batch {batch_id} ({hormone.hormone_name})",
        )
    return load_batch(db, batch.id)


@command("update_media_batch", Capability.WRITE, payload=schemas.MediaBatchUpdate)
def update_media_batch(db, user, request: schemas.MediaBatchUpdate):
    UpdateSet.from_payload(request).apply(db, models.MediaBatch, request.id, "Media batch")
    db.commit()
    audit.record(db, user.id, "update", "media_batch", request.id, details="Media batch updated")
    return load_batch(db, request.id)


@command("delete_media_batch", Capability.MANAGE)
def delete_media_batch(db, user, id: str):
    batch = fetch(db, models.MediaBatch, id, "Media batch")
    db.execute(delete(models.MediaHormone).where(models.MediaHormone.media_batch_id == id))
    db.delete(batch)
    db.commit()
    audit.record(
        db, user.id, "delete", "media_batch", id,
        old_value=batch.batch_id, details="Media batch deleted",
    )
    return None

