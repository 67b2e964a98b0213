from __future__ import annotations

from sqlalchemy import select

from .. import audit, models, schemas
from ..querybuilder import UpdateSet
from ..rbac import Capability
from . import command, fetch
from .inventory import deduct_stock

# purpose: stock solutions prepared from inventory reagents
# status: active


def _out(solution) -> schemas.PreparedSolutionOut:
    return schemas.PreparedSolutionOut.model_validate(solution)


@command("list_prepared_solutions", Capability.READ)
def list_prepared_solutions(db, user):
    rows = db.execute(
        select(models.PreparedSolution).order_by(
            models.PreparedSolution.preparation_date.desc(), models.PreparedSolution.name
        )
    ).scalars()
    return [_out(row) for row in rows]


@command("get_prepared_solution", Capability.READ)
def get_prepared_solution(db, user, id: str):
    return _out(fetch(db, models.PreparedSolution, id, "Prepared solution"))


@command("create_prepared_solution", Capability.WRITE, payload=schemas.PreparedSolutionCreate)
def create_prepared_solution(db, user, request: schemas.PreparedSolutionCreate):
    fields = request.model_dump(exclude_none=True, exclude={"source_amount_used"})
    solution = models.PreparedSolution(**fields, volume_remaining_ml=request.volume_ml)

    change = None
    if request.source_item_id:
        source = fetch(db, models.InventoryItem, request.source_item_id, "Inventory item")
        solution.source_item_name = source.name
        if request.source_amount_used:
            change = deduct_stock(db, source.id, request.source_amount_used)
    db.add(solution)
    db.commit()

    audit.record(
        db, user.id, "create", "prepared_solution", solution.id,
        new_value=solution.name, details="Prepared solution created",
    )
    if change is not None:
        old_stock, new_stock = change
        audit.record(
            db, user.id, "update", "inventory_item", request.source_item_id,
            old_value=old_stock, new_value=new_stock,
            details=f"Used to prepare solution {request.name}",
        )
    return _out(db.get(models.PreparedSolution, solution.id, populate_existing=True))


@command("update_prepared_solution", Capability.WRITE, payload=schemas.PreparedSolutionUpdate)
def update_prepared_solution(db, user, request: schemas.PreparedSolutionUpdate):
    UpdateSet.from_payload(request).apply(db, models.PreparedSolution, request.id, "Prepared solution")
    db.commit()
    audit.record(db, user.id, "update", "prepared_solution", request.id, details="Prepared solution updated")
    return _out(db.get(models.PreparedSolution, request.id, populate_existing=True))


@command("delete_prepared_solution", Capability.MANAGE)
def delete_prepared_solution(db, user, id: str):
    solution = fetch(db, models.PreparedSolution, id, "Prepared solution")
    name = solution.name
    db.delete(solution)
    db.commit()
    audit.record(
        db, user.id, "delete", "prepared_solution", id,
        old_value=name, details="Prepared solution deleted",
    )
    return None
