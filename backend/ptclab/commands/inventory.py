from __future__ import annotations

from sqlalchemy import and_, case, or_, select

from .. import audit, models, schemas
from ..database import utcnow
from ..errors import ConstraintViolation
from ..querybuilder import UpdateSet
from ..rbac import Capability
from . import command, fetch

# purpose: reagent and consumable stock levels with audited adjustments
# status: active


def deduct_stock(db, item_id: str, amount: float):
    """Draw ``amount`` from an item without committing.

    Stock is clamped at zero. Returns ``(old, new)`` or None when the item
    does not exist.
    """
    item = db.get(models.InventoryItem, item_id)
    if item is None:
        return None
    old_stock = item.current_stock
    item.current_stock = max(0.0, old_stock - amount)
    item.updated_at = utcnow()
    return old_stock, item.current_stock


def _signed(value: float) -> str:
    text = audit.as_text(value)
    return text if value < 0 else f"+{text}"


@command("list_inventory", Capability.READ)
def list_inventory(db, user, category: str | None = None):
    stmt = select(models.InventoryItem).order_by(models.InventoryItem.name)
    if category:
        stmt = stmt.where(models.InventoryItem.category == category)
    return [schemas.InventoryItemOut.model_validate(row) for row in db.execute(stmt).scalars()]


@command("get_inventory_item", Capability.READ)
def get_inventory_item(db, user, id: str):
    return schemas.InventoryItemOut.model_validate(fetch(db, models.InventoryItem, id, "Inventory item"))


@command("create_inventory_item", Capability.WRITE, payload=schemas.InventoryItemCreate)
def create_inventory_item(db, user, request: schemas.InventoryItemCreate):
    item = models.InventoryItem(**request.model_dump(exclude_none=True))
    db.add(item)
    db.commit()
    audit.record(
        db, user.id, "create", "inventory_item", item.id,
        new_value=item.current_stock, details=f"Inventory item created: {item.name}",
    )
    return schemas.InventoryItemOut.model_validate(item)


@command("update_inventory_item", Capability.WRITE, payload=schemas.InventoryItemUpdate)
def update_inventory_item(db, user, request: schemas.InventoryItemUpdate):
    item = fetch(db, models.InventoryItem, request.id, "Inventory item")
    old_stock = item.current_stock
    UpdateSet.from_payload(request).apply(db, models.InventoryItem, request.id, "Inventory item")
    db.commit()
    if "current_stock" in request.model_fields_set:
        audit.record(
            db, user.id, "update", "inventory_item", request.id,
            old_value=old_stock, new_value=request.current_stock,
            details=f"Stock set: {audit.as_text(old_stock)} -> {audit.as_text(request.current_stock)}",
        )
    else:
        audit.record(db, user.id, "update", "inventory_item", request.id, details="Inventory item updated")
    return schemas.InventoryItemOut.model_validate(
        db.get(models.InventoryItem, request.id, populate_existing=True)
    )


@command("delete_inventory_item", Capability.MANAGE)
def delete_inventory_item(db, user, id: str):
    item = fetch(db, models.InventoryItem, id, "Inventory item")
    name = item.name
    db.delete(item)
    db.commit()
    audit.record(db, user.id, "delete", "inventory_item", id, old_value=name, details="Inventory item deleted")
    return None


@command("adjust_stock", Capability.WRITE, payload=schemas.StockAdjustment)
def adjust_stock(db, user, request: schemas.StockAdjustment):
    item = fetch(db, models.InventoryItem, request.id, "Inventory item")
    old_stock = item.current_stock
    new_stock = old_stock + request.adjustment
    if new_stock < 0:
        raise ConstraintViolation("Stock cannot go below zero")
    item.current_stock = new_stock
    item.updated_at = utcnow()
    db.commit()

    details = f"Stock adjusted by {_signed(request.adjustment)}: {audit.as_text(old_stock)} -> {audit.as_text(new_stock)}"
    if request.reason:
        details += f" ({request.reason})"
    audit.record(
        db, user.id, "update", "inventory_item", item.id,
        old_value=old_stock, new_value=new_stock, details=details,
    )
    return schemas.InventoryItemOut.model_validate(
        db.get(models.InventoryItem, item.id, populate_existing=True)
    )


@command("get_low_stock_alerts", Capability.READ)
def get_low_stock_alerts(db, user):
    item = models.InventoryItem
    # items with no minimum sort first
    ratio = case(
        (item.minimum_stock > 0, item.current_stock / item.minimum_stock),
        else_=0.0,
    )
    rows = db.execute(
        select(item)
        .where(
            or_(
                item.current_stock <= item.minimum_stock,
                and_(item.reorder_point.is_not(None), item.current_stock <= item.reorder_point),
            )
        )
        .order_by(ratio, item.name)
    ).scalars()
    return [schemas.LowStockAlert.model_validate(row) for row in rows]
