"""
Stock movements: a ledger row plus the matching quantity change, committed together.
"""
from typing import List, Optional

import structlog
from sqlalchemy.orm import Session, joinedload

from ..errors import InsufficientStock, NotFound, TransactionFailure, ZimmetError
from ..models.models import InventoryItem, StockMovement
from ..schemas.inventory import StockMovementCreate, StockMovementType
from .store import EntityStore, is_storable_id


log = structlog.get_logger(__name__)


def signed_delta(movement_type: StockMovementType, quantity: int) -> int:
    return quantity if movement_type == StockMovementType.stock_in else -quantity


def _adjust_quantity(db: Session, item: InventoryItem, delta: int, allow_negative: bool) -> int:
    new_quantity = (item.quantity or 0) + delta
    if new_quantity < 0 and not allow_negative:
        raise InsufficientStock(
            f"Insufficient stock for {item.name}: on hand {item.quantity}, requested {-delta}"
        )
    item.quantity = new_quantity
    EntityStore.touch(item)
    db.flush()
    return new_quantity


def apply_stock_movement(
    db: Session,
    movement: StockMovementCreate,
    allow_negative: bool = False,
) -> StockMovement:
    """
    Record a movement and apply its delta to the item's quantity atomically.

    The row lock on the item (PostgreSQL ``FOR UPDATE``; SQLite serialises
    writers already) keeps two concurrent movements from losing an update.
    Any failure rolls back both the ledger row and the quantity change.
    """
    item = None
    if is_storable_id(movement.product_id):
        item = (
            db.query(InventoryItem)
            .filter(InventoryItem.id == movement.product_id)
            .with_for_update()
            .first()
        )
    if not item:
        raise NotFound("Inventory item not found")

    try:
        row = StockMovement(
            product_id=item.id,
            type=movement.type.value,
            quantity=movement.quantity,
            reason=movement.reason,
            reference_number=movement.reference_number,
        )
        db.add(row)
        db.flush()

        new_quantity = _adjust_quantity(db, item, signed_delta(movement.type, movement.quantity), allow_negative)
        db.commit()
    except ZimmetError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        log.error("stock_movement_rolled_back", product_id=movement.product_id, error=str(e))
        raise TransactionFailure(f"Stock movement failed: {e}") from e

    db.refresh(row)
    log.info(
        "stock_movement_applied",
        movement_id=row.id,
        product_id=item.id,
        type=row.type,
        quantity=row.quantity,
        new_quantity=new_quantity,
    )
    return row


def list_stock_movements(db: Session, product_id: Optional[int] = None, limit: int = 500) -> List[StockMovement]:
    query = db.query(StockMovement).options(joinedload(StockMovement.item))
    if product_id is not None:
        query = query.filter(StockMovement.product_id == product_id)
    return query.order_by(StockMovement.created_at.desc(), StockMovement.id.desc()).limit(limit).all()
