from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import InventoryItem
from ..schemas.inventory import (
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryItemResponse,
    StockMovementResponse,
)
from ..services.history import HistoryRecorder, compute_diff, get_history_recorder
from ..services.stock import list_stock_movements
from ..services.store import EntityStore


router = APIRouter(prefix="/inventory", tags=["inventory"])


def inventory_store(db: Session) -> EntityStore:
    return EntityStore(db, InventoryItem, "Inventory item", unique_fields=("serial_number",))


def _snapshot(row: InventoryItem) -> dict:
    return InventoryItemResponse.model_validate(row).model_dump(mode="json", by_alias=True, exclude={"created_at", "updated_at"})


# ---------- ITEMS ----------
@router.get("", response_model=List[InventoryItemResponse])
def list_inventory(db: Session = Depends(get_db)):
    """List inventory items, newest first"""
    return inventory_store(db).list()


@router.get("/{item_id}", response_model=InventoryItemResponse)
def get_inventory_item(item_id: int, db: Session = Depends(get_db)):
    return inventory_store(db).get(item_id)


@router.post("", response_model=InventoryItemResponse)
def create_inventory_item(
    item: InventoryItemCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    row = inventory_store(db).create(item.model_dump())
    history.schedule(background_tasks, "inventory_create", row.id, item.model_dump(mode="json", by_alias=True))
    return row


@router.put("/{item_id}", response_model=InventoryItemResponse)
def update_inventory_item(
    item_id: int,
    item_update: InventoryItemUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    """Update an item; a quantity sent here overwrites the stock level directly"""
    store = inventory_store(db)
    before = _snapshot(store.get(item_id))
    update_data = {k: v for k, v in item_update.model_dump(exclude_unset=True).items() if v is not None}
    row = store.update(item_id, update_data)
    history.schedule(background_tasks, "inventory_update", row.id, compute_diff(before, _snapshot(row)))
    return row


@router.delete("/{item_id}")
def delete_inventory_item(
    item_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    """Delete an item; it drops out of every vehicle's carried set, past assignment snapshots keep the id"""
    inventory_store(db).delete(item_id)
    history.schedule(background_tasks, "inventory_delete", item_id, {"deleted": True})
    return {"message": "Inventory item deleted successfully"}


@router.get("/{item_id}/stock-movements", response_model=List[StockMovementResponse])
def get_item_stock_movements(
    item_id: int,
    request: Request,
    limit: Optional[int] = Query(None, ge=1, le=5000),
    db: Session = Depends(get_db),
):
    """Get the stock ledger for one item"""
    inventory_store(db).get(item_id)
    limit = limit or request.app.state.settings.stock_movements_default_limit
    return list_stock_movements(db, product_id=item_id, limit=limit)
