from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas.inventory import StockMovementCreate, StockMovementResponse
from ..services.history import HistoryRecorder, get_history_recorder
from ..services.stock import apply_stock_movement, list_stock_movements
from ..services.store import MAX_ID


router = APIRouter(prefix="/stock-movements", tags=["stock-movements"])


@router.get("", response_model=List[StockMovementResponse])
def get_stock_movements(
    request: Request,
    product_id: Optional[int] = Query(None, ge=1, le=MAX_ID),
    limit: Optional[int] = Query(None, ge=1, le=5000),
    db: Session = Depends(get_db),
):
    """List stock movements, newest first"""
    limit = limit or request.app.state.settings.stock_movements_default_limit
    return list_stock_movements(db, product_id=product_id, limit=limit)


@router.post("", response_model=StockMovementResponse, status_code=201)
def create_stock_movement(
    movement: StockMovementCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    """Record an in/out movement and apply it to the item's quantity in one transaction"""
    settings = request.app.state.settings
    row = apply_stock_movement(db, movement, allow_negative=settings.allow_negative_stock)
    history.schedule(
        background_tasks,
        "stock_movement",
        row.product_id,
        {**movement.model_dump(mode="json"), "movement_id": row.id},
    )
    return row
