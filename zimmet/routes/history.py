from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas.history import HistoryRecordResponse
from ..services.history import get_history
from ..services.store import MAX_ID


router = APIRouter(prefix="/history", tags=["history"])


@router.get("", response_model=List[HistoryRecordResponse])
def list_history(
    request: Request,
    type: Optional[str] = Query(None),
    entity_id: Optional[int] = Query(None, ge=1, le=MAX_ID),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """List history entries, newest first"""
    limit = limit or request.app.state.settings.history_default_limit
    return get_history(db, type=type, entity_id=entity_id, limit=limit)
