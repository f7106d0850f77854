from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import Assignment
from ..schemas.fleet import (
    AssignmentCreate,
    AssignmentUpdate,
    AssignmentReturn,
    AssignmentResponse,
    AssignmentStatus,
)
from ..services import assignments as assignment_service
from ..services.history import HistoryRecorder, get_history_recorder
from ..services.store import EntityStore


router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.get("", response_model=List[AssignmentResponse])
def list_assignments(
    status: Optional[AssignmentStatus] = Query(None),
    db: Session = Depends(get_db),
):
    """List assignments, newest first"""
    query = db.query(Assignment)
    if status:
        query = query.filter(Assignment.status == status.value)
    return query.order_by(Assignment.created_at.desc(), Assignment.id.desc()).all()


@router.get("/{assignment_id}", response_model=AssignmentResponse)
def get_assignment(assignment_id: int, db: Session = Depends(get_db)):
    return EntityStore(db, Assignment, "Assignment").get(assignment_id)


@router.post("", response_model=AssignmentResponse)
def create_assignment(
    assignment: AssignmentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    """Assign a vehicle, together with what it currently carries, to an employee"""
    row = assignment_service.create_assignment(db, assignment)
    history.schedule(
        background_tasks,
        "assignment",
        row.id,
        {**assignment.model_dump(mode="json", by_alias=True), "inventoryItems": row.inventory_items},
    )
    return row


@router.put("/{assignment_id}", response_model=AssignmentResponse)
def update_assignment(
    assignment_id: int,
    assignment_update: AssignmentUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    row = assignment_service.update_assignment(db, assignment_id, assignment_update)
    history.schedule(
        background_tasks,
        "assignment_update",
        row.id,
        assignment_update.model_dump(mode="json", by_alias=True, exclude_unset=True),
    )
    return row


@router.put("/{assignment_id}/return", response_model=AssignmentResponse)
def return_assignment(
    assignment_id: int,
    return_data: AssignmentReturn,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    """Close an active assignment"""
    row = assignment_service.return_assignment(db, assignment_id, return_data.return_date, return_data.notes)
    history.schedule(background_tasks, "return", row.id, return_data.model_dump(mode="json", by_alias=True))
    return row
