from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import Personnel
from ..schemas.personnel import PersonnelCreate, PersonnelUpdate, PersonnelResponse
from ..services.assignments import ensure_unreferenced
from ..services.history import HistoryRecorder, compute_diff, get_history_recorder
from ..services.store import EntityStore


router = APIRouter(prefix="/personnel", tags=["personnel"])


def personnel_store(db: Session) -> EntityStore:
    return EntityStore(db, Personnel, "Personnel", unique_fields=("email",))


def _snapshot(row: Personnel) -> dict:
    return PersonnelResponse.model_validate(row).model_dump(mode="json", by_alias=True, exclude={"created_at", "updated_at"})


@router.get("", response_model=List[PersonnelResponse])
def list_personnel(db: Session = Depends(get_db)):
    """List personnel, newest first"""
    return personnel_store(db).list()


@router.get("/{personnel_id}", response_model=PersonnelResponse)
def get_personnel(personnel_id: int, db: Session = Depends(get_db)):
    return personnel_store(db).get(personnel_id)


@router.post("", response_model=PersonnelResponse)
def create_personnel(
    personnel: PersonnelCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    row = personnel_store(db).create(personnel.model_dump())
    history.schedule(background_tasks, "personnel_create", row.id, personnel.model_dump(mode="json", by_alias=True))
    return row


@router.put("/{personnel_id}", response_model=PersonnelResponse)
def update_personnel(
    personnel_id: int,
    personnel_update: PersonnelUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    store = personnel_store(db)
    before = _snapshot(store.get(personnel_id))
    update_data = {k: v for k, v in personnel_update.model_dump(exclude_unset=True).items() if v is not None}
    row = store.update(personnel_id, update_data)
    history.schedule(background_tasks, "personnel_update", row.id, compute_diff(before, _snapshot(row)))
    return row


@router.delete("/{personnel_id}")
def delete_personnel(
    personnel_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    store = personnel_store(db)
    store.get(personnel_id)
    ensure_unreferenced(db, personnel_id=personnel_id)
    store.delete(personnel_id)
    history.schedule(background_tasks, "personnel_delete", personnel_id, {"deleted": True})
    return {"message": "Personnel deleted successfully"}
