from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.models import Vehicle
from ..schemas.fleet import VehicleCreate, VehicleUpdate, VehicleResponse
from ..services.assignments import ensure_unreferenced
from ..services.history import HistoryRecorder, compute_diff, get_history_recorder
from ..services.store import EntityStore
from ..services.vehicle_inventory import (
    add_vehicle_inventory,
    remove_vehicle_inventory,
    set_vehicle_inventory,
)


router = APIRouter(prefix="/vehicles", tags=["vehicles"])


def vehicle_store(db: Session) -> EntityStore:
    return EntityStore(db, Vehicle, "Vehicle", unique_fields=("plate",))


def _snapshot(row: Vehicle) -> dict:
    return VehicleResponse.model_validate(row).model_dump(mode="json", by_alias=True, exclude={"created_at", "updated_at"})


# ---------- VEHICLES ----------
@router.get("", response_model=List[VehicleResponse])
def list_vehicles(db: Session = Depends(get_db)):
    """List vehicles, newest first"""
    return vehicle_store(db).list()


@router.get("/{vehicle_id}", response_model=VehicleResponse)
def get_vehicle(vehicle_id: int, db: Session = Depends(get_db)):
    return vehicle_store(db).get(vehicle_id)


@router.post("", response_model=VehicleResponse)
def create_vehicle(
    vehicle: VehicleCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    store = vehicle_store(db)
    row = store.create(vehicle.model_dump(exclude={"inventory_items"}), commit=False)
    try:
        set_vehicle_inventory(db, row, vehicle.inventory_items)
    except Exception:
        db.rollback()
        raise
    store.commit()
    db.refresh(row)
    history.schedule(background_tasks, "vehicle_create", row.id, vehicle.model_dump(mode="json", by_alias=True))
    return row


@router.put("/{vehicle_id}", response_model=VehicleResponse)
def update_vehicle(
    vehicle_id: int,
    vehicle_update: VehicleUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    store = vehicle_store(db)
    before = _snapshot(store.get(vehicle_id))
    update_data = vehicle_update.model_dump(exclude_unset=True)
    inventory_items = update_data.pop("inventory_items", None)
    update_data = {k: v for k, v in update_data.items() if v is not None}

    row = store.update(vehicle_id, update_data, commit=False)
    try:
        if inventory_items is not None:
            set_vehicle_inventory(db, row, inventory_items)
    except Exception:
        db.rollback()
        raise
    store.commit()
    db.refresh(row)
    history.schedule(background_tasks, "vehicle_update", row.id, compute_diff(before, _snapshot(row)))
    return row


@router.delete("/{vehicle_id}")
def delete_vehicle(
    vehicle_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    store = vehicle_store(db)
    store.get(vehicle_id)
    ensure_unreferenced(db, vehicle_id=vehicle_id)
    store.delete(vehicle_id)
    history.schedule(background_tasks, "vehicle_delete", vehicle_id, {"deleted": True})
    return {"message": "Vehicle deleted successfully"}


# ---------- CARRIED INVENTORY ----------
@router.post("/{vehicle_id}/inventory/{inventory_id}", response_model=VehicleResponse)
def add_inventory_to_vehicle(
    vehicle_id: int,
    inventory_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    """Put an inventory item on a vehicle; already carried items are left as they are"""
    store = vehicle_store(db)
    vehicle = store.get(vehicle_id)
    if add_vehicle_inventory(db, vehicle, inventory_id):
        store.commit()
        db.refresh(vehicle)
        history.schedule(
            background_tasks,
            "vehicle_inventory_add",
            vehicle.id,
            {"inventoryId": inventory_id, "inventoryItems": vehicle.inventory_items},
        )
    return vehicle


@router.delete("/{vehicle_id}/inventory/{inventory_id}", response_model=VehicleResponse)
def remove_inventory_from_vehicle(
    vehicle_id: int,
    inventory_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    history: HistoryRecorder = Depends(get_history_recorder),
):
    """Take an inventory item off a vehicle; removing an item that is not carried changes nothing"""
    store = vehicle_store(db)
    vehicle = store.get(vehicle_id)
    if remove_vehicle_inventory(db, vehicle, inventory_id):
        store.commit()
        db.refresh(vehicle)
        history.schedule(
            background_tasks,
            "vehicle_inventory_remove",
            vehicle.id,
            {"inventoryId": inventory_id, "inventoryItems": vehicle.inventory_items},
        )
    return vehicle
