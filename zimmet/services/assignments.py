"""
Assignment lifecycle: active on creation, returned once, never back.
"""
from datetime import date
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from ..errors import ConstraintViolation, InvalidTransition
from ..models.models import Assignment, AssignmentInventoryItem, Personnel, Vehicle
from ..schemas.fleet import AssignmentCreate, AssignmentStatus, AssignmentUpdate
from .store import EntityStore


log = structlog.get_logger(__name__)


def _require(db: Session, model, entity_id: int, label: str):
    return EntityStore(db, model, label).get(entity_id)


def create_assignment(db: Session, payload: AssignmentCreate) -> Assignment:
    """Hand a vehicle to an employee, freezing the vehicle's current inventory list."""
    vehicle = _require(db, Vehicle, payload.vehicle_id, "Vehicle")
    _require(db, Personnel, payload.personnel_id, "Personnel")

    assignment = Assignment(
        vehicle_id=vehicle.id,
        personnel_id=payload.personnel_id,
        assign_date=payload.assign_date,
        notes=payload.notes,
        status=AssignmentStatus.active.value,
        return_date=None,
    )
    # Copy by value: later edits to the vehicle's set must not reach this assignment
    for position, inventory_id in enumerate(vehicle.inventory_items):
        assignment.snapshot_items.append(AssignmentInventoryItem(position=position, inventory_id=inventory_id))

    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    log.info(
        "assignment_created",
        assignment_id=assignment.id,
        vehicle_id=assignment.vehicle_id,
        personnel_id=assignment.personnel_id,
        inventory_count=len(assignment.snapshot_items),
    )
    return assignment


def update_assignment(db: Session, assignment_id: int, payload: AssignmentUpdate) -> Assignment:
    """Edit descriptive fields. Status, return date and the snapshot are left alone."""
    assignment = _require(db, Assignment, assignment_id, "Assignment")
    update_data = payload.model_dump(exclude_unset=True)

    if update_data.get("vehicle_id") is not None:
        _require(db, Vehicle, update_data["vehicle_id"], "Vehicle")
    if update_data.get("personnel_id") is not None:
        _require(db, Personnel, update_data["personnel_id"], "Personnel")

    for key, value in update_data.items():
        if value is None and key != "notes":
            continue
        setattr(assignment, key, value)
    EntityStore.touch(assignment)

    db.commit()
    db.refresh(assignment)
    return assignment


def return_assignment(
    db: Session,
    assignment_id: int,
    return_date: date,
    notes: Optional[str] = None,
) -> Assignment:
    """Close an active assignment. Returning twice is rejected."""
    assignment = _require(db, Assignment, assignment_id, "Assignment")

    if assignment.status == AssignmentStatus.returned.value:
        raise InvalidTransition("Assignment is already returned")

    assignment.status = AssignmentStatus.returned.value
    assignment.return_date = return_date
    if notes is not None:
        assignment.notes = notes
    EntityStore.touch(assignment)

    db.commit()
    db.refresh(assignment)
    log.info("assignment_returned", assignment_id=assignment.id, return_date=return_date.isoformat())
    return assignment


def ensure_unreferenced(db: Session, vehicle_id: Optional[int] = None, personnel_id: Optional[int] = None) -> None:
    """Refuse to delete a vehicle or employee that any assignment still points at."""
    query = db.query(Assignment.id, Assignment.status)
    if vehicle_id is not None:
        query = query.filter(Assignment.vehicle_id == vehicle_id)
        label = "Vehicle"
    else:
        query = query.filter(Assignment.personnel_id == personnel_id)
        label = "Personnel"

    rows = query.all()
    if not rows:
        return
    active = sum(1 for _, status in rows if status == AssignmentStatus.active.value)
    raise ConstraintViolation(
        f"{label} is referenced by {len(rows)} assignment(s) ({active} active) and cannot be deleted"
    )
