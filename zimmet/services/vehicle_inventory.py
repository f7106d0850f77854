"""
Membership of inventory items in a vehicle's carried set.

The set is an ordered list of inventory ids without duplicates. Membership is
independent of stock: nothing here touches ``InventoryItem.quantity``.
"""
from typing import Iterable, List

from sqlalchemy.orm import Session

from ..errors import NotFound
from ..models.models import InventoryItem, Vehicle, VehicleInventoryLink
from .store import EntityStore, is_storable_id


def dedupe(ids: Iterable[int]) -> List[int]:
    seen = set()
    out: List[int] = []
    for inventory_id in ids:
        if inventory_id not in seen:
            seen.add(inventory_id)
            out.append(inventory_id)
    return out


def ensure_inventory_exists(db: Session, ids: Iterable[int]) -> None:
    wanted = set(ids)
    if not wanted:
        return
    storable = [i for i in wanted if is_storable_id(i)]
    found = set()
    if storable:
        found = {row[0] for row in db.query(InventoryItem.id).filter(InventoryItem.id.in_(storable)).all()}
    missing = sorted(wanted - found)
    if missing:
        raise NotFound(f"Inventory item not found: {', '.join(str(i) for i in missing)}")


def set_vehicle_inventory(db: Session, vehicle: Vehicle, ids: Iterable[int]) -> List[int]:
    """Replace the carried set; flushes, caller commits."""
    ids = dedupe(ids)
    ensure_inventory_exists(db, ids)
    vehicle.inventory_links.clear()
    db.flush()
    for position, inventory_id in enumerate(ids):
        vehicle.inventory_links.append(VehicleInventoryLink(inventory_id=inventory_id, position=position))
    db.flush()
    return ids


def add_vehicle_inventory(db: Session, vehicle: Vehicle, inventory_id: int) -> bool:
    """Append ``inventory_id`` unless already carried. Returns True when the set changed."""
    ensure_inventory_exists(db, [inventory_id])
    if inventory_id in vehicle.inventory_items:
        return False
    next_position = max((link.position for link in vehicle.inventory_links), default=-1) + 1
    vehicle.inventory_links.append(VehicleInventoryLink(inventory_id=inventory_id, position=next_position))
    EntityStore.touch(vehicle)
    db.flush()
    return True


def remove_vehicle_inventory(db: Session, vehicle: Vehicle, inventory_id: int) -> bool:
    """Drop ``inventory_id`` from the set; an absent id is a no-op. Returns True when the set changed."""
    for link in list(vehicle.inventory_links):
        if link.inventory_id == inventory_id:
            vehicle.inventory_links.remove(link)
            EntityStore.touch(vehicle)
            db.flush()
            return True
    return False
