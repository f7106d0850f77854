"""
Client-side mirror of every collection.

The mirror is disposable: ``load_all`` rebuilds it from full fetches and each
mutation splices the server's answer in by id. It is only touched after a
successful response, so a failed call leaves it exactly as it was.
"""
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Optional

import httpx
import structlog

from .api_client import ApiError, ZimmetApiClient


log = structlog.get_logger(__name__)

Record = Dict[str, Any]


@dataclass(frozen=True)
class AppState:
    personnel: List[Record] = field(default_factory=list)
    inventory: List[Record] = field(default_factory=list)
    vehicles: List[Record] = field(default_factory=list)
    assignments: List[Record] = field(default_factory=list)
    history: List[Record] = field(default_factory=list)
    loading: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class Action:
    type: str
    payload: Any = None


# Action type -> (collection, operation)
_COLLECTION_ACTIONS = {
    "SET_PERSONNEL": ("personnel", "set"),
    "ADD_PERSONNEL": ("personnel", "add"),
    "UPDATE_PERSONNEL": ("personnel", "update"),
    "DELETE_PERSONNEL": ("personnel", "delete"),
    "SET_INVENTORY": ("inventory", "set"),
    "ADD_INVENTORY": ("inventory", "add"),
    "UPDATE_INVENTORY": ("inventory", "update"),
    "DELETE_INVENTORY": ("inventory", "delete"),
    "SET_VEHICLES": ("vehicles", "set"),
    "ADD_VEHICLE": ("vehicles", "add"),
    "UPDATE_VEHICLE": ("vehicles", "update"),
    "DELETE_VEHICLE": ("vehicles", "delete"),
    "SET_ASSIGNMENTS": ("assignments", "set"),
    "ADD_ASSIGNMENT": ("assignments", "add"),
    "UPDATE_ASSIGNMENT": ("assignments", "update"),
    "SET_HISTORY": ("history", "set"),
    "ADD_HISTORY": ("history", "add"),
}


def reduce(state: AppState, action: Action) -> AppState:
    """Pure transition: returns a new state, never mutates ``state``."""
    if action.type == "SET_LOADING":
        return replace(state, loading=bool(action.payload))
    if action.type == "SET_ERROR":
        return replace(state, error=action.payload)

    target = _COLLECTION_ACTIONS.get(action.type)
    if target is None:
        return state
    name, op = target
    current = getattr(state, name)

    if op == "set":
        updated = list(action.payload)
    elif op == "add":
        updated = current + [action.payload]
    elif op == "update":
        updated = [action.payload if r["id"] == action.payload["id"] else r for r in current]
    else:
        updated = [r for r in current if r["id"] != action.payload]
    return replace(state, **{name: updated})


# ---------- FILTERS ----------
def _contains(value: Any, term: str) -> bool:
    return term in str(value or "").lower()


def _by_id(records: List[Record]) -> Dict[Any, Record]:
    return {r["id"]: r for r in records}


def filter_personnel(state: AppState, search: str = "", department: Optional[str] = None) -> List[Record]:
    term = search.strip().lower()
    return [
        p for p in state.personnel
        if (not term or any(_contains(p.get(k), term) for k in ("name", "surname", "email", "position")))
        and (not department or p.get("department") == department)
    ]


def filter_inventory(state: AppState, search: str = "", category: Optional[str] = None) -> List[Record]:
    term = search.strip().lower()
    return [
        i for i in state.inventory
        if (not term or any(_contains(i.get(k), term) for k in ("name", "brand", "model", "serialNumber")))
        and (not category or i.get("category") == category)
    ]


def filter_vehicles(state: AppState, search: str = "", type: Optional[str] = None) -> List[Record]:
    term = search.strip().lower()
    return [
        v for v in state.vehicles
        if (not term or any(_contains(v.get(k), term) for k in ("brand", "model", "plate")))
        and (not type or v.get("type") == type)
    ]


def filter_assignments(state: AppState, search: str = "", status: Optional[str] = None) -> List[Record]:
    """Match on the assigned employee's name or the vehicle's plate/brand/model."""
    term = search.strip().lower()
    personnel = _by_id(state.personnel)
    vehicles = _by_id(state.vehicles)
    out = []
    for a in state.assignments:
        if status and a.get("status") != status:
            continue
        if term:
            p = personnel.get(a.get("personnelId")) or {}
            v = vehicles.get(a.get("vehicleId")) or {}
            haystack = [p.get("name"), p.get("surname"), v.get("plate"), v.get("brand"), v.get("model")]
            if not any(_contains(x, term) for x in haystack):
                continue
        out.append(a)
    return out


def filter_history(state: AppState, search: str = "", type: Optional[str] = None) -> List[Record]:
    term = search.strip().lower()
    return [
        h for h in state.history
        if (not type or h.get("type") == type)
        and (not term or _contains(h.get("type"), term) or _contains(h.get("changes"), term) or _contains(h.get("user"), term))
    ]


def available_inventory_for_vehicle(state: AppState, vehicle_id: Any) -> List[Record]:
    """Inventory items not already carried by the vehicle (candidates for adding)."""
    vehicle = _by_id(state.vehicles).get(vehicle_id)
    carried = set(vehicle.get("inventoryItems") or []) if vehicle else set()
    return [i for i in state.inventory if i["id"] not in carried]


def dashboard_summary(state: AppState) -> Dict[str, int]:
    active = [a for a in state.assignments if a.get("status") == "active"]
    busy_vehicles = {a.get("vehicleId") for a in active}
    return {
        "personnel": len(state.personnel),
        "inventory": len(state.inventory),
        "vehicles": len(state.vehicles),
        "active_assignments": len(active),
        "available_vehicles": sum(1 for v in state.vehicles if v["id"] not in busy_vehicles),
        "total_inventory_value": sum(float(i.get("value") or 0) * int(i.get("quantity") or 0) for i in state.inventory),
    }


# ---------- STORE ----------
def _transport_message(exc: httpx.HTTPError) -> str:
    return f"Cannot reach the server: {exc}" if str(exc) else "Cannot reach the server"


class ZimmetStore:
    """Holds the mirror and performs API calls that keep it in sync."""

    def __init__(self, api: ZimmetApiClient, state: Optional[AppState] = None):
        self.api = api
        self.state = state or AppState()

    def dispatch(self, action_type: str, payload: Any = None) -> AppState:
        self.state = reduce(self.state, Action(action_type, payload))
        return self.state

    def _call(self, fn: Callable[[], Any], action_type: Optional[str], payload: Optional[Callable[[Any], Any]] = None) -> Any:
        try:
            result = fn()
        except ApiError as e:
            log.warning("api_call_failed", action=action_type, status_code=e.status_code, error=e.message)
            self.dispatch("SET_ERROR", e.message)
            raise
        except httpx.HTTPError as e:
            # Server unreachable, timeout, broken connection
            log.warning("api_unreachable", action=action_type, error=str(e))
            self.dispatch("SET_ERROR", _transport_message(e))
            raise
        if action_type:
            self.dispatch(action_type, payload(result) if payload else result)
        self.dispatch("SET_ERROR", None)
        return result

    def load_all(self) -> AppState:
        self.dispatch("SET_LOADING", True)
        try:
            # Fetch everything before touching the mirror so a failure leaves it intact
            fetched = {
                "SET_PERSONNEL": self.api.get_personnel(),
                "SET_INVENTORY": self.api.get_inventory(),
                "SET_VEHICLES": self.api.get_vehicles(),
                "SET_ASSIGNMENTS": self.api.get_assignments(),
                "SET_HISTORY": self.api.get_history(),
            }
            for action_type, records in fetched.items():
                self.dispatch(action_type, records)
            self.dispatch("SET_ERROR", None)
        except ApiError as e:
            self.dispatch("SET_ERROR", e.message)
            raise
        except httpx.HTTPError as e:
            self.dispatch("SET_ERROR", _transport_message(e))
            raise
        finally:
            self.dispatch("SET_LOADING", False)
        return self.state

    # Personnel
    def add_personnel(self, personnel: Record) -> Record:
        return self._call(lambda: self.api.create_personnel(personnel), "ADD_PERSONNEL")

    def update_personnel(self, personnel_id: int, personnel: Record) -> Record:
        return self._call(lambda: self.api.update_personnel(personnel_id, personnel), "UPDATE_PERSONNEL")

    def delete_personnel(self, personnel_id: int) -> None:
        self._call(lambda: self.api.delete_personnel(personnel_id), "DELETE_PERSONNEL", lambda _: personnel_id)

    # Inventory
    def add_inventory_item(self, item: Record) -> Record:
        return self._call(lambda: self.api.create_inventory_item(item), "ADD_INVENTORY")

    def update_inventory_item(self, item_id: int, item: Record) -> Record:
        return self._call(lambda: self.api.update_inventory_item(item_id, item), "UPDATE_INVENTORY")

    def delete_inventory_item(self, item_id: int) -> None:
        self._call(lambda: self.api.delete_inventory_item(item_id), "DELETE_INVENTORY", lambda _: item_id)

    # Vehicles
    def add_vehicle(self, vehicle: Record) -> Record:
        return self._call(lambda: self.api.create_vehicle(vehicle), "ADD_VEHICLE")

    def update_vehicle(self, vehicle_id: int, vehicle: Record) -> Record:
        return self._call(lambda: self.api.update_vehicle(vehicle_id, vehicle), "UPDATE_VEHICLE")

    def delete_vehicle(self, vehicle_id: int) -> None:
        self._call(lambda: self.api.delete_vehicle(vehicle_id), "DELETE_VEHICLE", lambda _: vehicle_id)

    def add_inventory_to_vehicle(self, vehicle_id: int, inventory_id: int) -> Record:
        return self._call(lambda: self.api.add_vehicle_inventory(vehicle_id, inventory_id), "UPDATE_VEHICLE")

    def remove_inventory_from_vehicle(self, vehicle_id: int, inventory_id: int) -> Record:
        return self._call(lambda: self.api.remove_vehicle_inventory(vehicle_id, inventory_id), "UPDATE_VEHICLE")

    # Assignments
    def add_assignment(self, assignment: Record) -> Record:
        return self._call(lambda: self.api.create_assignment(assignment), "ADD_ASSIGNMENT")

    def return_assignment(self, assignment_id: int, return_date: str, notes: Optional[str] = None) -> Record:
        return self._call(lambda: self.api.return_assignment(assignment_id, return_date, notes), "UPDATE_ASSIGNMENT")

    # Stock
    def move_stock(self, product_id: int, type: str, quantity: int, reason: Optional[str] = None) -> Record:
        """Post a movement, then splice in the item as the server now has it."""
        movement = self._call(
            lambda: self.api.create_stock_movement(product_id, type, quantity, reason),
            None,
        )
        self._call(lambda: self.api.get_inventory_item(product_id), "UPDATE_INVENTORY")
        return movement
