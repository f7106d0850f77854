"""Client mirror driven against the real app through TestClient."""
import httpx
import pytest

from zimmet.client.api_client import ApiError, ZimmetApiClient
from zimmet.client.state import (
    Action,
    AppState,
    ZimmetStore,
    available_inventory_for_vehicle,
    dashboard_summary,
    filter_assignments,
    filter_inventory,
    filter_personnel,
    reduce,
)

from .factories import inventory_payload, personnel_payload, vehicle_payload


@pytest.fixture
def api(client):
    return ZimmetApiClient(base_url="http://testserver/api", http=client)


@pytest.fixture
def store(api):
    return ZimmetStore(api)


# ---------- reducer ----------
def test_reduce_does_not_mutate_input():
    before = AppState(personnel=[{"id": 1, "name": "A"}])
    after = reduce(before, Action("ADD_PERSONNEL", {"id": 2, "name": "B"}))

    assert [p["id"] for p in before.personnel] == [1]
    assert [p["id"] for p in after.personnel] == [1, 2]


def test_reduce_update_and_delete_splice_by_id():
    state = AppState(vehicles=[{"id": 1, "plate": "A"}, {"id": 2, "plate": "B"}])

    state = reduce(state, Action("UPDATE_VEHICLE", {"id": 2, "plate": "C"}))
    assert state.vehicles == [{"id": 1, "plate": "A"}, {"id": 2, "plate": "C"}]

    state = reduce(state, Action("DELETE_VEHICLE", 1))
    assert state.vehicles == [{"id": 2, "plate": "C"}]


def test_reduce_ignores_unknown_actions():
    state = AppState()
    assert reduce(state, Action("NOT_A_THING", 1)) is state


# ---------- api client ----------
def test_api_error_carries_status_and_message(api):
    with pytest.raises(ApiError) as excinfo:
        api.delete_personnel(12345)
    assert excinfo.value.status_code == 404
    assert excinfo.value.message == "Personnel not found"


def test_health(api):
    assert api.health()["status"] == "OK"


# ---------- store ----------
def test_load_all_fills_every_collection(store, api):
    api.create_personnel(personnel_payload())
    item = api.create_inventory_item(inventory_payload())
    vehicle = api.create_vehicle(vehicle_payload(inventoryItems=[item["id"]]))

    state = store.load_all()

    assert len(state.personnel) == 1
    assert [i["id"] for i in state.inventory] == [item["id"]]
    assert state.vehicles[0]["inventoryItems"] == [item["id"]]
    assert state.vehicles[0]["id"] == vehicle["id"]
    assert [h["type"] for h in state.history] == ["vehicle_create", "inventory_create", "personnel_create"]
    assert state.loading is False
    assert state.error is None


def test_mutations_splice_server_answers(store):
    person = store.add_personnel(personnel_payload(name="Ali"))
    store.update_personnel(person["id"], {"department": "Finance"})
    assert [(p["id"], p["department"]) for p in store.state.personnel] == [(person["id"], "Finance")]

    item = store.add_inventory_item(inventory_payload())
    vehicle = store.add_vehicle(vehicle_payload())
    store.add_inventory_to_vehicle(vehicle["id"], item["id"])
    assert store.state.vehicles[0]["inventoryItems"] == [item["id"]]

    assignment = store.add_assignment({"vehicleId": vehicle["id"], "personnelId": person["id"], "assignDate": "2024-01-01"})
    assert store.state.assignments[0]["inventoryItems"] == [item["id"]]

    store.remove_inventory_from_vehicle(vehicle["id"], item["id"])
    assert store.state.vehicles[0]["inventoryItems"] == []
    assert store.state.assignments[0]["inventoryItems"] == [item["id"]]

    store.return_assignment(assignment["id"], "2024-02-01")
    assert store.state.assignments[0]["status"] == "returned"


def test_failed_call_leaves_mirror_unchanged(store):
    store.add_personnel(personnel_payload(email="same@company.com"))
    before = store.state.personnel

    with pytest.raises(ApiError):
        store.add_personnel(personnel_payload(email="same@company.com"))

    assert store.state.personnel == before
    assert store.state.error


def test_success_clears_previous_error(store):
    with pytest.raises(ApiError):
        store.delete_vehicle(999)
    assert store.state.error == "Vehicle not found"

    store.add_vehicle(vehicle_payload())
    assert store.state.error is None


def test_delete_removes_from_mirror(store):
    item = store.add_inventory_item(inventory_payload())
    store.delete_inventory_item(item["id"])
    assert store.state.inventory == []


def test_move_stock_updates_mirrored_quantity(store):
    item = store.add_inventory_item(inventory_payload(quantity=10))

    movement = store.move_stock(item["id"], "out", 3, reason="Issued")

    assert movement["quantity"] == 3
    assert store.state.inventory[0]["quantity"] == 7
    assert store.api.get_inventory()[0]["quantity"] == 7


def test_move_stock_takes_quantity_from_server(store, api):
    item = store.add_inventory_item(inventory_payload(quantity=10))
    # Someone else changes the stock; the mirror still says 10
    api.update_inventory_item(item["id"], {"quantity": 20})

    store.move_stock(item["id"], "out", 3)

    assert store.state.inventory[0]["quantity"] == 17


def test_move_stock_failure_keeps_quantity(store):
    item = store.add_inventory_item(inventory_payload(quantity=1))

    with pytest.raises(ApiError) as excinfo:
        store.move_stock(item["id"], "out", 5)

    assert excinfo.value.status_code == 409
    assert store.state.inventory[0]["quantity"] == 1


# ---------- derived views ----------
@pytest.fixture
def sample_state():
    return AppState(
        personnel=[
            {"id": 1, "name": "Ahmet", "surname": "Yılmaz", "email": "ahmet@company.com", "position": "Dev", "department": "IT"},
            {"id": 2, "name": "Ayşe", "surname": "Kaya", "email": "ayse@company.com", "position": "HR", "department": "HR"},
        ],
        inventory=[
            {"id": 10, "name": "Laptop", "brand": "Dell", "model": "5520", "serialNumber": "DL1", "category": "Computer", "value": 1000, "quantity": 2},
            {"id": 11, "name": "Phone", "brand": "Samsung", "model": "S21", "serialNumber": "SM1", "category": "Phone", "value": 500, "quantity": 1},
        ],
        vehicles=[
            {"id": 20, "brand": "Toyota", "model": "Corolla", "plate": "34 ABC 123", "type": "Car", "inventoryItems": [10]},
            {"id": 21, "brand": "Ford", "model": "Transit", "plate": "06 XYZ 456", "type": "Van", "inventoryItems": []},
        ],
        assignments=[
            {"id": 30, "vehicleId": 20, "personnelId": 1, "status": "active", "inventoryItems": [10]},
            {"id": 31, "vehicleId": 21, "personnelId": 2, "status": "returned", "inventoryItems": []},
        ],
    )


def test_filter_personnel(sample_state):
    assert [p["id"] for p in filter_personnel(sample_state, "ayşe")] == [2]
    assert [p["id"] for p in filter_personnel(sample_state, department="IT")] == [1]
    assert len(filter_personnel(sample_state)) == 2


def test_filter_inventory(sample_state):
    assert [i["id"] for i in filter_inventory(sample_state, "dl1")] == [10]
    assert [i["id"] for i in filter_inventory(sample_state, category="Phone")] == [11]


def test_filter_assignments_matches_person_and_plate(sample_state):
    assert [a["id"] for a in filter_assignments(sample_state, "kaya")] == [31]
    assert [a["id"] for a in filter_assignments(sample_state, "34 abc")] == [30]
    assert [a["id"] for a in filter_assignments(sample_state, status="active")] == [30]


def test_available_inventory_for_vehicle(sample_state):
    assert [i["id"] for i in available_inventory_for_vehicle(sample_state, 20)] == [11]
    assert [i["id"] for i in available_inventory_for_vehicle(sample_state, 21)] == [10, 11]


def test_dashboard_summary(sample_state):
    assert dashboard_summary(sample_state) == {
        "personnel": 2,
        "inventory": 2,
        "vehicles": 2,
        "active_assignments": 1,
        "available_vehicles": 1,
        "total_inventory_value": 2500.0,
    }


# ---------- unreachable server ----------
@pytest.fixture
def offline_store():
    def refuse(request):
        raise httpx.ConnectError("Connection refused", request=request)

    http = httpx.Client(transport=httpx.MockTransport(refuse))
    yield ZimmetStore(ZimmetApiClient(base_url="http://zimmet.invalid/api", http=http))
    http.close()


def test_unreachable_server_sets_error(offline_store):
    with pytest.raises(httpx.ConnectError):
        offline_store.add_personnel(personnel_payload())

    assert offline_store.state.personnel == []
    assert "Connection refused" in offline_store.state.error


def test_load_all_unreachable_sets_error(offline_store):
    with pytest.raises(httpx.HTTPError):
        offline_store.load_all()

    assert offline_store.state.error
    assert offline_store.state.loading is False
