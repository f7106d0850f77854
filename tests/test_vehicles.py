"""Vehicles and the inventory they carry."""
from .factories import API, vehicle_payload


def test_create_with_inventory(client, create_item):
    a, b = create_item(), create_item()
    response = client.post(f"{API}/vehicles", json=vehicle_payload(inventoryItems=[a["id"], b["id"]]))
    assert response.status_code == 200
    assert response.json()["inventoryItems"] == [a["id"], b["id"]]


def test_create_without_inventory_field(client):
    payload = vehicle_payload()
    del payload["inventoryItems"]
    response = client.post(f"{API}/vehicles", json=payload)
    assert response.status_code == 200
    assert response.json()["inventoryItems"] == []


def test_create_dedupes_inventory(client, create_item):
    a, b = create_item(), create_item()
    response = client.post(f"{API}/vehicles", json=vehicle_payload(inventoryItems=[a["id"], b["id"], a["id"]]))
    assert response.json()["inventoryItems"] == [a["id"], b["id"]]


def test_create_with_unknown_inventory_is_404_and_not_saved(client):
    response = client.post(f"{API}/vehicles", json=vehicle_payload(plate="06 NOP 001", inventoryItems=[77]))
    assert response.status_code == 404
    assert client.get(f"{API}/vehicles").json() == []


def test_plate_is_normalized_and_unique(client):
    first = client.post(f"{API}/vehicles", json=vehicle_payload(plate="34  abc 123"))
    assert first.json()["plate"] == "34 ABC 123"

    second = client.post(f"{API}/vehicles", json=vehicle_payload(plate="34 ABC 123"))
    assert second.status_code == 409


def test_update_replaces_inventory(client, create_item, create_vehicle):
    a, b, c = create_item(), create_item(), create_item()
    vehicle = create_vehicle(inventoryItems=[a["id"], b["id"]])

    response = client.put(f"{API}/vehicles/{vehicle['id']}", json={"inventoryItems": [c["id"], a["id"], c["id"]]})
    assert response.status_code == 200
    assert response.json()["inventoryItems"] == [c["id"], a["id"]]


def test_update_without_inventory_keeps_it(client, create_item, create_vehicle):
    a = create_item()
    vehicle = create_vehicle(inventoryItems=[a["id"]])

    response = client.put(f"{API}/vehicles/{vehicle['id']}", json={"brand": "Fiat"})
    assert response.json()["brand"] == "Fiat"
    assert response.json()["inventoryItems"] == [a["id"]]


def test_add_inventory(client, create_item, create_vehicle):
    a, b = create_item(), create_item()
    vehicle = create_vehicle(inventoryItems=[a["id"]])

    response = client.post(f"{API}/vehicles/{vehicle['id']}/inventory/{b['id']}")
    assert response.status_code == 200
    assert response.json()["inventoryItems"] == [a["id"], b["id"]]


def test_add_already_carried_is_not_duplicated(client, create_item, create_vehicle):
    a = create_item()
    vehicle = create_vehicle(inventoryItems=[a["id"]])

    response = client.post(f"{API}/vehicles/{vehicle['id']}/inventory/{a['id']}")
    assert response.status_code == 200
    assert response.json()["inventoryItems"] == [a["id"]]


def test_add_unknown_inventory_is_404(client, create_vehicle):
    vehicle = create_vehicle()
    assert client.post(f"{API}/vehicles/{vehicle['id']}/inventory/500").status_code == 404


def test_remove_inventory(client, create_item, create_vehicle):
    a, b = create_item(), create_item()
    vehicle = create_vehicle(inventoryItems=[a["id"], b["id"]])

    response = client.delete(f"{API}/vehicles/{vehicle['id']}/inventory/{a['id']}")
    assert response.status_code == 200
    assert response.json()["inventoryItems"] == [b["id"]]


def test_remove_not_carried_is_noop(client, create_item, create_vehicle):
    a, b = create_item(), create_item()
    vehicle = create_vehicle(inventoryItems=[a["id"]])

    response = client.delete(f"{API}/vehicles/{vehicle['id']}/inventory/{b['id']}")
    assert response.status_code == 200
    assert response.json()["inventoryItems"] == [a["id"]]
    assert client.get(f"{API}/history", params={"type": "vehicle_inventory_remove"}).json() == []


def test_membership_does_not_touch_quantity(client, create_item, create_vehicle):
    item = create_item(quantity=4)
    vehicle = create_vehicle()

    client.post(f"{API}/vehicles/{vehicle['id']}/inventory/{item['id']}")
    client.delete(f"{API}/vehicles/{vehicle['id']}/inventory/{item['id']}")
    assert client.get(f"{API}/inventory/{item['id']}").json()["quantity"] == 4


def test_unknown_vehicle_is_404(client, create_item):
    item = create_item()
    assert client.get(f"{API}/vehicles/8").status_code == 404
    assert client.post(f"{API}/vehicles/8/inventory/{item['id']}").status_code == 404
    assert client.delete(f"{API}/vehicles/8/inventory/{item['id']}").status_code == 404


def test_delete(client, create_vehicle):
    vehicle = create_vehicle()
    assert client.delete(f"{API}/vehicles/{vehicle['id']}").status_code == 200
    assert client.get(f"{API}/vehicles/{vehicle['id']}").status_code == 404


def test_delete_referenced_by_assignment_is_409(client, create_personnel, create_vehicle, create_assignment):
    vehicle = create_vehicle()
    person = create_personnel()
    assignment = create_assignment(vehicle["id"], person["id"])
    client.put(f"{API}/assignments/{assignment['id']}/return", json={"returnDate": "2024-03-01"})

    response = client.delete(f"{API}/vehicles/{vehicle['id']}")
    assert response.status_code == 409
    assert "assignment" in response.json()["error"]


def test_ids_beyond_integer_range_are_404(client, create_vehicle):
    huge = 2**70
    assert client.get(f"{API}/vehicles/{huge}").status_code == 404
    assert client.put(f"{API}/vehicles/{huge}", json={"brand": "Fiat"}).status_code == 404
    assert client.delete(f"{API}/vehicles/{huge}").status_code == 404

    response = client.post(f"{API}/vehicles", json=vehicle_payload(inventoryItems=[huge]))
    assert response.status_code == 404
    assert str(huge) in response.json()["error"]

    vehicle = create_vehicle()
    assert client.post(f"{API}/vehicles/{vehicle['id']}/inventory/{huge}").status_code == 404
    response = client.delete(f"{API}/vehicles/{vehicle['id']}/inventory/{huge}")
    assert response.status_code == 200
    assert response.json()["inventoryItems"] == []
