"""History entries written after each successful mutation."""
from .factories import API


def history(client, **params):
    return client.get(f"{API}/history", params=params).json()


def test_create_is_recorded_with_system_user(client, create_personnel):
    person = create_personnel(name="Zeynep")

    entries = history(client)
    assert len(entries) == 1
    entry = entries[0]
    assert entry["type"] == "personnel_create"
    assert entry["entityId"] == person["id"]
    assert entry["user"] == "System"
    assert entry["changes"]["name"] == "Zeynep"
    assert entry["date"]


def test_update_records_only_changed_fields(client, create_item):
    item = create_item(name="Laptop")
    client.put(f"{API}/inventory/{item['id']}", json={"name": "Notebook"})

    entry = history(client, type="inventory_update")[0]
    assert entry["changes"] == {"name": {"before": "Laptop", "after": "Notebook"}}


def test_failed_mutation_is_not_recorded(client, create_personnel):
    create_personnel(email="one@company.com")
    client.post(f"{API}/personnel", json={"email": "broken"})
    client.delete(f"{API}/personnel/999")

    assert [h["type"] for h in history(client)] == ["personnel_create"]


def test_newest_first_and_limit(client, create_personnel, create_item, create_vehicle):
    create_personnel()
    create_item()
    create_vehicle()

    assert [h["type"] for h in history(client)] == ["vehicle_create", "inventory_create", "personnel_create"]
    assert [h["type"] for h in history(client, limit=2)] == ["vehicle_create", "inventory_create"]


def test_filter_by_type_and_entity(client, create_personnel):
    a = create_personnel()
    b = create_personnel()
    client.put(f"{API}/personnel/{a['id']}", json={"position": "Lead"})

    assert len(history(client, type="personnel_create")) == 2
    by_entity = history(client, entity_id=b["id"])
    assert [(h["type"], h["entityId"]) for h in by_entity] == [("personnel_create", b["id"])]


def test_query_params_out_of_range_are_422(client):
    assert client.get(f"{API}/history", params={"limit": 0}).status_code == 422
    assert client.get(f"{API}/history", params={"entity_id": 2**70}).status_code == 422


def test_recorder_failure_does_not_fail_the_mutation(client, app):
    def broken(*args, **kwargs):
        raise RuntimeError("history table is locked")

    app.state.history.record = broken
    response = client.post(f"{API}/personnel", json={
        "name": "A",
        "surname": "B",
        "email": "a@b.com",
        "phone": "1",
        "department": "IT",
        "position": "Dev",
        "startDate": "2024-01-01",
    })

    assert response.status_code == 200
    assert client.get(f"{API}/personnel/{response.json()['id']}").status_code == 200
    assert history(client) == []
