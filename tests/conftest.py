"""
Pytest fixtures for the API test suite.

Every test gets its own app over a private in-memory SQLite database, so
ids start at 1 and no state leaks between tests.
"""
import pytest
from fastapi.testclient import TestClient

from zimmet.config import Settings
from zimmet.main import create_app

from .factories import API, inventory_payload, personnel_payload, vehicle_payload


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        enable_metrics=False,
        rate_limit="10000/minute",
        seed_sample_data=False,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(app, client):
    # Tables exist once the client has run the startup hook
    session = app.state.db.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def create_personnel(client):
    def _create(**overrides):
        response = client.post(f"{API}/personnel", json=personnel_payload(**overrides))
        assert response.status_code == 200, response.text
        return response.json()
    return _create


@pytest.fixture
def create_item(client):
    def _create(**overrides):
        response = client.post(f"{API}/inventory", json=inventory_payload(**overrides))
        assert response.status_code == 200, response.text
        return response.json()
    return _create


@pytest.fixture
def create_vehicle(client):
    def _create(**overrides):
        response = client.post(f"{API}/vehicles", json=vehicle_payload(**overrides))
        assert response.status_code == 200, response.text
        return response.json()
    return _create


@pytest.fixture
def create_assignment(client):
    def _create(vehicle_id, personnel_id, assign_date="2024-01-01", **extra):
        body = {"vehicleId": vehicle_id, "personnelId": personnel_id, "assignDate": assign_date, **extra}
        response = client.post(f"{API}/assignments", json=body)
        assert response.status_code == 200, response.text
        return response.json()
    return _create
