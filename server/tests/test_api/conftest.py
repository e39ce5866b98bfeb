# Shared fixtures for API tests

import pytest
from datetime import timedelta
from fastapi.testclient import TestClient

from api.main import app
from api.auth.routes import get_database, jwt_manager
from utils.clock import utc_now


@pytest.fixture
def client(test_db):
    """Test client backed by the in-memory test database"""
    def override_get_database():
        yield test_db

    app.dependency_overrides[get_database] = override_get_database
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(user_id: str) -> dict:
    return {"Authorization": f"Bearer {jwt_manager.create_access_token({'sub': user_id})}"}


@pytest.fixture
def admin_headers(sample_admin_user):
    return bearer(sample_admin_user)


@pytest.fixture
def student_headers(sample_students):
    """Headers for students A, B and C"""
    return [bearer(user_id) for user_id in sample_students]


@pytest.fixture
def food_item_id(client, admin_headers):
    """Three portions posted through the API"""
    response = client.post(
        "/api/food-items",
        json={
            "name": "Chole bhature",
            "canteen_name": "North Canteen",
            "canteen_location": "Block A",
            "quantity": 3,
            "available_until": (utc_now() + timedelta(hours=6)).isoformat()
        },
        headers=admin_headers
    )
    assert response.status_code == 201
    return response.json()["data"]["food_item_id"]
