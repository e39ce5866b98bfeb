# Donation and statistics API tests

import pytest
from datetime import timedelta

from utils.clock import utc_now, format_timestamp


@pytest.fixture
def expired_item_id(food_ops, test_db, sample_admin_user):
    """Two unclaimed portions whose deadline has just passed"""
    item = food_ops.create_food_item(
        user_id=sample_admin_user, name="Veg pulao", canteen_name="East Canteen",
        quantity=2, available_until=utc_now() + timedelta(hours=1)
    )
    test_db.execute_single(
        "UPDATE food_items SET available_until = ? WHERE food_item_id = ?",
        [format_timestamp(utc_now() - timedelta(minutes=1)), item['food_item_id']]
    )
    return item['food_item_id']


class TestDonationsApi:
    """Expired stock and NGO hand-off"""

    def test_transfer_expired_once(self, client, admin_headers, expired_item_id):
        response = client.post("/api/donations/transfer-expired", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"transferred_count": 1}

        response = client.post("/api/donations/transfer-expired", headers=admin_headers)
        assert response.json()["data"] == {"transferred_count": 0}

        response = client.get("/api/donations", headers=admin_headers)
        donations = response.json()["data"]["donations"]
        assert len(donations) == 1
        assert donations[0]["quantity_donated"] == 2

    def test_students_cannot_transfer(self, client, student_headers, expired_item_id):
        response = client.post("/api/donations/transfer-expired", headers=student_headers[0])

        assert response.status_code == 403

    def test_reserve_and_collect(self, client, admin_headers, expired_item_id):
        client.post("/api/donations/transfer-expired", headers=admin_headers)
        donation_id = client.get("/api/donations/all", headers=admin_headers).json()["data"]["donations"][0]["donation_id"]

        response = client.put(
            f"/api/donations/{donation_id}/reserve",
            json={"ngo_name": "Feeding City", "ngo_contact_person": "R. Sharma", "ngo_phone_number": "9876543210"},
            headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "reserved_for_ngo"

        response = client.put(f"/api/donations/{donation_id}/collect", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "collected"

        response = client.put(f"/api/donations/{donation_id}/collect", headers=admin_headers)
        assert response.status_code == 409

    def test_reserve_requires_ngo_details(self, client, admin_headers, expired_item_id):
        client.post("/api/donations/transfer-expired", headers=admin_headers)

        response = client.put(
            "/api/donations/1/reserve",
            json={"ngo_name": "Feeding City", "ngo_contact_person": "", "ngo_phone_number": "9876543210"},
            headers=admin_headers
        )

        assert response.status_code == 422

    def test_unknown_donation(self, client, admin_headers):
        response = client.put("/api/donations/999/collect", headers=admin_headers)

        assert response.status_code == 404


class TestStatsApi:
    """Public statistics"""

    def test_stats(self, client, admin_headers, student_headers, food_item_id):
        claim = client.post(
            "/api/food-claims", json={"food_item_id": food_item_id, "quantity": 2}, headers=student_headers[0]
        ).json()["data"]
        client.post(f"/api/food-claims/{claim['claim_id']}/complete", headers=admin_headers)

        response = client.get("/api/stats")

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["total_meals_saved"] == 1
        assert stats["claimed_food"] == 1
        assert stats["food_provided"] == 3
        assert stats["carbon_footprint_saved_kg"] == 1.5
        assert stats["water_footprint_saved_liters"] == 500
