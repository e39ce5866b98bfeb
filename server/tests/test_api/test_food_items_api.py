# Food item API tests

from datetime import timedelta

from utils.clock import utc_now


class TestFoodItemsApi:
    """Posting and listing meals"""

    def test_create_and_list(self, client, admin_headers, student_headers, food_item_id):
        response = client.get("/api/food-items", headers=student_headers[0])

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total_count"] == 1
        assert data["food_items"][0]["food_item_id"] == food_item_id
        assert data["food_items"][0]["actual_available_quantity"] == 3

    def test_students_cannot_post(self, client, student_headers):
        response = client.post(
            "/api/food-items",
            json={
                "name": "Cake",
                "canteen_name": "North Canteen",
                "quantity": 1,
                "available_until": (utc_now() + timedelta(hours=1)).isoformat()
            },
            headers=student_headers[0]
        )

        assert response.status_code == 403
        assert response.json()["success"] is False

    def test_create_validation(self, client, admin_headers):
        response = client.post(
            "/api/food-items",
            json={"name": "Cake", "canteen_name": "North Canteen", "quantity": 0},
            headers=admin_headers
        )

        assert response.status_code == 422

    def test_past_deadline_rejected(self, client, admin_headers):
        response = client.post(
            "/api/food-items",
            json={
                "name": "Cake",
                "canteen_name": "North Canteen",
                "quantity": 1,
                "available_until": (utc_now() - timedelta(hours=1)).isoformat()
            },
            headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["data"]["kind"] == "invalid_argument"

    def test_my_food_items(self, client, admin_headers, food_item_id):
        response = client.get("/api/food-items/my", headers=admin_headers)

        assert response.status_code == 200
        assert [i["food_item_id"] for i in response.json()["data"]["food_items"]] == [food_item_id]

    def test_get_unknown_item(self, client, student_headers):
        response = client.get("/api/food-items/999", headers=student_headers[0])

        assert response.status_code == 404
        assert response.json()["data"]["kind"] == "item_not_found"

    def test_update_quantity(self, client, admin_headers, food_item_id):
        response = client.put(
            f"/api/food-items/{food_item_id}",
            json={"quantity": 5, "description": "Extra batch"},
            headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["quantity_posted"] == 5
        assert data["quantity_available"] == 5
        assert data["description"] == "Extra batch"

    def test_update_below_reservations(self, client, admin_headers, student_headers, food_item_id):
        client.post("/api/food-claims", json={"food_item_id": food_item_id, "quantity": 2},
                    headers=student_headers[0])

        response = client.put(f"/api/food-items/{food_item_id}", json={"quantity": 1}, headers=admin_headers)

        assert response.status_code == 409

    def test_delete_without_history(self, client, admin_headers, food_item_id):
        response = client.delete(f"/api/food-items/{food_item_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["deleted"] is True

    def test_delete_with_history_withdraws(self, client, admin_headers, student_headers, food_item_id):
        client.post("/api/food-claims", json={"food_item_id": food_item_id}, headers=student_headers[0])

        response = client.delete(f"/api/food-items/{food_item_id}", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["deleted"] is False
        assert data["cancelled_reservations"] == 1

        listing = client.get("/api/food-items", headers=student_headers[0])
        assert listing.json()["data"]["food_items"] == []
