# Food claim API tests

from utils.claim_code import CLAIM_CODE_PATTERN


def create_claim(client, headers, food_item_id, quantity=1):
    return client.post(
        "/api/food-claims",
        json={"food_item_id": food_item_id, "quantity": quantity},
        headers=headers
    )


class TestClaimCreationApi:
    """Reserving meals"""

    def test_claim_scenario(self, client, student_headers, food_item_id):
        headers_a, headers_b, headers_c = student_headers

        response = create_claim(client, headers_a, food_item_id)
        assert response.status_code == 201
        claim = response.json()["data"]
        assert CLAIM_CODE_PATTERN.match(claim["claim_code"])
        assert claim["expires_at"]

        response = create_claim(client, headers_a, food_item_id)
        assert response.status_code == 400
        assert response.json()["data"]["kind"] == "already_claimed"

        response = create_claim(client, headers_b, food_item_id, 2)
        assert response.status_code == 201
        assert response.json()["data"]["remaining_quantity"] == 0

        response = create_claim(client, headers_c, food_item_id)
        assert response.status_code == 400
        assert response.json()["data"]["kind"] == "insufficient_quantity"

    def test_unknown_item(self, client, student_headers):
        response = create_claim(client, student_headers[0], 999)

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_quantity_validation(self, client, student_headers, food_item_id):
        response = create_claim(client, student_headers[0], food_item_id, 0)

        assert response.status_code == 422

    def test_my_claims(self, client, student_headers, food_item_id):
        create_claim(client, student_headers[0], food_item_id)

        response = client.get("/api/food-claims/my", headers=student_headers[0])

        assert response.status_code == 200
        claims = response.json()["data"]["claims"]
        assert len(claims) == 1
        assert claims[0]["food_item"]["name"] == "Chole bhature"


class TestClaimRedemptionApi:
    """Counter flow"""

    def test_verify_and_complete(self, client, admin_headers, student_headers, food_item_id):
        claim = create_claim(client, student_headers[0], food_item_id).json()["data"]

        response = client.post(
            "/api/food-claims/verify", json={"claim_code": claim["claim_code"]}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["data"]["user"]["last_name"] == "A"

        response = client.post(f"/api/food-claims/{claim['claim_id']}/complete", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "claimed"
        assert response.json()["data"]["food_item"]["quantity_available"] == 2

        response = client.post(
            "/api/food-claims/verify", json={"claim_code": claim["claim_code"]}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["error"] == "Claim has already been redeemed"

    def test_verify_unknown_code(self, client, admin_headers):
        response = client.post("/api/food-claims/verify", json={"claim_code": "ZZZ-999"}, headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["error"] == "Invalid claim code"

    def test_students_cannot_verify(self, client, student_headers):
        response = client.post(
            "/api/food-claims/verify", json={"claim_code": "ZZZ-999"}, headers=student_headers[0]
        )

        assert response.status_code == 403

    def test_complete_twice(self, client, admin_headers, student_headers, food_item_id):
        claim = create_claim(client, student_headers[0], food_item_id).json()["data"]
        client.post(f"/api/food-claims/{claim['claim_id']}/complete", headers=admin_headers)

        response = client.post(f"/api/food-claims/{claim['claim_id']}/complete", headers=admin_headers)

        assert response.status_code == 409
        assert response.json()["data"]["kind"] == "invalid_state"

    def test_complete_by_code(self, client, admin_headers, student_headers, food_item_id):
        claim = create_claim(client, student_headers[0], food_item_id).json()["data"]

        response = client.put(f"/api/food-claims/code/{claim['claim_code']}/claim", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["claim_id"] == claim["claim_id"]

    def test_get_by_code(self, client, admin_headers, student_headers, food_item_id):
        claim = create_claim(client, student_headers[0], food_item_id).json()["data"]

        response = client.get(f"/api/food-claims/code/{claim['claim_code']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "reserved"

    def test_get_by_code_after_ttl(self, client, test_db, admin_headers, student_headers, food_item_id):
        claim = create_claim(client, student_headers[0], food_item_id).json()["data"]
        test_db.execute_single(
            "UPDATE food_claims SET expires_at = '2000-01-01T00:00:00.000000Z' WHERE claim_id = ?",
            [claim["claim_id"]]
        )

        response = client.get(f"/api/food-claims/code/{claim['claim_code']}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "expired"

    def test_active_claims(self, client, admin_headers, student_headers, food_item_id):
        create_claim(client, student_headers[0], food_item_id)
        create_claim(client, student_headers[1], food_item_id)

        response = client.get("/api/food-claims/active", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["total_count"] == 2


class TestClaimCancellationApi:
    """Giving up reservations"""

    def test_owner_cancels(self, client, student_headers, food_item_id):
        claim = create_claim(client, student_headers[0], food_item_id, 3).json()["data"]

        response = client.post(f"/api/food-claims/{claim['claim_id']}/cancel", headers=student_headers[0])

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "cancelled"
        assert create_claim(client, student_headers[1], food_item_id, 3).status_code == 201

    def test_other_student_cannot_cancel(self, client, student_headers, food_item_id):
        claim = create_claim(client, student_headers[0], food_item_id).json()["data"]

        response = client.post(f"/api/food-claims/{claim['claim_id']}/cancel", headers=student_headers[1])

        assert response.status_code == 403
        assert response.json()["data"]["kind"] == "forbidden"
