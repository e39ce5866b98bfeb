# Middleware tests

from api.middleware.cors import resolve_allowed_origins, LOCAL_FRONTEND_ORIGINS


class TestRequestId:
    """X-Request-ID tagging"""

    def test_request_id_generated(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert len(response.headers["X-Request-ID"]) == 8

    def test_request_id_reused(self, client):
        response = client.get("/health", headers={"X-Request-ID": "kiosk-42"})

        assert response.headers["X-Request-ID"] == "kiosk-42"


class TestCors:
    """Origins come from the cors config section"""

    def test_preflight_from_configured_origin(self, client):
        response = client.options(
            "/api/food-items",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            }
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_preflight_from_unknown_origin(self, client):
        response = client.options(
            "/api/food-items",
            headers={
                "Origin": "http://evil.example.com",
                "Access-Control-Request-Method": "POST",
            }
        )

        assert "access-control-allow-origin" not in response.headers

    def test_unresolved_placeholder_dropped(self):
        config = {
            'app': {'debug': False},
            'cors': {'allowed_origins': ["${FRONTEND_ORIGIN}", "https://rescue.campus.edu/"]}
        }

        assert resolve_allowed_origins(config) == ["https://rescue.campus.edu"]

    def test_production_without_origins_allows_none(self):
        config = {'app': {'debug': False}, 'cors': {'allowed_origins': ["${FRONTEND_ORIGIN}"]}}

        assert resolve_allowed_origins(config) == []

    def test_debug_without_origins_allows_local_frontend(self):
        config = {'app': {'debug': True}, 'cors': {}}

        assert resolve_allowed_origins(config) == LOCAL_FRONTEND_ORIGINS
