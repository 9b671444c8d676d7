"""Tests for the health check endpoint."""


class TestHealth:

    def test_healthy_without_auth(self, client):
        """Health is public and reports the database and delivery state."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["notification_delivery"] == "disabled"
        assert "version" in data

    def test_delivery_configured(self, app, client):
        app.extensions["notification_delivery"] = object()
        assert client.get("/health").get_json()["notification_delivery"] == "configured"


class TestErrorHandlers:

    def test_unknown_route_is_json_404(self, client):
        response = client.get("/does-not-exist")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}

    def test_wrong_method_is_json_405(self, client):
        response = client.delete("/health")
        assert response.status_code == 405
        assert response.get_json() == {"error": "Method not allowed"}

    def test_api_requires_token(self, client):
        response = client.get("/api/me")
        assert response.status_code == 401
        assert response.get_json() == {"error": "Authentication required"}

    def test_garbage_token(self, client):
        response = client.get("/api/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401
        assert response.get_json() == {"error": "Invalid session token"}
