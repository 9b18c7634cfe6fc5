# SPDX-License-Identifier: MIT
"""Tests for health check endpoints."""


class TestRootEndpoint:
    """Test root endpoint (health check)."""

    def test_root_endpoint_exists(self, test_client):
        """Root endpoint should return 200."""
        response = test_client.get("/")
        assert response.status_code == 200

    def test_root_returns_status(self, test_client):
        """Root endpoint should return status field."""
        data = test_client.get("/").json()
        assert data["status"] == "ok"

    def test_root_returns_service_name(self, test_client):
        """Root endpoint should return service name."""
        data = test_client.get("/").json()
        assert "Haunted Places" in data["service"]


class TestHealthEndpoint:
    """Test /health, which needs no admin key."""

    def test_health_matches_root(self, test_client):
        assert test_client.get("/health").json() == test_client.get("/").json()

    def test_health_reports_version(self, test_client):
        data = test_client.get("/health").json()
        assert data["version"] == "1.0.0"
        assert "commit" in data
