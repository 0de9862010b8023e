from unittest.mock import patch

import pytest

pytestmark = pytest.mark.integration


class TestHealthCheck:
    def test_health_check_returns_200(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "timestamp" in data
        assert "services" in data

    def test_health_check_reports_database_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["database"]["status"] == "up"
        assert "response_time_ms" in data["services"]["database"]

    def test_health_check_reports_cache_status(self, client):
        response = client.get("/health")
        data = response.json()
        assert data["services"]["cache"]["status"] == "up"
        assert "response_time_ms" in data["services"]["cache"]

    def test_health_check_reports_cache_outage(self, client):
        with patch("modules.core.views.cache") as broken_cache:
            broken_cache.set.side_effect = ConnectionError("redis down")
            response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["services"]["cache"]["status"] == "down"

    def test_health_check_reports_missing_signing_key(self, client, settings):
        settings.JWT_SIGNING_KEY = ""
        response = client.get("/health")
        assert response.status_code == 503
        data = response.json()
        assert data["services"]["tokens"]["status"] == "down"
        assert data["services"]["database"]["status"] == "up"
