"""
Tests for health endpoints
"""

import pytest
from fastapi import status
from fastapi.testclient import TestClient


class TestHealth:

    @pytest.mark.api
    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "healthy"
        assert response.json()["name"] == "MediTrack"

    @pytest.mark.api
    def test_detailed_checks(self, client: TestClient):
        data = client.get("/health").json()

        assert data["checks"]["database"]["status"] == "up"
        assert data["checks"]["reminders"] == {
            "enabled": False,
            "running": False,
            "interval_seconds": 300,
        }
        assert data["checks"]["llm"]["configured"] is False
        assert "request_count" in data["checks"]["llm"]

    @pytest.mark.api
    def test_unknown_route_uses_error_shape(self, client: TestClient):
        response = client.get("/api/nothing-here")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json() == {"message": "Not Found"}
