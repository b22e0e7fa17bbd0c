"""
Tests for the health check endpoint.
"""

import json

import pytest
from django.db import DatabaseError

from core.views import health_check


@pytest.mark.django_db
class TestHealthCheck:
    def test_healthy(self, client):
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "cache": "connected",
        }

    def test_cache_down_is_degraded(self, rf, mocker):
        mocker.patch("core.views.cache.get", return_value=None)

        response = health_check(rf.get("/health/"))

        assert response.status_code == 200
        body = json.loads(response.content)
        assert body["status"] == "healthy"
        assert body["cache"] == "disconnected"

    def test_database_down(self, rf, mocker):
        mocker.patch(
            "core.views.connection.cursor", side_effect=DatabaseError("no route")
        )

        response = health_check(rf.get("/health/"))

        assert response.status_code == 503
        body = json.loads(response.content)
        assert body["status"] == "unhealthy"
        assert body["database"] == "disconnected"
