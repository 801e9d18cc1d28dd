"""Tests for core views."""

import pytest
from django.test import Client


class TestCoreViews:
    """Tests for core application views."""

    @pytest.fixture
    def client(self):
        return Client()

    def test_health_returns_ok(self, client):
        """Health check should return JSON with ok status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
