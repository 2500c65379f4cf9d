"""Tests for health check endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from voicedesk.main import create_app
from voicedesk.verticals.builtin import BUILTIN_VERTICALS


class TestHealthEndpoints:
    """Tests for /health and /config endpoints."""

    def test_health_basic(self, test_client) -> None:
        """Test GET /health returns 200 with status=healthy."""
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["vertical"] == "sales"
        assert data["active_calls"] == 0

    def test_config_returns_default_vertical(self, test_client) -> None:
        """Test GET /config describes the default vertical."""
        response = test_client.get("/config")

        assert response.status_code == 200
        assert response.json() == {
            "vertical": "sales",
            "name": BUILTIN_VERTICALS["sales"].name,
            "greeting": BUILTIN_VERTICALS["sales"].greeting,
        }

    def test_default_vertical_from_settings(self, settings_factory, fake_stack) -> None:
        """BOT_VERTICAL selects the vertical reported by /health."""
        app = create_app(settings_factory(bot_vertical="support"), services=fake_stack.services)

        with TestClient(app) as client:
            assert client.get("/health").json()["vertical"] == "support"
            assert client.get("/config").json()["greeting"] == BUILTIN_VERTICALS[
                "support"
            ].greeting
