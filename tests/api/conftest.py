"""API test fixtures — TestClient over the app wired to the in-memory store."""

import pytest
from starlette.testclient import TestClient

from api.app import create_app


# =============================================================================
# APP & CLIENT FIXTURES
# =============================================================================


@pytest.fixture
def app(services):
    """FastAPI app with middleware, error handlers, and data/actions routes."""
    return create_app(services)


@pytest.fixture
def client(app):
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def fixed_today(monkeypatch, today):
    """Pin the operator's calendar for endpoints that read today's date."""
    monkeypatch.setattr("api.data.today_local", lambda: today)
    monkeypatch.setattr("core.services.dashboard_service.today_local", lambda: today)
    monkeypatch.setattr("core.services.scheduling_service.today_local", lambda: today)
    return today


@pytest.fixture
def act(client):
    """POST an action and return the response."""

    def post(domain: str, action: str, data: dict | None = None):
        return client.post("/api/actions", json={"domain": domain, "action": action, "data": data or {}})

    return post
