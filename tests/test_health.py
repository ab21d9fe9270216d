#!/usr/bin/env python3
"""
Basic health endpoint and app wiring tests.
"""

import pytest
from fastapi.testclient import TestClient

from petshop.main import create_app


@pytest.fixture
def client(api_session_factory):
    with TestClient(create_app(session_factory=api_session_factory)) as c:
        yield c


def test_health_endpoint(client):
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"ok": True}
    assert len(response.headers["X-Correlation-ID"]) == 8


def test_ready_endpoint(client):
    response = client.get("/readyz")

    assert response.status_code == 200
    data = response.json()
    assert data["db"] == "ok"
    assert "total_unique_errors" in data["errors"]


def test_cors_headers(client):
    response = client.options(
        "/healthz",
        headers={"Origin": "http://localhost:5173", "Access-Control-Request-Method": "GET"},
    )

    assert response.status_code == 200
    assert "access-control-allow-origin" in response.headers


def test_app_startup():
    """The module-level app builds with every router mounted"""
    from petshop.main import app

    route_paths = [route.path for route in app.routes if hasattr(route, 'path')]
    for path in ("/healthz", "/readyz", "/appointments", "/appointments/time-slots/{day}",
                 "/admin/appointments", "/grooming-services", "/members"):
        assert path in route_paths


def test_contact_details_are_masked_in_logs():
    from petshop.core.logging import ContactMaskingProcessor, mask_contact

    event = ContactMaskingProcessor()(None, "info", {
        "event": "appointment_created", "owner_email": "jane@example.com", "owner_phone": "0123456789",
    })

    assert event["owner_email"] == "j***@example.com"
    assert event["owner_phone"] == "******6789"
    assert mask_contact("123") == "123"
