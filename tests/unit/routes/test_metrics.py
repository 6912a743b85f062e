"""
Unit tests for metrics endpoint.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from venue_booking.main import app
from venue_booking.metrics import (
    bookings_created,
    gateway_latency,
    gateway_requests,
    ledger_duration,
    payments_registered,
)


@pytest.fixture
def client() -> TestClient:
    """FastAPI test client."""
    return TestClient(app)


@pytest.mark.unit
def test_metrics_endpoint_returns_prometheus_format(client: TestClient) -> None:
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "text/plain" in response.headers["content-type"]


@pytest.mark.unit
def test_metrics_endpoint_contains_booking_metrics(client: TestClient) -> None:
    bookings_created.labels(channel="guest", status="pending").inc()
    payments_registered.labels(payment_method="cash").inc()
    ledger_duration.labels(operation="add_payment").observe(0.02)
    gateway_requests.labels(operation="create_checkout", status_code="200").inc()
    gateway_latency.labels(operation="create_checkout").observe(0.4)

    content = client.get("/metrics").text

    assert "venue_bookings_created_total" in content
    assert "venue_payments_registered_total" in content
    assert "venue_ledger_unit_of_work_seconds" in content
    assert "venue_gateway_requests_total" in content
    assert "venue_gateway_latency_seconds" in content


@pytest.mark.unit
def test_metrics_include_help_and_type_metadata(client: TestClient) -> None:
    content = client.get("/metrics").text

    assert "# HELP venue_payments_registered_total" in content
    assert "# TYPE venue_payments_registered_total counter" in content
