"""Unit tests for Prometheus metrics endpoint."""

from fastapi.testclient import TestClient


def test_metrics_endpoint_returns_text() -> None:
    from ppdo.main import create_app

    client = TestClient(create_app())
    response = client.get("/metrics")

    assert response.status_code == 200
    assert "search_queries_total" in response.text
    assert "search_index_writes_total" in response.text
