import pytest


@pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
def test_health(api_client, path):
    response = api_client.get(path)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "ok"
    assert body["service"] == "fitbook-api"
    assert body["environment"] == "test"


def test_unknown_route_uses_problem_details(api_client):
    response = api_client.get("/api/v1/nowhere")
    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["title"] == "Not Found"


def test_prometheus_scrape_exposes_service_operations(api_client, trainer, client_headers):
    api_client.get(
        f"/api/v1/trainers/{trainer.id}/available-slots",
        params={"date": "2024-07-01"},
        headers=client_headers,
    )

    response = api_client.get("/metrics/prometheus")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "fitbook_service_operations_total" in response.text
    assert 'operation="get_available_slots"' in response.text
