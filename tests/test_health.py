import pytest


@pytest.mark.asyncio
async def test_health_endpoint():
    """Health endpoint answers without touching the database"""
    from tableside.main import app
    from fastapi.testclient import TestClient

    client = TestClient(app)
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["app_name"] == "Tableside POS Order Service"
