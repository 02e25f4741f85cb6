import pytest

from mycircle.settings import settings


@pytest.fixture
def admin_token(monkeypatch):
    monkeypatch.setattr(settings, "obs_admin_token", "ops-secret")
    monkeypatch.setattr(settings, "obs_metrics_public", False)
    return "ops-secret"


@pytest.mark.asyncio
async def test_liveness(api_client):
    response = await api_client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_metrics_require_admin_token(api_client, admin_token):
    denied = await api_client.get("/metrics")
    assert denied.status_code == 403

    allowed = await api_client.get("/metrics", headers={"X-Admin-Token": admin_token})
    assert allowed.status_code == 200
    assert "mycircle_" in allowed.text


@pytest.mark.asyncio
async def test_metrics_can_be_public(api_client, monkeypatch):
    monkeypatch.setattr(settings, "obs_metrics_public", True)
    response = await api_client.get("/metrics")
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_manual_expiry_sweep(world, api_client, admin_token):
    await world.contacts.create_request("bob", "post-bike")

    response = await api_client.post("/ops/contacts/expire", headers={"Authorization": f"Bearer {admin_token}"})

    assert response.status_code == 200
    assert response.json() == {"expired": 0}
