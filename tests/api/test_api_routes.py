"""
API-Tests für die Routen (TestClient, ohne Server).

Katalog, LLM-Client und Rate-Limiter werden per dependency_overrides
ersetzt; alles andere läuft echt (Verifikation, Auswahl, Fallbacks).
"""

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.testclient import TestClient
import pytest

from app.api.routes import get_catalog, get_llm_client, get_rate_limiter, router
from app.llm.fake_client import FakeLLMClient
from app.services.catalog.catalog_source import CatalogUnavailableError
from app.services.catalog.in_memory_catalog import InMemoryCatalog
from app.services.rate_limiter import RateLimiter

NOW = datetime(2025, 11, 15, 12, 0, tzinfo=timezone.utc)


class DownCatalog(InMemoryCatalog):
    async def get_user_events(self, user_id, window_days, as_of=None):
        raise CatalogUnavailableError("connection refused")

    async def list_items(self):
        raise CatalogUnavailableError("connection refused")


@pytest.fixture
def limiter():
    return RateLimiter(max_calls_per_day=10, enabled=False)


@pytest.fixture
def app(limiter):
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_catalog] = lambda: InMemoryCatalog(clock=lambda: NOW)
    app.dependency_overrides[get_llm_client] = lambda: FakeLLMClient()
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


def _verify_body(*texts, **claims):
    return {
        "context": {
            "user_id": "user_001",
            "now": "2025-11-15T12:00:00Z",
            "channel": "PUSH",
            "locale": "en-US",
            "constraints": {"max_len": 90, "no_url": True},
        },
        "candidates": [{"text": t, "claims": claims} for t in texts],
    }


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_verify_returns_one_result_per_candidate(client):
    body = _verify_body(
        "Your Sony camera is still in your cart",
        "Shop at https://example.com",
        referenced_item_ids=["v1|itm|camera_sony_a7iv"],
        referenced_events=["recent_add_to_cart"],
    )

    resp = client.post("/verify", json=body)

    assert resp.status_code == 200
    results = resp.json()["results"]
    assert [r["verdict"] for r in results] == ["ALLOW", "REJECT"]
    assert results[1]["scores"]["compliance"] == 0.0
    assert results[1]["auto_fix"]["remove_urls"] is True
    assert results[0]["audit"]["policy_version"]
    assert results[0]["candidate"]["text"] == "Your Sony camera is still in your cart"


def test_verify_rejects_invalid_request(client):
    body = _verify_body("hello there friend")
    body["context"]["constraints"]["max_len"] = 0

    assert client.post("/verify", json=body).status_code == 422


def test_verify_catalog_down_is_503(app, client):
    app.dependency_overrides[get_catalog] = lambda: DownCatalog()
    body = _verify_body("Still thinking about it?", referenced_events=["recent_view"])

    resp = client.post("/verify", json=body)

    assert resp.status_code == 503
    assert "Catalog unavailable" in resp.json()["detail"]


def test_generate_success_records_call(app, client):
    limiter = RateLimiter(max_calls_per_day=2, enabled=True)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter

    resp = client.post("/generate", json={"user_id": "user_001", "channel": "PUSH"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["channel"] == "PUSH"
    assert data["message"]
    assert limiter.status().call_count == 1


def test_generate_over_limit_is_429(app, client):
    app.dependency_overrides[get_rate_limiter] = lambda: RateLimiter(max_calls_per_day=0, enabled=True)

    resp = client.post("/generate", json={"user_id": "user_001", "channel": "EMAIL"})

    assert resp.status_code == 429
    detail = resp.json()["detail"]
    assert detail["remaining"] == 0
    assert detail["reset_at"] is not None


def test_generate_failure_does_not_count(app, client):
    limiter = RateLimiter(max_calls_per_day=2, enabled=True)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_llm_client] = lambda: FakeLLMClient(response="not json")

    resp = client.post("/generate", json={"user_id": "user_001", "channel": "PUSH"})

    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert resp.json()["error"] == "LLM failed to generate candidates"
    assert limiter.status().call_count == 0


def test_push_generate(client):
    resp = client.post("/push/generate", json={"user_id": "user_001"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["type"] == "PUSH"
    assert data["main_text"] == "Your next favorite gear is waiting. Take a look today!"
    assert data["verification"]["verdict"] == "ALLOW"
    assert data["attribution"]["channel"] == "PUSH"


def test_push_generate_falls_back_on_broken_llm(app, client):
    app.dependency_overrides[get_llm_client] = lambda: FakeLLMClient(response="{broken")

    resp = client.post("/push/generate", json={"user_id": "user_001"})

    assert resp.status_code == 200
    assert resp.json()["main_text"] == "Hot deals are waiting for you!"
    assert resp.json()["attribution"]["model"] == "fallback"


def test_email_generate(client):
    resp = client.post("/email/generate", json={"user_id": "user_002"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["type"] == "EMAIL"
    assert data["subject"] == "Picked for you this week"
    assert data["verification"]["verdict"] == "ALLOW"


def test_user_profile(client):
    resp = client.get("/users/user_001/profile")

    assert resp.status_code == 200
    data = resp.json()
    assert data["user_id"] == "user_001"
    assert data["signals"]["recent_view"] == 3
    assert len(data["recent_events"]) == 4
    assert 0 < len(data["recommended_items"]) <= 5


def test_user_profile_catalog_down(app, client):
    app.dependency_overrides[get_catalog] = lambda: DownCatalog()
    assert client.get("/users/user_001/profile").status_code == 503


def test_rate_limit_status(client):
    resp = client.get("/rate-limit/status")

    assert resp.status_code == 200
    data = resp.json()
    assert data["allowed"] is True
    assert data["enabled"] is False
    assert data["reset_at"] is None


def test_generate_second_call_over_limit_is_429(app, client):
    limiter = RateLimiter(max_calls_per_day=1, enabled=True)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter

    first = client.post("/generate", json={"user_id": "user_001", "channel": "PUSH"})
    second = client.post("/generate", json={"user_id": "user_001", "channel": "PUSH"})

    assert first.status_code == 200
    assert second.status_code == 429
    assert limiter.status().call_count == 1


def test_generate_catalog_down_releases_slot(app, client):
    limiter = RateLimiter(max_calls_per_day=1, enabled=True)
    app.dependency_overrides[get_rate_limiter] = lambda: limiter
    app.dependency_overrides[get_catalog] = lambda: DownCatalog()

    resp = client.post("/generate", json={"user_id": "user_001", "channel": "PUSH"})

    assert resp.status_code == 503
    assert limiter.status().call_count == 0
