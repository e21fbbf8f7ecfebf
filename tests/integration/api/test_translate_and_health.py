"""Integration tests for translation proxy and health endpoints."""

import pytest
from fastapi.testclient import TestClient

from musiclt.api.dependencies import get_translation_client
from musiclt.domain.ports import ITranslationClient, TranslationResult

pytestmark = pytest.mark.integration


class StubTranslationClient(ITranslationClient):
    """Returns a canned result instead of calling the upstream API."""

    def __init__(self, result: TranslationResult) -> None:
        self.result = result
        self.seen: list[str] = []

    async def translate(self, text: str) -> TranslationResult:
        self.seen.append(text)
        return self.result

    async def close(self) -> None:
        pass


def use_translation(client: TestClient, result: TranslationResult) -> StubTranslationClient:
    stub = StubTranslationClient(result)
    client.app.dependency_overrides[get_translation_client] = lambda: stub
    return stub


def test_translate_success(client: TestClient, admin_headers) -> None:
    stub = use_translation(client, TranslationResult(text="Labas", ok=True))

    response = client.post("/api/translate", json={"text": "Hello"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == {"translated": "Labas", "error": None}
    assert stub.seen == ["Hello"]


def test_translate_upstream_failure_502(client: TestClient, admin_headers) -> None:
    use_translation(client, TranslationResult(text="Hello", ok=False, error="HTTP_529"))

    response = client.post("/api/translate", json={"text": "Hello"}, headers=admin_headers)

    assert response.status_code == 502
    assert response.json() == {"translated": "", "error": "HTTP_529"}


def test_translate_empty_input(client: TestClient, admin_headers) -> None:
    use_translation(client, TranslationResult(text="", ok=False))

    response = client.post("/api/translate", json={"text": ""}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["translated"] == ""


def test_translate_without_api_key_503(client: TestClient, admin_headers) -> None:
    """The real client is wired up; no key configured means 503, not a crash."""
    response = client.post("/api/translate", json={"text": "Hello"}, headers=admin_headers)

    assert response.status_code == 503


def test_translate_requires_admin(client: TestClient, user_headers) -> None:
    response = client.post("/api/translate", json={"text": "Hello"}, headers=user_headers)

    assert response.status_code == 403


def test_health_ok(client: TestClient) -> None:
    response = client.get("/api/health")

    body = response.json()
    assert response.status_code == 200
    assert body["status"] == "healthy"
    assert body["checks"]["database"] == {"status": "ok"}
    assert body["checks"]["translation"] == {"status": "not_configured"}
    assert body["uptime_seconds"] >= 0


def test_db_metrics(client: TestClient, admin_headers) -> None:
    client.post("/api/artists", json={"name": "Jazzu"}, headers=admin_headers)

    response = client.get("/api/health/db-metrics")

    body = response.json()
    assert response.status_code == 200
    assert body["retries"]["successes"] >= 1
    assert body["pool"]["pool_type"] == "sqlite"
