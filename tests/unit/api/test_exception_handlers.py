"""Tests for the domain-exception to HTTP mapping."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from musiclt.api.exception_handlers import register_exception_handlers
from musiclt.domain.exceptions import (
    AuthenticationError,
    ConcurrentModificationError,
    ConfigurationError,
    EntityNotFoundException,
    ExternalServiceError,
)

FAILURES = {
    "missing": EntityNotFoundException("Artist", "g1"),
    "conflict": ConcurrentModificationError("Artist", "g1"),
    "anonymous": AuthenticationError("Missing bearer token"),
    "unconfigured": ConfigurationError("Translation API key not configured"),
    "upstream": ExternalServiceError("Translation API returned 500"),
    "locked": OperationalError("UPDATE artists", {}, Exception("database is locked")),
    "broken": OperationalError("SELECT 1", {}, Exception("no such table: artists")),
    "bad-value": ValueError("month must be between 1 and 12"),
}


@pytest.fixture
def client() -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/fail/{kind}")
    async def fail(kind: str) -> None:
        raise FAILURES[kind]

    @app.get("/typed/{number}")
    async def typed(number: int) -> dict[str, int]:
        return {"number": number}

    return TestClient(app)


@pytest.mark.parametrize(
    ("kind", "status_code"),
    [
        ("missing", 404),
        ("conflict", 409),
        ("anonymous", 401),
        ("unconfigured", 503),
        ("upstream", 502),
        ("bad-value", 422),
        ("broken", 500),
    ],
)
def test_status_codes(client: TestClient, kind: str, status_code: int) -> None:
    response = client.get(f"/fail/{kind}")

    assert response.status_code == status_code
    assert "detail" in response.json()


def test_domain_message_is_the_detail(client: TestClient) -> None:
    response = client.get("/fail/conflict")

    assert response.json() == {"detail": "Artist with id g1 was modified concurrently"}


def test_unauthenticated_asks_for_bearer(client: TestClient) -> None:
    response = client.get("/fail/anonymous")

    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_locked_database_is_retry_later(client: TestClient) -> None:
    response = client.get("/fail/locked")

    assert response.status_code == 503
    assert response.headers["Retry-After"] == "3"


def test_database_error_text_not_leaked(client: TestClient) -> None:
    response = client.get("/fail/broken")

    assert "no such table" not in response.text


def test_request_validation_is_422_with_error_list(client: TestClient) -> None:
    response = client.get("/typed/not-a-number")

    assert response.status_code == 422
    assert isinstance(response.json()["detail"], list)
