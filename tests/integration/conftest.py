"""Fixtures for API tests: the real app on a throwaway SQLite file."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from musiclt.config import Settings
from musiclt.infrastructure.persistence import DatabaseLockMetrics
from musiclt.main import create_app

ADMIN_TOKEN = "admin-token"
USER_TOKEN = "user-token"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database={
            "url": f"sqlite+aiosqlite:///{tmp_path}/api.db",
            "lock_retry_base_delay": 0,
        },
        auth={"api_tokens": {ADMIN_TOKEN: "admin", USER_TOKEN: "user"}},
        translation={"api_key": ""},
    )


# Hey future me - entering the TestClient context runs the lifespan, which creates the
# tables. Without the `with` every route would 503 on "Database not initialized".
@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    DatabaseLockMetrics.get_instance().reset()
    with TestClient(create_app(settings)) as test_client:
        yield test_client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {USER_TOKEN}"}
