import copy
from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any, Dict
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient
import inject
import pytest

from app.application import create_fastapi_app
from app.config import Config, reset_config, set_config
from app.models.token.dto import TokenPair
from tests.test_config import get_test_config
from tests.utils import FakeServer

PATCHED_REQUEST = "app.services.api.api_service.request"

patient = {
    "resourceType": "Patient",
    "id": "p1",
    "name": [{"family": "Moyo", "given": ["Tendai"]}],
    "gender": "female",
}


@pytest.fixture
def test_config() -> Config:
    return get_test_config()


@pytest.fixture
def fastapi_app(test_config: Config) -> Generator[FastAPI, None, None]:
    set_config(test_config)
    app = create_fastapi_app()
    yield app
    inject.clear()
    reset_config()


@pytest.fixture
def api_client(fastapi_app: FastAPI) -> TestClient:
    return TestClient(fastapi_app)


@pytest.fixture
def fake_server() -> Generator[FakeServer, None, None]:
    server = FakeServer()
    with patch(PATCHED_REQUEST, side_effect=server):
        yield server


@pytest.fixture
def mock_patient() -> Dict[str, Any]:
    return copy.deepcopy(patient)


@pytest.fixture
def issued_at() -> datetime:
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def token_pair(issued_at: datetime) -> TokenPair:
    return TokenPair(
        access_token="access-1",
        refresh_token="refresh-1",
        token_type="bearer",
        scope="ALL",
        issued_at=issued_at,
        expires_in=300,
    )


@pytest.fixture
def token_response() -> Dict[str, Any]:
    return {
        "access_token": "access-1",
        "refresh_token": "refresh-1",
        "token_type": "bearer",
        "scope": "ALL",
        "expires_in": 300,
    }
