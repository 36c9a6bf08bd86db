from collections.abc import Generator
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.config import Config, reset_config, set_config
from app.models.sync.dto import ResponseContext, RestOperationType
from app.services.api.adapter_api import AdapterApi
from app.services.sync.error_policy.error_policy import AdapterErrorPolicy
from app.services.sync.relay_dispatcher import RelayDispatcher, RelayEnvelopeFactory
from app.stats import (
    RELAY_DURATION,
    RELAY_SUCCESS,
    MemoryClient,
    NoopStats,
    Statsd,
    StatsdMiddleware,
    get_stats,
    reset_stats,
    setup_stats,
)
from tests.services.sync.conftest import make_context


@pytest.fixture
def memory_client() -> MemoryClient:
    return MemoryClient()


@pytest.fixture
def stats_config(test_config: Config) -> Generator[Config, None, None]:
    test_config.stats.enabled = True
    test_config.stats.host = None
    test_config.stats.port = None
    test_config.stats.module_name = "test_module"
    set_config(test_config)
    yield test_config
    reset_stats()
    reset_config()


def test_memory_client_timing(memory_client: MemoryClient) -> None:
    memory_client.timing("test.timing", 500)
    memory = memory_client.get_memory()
    assert memory["test.timing"] == [500]


def test_memory_client_incr(memory_client: MemoryClient) -> None:
    memory_client.incr("relay.success")
    memory_client.incr("relay.success")
    assert memory_client.get_memory() == {"relay.success": 2}


def test_stats_are_noop_when_disabled(test_config: Config) -> None:
    reset_stats()
    set_config(test_config)
    setup_stats()

    assert isinstance(get_stats(), NoopStats)
    reset_config()


def test_statsd_middleware(stats_config: Config) -> None:
    app = FastAPI()

    @app.get("/test")
    async def test_endpoint() -> dict[str, str]:
        return {"message": "ok"}

    app.add_middleware(StatsdMiddleware, module_name="test_module")
    setup_stats()
    client = TestClient(app)

    response = client.get("/test")
    assert response.status_code == 200

    stats = get_stats()
    assert isinstance(stats, Statsd)
    assert isinstance(stats.client, MemoryClient)
    memory = stats.client.get_memory()
    assert memory["test_module.http.request.get"] == 1
    assert memory["test_module.http.status.200"] == 1
    assert len(memory["test_module.http.response_time"]) == 1


def test_relay_is_counted_and_timed(stats_config: Config, mock_patient: Dict[str, Any]) -> None:
    setup_stats()
    dispatcher = RelayDispatcher(
        MagicMock(spec=AdapterApi),
        RelayEnvelopeFactory("http://adapter.test", "client-1", "X-Client-Resource-Id"),
        MagicMock(spec=AdapterErrorPolicy),
    )
    request = make_context(
        RestOperationType.CREATE, headers={"Authorization": "Bearer abc", "X-Client-Resource-Id": "cr-9"}
    )

    dispatcher.outgoing_response(request, ResponseContext(status_code=201, resource=mock_patient))

    stats = get_stats()
    assert isinstance(stats, Statsd)
    memory = stats.client.get_memory()
    assert memory[RELAY_SUCCESS] == 1
    assert len(memory[RELAY_DURATION]) == 1
