from abc import ABC, abstractmethod
from contextlib import nullcontext
from datetime import timedelta
import time
from typing import Any, Awaitable, Callable, ContextManager, Dict, List

import statsd
from statsd.client.timer import Timer
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from app.config import get_config

RELAY_SUCCESS = "relay.success"
RELAY_FAILURE = "relay.failure"
RELAY_DURATION = "relay.duration"
TOKEN_REFRESH = "token.refresh"


class Stats(ABC):
    @abstractmethod
    def timing(self, key: str, value: int) -> None: ...

    @abstractmethod
    def inc(self, key: str, count: int = 1) -> None: ...

    @abstractmethod
    def timer(self, key: str) -> ContextManager[Any]: ...


class NoopStats(Stats):
    """Used whenever stats are disabled"""

    def timing(self, key: str, value: int) -> None:
        pass

    def inc(self, key: str, count: int = 1) -> None:
        pass

    def timer(self, key: str) -> ContextManager[Any]:
        return nullcontext()


class MemoryClient:
    """
    In-process stand-in for a statsd client, used when stats are enabled without a host.
    Counters and timings are kept apart but read back as one mapping.
    """

    def __init__(self) -> None:
        self.counters: Dict[str, int] = {}
        self.timings: Dict[str, List[float]] = {}

    def timer(self, stat: str, rate: float = 1) -> Timer:
        return Timer(self, stat, rate)

    def timing(self, stat: str, delta: timedelta | float, rate: float = 1) -> None:
        if isinstance(delta, timedelta):
            delta = delta.total_seconds() * 1000.0
        self.timings.setdefault(stat, []).append(delta)

    def incr(self, stat: str, count: int = 1, rate: float = 1) -> None:
        self.counters[stat] = self.counters.get(stat, 0) + count

    def get_memory(self) -> Dict[str, Any]:
        return {**self.timings, **self.counters}


class Statsd(Stats):
    def __init__(self, client: statsd.StatsClient | MemoryClient):
        self.client = client

    def timing(self, key: str, value: int) -> None:
        self.client.timing(key, value)

    def inc(self, key: str, count: int = 1) -> None:
        self.client.incr(key, count)

    def timer(self, key: str) -> ContextManager[Any]:
        return self.client.timer(key)


_STATS: Stats = NoopStats()


def setup_stats() -> None:
    config = get_config()
    if not config.stats.enabled:
        return

    client: statsd.StatsClient | MemoryClient
    if config.stats.host:
        client = statsd.StatsClient(
            config.stats.host,
            config.stats.port or 8125,
            prefix=config.stats.module_name,
        )
    else:
        client = MemoryClient()

    global _STATS
    _STATS = Statsd(client)


def reset_stats() -> None:
    global _STATS
    _STATS = NoopStats()


def get_stats() -> Stats:
    return _STATS


class StatsdMiddleware(BaseHTTPMiddleware):
    """
    Counts every request per method and per response status, and records the response time
    """

    def __init__(self, app: ASGIApp, module_name: str):
        super().__init__(app)
        self.module_name = module_name

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        stats = get_stats()
        stats.inc(f"{self.module_name}.http.request.{request.method.lower()}")

        start_time = time.monotonic()
        response = await call_next(request)
        response_time = int((time.monotonic() - start_time) * 1000)

        stats.inc(f"{self.module_name}.http.status.{response.status_code}")
        stats.timing(f"{self.module_name}.http.response_time", response_time)
        return response
