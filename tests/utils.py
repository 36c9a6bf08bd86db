import json
from typing import Any, Dict, List, Tuple
from unittest.mock import MagicMock

from requests.exceptions import ConnectionError


def make_response(status_code: int, body: Any = None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body
    response.content = json.dumps(body).encode() if body is not None else b""
    response.text = json.dumps(body) if body is not None else ""
    return response


class FakeServer:
    """
    Stand-in for requests.request that answers per (method, url). Unknown routes behave
    like an unreachable host.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], MagicMock] = {}
        self.calls: List[Dict[str, Any]] = []

    def add(self, method: str, url: str, status_code: int, body: Any = None) -> None:
        self.routes[(method, url)] = make_response(status_code, body)

    def calls_to(self, method: str, url: str) -> List[Dict[str, Any]]:
        return [c for c in self.calls if c["method"] == method and c["url"] == url]

    def __call__(self, **kwargs: Any) -> MagicMock:
        self.calls.append(kwargs)
        key = (kwargs["method"], kwargs["url"])
        if key not in self.routes:
            raise ConnectionError(f"No route for {key}")
        return self.routes[key]
