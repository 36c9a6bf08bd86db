from typing import Any, Dict

import pytest

from app.models.sync.dto import RequestContext, RestOperationType


def make_context(
    operation: RestOperationType,
    resource: Dict[str, Any] | None = None,
    headers: Dict[str, str] | None = None,
    resource_id: str | None = "p1",
) -> RequestContext:
    return RequestContext(
        operation=operation,
        resource_type="Patient",
        resource_id=resource_id,
        headers=headers if headers is not None else {"Authorization": "Bearer abc"},
        resource=resource,
    )


@pytest.fixture()
def guarded_headers() -> Dict[str, str]:
    return {"Authorization": "Bearer abc", "x-sync-hint": "no-remote-save"}
