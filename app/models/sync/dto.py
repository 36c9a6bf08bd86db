from enum import Enum
from typing import Any, Dict, Mapping

from pydantic import BaseModel, Field, computed_field
from starlette.datastructures import Headers

RESOURCE_BEFORE_UPDATE = "resource_before_update"


class RestOperationType(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    READ = "read"
    SEARCH = "search"
    DELETE = "delete"
    OTHER = "other"

    @property
    def is_write(self) -> bool:
        return self in (RestOperationType.CREATE, RestOperationType.UPDATE)


class RuleSet(str, Enum):
    ALLOW_ALL = "allow_all"
    DENY_ALL = "deny_all"


class RelayEnvelope(BaseModel):
    resource_type: str
    resource_id: str
    resource_body: str
    client_id: str
    client_resource_id: str | None = None
    base_url: str

    @computed_field
    def relay_path(self) -> str:
        return f"remote-fhir-express/{self.client_id}/{self.client_resource_id}/{self.resource_type}/{self.resource_id}"


class RequestContext:
    """
    Everything the sync pipeline needs to know about a single inbound request. It is
    passed explicitly through every phase instead of being looked up from global state.
    """

    def __init__(
        self,
        operation: RestOperationType,
        resource_type: str,
        headers: Mapping[str, str],
        resource_id: str | None = None,
        resource: Dict[str, Any] | None = None,
        principal: str | None = None,
    ) -> None:
        self.operation = operation
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.headers = Headers(headers=dict(headers))
        self.resource = resource
        self.principal = principal
        self.user_data: Dict[str, Any] = {}

    @property
    def authorization(self) -> str | None:
        return self.headers.get("Authorization")


class ResponseContext(BaseModel):
    status_code: int
    resource: Dict[str, Any] | None = None
    saved_in_remote: bool = False
    headers: Dict[str, str] = Field(default_factory=dict)


class WriteOutcome(BaseModel):
    response: ResponseContext
    # False when the error policy decided the caller must see the failed relay
    proceed: bool = True
