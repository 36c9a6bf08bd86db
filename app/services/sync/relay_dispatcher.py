import json
import logging
from typing import Any, Callable, Dict

from fastapi import HTTPException

from app.exceptions import TransportError, UnauthenticatedError
from app.models.sync.dto import RelayEnvelope, RequestContext, ResponseContext
from app.services.api.adapter_api import AdapterApi
from app.services.api.authenticators.session_token_authenticator import SessionTokenAuthenticator
from app.services.fhir.saved_marker import set_saved_marker
from app.services.sync.error_policy.error_policy import AdapterErrorPolicy
from app.services.sync.loop_guard import should_skip
from app.services.token.token_store import TokenStore
from app.stats import RELAY_DURATION, RELAY_FAILURE, RELAY_SUCCESS, get_stats

logger = logging.getLogger(__name__)

MarkerWriter = Callable[[str, Dict[str, Any], str | None], ResponseContext]


class RelayEnvelopeFactory:
    def __init__(self, base_url: str, client_id: str, client_resource_id_header: str) -> None:
        self.__base_url = base_url.rstrip("/")
        self.__client_id = client_id
        self.__client_resource_id_header = client_resource_id_header

    def create(self, request: RequestContext, response: ResponseContext) -> RelayEnvelope:
        resource = response.resource or {}
        resource_id = resource.get("id") or request.resource_id or ""
        client_resource_id = request.headers.get(self.__client_resource_id_header) or None

        return RelayEnvelope(
            resource_type=str(resource.get("resourceType") or request.resource_type),
            resource_id=str(resource_id),
            resource_body=json.dumps(resource),
            client_id=self.__client_id,
            client_resource_id=client_resource_id,
            base_url=self.__base_url,
        )


class RelayDispatcher:
    """
    Relays a resource to the adapter after the local write has been committed. A failed
    relay never undoes the local write, the error policy decides what the caller sees.
    """

    def __init__(
        self,
        adapter_api: AdapterApi,
        envelope_factory: RelayEnvelopeFactory,
        error_policy: AdapterErrorPolicy,
        marker_writer: MarkerWriter | None = None,
        token_store: TokenStore | None = None,
    ) -> None:
        self.__adapter_api = adapter_api
        self.__envelope_factory = envelope_factory
        self.__error_policy = error_policy
        self.__marker_writer = marker_writer
        self.__token_store = token_store

    def outgoing_response(self, request: RequestContext, response: ResponseContext) -> bool:
        if should_skip(request.headers):
            return True

        if request.operation.is_write:
            return self.save_in_remote_via_adapter(request, response)

        return True

    def save_in_remote_via_adapter(self, request: RequestContext, response: ResponseContext) -> bool:
        if response.resource is None:
            return True

        envelope = self.__envelope_factory.create(request, response)
        if not envelope.client_resource_id or not envelope.resource_id:
            return True

        try:
            with get_stats().timer(RELAY_DURATION):
                self.__adapter_api.relay(envelope, self.__relay_authorization(request))
        except (TransportError, UnauthenticatedError) as e:
            response.saved_in_remote = False
            logger.error(f"Error saving {envelope.resource_type}/{envelope.resource_id} in dhis: {e}")
            get_stats().inc(RELAY_FAILURE)
            return self.__error_policy.handle_adapter_error(envelope, request, response)

        response.saved_in_remote = True
        get_stats().inc(RELAY_SUCCESS)
        self.__save_as_remote_saved(request, response)
        return True

    def __relay_authorization(self, request: RequestContext) -> str | None:
        # Callers without a bearer token of their own relay with their remote session
        if request.authorization or request.principal is None or self.__token_store is None:
            return request.authorization

        return SessionTokenAuthenticator(self.__token_store, request.principal).get_authentication_header()

    def __save_as_remote_saved(self, request: RequestContext, response: ResponseContext) -> None:
        if response.resource is None:
            return

        set_saved_marker(response.resource, True)
        if self.__marker_writer is None or "id" not in response.resource:
            return

        try:
            stored = self.__marker_writer(request.resource_type, response.resource, request.authorization)
        except (TransportError, HTTPException) as e:
            logger.error(f"Failed to store saved marker on {request.resource_type}/{response.resource['id']}: {e}")
            return

        if stored.resource is not None:
            response.resource = stored.resource
