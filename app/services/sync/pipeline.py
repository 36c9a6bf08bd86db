import logging
from typing import Dict

from app.models.sync.dto import RequestContext, ResponseContext, RestOperationType, WriteOutcome
from app.services.api.fhir_api import FhirApi
from app.services.sync.loop_guard import LOOP_GUARD_HEADER
from app.services.sync.pre_check import AuthorizationPreCheck
from app.services.sync.relay_dispatcher import RelayDispatcher
from app.services.sync.snapshotter import PreUpdateSnapshotter

logger = logging.getLogger(__name__)

FORWARDED_HEADERS = ("Authorization", LOOP_GUARD_HEADER)


class SyncPipeline:
    """
    Runs a write request through all sync phases: pre-check, snapshot, the actual write
    on the local FHIR server and finally the relay to the adapter.
    """

    def __init__(
        self,
        fhir_api: FhirApi,
        pre_check: AuthorizationPreCheck,
        snapshotter: PreUpdateSnapshotter,
        relay_dispatcher: RelayDispatcher,
    ) -> None:
        self.__fhir_api = fhir_api
        self.__pre_check = pre_check
        self.__snapshotter = snapshotter
        self.__relay_dispatcher = relay_dispatcher

    def handle_write(self, context: RequestContext) -> WriteOutcome:
        if not context.operation.is_write or context.resource is None:
            raise ValueError(f"Cannot handle {context.operation.value} without a resource as a write")

        self.__pre_check.incoming_request_post_processed(context)
        self.__snapshotter.incoming_request_pre_handled(context)

        response = self.__write_locally(context)
        logger.info(
            f"{context.operation.value} of {context.resource_type} committed locally with status {response.status_code}"
        )

        proceed = self.__relay_dispatcher.outgoing_response(context, response)
        return WriteOutcome(response=response, proceed=proceed)

    def forward(self, context: RequestContext, params: Dict[str, str] | None = None) -> ResponseContext:
        """
        Passes non-write operations to the local FHIR server unchanged.
        """
        headers = self.forwarded_headers(context)
        match context.operation:
            case RestOperationType.READ:
                return self.__fhir_api.read_resource(context.resource_type, str(context.resource_id), headers)
            case RestOperationType.SEARCH:
                return self.__fhir_api.search_resource(context.resource_type, params or {}, headers)
            case RestOperationType.DELETE:
                return self.__fhir_api.delete_resource(context.resource_type, str(context.resource_id), headers)
            case _:
                raise ValueError(f"Operation {context.operation.value} cannot be forwarded")

    def __write_locally(self, context: RequestContext) -> ResponseContext:
        headers = self.forwarded_headers(context)
        resource = context.resource or {}
        if context.operation == RestOperationType.CREATE:
            return self.__fhir_api.create_resource(context.resource_type, resource, headers)

        return self.__fhir_api.update_resource(
            context.resource_type, str(context.resource_id), resource, headers
        )

    @staticmethod
    def forwarded_headers(context: RequestContext) -> Dict[str, str]:
        headers = {}
        for name in FORWARDED_HEADERS:
            value = context.headers.get(name)
            if value is not None:
                headers[name] = value
        return headers
