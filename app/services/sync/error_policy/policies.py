import logging

from app.models.sync.dto import RelayEnvelope, RequestContext, ResponseContext
from app.services.sync.error_policy.error_policy import AdapterErrorPolicy

logger = logging.getLogger(__name__)

SYNC_STATUS_HEADER = "X-Remote-Sync"


class AcceptOnErrorPolicy(AdapterErrorPolicy):
    """
    Keeps the request successful, the resource stays marked as not relayed.
    """
    def handle_adapter_error(
        self, envelope: RelayEnvelope, request: RequestContext, response: ResponseContext
    ) -> bool:
        logger.warning(
            f"{envelope.resource_type}/{envelope.resource_id} stored locally but not relayed to the remote system"
        )
        return True


class RejectOnErrorPolicy(AdapterErrorPolicy):
    def handle_adapter_error(
        self, envelope: RelayEnvelope, request: RequestContext, response: ResponseContext
    ) -> bool:
        logger.error(
            f"Rejecting request, {envelope.resource_type}/{envelope.resource_id} could not be relayed"
        )
        return False


class FlagOnErrorPolicy(AdapterErrorPolicy):
    """
    Keeps the request successful but tells the caller through a response header that the
    remote copy is out of date.
    """
    def handle_adapter_error(
        self, envelope: RelayEnvelope, request: RequestContext, response: ResponseContext
    ) -> bool:
        response.headers[SYNC_STATUS_HEADER] = "failed"
        return True
