from abc import ABC, abstractmethod

from app.models.sync.dto import RelayEnvelope, RequestContext, ResponseContext


class AdapterErrorPolicy(ABC):
    """
    Decides the outcome of a request whose resource could not be relayed to the adapter.
    """

    @abstractmethod
    def handle_adapter_error(
        self,
        envelope: RelayEnvelope,
        request: RequestContext,
        response: ResponseContext,
    ) -> bool:
        """
        Returns True when the request should still be treated as successful by the caller,
        False when the caller must be told the synchronization failed.
        """
        ...
