import logging
from typing import Callable

from pydantic import BaseModel

from app.exceptions import AdapterUnauthorizedError, AdapterUnavailableError
from app.models.sync.dto import RequestContext
from app.services.sync.loop_guard import should_skip

logger = logging.getLogger(__name__)


class SyncFlags(BaseModel):
    check_if_authorized_by_adapter: bool = False
    check_if_adapter_is_running: bool = False
    store_resource_before_update: bool = False


class AuthorizationPreCheck:
    """
    Runs before a write reaches the local FHIR server and aborts it when the adapter
    would not be able to accept the relayed resource afterwards.
    """

    def __init__(
        self,
        flags: SyncFlags,
        is_authorized_by_adapter: Callable[[str | None], bool],
        is_adapter_running: Callable[[], bool],
    ) -> None:
        self.__flags = flags
        self.__is_authorized_by_adapter = is_authorized_by_adapter
        self.__is_adapter_running = is_adapter_running

    def incoming_request_post_processed(self, context: RequestContext) -> bool:
        if should_skip(context.headers):
            return True

        if not context.operation.is_write:
            return True

        if self.__flags.check_if_authorized_by_adapter:
            if self.__is_authorized_by_adapter(context.authorization):
                return True
            logger.error(
                f"{context.operation.value} of {context.resource_type} refused, adapter did not authorize the request"
            )
            raise AdapterUnauthorizedError()

        if self.__flags.check_if_adapter_is_running:
            if self.__is_adapter_running():
                return True
            logger.error(
                f"{context.operation.value} of {context.resource_type} refused, adapter is not running"
            )
            raise AdapterUnavailableError()

        return True
