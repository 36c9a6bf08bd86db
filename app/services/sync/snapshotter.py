import logging
from typing import Any, Callable, Dict

from app.models.sync.dto import RESOURCE_BEFORE_UPDATE, RequestContext, RestOperationType
from app.services.fhir.saved_marker import set_saved_marker
from app.services.sync.loop_guard import should_skip

logger = logging.getLogger(__name__)

ResourceFinder = Callable[[str, str, str | None], Dict[str, Any] | None]


class PreUpdateSnapshotter:
    """
    Prepares a write before it is applied locally: the in-flight resource is marked as
    not yet relayed and, for updates, the current server side copy can be stored in the
    request context so later phases can compare against it.
    """

    def __init__(self, store_resource_before_update: bool, find_resource: ResourceFinder) -> None:
        self.__store_resource_before_update = store_resource_before_update
        self.__find_resource = find_resource

    def incoming_request_pre_handled(self, context: RequestContext) -> None:
        if should_skip(context.headers):
            return

        if context.operation.is_write and context.resource is not None:
            set_saved_marker(context.resource, False)

        if context.operation != RestOperationType.UPDATE or not self.__store_resource_before_update:
            return

        resource_id = context.resource_id or (context.resource or {}).get("id")
        if not resource_id:
            return

        before = self.__find_resource(context.resource_type, str(resource_id), context.authorization)
        if before is None:
            logger.debug(f"No existing {context.resource_type}/{resource_id} to snapshot")
            return

        context.user_data[RESOURCE_BEFORE_UPDATE] = before
