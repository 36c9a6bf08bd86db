from fastapi import HTTPException
from typing import Any, Dict
import logging
from requests import JSONDecodeError, Response

from app.models.sync.dto import ResponseContext
from app.services.api.api_service import GATEWAY_STATUSES, HttpService
from app.services.api.authenticators.authenticator import Authenticator
from app.services.fhir.utils import get_first_entry_resource
from app.services.sync.loop_guard import guard_headers

ERR_MSG_FORMAT = "FHIR API error: {}"
logger = logging.getLogger(__name__)


class FhirApi(HttpService):
    """
    Client for the local FHIR server that actually stores the resources.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int,
        backoff: float,
        retries: int,
        auth: Authenticator | None = None,
    ):
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            backoff=backoff,
            retries=retries,
            authenticator=auth,
            retry_statuses=GATEWAY_STATUSES,
        )

    def create_resource(
        self, resource_type: str, resource: Dict[str, Any], headers: Dict[str, str]
    ) -> ResponseContext:
        response = self.do_request(
            "POST", sub_route=resource_type, json=resource, headers=headers
        )
        return self.__to_response_context(response)

    def update_resource(
        self,
        resource_type: str,
        resource_id: str,
        resource: Dict[str, Any],
        headers: Dict[str, str],
    ) -> ResponseContext:
        response = self.do_request(
            "PUT",
            sub_route=f"{resource_type}/{resource_id}",
            json=resource,
            headers=headers,
        )
        return self.__to_response_context(response)

    def read_resource(
        self, resource_type: str, resource_id: str, headers: Dict[str, str]
    ) -> ResponseContext:
        response = self.do_request(
            "GET", sub_route=f"{resource_type}/{resource_id}", headers=headers
        )
        return self.__to_response_context(response)

    def search_resource(
        self, resource_type: str, params: Dict[str, Any], headers: Dict[str, str]
    ) -> ResponseContext:
        response = self.do_request(
            "GET", sub_route=resource_type, params=params, headers=headers
        )
        return self.__to_response_context(response)

    def delete_resource(
        self, resource_type: str, resource_id: str, headers: Dict[str, str]
    ) -> ResponseContext:
        response = self.do_request(
            "DELETE", sub_route=f"{resource_type}/{resource_id}", headers=headers
        )
        return self.__to_response_context(response)

    def find_resource_by_id(
        self, resource_type: str, resource_id: str, authorization: str | None
    ) -> Dict[str, Any] | None:
        """
        Internal lookup of the current server side copy of a resource. The call carries
        the loop guard header so it never triggers synchronization itself.
        """
        headers = guard_headers({"Authorization": authorization} if authorization else None)
        context = self.search_resource(resource_type, {"_id": resource_id}, headers)
        if context.resource is None:
            return None

        return get_first_entry_resource(context.resource)

    def save_as_remote_saved(
        self, resource_type: str, resource: Dict[str, Any], authorization: str | None
    ) -> ResponseContext:
        """
        Internal write that persists a resource without relaying it again.
        """
        headers = guard_headers({"Authorization": authorization} if authorization else None)
        return self.update_resource(resource_type, str(resource["id"]), resource, headers)

    @staticmethod
    def __to_response_context(response: Response) -> ResponseContext:
        body: Dict[str, Any] | None
        try:
            body = response.json() if response.content else None
        except JSONDecodeError:
            logger.warning("Failed to decode JSON response: %s", response.text)
            body = None

        if response.status_code >= 400:
            logger.error(ERR_MSG_FORMAT.format(body or response.text))
            raise HTTPException(status_code=response.status_code, detail=body or response.text)

        return ResponseContext(
            status_code=response.status_code,
            resource=body if isinstance(body, dict) else None,
        )
