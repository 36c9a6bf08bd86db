import logging

from app.exceptions import RelayError, TransportError
from app.models.sync.dto import RelayEnvelope
from app.services.api.api_service import HttpService

logger = logging.getLogger(__name__)


class AdapterApi(HttpService):
    """
    Client for the FHIR adapter that forwards resources to DHIS2.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int,
        liveness_path: str,
        authorization_path: str,
    ) -> None:
        # Relays are never retried, a failure is handed to the error policy instead
        super().__init__(base_url=base_url, timeout=timeout, retries=1, backoff=0)
        self.__liveness_path = liveness_path
        self.__authorization_path = authorization_path

    def relay(self, envelope: RelayEnvelope, authorization: str | None) -> None:
        """
        POST the serialized resource to the adapter. Raises a RelayError for any non 2xx answer.
        """
        headers = {"Content-Type": "application/json"}
        if authorization:
            headers["Authorization"] = authorization

        response = self.do_request(
            "POST",
            sub_route=envelope.relay_path,
            data=envelope.resource_body,
            headers=headers,
        )
        if not 200 <= response.status_code < 300:
            raise RelayError(
                f"Adapter responded with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )

    def is_adapter_running(self) -> bool:
        try:
            response = self.do_request("GET", sub_route=self.__liveness_path)
        except TransportError:
            logger.warning("Adapter liveness check failed")
            return False

        return 200 <= response.status_code < 300

    def is_authorized_by_adapter(self, authorization: str | None) -> bool:
        if not authorization:
            return False

        try:
            response = self.do_request(
                "GET",
                sub_route=self.__authorization_path,
                headers={"Authorization": authorization},
            )
        except TransportError:
            logger.warning("Adapter authorization check failed")
            return False

        return 200 <= response.status_code < 300
