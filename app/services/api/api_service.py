from abc import ABC
import logging
import time
from typing import Any, Collection, Dict

from requests import Response, request
from requests.exceptions import ConnectionError, RequestException, Timeout
from yarl import URL

from app.exceptions import TransportError
from app.services.api.authenticators.authenticator import Authenticator

logger = logging.getLogger(__name__)

# Answers of an overloaded or restarting upstream, worth another attempt
GATEWAY_STATUSES = frozenset({502, 503, 504})


class HttpService(ABC):
    """
    Base class for the outbound HTTP clients of the gateway.

    Every call is attempted at most `retries` times. Connection errors and timeouts are
    retried with an exponential backoff, and so are the status codes in `retry_statuses`.
    When all attempts fail on the network a TransportError is raised. When the last
    attempt returns a retryable status, that response is returned to the caller.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int,
        retries: int,
        backoff: float,
        authenticator: Authenticator | None = None,
        retry_statuses: Collection[int] = (),
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.authenticator = authenticator
        self.__timeout = timeout
        self.__retries = max(1, retries)
        self.__backoff = backoff
        self.__retry_statuses = frozenset(retry_statuses)

    def do_request(
        self,
        method: str,
        sub_route: str | None = None,
        json: Dict[str, Any] | None = None,
        data: Dict[str, Any] | str | None = None,
        params: Dict[str, Any] | None = None,
        headers: Dict[str, str] | None = None,
    ) -> Response:
        """
        Perform an HTTP request. Extra headers override the default ones.
        """
        request_headers = {**self.make_headers(), **(headers or {})}
        url = str(self.make_target_url(sub_route, params))
        auth = self.authenticator.get_auth() if self.authenticator else None

        for attempt in range(1, self.__retries + 1):
            last_attempt = attempt == self.__retries
            try:
                logger.info(f"HTTP {method} {url} (attempt {attempt}/{self.__retries})")
                response = request(
                    method=method,
                    url=url,
                    headers=request_headers,
                    timeout=self.__timeout,
                    json=json,
                    data=data,
                    auth=auth,
                )
            except (ConnectionError, Timeout) as e:
                logger.warning(f"HTTP {method} {url} failed: {e}")
            except RequestException as e:
                # Never retried
                logger.error(f"HTTP {method} {url} failed: {e}")
                raise TransportError(f"Failed to make request to {url}: {e}") from e
            else:
                if last_attempt or response.status_code not in self.__retry_statuses:
                    return response
                logger.warning(f"HTTP {method} {url} answered {response.status_code}")

            if not last_attempt:
                self.__wait(attempt)

        logger.error(f"Giving up on {method} {url} after {self.__retries} attempts")
        raise TransportError(f"Failed to make request to {url} after {self.__retries} attempts")

    def make_headers(self) -> Dict[str, str]:
        # application/json unless a call overrides it
        headers = {"Content-Type": "application/json"}
        if self.authenticator is None:
            return headers

        header = self.authenticator.get_authentication_header()
        if header:
            headers["Authorization"] = header
        return headers

    def make_target_url(
        self, sub_route: str | None = None, params: Dict[str, Any] | None = None
    ) -> URL:
        target = URL(self.base_url)
        if sub_route:
            target = URL(f"{self.base_url}/{sub_route.lstrip('/')}")

        return target.with_query(params) if params else target

    def __wait(self, attempt: int) -> None:
        delay = self.__backoff * (2 ** (attempt - 1))
        if delay > 0:
            logger.info(f"Retrying in {delay} seconds")
            time.sleep(delay)
