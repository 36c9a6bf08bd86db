import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict

from pydantic import ValidationError
from requests import JSONDecodeError, Response

from app.exceptions import IdentityApiError, UnauthorizedError
from app.models.token.dto import TokenPair
from app.services.api.api_service import HttpService
from app.services.api.authenticators.basic_authenticator import BasicAuthenticator

logger = logging.getLogger(__name__)

TOKEN_ROUTE = "uaa/oauth/token"


class IdentityApi(HttpService):
    """
    Performs the OAuth2 password and refresh grants against the DHIS2 identity endpoint.
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        timeout: int,
        retries: int = 1,
        backoff: float = 0.1,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            retries=retries,
            backoff=backoff,
            authenticator=BasicAuthenticator(client_id, client_secret),
        )
        self.__clock = clock or (lambda: datetime.now(timezone.utc))

    def login(self, username: str, password: str) -> TokenPair:
        """
        Exchange username and password for a new token pair. A 400 response from the
        identity endpoint means the credentials were rejected.
        """
        response = self.__post_grant(
            {"grant_type": "password", "username": username, "password": password}
        )
        if response.status_code == 400:
            logger.warning(f"Identity endpoint rejected credentials for user {username}")
            raise UnauthorizedError("Invalid username and/or password")

        return self.__to_token_pair(response)

    def refresh(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new token pair.
        """
        response = self.__post_grant(
            {"grant_type": "refresh_token", "refresh_token": refresh_token}
        )
        return self.__to_token_pair(response)

    def __post_grant(self, form: Dict[str, Any]) -> Response:
        return self.do_request(
            "POST",
            sub_route=TOKEN_ROUTE,
            data=form,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/x-www-form-urlencoded",
            },
        )

    def __to_token_pair(self, response: Response) -> TokenPair:
        if response.status_code >= 300:
            logger.error(
                f"Identity endpoint responded with status {response.status_code}: {response.text}"
            )
            raise IdentityApiError(
                f"Token request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return TokenPair.from_token_response(response.json(), self.__clock())
        except JSONDecodeError:
            logger.error("Failed to decode token response: %s", response.text)
            raise IdentityApiError("Invalid JSON response from token endpoint")
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.error(f"Incomplete token response: {e}")
            raise IdentityApiError(f"Incomplete token response: {e}")
