import base64
from typing import Any
from app.services.api.authenticators.authenticator import Authenticator


class BasicAuthenticator(Authenticator):
    """
    Client credentials sent as HTTP basic authentication, as required by the DHIS2 token endpoint.
    """
    def __init__(self, client_id: str, client_secret: str) -> None:
        self.__client_id = client_id
        self.__client_secret = client_secret

    def get_authentication_header(self) -> str:
        credentials = f"{self.__client_id}:{self.__client_secret}".encode("utf-8")
        return f"Basic {base64.b64encode(credentials).decode('ascii')}"

    def get_auth(self) -> Any:
        return None
