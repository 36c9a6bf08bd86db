from typing import Any

from app.services.api.authenticators.authenticator import Authenticator
from app.services.token.token_store import TokenStore


class SessionTokenAuthenticator(Authenticator):
    """
    Bearer authentication on behalf of a logged in principal. Every header is taken from
    the token store, so an expiring token is refreshed before it is sent.
    """
    def __init__(self, token_store: TokenStore, principal: str) -> None:
        self.__token_store = token_store
        self.__principal = principal

    def get_authentication_header(self) -> str:
        return f"Bearer {self.__token_store.get_current_access_token(self.__principal)}"

    def get_auth(self) -> Any:
        return None
