from typing import Any
from app.services.api.authenticators.authenticator import Authenticator


class NullAuthenticator(Authenticator):
    """
    Adds no credentials of its own. The local FHIR server only sees the Authorization
    header the caller sent, forwarded per request.
    """
    def get_authentication_header(self) -> str:
        return ""

    def get_auth(self) -> Any:
        return None
