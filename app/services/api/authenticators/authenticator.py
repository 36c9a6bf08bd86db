from abc import ABC, abstractmethod
from typing import Any


class Authenticator(ABC):
    """
    Credentials attached to the outbound calls of an HttpService.

    The DHIS2 token endpoint wants the client credentials of the gateway, calls made on
    behalf of a logged in principal carry that principal's bearer token and calls to the
    local FHIR server add nothing at all.
    """

    @abstractmethod
    def get_authentication_header(self) -> str:
        """
        Value for the `Authorization` header, e.g. ``"Bearer <token>"``. An empty
        string leaves the header out.
        """
        ...

    @abstractmethod
    def get_auth(self) -> Any:
        """
        Value passed as ``auth`` to ``requests``, None when the header is enough.
        """
        ...
