class SyncError(Exception):
    """
    Base class for all errors raised while synchronizing resources with the remote system
    """


class TransportError(SyncError):
    """
    Network or IO failure while contacting the adapter, the identity endpoint or the local FHIR server
    """


class IdentityApiError(TransportError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class RelayError(TransportError):
    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(SyncError):
    """
    The identity endpoint rejected the supplied credentials
    """


class UnauthenticatedError(SyncError):
    """
    No token pair is known for the principal, a new login is required
    """


class AdapterAbortError(SyncError):
    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class AdapterUnavailableError(AdapterAbortError):
    def __init__(self, message: str = "Adapter is not running.") -> None:
        super().__init__(500, message)


class AdapterUnauthorizedError(AdapterAbortError):
    def __init__(
        self, message: str = "Fhir Adapter and/or its Dhis are not running"
    ) -> None:
        super().__init__(500, message)
