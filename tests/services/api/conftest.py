from typing import Any, Dict

import pytest

from app.config import Config
from app.services.api.adapter_api import AdapterApi
from app.services.api.api_service import HttpService
from app.services.api.authenticators.authenticator import Authenticator
from app.services.api.fhir_api import FhirApi
from app.services.api.identity_api import IdentityApi

MOCK_AUTH_TOKEN = "some-token"
MOCK_AUTH = "some-auth"


class MockAuthenticator(Authenticator):
    """
    Dummy class for testing purposes only
    """

    def get_authentication_header(self) -> str:
        return MOCK_AUTH_TOKEN

    def get_auth(self) -> Any:
        return MOCK_AUTH


@pytest.fixture()
def base_url() -> str:
    return "http://example.com"


@pytest.fixture()
def mock_body() -> Dict[str, Any]:
    return {"example": "some data"}


@pytest.fixture()
def http_service(base_url: str) -> HttpService:
    return HttpService(base_url=base_url, timeout=1, backoff=0.0, retries=1)


@pytest.fixture()
def mock_authenticator() -> MockAuthenticator:
    return MockAuthenticator()


@pytest.fixture()
def fhir_api(test_config: Config) -> FhirApi:
    return FhirApi(
        base_url=test_config.fhir.base_url,
        timeout=test_config.fhir.timeout,
        backoff=test_config.fhir.backoff,
        retries=test_config.fhir.retries,
    )


@pytest.fixture()
def adapter_api(test_config: Config) -> AdapterApi:
    return AdapterApi(
        base_url=test_config.adapter.base_url,
        timeout=test_config.adapter.timeout,
        liveness_path=test_config.adapter.liveness_path,
        authorization_path=test_config.adapter.authorization_path,
    )


@pytest.fixture()
def identity_api(test_config: Config, issued_at: Any) -> IdentityApi:
    return IdentityApi(
        base_url=test_config.dhis2.base_url,
        client_id=test_config.dhis2.client_id,
        client_secret=test_config.dhis2.client_secret,
        timeout=test_config.dhis2.timeout,
        clock=lambda: issued_at,
    )
