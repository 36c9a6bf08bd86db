import base64
from datetime import datetime
from typing import Any, Dict
from unittest.mock import MagicMock, patch

import pytest
from requests.exceptions import ConnectionError

from app.exceptions import IdentityApiError, TransportError, UnauthorizedError
from app.services.api.identity_api import IdentityApi
from tests.utils import make_response

PATCHED_MODULE = "app.services.api.api_service.request"
TOKEN_URL = "http://dhis2.test/uaa/oauth/token"


@patch(PATCHED_MODULE)
def test_login_should_succeed(
    mock_request: MagicMock,
    identity_api: IdentityApi,
    token_response: Dict[str, Any],
    issued_at: datetime,
) -> None:
    mock_request.return_value = make_response(200, token_response)

    actual = identity_api.login("admin", "district")

    assert actual.access_token == "access-1"
    assert actual.refresh_token == "refresh-1"
    assert actual.token_type == "bearer"
    assert actual.scope == "ALL"
    assert actual.expires_in == 300
    assert actual.issued_at == issued_at

    kwargs = mock_request.call_args.kwargs
    expected_basic = base64.b64encode(b"fhir-adapter:secret").decode("ascii")
    assert kwargs["method"] == "POST"
    assert kwargs["url"] == TOKEN_URL
    assert kwargs["data"] == {"grant_type": "password", "username": "admin", "password": "district"}
    assert kwargs["headers"]["Authorization"] == f"Basic {expected_basic}"
    assert kwargs["headers"]["Accept"] == "application/json"


@patch(PATCHED_MODULE)
def test_login_with_bad_credentials_should_be_unauthorized(
    mock_request: MagicMock, identity_api: IdentityApi
) -> None:
    mock_request.return_value = make_response(400, {"error": "invalid_grant"})

    with pytest.raises(UnauthorizedError):
        identity_api.login("admin", "wrong")


@patch(PATCHED_MODULE)
def test_login_with_server_error_should_be_transport_error(
    mock_request: MagicMock, identity_api: IdentityApi
) -> None:
    mock_request.return_value = make_response(503, {"error": "unavailable"})

    with pytest.raises(IdentityApiError) as e:
        identity_api.login("admin", "district")

    assert e.value.status_code == 503


@patch(PATCHED_MODULE)
def test_login_when_network_is_down_should_be_transport_error(
    mock_request: MagicMock, identity_api: IdentityApi
) -> None:
    mock_request.side_effect = ConnectionError

    with pytest.raises(TransportError) as e:
        identity_api.login("admin", "district")

    assert not isinstance(e.value, UnauthorizedError)


@patch(PATCHED_MODULE)
def test_refresh_should_succeed(
    mock_request: MagicMock, identity_api: IdentityApi, token_response: Dict[str, Any]
) -> None:
    token_response["access_token"] = "access-2"
    mock_request.return_value = make_response(200, token_response)

    actual = identity_api.refresh("refresh-1")

    assert actual.access_token == "access-2"
    assert mock_request.call_args.kwargs["data"] == {
        "grant_type": "refresh_token",
        "refresh_token": "refresh-1",
    }


@patch(PATCHED_MODULE)
def test_refresh_with_stale_token_should_be_transport_error(
    mock_request: MagicMock, identity_api: IdentityApi
) -> None:
    mock_request.return_value = make_response(400, {"error": "invalid_grant"})

    with pytest.raises(IdentityApiError) as e:
        identity_api.refresh("stale")

    assert e.value.status_code == 400


@patch(PATCHED_MODULE)
def test_incomplete_token_response_should_fail(
    mock_request: MagicMock, identity_api: IdentityApi
) -> None:
    mock_request.return_value = make_response(200, {"access_token": "a"})

    with pytest.raises(IdentityApiError):
        identity_api.login("admin", "district")
