import inject

from app.config import get_config
from app.services.api.adapter_api import AdapterApi
from app.services.api.authenticators.null_authenticator import NullAuthenticator
from app.services.api.fhir_api import FhirApi
from app.services.api.identity_api import IdentityApi
from app.services.sync.authorization_gate import AuthorizationGate
from app.services.sync.error_policy.factory import ErrorPolicyFactory
from app.services.sync.pipeline import SyncPipeline
from app.services.sync.pre_check import AuthorizationPreCheck, SyncFlags
from app.services.sync.relay_dispatcher import RelayDispatcher, RelayEnvelopeFactory
from app.services.sync.snapshotter import PreUpdateSnapshotter
from app.services.token.token_store import TokenStore


def container_config(binder: inject.Binder) -> None:
    config = get_config()

    fhir_api = FhirApi(
        base_url=config.fhir.base_url,
        timeout=config.fhir.timeout,
        backoff=config.fhir.backoff,
        retries=config.fhir.retries,
        auth=NullAuthenticator(),
    )
    binder.bind(FhirApi, fhir_api)

    adapter_api = AdapterApi(
        base_url=config.adapter.base_url,
        timeout=config.adapter.timeout,
        liveness_path=config.adapter.liveness_path,
        authorization_path=config.adapter.authorization_path,
    )
    binder.bind(AdapterApi, adapter_api)

    identity_api = IdentityApi(
        base_url=config.dhis2.base_url,
        client_id=config.dhis2.client_id,
        client_secret=config.dhis2.client_secret,
        timeout=config.dhis2.timeout,
    )
    token_store = TokenStore(
        identity_api=identity_api,
        safety_margin=config.dhis2.token_safety_margin_in_sec,
    )
    binder.bind(TokenStore, token_store)

    flags = SyncFlags(
        check_if_authorized_by_adapter=config.sync.check_if_authorized_by_adapter,
        check_if_adapter_is_running=config.sync.check_if_adapter_is_running,
        store_resource_before_update=config.sync.store_resource_before_update,
    )
    error_policy = ErrorPolicyFactory(config.sync.error_policy).create_error_policy()

    pipeline = SyncPipeline(
        fhir_api=fhir_api,
        pre_check=AuthorizationPreCheck(
            flags=flags,
            is_authorized_by_adapter=adapter_api.is_authorized_by_adapter,
            is_adapter_running=adapter_api.is_adapter_running,
        ),
        snapshotter=PreUpdateSnapshotter(
            store_resource_before_update=flags.store_resource_before_update,
            find_resource=fhir_api.find_resource_by_id,
        ),
        relay_dispatcher=RelayDispatcher(
            adapter_api=adapter_api,
            envelope_factory=RelayEnvelopeFactory(
                base_url=config.adapter.base_url,
                client_id=config.adapter.client_id,
                client_resource_id_header=config.adapter.client_resource_id_header,
            ),
            error_policy=error_policy,
            marker_writer=fhir_api.save_as_remote_saved,
            token_store=token_store,
        ),
    )
    binder.bind(SyncPipeline, pipeline)

    binder.bind(AuthorizationGate, AuthorizationGate())


def get_sync_pipeline() -> SyncPipeline:
    return inject.instance(SyncPipeline)


def get_token_store() -> TokenStore:
    return inject.instance(TokenStore)


def get_authorization_gate() -> AuthorizationGate:
    return inject.instance(AuthorizationGate)


def get_adapter_api() -> AdapterApi:
    return inject.instance(AdapterApi)


def setup_container() -> None:
    inject.configure(container_config, once=True)
