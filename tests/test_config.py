from app.config import (
    Config,
    ConfigAdapter,
    ConfigApp,
    ConfigDhis2,
    ConfigFhir,
    ConfigStats,
    ConfigSync,
    ConfigUvicorn,
    LogLevel,
)


def get_test_config() -> Config:
    return Config(
        app=ConfigApp(
            loglevel=LogLevel.error,
        ),
        uvicorn=ConfigUvicorn(
            swagger_enabled=False,
            docs_url="/docs",
            redoc_url="/redoc",
            host="0.0.0.0",
            port=8510,
            reload=True,
            use_ssl=False,
            ssl_base_dir=None,
            ssl_cert_file=None,
            ssl_key_file=None,
        ),
        fhir=ConfigFhir(
            base_url="http://fhir.test/fhir",
            timeout=1,
            retries=1,
            backoff=0.0,
            strict_validation=False,
        ),
        adapter=ConfigAdapter(
            base_url="http://adapter.test",
            client_id="client-1",
            client_resource_id_header="X-Client-Resource-Id",
            timeout=1,
        ),
        dhis2=ConfigDhis2(
            base_url="http://dhis2.test",
            client_id="fhir-adapter",
            client_secret="secret",
            timeout=1,
            token_safety_margin="60s",
        ),
        sync=ConfigSync(
            check_if_authorized_by_adapter=False,
            check_if_adapter_is_running=False,
            store_resource_before_update=True,
            authorization_gate_enabled=False,
            error_policy="flag",
        ),
        stats=ConfigStats(
            enabled=False, host=None, port=None, module_name="fhir_remote_sync"
        ),
    )
