import logging
import os

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from app.container import setup_container
from app.exceptions import (
    AdapterAbortError,
    TransportError,
    UnauthenticatedError,
    UnauthorizedError,
)
from app.routers.auth_router import router as auth_router
from app.routers.fhir_router import router as fhir_router
from app.routers.health import router as health_router
from app.config import get_config
from app.services.fhir.utils import create_operation_outcome
from app.stats import StatsdMiddleware, setup_stats

logger = logging.getLogger(__name__)


def get_uvicorn_params() -> dict[str, Any]:
    uvicorn_config = get_config().uvicorn
    kwargs: dict[str, Any] = {
        "host": uvicorn_config.host,
        "port": uvicorn_config.port,
        "reload": uvicorn_config.reload,
        "reload_delay": uvicorn_config.reload_delay,
        "reload_dirs": uvicorn_config.reload_dirs,
    }

    ssl_files = (uvicorn_config.ssl_base_dir, uvicorn_config.ssl_cert_file, uvicorn_config.ssl_key_file)
    if uvicorn_config.use_ssl:
        if None in ssl_files:
            raise ValueError("use_ssl requires ssl_base_dir, ssl_cert_file and ssl_key_file")
        base_dir, cert_file, key_file = ssl_files
        kwargs["ssl_certfile"] = os.path.join(str(base_dir), str(cert_file))
        kwargs["ssl_keyfile"] = os.path.join(str(base_dir), str(key_file))

    return kwargs


def run() -> None:
    uvicorn.run("app.application:create_fastapi_app", factory=True, **get_uvicorn_params())


def create_fastapi_app() -> FastAPI:
    setup_stats()
    application_init()
    return setup_fastapi()


def application_init() -> None:
    setup_logging()
    setup_container()


def setup_logging() -> None:
    loglevel = logging.getLevelName(get_config().app.loglevel.value.upper())
    if isinstance(loglevel, str):
        raise ValueError(f"Invalid loglevel {loglevel}")

    logging.basicConfig(
        level=loglevel,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )
    # Every outbound call is already logged by the http services
    logging.getLogger("urllib3").setLevel(max(loglevel, logging.WARNING))


def adapter_abort_handler(request: Request, exc: Exception) -> JSONResponse:
    assert isinstance(exc, AdapterAbortError)
    return JSONResponse(
        status_code=exc.status_code,
        content=create_operation_outcome(exc.message, severity="fatal", code="exception"),
    )


def unauthorized_handler(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=401,
        content=create_operation_outcome(str(exc), code="login"),
    )


def transport_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Transport error while handling {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=502,
        content=create_operation_outcome(str(exc), code="transient"),
    )


def setup_fastapi() -> FastAPI:
    config = get_config()

    fastapi = (
        FastAPI(docs_url=config.uvicorn.docs_url, redoc_url=config.uvicorn.redoc_url)
        if config.uvicorn.swagger_enabled
        else FastAPI(docs_url=None, redoc_url=None)
    )

    routers = [
        health_router,
        auth_router,
        fhir_router,
    ]
    for router in routers:
        fastapi.include_router(router)

    fastapi.add_exception_handler(AdapterAbortError, adapter_abort_handler)
    fastapi.add_exception_handler(UnauthorizedError, unauthorized_handler)
    fastapi.add_exception_handler(UnauthenticatedError, unauthorized_handler)
    fastapi.add_exception_handler(TransportError, transport_error_handler)

    if config.stats.enabled:
        fastapi.add_middleware(StatsdMiddleware, module_name=config.stats.module_name or "default")

    return fastapi
