import logging
from typing import Any

from fastapi import APIRouter, Depends

from app.container import get_adapter_api
from app.services.api.adapter_api import AdapterApi

logger = logging.getLogger(__name__)
router = APIRouter()


def ok_or_error(value: bool) -> str:
    return "ok" if value else "error"


@router.get("/health")
def health(adapter_api: AdapterApi = Depends(get_adapter_api)) -> dict[str, Any]:
    logger.info("Checking health")
    adapter_running = adapter_api.is_adapter_running()
    return {
        "status": "ok",
        "components": {"adapter": ok_or_error(adapter_running)},
    }
