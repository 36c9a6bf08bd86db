import logging
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Request, Response
from fastapi.exceptions import HTTPException
from fastapi.responses import JSONResponse

from app.config import get_config
from app.container import get_authorization_gate, get_sync_pipeline
from app.models.sync.dto import RequestContext, ResponseContext, RestOperationType, RuleSet
from app.services.fhir.utils import create_operation_outcome, validate_resource
from app.services.sync.authorization_gate import AuthorizationGate
from app.services.sync.pipeline import SyncPipeline

logger = logging.getLogger(__name__)

SESSION_HEADER = "X-Session-Id"
RELAY_FAILED_MSG = "Resource stored locally but could not be saved in the remote system"


def require_authorization(
    request: Request,
    gate: AuthorizationGate = Depends(get_authorization_gate),
) -> None:
    if not get_config().sync.authorization_gate_enabled:
        return

    if gate.build_rule_list(request.headers.get("Authorization")) == RuleSet.DENY_ALL:
        raise HTTPException(status_code=403, detail="Access denied")


router = APIRouter(
    prefix="/fhir",
    tags=["FHIR resources"],
    dependencies=[Depends(require_authorization)],
)


def _make_context(
    operation: RestOperationType,
    resource_type: str,
    request: Request,
    resource_id: str | None = None,
    resource: Dict[str, Any] | None = None,
) -> RequestContext:
    return RequestContext(
        operation=operation,
        resource_type=resource_type,
        resource_id=resource_id,
        headers=request.headers,
        resource=resource,
        principal=request.headers.get(SESSION_HEADER),
    )


def _to_response(context: ResponseContext, status_code: int | None = None) -> Response:
    if context.resource is None:
        return Response(status_code=status_code or context.status_code, headers=context.headers)

    return JSONResponse(
        status_code=status_code or context.status_code,
        content=context.resource,
        headers=context.headers,
    )


def _handle_write(pipeline: SyncPipeline, context: RequestContext) -> Response:
    problems = validate_resource(
        context.resource or {}, context.resource_type, get_config().fhir.strict_validation
    )
    if len(problems) > 0:
        return JSONResponse(status_code=400, content=create_operation_outcome(problems, code="invalid"))

    outcome = pipeline.handle_write(context)
    if not outcome.proceed:
        return JSONResponse(
            status_code=502,
            content=create_operation_outcome(RELAY_FAILED_MSG, code="transient"),
            headers=outcome.response.headers,
        )

    return _to_response(outcome.response)


@router.post("/{resource_type}", response_model=None, summary="Create a resource and relay it")
def create_resource(
    resource_type: str,
    request: Request,
    resource: Dict[str, Any] = Body(...),
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> Response:
    context = _make_context(RestOperationType.CREATE, resource_type, request, resource=resource)
    return _handle_write(pipeline, context)


@router.put("/{resource_type}/{resource_id}", response_model=None, summary="Update a resource and relay it")
def update_resource(
    resource_type: str,
    resource_id: str,
    request: Request,
    resource: Dict[str, Any] = Body(...),
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> Response:
    if resource.get("id") is None:
        resource["id"] = resource_id
    elif resource["id"] != resource_id:
        return JSONResponse(
            status_code=400,
            content=create_operation_outcome(
                f"Resource id {resource['id']} does not match url id {resource_id}", code="invalid"
            ),
        )

    context = _make_context(
        RestOperationType.UPDATE, resource_type, request, resource_id=resource_id, resource=resource
    )
    return _handle_write(pipeline, context)


@router.get("/{resource_type}/{resource_id}", response_model=None, summary="Read a resource")
def read_resource(
    resource_type: str,
    resource_id: str,
    request: Request,
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> Response:
    context = _make_context(RestOperationType.READ, resource_type, request, resource_id=resource_id)
    return _to_response(pipeline.forward(context))


@router.get("/{resource_type}", response_model=None, summary="Search resources")
def search_resources(
    resource_type: str,
    request: Request,
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> Response:
    context = _make_context(RestOperationType.SEARCH, resource_type, request)
    return _to_response(pipeline.forward(context, dict(request.query_params)))


@router.delete("/{resource_type}/{resource_id}", response_model=None, summary="Delete a resource")
def delete_resource(
    resource_type: str,
    resource_id: str,
    request: Request,
    pipeline: SyncPipeline = Depends(get_sync_pipeline),
) -> Response:
    context = _make_context(RestOperationType.DELETE, resource_type, request, resource_id=resource_id)
    return _to_response(pipeline.forward(context))
