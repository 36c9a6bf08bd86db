import logging
from typing import Any, Dict, List

from fhir.resources.R4B import get_fhir_model_class
from fhir.resources.R4B.operationoutcome import OperationOutcome
from pydantic import ValidationError

logger = logging.getLogger(__name__)


def get_resource_type(resource: Dict[str, Any]) -> str | None:
    res_type_key = "resource_type" if "resource_type" in resource else "resourceType"
    resource_type = resource.get(res_type_key)

    return str(resource_type) if resource_type is not None else None


def validate_resource(
    data: Dict[str, Any], resource_type: str, strict: bool = False
) -> List[str]:
    """
    Checks an incoming resource body and returns a list of problems, empty when the
    resource is acceptable. Without strict validation only the resource type is checked,
    with strict validation the body is also validated against its FHIR R4B model.
    """
    actual_type = get_resource_type(data)
    if actual_type != resource_type:
        return [f"Resource type {actual_type} does not match endpoint {resource_type}"]

    if not strict:
        return []

    try:
        model = get_fhir_model_class(resource_type)
    except (KeyError, ValueError):
        return [f"{resource_type} is not a valid FHIR R4B resource type"]

    try:
        model.model_validate(data)
    except ValidationError as e:
        logger.info(f"Validation of {resource_type} failed: {e}")
        return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]

    return []


def create_operation_outcome(
    diagnostics: List[str] | str, severity: str = "error", code: str = "processing"
) -> Dict[str, Any]:
    """
    Builds an OperationOutcome document for error responses
    """
    messages = [diagnostics] if isinstance(diagnostics, str) else diagnostics
    outcome = {
        "resourceType": "OperationOutcome",
        "issue": [
            {"severity": severity, "code": code, "diagnostics": message}
            for message in messages
        ],
    }
    OperationOutcome.model_validate(outcome)
    return outcome


def get_first_entry_resource(bundle: Dict[str, Any]) -> Dict[str, Any] | None:
    """
    Returns the resource of the first entry of a searchset bundle, if any
    """
    entries = bundle.get("entry") or []
    if len(entries) == 0:
        return None

    resource = entries[0].get("resource")
    return resource if isinstance(resource, dict) else None
