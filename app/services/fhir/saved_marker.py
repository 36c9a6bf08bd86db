from typing import Any, Dict

SAVED_MARKER_URL = "http://fhir.example.org/StructureDefinition/saved-in-remote"  # NOSONAR


def set_saved_marker(resource: Dict[str, Any], saved: bool) -> Dict[str, Any]:
    """
    Sets the extension that records whether the resource has been relayed to the remote
    system. An existing marker is replaced, so a resource never carries more than one.
    """
    extensions = [
        ext
        for ext in resource.get("extension") or []
        if ext.get("url") != SAVED_MARKER_URL
    ]
    extensions.append({"url": SAVED_MARKER_URL, "valueBoolean": saved})
    resource["extension"] = extensions
    return resource


def is_saved(resource: Dict[str, Any]) -> bool | None:
    """
    Returns the marker value, or None when the resource has no marker at all
    """
    for ext in resource.get("extension") or []:
        if ext.get("url") == SAVED_MARKER_URL:
            return bool(ext.get("valueBoolean"))
    return None
