from typing import Dict, Mapping

from starlette.datastructures import Headers

LOOP_GUARD_HEADER = "X-Sync-Hint"
NO_REMOTE_SAVE = "NO-REMOTE-SAVE"


def should_skip(headers: Mapping[str, str]) -> bool:
    """
    True when the request was issued by this service itself and must not be synchronized again
    """
    if not isinstance(headers, Headers):
        headers = Headers(headers=dict(headers))
    hint = headers.get(LOOP_GUARD_HEADER)
    return hint is not None and hint.lower() == NO_REMOTE_SAVE.lower()


def guard_headers(extra: Mapping[str, str] | None = None) -> Dict[str, str]:
    """
    Headers for internal calls that must pass through the sync pipeline untouched
    """
    headers = dict(extra or {})
    headers[LOOP_GUARD_HEADER] = NO_REMOTE_SAVE
    return headers
