"""Normalize backend payloads of unknown shape.

The backend answers with one of:

* a bare list of entities,
* a bare entity carrying an ``id``,
* an envelope ``{success, data, message?}``,
* a doubly nested envelope ``{success, data: {data: [...]}}``.

``unwrap`` tries them in that order of precedence and returns ``None``
for anything else. It never raises.
"""

from typing import Any, Dict, List, Optional, Union

Payload = Union[Dict[str, Any], List[Any]]


def unwrap(raw: Any) -> Optional[Payload]:
    """Extract the payload from a raw response.

    Args:
        raw: decoded JSON body

    Returns:
        the entity list, the single entity, or None when the shape is
        not recognised
    """
    if isinstance(raw, list):
        return raw

    if not isinstance(raw, dict):
        return None

    if "success" in raw and "data" in raw:
        data = raw["data"]
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            return data["data"]
        return data

    if "id" in raw and "success" not in raw:
        return raw

    return None


def unwrap_collection(raw: Any) -> Optional[List[Any]]:
    data = unwrap(raw)
    return data if isinstance(data, list) else None


def unwrap_entity(raw: Any) -> Optional[Dict[str, Any]]:
    data = unwrap(raw)
    return data if isinstance(data, dict) else None


def is_business_failure(raw: Any) -> bool:
    return isinstance(raw, dict) and raw.get("success") is False


def extract_message(raw: Any, fallback: Optional[str] = None) -> Optional[str]:
    """Server supplied message of an envelope or error body.

    ``error`` wins over ``message``; ``error`` may itself be a dict with a
    ``message`` key.
    """
    if not isinstance(raw, dict):
        return fallback

    error = raw.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    if isinstance(error, str) and error.strip():
        return error

    message = raw.get("message")
    if isinstance(message, str) and message.strip():
        return message

    return fallback
