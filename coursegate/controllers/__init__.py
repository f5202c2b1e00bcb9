"""
Request controllers for the accounts service.

Controllers take plain request data, call the service layer, and return a
``(data, status, headers)`` tuple for the routes to serialize. Service
exceptions are translated here into :mod:`werkzeug.exceptions`.
"""

from typing import Any, Dict, Tuple

from werkzeug.datastructures import MultiDict

ResponseData = Tuple[dict, int, dict]


def to_formdata(payload: Any) -> MultiDict:
    """Adapt a decoded JSON object for use as WTForms form data."""
    if not isinstance(payload, dict):
        return MultiDict()
    data: Dict[str, Any] = {}
    for key, value in payload.items():
        if value is None or isinstance(value, (dict, list)):
            continue
        if isinstance(value, bool):
            value = 'true' if value else ''
        data[key] = str(value)
    return MultiDict(data)
