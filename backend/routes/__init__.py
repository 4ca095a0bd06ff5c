from typing import Dict, Iterable

from flask import request


def request_payload(list_fields: Iterable[str] = ()) -> Dict:
    """Body fields from either a multipart/urlencoded form or a JSON body."""
    if request.form or request.files:
        payload = request.form.to_dict()
        for field_name in list_fields:
            if field_name in request.form:
                payload[field_name] = request.form.getlist(field_name)
        return payload

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def passthrough(view):
    return view
