"""JSON error envelope shared by every blueprint.

Body shape: ``{"error": <message>, "code": <ERR_*>, "details": {...}?}``

    return api_error(E.NOT_FOUND, "Admission request not found")
    return api_error(E.CONFLICT_DUPLICATE, "Duplicate phone", status=400,
                     details={"field": "phone"})
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Stable ``ERR_*`` codes that clients may switch on."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


# Used when the caller passes no explicit status; anything unlisted is 400.
_STATUS_FOR_CODE: dict[str, int] = {
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(code: str, message: str, *, status: int | None = None, details: dict | None = None):
    """Build ``(response, status)`` for a Flask view or error handler.

    ``details`` is omitted from the body when empty.
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status or _STATUS_FOR_CODE.get(code, 400)
