"""
Admission Requests Blueprint.

Staff-facing review queue for enrollment applications. Every route requires
a Bearer access token of an owner, admin or staff principal; the acting
library comes from the token only.

Endpoints:
    GET    /api/v1/admission-requests/
           Query params: status (pending|accepted|rejected|all), page, limit
           Returns: 200 {requests: [...], pagination: {...}}

    GET    /api/v1/admission-requests/<id>
           Returns: 200 request with resolved ``shifts``.

    POST   /api/v1/admission-requests/<id>/accept
           Returns: 200 {message, student}

    POST   /api/v1/admission-requests/<id>/reject
           Body: {"reason": "..."} (optional)
           Returns: 200 {message, request}

    GET    /api/v1/admission-requests/stats/summary
           Returns: 200 {pending, accepted, rejected, total}

Layer contract:
    - Blueprint: parse input, call service with the TenantContext, return JSON.
    - No db.session calls here; the services own every write.
"""

import logging

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

from studyhall.auth import require_tenant
from studyhall.blueprints import parse_page_args
from studyhall.core.exceptions import ConflictError, NotFoundError, ValidationError
from studyhall.models.admission import ADMISSION_STATUSES
from studyhall.services import admission_service, conversion_service
from studyhall.utils.errors import E, api_error

logger = logging.getLogger(__name__)

admission_bp = Blueprint("admission", __name__, url_prefix="/api/v1/admission-requests")


# ── Error handlers ────────────────────────────────────────────────────────────


@admission_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@admission_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_INVALID, str(error), details=error.details)


@admission_bp.errorhandler(ConflictError)
def _handle_conflict(error: ConflictError):
    return api_error(
        E.CONFLICT_DUPLICATE, str(error), status=400,
        details={"field": error.field},
    )


@admission_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return jsonify({"error": error.description, "code": error.name}), error.code
    logger.exception("Unexpected error in admission_bp endpoint=%s", request.endpoint)
    return api_error(E.INTERNAL, "Internal server error", details={"cause": str(error)})


# ═════════════════════════════════════════════════════════════════════════
# Review queue
# ═════════════════════════════════════════════════════════════════════════


@admission_bp.route("/", methods=["GET"])
@require_tenant
def list_requests(ctx):
    status = request.args.get("status") or None
    if status and status != "all" and status not in ADMISSION_STATUSES:
        return api_error(
            E.VALIDATION_INVALID,
            f"status must be one of: all, {', '.join(ADMISSION_STATUSES)}",
        )
    try:
        page, limit = parse_page_args()
    except ValueError as exc:
        return api_error(E.VALIDATION_INVALID, str(exc))

    return jsonify(admission_service.list_requests(ctx, status=status, page=page, limit=limit)), 200


@admission_bp.route("/stats/summary", methods=["GET"])
@require_tenant
def stats_summary(ctx):
    return jsonify(admission_service.stats_summary(ctx)), 200


@admission_bp.route("/<int:request_id>", methods=["GET"])
@require_tenant
def get_request(ctx, request_id):
    return jsonify(admission_service.get_request(ctx, request_id)), 200


# ═════════════════════════════════════════════════════════════════════════
# Decisions
# ═════════════════════════════════════════════════════════════════════════


@admission_bp.route("/<int:request_id>/accept", methods=["POST"])
@require_tenant
def accept_request(ctx, request_id):
    student = conversion_service.accept_request(ctx, request_id)
    return jsonify({
        "message": "Admission request accepted and student created",
        "student": student,
    }), 200


@admission_bp.route("/<int:request_id>/reject", methods=["POST"])
@require_tenant
def reject_request(ctx, request_id):
    data = request.get_json(silent=True) or {}
    reason = data.get("reason")
    if reason is not None and not isinstance(reason, str):
        return api_error(E.VALIDATION_INVALID, "reason must be a string")
    req = admission_service.reject_request(ctx, request_id, (reason or "").strip() or None)
    return jsonify({"message": "Admission request rejected", "request": req}), 200
