"""
Public Registration Blueprint — unauthenticated admission intake.

Endpoints (rate-limited per remote address):
    GET    /api/v1/public/library/<code>/
           Returns: 200 {library, branches, seats, shifts, lockers}

    POST   /api/v1/public/library/<code>/register
           Body: applicant profile, membership dates, fees, branch_id,
                 seat_id, shift_ids (array of ints), locker_id
           Returns: 201 {message, request_id, submitted_at, status}

    GET    /api/v1/public/library/<code>/status/<phone>
           Returns: 200 latest request summary for that phone
"""

import logging

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

from studyhall.core.exceptions import ConflictError, NotFoundError, ValidationError
from studyhall.services import public_registration_service
from studyhall.utils.errors import E, api_error

logger = logging.getLogger(__name__)

public_registration_bp = Blueprint(
    "public_registration", __name__, url_prefix="/api/v1/public/library/<string:library_code>",
)


@public_registration_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, str(error))


@public_registration_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    code = E.VALIDATION_REQUIRED if "required" in error.details.values() else E.VALIDATION_INVALID
    return api_error(code, str(error), details=error.details)


@public_registration_bp.errorhandler(ConflictError)
def _handle_conflict(error: ConflictError):
    return api_error(E.CONFLICT_DUPLICATE, str(error), status=400, details={"field": error.field})


@public_registration_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return jsonify({"error": error.description, "code": error.name}), error.code
    logger.exception("Unexpected error in public_registration_bp endpoint=%s", request.endpoint)
    return api_error(E.INTERNAL, "Internal server error")


@public_registration_bp.route("/", methods=["GET"])
def registration_form(library_code):
    return jsonify(public_registration_service.get_registration_form(library_code)), 200


@public_registration_bp.route("/register", methods=["POST"])
def register(library_code):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return api_error(E.VALIDATION_INVALID, "Request body must be a JSON object")
    return jsonify(public_registration_service.submit_request(library_code, data)), 201


@public_registration_bp.route("/status/<string:phone>", methods=["GET"])
def request_status(library_code, phone):
    return jsonify(public_registration_service.get_request_status(library_code, phone)), 200
