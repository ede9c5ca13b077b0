"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in studyhall/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from studyhall.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

import jwt as pyjwt
from flask import request as flask_request

from studyhall.middleware.jwt_auth import bearer_token
from studyhall.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

STAFF_API_LIMIT = "300/minute"


def library_rate_limit_key():
    """``library:<id>`` from a valid bearer token, else the remote IP.

    Flask-Limiter checks limits before the tenant middleware has run, so the
    token is decoded here rather than read from ``g``.
    """
    token = bearer_token()
    if token:
        try:
            library_id = decode_access_token(token).get("library_id")
        except pyjwt.InvalidTokenError:
            library_id = None
        if library_id:
            return f"library:{library_id}"
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits:
        - Public registration:  PUBLIC_REGISTRATION_RATE_LIMIT per remote IP
                                (unauthenticated, abuse-prone)
        - Admission endpoints:  300/minute per library
        - Health check:         exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    public_limit = app.config.get("PUBLIC_REGISTRATION_RATE_LIMIT", "10/minute")
    bp = app.blueprints.get("public_registration")
    if bp:
        limiter.limit(public_limit)(bp)

    bp = app.blueprints.get("admission")
    if bp:
        limiter.limit(STAFF_API_LIMIT, key_func=library_rate_limit_key)(bp)

    # Probes are never throttled
    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limits: public=%s admission=%s",
        public_limit, STAFF_API_LIMIT,
    )
