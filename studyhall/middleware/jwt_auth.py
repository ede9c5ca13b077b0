"""
Bearer token parsing.

Runs before every ``/api/v1/`` request except health and public intake and
leaves its verdict on ``g``:

    g.jwt_claims   decoded claims, or None
    g.jwt_error    "Token expired" / "Invalid token", or None

Nothing is rejected here; ``studyhall.auth.require_tenant`` turns a missing
or bad token into 401.
"""

import jwt as pyjwt
from flask import g, request

from studyhall.services.jwt_service import decode_access_token

API_PREFIX = "/api/v1/"
UNAUTHENTICATED_PREFIXES = ("/api/v1/health", "/api/v1/public/")


def bearer_token() -> str | None:
    """Token from an ``Authorization: Bearer`` header of the current request."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not token:
        return None
    return token.strip()


def init_jwt_middleware(app):
    @app.before_request
    def _read_bearer_token():
        g.jwt_claims = None
        g.jwt_error = None

        path = request.path
        if not path.startswith(API_PREFIX) or path.startswith(UNAUTHENTICATED_PREFIXES):
            return

        token = bearer_token()
        if token is None:
            return
        try:
            g.jwt_claims = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            g.jwt_error = "Token expired"
        except pyjwt.InvalidTokenError:
            g.jwt_error = "Invalid token"
