"""
Access tokens for owner and staff principals.

The login service mints these; this app verifies them on every
authenticated request. HS256, lifetime JWT_ACCESS_EXPIRES seconds.

Claims:
    sub         staff user id, or the library id for an owner
    library_id  acting library
    principal   "owner" | "staff"
    roles       ["owner"] | ["admin"] | ["staff"]
    type        always "access"
    iat / exp / jti
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

ALGORITHM = "HS256"
DEFAULT_ACCESS_EXPIRES = 15 * 60


def _signing_key() -> str:
    cfg = current_app.config
    return cfg.get("JWT_SECRET_KEY") or cfg["SECRET_KEY"]


def generate_access_token(
    subject_id: int,
    library_id: int,
    principal: str,
    roles: list[str] | None = None,
) -> str:
    issued = datetime.now(timezone.utc)
    ttl = int(current_app.config.get("JWT_ACCESS_EXPIRES", DEFAULT_ACCESS_EXPIRES))
    claims = {
        "sub": str(subject_id),
        "library_id": library_id,
        "principal": principal,
        "roles": roles or [principal],
        "type": "access",
        "iat": issued,
        "exp": issued + timedelta(seconds=ttl),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(claims, _signing_key(), algorithm=ALGORITHM)


def generate_owner_token(library_id: int) -> str:
    """Owners act as their library; the subject is the library id."""
    return generate_access_token(library_id, library_id, "owner", ["owner"])


def generate_staff_token(user) -> str:
    return generate_access_token(user.id, user.library_id, "staff", [user.role])


def decode_access_token(token: str) -> dict:
    """Verified claims of *token*.

    Raises:
        jwt.ExpiredSignatureError: past ``exp``.
        jwt.InvalidTokenError: bad signature, malformed, or not an access token.
    """
    claims = jwt.decode(token, _signing_key(), algorithms=[ALGORITHM])
    if claims.get("type") != "access":
        raise jwt.InvalidTokenError(f"Expected access token, got {claims.get('type')}")
    return claims
