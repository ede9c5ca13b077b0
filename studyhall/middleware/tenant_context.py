"""
Tenant Context Middleware — resolves the acting library for API requests.

When a JWT-authenticated principal makes a request:
  1. g.jwt_claims is already set by jwt_auth middleware
  2. This middleware resolves a TenantContext from the claims
  3. Verifies the library exists and is active, and that a staff principal
     still exists, is active and belongs to that library
  4. Sets g.tenant_ctx for the view decorators / blueprints

Failures are recorded on g.tenant_error as (status, message); the
``require_tenant`` decorator turns them into responses so public and health
endpoints stay unaffected.

Chain order:
  jwt_auth.py  →  tenant_context.py  →  route handler
"""

import logging

from flask import g, request

from studyhall.core.exceptions import ForbiddenError
from studyhall.models import db
from studyhall.models.library import Library, StaffUser
from studyhall.tenant import resolve_tenant_context

logger = logging.getLogger(__name__)


def init_tenant_context(app):
    """Register tenant context middleware as a before_request hook."""

    @app.before_request
    def _tenant_context():
        g.tenant_ctx = None
        g.tenant_error = None
        g.library_id = None

        if not request.path.startswith("/api/v1/"):
            return None

        claims = getattr(g, "jwt_claims", None)
        if claims is None:
            return None

        try:
            ctx = resolve_tenant_context(claims)
        except ForbiddenError as exc:
            g.tenant_error = (403, str(exc))
            return None

        library = db.session.get(Library, ctx.library_id)
        if library is None:
            logger.warning("JWT library_id %s not found in DB", ctx.library_id)
            g.tenant_error = (403, "Library not found")
            return None
        if not library.is_active:
            logger.warning("JWT library_id %s is deactivated", ctx.library_id)
            g.tenant_error = (403, "Library account is deactivated")
            return None

        if ctx.actor_id is not None:
            user = db.session.get(StaffUser, ctx.actor_id)
            if user is None or user.library_id != ctx.library_id or not user.is_active:
                logger.warning(
                    "Staff principal %s rejected for library_id %s",
                    ctx.actor_id, ctx.library_id,
                )
                g.tenant_error = (403, "Staff account is not active in this library")
                return None

        g.tenant_ctx = ctx
        g.library_id = ctx.library_id
        return None

    logger.info("Tenant context middleware installed")
