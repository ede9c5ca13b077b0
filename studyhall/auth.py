"""
Study-Hall Admissions
Authorization decorators for tenant-scoped endpoints.

Security model:
    - Admission endpoints require a Bearer access token of an owner, admin
      or staff principal (issued by the login collaborator).
    - The acting library comes only from the verified token; see
      ``studyhall.tenant``.
    - Missing / expired / invalid token → 401; a valid token for a principal
      that may not act here, or an inactive library → 403.

Usage:
    @admission_bp.route("/")
    @require_tenant
    def list_requests(ctx): ...
"""

import functools
import logging

from flask import g, request

from studyhall.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def require_tenant(f):
    """
    Decorator: require a resolved TenantContext and pass it as ``ctx``.

    The context is injected as the first positional argument so views never
    reach for ``g`` themselves.
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        ctx = getattr(g, "tenant_ctx", None)
        if ctx is not None:
            return f(ctx, *args, **kwargs)

        tenant_error = getattr(g, "tenant_error", None)
        if tenant_error is not None:
            status, message = tenant_error
            logger.warning("Access denied on %s: %s", request.path, message)
            return api_error(E.FORBIDDEN, message, status=status)

        jwt_error = getattr(g, "jwt_error", None)
        if jwt_error:
            return api_error(E.UNAUTHORIZED, jwt_error)

        return api_error(E.UNAUTHORIZED, "Authentication required. Provide a Bearer token.")

    return decorated
