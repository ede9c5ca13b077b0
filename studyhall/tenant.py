"""
Study-Hall Admissions — Tenant Context Resolver.

Every admission operation runs for exactly one library. The library id is
derived from the verified access-token claims of the acting principal and is
never read from client-supplied input (query string, body, X-* headers).

Principals:
    owner: acts as the library itself; actor_id is None
    staff: a StaffUser with role admin or staff; actor_id is the user id

Usage:
    ctx = resolve_tenant_context(claims)
    admission_service.list_requests(ctx, status="pending")
"""

from dataclasses import dataclass

from studyhall.core.exceptions import ForbiddenError
from studyhall.models.library import STAFF_ROLES


@dataclass(frozen=True)
class TenantContext:
    """Acting tenant + actor, threaded explicitly into service calls."""

    library_id: int
    actor_id: int | None = None
    principal_type: str = "owner"

    @property
    def is_owner(self) -> bool:
        return self.principal_type == "owner"


def _as_int(value):
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def resolve_tenant_context(claims: dict | None) -> TenantContext:
    """Build a TenantContext from verified token claims.

    Raises:
        ForbiddenError: no claims, unknown principal type, staff without an
            admin/staff role, or a missing library id.
    """
    if not claims:
        raise ForbiddenError("Authentication required")

    principal = claims.get("principal")
    library_id = _as_int(claims.get("library_id"))
    if library_id is None:
        raise ForbiddenError("Token carries no library scope")

    if principal == "owner":
        return TenantContext(library_id=library_id, actor_id=None, principal_type="owner")

    if principal == "staff":
        roles = set(claims.get("roles") or [])
        if not roles & STAFF_ROLES:
            raise ForbiddenError("Admin, staff, or owner privileges required")
        actor_id = _as_int(claims.get("sub"))
        if actor_id is None:
            raise ForbiddenError("Token carries no staff identity")
        return TenantContext(library_id=library_id, actor_id=actor_id, principal_type="staff")

    raise ForbiddenError("Admin, staff, or owner privileges required")
