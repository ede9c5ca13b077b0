"""
Admission Request Store — list / detail / reject / stats.

Design decisions:
    - Every query is filtered by ``ctx.library_id``; a row owned by another
      library is reported exactly like a missing row (404).
    - Reject is a single conditional UPDATE guarded by
      ``id ∧ library_id ∧ status = 'pending'``. A request that was already
      accepted or rejected matches zero rows and surfaces as NotFoundError,
      so two concurrent rejects (or a reject racing an accept) cannot both win.
    - Listing denormalises branch / seat / locker / processed-by names through
      outer joins that are themselves library-scoped.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import and_, func, select, update

from studyhall.core.exceptions import NotFoundError
from studyhall.models import db
from studyhall.models.admission import ADMISSION_STATUSES, AdmissionRequest, admission_sources
from studyhall.models.library import Branch, Locker, Schedule, Seat, StaffUser
from studyhall.tenant import TenantContext

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


# ── Private helpers ────────────────────────────────────────────────────────────


def _max_page_size() -> int:
    return int(current_app.config.get("ADMISSION_PAGE_SIZE_MAX", MAX_PAGE_SIZE))


def _denormalised_select(library_id: int):
    """SELECT request + display names, every join pinned to the same library."""
    return (
        select(
            AdmissionRequest,
            Branch.name.label("branch_name"),
            Seat.seat_number.label("seat_number"),
            Locker.locker_number.label("locker_number"),
            StaffUser.full_name.label("processed_by_name"),
        )
        .outerjoin(
            Branch,
            and_(Branch.id == AdmissionRequest.branch_id, Branch.library_id == library_id),
        )
        .outerjoin(
            Seat,
            and_(Seat.id == AdmissionRequest.seat_id, Seat.library_id == library_id),
        )
        .outerjoin(
            Locker,
            and_(Locker.id == AdmissionRequest.locker_id, Locker.library_id == library_id),
        )
        .outerjoin(
            StaffUser,
            and_(StaffUser.id == AdmissionRequest.processed_by, StaffUser.library_id == library_id),
        )
        .where(AdmissionRequest.library_id == library_id)
    )


def _row_to_dict(row) -> dict:
    req, branch_name, seat_number, locker_number, processed_by_name = row
    d = req.to_dict()
    d["branch_name"] = branch_name
    d["seat_number"] = seat_number
    d["locker_number"] = locker_number
    d["processed_by_name"] = processed_by_name
    return d


def _resolve_shifts(library_id: int, shift_ids: list[int]) -> list[dict]:
    """Schedules for *shift_ids* in the request's order; unknown ids are skipped."""
    if not shift_ids:
        return []
    rows = db.session.execute(
        select(Schedule).where(
            Schedule.library_id == library_id,
            Schedule.id.in_(shift_ids),
        )
    ).scalars().all()
    by_id = {s.id: s for s in rows}
    return [by_id[sid].to_dict() for sid in shift_ids if sid in by_id]


# ── Public API ─────────────────────────────────────────────────────────────────


def list_requests(
    ctx: TenantContext,
    status: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict:
    """Newest-first page of admission requests for the acting library.

    Args:
        ctx:    Acting tenant.
        status: One of ADMISSION_STATUSES; ``None`` or ``"all"`` lists every status.
        page:   1-based page number; values below 1 are treated as 1.
        limit:  Page size, clamped to [1, ADMISSION_PAGE_SIZE_MAX].

    Returns:
        {"requests": [...], "pagination": {"page", "limit", "total", "total_pages"}}
    """
    page = max(int(page) if page is not None else 1, 1)
    limit = DEFAULT_PAGE_SIZE if limit is None else int(limit)
    limit = min(max(limit, 1), _max_page_size())

    filters = [AdmissionRequest.library_id == ctx.library_id]
    if status and status != "all":
        filters.append(AdmissionRequest.status == status)

    total = db.session.execute(
        select(func.count(AdmissionRequest.id)).where(*filters)
    ).scalar() or 0

    stmt = _denormalised_select(ctx.library_id)
    if status and status != "all":
        stmt = stmt.where(AdmissionRequest.status == status)
    stmt = (
        stmt.order_by(AdmissionRequest.created_at.desc(), AdmissionRequest.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = db.session.execute(stmt).all()

    return {
        "requests": [_row_to_dict(r) for r in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": math.ceil(total / limit) if total else 0,
        },
    }


def get_request(ctx: TenantContext, request_id: int) -> dict:
    """Single request with display names and resolved ``shifts``.

    Raises:
        NotFoundError: absent in the acting library.
    """
    row = db.session.execute(
        _denormalised_select(ctx.library_id).where(AdmissionRequest.id == request_id)
    ).first()
    if row is None:
        raise NotFoundError(
            resource="AdmissionRequest", resource_id=request_id,
            library_id=ctx.library_id, message="Admission request not found",
        )
    d = _row_to_dict(row)
    d["shifts"] = _resolve_shifts(ctx.library_id, d["shift_ids"])
    return d


def reject_request(ctx: TenantContext, request_id: int, reason: str | None = None) -> dict:
    """Move a pending request to ``rejected``.

    Raises:
        NotFoundError: no pending request with this id in the acting library
            (covers already-processed and cross-library ids identically).
    """
    now = datetime.now(timezone.utc)
    result = db.session.execute(
        update(AdmissionRequest)
        .where(
            AdmissionRequest.id == request_id,
            AdmissionRequest.library_id == ctx.library_id,
            AdmissionRequest.status.in_(admission_sources("rejected")),
        )
        .values(
            status="rejected",
            processed_at=now,
            processed_by=ctx.actor_id,
            rejection_reason=reason,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.session.rollback()
        raise NotFoundError(
            resource="AdmissionRequest", resource_id=request_id,
            library_id=ctx.library_id, message="Pending admission request not found",
        )
    db.session.commit()

    logger.info(
        "Admission request %s rejected",
        request_id,
        extra={"library_id": ctx.library_id, "request_pk": request_id, "actor_id": ctx.actor_id},
    )
    return get_request(ctx, request_id)


def stats_summary(ctx: TenantContext) -> dict:
    """Counts by status; statuses with no rows are reported as 0."""
    rows = db.session.execute(
        select(AdmissionRequest.status, func.count(AdmissionRequest.id))
        .where(AdmissionRequest.library_id == ctx.library_id)
        .group_by(AdmissionRequest.status)
    ).all()
    counts = {status: 0 for status in ADMISSION_STATUSES}
    for status, count in rows:
        counts[status] = int(count)
    counts["total"] = sum(int(c) for _, c in rows)
    return counts
