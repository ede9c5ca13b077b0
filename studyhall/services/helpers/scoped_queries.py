"""
Library-scoped query helpers.

Every get-by-id in the admission pipeline goes through these helpers instead
of db.session.get(Model, pk). A direct .get() bypasses tenant isolation.

Usage:
    seat = get_scoped(Seat, seat_id, library_id=ctx.library_id)
    locker = get_scoped_or_none(Locker, locker_id, library_id=ctx.library_id)

Cross-library access is indistinguishable from a missing record: both raise
NotFoundError → HTTP 404, so a response never confirms that another library
owns the row.
"""

import logging

from sqlalchemy import select

from studyhall.core.exceptions import NotFoundError
from studyhall.models import db

logger = logging.getLogger(__name__)


def get_scoped(model, pk: int, *, library_id: int):
    """Fetch a single entity by PK inside one library.

    Raises:
        ValueError: If library_id is missing or the model has no library_id
                    column (refusing an unscoped lookup).
        NotFoundError: If the entity does not exist OR belongs to another
                       library.
    """
    if library_id is None:
        raise ValueError(
            f"{model.__name__} id={pk} requires a library_id scope. "
            "Unscoped lookups are forbidden."
        )
    if not hasattr(model, "library_id"):
        raise ValueError(f"{model.__name__} has no library_id column")

    stmt = select(model).where(model.id == pk, model.library_id == library_id)
    result = db.session.execute(stmt).scalar_one_or_none()
    if result is None:
        logger.debug(
            "get_scoped: %s id=%s not found in library %s",
            model.__name__, pk, library_id,
        )
        raise NotFoundError(resource=model.__name__, resource_id=pk, library_id=library_id)
    return result


def get_scoped_or_none(model, pk: int, *, library_id: int):
    """Same as get_scoped but returns None instead of raising NotFoundError."""
    try:
        return get_scoped(model, pk, library_id=library_id)
    except NotFoundError:
        return None
