"""
Study-Hall Admissions
Blueprint registry.
"""

from flask import request


def parse_page_args(default_limit=20):
    """Read ``page`` / ``limit`` query params as integers.

    Clamping to the allowed range is the service's job; this only rejects
    values that are not integers.

    Returns:
        (page, limit)

    Raises:
        ValueError: page or limit is not an integer.
    """
    try:
        page = int(request.args.get("page", 1))
        limit = int(request.args.get("limit", default_limit))
    except (TypeError, ValueError) as exc:
        raise ValueError("page and limit must be integers") from exc
    return page, limit
