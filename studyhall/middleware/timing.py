"""
Request timing middleware.

Every response gets ``X-Request-ID`` (echoed from the client when present)
and ``X-Request-Duration-Ms``. API requests are logged with the acting
library: slow ones (> SLOW_THRESHOLD_MS) at WARNING, 5xx at ERROR, the rest
at DEBUG. Health probes are not logged.
"""

import logging
import time
import uuid

from flask import Flask, g, request

logger = logging.getLogger(__name__)

SLOW_THRESHOLD_MS = 1000

_QUIET_PREFIXES = ("/api/v1/health", "/static")


def init_request_timing(app: Flask):
    """Register the before/after request hooks."""

    @app.before_request
    def _start_clock():
        g.request_start = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]

    @app.after_request
    def _stamp_and_log(response):
        started = getattr(g, "request_start", None)
        if started is None:
            return response

        elapsed_ms = (time.perf_counter() - started) * 1000
        response.headers["X-Request-ID"] = g.request_id
        response.headers["X-Request-Duration-Ms"] = f"{elapsed_ms:.1f}"

        if request.path.startswith(_QUIET_PREFIXES):
            return response

        status = response.status_code
        if elapsed_ms > SLOW_THRESHOLD_MS:
            level, label = logging.WARNING, "Slow request"
        elif status >= 500:
            level, label = logging.ERROR, "Server error"
        else:
            level, label = logging.DEBUG, "Request"

        logger.log(
            level, "%s: %s %s -> %d", label, request.method, request.path, status,
            extra={
                "request_id": g.request_id,
                "method": request.method,
                "path": request.path,
                "status": status,
                "duration_ms": round(elapsed_ms, 1),
                "remote_addr": request.remote_addr,
                "library_id": getattr(g, "library_id", None),
            },
        )
        return response
