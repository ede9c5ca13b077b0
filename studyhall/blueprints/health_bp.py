"""
Health check blueprint.

Endpoints:
    GET /api/v1/health        service name
    GET /api/v1/health/ready  load-balancer probe, no dependencies
    GET /api/v1/health/live   database round trip plus limiter backend; 503 when degraded
"""

import logging
import time

from flask import Blueprint, current_app, jsonify

from studyhall.models import db

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/v1/health")


@health_bp.route("", methods=["GET"])
def health():
    return jsonify({"status": "ok", "service": "studyhall-admissions"}), 200


@health_bp.route("/ready", methods=["GET"])
def ready():
    """200 whenever the process can serve requests."""
    return jsonify({"status": "ok"}), 200


def _probe_database() -> dict:
    started = time.perf_counter()
    try:
        db.session.execute(db.text("SELECT 1"))
    except Exception as exc:
        db.session.rollback()
        logger.error("Database probe failed: %s", exc)
        return {"status": "error", "detail": str(exc)}
    return {"status": "ok", "latency_ms": round((time.perf_counter() - started) * 1000, 1)}


@health_bp.route("/live", methods=["GET"])
def live():
    """Dependency report; 503 if the database is unreachable."""
    cfg = current_app.config
    database = _probe_database()
    healthy = database["status"] == "ok"
    return jsonify({
        "status": "healthy" if healthy else "degraded",
        "checks": {
            "database": database,
            "rate_limit_storage": {
                "status": "configured",
                "backend": (cfg.get("REDIS_URL") or "memory://").split(":", 1)[0],
            },
            "app": {
                "name": "Study-Hall Admissions",
                "debug": current_app.debug,
                "testing": current_app.testing,
                "strict_allocation": bool(cfg.get("ADMISSION_STRICT_ALLOCATION")),
            },
        },
    }), 200 if healthy else 503
