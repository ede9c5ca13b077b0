"""
Study-Hall Admissions service.

    from studyhall import create_app
    app = create_app()           # APP_ENV, else "development"
    app = create_app("testing")
"""

import logging
import os

import click
from flask import Flask, abort, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as sa_engine
from sqlalchemy import event as sa_event

from studyhall.config import config
from studyhall.models import db
from studyhall.middleware.logging_config import configure_logging
from studyhall.middleware.timing import init_request_timing
from studyhall.middleware.rate_limiter import init_rate_limits
from studyhall.middleware.jwt_auth import init_jwt_middleware
from studyhall.middleware.tenant_context import init_tenant_context
from studyhall.utils.errors import E, api_error

logger = logging.getLogger(__name__)


@sa_event.listens_for(sa_engine.Engine, "connect")
def _sqlite_foreign_keys(dbapi_conn, connection_record):
    """SQLite ignores FOREIGN KEY clauses unless the pragma is on per connection."""
    if "sqlite" not in type(dbapi_conn).__module__:
        return
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


migrate = Migrate()
# Limits are attached per blueprint in init_rate_limits.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)


def _init_cors(app):
    origins = app.config.get("CORS_ORIGINS", "*")
    if not origins or origins == "*":
        CORS(app)
        return
    CORS(app, origins=[o.strip() for o in origins.split(",") if o.strip()])


def _init_request_guard(app):
    """413 for oversized bodies, 415 for non-JSON writes under /api/."""

    @app.before_request
    def _guard_request():
        limit = app.config.get("MAX_CONTENT_LENGTH")
        if limit and request.content_length and request.content_length > limit:
            abort(413, description="Request body too large")
        if request.method not in ("POST", "PUT", "PATCH") or not request.path.startswith("/api/"):
            return
        if request.data and "json" not in (request.content_type or ""):
            abort(415, description="Content-Type must be application/json")


def _create_tables(app):
    from studyhall.models import admission, library, student  # noqa: F401

    with app.app_context():
        try:
            db.create_all()
            app.logger.info("Schema ready")
        except Exception as exc:
            app.logger.warning("Schema creation skipped: %s", exc)


def _register_blueprints(app):
    from studyhall.blueprints.admission_bp import admission_bp
    from studyhall.blueprints.health_bp import health_bp
    from studyhall.blueprints.public_registration_bp import public_registration_bp

    for bp in (admission_bp, health_bp, public_registration_bp):
        app.register_blueprint(bp)


def _register_cli(app):
    @app.cli.command("create-library")
    @click.argument("name")
    @click.argument("library_code")
    @click.option("--owner-email", default=None)
    def create_library_cmd(name, library_code, owner_email):
        """Create a library with its public registration code."""
        from studyhall.models.library import Library

        library = Library(name=name, library_code=library_code.upper(), owner_email=owner_email)
        db.session.add(library)
        db.session.commit()
        logger.info("Created library %s (%s)", library.id, library.library_code,
                    extra={"library_id": library.id})
        click.echo(f"library_id={library.id} code={library.library_code}")

    @app.cli.command("issue-owner-token")
    @click.argument("library_id", type=int)
    def issue_owner_token_cmd(library_id):
        """Print an owner access token (local use only)."""
        from studyhall.services.jwt_service import generate_owner_token

        click.echo(generate_owner_token(library_id))


def _register_error_handlers(app):
    @app.errorhandler(404)
    def _not_found(e):
        return api_error(E.NOT_FOUND, "Not found")

    @app.errorhandler(405)
    def _bad_method(e):
        return api_error(E.VALIDATION_INVALID, "Method not allowed", status=405)

    @app.errorhandler(413)
    def _too_large(e):
        return api_error(E.VALIDATION_INVALID, "Request body too large", status=413)

    @app.errorhandler(415)
    def _wrong_media_type(e):
        return api_error(E.VALIDATION_INVALID, "Content-Type must be application/json", status=415)

    @app.errorhandler(429)
    def _throttled(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def _internal(e):
        logger.error("Unhandled server error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def create_app(config_name=None):
    """Build the application for *config_name* ("development", "testing", "production")."""
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name or os.getenv("APP_ENV", "development")]())

    configure_logging(app)

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    _init_cors(app)

    # before_request order: clock, bearer token, tenant, body guard
    init_request_timing(app)
    init_jwt_middleware(app)
    init_tenant_context(app)
    _init_request_guard(app)

    _create_tables(app)
    _register_blueprints(app)
    _register_cli(app)
    _register_error_handlers(app)

    # Needs the blueprints registered first.
    init_rate_limits(app, limiter)

    return app
