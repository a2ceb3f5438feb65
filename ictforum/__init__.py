"""
ICT Forum Backend
Flask Application Factory.

Usage:
    from ictforum import create_app
    app = create_app()           # defaults to "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import event as _sa_event, engine as _sa_engine
from sqlalchemy.exc import SQLAlchemyError

from ictforum.config import config
from ictforum.models import db
from ictforum.middleware.logging_config import configure_logging
from ictforum.middleware.timing import init_request_timing
from ictforum.middleware.security_headers import init_security_headers
from ictforum.middleware.rate_limiter import init_rate_limits
from ictforum.middleware.jwt_auth import init_jwt_middleware
from ictforum.services.blob_store import LocalBlobStore
from ictforum.utils.errors import init_error_handlers

logger = logging.getLogger(__name__)


# ── SQLite FK enforcement (global engine event) ─────────────────────────
@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
    storage_uri=os.getenv("REDIS_URL", "memory://"),
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Blob store for suggestion media, post images, member documents ───
    app.extensions["blob_store"] = LocalBlobStore(
        app.config["UPLOAD_FOLDER"], app.config.get("PUBLIC_BASE_URL", ""),
    )

    # ── Security headers (CSP, HSTS, X-Frame-Options, etc.) ─────────────
    init_security_headers(app)

    # ── Request timing middleware ────────────────────────────────────────
    init_request_timing(app)

    # ── JWT auth middleware ──────────────────────────────────────────────
    init_jwt_middleware(app)

    # ── Import all models so Alembic can detect them ─────────────────────
    from ictforum.models import department, member, post, suggestion, user  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        try:
            db.create_all()
            app.logger.info("db.create_all() completed successfully")
        except SQLAlchemyError as e:
            app.logger.warning("db.create_all() failed: %s", e)

    # ── Blueprints ───────────────────────────────────────────────────────
    from ictforum.blueprints.auth_bp import auth_bp
    from ictforum.blueprints.department_bp import department_bp
    from ictforum.blueprints.suggestion_bp import suggestion_bp
    from ictforum.blueprints.report_bp import report_bp
    from ictforum.blueprints.post_bp import post_bp
    from ictforum.blueprints.member_bp import member_bp
    from ictforum.blueprints.health_bp import health_bp
    from ictforum.blueprints.uploads_bp import uploads_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(department_bp)
    app.register_blueprint(suggestion_bp)
    app.register_blueprint(report_bp)
    app.register_blueprint(post_bp)
    app.register_blueprint(member_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(uploads_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("create-admin")
    @click.option("--email", required=True, help="Admin login email")
    @click.option("--name", default="Administrator", show_default=True)
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin_cmd(email, name, password):
        """Create the admin account, or promote an existing user to admin."""
        from ictforum.services.user_service import ensure_admin
        user, created = ensure_admin(email=email, name=name, password=password)
        if created:
            logger.info("Created admin %s (id=%s).", user.email, user.id)
        else:
            logger.info("Promoted %s (id=%s) to admin.", user.email, user.id)

    @app.cli.command("seed-departments")
    def seed_departments_cmd():
        """Seed the default departments (skips names that already exist)."""
        from ictforum.services.department_service import seed_defaults
        count = seed_defaults()
        logger.info("Seeded %s new departments.", count)

    # ── Error handlers ───────────────────────────────────────────────────
    init_error_handlers(app)

    # ── Rate limiting (after blueprints are registered) ──────────────────
    init_rate_limits(app, limiter)

    return app
