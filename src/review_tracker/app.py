"""Flask application factory."""

import logging
import logging.config
import os
from pathlib import Path

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import InternalServerError

from . import __version__
from .config import get_notifications_config, get_value, load_config
from .database import db, init_database
from .services.delivery import LoggingDelivery
from .services.errors import ServiceError
from .services.identity import resolve_request_user


def setup_logging(config: dict, app_root: Path) -> None:
    """Configure structured logging to console and file."""
    log_level = get_value(config, "logging", "level", default="INFO")
    log_file = get_value(config, "logging", "file", default="logs/app.log")
    max_bytes = get_value(config, "logging", "max_bytes", default=10_000_000)  # 10MB
    backup_count = get_value(config, "logging", "backup_count", default=5)

    # Ensure logs directory exists
    log_path = app_root / log_file
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(levelname)s - %(name)s - %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": log_level,
                "formatter": "standard",
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.handlers.RotatingFileHandler",
                "level": log_level,
                "formatter": "standard",
                "filename": str(log_path),
                "maxBytes": max_bytes,
                "backupCount": backup_count,
            },
        },
        "root": {
            "level": log_level,
            "handlers": ["console", "file"],
        },
    }

    logging.config.dictConfig(logging_config)


def create_app(config_path: str = "config.yaml", testing: bool = False) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        config_path: Path to the YAML configuration file
        testing: If True, mark the app as under test before any
            initialization runs

    Returns:
        Configured Flask application instance
    """
    # Determine the application root directory
    app_root = Path(config_path).parent.absolute()
    if not app_root.exists():
        app_root = Path.cwd()

    # Load configuration
    config = load_config(config_path)

    app = Flask(__name__)

    if testing:
        app.config["TESTING"] = True

    # Configure Flask
    app.config["DEBUG"] = get_value(config, "server", "debug", default=False)
    app.config["APP_CONFIG"] = config
    app.config["APP_VERSION"] = __version__
    app.config["APP_ROOT"] = str(app_root)

    # Setup logging
    setup_logging(config, app_root)
    logger = logging.getLogger(__name__)
    logger.info(f"Starting Review Tracker v{__version__}")

    # Session tokens are signed with SECRET_KEY; a generated key
    # invalidates every token on restart
    secret_key = os.environ.get("SECRET_KEY") or app.config.get("SECRET_KEY")
    if not secret_key:
        if app.config["DEBUG"] or testing:
            secret_key = "dev-secret-key"
        else:
            secret_key = os.urandom(32).hex()
            logger.warning("No SECRET_KEY configured, using a generated key that will not persist across restarts")
    app.config["SECRET_KEY"] = secret_key

    # Initialize database (continues even if connection fails)
    db_connected = init_database(app, config)
    app.config["DATABASE_CONNECTED"] = db_connected

    # Initialize notification delivery from config
    notif_config = get_notifications_config(config)
    if notif_config["delivery_enabled"]:
        app.extensions["notification_delivery"] = LoggingDelivery(base_url=notif_config["base_url"])
        logger.info(f"Notification delivery enabled (base_url={notif_config['base_url']})")
    else:
        app.extensions["notification_delivery"] = None
        logger.info("Notification delivery disabled (in-app notifications only)")

    @app.before_request
    def authenticate_api_request():
        # g outlives a request when the app context is shared (tests, CLI)
        g.pop("current_user", None)
        if request.path.startswith("/api/"):
            resolve_request_user()
        return None

    # Register error handlers
    register_error_handlers(app)

    # Register blueprints
    register_blueprints(app)

    # Register CLI command groups
    register_cli_commands(app)

    return app


def register_error_handlers(app: Flask) -> None:
    """Map service errors and HTTP errors to JSON bodies."""
    logger = logging.getLogger(__name__)

    @app.errorhandler(ServiceError)
    def service_error(error: ServiceError):
        if error.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {error.message}")
        return jsonify({"error": error.message}), error.status_code

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(error: InternalServerError):
        db.session.rollback()
        original = getattr(error, "original_exception", None) or error
        logger.error(f"Unhandled error on {request.method} {request.path}: {original!r}")
        # In production, don't expose error details
        return jsonify({"error": "Internal server error"}), 500


def register_blueprints(app: Flask) -> None:
    """Register application blueprints."""
    from .routes.action_items import action_items_bp
    from .routes.admin import admin_bp
    from .routes.auth import auth_bp
    from .routes.health import health_bp
    from .routes.manager import manager_bp
    from .routes.metrics import metrics_bp
    from .routes.notifications import notifications_bp
    from .routes.one_on_ones import one_on_ones_bp

    app.register_blueprint(action_items_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(manager_bp)
    app.register_blueprint(metrics_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(one_on_ones_bp)


def register_cli_commands(app: Flask) -> None:
    """Register Flask CLI command groups."""
    from .cli.metrics_cli import metrics_cli
    from .cli.notifications_cli import notifications_cli
    from .cli.questions_cli import questions_cli
    from .cli.users_cli import users_cli

    app.cli.add_command(metrics_cli)
    app.cli.add_command(notifications_cli)
    app.cli.add_command(questions_cli)
    app.cli.add_command(users_cli)
