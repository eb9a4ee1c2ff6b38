"""
Application Initialization Module
Initializes the Flask app with all infrastructure components
"""
import os
from flask import Flask
from config import get_config
from logging_config import setup_logging
from security import setup_security
from health_checks import register_health_checks
import logging

logger = logging.getLogger(__name__)


def create_app(config_class=None):
    """
    Application factory that creates and configures Flask app with all infrastructure

    Args:
        config_class: Optional config class; defaults to the one selected by FLASK_ENV

    Returns:
        Configured Flask application instance
    """
    from app import register_blueprints

    app = Flask(__name__, static_folder=None)

    app.config.from_object(config_class or get_config())
    # Chinese messages stay readable in the JSON bodies
    app.json.ensure_ascii = False

    setup_logging(app)

    logger.info("=" * 60)
    logger.info("Initializing Yishou CRM backend")
    logger.info("=" * 60)
    logger.info(f"Environment: {os.environ.get('FLASK_ENV', 'development')}")
    logger.info(f"Debug mode: {app.debug}")

    # Setup security (CORS, headers, error handlers)
    setup_security(app, app.config)

    # Health endpoints before the static catch-all
    register_health_checks(app)
    register_blueprints(app)

    if app.config.get('REMINDER_SCHEDULER_ENABLED'):
        start_reminder_scheduler(app)

    logger.info("Application initialization complete")
    logger.info("=" * 60)

    return app


def start_reminder_scheduler(app):
    """
    Start the background reminder sweep

    Args:
        app: Flask application instance
    """
    from services.scheduler import init_scheduler

    interval = app.config.get('REMINDER_CHECK_INTERVAL', 60)
    app.scheduler = init_scheduler(interval_seconds=interval)
    return app.scheduler
