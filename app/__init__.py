"""
Yishou CRM - Application Package

This package contains the modular backend structure:
- api/: HTTP route handlers (Flask Blueprints)
- utils/: Business clock helpers and the JSON response envelope

The app factory lives in app_init.py at the project root; repositories and
services live in the top-level services/ package.
"""

import logging

logger = logging.getLogger(__name__)


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.
    Called from app_init.create_app after app creation.

    Blueprints are imported here; database.models imports app.utils.
    """
    from app.api.customers import customers_bp
    from app.api.todos import todos_bp
    from app.api.activities import activities_bp
    from app.api.reminders import reminders_bp
    from app.api.users import users_bp
    from app.api.tags import tags_bp
    from app.api.dashboard import dashboard_bp
    from app.api.pages import pages_bp

    app.register_blueprint(customers_bp)
    app.register_blueprint(todos_bp)
    app.register_blueprint(activities_bp)
    app.register_blueprint(reminders_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(tags_bp)
    app.register_blueprint(dashboard_bp)
    # Catch-all routes last
    app.register_blueprint(pages_bp)

    logger.info(f"Registered {len(app.blueprints)} blueprints")


__all__ = ['register_blueprints', 'app']


# ==============================================================================
# WSGI APP EXPORT FOR GUNICORN
# ==============================================================================
# This allows gunicorn to run with: gunicorn app:app
# The Flask app is created in application.py.
# We use __getattr__ for lazy loading to avoid circular import issues.
# ==============================================================================

_flask_app = None


def __getattr__(name):
    """Lazy load the Flask app to avoid circular imports."""
    global _flask_app
    if name == 'app':
        if _flask_app is None:
            from application import app as flask_app
            _flask_app = flask_app
        return _flask_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
