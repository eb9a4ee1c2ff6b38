"""
Yishou CRM Backend Application
REST API for customers, follow-up todos, follow-up records, reminders, users and tags.

MODULAR ARCHITECTURE:
- app_init.py: Flask app factory (config, logging, security, blueprints)
- app/api/: Route handlers (Flask Blueprints), one per resource
- services/: Repositories and services on top of SQLAlchemy sessions
- database/: Engine/session management and ORM models
- alembic/: Schema migrations (run: alembic upgrade head)
"""
import logging

from app_init import create_app

logger = logging.getLogger(__name__)

app = create_app()


if __name__ == '__main__':
    port = app.config.get('SERVER_PORT', 8081)
    logger.info(f"Starting CRM API on port {port}")
    app.run(host='0.0.0.0', port=port, debug=app.debug)
