"""
Database package for the CRM backend.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    get_engine,
    get_session_factory,
    get_db_session,
    check_db_connection,
    is_db_configured
)

from database.models import (
    Customer,
    User,
    Todo,
    TodoLog,
    FollowUpRecord,
    Reminder,
    ReminderTemplate,
    ReminderConfig,
    TagDimension,
    Tag
)

__all__ = [
    # Connection
    'Base',
    'get_engine',
    'get_session_factory',
    'get_db_session',
    'check_db_connection',
    'is_db_configured',
    # Models
    'Customer',
    'User',
    'Todo',
    'TodoLog',
    'FollowUpRecord',
    'Reminder',
    'ReminderTemplate',
    'ReminderConfig',
    'TagDimension',
    'Tag'
]
