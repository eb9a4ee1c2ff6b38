"""
Services package for the CRM backend.
Contains repository classes for database access and the reminder/dashboard/Excel services.
"""

from services.customer_repository import CustomerRepository
from services.todo_repository import TodoRepository
from services.activity_repository import ActivityRepository
from services.reminder_repository import ReminderRepository
from services.user_repository import UserRepository
from services.tag_repository import TagRepository

__all__ = [
    'CustomerRepository',
    'TodoRepository',
    'ActivityRepository',
    'ReminderRepository',
    'UserRepository',
    'TagRepository'
]
