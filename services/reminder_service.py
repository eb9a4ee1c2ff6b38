"""
Reminder Service - renders reminders from templates and sweeps due reminders.

The sweep picks up pending reminders whose schedule_time has arrived, sends
them through the NotificationService, records the outcome and schedules the
next occurrence of recurring reminders.
"""

import logging
from datetime import timedelta
from typing import Dict, Any, Optional

from jinja2 import Environment
from sqlalchemy.orm import Session, joinedload

from app.utils.helpers import add_months, format_datetime, MINUTE_FORMAT
from app.utils.response import NotFoundError
from database.models import Reminder, Todo
from services.notification_service import NotificationService, NotificationError, QuietTimeError
from services.reminder_repository import ReminderRepository

logger = logging.getLogger(__name__)

DEFAULT_TITLE_TEMPLATE = '待办提醒：{{ title }}'
DEFAULT_CONTENT_TEMPLATE = (
    '您有一个待办事项需要处理：\n\n'
    '标题：{{ title }}\n'
    '内容：{{ content }}\n'
    '客户：{{ customer_name }}\n'
    '计划时间：{{ planned_time }}\n\n'
    '请及时处理！'
)

_jinja_env = Environment(autoescape=False, keep_trailing_newline=True)


def render_template(source: str, variables: Dict[str, Any]) -> str:
    """Render a reminder template string with the todo variables."""
    return _jinja_env.from_string(source).render(**variables)


def next_schedule_time(reminder: Reminder):
    """Next occurrence for a recurring reminder, None for one-off ones."""
    frequency = reminder.frequency or 'once'
    if frequency == 'daily':
        return reminder.schedule_time + timedelta(days=1)
    if frequency == 'weekly':
        return reminder.schedule_time + timedelta(weeks=1)
    if frequency == 'monthly':
        return add_months(reminder.schedule_time, 1)
    return None


def todo_variables(todo: Todo) -> Dict[str, Any]:
    return {
        'title': todo.title,
        'content': todo.content or '',
        'customer_name': todo.customer.name if todo.customer else '',
        'planned_time': format_datetime(todo.planned_time, MINUTE_FORMAT),
        'priority': todo.priority,
        'status': todo.status,
    }


class ReminderService:
    """Service for creating and dispatching reminders."""

    def __init__(self, session: Session, notifier: Optional[NotificationService] = None):
        self.session = session
        self.repository = ReminderRepository(session)
        self.notifier = notifier or NotificationService()

    def create_reminder_from_todo(self, todo_id: int, user_id: int, reminder_type: str, schedule_time) -> Reminder:
        """
        Create a reminder for a todo, rendered from the default template of its type.

        Args:
            todo_id: Todo to remind about
            user_id: Receiving user
            reminder_type: wechat, enterprise_wechat, both or sms
            schedule_time: When to send

        Returns:
            The new Reminder row
        """
        todo = self.session.query(Todo).options(joinedload(Todo.customer)) \
            .filter(Todo.id == todo_id).first()
        if not todo:
            raise NotFoundError('待办不存在')

        template = self.repository.get_default_template(reminder_type)
        title_source = template.title if template else DEFAULT_TITLE_TEMPLATE
        content_source = template.content if template else DEFAULT_CONTENT_TEMPLATE

        variables = todo_variables(todo)
        return self.repository.create({
            'todo_id': todo.id,
            'user_id': user_id,
            'type': reminder_type,
            'title': render_template(title_source, variables)[:255],
            'content': render_template(content_source, variables),
            'schedule_time': schedule_time,
        })

    def send(self, reminder: Reminder):
        config = self.repository.get_or_create_config(reminder.user_id)
        return self.notifier.send_reminder(reminder, config)

    def process_pending(self) -> Dict[str, int]:
        """
        Send every due pending reminder.

        A reminder caught by quiet time is moved to the end of the window and
        stays pending; it counts as processed but neither sent nor failed.

        Returns:
            Dict with processed, sent and failed counts
        """
        result = {'processed': 0, 'sent': 0, 'failed': 0}

        for reminder in self.repository.get_pending():
            result['processed'] += 1
            try:
                self.send(reminder)
            except QuietTimeError as e:
                self.repository.postpone(reminder, e.resume_at)
                logger.info(f"Reminder {reminder.id} postponed to {e.resume_at} (quiet time)")
                continue
            except NotificationError as e:
                self._handle_failure(reminder, str(e))
                result['failed'] += 1
                continue
            except Exception as e:
                logger.exception(f"Unexpected error sending reminder {reminder.id}")
                self._handle_failure(reminder, str(e))
                result['failed'] += 1
                continue

            self.repository.mark_sent(reminder)
            result['sent'] += 1
            self._schedule_next(reminder)

        if result['processed']:
            logger.info(
                f"Processed {result['processed']} reminders: "
                f"{result['sent']} sent, {result['failed']} failed"
            )
        return result

    def _handle_failure(self, reminder: Reminder, reason: str):
        self.repository.mark_failed(reminder, reason)
        logger.warning(f"Reminder {reminder.id} failed ({reminder.retry_count}/{reminder.max_retries}): {reason}")
        if reminder.can_retry:
            self.repository.requeue(reminder)

    def _schedule_next(self, reminder: Reminder) -> Optional[Reminder]:
        next_time = next_schedule_time(reminder)
        if next_time is None:
            return None

        follow_up = Reminder(
            todo_id=reminder.todo_id,
            user_id=reminder.user_id,
            type=reminder.type,
            title=reminder.title,
            content=reminder.content,
            status='pending',
            frequency=reminder.frequency,
            schedule_time=next_time,
            retry_count=0,
            max_retries=reminder.max_retries
        )
        self.session.add(follow_up)
        self.session.flush()
        logger.info(f"Scheduled next {reminder.frequency} reminder {follow_up.id} at {next_time}")
        return follow_up


# =============================================================================
# SCHEDULED JOB
# =============================================================================

def run_reminder_check():
    """Job entry point: sweep due reminders in its own session."""
    from database.connection import get_db_session, is_db_configured

    if not is_db_configured():
        return None

    with get_db_session() as session:
        return ReminderService(session).process_pending()
