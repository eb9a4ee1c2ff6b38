"""
Reminder Repository - reminders, reminder templates and per-user reminder configs.
"""

import logging
from typing import List, Dict, Any, Tuple, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import func

from app.utils.helpers import now, today_range, parse_datetime
from app.utils.response import NotFoundError, InvalidParamsError
from database.models import (
    Reminder, ReminderTemplate, ReminderConfig, Todo,
    REMINDER_TYPES, REMINDER_STATUSES, REMINDER_FREQUENCIES
)
from validators import (
    ensure_valid, validate_required_fields, validate_string_length,
    validate_choice, validate_quiet_time, validate_number_range
)

logger = logging.getLogger(__name__)

PENDING_BATCH_SIZE = 100

DEFAULT_CONFIG = {
    'enable_wechat': True,
    'enable_enterprise_wechat': True,
    'advance_minutes': 30,
    'quiet_start': '22:00',
    'quiet_end': '08:00',
}

UPDATABLE_FIELDS = ('type', 'title', 'content', 'status', 'frequency', 'max_retries', 'user_id')


def _parse_time(value, field):
    try:
        return parse_datetime(value)
    except ValueError:
        raise InvalidParamsError(f"无效的时间格式: {field}")


class ReminderRepository:
    """Repository for reminder rows and their supporting tables."""

    def __init__(self, session: Session):
        self.session = session

    def _query(self):
        return self.session.query(Reminder).options(
            joinedload(Reminder.user),
            joinedload(Reminder.todo).joinedload(Todo.customer)
        )

    def get(self, reminder_id: int) -> Reminder:
        reminder = self._query().filter(Reminder.id == reminder_id).first()
        if not reminder:
            raise NotFoundError('提醒不存在')
        return reminder

    def _validate(self, data: Dict, partial: bool = False):
        if not partial:
            ensure_valid(validate_required_fields(data, ['todo_id', 'user_id', 'type', 'title', 'schedule_time']))
        if data.get('type') is not None:
            ensure_valid(validate_choice(data['type'], REMINDER_TYPES, '提醒类型'))
        if data.get('title') is not None:
            ensure_valid(validate_string_length(data['title'], 1, 255, '标题'))
        if data.get('status') is not None:
            ensure_valid(validate_choice(data['status'], REMINDER_STATUSES, '提醒状态'))
        if data.get('frequency'):
            ensure_valid(validate_choice(data['frequency'], REMINDER_FREQUENCIES, '提醒频率'))
        if data.get('max_retries') is not None:
            ensure_valid(validate_number_range(data['max_retries'], 0, 10, 'max_retries'))

    # =========================================================================
    # REMINDERS
    # =========================================================================

    def create(self, data: Dict) -> Reminder:
        self._validate(data)
        if not self.session.query(Todo.id).filter(Todo.id == data['todo_id']).first():
            raise NotFoundError('待办不存在')

        reminder = Reminder(
            todo_id=data['todo_id'],
            user_id=data['user_id'],
            type=data['type'],
            title=data['title'],
            content=data.get('content', ''),
            status='pending',
            frequency=data.get('frequency') or 'once',
            schedule_time=_parse_time(data['schedule_time'], 'schedule_time'),
            retry_count=0,
            max_retries=data.get('max_retries') if data.get('max_retries') is not None else 3
        )
        self.session.add(reminder)
        self.session.flush()
        logger.info(f"Created reminder: {reminder.id} for todo {reminder.todo_id}")
        return reminder

    def update(self, reminder_id: int, data: Dict) -> Reminder:
        self._validate(data, partial=True)
        reminder = self.get(reminder_id)
        for key in UPDATABLE_FIELDS:
            if key in data and data[key] is not None:
                setattr(reminder, key, data[key])
        if data.get('schedule_time') is not None:
            reminder.schedule_time = _parse_time(data['schedule_time'], 'schedule_time')
        reminder.updated_at = now()
        self.session.flush()
        logger.info(f"Updated reminder: {reminder_id}")
        return reminder

    def delete(self, reminder_id: int) -> bool:
        deleted = self.session.query(Reminder).filter(Reminder.id == reminder_id).delete()
        if not deleted:
            raise NotFoundError('提醒不存在')
        logger.info(f"Deleted reminder: {reminder_id}")
        return True

    def cancel(self, reminder_id: int) -> Reminder:
        reminder = self.get(reminder_id)
        reminder.status = 'cancelled'
        reminder.updated_at = now()
        self.session.flush()
        logger.info(f"Cancelled reminder: {reminder_id}")
        return reminder

    def list(self, filters: Dict[str, Any], page: int = 1, page_size: int = 20) -> Tuple[List[Dict], int]:
        query = self._query()
        if filters.get('user_id') is not None:
            query = query.filter(Reminder.user_id == filters['user_id'])
        if filters.get('todo_id') is not None:
            query = query.filter(Reminder.todo_id == filters['todo_id'])
        if filters.get('status'):
            query = query.filter(Reminder.status == filters['status'])
        if filters.get('type'):
            query = query.filter(Reminder.type == filters['type'])

        total = query.count()
        reminders = query.order_by(Reminder.schedule_time.desc()) \
            .offset((page - 1) * page_size).limit(page_size).all()
        return [r.to_dict() for r in reminders], total

    def get_pending(self, limit: int = PENDING_BATCH_SIZE) -> List[Reminder]:
        """Pending reminders that are due, oldest first."""
        return self._query().filter(
            Reminder.status == 'pending',
            Reminder.schedule_time <= now()
        ).order_by(Reminder.schedule_time.asc()).limit(limit).all()

    def mark_sent(self, reminder: Reminder):
        current = now()
        reminder.status = 'sent'
        reminder.sent_time = current
        reminder.fail_reason = None
        reminder.updated_at = current
        self.session.flush()

    def mark_failed(self, reminder: Reminder, reason: str):
        reminder.status = 'failed'
        reminder.fail_reason = reason
        reminder.retry_count = (reminder.retry_count or 0) + 1
        reminder.updated_at = now()
        self.session.flush()

    def requeue(self, reminder: Reminder):
        reminder.status = 'pending'
        reminder.updated_at = now()
        self.session.flush()

    def postpone(self, reminder: Reminder, until):
        """Keep the reminder pending and move it to `until`; retries are untouched."""
        reminder.status = 'pending'
        reminder.schedule_time = until
        reminder.updated_at = now()
        self.session.flush()

    def get_stats(self, user_id: Optional[int] = None) -> Dict[str, int]:
        base = self.session.query(Reminder)
        if user_id is not None:
            base = base.filter(Reminder.user_id == user_id)

        stats = {status: 0 for status in REMINDER_STATUSES}
        rows = base.with_entities(Reminder.status, func.count(Reminder.id)).group_by(Reminder.status).all()
        for status, count in rows:
            stats[status] = count
        stats['total'] = sum(count for _, count in rows)

        today_start, today_end = today_range()
        stats['today_pending'] = base.filter(
            Reminder.status == 'pending',
            Reminder.schedule_time >= today_start,
            Reminder.schedule_time < today_end
        ).count()
        return stats

    # =========================================================================
    # TEMPLATES
    # =========================================================================

    def get_default_template(self, reminder_type: str) -> Optional[ReminderTemplate]:
        return self.session.query(ReminderTemplate).filter(
            ReminderTemplate.type == reminder_type,
            ReminderTemplate.is_default == True,  # noqa: E712
            ReminderTemplate.is_active == True  # noqa: E712
        ).order_by(ReminderTemplate.id).first()

    # =========================================================================
    # CONFIG
    # =========================================================================

    def get_or_create_config(self, user_id: int) -> ReminderConfig:
        """Load a user's reminder config, creating the default one when missing."""
        config = self.session.query(ReminderConfig).filter(ReminderConfig.user_id == user_id).first()
        if config:
            return config

        config = ReminderConfig(user_id=user_id, **DEFAULT_CONFIG)
        self.session.add(config)
        self.session.flush()
        logger.info(f"Created default reminder config for user {user_id}")
        return config

    def update_config(self, user_id: int, data: Dict) -> ReminderConfig:
        for key in ('quiet_start', 'quiet_end'):
            if data.get(key) is not None:
                ensure_valid(validate_quiet_time(data[key]))
        if data.get('advance_minutes') is not None:
            ensure_valid(validate_number_range(data['advance_minutes'], 0, 24 * 60, 'advance_minutes'))

        config = self.get_or_create_config(user_id)
        for key in DEFAULT_CONFIG:
            if key in data and data[key] is not None:
                setattr(config, key, data[key])
        config.updated_at = now()
        self.session.flush()
        logger.info(f"Updated reminder config for user {user_id}")
        return config
