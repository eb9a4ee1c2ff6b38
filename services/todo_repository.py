"""
Todo Repository - Database access layer for follow-up todos.
Every change is written to the todo_logs audit table.
"""

import logging
from datetime import timedelta
from typing import List, Dict, Any, Tuple, Optional
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_, and_, func

from app.utils.helpers import now, day_range, today_range, parse_datetime
from app.utils.response import NotFoundError, InvalidParamsError
from database.models import (
    Todo, TodoLog, Customer, TODO_STATUSES, TODO_PRIORITIES, REMINDER_TYPES
)
from validators import (
    ensure_valid, validate_required_fields, validate_string_length, validate_choice
)

logger = logging.getLogger(__name__)

DATE_TYPES = ('yesterday', 'today', 'tomorrow', 'upcoming', 'overdue', 'all')
CLOSED_STATUSES = ('completed', 'cancelled')

UPDATABLE_FIELDS = (
    'title', 'content', 'status', 'priority', 'executor_id', 'customer_id',
    'is_reminder', 'reminder_type', 'reminder_user_id', 'tags', 'attachments',
)
DATETIME_FIELDS = ('planned_time', 'reminder_time')


def _parse_time(value, field):
    try:
        return parse_datetime(value)
    except ValueError:
        raise InvalidParamsError(f"无效的时间格式: {field}")


class TodoRepository:
    """Repository for todo operations with an audit log."""

    def __init__(self, session: Session, user_id: int = None):
        self.session = session
        self.user_id = user_id  # actor recorded in todo_logs

    def _log(self, todo: Todo, action: str, old_data: Dict = None, new_data: Dict = None,
             remark: str = None):
        self.session.add(TodoLog(
            todo_id=todo.id,
            user_id=self.user_id or todo.creator_id,
            action=action,
            old_data=old_data,
            new_data=new_data,
            remark=remark
        ))

    def _get(self, todo_id: int) -> Todo:
        todo = self.session.query(Todo).options(
            joinedload(Todo.customer),
            joinedload(Todo.creator),
            joinedload(Todo.executor),
            joinedload(Todo.reminder_user)
        ).filter(
            Todo.id == todo_id,
            Todo.is_deleted == False  # noqa: E712
        ).first()
        if not todo:
            raise NotFoundError('待办不存在')
        return todo

    def _validate(self, data: Dict, partial: bool = False):
        if not partial:
            ensure_valid(validate_required_fields(
                data, ['customer_id', 'creator_id', 'executor_id', 'title', 'planned_time']
            ))
        if data.get('title') is not None:
            ensure_valid(validate_string_length(data['title'], 1, 255, '标题'))
        if data.get('status') is not None:
            ensure_valid(validate_choice(data['status'], TODO_STATUSES, '状态'))
        if data.get('priority') is not None:
            ensure_valid(validate_choice(data['priority'], TODO_PRIORITIES, '优先级'))
        if data.get('reminder_type'):
            ensure_valid(validate_choice(data['reminder_type'], REMINDER_TYPES, '提醒方式'))

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_todo(self, data: Dict) -> Todo:
        """Create a todo and log it. Returns the ORM object so callers can chain work."""
        self._validate(data)
        if not self.customer_exists(data['customer_id']):
            raise NotFoundError('客户不存在')

        todo = Todo(
            customer_id=data['customer_id'],
            creator_id=data['creator_id'],
            executor_id=data['executor_id'],
            title=data['title'],
            content=data.get('content', ''),
            status='pending',
            planned_time=_parse_time(data['planned_time'], 'planned_time'),
            is_reminder=bool(data.get('is_reminder', False)),
            reminder_type=data.get('reminder_type') or None,
            reminder_user_id=data.get('reminder_user_id'),
            reminder_time=_parse_time(data.get('reminder_time'), 'reminder_time'),
            priority=data.get('priority') or 'medium',
            tags=data.get('tags'),
            attachments=data.get('attachments')
        )
        self.session.add(todo)
        self.session.flush()

        self._log(todo, 'create', new_data=todo.snapshot())
        logger.info(f"Created todo: {todo.id}")
        return todo

    def get_todo(self, todo_id: int) -> Dict:
        return self._get(todo_id).to_dict()

    def update_todo(self, todo_id: int, data: Dict) -> Dict:
        self._validate(data, partial=True)

        todo = self._get(todo_id)
        old_data = todo.snapshot()

        for key in UPDATABLE_FIELDS:
            if key in data:
                setattr(todo, key, data[key])
        for key in DATETIME_FIELDS:
            if key in data:
                setattr(todo, key, _parse_time(data[key], key))

        if data.get('status') == 'completed' and old_data['status'] != 'completed':
            todo.completed_time = now()

        todo.updated_at = now()
        self.session.flush()

        self._log(todo, 'update', old_data=old_data, new_data=todo.snapshot())
        logger.info(f"Updated todo: {todo_id}")
        return todo.to_dict()

    def delete_todo(self, todo_id: int) -> bool:
        """Soft delete."""
        todo = self._get(todo_id)
        current = now()
        todo.is_deleted = True
        todo.deleted_at = current
        todo.updated_at = current
        self.session.flush()

        self._log(todo, 'delete', old_data=todo.snapshot())
        logger.info(f"Deleted todo: {todo_id}")
        return True

    def complete_todo(self, todo_id: int) -> Dict:
        todo = self._get(todo_id)
        if todo.status == 'completed':
            return todo.to_dict()

        old_data = todo.snapshot()
        current = now()
        todo.status = 'completed'
        todo.completed_time = current
        todo.updated_at = current
        self.session.flush()

        self._log(todo, 'complete', old_data=old_data, new_data=todo.snapshot())
        logger.info(f"Completed todo: {todo_id}")
        return todo.to_dict()

    def cancel_todo(self, todo_id: int) -> Dict:
        todo = self._get(todo_id)
        if todo.status == 'cancelled':
            return todo.to_dict()

        old_data = todo.snapshot()
        todo.status = 'cancelled'
        todo.updated_at = now()
        self.session.flush()

        self._log(todo, 'cancel', old_data=old_data, new_data=todo.snapshot())
        logger.info(f"Cancelled todo: {todo_id}")
        return todo.to_dict()

    def get_logs(self, todo_id: int) -> List[Dict]:
        self._get(todo_id)
        logs = self.session.query(TodoLog).filter(TodoLog.todo_id == todo_id) \
            .order_by(TodoLog.created_at.desc()).all()
        return [log.to_dict() for log in logs]

    # =========================================================================
    # QUERIES
    # =========================================================================

    def build_list_query(self, filters: Dict[str, Any]):
        """
        Build the filtered todo query.

        Supported filters: customer_id, executor_id, creator_id, status,
        priority, date_type, start_date, end_date, keyword.
        """
        query = self.session.query(Todo).filter(Todo.is_deleted == False)  # noqa: E712

        for key in ('customer_id', 'executor_id', 'creator_id'):
            if filters.get(key) is not None:
                query = query.filter(getattr(Todo, key) == filters[key])
        if filters.get('status'):
            query = query.filter(Todo.status == filters['status'])
        if filters.get('priority'):
            query = query.filter(Todo.priority == filters['priority'])

        date_type = filters.get('date_type')
        if date_type:
            if date_type not in DATE_TYPES:
                raise InvalidParamsError(f"无效的日期类型: {date_type}")
            query = self._apply_date_type(query, date_type)

        start_date = _parse_time(filters.get('start_date'), 'start_date')
        if start_date:
            query = query.filter(Todo.planned_time >= start_date)
        end_date = _parse_time(filters.get('end_date'), 'end_date')
        if end_date:
            # A bare date covers the whole day
            if end_date.hour == 0 and end_date.minute == 0 and end_date.second == 0:
                end_date = end_date + timedelta(days=1)
                query = query.filter(Todo.planned_time < end_date)
            else:
                query = query.filter(Todo.planned_time <= end_date)

        keyword = filters.get('keyword')
        if keyword:
            pattern = f"%{keyword}%"
            query = query.filter(or_(Todo.title.ilike(pattern), Todo.content.ilike(pattern)))

        return query

    def _apply_date_type(self, query, date_type: str):
        current = now()
        today_start, today_end = today_range()
        if date_type == 'yesterday':
            start, end = day_range(today_start - timedelta(days=1))
        elif date_type == 'today':
            start, end = today_start, today_end
        elif date_type == 'tomorrow':
            start, end = day_range(today_end)
        elif date_type == 'upcoming':
            return query.filter(Todo.planned_time >= today_end)
        elif date_type == 'overdue':
            return query.filter(
                Todo.planned_time < current,
                Todo.status.notin_(CLOSED_STATUSES)
            )
        else:
            return query
        return query.filter(Todo.planned_time >= start, Todo.planned_time < end)

    def list_todos(self, filters: Dict[str, Any], page: int = 1, page_size: int = 20) -> Tuple[List[Dict], int]:
        query = self.build_list_query(filters)
        total = query.count()
        todos = query.options(
            joinedload(Todo.customer),
            joinedload(Todo.creator),
            joinedload(Todo.executor),
            joinedload(Todo.reminder_user)
        ).order_by(Todo.created_at.desc()).offset((page - 1) * page_size).limit(page_size).all()
        return [t.to_dict() for t in todos], total

    def get_stats(self, user_id: Optional[int] = None) -> Dict[str, int]:
        """Counts per status plus overdue and planned-today totals."""
        base = self.session.query(Todo).filter(Todo.is_deleted == False)  # noqa: E712
        if user_id is not None:
            base = base.filter(or_(Todo.creator_id == user_id, Todo.executor_id == user_id))

        stats = {status: 0 for status in TODO_STATUSES}
        rows = base.with_entities(Todo.status, func.count(Todo.id)).group_by(Todo.status).all()
        for status, count in rows:
            stats[status] = count
        stats['total'] = sum(count for _, count in rows)

        stats['overdue'] = base.filter(
            Todo.planned_time < now(),
            Todo.status.notin_(CLOSED_STATUSES)
        ).count()

        today_start, today_end = today_range()
        stats['today'] = base.filter(
            and_(Todo.planned_time >= today_start, Todo.planned_time < today_end)
        ).count()
        return stats

    def customer_exists(self, customer_id: int) -> bool:
        return self.session.query(Customer.id).filter(Customer.id == customer_id).first() is not None
