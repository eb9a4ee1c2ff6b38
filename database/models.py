"""
SQLAlchemy models for the CRM backend.
Defines customers, users, todos, follow-up records, reminders and tags.
"""

from datetime import timedelta

from sqlalchemy import (
    Column, String, Text, Integer, Float, Numeric, Boolean,
    DateTime, ForeignKey, Index
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import relationship

from app.utils.helpers import now, isoformat, format_datetime
from database.connection import Base


# =============================================================================
# ENUMERATIONS
# =============================================================================

CUSTOMER_STATE_NAMES = {
    0: '未开发',
    1: '意向客户',
    2: '跟进中',
    3: '已开发',
    4: '成交客户',
    5: '流失客户',
}

CUSTOMER_LEVEL_NAMES = {
    0: '未分级',
    1: 'A级客户',
    2: 'B级客户',
    3: 'C级客户',
    4: 'D级客户',
}

TODO_STATUSES = ('pending', 'completed', 'overdue', 'cancelled')
TODO_PRIORITIES = ('low', 'medium', 'high', 'urgent')
REMINDER_TYPES = ('wechat', 'enterprise_wechat', 'both', 'sms')
TODO_LOG_ACTIONS = ('create', 'update', 'delete', 'complete', 'cancel')

ACTIVITY_KIND_NAMES = {
    'call': '电话沟通',
    'visit': '实地拜访',
    'email': '邮件',
    'wechat': '微信沟通',
    'meeting': '会议洽谈',
    'order': '下单记录',
    'sample': '发样记录',
    'feedback': '客户反馈',
    'complaint': '客户投诉',
    'payment': '付款记录',
    'other': '其他',
}

# Fields stored inside FollowUpRecord.data
ACTIVITY_DATA_FIELDS = ('content', 'result', 'amount', 'cost', 'feedback', 'satisfaction')

REMINDER_STATUSES = ('pending', 'sent', 'failed', 'cancelled')
REMINDER_FREQUENCIES = ('once', 'daily', 'weekly', 'monthly')

DEFAULT_TAG_COLOR = '#2196F3'


def _first(values):
    return values[0] if values else ''


# =============================================================================
# CUSTOMERS
# =============================================================================

class Customer(Base):
    """Customer (shop) records."""
    __tablename__ = 'customers'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256))
    contact_name = Column(String(256))
    gender = Column(Integer, default=0)
    avatar = Column(String(2048))
    photos = Column(ARRAY(String(2048)))
    remark = Column(Text)
    source = Column(String(256))
    created_at = Column(DateTime, default=now)
    created_by = Column(Integer)
    updated_at = Column(DateTime, default=now, onupdate=now)
    updated_by = Column(Integer)

    # Contact channels
    phones = Column(ARRAY(String(128)))
    wechats = Column(ARRAY(String(128)))
    douyins = Column(ARRAY(String(128)))
    kwais = Column(ARRAY(String(128)))
    redbooks = Column(ARRAY(String(128)))
    wework_openids = Column(ARRAY(String(128)))

    # Location
    province = Column(String(256))
    city = Column(String(256))
    district = Column(String(256))
    district_id = Column(Integer)
    street = Column(String(256))
    address = Column(String(2048))
    lat = Column(Float)
    lon = Column(Float)

    # Classification
    category = Column(String(256))
    flags = Column(Integer, default=0)
    tags = Column(ARRAY(String(128)))
    level = Column(Integer, default=0)
    state = Column(Integer, default=0)
    kind = Column(Integer, default=0)
    added_wechat = Column(Boolean, default=False)
    work_phone = Column(ARRAY(String(256)))
    work_wechat = Column(ARRAY(String(256)))
    credit_sale = Column(Numeric)
    sellers = Column(ARRAY(Integer))
    last_visited = Column(DateTime)
    last_called = Column(DateTime)
    group_id = Column(ARRAY(Integer))

    # Personal
    birth_place = Column(String(256))
    birth_year = Column(Integer)
    birth_month = Column(Integer)
    birth_date = Column(Integer)

    favors = Column(JSONB)
    products = Column(ARRAY(String(512)))
    annual_turnover = Column(String(512))
    shipping_infos = Column(JSONB)
    extra_info = Column(JSONB)

    # Import bookkeeping
    original_customer_id = Column(String(256))
    import_source = Column(String(256))
    saller_name = Column(String(256))

    system_tags = Column(ARRAY(Integer))

    # Order summary
    last_order_date = Column(DateTime)
    order_count = Column(Integer, default=0)
    avg_order_value = Column(Numeric)
    preferred_delivery_method = Column(String(256))

    todos = relationship("Todo", back_populates="customer", passive_deletes=True)
    follow_up_records = relationship("FollowUpRecord", back_populates="customer", passive_deletes=True)

    __table_args__ = (
        Index('ix_customers_name', 'name'),
        Index('ix_customers_created_at', 'created_at'),
        Index('ix_customers_last_order_date', 'last_order_date'),
        Index('ix_customers_system_tags', 'system_tags', postgresql_using='gin'),
    )

    @property
    def state_description(self):
        return CUSTOMER_STATE_NAMES.get(self.state or 0, '未知状态')

    @property
    def level_description(self):
        return CUSTOMER_LEVEL_NAMES.get(self.level or 0, '未知级别')

    @property
    def full_address(self):
        parts = [self.province, self.city, self.district, self.address]
        if any(parts):
            return ''.join(p for p in parts if p)
        return ''

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name or '',
            'contact_name': self.contact_name or '',
            'gender': self.gender or 0,
            'avatar': self.avatar or '',
            'photos': self.photos or [],
            'remark': self.remark or '',
            'source': self.source or '',
            'phones': self.phones or [],
            'wechats': self.wechats or [],
            'douyins': self.douyins or [],
            'kwais': self.kwais or [],
            'redbooks': self.redbooks or [],
            'wework_openids': self.wework_openids or [],
            'province': self.province or '',
            'city': self.city or '',
            'district': self.district or '',
            'district_id': self.district_id or 0,
            'street': self.street or '',
            'address': self.address or '',
            'lat': self.lat or 0,
            'lon': self.lon or 0,
            'category': self.category or '',
            'flags': self.flags or 0,
            'tags': self.tags or [],
            'level': self.level or 0,
            'level_description': self.level_description,
            'state': self.state or 0,
            'state_description': self.state_description,
            'kind': self.kind or 0,
            'added_wechat': bool(self.added_wechat),
            'work_phone': self.work_phone or [],
            'work_wechat': self.work_wechat or [],
            'credit_sale': float(self.credit_sale or 0),
            'sellers': self.sellers or [],
            'last_visited': isoformat(self.last_visited),
            'last_called': isoformat(self.last_called),
            'group_id': self.group_id or [],
            'birth_place': self.birth_place or '',
            'birth_year': self.birth_year or 0,
            'birth_month': self.birth_month or 0,
            'birth_date': self.birth_date or 0,
            'favors': self.favors,
            'products': self.products or [],
            'annual_turnover': self.annual_turnover or '',
            'shipping_infos': self.shipping_infos,
            'extra_info': self.extra_info,
            'original_customer_id': self.original_customer_id or '',
            'import_source': self.import_source or '',
            'saller_name': self.saller_name or '',
            'system_tags': self.system_tags or [],
            'last_order_date': isoformat(self.last_order_date),
            'order_count': self.order_count or 0,
            'avg_order_value': float(self.avg_order_value or 0),
            'preferred_delivery_method': self.preferred_delivery_method or '',
            'created_by': self.created_by or 0,
            'updated_by': self.updated_by or 0,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def to_response(self):
        """Compact list representation used by the customer screens."""
        sellers = self.sellers or []
        return {
            'id': self.id,
            'name': self.name or '',
            'phone': _first(self.phones),
            'phones': self.phones or [],
            'wechat': _first(self.wechats),
            'wechats': self.wechats or [],
            'seller': str(sellers[0]) if sellers else '',
            'sellers': sellers,
            'saller_name': self.saller_name or '',
            'address': self.full_address,
            'province': self.province or '',
            'city': self.city or '',
            'district': self.district or '',
            'company': self.name or '',
            'products': self.products or [],
            'category': self.category or '',
            'tags': self.tags or [],
            'state': self.state or 0,
            'level': self.level or 0,
            'contact_name': self.contact_name or '',
            'source': self.source or '',
            'import_source': self.import_source or '',
            'remark': self.remark or '',
            'created_at': format_datetime(self.created_at),
        }

    def to_search_result(self):
        return {
            'id': self.id,
            'name': self.name or '',
            'contact_name': self.contact_name or '',
            'phone': _first(self.phones),
            'category': self.category or '',
            'tags': self.tags or [],
            'system_tags': self.system_tags or [],
            'province': self.province or '',
            'city': self.city or '',
            'state': self.state or 0,
            'level': self.level or 0,
        }


# =============================================================================
# USERS
# =============================================================================

class User(Base):
    """Sales staff and managers."""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    username = Column(String(100))
    manager_id = Column(Integer, ForeignKey('users.id'))
    email = Column(String(255))
    phone = Column(String(50))
    department = Column(String(100))
    department_leader_id = Column(Integer)
    position = Column(String(100))
    wechat_work_id = Column(String(100))
    wechat_id = Column(String(100))
    status = Column(String(20), default='active')
    avatar_url = Column(String(2048))
    last_login_at = Column(DateTime)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)
    deleted_at = Column(DateTime)
    is_deleted = Column(Boolean, default=False)

    manager = relationship("User", remote_side=[id])

    __table_args__ = (
        Index('ix_users_department', 'department'),
        Index('ix_users_status', 'status'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'username': self.username or '',
            'email': self.email or '',
            'phone': self.phone or '',
            'department': self.department or '',
            'position': self.position or '',
            'status': self.status or '',
            'manager_name': self.manager.name if self.manager else '',
            'avatar_url': self.avatar_url or '',
        }


# =============================================================================
# TODOS
# =============================================================================

class Todo(Base):
    """Follow-up tasks assigned to staff for a customer."""
    __tablename__ = 'todos'

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    creator_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    executor_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text)
    status = Column(String(20), default='pending')
    planned_time = Column(DateTime, nullable=False)
    completed_time = Column(DateTime)
    is_reminder = Column(Boolean, default=False)
    reminder_type = Column(String(30))
    reminder_user_id = Column(Integer, ForeignKey('users.id'))
    reminder_time = Column(DateTime)
    priority = Column(String(10), default='medium')
    tags = Column(JSONB)
    attachments = Column(JSONB)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)
    deleted_at = Column(DateTime)
    is_deleted = Column(Boolean, default=False)

    customer = relationship("Customer", back_populates="todos")
    creator = relationship("User", foreign_keys=[creator_id])
    executor = relationship("User", foreign_keys=[executor_id])
    reminder_user = relationship("User", foreign_keys=[reminder_user_id])
    logs = relationship("TodoLog", back_populates="todo", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_todos_customer', 'customer_id'),
        Index('ix_todos_executor', 'executor_id'),
        Index('ix_todos_creator', 'creator_id'),
        Index('ix_todos_status', 'status'),
        Index('ix_todos_planned_time', 'planned_time'),
        Index('ix_todos_is_deleted', 'is_deleted'),
    )

    def is_overdue(self, current=None):
        if self.status in ('completed', 'cancelled'):
            return False
        if self.planned_time is None:
            return False
        return (current or now()) > self.planned_time

    def days_left(self, current=None):
        if self.status in ('completed', 'cancelled') or self.planned_time is None:
            return 0
        hours = (self.planned_time - (current or now())).total_seconds() / 3600
        return int(hours / 24)

    def snapshot(self):
        """Plain values written to todo_logs."""
        return {
            'title': self.title,
            'content': self.content,
            'status': self.status,
            'priority': self.priority,
            'executor_id': self.executor_id,
            'planned_time': isoformat(self.planned_time),
            'completed_time': isoformat(self.completed_time),
            'is_reminder': bool(self.is_reminder),
            'reminder_type': self.reminder_type,
            'reminder_time': isoformat(self.reminder_time),
        }

    def to_dict(self):
        current = now()
        return {
            'id': self.id,
            'customer_id': self.customer_id,
            'creator_id': self.creator_id,
            'executor_id': self.executor_id,
            'title': self.title,
            'content': self.content or '',
            'status': self.status,
            'planned_time': isoformat(self.planned_time),
            'completed_time': isoformat(self.completed_time),
            'is_reminder': bool(self.is_reminder),
            'reminder_type': self.reminder_type or '',
            'reminder_user_id': self.reminder_user_id,
            'reminder_time': isoformat(self.reminder_time),
            'priority': self.priority,
            'tags': self.tags or [],
            'attachments': self.attachments or [],
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
            'creator_name': self.creator.name if self.creator else '',
            'executor_name': self.executor.name if self.executor else '',
            'customer_name': self.customer.name if self.customer else '',
            'reminder_user_name': self.reminder_user.name if self.reminder_user else '',
            'is_overdue': self.is_overdue(current),
            'days_left': self.days_left(current),
        }


class TodoLog(Base):
    """Audit trail of todo changes."""
    __tablename__ = 'todo_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    todo_id = Column(Integer, ForeignKey('todos.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer)
    action = Column(String(20), nullable=False)
    old_data = Column(JSONB)
    new_data = Column(JSONB)
    remark = Column(Text)
    created_at = Column(DateTime, default=now)

    todo = relationship("Todo", back_populates="logs")

    __table_args__ = (
        Index('ix_todo_logs_todo', 'todo_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'todo_id': self.todo_id,
            'user_id': self.user_id,
            'action': self.action,
            'old_data': self.old_data,
            'new_data': self.new_data,
            'remark': self.remark or '',
            'created_at': isoformat(self.created_at),
        }


# =============================================================================
# FOLLOW-UP RECORDS
# =============================================================================

def time_ago(created_at, current=None):
    """Human readable age of a record."""
    if created_at is None:
        return ''
    seconds = ((current or now()) - created_at).total_seconds()
    if seconds < 60:
        return '刚刚'
    if seconds < 3600:
        return f"{int(seconds // 60)}分钟前"
    if seconds < 86400:
        return f"{int(seconds // 3600)}小时前"
    return f"{int(seconds // 86400)}天前"


class FollowUpRecord(Base):
    """Customer follow-up activity (calls, visits, orders, samples...)."""
    __tablename__ = 'activities'

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customers.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    kind = Column(String(20), default='other')
    title = Column(String(255))
    data = Column(JSONB)
    remark = Column(Text)
    duration = Column(Integer)  # minutes
    location = Column(String(255))
    next_follow_time = Column(DateTime)
    attachments = Column(JSONB)
    is_regular = Column(Boolean, default=False)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)
    deleted_at = Column(DateTime)
    is_deleted = Column(Boolean, default=False)

    customer = relationship("Customer", back_populates="follow_up_records")
    user = relationship("User")

    __table_args__ = (
        Index('ix_activities_customer', 'customer_id'),
        Index('ix_activities_user', 'user_id'),
        Index('ix_activities_kind', 'kind'),
        Index('ix_activities_created_at', 'created_at'),
        Index('ix_activities_next_follow_time', 'next_follow_time'),
    )

    @property
    def kind_name(self):
        return ACTIVITY_KIND_NAMES.get(self.kind, self.kind or '')

    def get_data(self):
        """Unpack the data blob into a dict with every known field present."""
        data = self.data if isinstance(self.data, dict) else {}
        return {
            'content': data.get('content') or '',
            'result': data.get('result') or '',
            'amount': float(data.get('amount') or 0),
            'cost': float(data.get('cost') or 0),
            'feedback': data.get('feedback') or '',
            'satisfaction': int(data.get('satisfaction') or 0),
        }

    def set_data(self, values):
        """Merge known fields into the data blob."""
        data = dict(self.data) if isinstance(self.data, dict) else {}
        for key in ACTIVITY_DATA_FIELDS:
            if key in values and values[key] is not None:
                data[key] = values[key]
        self.data = data

    def to_dict(self):
        body = {
            'id': self.id,
            'customer_id': self.customer_id,
            'user_id': self.user_id,
            'kind': self.kind,
            'kind_name': self.kind_name,
            'title': self.title or '',
            'data': self.data or {},
            'remark': self.remark or '',
            'duration': self.duration,
            'location': self.location or '',
            'next_follow_time': isoformat(self.next_follow_time),
            'attachments': self.attachments,
            'is_regular': bool(self.is_regular),
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
            'user_name': self.user.name if self.user else '',
            'customer_name': self.customer.name if self.customer else '',
            'time_ago': time_ago(self.created_at),
        }
        body.update(self.get_data())
        return body


# =============================================================================
# REMINDERS
# =============================================================================

class Reminder(Base):
    """A scheduled notification for a todo."""
    __tablename__ = 'reminders'

    id = Column(Integer, primary_key=True, autoincrement=True)
    todo_id = Column(Integer, ForeignKey('todos.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text)
    status = Column(String(20), default='pending')
    frequency = Column(String(20), default='once')
    schedule_time = Column(DateTime, nullable=False)
    sent_time = Column(DateTime)
    fail_reason = Column(Text)
    retry_count = Column(Integer, default=0)
    max_retries = Column(Integer, default=3)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)

    todo = relationship("Todo")
    user = relationship("User")

    __table_args__ = (
        Index('ix_reminders_status_schedule', 'status', 'schedule_time'),
        Index('ix_reminders_user', 'user_id'),
        Index('ix_reminders_todo', 'todo_id'),
    )

    @property
    def can_retry(self):
        return self.status == 'failed' and (self.retry_count or 0) < (self.max_retries or 0)

    def to_dict(self):
        todo = self.todo
        return {
            'id': self.id,
            'todo_id': self.todo_id,
            'user_id': self.user_id,
            'type': self.type,
            'title': self.title,
            'content': self.content or '',
            'status': self.status,
            'frequency': self.frequency,
            'schedule_time': isoformat(self.schedule_time),
            'sent_time': isoformat(self.sent_time),
            'fail_reason': self.fail_reason or '',
            'retry_count': self.retry_count or 0,
            'max_retries': self.max_retries,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
            'todo_title': todo.title if todo else '',
            'user_name': self.user.name if self.user else '',
            'customer_name': todo.customer.name if todo and todo.customer else '',
        }


class ReminderTemplate(Base):
    """Jinja2 templates used to render reminder title and content."""
    __tablename__ = 'reminder_templates'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    variables = Column(JSONB)
    is_active = Column(Boolean, default=True)
    is_default = Column(Boolean, default=False)
    created_by = Column(Integer)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'type': self.type,
            'title': self.title,
            'content': self.content,
            'variables': self.variables or [],
            'is_active': bool(self.is_active),
            'is_default': bool(self.is_default),
            'created_by': self.created_by,
            'created_at': isoformat(self.created_at),
        }


class ReminderConfig(Base):
    """Per-user reminder channel and quiet-time settings."""
    __tablename__ = 'reminder_configs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), unique=True, nullable=False)
    enable_wechat = Column(Boolean, default=True)
    enable_enterprise_wechat = Column(Boolean, default=True)
    advance_minutes = Column(Integer, default=30)
    quiet_start = Column(String(5), default='22:00')
    quiet_end = Column(String(5), default='08:00')
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)

    def is_in_quiet_time(self, current=None):
        """
        Whether `current` falls inside the quiet window.

        Times compare as zero-padded HH:MM strings; a window whose start is
        after its end wraps past midnight (22:00-08:00).
        """
        if not self.quiet_start or not self.quiet_end:
            return False
        moment = (current or now()).strftime('%H:%M')
        if self.quiet_start <= self.quiet_end:
            return self.quiet_start <= moment <= self.quiet_end
        return moment >= self.quiet_start or moment <= self.quiet_end

    def quiet_time_end(self, current=None):
        """First minute after the quiet window that holds `current`."""
        moment = current or now()
        hour, minute = (int(part) for part in self.quiet_end.split(':'))
        end = moment.replace(hour=hour, minute=minute, second=0, microsecond=0) + timedelta(minutes=1)
        if end <= moment:
            end += timedelta(days=1)
        return end

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'enable_wechat': bool(self.enable_wechat),
            'enable_enterprise_wechat': bool(self.enable_enterprise_wechat),
            'advance_minutes': self.advance_minutes,
            'quiet_start': self.quiet_start,
            'quiet_end': self.quiet_end,
            'updated_at': isoformat(self.updated_at),
        }


# =============================================================================
# TAGS
# =============================================================================

class TagDimension(Base):
    """Grouping for tags (e.g. 客户类型, 经营品类)."""
    __tablename__ = 'tag_dimensions'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(128), nullable=False)
    description = Column(Text)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)
    deleted_at = Column(DateTime)
    is_deleted = Column(Boolean, default=False)

    tags = relationship("Tag", back_populates="dimension")

    # Deleted dimensions release their name
    __table_args__ = (
        Index('uq_tag_dimensions_name_live', 'name', unique=True,
              postgresql_where=(is_deleted == False)),  # noqa: E712
    )

    def to_dict(self, include_tags=False):
        data = {
            'id': self.id,
            'name': self.name,
            'description': self.description or '',
            'sort_order': self.sort_order or 0,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_tags:
            live_tags = sorted(
                (t for t in self.tags if not t.is_deleted),
                key=lambda t: (t.sort_order or 0, t.id or 0)
            )
            data['tags'] = [t.to_dict() for t in live_tags]
            data['tag_count'] = len(live_tags)
        return data


class Tag(Base):
    """A selectable tag inside a dimension."""
    __tablename__ = 'tags'

    id = Column(Integer, primary_key=True, autoincrement=True)
    dimension_id = Column(Integer, ForeignKey('tag_dimensions.id'), nullable=False)
    name = Column(String(128), nullable=False)
    color = Column(String(20), default=DEFAULT_TAG_COLOR)
    description = Column(Text)
    sort_order = Column(Integer, default=0)
    created_at = Column(DateTime, default=now)
    updated_at = Column(DateTime, default=now, onupdate=now)
    deleted_at = Column(DateTime)
    is_deleted = Column(Boolean, default=False)

    dimension = relationship("TagDimension", back_populates="tags")

    __table_args__ = (
        Index('ix_tags_dimension', 'dimension_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'dimension_id': self.dimension_id,
            'dimension_name': self.dimension.name if self.dimension else '',
            'name': self.name,
            'color': self.color or DEFAULT_TAG_COLOR,
            'description': self.description or '',
            'sort_order': self.sort_order or 0,
        }
