"""
Activity Repository - follow-up records (calls, visits, orders, samples...).

Free-form fields (content, result, amount, cost, feedback, satisfaction) live in
the `data` JSONB column and are flattened into the API responses.
"""

import logging
from typing import List, Dict, Any, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_, func, cast, Numeric

from app.utils.helpers import now, parse_datetime
from app.utils.response import NotFoundError, InvalidParamsError
from database.models import FollowUpRecord, Customer, ACTIVITY_KIND_NAMES, ACTIVITY_DATA_FIELDS
from services.todo_repository import TodoRepository
from validators import (
    ensure_valid, validate_required_fields, validate_string_length,
    validate_number_range, validate_choice
)

logger = logging.getLogger(__name__)

DEFAULT_USER_ID = 1
MAX_CONTENT_LENGTH = 2000

BASE_FIELDS = ('title', 'remark', 'duration', 'location', 'attachments', 'is_regular')


def _parse_time(value, field):
    try:
        return parse_datetime(value)
    except ValueError:
        raise InvalidParamsError(f"无效的时间格式: {field}")


class ActivityRepository:
    """Repository for follow-up records."""

    def __init__(self, session: Session):
        self.session = session

    def _query(self):
        return self.session.query(FollowUpRecord).options(
            joinedload(FollowUpRecord.user),
            joinedload(FollowUpRecord.customer)
        ).filter(FollowUpRecord.is_deleted == False)  # noqa: E712

    def _get(self, record_id: int) -> FollowUpRecord:
        record = self._query().filter(FollowUpRecord.id == record_id).first()
        if not record:
            raise NotFoundError('跟进记录不存在')
        return record

    def _validate(self, data: Dict):
        ensure_valid(validate_required_fields(data, ['customer_id', 'kind', 'title', 'content']))
        ensure_valid(validate_choice(data['kind'], ACTIVITY_KIND_NAMES, '跟进类型'))
        ensure_valid(validate_string_length(data['title'], 1, 255, '标题'))
        ensure_valid(validate_string_length(data['content'], 1, MAX_CONTENT_LENGTH, '内容'))
        self._validate_data_fields(data)

    def _validate_data_fields(self, data: Dict):
        """Numeric blob fields are checked before they reach the JSONB column."""
        if data.get('satisfaction') is not None:
            ensure_valid(validate_number_range(data['satisfaction'], 0, 5, '满意度'))
        for key, label in (('amount', '金额'), ('cost', '费用')):
            if data.get(key) is not None:
                ensure_valid(validate_number_range(data[key], 0, None, label))

    # =========================================================================
    # CRUD
    # =========================================================================

    def create_record(self, data: Dict) -> Dict:
        """
        Create a follow-up record, optionally with a follow-up todo.

        Both rows are written in the caller's transaction, so a failing todo
        insert rolls back the record too.
        """
        self._validate(data)
        if not self.session.query(Customer.id).filter(Customer.id == data['customer_id']).first():
            raise NotFoundError('客户不存在')

        user_id = data.get('user_id') or DEFAULT_USER_ID
        record = FollowUpRecord(
            customer_id=data['customer_id'],
            user_id=user_id,
            kind=data['kind'],
            title=data['title'],
            remark=data.get('remark', ''),
            duration=data.get('duration'),
            location=data.get('location', ''),
            next_follow_time=_parse_time(data.get('next_follow_time'), 'next_follow_time'),
            attachments=data.get('attachments'),
            is_regular=bool(data.get('is_regular', False))
        )
        record.set_data({key: data.get(key) for key in ACTIVITY_DATA_FIELDS})
        self.session.add(record)
        self.session.flush()
        logger.info(f"Created follow-up record: {record.id} ({record.kind})")

        if data.get('create_todo') and data.get('todo_planned_time'):
            todo = TodoRepository(self.session, user_id).create_todo({
                'customer_id': record.customer_id,
                'creator_id': user_id,
                'executor_id': data.get('todo_executor_id') or DEFAULT_USER_ID,
                'title': data.get('todo_content') or f"跟进: {record.title}",
                'content': data['content'],
                'planned_time': data['todo_planned_time'],
                'priority': 'medium',
            })
            logger.info(f"Created follow-up todo {todo.id} for record {record.id}")

        return self._get(record.id).to_dict()

    def get_record(self, record_id: int) -> Dict:
        return self._get(record_id).to_dict()

    def update_record(self, record_id: int, data: Dict) -> Dict:
        record = self._get(record_id)

        if data.get('title') is not None:
            ensure_valid(validate_string_length(data['title'], 1, 255, '标题'))
        if data.get('content') is not None:
            ensure_valid(validate_string_length(data['content'], 1, MAX_CONTENT_LENGTH, '内容'))
        self._validate_data_fields(data)

        for key in BASE_FIELDS:
            if key in data and data[key] is not None:
                setattr(record, key, data[key])
        if data.get('next_follow_time') is not None:
            record.next_follow_time = _parse_time(data['next_follow_time'], 'next_follow_time')

        if any(data.get(key) is not None for key in ACTIVITY_DATA_FIELDS):
            record.set_data(data)

        record.updated_at = now()
        self.session.flush()
        logger.info(f"Updated follow-up record: {record_id}")
        return record.to_dict()

    def update_feedback(self, record_id: int, feedback: str, satisfaction: int = None) -> Dict:
        """Store customer feedback; satisfaction only applies when within 1..5."""
        record = self._get(record_id)
        values = {'feedback': feedback or ''}
        if isinstance(satisfaction, int) and 1 <= satisfaction <= 5:
            values['satisfaction'] = satisfaction
        record.set_data(values)
        record.updated_at = now()
        self.session.flush()
        logger.info(f"Updated feedback for follow-up record: {record_id}")
        return record.to_dict()

    def delete_record(self, record_id: int) -> bool:
        record = self._get(record_id)
        current = now()
        record.is_deleted = True
        record.deleted_at = current
        record.updated_at = current
        self.session.flush()
        logger.info(f"Deleted follow-up record: {record_id}")
        return True

    # =========================================================================
    # QUERIES
    # =========================================================================

    def build_list_query(self, filters: Dict[str, Any]):
        query = self._query()
        if filters.get('customer_id') is not None:
            query = query.filter(FollowUpRecord.customer_id == filters['customer_id'])
        if filters.get('user_id') is not None:
            query = query.filter(FollowUpRecord.user_id == filters['user_id'])
        if filters.get('kind'):
            ensure_valid(validate_choice(filters['kind'], ACTIVITY_KIND_NAMES, '跟进类型'))
            query = query.filter(FollowUpRecord.kind == filters['kind'])

        start_date = _parse_time(filters.get('start_date'), 'start_date')
        if start_date:
            query = query.filter(FollowUpRecord.created_at >= start_date)
        end_date = _parse_time(filters.get('end_date'), 'end_date')
        if end_date:
            query = query.filter(FollowUpRecord.created_at <= end_date)

        keyword = filters.get('keyword')
        if keyword:
            pattern = f"%{keyword}%"
            query = query.filter(or_(
                FollowUpRecord.title.ilike(pattern),
                FollowUpRecord.remark.ilike(pattern),
                FollowUpRecord.data['content'].astext.ilike(pattern)
            ))
        return query

    def list_records(self, filters: Dict[str, Any], page: int = 1, page_size: int = 20) -> Tuple[List[Dict], int]:
        query = self.build_list_query(filters)
        total = query.count()
        records = query.order_by(FollowUpRecord.created_at.desc()) \
            .offset((page - 1) * page_size).limit(page_size).all()
        return [r.to_dict() for r in records], total

    def get_statistics(self, customer_id: int) -> Dict[str, Any]:
        """Per-kind counts plus amount/cost totals for one customer."""
        rows = self.session.query(
            FollowUpRecord.kind,
            func.count(FollowUpRecord.id),
            func.coalesce(func.sum(cast(FollowUpRecord.data['amount'].astext, Numeric)), 0),
            func.coalesce(func.sum(cast(FollowUpRecord.data['cost'].astext, Numeric)), 0)
        ).filter(
            FollowUpRecord.customer_id == customer_id,
            FollowUpRecord.is_deleted == False  # noqa: E712
        ).group_by(FollowUpRecord.kind).all()

        stats = {
            'total_records': 0,
            'records_by_kind': {},
            'total_amount': 0.0,
            'total_cost': 0.0,
            'order_count': 0,
            'sample_count': 0,
        }
        for kind, count, amount, cost in rows:
            stats['total_records'] += count
            stats['total_amount'] += float(amount or 0)
            stats['total_cost'] += float(cost or 0)
            stats['records_by_kind'][kind] = count
            if kind == 'order':
                stats['order_count'] = count
            elif kind == 'sample':
                stats['sample_count'] = count
        return stats

    def need_follow_up(self, user_id: int = None) -> List[Dict]:
        """Records whose next follow-up time has arrived."""
        query = self._query().filter(
            FollowUpRecord.next_follow_time.isnot(None),
            FollowUpRecord.next_follow_time <= now()
        )
        if user_id is not None:
            query = query.filter(FollowUpRecord.user_id == user_id)
        records = query.order_by(FollowUpRecord.next_follow_time.asc()).all()
        return [r.to_dict() for r in records]
