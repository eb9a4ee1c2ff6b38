"""
User Repository - Database access layer for sales staff.
"""

import logging
from typing import List, Dict, Any, Tuple
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_, literal, any_

from app.utils.helpers import today_range
from app.utils.response import NotFoundError
from database.models import User, Customer, Todo, FollowUpRecord

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ('active', '在职')
SHOP_NAME = '四川一手货源'


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: Session):
        self.session = session

    def _query(self):
        return self.session.query(User).options(joinedload(User.manager)) \
            .filter(User.is_deleted == False)  # noqa: E712

    def _get(self, user_id: int) -> User:
        user = self._query().filter(User.id == user_id).first()
        if not user:
            raise NotFoundError('用户不存在')
        return user

    def list_users(self, filters: Dict[str, Any], page: int = 1, page_size: int = 20) -> Tuple[List[Dict], int]:
        """List users filtered by department, status and a name LIKE match."""
        query = self._query()
        if filters.get('department'):
            query = query.filter(User.department == filters['department'])
        if filters.get('status'):
            query = query.filter(User.status == filters['status'])
        if filters.get('name'):
            query = query.filter(User.name.like(f"%{filters['name']}%"))

        total = query.count()
        users = query.order_by(User.id).offset((page - 1) * page_size).limit(page_size).all()
        return [u.to_dict() for u in users], total

    def active_users(self) -> List[Dict]:
        users = self._query().filter(User.status.in_(ACTIVE_STATUSES)).order_by(User.name).all()
        return [u.to_dict() for u in users]

    def get_user(self, user_id: int) -> Dict:
        return self._get(user_id).to_dict()

    def _today_todos(self, user_id: int):
        today_start, today_end = today_range()
        return self.session.query(Todo).filter(
            Todo.is_deleted == False,  # noqa: E712
            Todo.planned_time >= today_start,
            Todo.planned_time < today_end
        )

    def get_homepage(self, user_id: int) -> Dict:
        """Header data for the mobile home screen."""
        user = self._get(user_id)
        follow_ups = self._today_todos(user_id).filter(
            or_(Todo.creator_id == user_id, Todo.executor_id == user_id)
        ).count()
        return {
            'id': user.id,
            'name': user.name,
            'avatar_url': user.avatar_url or '',
            'shop_name': SHOP_NAME,
            'today_revenue': 0,
            'today_follow_ups': follow_ups,
        }

    def is_employee(self, user_id: int) -> bool:
        """A user is an employee when any customer lists them as a seller."""
        return self.session.query(Customer.id).filter(
            literal(user_id) == any_(Customer.sellers)
        ).first() is not None

    def get_detail(self, user_id: int) -> Dict:
        user = self._get(user_id)
        employee = self.is_employee(user_id)

        if employee:
            display_info = f"{user.department or ''}{user.position or ''}"
        else:
            # Customers registered as users show their shop name
            customer = self.session.query(Customer).filter(Customer.name == user.name).first()
            display_info = customer.name if customer else ''

        todo_count = self._today_todos(user_id).filter(
            Todo.executor_id == user_id,
            Todo.status != 'completed'
        ).count()

        today_start, today_end = today_range()
        record_count = self.session.query(FollowUpRecord).filter(
            FollowUpRecord.user_id == user_id,
            FollowUpRecord.is_deleted == False,  # noqa: E712
            FollowUpRecord.created_at >= today_start,
            FollowUpRecord.created_at < today_end
        ).count()

        return {
            'id': user.id,
            'name': user.name,
            'display_info': display_info,
            'is_employee': employee,
            'today_revenue': 0,
            'today_follows': todo_count + record_count,
            'avatar_url': user.avatar_url or '',
        }
