"""
Dashboard Service - the salesperson's follow-up board.

Open todos of one executor are filtered by a time/customer dimension and a
status dimension, paged, then grouped per customer for display.
"""

import logging
from typing import List, Dict, Any
from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_, and_, exists, func, literal, any_

from app.utils.helpers import now, today_range, add_months, format_datetime, MINUTE_FORMAT, DATE_FORMAT
from app.utils.response import InvalidParamsError
from database.models import Todo, Customer, FollowUpRecord

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
SHOW_ALL_PAGE_SIZE = 10000

TIME_FILTERS = ('今日待跟进', '近期待跟进', '从未联系', '从未下单', '公海', '不用跟进', '黑名单')
STATUS_FILTERS = ('全部', '待办', '定期', '已发样', '已发货', '半年未下单', '一直未下单')


def _planned_today():
    today_start, today_end = today_range()
    return and_(Todo.planned_time >= today_start, Todo.planned_time < today_end)


def time_filter_condition(time_filter: str):
    """
    Condition for the time/customer dimension.

    Returns:
        Tuple of (condition or None, needs_customer_join)
    """
    if time_filter == '今日待跟进':
        return _planned_today(), False
    if time_filter == '近期待跟进':
        _, tomorrow = today_range()
        return Todo.planned_time >= tomorrow, False
    if time_filter == '从未联系':
        return Customer.last_called.is_(None), True
    if time_filter == '从未下单':
        return Customer.last_order_date.is_(None), True
    if time_filter == '公海':
        return or_(Customer.sellers.is_(None), func.cardinality(Customer.sellers) == 0), True
    if time_filter == '不用跟进':
        return Customer.remark.like('%不用跟进%'), True
    if time_filter == '黑名单':
        return literal('黑名单') == any_(Customer.tags), True
    return None, False


def status_filter_condition(status_filter: str):
    """Condition for the status dimension, same return shape as time_filter_condition."""
    if status_filter == '待办':
        return _planned_today(), False
    if status_filter == '定期':
        return exists().where(
            FollowUpRecord.customer_id == Todo.customer_id,
            FollowUpRecord.is_regular == True,  # noqa: E712
            FollowUpRecord.is_deleted == False  # noqa: E712
        ), False
    if status_filter == '已发样':
        return Todo.title.like('%发样%'), False
    if status_filter == '已发货':
        return Todo.title.like('%发货%'), False
    if status_filter == '半年未下单':
        cutoff = add_months(now(), -6)
        return or_(Customer.last_order_date.is_(None), Customer.last_order_date < cutoff), True
    if status_filter == '一直未下单':
        return Customer.last_order_date.is_(None), True
    return None, False


def group_by_customer(todos: List[Todo]) -> List[Dict[str, Any]]:
    """Group todos per customer, keeping the order customers first appear in."""
    groups: Dict[int, List[Todo]] = {}
    for todo in todos:
        groups.setdefault(todo.customer_id, []).append(todo)

    results = []
    for customer_id, items in groups.items():
        customer = items[0].customer
        results.append({
            'customer_id': customer_id,
            'contact_name': (customer.contact_name or '') if customer else '',
            'customer_name': (customer.name or '') if customer else '',
            'tags': (customer.tags or []) if customer else [],
            'todo_contents': '，'.join(t.title for t in items if t.title),
            'todo_count': len(items),
            'planned_time': format_datetime(items[0].planned_time, MINUTE_FORMAT),
            'last_call_time': format_datetime(customer.last_called, DATE_FORMAT) if customer else '',
            'last_order_time': format_datetime(customer.last_order_date, DATE_FORMAT) if customer else '',
        })
    return results


class DashboardService:
    """Builds the grouped follow-up board for one salesperson."""

    def __init__(self, session: Session):
        self.session = session

    def build_query(self, user_id: int, time_filter: str, status_filter: str):
        query = self.session.query(Todo).filter(
            Todo.executor_id == user_id,
            Todo.status != 'completed',
            Todo.is_deleted == False  # noqa: E712
        )

        join_customer = False
        for condition, needs_join in (time_filter_condition(time_filter),
                                      status_filter_condition(status_filter)):
            if condition is not None:
                query = query.filter(condition)
            join_customer = join_customer or needs_join

        if join_customer:
            query = query.join(Customer, Customer.id == Todo.customer_id)
        return query

    def search(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Run a dashboard search.

        Args:
            request: {user_id, time_filter, status_filter, page, page_size, show_all}

        Returns:
            Dict with list, total, page and page_size
        """
        missing = [key for key in ('user_id', 'time_filter', 'status_filter') if not request.get(key)]
        if missing:
            raise InvalidParamsError(f"缺少必填字段: {', '.join(missing)}")

        try:
            page = int(request.get('page') or 1)
            page_size = int(request.get('page_size') or DEFAULT_PAGE_SIZE)
        except (TypeError, ValueError):
            raise InvalidParamsError('分页参数无效')
        if page <= 0:
            page = 1
        if page_size <= 0:
            page_size = DEFAULT_PAGE_SIZE
        if request.get('show_all'):
            page, page_size = 1, SHOW_ALL_PAGE_SIZE

        query = self.build_query(request['user_id'], request['time_filter'], request['status_filter'])
        todos = query.options(joinedload(Todo.customer)) \
            .order_by(Todo.planned_time.asc()) \
            .offset((page - 1) * page_size).limit(page_size).all()

        groups = group_by_customer(todos)
        logger.debug(
            f"Dashboard search user={request['user_id']} {request['time_filter']}/{request['status_filter']}: "
            f"{len(todos)} todos in {len(groups)} groups"
        )
        return {'list': groups, 'total': len(groups), 'page': page, 'page_size': page_size}
