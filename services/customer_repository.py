"""
Customer Repository - Database access layer for customers.
Handles CRUD, preference/remark/system-tag updates and the customer searches.
"""

import logging
from typing import List, Dict, Any, Tuple
from sqlalchemy.orm import Session
from sqlalchemy import or_, and_, any_, cast, Text, Integer, literal
from sqlalchemy.dialects.postgresql import ARRAY

from app.utils.helpers import now, add_months, parse_datetime
from app.utils.response import NotFoundError, InvalidParamsError
from database.models import Customer
from validators import (
    ensure_valid, validate_customer_request, validate_string_length, validate_int_list
)

logger = logging.getLogger(__name__)

SEARCH_DEFAULT_LIMIT = 50
SEARCH_MAX_LIMIT = 100
FLAT_SEARCH_LIMIT = 100

# Request fields that map straight onto columns
CUSTOMER_FIELDS = (
    'name', 'contact_name', 'gender', 'avatar', 'photos', 'remark', 'source',
    'phones', 'wechats', 'douyins', 'kwais', 'redbooks', 'wework_openids',
    'province', 'city', 'district', 'district_id', 'street', 'address', 'lat', 'lon',
    'category', 'flags', 'tags', 'level', 'state', 'kind', 'added_wechat',
    'work_phone', 'work_wechat', 'credit_sale', 'sellers', 'group_id',
    'birth_place', 'birth_year', 'birth_month', 'birth_date',
    'favors', 'products', 'annual_turnover', 'shipping_infos', 'extra_info',
    'original_customer_id', 'import_source', 'saller_name', 'system_tags',
    'order_count', 'avg_order_value', 'preferred_delivery_method',
    'created_by', 'updated_by',
)

DATETIME_FIELDS = ('last_visited', 'last_called', 'last_order_date')


class CustomerRepository:
    """Repository for customer database operations."""

    def __init__(self, session: Session):
        self.session = session

    def _get(self, customer_id: int) -> Customer:
        customer = self.session.get(Customer, customer_id)
        if not customer:
            raise NotFoundError('客户不存在')
        return customer

    def _apply(self, customer: Customer, data: Dict[str, Any]):
        for key in CUSTOMER_FIELDS:
            if key in data:
                setattr(customer, key, data[key])
        for key in DATETIME_FIELDS:
            if key in data:
                try:
                    setattr(customer, key, parse_datetime(data[key]))
                except ValueError:
                    raise InvalidParamsError(f"无效的时间格式: {key}")

    # =========================================================================
    # CRUD
    # =========================================================================

    def list_customers(self, page: int = 1, limit: int = 20, search: str = None) -> Tuple[List[Dict], int]:
        """List customers, newest first, with an optional name/contact/phone filter."""
        query = self.session.query(Customer)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Customer.name.ilike(pattern),
                Customer.contact_name.ilike(pattern),
                cast(Customer.phones, Text).ilike(pattern)
            ))

        total = query.count()
        customers = query.order_by(Customer.created_at.desc()) \
            .offset((page - 1) * limit).limit(limit).all()
        return [c.to_response() for c in customers], total

    def get_customer(self, customer_id: int) -> Dict:
        return self._get(customer_id).to_dict()

    def create_customer(self, data: Dict) -> Dict:
        ensure_valid(validate_customer_request(data))

        customer = Customer()
        self._apply(customer, data)
        self.session.add(customer)
        self.session.flush()

        logger.info(f"Created customer: {customer.id}")
        return customer.to_dict()

    def update_customer(self, customer_id: int, data: Dict) -> Dict:
        ensure_valid(validate_customer_request(data, partial=True))

        customer = self._get(customer_id)
        self._apply(customer, data)
        customer.updated_at = now()
        self.session.flush()

        logger.info(f"Updated customer: {customer_id}")
        return customer.to_dict()

    def delete_customer(self, customer_id: int) -> bool:
        """Hard delete; todos and follow-up records cascade in the database."""
        deleted = self.session.query(Customer).filter(Customer.id == customer_id).delete()
        if not deleted:
            raise NotFoundError('客户不存在')
        logger.info(f"Deleted customer: {customer_id}")
        return True

    # =========================================================================
    # FIELD UPDATES
    # =========================================================================

    def update_favors(self, customer_id: int, favors: List[Dict]) -> Dict:
        if not isinstance(favors, list):
            raise InvalidParamsError('favors必须是数组')
        customer = self._get(customer_id)
        customer.favors = {'favors': favors}
        customer.updated_at = now()
        self.session.flush()
        logger.info(f"Updated favors for customer {customer_id}: {len(favors)} items")
        return customer.to_dict()

    def update_remark(self, customer_id: int, remark: str) -> Dict:
        ensure_valid(validate_string_length(remark, 0, 1000, '备注'))
        customer = self._get(customer_id)
        customer.remark = remark
        customer.updated_at = now()
        self.session.flush()
        logger.info(f"Updated remark for customer {customer_id}")
        return customer.to_dict()

    def update_system_tags(self, customer_id: int, system_tags: List[int]) -> Dict:
        ensure_valid(validate_int_list(system_tags, 'system_tags'))
        customer = self._get(customer_id)
        customer.system_tags = system_tags
        customer.updated_at = now()
        self.session.flush()
        logger.info(f"Updated system tags for customer {customer_id}: {system_tags}")
        return customer.to_dict()

    # =========================================================================
    # SEARCH
    # =========================================================================

    def build_search_query(self, search: str = None, system_tags: List[int] = None):
        """Text search over the main columns plus system tag overlap."""
        query = self.session.query(Customer)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Customer.name.ilike(pattern),
                Customer.contact_name.ilike(pattern),
                Customer.remark.ilike(pattern),
                cast(Customer.phones, Text).ilike(pattern),
                cast(Customer.wechats, Text).ilike(pattern),
                Customer.address.ilike(pattern),
                Customer.province.ilike(pattern),
                Customer.city.ilike(pattern),
                Customer.district.ilike(pattern)
            ))
        if system_tags:
            query = query.filter(Customer.system_tags.overlap(cast(system_tags, ARRAY(Integer))))
        return query

    def search_customers(self, search: str = None, system_tags: List[int] = None,
                         page: int = 1, limit: int = SEARCH_DEFAULT_LIMIT) -> Tuple[List[Dict], int]:
        if limit <= 0 or limit > SEARCH_MAX_LIMIT:
            limit = SEARCH_DEFAULT_LIMIT
        if page <= 0:
            page = 1

        query = self.build_search_query(search, system_tags)
        total = query.count()
        customers = query.order_by(Customer.created_at.desc()) \
            .offset((page - 1) * limit).limit(limit).all()
        return [c.to_response() for c in customers], total

    def build_keyword_query(self, keyword: str = None, system_tags: List[int] = None):
        """Keyword plus any-of system tag filter used by the quick search box."""
        query = self.session.query(Customer)
        if keyword:
            pattern = f"%{keyword}%"
            query = query.filter(or_(
                Customer.name.ilike(pattern),
                Customer.contact_name.ilike(pattern),
                cast(Customer.phones, Text).ilike(pattern)
            ))
        if system_tags:
            query = query.filter(or_(*[
                literal(tag_id) == any_(Customer.system_tags) for tag_id in system_tags
            ]))
        return query

    def quick_search(self, keyword: str = None, system_tags: List[int] = None) -> List[Dict]:
        customers = self.build_keyword_query(keyword, system_tags) \
            .order_by(Customer.updated_at.desc()).limit(FLAT_SEARCH_LIMIT).all()
        return [c.to_search_result() for c in customers]

    def build_special_query(self, customer_type: str):
        query = self.session.query(Customer)
        if customer_type == 'no_order_half_year':
            six_months_ago = add_months(now(), -6)
            return query.filter(and_(
                Customer.last_order_date.isnot(None),
                Customer.last_order_date < six_months_ago
            ))
        if customer_type == 'never_ordered':
            return query.filter(Customer.last_order_date.is_(None))
        raise InvalidParamsError('无效的客户类型')

    def special_customers(self, customer_type: str, page: int = 1, page_size: int = 20) -> Tuple[List[Dict], int]:
        """Customers that have not ordered for half a year, or never ordered."""
        query = self.build_special_query(customer_type)
        total = query.count()
        customers = query.order_by(Customer.created_at.desc()) \
            .offset((page - 1) * page_size).limit(page_size).all()
        return [c.to_response() for c in customers], total
