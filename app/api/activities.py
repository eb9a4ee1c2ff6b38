"""
Follow-up Record API Routes Blueprint

- /api/v1/activities                               - list / create
- /api/v1/activities/<id>                          - read / update / soft delete
- /api/v1/activities/<id>/feedback                 - customer feedback
- /api/v1/activities/customer/<customer_id>        - records of one customer
- /api/v1/activities/customer/<customer_id>/statistics
- /api/v1/activities/need-follow-up                - due follow-ups
"""

import logging
from flask import Blueprint, request

from app.utils.response import success_response, list_response
from database.connection import get_db_session
from services.activity_repository import ActivityRepository
from validators import parse_json_body, parse_pagination, parse_int

logger = logging.getLogger(__name__)

# Create blueprint
activities_bp = Blueprint('activities_bp', __name__)


@activities_bp.route('/api/v1/activities', methods=['POST'])
def create_activity():
    """Create a follow-up record, optionally with a follow-up todo"""
    data = parse_json_body(request)
    with get_db_session() as session:
        record = ActivityRepository(session).create_record(data)
        return success_response(record, message='跟进记录创建成功', status=201)


@activities_bp.route('/api/v1/activities', methods=['GET'])
def list_activities():
    page, page_size = parse_pagination(request.args)
    filters = {
        'customer_id': parse_int(request.args.get('customer_id'), 'customer_id'),
        'user_id': parse_int(request.args.get('user_id'), 'user_id'),
        'kind': request.args.get('kind'),
        'start_date': request.args.get('start_date'),
        'end_date': request.args.get('end_date'),
        'keyword': request.args.get('keyword'),
    }
    with get_db_session() as session:
        items, total = ActivityRepository(session).list_records(filters, page, page_size)
        return list_response(items, total)


@activities_bp.route('/api/v1/activities/need-follow-up', methods=['GET'])
def need_follow_up():
    user_id = parse_int(request.args.get('user_id'), 'user_id')
    with get_db_session() as session:
        return success_response(ActivityRepository(session).need_follow_up(user_id))


@activities_bp.route('/api/v1/activities/customer/<int:customer_id>', methods=['GET'])
def customer_activities(customer_id):
    page, page_size = parse_pagination(request.args)
    with get_db_session() as session:
        items, total = ActivityRepository(session).list_records({'customer_id': customer_id}, page, page_size)
        return list_response(items, total)


@activities_bp.route('/api/v1/activities/customer/<int:customer_id>/statistics', methods=['GET'])
def customer_statistics(customer_id):
    with get_db_session() as session:
        return success_response(ActivityRepository(session).get_statistics(customer_id))


@activities_bp.route('/api/v1/activities/<int:record_id>', methods=['GET'])
def get_activity(record_id):
    with get_db_session() as session:
        return success_response(ActivityRepository(session).get_record(record_id))


@activities_bp.route('/api/v1/activities/<int:record_id>', methods=['PUT'])
def update_activity(record_id):
    data = parse_json_body(request)
    with get_db_session() as session:
        record = ActivityRepository(session).update_record(record_id, data)
        return success_response(record, message='跟进记录更新成功')


@activities_bp.route('/api/v1/activities/<int:record_id>/feedback', methods=['PUT'])
def update_feedback(record_id):
    data = parse_json_body(request)
    with get_db_session() as session:
        record = ActivityRepository(session).update_feedback(
            record_id, data.get('feedback', ''), data.get('satisfaction')
        )
        return success_response(record, message='反馈更新成功')


@activities_bp.route('/api/v1/activities/<int:record_id>', methods=['DELETE'])
def delete_activity(record_id):
    with get_db_session() as session:
        ActivityRepository(session).delete_record(record_id)
        return success_response(message='跟进记录删除成功')
