"""
User API Routes Blueprint

Read-only views of the sales staff used by the mobile screens.
"""

import logging
from flask import Blueprint, request

from app.utils.response import success_response, list_response
from database.connection import get_db_session
from services.user_repository import UserRepository
from validators import parse_pagination

logger = logging.getLogger(__name__)

# Create blueprint
users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/api/v1/users', methods=['GET'])
def list_users():
    page, page_size = parse_pagination(request.args)
    filters = {
        'department': request.args.get('department'),
        'status': request.args.get('status'),
        'name': request.args.get('name'),
    }
    with get_db_session() as session:
        items, total = UserRepository(session).list_users(filters, page, page_size)
        return list_response(items, total)


@users_bp.route('/api/v1/users/active', methods=['GET'])
def active_users():
    with get_db_session() as session:
        return success_response(UserRepository(session).active_users())


@users_bp.route('/api/v1/users/<int:user_id>', methods=['GET'])
def get_user(user_id):
    with get_db_session() as session:
        return success_response(UserRepository(session).get_user(user_id))


@users_bp.route('/api/v1/users/<int:user_id>/homepage', methods=['GET'])
def user_homepage(user_id):
    """Header card for the home screen"""
    with get_db_session() as session:
        return success_response(UserRepository(session).get_homepage(user_id))


@users_bp.route('/api/v1/users/<int:user_id>/detail', methods=['GET'])
def user_detail(user_id):
    """Employee or customer detail card"""
    with get_db_session() as session:
        return success_response(UserRepository(session).get_detail(user_id))
