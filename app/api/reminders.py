"""
Reminder API Routes Blueprint

- /api/v1/reminders             - list / create
- /api/v1/reminders/<id>        - read / update / delete
- /api/v1/reminders/<id>/cancel - cancel a pending reminder
- /api/v1/reminders/stats       - per-status counters
- /api/v1/reminders/process     - run one sweep now
- /api/v1/reminders/config      - per-user channel and quiet-time settings
"""

import logging
from flask import Blueprint, request

from app.utils.response import success_response, list_response, InvalidParamsError
from database.connection import get_db_session
from services.reminder_repository import ReminderRepository
from services.reminder_service import ReminderService
from validators import parse_json_body, parse_pagination, parse_int

logger = logging.getLogger(__name__)

# Create blueprint
reminders_bp = Blueprint('reminders_bp', __name__)


def _required_user_id():
    user_id = parse_int(request.args.get('user_id'), 'user_id')
    if user_id is None:
        raise InvalidParamsError('缺少用户ID')
    return user_id


# ============================================================================
# REMINDERS
# ============================================================================

@reminders_bp.route('/api/v1/reminders', methods=['POST'])
def create_reminder():
    data = parse_json_body(request)
    with get_db_session() as session:
        reminder = ReminderRepository(session).create(data)
        return success_response(reminder.to_dict(), message='提醒创建成功', status=201)


@reminders_bp.route('/api/v1/reminders', methods=['GET'])
def list_reminders():
    page, page_size = parse_pagination(request.args)
    filters = {
        'user_id': parse_int(request.args.get('user_id'), 'user_id'),
        'todo_id': parse_int(request.args.get('todo_id'), 'todo_id'),
        'status': request.args.get('status'),
        'type': request.args.get('type'),
    }
    with get_db_session() as session:
        items, total = ReminderRepository(session).list(filters, page, page_size)
        return list_response(items, total)


@reminders_bp.route('/api/v1/reminders/stats', methods=['GET'])
def reminder_stats():
    user_id = parse_int(request.args.get('user_id'), 'user_id')
    with get_db_session() as session:
        return success_response(ReminderRepository(session).get_stats(user_id))


@reminders_bp.route('/api/v1/reminders/process', methods=['POST'])
def process_reminders():
    """Manual trigger for the reminder sweep"""
    with get_db_session() as session:
        result = ReminderService(session).process_pending()
        return success_response(result, message=f"处理了{result['processed']}个提醒")


@reminders_bp.route('/api/v1/reminders/<int:reminder_id>', methods=['GET'])
def get_reminder(reminder_id):
    with get_db_session() as session:
        return success_response(ReminderRepository(session).get(reminder_id).to_dict())


@reminders_bp.route('/api/v1/reminders/<int:reminder_id>', methods=['PUT'])
def update_reminder(reminder_id):
    data = parse_json_body(request)
    with get_db_session() as session:
        reminder = ReminderRepository(session).update(reminder_id, data)
        return success_response(reminder.to_dict(), message='提醒更新成功')


@reminders_bp.route('/api/v1/reminders/<int:reminder_id>', methods=['DELETE'])
def delete_reminder(reminder_id):
    with get_db_session() as session:
        ReminderRepository(session).delete(reminder_id)
        return success_response(message='提醒删除成功')


@reminders_bp.route('/api/v1/reminders/<int:reminder_id>/cancel', methods=['POST'])
def cancel_reminder(reminder_id):
    with get_db_session() as session:
        reminder = ReminderRepository(session).cancel(reminder_id)
        return success_response(reminder.to_dict(), message='提醒已取消')


# ============================================================================
# CONFIG
# ============================================================================

@reminders_bp.route('/api/v1/reminders/config', methods=['GET'])
def get_reminder_config():
    user_id = _required_user_id()
    with get_db_session() as session:
        return success_response(ReminderRepository(session).get_or_create_config(user_id).to_dict())


@reminders_bp.route('/api/v1/reminders/config', methods=['PUT'])
def update_reminder_config():
    user_id = _required_user_id()
    data = parse_json_body(request)
    with get_db_session() as session:
        config = ReminderRepository(session).update_config(user_id, data)
        return success_response(config.to_dict(), message='提醒配置更新成功')
