"""
Todo API Routes Blueprint

Follow-up todos with an audit log:
- /api/v1/todos                 - list / create
- /api/v1/todos/<id>            - read / update / soft delete
- /api/v1/todos/<id>/complete   - mark completed
- /api/v1/todos/<id>/cancel     - mark cancelled
- /api/v1/todos/<id>/logs       - audit trail
- /api/v1/todos/stats           - per-status counters
"""

import logging
from flask import Blueprint, request

from app.utils.response import success_response, list_response
from database.connection import get_db_session
from services.todo_repository import TodoRepository
from services.reminder_service import ReminderService
from validators import parse_json_body, parse_pagination, parse_int

logger = logging.getLogger(__name__)

# Create blueprint
todos_bp = Blueprint('todos_bp', __name__)

DEFAULT_REMINDER_TYPE = 'wechat'


def _list_filters(args):
    return {
        'customer_id': parse_int(args.get('customer_id'), 'customer_id'),
        'executor_id': parse_int(args.get('executor_id'), 'executor_id'),
        'creator_id': parse_int(args.get('creator_id'), 'creator_id'),
        'status': args.get('status'),
        'priority': args.get('priority'),
        'date_type': args.get('date_type'),
        'start_date': args.get('start_date'),
        'end_date': args.get('end_date'),
        'keyword': args.get('keyword'),
    }


@todos_bp.route('/api/v1/todos', methods=['GET'])
def list_todos():
    page, page_size = parse_pagination(request.args)
    with get_db_session() as session:
        items, total = TodoRepository(session).list_todos(_list_filters(request.args), page, page_size)
        return list_response(items, total)


@todos_bp.route('/api/v1/todos', methods=['POST'])
def create_todo():
    """Create a todo; a reminder is scheduled when is_reminder and reminder_time are set"""
    data = parse_json_body(request)
    with get_db_session() as session:
        repo = TodoRepository(session, data.get('creator_id'))
        todo = repo.create_todo(data)

        if todo.is_reminder and todo.reminder_time:
            ReminderService(session).create_reminder_from_todo(
                todo.id,
                todo.reminder_user_id or todo.executor_id,
                todo.reminder_type or DEFAULT_REMINDER_TYPE,
                todo.reminder_time
            )

        return success_response(repo.get_todo(todo.id), message='待办创建成功', status=201)


@todos_bp.route('/api/v1/todos/stats', methods=['GET'])
def todo_stats():
    user_id = parse_int(request.args.get('user_id'), 'user_id')
    with get_db_session() as session:
        return success_response(TodoRepository(session).get_stats(user_id))


@todos_bp.route('/api/v1/todos/<int:todo_id>', methods=['GET'])
def get_todo(todo_id):
    with get_db_session() as session:
        return success_response(TodoRepository(session).get_todo(todo_id))


@todos_bp.route('/api/v1/todos/<int:todo_id>', methods=['PUT'])
def update_todo(todo_id):
    data = parse_json_body(request)
    with get_db_session() as session:
        todo = TodoRepository(session, data.get('user_id')).update_todo(todo_id, data)
        return success_response(todo, message='待办更新成功')


@todos_bp.route('/api/v1/todos/<int:todo_id>', methods=['DELETE'])
def delete_todo(todo_id):
    with get_db_session() as session:
        TodoRepository(session).delete_todo(todo_id)
        return success_response(message='待办删除成功')


@todos_bp.route('/api/v1/todos/<int:todo_id>/complete', methods=['POST'])
def complete_todo(todo_id):
    with get_db_session() as session:
        return success_response(TodoRepository(session).complete_todo(todo_id), message='待办已完成')


@todos_bp.route('/api/v1/todos/<int:todo_id>/cancel', methods=['POST'])
def cancel_todo(todo_id):
    with get_db_session() as session:
        return success_response(TodoRepository(session).cancel_todo(todo_id), message='待办已取消')


@todos_bp.route('/api/v1/todos/<int:todo_id>/logs', methods=['GET'])
def todo_logs(todo_id):
    with get_db_session() as session:
        return success_response(TodoRepository(session).get_logs(todo_id))
