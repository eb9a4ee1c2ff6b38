"""
Tests for todo and dashboard API routes
"""
import pytest
from datetime import datetime
from unittest.mock import MagicMock, patch

from app.utils.response import NotFoundError


@pytest.fixture
def todo_api(fake_db_session, mock_session):
    with patch('app.api.todos.get_db_session', fake_db_session), \
            patch('app.api.todos.TodoRepository') as mock_repo, \
            patch('app.api.todos.ReminderService') as mock_reminders:
        yield mock_repo, mock_reminders


def make_todo(**kwargs):
    todo = MagicMock()
    todo.id = 7
    todo.executor_id = 3
    todo.reminder_user_id = None
    todo.reminder_type = None
    todo.is_reminder = False
    todo.reminder_time = None
    for key, value in kwargs.items():
        setattr(todo, key, value)
    return todo


@pytest.mark.unit
class TestTodoRoutes:
    """Tests for todo routes"""

    def test_list_filters(self, client, todo_api):
        """Test that query parameters become filters"""
        mock_repo, _ = todo_api
        mock_repo.return_value.list_todos.return_value = ([], 0)
        response = client.get('/api/v1/todos?executor_id=3&date_type=today&page=2')
        assert response.status_code == 200
        filters, page, page_size = mock_repo.return_value.list_todos.call_args[0]
        assert filters['executor_id'] == 3
        assert filters['date_type'] == 'today'
        assert filters['customer_id'] is None
        assert (page, page_size) == (2, 20)

    def test_list_bad_id(self, client, todo_api):
        """Test that a non-numeric id filter is rejected"""
        response = client.get('/api/v1/todos?executor_id=abc')
        assert response.status_code == 400
        assert response.get_json()['code'] == 1

    def test_create_without_reminder(self, client, todo_api):
        """Test create without scheduling a reminder"""
        mock_repo, mock_reminders = todo_api
        mock_repo.return_value.create_todo.return_value = make_todo()
        mock_repo.return_value.get_todo.return_value = {'id': 7}

        response = client.post('/api/v1/todos', json={'title': '回访', 'creator_id': 2})

        assert response.status_code == 201
        assert response.get_json()['data'] == {'id': 7}
        mock_reminders.return_value.create_reminder_from_todo.assert_not_called()

    def test_create_with_reminder(self, client, todo_api, mock_session):
        """Test that a reminder todo schedules a reminder for the executor"""
        mock_repo, mock_reminders = todo_api
        reminder_time = datetime(2024, 5, 21, 8, 30)
        mock_repo.return_value.create_todo.return_value = make_todo(
            is_reminder=True, reminder_time=reminder_time
        )
        mock_repo.return_value.get_todo.return_value = {'id': 7}

        client.post('/api/v1/todos', json={'title': '回访', 'creator_id': 2})

        mock_repo.assert_called_with(mock_session, 2)
        mock_reminders.return_value.create_reminder_from_todo.assert_called_once_with(
            7, 3, 'wechat', reminder_time
        )

    def test_create_with_reminder_user(self, client, todo_api):
        """Test that reminder_user_id and reminder_type win when set"""
        mock_repo, mock_reminders = todo_api
        reminder_time = datetime(2024, 5, 21, 8, 30)
        mock_repo.return_value.create_todo.return_value = make_todo(
            is_reminder=True, reminder_time=reminder_time,
            reminder_user_id=9, reminder_type='enterprise_wechat'
        )
        mock_repo.return_value.get_todo.return_value = {'id': 7}

        client.post('/api/v1/todos', json={'title': '回访'})

        mock_reminders.return_value.create_reminder_from_todo.assert_called_once_with(
            7, 9, 'enterprise_wechat', reminder_time
        )

    def test_complete(self, client, todo_api):
        """Test completing a todo"""
        mock_repo, _ = todo_api
        mock_repo.return_value.complete_todo.return_value = {'id': 7, 'status': 'completed'}
        response = client.post('/api/v1/todos/7/complete')
        assert response.get_json()['data']['status'] == 'completed'
        assert response.get_json()['message'] == '待办已完成'

    def test_logs_not_found(self, client, todo_api):
        """Test the audit trail of an unknown todo"""
        mock_repo, _ = todo_api
        mock_repo.return_value.get_logs.side_effect = NotFoundError('待办不存在')
        response = client.get('/api/v1/todos/99/logs')
        assert response.status_code == 404
        assert response.get_json()['message'] == '待办不存在'

    def test_stats(self, client, todo_api):
        """Test stats with a user filter"""
        mock_repo, _ = todo_api
        mock_repo.return_value.get_stats.return_value = {'total': 3}
        response = client.get('/api/v1/todos/stats?user_id=4')
        assert response.get_json()['data'] == {'total': 3}
        mock_repo.return_value.get_stats.assert_called_once_with(4)


@pytest.mark.unit
class TestDashboardRoute:
    """Tests for the dashboard search route"""

    def test_search(self, client, fake_db_session):
        """Test that the request body is passed to the service"""
        with patch('app.api.dashboard.get_db_session', fake_db_session), \
                patch('app.api.dashboard.DashboardService') as mock_service:
            mock_service.return_value.search.return_value = {
                'list': [], 'total': 0, 'page': 1, 'page_size': 20
            }
            body = {'user_id': 3, 'time_filter': '今日待跟进', 'status_filter': '全部'}
            response = client.post('/api/v1/dashboard/search', json=body)

        assert response.status_code == 200
        assert response.get_json()['data']['page_size'] == 20
        mock_service.return_value.search.assert_called_once_with(body)

    def test_search_requires_body(self, client):
        """Test that a missing body is an invalid parameter"""
        response = client.post('/api/v1/dashboard/search')
        assert response.status_code == 400
