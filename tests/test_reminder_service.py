"""
Tests for reminder rendering, recurrence and the pending sweep
"""
import pytest
from datetime import datetime
from unittest.mock import MagicMock, Mock, patch

from app.utils.response import NotFoundError
from database.models import Customer, Reminder, ReminderTemplate, Todo
from services.notification_service import NotificationError, QuietTimeError
from services.reminder_service import (
    ReminderService,
    render_template,
    next_schedule_time,
    todo_variables,
    run_reminder_check,
    DEFAULT_TITLE_TEMPLATE,
)

SCHEDULED = datetime(2024, 1, 31, 9, 0)


def make_reminder(reminder_id=1, frequency='once', retry_count=0, max_retries=3):
    return Reminder(
        id=reminder_id, todo_id=5, user_id=2, type='wechat', title='待办提醒：回访',
        content='内容', status='pending', frequency=frequency,
        schedule_time=SCHEDULED, retry_count=retry_count, max_retries=max_retries,
    )


def fail(reminder, reason):
    reminder.status = 'failed'
    reminder.fail_reason = reason
    reminder.retry_count = (reminder.retry_count or 0) + 1


@pytest.fixture
def repository():
    repo = Mock()
    repo.mark_failed.side_effect = fail
    with patch('services.reminder_service.ReminderRepository', return_value=repo):
        yield repo


@pytest.mark.unit
class TestRendering:
    """Tests for template rendering"""

    def test_render_default_title(self):
        """Test the fallback title template"""
        assert render_template(DEFAULT_TITLE_TEMPLATE, {'title': '回访小王'}) == '待办提醒：回访小王'

    def test_render_does_not_escape(self):
        """Test that plain-text messages are not HTML escaped"""
        assert render_template('{{ title }}', {'title': 'A & B <C>'}) == 'A & B <C>'

    def test_todo_variables(self):
        """Test variables exposed to templates"""
        todo = Todo(
            title='回访', content=None, priority='high', status='pending',
            planned_time=datetime(2024, 5, 20, 14, 30, 59),
            customer=Customer(name='小王服饰'),
        )
        variables = todo_variables(todo)
        assert variables['customer_name'] == '小王服饰'
        assert variables['planned_time'] == '2024-05-20 14:30'
        assert variables['content'] == ''


@pytest.mark.unit
class TestNextScheduleTime:
    """Tests for recurrence"""

    @pytest.mark.parametrize('frequency,expected', [
        ('once', None),
        (None, None),
        ('daily', datetime(2024, 2, 1, 9, 0)),
        ('weekly', datetime(2024, 2, 7, 9, 0)),
        ('monthly', datetime(2024, 2, 29, 9, 0)),
    ])
    def test_frequencies(self, frequency, expected):
        """Test the next occurrence for each frequency"""
        assert next_schedule_time(make_reminder(frequency=frequency)) == expected


@pytest.mark.unit
class TestCreateFromTodo:
    """Tests for creating reminders from todos"""

    def test_missing_todo(self, mock_session, repository):
        """Test that an unknown todo raises NotFoundError"""
        mock_session.query.return_value.options.return_value.filter.return_value.first.return_value = None
        with pytest.raises(NotFoundError):
            ReminderService(mock_session).create_reminder_from_todo(99, 1, 'wechat', SCHEDULED)

    def test_uses_default_template(self, mock_session, repository):
        """Test rendering with the type's default template"""
        todo = Todo(id=5, title='回访', planned_time=SCHEDULED, customer=Customer(name='小王服饰'))
        mock_session.query.return_value.options.return_value.filter.return_value.first.return_value = todo
        repository.get_default_template.return_value = ReminderTemplate(
            title='【{{ customer_name }}】{{ title }}', content='{{ planned_time }}'
        )

        ReminderService(mock_session).create_reminder_from_todo(5, 2, 'wechat', SCHEDULED)

        data = repository.create.call_args[0][0]
        assert data['title'] == '【小王服饰】回访'
        assert data['content'] == '2024-01-31 09:00'
        assert data['user_id'] == 2
        assert data['type'] == 'wechat'
        assert data['schedule_time'] == SCHEDULED

    def test_falls_back_without_template(self, mock_session, repository):
        """Test the built-in templates when no default exists"""
        todo = Todo(id=5, title='回访', planned_time=SCHEDULED)
        mock_session.query.return_value.options.return_value.filter.return_value.first.return_value = todo
        repository.get_default_template.return_value = None

        ReminderService(mock_session).create_reminder_from_todo(5, 2, 'sms', SCHEDULED)

        data = repository.create.call_args[0][0]
        assert data['title'] == '待办提醒：回访'
        assert '请及时处理' in data['content']

    def test_title_truncated(self, mock_session, repository):
        """Test that rendered titles fit the column"""
        todo = Todo(id=5, title='长' * 300, planned_time=SCHEDULED)
        mock_session.query.return_value.options.return_value.filter.return_value.first.return_value = todo
        repository.get_default_template.return_value = None

        ReminderService(mock_session).create_reminder_from_todo(5, 2, 'wechat', SCHEDULED)

        assert len(repository.create.call_args[0][0]['title']) == 255


@pytest.mark.unit
class TestProcessPending:
    """Tests for the pending reminder sweep"""

    def test_nothing_due(self, mock_session, repository):
        """Test an empty sweep"""
        repository.get_pending.return_value = []
        result = ReminderService(mock_session, notifier=Mock()).process_pending()
        assert result == {'processed': 0, 'sent': 0, 'failed': 0}

    def test_sent_and_failed(self, mock_session, repository):
        """Test counting one success and one failure"""
        ok, bad = make_reminder(1), make_reminder(2)
        repository.get_pending.return_value = [ok, bad]
        notifier = Mock()
        notifier.send_reminder.side_effect = [['wechat'], NotificationError('用户未启用微信提醒')]

        result = ReminderService(mock_session, notifier=notifier).process_pending()

        assert result == {'processed': 2, 'sent': 1, 'failed': 1}
        repository.mark_sent.assert_called_once_with(ok)
        repository.mark_failed.assert_called_once_with(bad, '用户未启用微信提醒')

    def test_failure_requeued_while_retries_left(self, mock_session, repository):
        """Test that a failed reminder goes back to pending while it can retry"""
        reminder = make_reminder(retry_count=0, max_retries=3)
        repository.get_pending.return_value = [reminder]
        notifier = Mock()
        notifier.send_reminder.side_effect = NotificationError('用户未启用微信提醒')

        ReminderService(mock_session, notifier=notifier).process_pending()

        assert reminder.retry_count == 1
        repository.requeue.assert_called_once_with(reminder)

    def test_failure_not_requeued_at_limit(self, mock_session, repository):
        """Test that the last allowed failure stays failed"""
        reminder = make_reminder(retry_count=2, max_retries=3)
        repository.get_pending.return_value = [reminder]
        notifier = Mock()
        notifier.send_reminder.side_effect = NotificationError('用户未启用微信提醒')

        ReminderService(mock_session, notifier=notifier).process_pending()

        assert reminder.status == 'failed'
        repository.requeue.assert_not_called()

    def test_quiet_time_postpones_without_retry(self, mock_session, repository):
        """Test that quiet time moves the reminder instead of failing it"""
        reminder = make_reminder(retry_count=0, max_retries=3)
        repository.get_pending.return_value = [reminder]
        resume_at = datetime(2024, 2, 1, 8, 1)
        notifier = Mock()
        notifier.send_reminder.side_effect = QuietTimeError('当前在免打扰时间内', resume_at)

        service = ReminderService(mock_session, notifier=notifier)
        results = [service.process_pending() for _ in range(3)]

        assert results[-1] == {'processed': 1, 'sent': 0, 'failed': 0}
        assert reminder.retry_count == 0
        assert reminder.status == 'pending'
        repository.mark_failed.assert_not_called()
        repository.postpone.assert_called_with(reminder, resume_at)
        assert repository.postpone.call_count == 3

    def test_unexpected_error_is_a_failure(self, mock_session, repository):
        """Test that any exception is recorded rather than aborting the sweep"""
        first, second = make_reminder(1), make_reminder(2)
        repository.get_pending.return_value = [first, second]
        notifier = Mock()
        notifier.send_reminder.side_effect = [RuntimeError('boom'), ['wechat']]

        result = ReminderService(mock_session, notifier=notifier).process_pending()

        assert result == {'processed': 2, 'sent': 1, 'failed': 1}
        assert first.fail_reason == 'boom'

    def test_recurring_reminder_schedules_next(self, mock_session, repository):
        """Test that a sent daily reminder creates its next occurrence"""
        reminder = make_reminder(frequency='daily')
        repository.get_pending.return_value = [reminder]
        notifier = Mock()
        notifier.send_reminder.return_value = ['wechat']

        ReminderService(mock_session, notifier=notifier).process_pending()

        follow_up = mock_session.add.call_args[0][0]
        assert isinstance(follow_up, Reminder)
        assert follow_up.status == 'pending'
        assert follow_up.schedule_time == datetime(2024, 2, 1, 9, 0)
        assert follow_up.retry_count == 0
        assert follow_up.frequency == 'daily'

    def test_one_off_reminder_not_rescheduled(self, mock_session, repository):
        """Test that a once reminder creates nothing new"""
        repository.get_pending.return_value = [make_reminder(frequency='once')]
        notifier = Mock()
        notifier.send_reminder.return_value = ['wechat']

        ReminderService(mock_session, notifier=notifier).process_pending()

        mock_session.add.assert_not_called()

    def test_send_uses_user_config(self, mock_session, repository):
        """Test that send passes the user's config to the notifier"""
        reminder = make_reminder()
        config = Mock()
        repository.get_or_create_config.return_value = config
        notifier = Mock()

        ReminderService(mock_session, notifier=notifier).send(reminder)

        repository.get_or_create_config.assert_called_once_with(2)
        notifier.send_reminder.assert_called_once_with(reminder, config)


@pytest.mark.unit
class TestRunReminderCheck:
    """Tests for the scheduled job entry point"""

    @patch('database.connection.is_db_configured', return_value=False)
    def test_skips_without_database(self, mock_configured):
        """Test that the job is a no-op without a database"""
        assert run_reminder_check() is None

    @patch('services.reminder_service.ReminderService')
    @patch('database.connection.get_db_session')
    @patch('database.connection.is_db_configured', return_value=True)
    def test_runs_sweep(self, mock_configured, mock_get_session, mock_service):
        """Test that the job sweeps inside its own session"""
        session = MagicMock()
        mock_get_session.return_value.__enter__.return_value = session
        mock_service.return_value.process_pending.return_value = {'processed': 1, 'sent': 1, 'failed': 0}

        assert run_reminder_check() == {'processed': 1, 'sent': 1, 'failed': 0}
        mock_service.assert_called_once_with(session)
