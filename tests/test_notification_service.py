"""
Tests for reminder delivery over notification channels
"""
import pytest
from datetime import datetime

from database.models import Reminder, ReminderConfig
from services.notification_service import NotificationService, NotificationError, QuietTimeError

DAYTIME = datetime(2024, 5, 20, 10, 0)
NIGHT = datetime(2024, 5, 20, 23, 30)


def make_config(wechat=True, enterprise=True):
    return ReminderConfig(
        user_id=1,
        enable_wechat=wechat,
        enable_enterprise_wechat=enterprise,
        quiet_start='22:00',
        quiet_end='08:00',
    )


def make_reminder(reminder_type):
    return Reminder(id=9, user_id=1, todo_id=3, type=reminder_type, title='待办提醒：回访')


@pytest.mark.unit
class TestSendReminder:
    """Tests for channel selection"""

    def test_wechat(self):
        """Test that a wechat reminder goes over wechat only"""
        channels = NotificationService().send_reminder(make_reminder('wechat'), make_config(), DAYTIME)
        assert channels == ['wechat']

    def test_enterprise_wechat(self):
        """Test enterprise wechat delivery"""
        channels = NotificationService().send_reminder(make_reminder('enterprise_wechat'), make_config(), DAYTIME)
        assert channels == ['enterprise_wechat']

    def test_both_uses_enabled_channels(self):
        """Test that 'both' sends on every enabled channel"""
        service = NotificationService()
        assert service.send_reminder(make_reminder('both'), make_config(), DAYTIME) == ['wechat', 'enterprise_wechat']
        assert service.send_reminder(make_reminder('both'), make_config(wechat=False), DAYTIME) == ['enterprise_wechat']

    def test_both_with_no_channels(self):
        """Test that 'both' fails when every channel is disabled"""
        with pytest.raises(NotificationError, match='用户未启用任何提醒渠道'):
            NotificationService().send_reminder(make_reminder('both'), make_config(False, False), DAYTIME)

    def test_disabled_wechat(self):
        """Test that a disabled wechat channel fails"""
        with pytest.raises(NotificationError, match='用户未启用微信提醒'):
            NotificationService().send_reminder(make_reminder('wechat'), make_config(wechat=False), DAYTIME)

    def test_disabled_enterprise_wechat(self):
        """Test that a disabled enterprise wechat channel fails"""
        with pytest.raises(NotificationError, match='用户未启用企业微信提醒'):
            NotificationService().send_reminder(
                make_reminder('enterprise_wechat'), make_config(enterprise=False), DAYTIME
            )

    def test_sms(self):
        """Test that sms is delivered regardless of channel switches"""
        channels = NotificationService().send_reminder(make_reminder('sms'), make_config(False, False), DAYTIME)
        assert channels == ['sms']

    def test_unknown_type(self):
        """Test that an unknown type fails"""
        with pytest.raises(NotificationError, match='不支持的提醒类型'):
            NotificationService().send_reminder(make_reminder('pigeon'), make_config(), DAYTIME)

    def test_quiet_time_blocks_everything(self):
        """Test that quiet time is checked before the channel"""
        with pytest.raises(QuietTimeError, match='当前在免打扰时间内') as excinfo:
            NotificationService().send_reminder(make_reminder('sms'), make_config(), NIGHT)
        assert excinfo.value.resume_at == datetime(2024, 5, 21, 8, 1)

    def test_quiet_time_is_a_notification_error(self):
        """Test that quiet time still belongs to the notification error family"""
        assert issubclass(QuietTimeError, NotificationError)
