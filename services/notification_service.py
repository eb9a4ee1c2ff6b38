"""
Notification Service - delivers reminder messages over the configured channels.

Channels:
- wechat: personal WeChat
- enterprise_wechat: WeChat Work
- both: every channel the user has enabled
- sms: text message

No external gateway is wired in; each channel logs the outgoing message.
"""

import logging
from typing import List

from app.utils.helpers import now
from database.models import Reminder, ReminderConfig

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """A reminder could not be delivered; the message is stored as fail_reason."""


class QuietTimeError(NotificationError):
    """The user is inside the quiet window; delivery resumes at `resume_at`."""

    def __init__(self, message, resume_at):
        super().__init__(message)
        self.resume_at = resume_at


class NotificationService:
    """Dispatches a reminder according to the user's reminder config."""

    def send_reminder(self, reminder: Reminder, config: ReminderConfig, current=None) -> List[str]:
        """
        Send a reminder.

        Args:
            reminder: Reminder row to deliver
            config: Reminder config of the receiving user
            current: Moment used for the quiet-time check (defaults to now)

        Returns:
            List of channels the reminder was sent on

        Raises:
            QuietTimeError: inside the quiet window
            NotificationError: disabled channel or unknown type
        """
        current = current or now()
        if config.is_in_quiet_time(current):
            raise QuietTimeError('当前在免打扰时间内', config.quiet_time_end(current))

        logger.info(f"发送提醒: id={reminder.id} user={reminder.user_id} type={reminder.type} title={reminder.title}")

        if reminder.type == 'wechat':
            if not config.enable_wechat:
                raise NotificationError('用户未启用微信提醒')
            return [self.send_wechat(reminder)]

        if reminder.type == 'enterprise_wechat':
            if not config.enable_enterprise_wechat:
                raise NotificationError('用户未启用企业微信提醒')
            return [self.send_enterprise_wechat(reminder)]

        if reminder.type == 'both':
            channels = []
            if config.enable_wechat:
                channels.append(self.send_wechat(reminder))
            if config.enable_enterprise_wechat:
                channels.append(self.send_enterprise_wechat(reminder))
            if not channels:
                raise NotificationError('用户未启用任何提醒渠道')
            return channels

        if reminder.type == 'sms':
            return [self.send_sms(reminder)]

        raise NotificationError(f"不支持的提醒类型: {reminder.type}")

    def send_wechat(self, reminder: Reminder) -> str:
        logger.info(f"发送微信提醒给用户 {reminder.user_id}: {reminder.title}")
        return 'wechat'

    def send_enterprise_wechat(self, reminder: Reminder) -> str:
        logger.info(f"发送企业微信提醒给用户 {reminder.user_id}: {reminder.title}")
        return 'enterprise_wechat'

    def send_sms(self, reminder: Reminder) -> str:
        logger.info(f"发送短信提醒给用户 {reminder.user_id}: {reminder.title}")
        return 'sms'
