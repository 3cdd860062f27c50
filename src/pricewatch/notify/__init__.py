"""Notification layer -- notifier interface, SMTP transport and message text."""

from pricewatch.notify.messages import increase_message, target_reached_message
from pricewatch.notify.notifier import Notifier
from pricewatch.notify.smtp import SmtpNotifier

__all__ = ["Notifier", "SmtpNotifier", "increase_message", "target_reached_message"]
