"""SMTP email notifier.

Uses smtplib (stdlib) in a worker thread, one connection per message.
"""

import asyncio
import smtplib
import ssl
from email.message import EmailMessage

from pricewatch.config import EmailSettings
from pricewatch.exceptions import NotificationFailure
from pricewatch.logging import get_logger
from pricewatch.notify.notifier import Notifier

logger = get_logger(__name__)


class SmtpNotifier(Notifier):
    """Sends plain-text emails through a configured SMTP server.

    Args:
        settings: Host, port, TLS mode and credentials.
        timeout: Socket timeout for the SMTP session in seconds.
    """

    def __init__(self, settings: EmailSettings, timeout: float = 10.0) -> None:
        self._settings = settings
        self._timeout = timeout

    @property
    def sender(self) -> str:
        return self._settings.sender or self._settings.user

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content(body)
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        s = self._settings
        context = ssl.create_default_context()
        if s.use_ssl:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                s.host, s.port, timeout=self._timeout, context=context
            )
        else:
            smtp = smtplib.SMTP(s.host, s.port, timeout=self._timeout)
        with smtp:
            if s.starttls and not s.use_ssl:
                smtp.starttls(context=context)
            if s.user:
                smtp.login(s.user, s.password.get_secret_value())
            smtp.send_message(msg)

    async def send(self, to: str, subject: str, body: str) -> None:
        msg = self._build_message(to, subject, body)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationFailure(to, str(e)) from e
        logger.info("email_sent", to=to, subject=subject)
