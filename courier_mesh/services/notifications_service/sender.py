# courier_mesh/services/notifications_service/sender.py
"""
Отправка email через SMTP.

smtplib блокирующий, поэтому отправка выполняется в отдельном потоке.
"""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage
from typing import Any

DEFAULT_SUBJECT = "Уведомление от службы доставки"

SEND_ERRORS = (smtplib.SMTPException, OSError, asyncio.TimeoutError)


class EmailSender:
    def __init__(
        self,
        host: str,
        port: int,
        user: str = "",
        password: str = "",
        sender: str = "",
        timeout: float = 10.0,
    ) -> None:
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender or user
        self.timeout = timeout

    @classmethod
    def from_settings(cls, smtp: Any) -> "EmailSender":
        return cls(
            host=smtp.SMTP_HOST,
            port=smtp.SMTP_PORT,
            user=smtp.SMTP_USER,
            password=smtp.SMTP_PASS,
            sender=smtp.SMTP_FROM,
            timeout=smtp.SMTP_TIMEOUT,
        )

    def build_message(self, to: str, subject: str | None, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject or DEFAULT_SUBJECT
        msg.set_content(body)
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.user and self.password:
                server.starttls()
                server.login(self.user, self.password)
            server.send_message(msg)

    async def send(self, to: str, subject: str | None, body: str) -> None:
        """
        Отправляет письмо.

        Raises:
            smtplib.SMTPException, OSError: ошибка SMTP или сети
            asyncio.TimeoutError: отправка не уложилась в таймаут
        """
        msg = self.build_message(to, subject, body)
        await asyncio.wait_for(asyncio.to_thread(self._send_sync, msg), timeout=self.timeout * 2)
