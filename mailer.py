"""Outbound email (account verification links)."""
from __future__ import annotations

import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

import structlog
from fastapi import Depends

from settings import Settings, get_settings

logger = structlog.get_logger(__name__)


class EmailSender:
    def __init__(self, settings: Settings) -> None:
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.user = settings.smtp_user
        self.password = settings.smtp_password
        self.from_addr = settings.email_from or settings.smtp_user

    @property
    def configured(self) -> bool:
        return bool(self.host and self.from_addr)

    def _smtp_send(self, to_addr: str, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port) as server:
            server.starttls()
            if self.user and self.password:
                server.login(self.user, self.password)
            server.sendmail(self.from_addr, [to_addr], msg.as_string())

    async def send(self, to: str, subject: str, html: str) -> None:
        """Deliver one HTML email; SMTP errors propagate to the caller."""
        if not self.configured:
            logger.warning("SMTP not configured; email not sent", to=to, subject=subject)
            return

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_addr
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))

        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self._smtp_send, to, msg)
        logger.info("Email sent", to=to, subject=subject)


def get_email_sender(settings: Settings = Depends(get_settings)) -> EmailSender:
    return EmailSender(settings)


def verification_email(client_url: str, token: str) -> tuple[str, str]:
    """Return (subject, html) for the account verification email."""
    url = f"{client_url.rstrip('/')}/verify-email?token={token}"
    html = (
        "<p>Please click the link below to verify your email:</p>"
        f'<a href="{url}">{url}</a>'
    )
    return "Verify your JobBoard account", html
