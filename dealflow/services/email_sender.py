"""SMTP email sender service."""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from dealflow.core.config import Config, get_config

logger = logging.getLogger(__name__)


class EmailSender:
    """Service for sending transactional emails via SMTP."""

    def __init__(self, config: Config | None = None) -> None:
        self.config = config or get_config()

    @property
    def is_configured(self) -> bool:
        return bool(self.config.SMTP_SERVER)

    def send_email(self, to_email: str, subject: str, body: str, is_html: bool = False) -> bool:
        if not self.is_configured:
            logger.warning("email.smtp_not_configured", extra={"event": "email.smtp_not_configured"})
            return False

        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = subject
            message["From"] = self.config.SMTP_FROM
            message["To"] = to_email
            message.attach(MIMEText(body, "html" if is_html else "plain"))

            with smtplib.SMTP(self.config.SMTP_SERVER, self.config.SMTP_PORT) as server:
                server.starttls()
                if self.config.SMTP_USERNAME:
                    server.login(self.config.SMTP_USERNAME, self.config.SMTP_PASSWORD)
                server.send_message(message)
            logger.info("email.sent", extra={"event": "email.sent", "to_email": to_email})
            return True
        except (smtplib.SMTPException, OSError):
            logger.exception("email.send_failed", extra={"event": "email.send_failed", "to_email": to_email})
            return False
