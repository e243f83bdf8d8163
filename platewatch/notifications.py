"""
E-mail notification transport for plate alerts.
"""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Sequence

from .config import SMTP_FROM, SMTP_HOST, SMTP_PASSWORD, SMTP_PORT, SMTP_STARTTLS, SMTP_USER

logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    ok: bool
    error: Optional[str] = None


class SmtpEmailTransport:
    def __init__(
        self,
        host: Optional[str] = SMTP_HOST,
        port: int = SMTP_PORT,
        user: Optional[str] = SMTP_USER,
        password: Optional[str] = SMTP_PASSWORD,
        sender: str = SMTP_FROM,
        starttls: bool = SMTP_STARTTLS,
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.sender = sender
        self.starttls = starttls
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.host and self.user and self.password)

    def send(self, channel: str, recipients: Sequence[str], subject: str, body: str) -> DeliveryResult:
        if not self.configured:
            return DeliveryResult(ok=False, error="SMTP credentials not configured")
        if not recipients:
            return DeliveryResult(ok=False, error="No recipients")

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.sender
        msg["To"] = ", ".join(recipients)
        msg.set_content(subject)
        msg.add_alternative(body, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.ehlo()
                if self.starttls:
                    server.starttls()
                    server.ehlo()
                server.login(self.user, self.password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning(f"SMTP delivery to {msg['To']} failed: {exc}")
            return DeliveryResult(ok=False, error=str(exc))

        logger.info(f"Alert e-mail sent to {msg['To']}")
        return DeliveryResult(ok=True)
