"""SMTP email adapter (implicit TLS, as the shop's mail host requires)."""

import smtplib
from email.message import EmailMessage
from email.utils import make_msgid

import structlog

from storefront.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)


class SmtpEmailAdapter(EmailPort):
    def __init__(self, host, port=465, username=None, password=None, sender=None, bcc=None, timeout=30):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.bcc = bcc
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings) -> "SmtpEmailAdapter":
        return cls(
            host=settings.smtp_server,
            port=settings.smtp_port,
            username=settings.smtp_username or None,
            password=settings.smtp_password or None,
            sender=settings.email_from,
            bcc=settings.email_bcc or None,
        )

    def send(self, to, subject, body, html_body=None):
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(body)
        if html_body:
            message.add_alternative(html_body, subtype="html")

        recipients = [to] + ([self.bcc] if self.bcc else [])
        try:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
                if self.username:
                    smtp.login(self.username, self.password)
                refused = smtp.send_message(message, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email delivery failed", to=to, subject=subject, error=str(exc))
            return {"message_id": None, "status": "failed", "accepted": [], "error": str(exc)}

        accepted = [recipient for recipient in recipients if recipient not in refused]
        return {"message_id": message["Message-ID"], "status": "sent", "accepted": accepted}
