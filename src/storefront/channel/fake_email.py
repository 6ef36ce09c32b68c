"""Fake email adapter that keeps messages in memory."""

from uuid import uuid4

from storefront.channel.email_port import EmailPort


class FakeEmailAdapter(EmailPort):
    def __init__(self):
        self.sent_emails: list[dict] = []
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self.rejected: set[str] = set()

    def configure(self, should_succeed: bool = True, failure_reason: str = "Email delivery failed", rejected=()):
        """``rejected`` recipients are dropped from ``accepted`` even when sending succeeds."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.rejected = set(rejected)

    def send(self, to, subject, body, html_body=None):
        if not self.should_succeed:
            return {"message_id": None, "status": "failed", "accepted": [], "error": self.failure_reason}

        message_id = f"email-{uuid4().hex[:12]}"
        self.sent_emails.append(
            {
                "message_id": message_id,
                "to": to,
                "subject": subject,
                "body": body,
                "html_body": html_body,
            }
        )
        accepted = [] if to in self.rejected else [to]
        return {"message_id": message_id, "status": "sent", "accepted": accepted}

    def reset(self):
        self.sent_emails.clear()
        self.should_succeed = True
        self.failure_reason = "Email delivery failed"
        self.rejected = set()
