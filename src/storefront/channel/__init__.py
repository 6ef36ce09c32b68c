"""Email channel registry.

The mailer is installed once at startup with ``configure_mailer``. Until
then, and in tests, messages go to an in-memory ``FakeEmailAdapter``.
"""

from storefront.channel.email_port import EmailPort
from storefront.channel.fake_email import FakeEmailAdapter

_mailer: EmailPort | None = None


def build_mailer(settings) -> EmailPort:
    if settings.smtp_configured:
        from storefront.channel.smtp_email import SmtpEmailAdapter

        return SmtpEmailAdapter.from_settings(settings)
    return FakeEmailAdapter()


def configure_mailer(mailer: EmailPort) -> None:
    global _mailer
    _mailer = mailer


def get_mailer() -> EmailPort:
    global _mailer
    if _mailer is None:
        _mailer = FakeEmailAdapter()
    return _mailer


def reset_mailer() -> None:
    global _mailer
    _mailer = None
