"""Integration tests for the SMTP adapter, settings and adapter selection."""

import smtplib

import pytest

from storefront.channel import FakeEmailAdapter, build_mailer
from storefront.channel.smtp_email import SmtpEmailAdapter
from storefront.config import StoreSettings
from storefront.gateway import FakeSwishGateway, build_gateway

pytestmark = pytest.mark.fast


class _FakeSMTP:
    instances = []
    refused = {}
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.logins = []
        self.messages = []
        _FakeSMTP.instances.append(self)

    def __enter__(self):
        if _FakeSMTP.fail_with:
            raise _FakeSMTP.fail_with
        return self

    def __exit__(self, *exc_info):
        return False

    def login(self, username, password):
        self.logins.append((username, password))

    def send_message(self, message, to_addrs=None):
        self.messages.append((message, to_addrs))
        return dict(_FakeSMTP.refused)


@pytest.fixture()
def smtp(monkeypatch):
    _FakeSMTP.instances = []
    _FakeSMTP.refused = {}
    _FakeSMTP.fail_with = None
    monkeypatch.setattr(smtplib, "SMTP_SSL", _FakeSMTP)
    return _FakeSMTP


def _adapter(**overrides):
    values = {
        "host": "smtp.example.se",
        "port": 465,
        "username": "shop",
        "password": "secret",
        "sender": "orders@example.se",
        "bcc": "archive@example.se",
    }
    values.update(overrides)
    return SmtpEmailAdapter(**values)


class TestSmtpEmailAdapter:
    def test_sends_with_bcc(self, smtp):
        result = _adapter().send("astrid@example.se", "WHISK Order", "Hello", "<p>Hello</p>")

        assert result["status"] == "sent"
        assert result["accepted"] == ["astrid@example.se", "archive@example.se"]
        connection = smtp.instances[0]
        assert (connection.host, connection.port) == ("smtp.example.se", 465)
        assert connection.logins == [("shop", "secret")]
        message, recipients = connection.messages[0]
        assert message["Subject"] == "WHISK Order"
        assert message["From"] == "orders@example.se"
        assert recipients == ["astrid@example.se", "archive@example.se"]

    def test_refused_recipient_not_accepted(self, smtp):
        smtp.refused = {"astrid@example.se": (550, b"Mailbox unavailable")}
        result = _adapter().send("astrid@example.se", "WHISK Order", "Hello")
        assert result["accepted"] == ["archive@example.se"]

    def test_transport_failure(self, smtp):
        smtp.fail_with = smtplib.SMTPAuthenticationError(535, b"Bad credentials")
        result = _adapter().send("astrid@example.se", "WHISK Order", "Hello")
        assert result["status"] == "failed"
        assert result["accepted"] == []

    def test_no_login_without_username(self, smtp):
        _adapter(username=None, bcc=None).send("astrid@example.se", "WHISK Order", "Hello")
        assert smtp.instances[0].logins == []


class TestStoreSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ADMIN_KEY", "letmein")
        monkeypatch.setenv("STORE_URL", "https://shop.example.se")
        monkeypatch.setenv("SMTP_PORT", "587")

        settings = StoreSettings.from_env()

        assert settings.admin_key == "letmein"
        assert settings.smtp_port == 587
        assert settings.payment_callback_url == "https://shop.example.se/api/order/swish/paymentCallback"
        assert settings.refund_callback_url == "https://shop.example.se/api/order/swish/refundCallback"

    def test_explicit_callback(self):
        settings = StoreSettings(swish_callback="https://hooks.example.se/swish/paymentCallback")
        assert settings.refund_callback_url == "https://hooks.example.se/swish/refundCallback"

    def test_swish_needs_alias_and_certificates(self):
        assert not StoreSettings(swish_alias="1231181189").swish_configured
        assert StoreSettings(swish_alias="1231181189", swish_cert="c.pem", swish_key="k.pem").swish_configured


class TestAdapterSelection:
    def test_fake_gateway_without_certificates(self):
        gateway = build_gateway(StoreSettings(swish_alias="1234679304"))
        assert isinstance(gateway, FakeSwishGateway)
        assert gateway.payee_alias == "1234679304"

    def test_fake_mailer_without_smtp(self):
        assert isinstance(build_mailer(StoreSettings()), FakeEmailAdapter)

    def test_smtp_mailer_when_configured(self):
        mailer = build_mailer(StoreSettings(smtp_server="smtp.example.se", email_from="orders@example.se"))
        assert isinstance(mailer, SmtpEmailAdapter)
        assert mailer.sender == "orders@example.se"
