"""
Tests for SMTP delivery (nakama_auth.services.notifier).
"""

import smtplib

import pytest

from nakama_auth.core.errors import NotificationError
from nakama_auth.services import notifier as notifier_module
from nakama_auth.services.notifier import NotificationDispatcher, SmtpNotificationDispatcher


class FakeSMTP:
    """Stand-in for smtplib.SMTP recording what a dispatcher does."""

    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(("login", username))

    def send_message(self, msg):
        self.messages.append(msg)


class TestSmtpNotificationDispatcher:

    @pytest.fixture(autouse=True)
    def fake_smtp(self, monkeypatch):
        FakeSMTP.instances = []
        monkeypatch.setattr(notifier_module.smtplib, "SMTP", FakeSMTP)

    @pytest.mark.asyncio
    async def test_send_builds_message(self, test_settings):
        settings = test_settings.model_copy(update={
            "smtp_host": "mail.test",
            "smtp_username": "mailer",
            "smtp_password": "pw",
            "smtp_use_tls": True,
        })
        dispatcher = SmtpNotificationDispatcher(settings)

        await dispatcher.send("ana@gmail.com", "Reset your password", "Open the link.")

        server = FakeSMTP.instances[0]
        assert server.host == "mail.test"
        assert server.calls == ["starttls", ("login", "mailer")]
        msg = server.messages[0]
        assert msg["To"] == "ana@gmail.com"
        assert msg["From"] == settings.mail_from
        assert msg["Subject"] == "Reset your password"
        assert msg.get_content().strip() == "Open the link."

    @pytest.mark.asyncio
    async def test_smtp_failure_raises_notification_error(self, test_settings, monkeypatch):
        def refuse(self, msg):
            raise smtplib.SMTPRecipientsRefused({"ana@gmail.com": (550, b"no such user")})

        monkeypatch.setattr(FakeSMTP, "send_message", refuse)

        with pytest.raises(NotificationError):
            await SmtpNotificationDispatcher(test_settings).send("ana@gmail.com", "s", "b")

    def test_implements_protocol(self, test_settings):
        assert isinstance(SmtpNotificationDispatcher(test_settings), NotificationDispatcher)
