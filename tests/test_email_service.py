import asyncio
import smtplib
from email.message import EmailMessage

import pytest

from app.core.config import SmtpConfig
from app.services import email_service
from app.services.email_service import is_auth_failure, send_email


class RecordingSMTP:
    def __init__(self, host, port, calls, starttls_offered=True, **kwargs):
        self.calls = calls
        self.starttls_offered = starttls_offered
        calls.append(("connect", host, port, sorted(kwargs)))

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.calls.append(("quit",))
        return False

    def ehlo(self):
        self.calls.append(("ehlo",))

    def has_extn(self, name):
        return self.starttls_offered and name.lower() == "starttls"

    def starttls(self, **kwargs):
        self.calls.append(("starttls",))

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, message):
        self.calls.append(("send", message["Subject"]))


def patch_smtp(monkeypatch, starttls_offered=True):
    calls = []
    monkeypatch.setattr(
        email_service.smtplib,
        "SMTP",
        lambda host, port, **kw: RecordingSMTP(host, port, calls, starttls_offered, **kw),
    )
    monkeypatch.setattr(
        email_service.smtplib,
        "SMTP_SSL",
        lambda host, port, **kw: RecordingSMTP(host, port, calls, starttls_offered, **kw),
    )
    return calls


def make_message() -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = "New career application from Jane"
    message.set_content("hello")
    return message


def test_plain_connection_is_upgraded_with_starttls(monkeypatch):
    calls = patch_smtp(monkeypatch)
    config = SmtpConfig(host="smtp.test", port=587, user="u@example.com", password="pw")

    asyncio.run(send_email(make_message(), config))

    assert calls == [
        ("connect", "smtp.test", 587, []),
        ("ehlo",),
        ("starttls",),
        ("ehlo",),
        ("login", "u@example.com", "pw"),
        ("send", "New career application from Jane"),
        ("quit",),
    ]


def test_starttls_skipped_when_not_offered(monkeypatch):
    calls = patch_smtp(monkeypatch, starttls_offered=False)
    config = SmtpConfig(host="localhost", port=25, user="u", password="pw")

    asyncio.run(send_email(make_message(), config))

    assert ("starttls",) not in calls
    assert ("login", "u", "pw") in calls


def test_secure_connection_uses_ssl_client(monkeypatch):
    calls = patch_smtp(monkeypatch)
    config = SmtpConfig(host="smtp.test", port=465, secure=True, user="u", password="pw")

    asyncio.run(send_email(make_message(), config))

    assert calls[0] == ("connect", "smtp.test", 465, ["context"])
    assert ("starttls",) not in calls
    assert ("ehlo",) not in calls


def test_errors_propagate(monkeypatch):
    def refuse(host, port, **kwargs):
        raise ConnectionRefusedError("connection refused")

    monkeypatch.setattr(email_service.smtplib, "SMTP", refuse)
    config = SmtpConfig(host="smtp.test", user="u", password="pw")

    with pytest.raises(ConnectionRefusedError):
        asyncio.run(send_email(make_message(), config))


@pytest.mark.parametrize(
    "exc, expected",
    [
        (smtplib.SMTPAuthenticationError(535, b"bad credentials"), True),
        (smtplib.SMTPResponseException(530, b"auth required"), True),
        (smtplib.SMTPResponseException(534, b"weak mechanism"), True),
        (smtplib.SMTPSenderRefused(535, b"nope", "u@example.com"), True),
        (smtplib.SMTPResponseException(421, b"try later"), False),
        (smtplib.SMTPServerDisconnected("gone"), False),
        (TimeoutError(), False),
    ],
)
def test_is_auth_failure(exc, expected):
    assert is_auth_failure(exc) is expected
