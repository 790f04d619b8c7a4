"""
Email service module responsible for handing career applications
to the configured SMTP relay.

This module is isolated from the form handling so that:
- The transport can change without touching validation or composition
- Authentication failures can be told apart from other failures
- The SMTP client can be replaced easily in tests
"""

import asyncio
import smtplib
import ssl
from email.message import EmailMessage

from app.core.config import SmtpConfig

# Reply codes a relay uses to say "your credentials are the problem":
# 530 authentication required, 534 mechanism too weak, 535 credentials invalid.
AUTH_FAILURE_CODES = frozenset({530, 534, 535})


def is_auth_failure(exc: BaseException) -> bool:
    """True when the relay rejected us because of authentication."""
    if isinstance(exc, smtplib.SMTPAuthenticationError):
        return True
    return isinstance(exc, smtplib.SMTPResponseException) and exc.smtp_code in AUTH_FAILURE_CODES


def _send_sync(message: EmailMessage, config: SmtpConfig) -> None:
    """
    Deliver one message over a fresh SMTP session.

    - secure=True  → implicit TLS from the first byte (usually port 465)
    - secure=False → plain connection, upgraded with STARTTLS if offered

    Raises whatever smtplib raises; the caller classifies it.
    """
    context = ssl.create_default_context()

    if config.secure:
        server = smtplib.SMTP_SSL(config.host, config.port, context=context)
    else:
        server = smtplib.SMTP(config.host, config.port)

    with server:
        if not config.secure:
            server.ehlo()
            if server.has_extn("starttls"):
                server.starttls(context=context)
                server.ehlo()
        server.login(config.user, config.password)
        server.send_message(message)


async def send_email(message: EmailMessage, config: SmtpConfig) -> None:
    """
    Send the message without blocking the event loop.

    The SMTP session runs in a worker thread; only the calling request waits
    for it. There is no timeout and no retry: the first failure is final.
    """
    await asyncio.to_thread(_send_sync, message, config)
