"""
Outgoing e-mail.

The application holds one mailer in ``app.extensions['mailer']``, chosen by
the ``MAIL_BACKEND`` setting. Anything with a ``send(to_address, subject,
body)`` method will do, so tests can install their own.
"""

from typing import List, NamedTuple, Optional
from email.message import EmailMessage
import logging
import smtplib

from flask import Flask, current_app

logger = logging.getLogger(__name__)


class Message(NamedTuple):
    """A plain-text message that was handed to a mailer."""

    to_address: str
    subject: str
    body: str


class SMTPMailer(object):
    """Sends mail through an SMTP service, one connection per message."""

    def __init__(self, host: str = 'localhost', port: int = 0,
                 sender: str = '', username: Optional[str] = None,
                 password: Optional[str] = None,
                 use_tls: bool = False) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._use_tls = use_tls

    def _new_connection(self) -> smtplib.SMTP:
        return smtplib.SMTP(host=self._host, port=self._port)

    def send(self, to_address: str, subject: str, body: str) -> None:
        """Send a plain-text message to ``to_address``."""
        message = EmailMessage()
        message['From'] = self._sender
        message['To'] = to_address
        message['Subject'] = subject
        message.set_content(body)
        with self._new_connection() as conn:
            if self._use_tls:
                conn.starttls()
            if self._username:
                conn.login(self._username, self._password or '')
            conn.send_message(message)
        logger.debug('Sent "%s" to %s', subject, to_address)


class MemoryMailer(object):
    """Keeps messages in an outbox instead of sending them."""

    def __init__(self) -> None:
        self.outbox: List[Message] = []

    def send(self, to_address: str, subject: str, body: str) -> None:
        """Append the message to :attr:`outbox`."""
        self.outbox.append(Message(to_address, subject, body))
        logger.debug('Queued "%s" for %s in memory', subject, to_address)


def init_app(app: Flask) -> None:
    """Install a mailer on ``app`` according to its configuration."""
    if 'mailer' in app.extensions:
        return
    backend = app.config.get('MAIL_BACKEND', 'smtp')
    if backend == 'memory':
        app.extensions['mailer'] = MemoryMailer()
    elif backend == 'smtp':
        app.extensions['mailer'] = SMTPMailer(
            host=app.config.get('MAIL_SERVER', 'localhost'),
            port=int(app.config.get('MAIL_PORT', 0)),
            sender=app.config.get('MAIL_DEFAULT_SENDER', ''),
            username=app.config.get('MAIL_USERNAME'),
            password=app.config.get('MAIL_PASSWORD'),
            use_tls=bool(app.config.get('MAIL_USE_TLS'))
        )
    else:
        raise ValueError(f'Unknown MAIL_BACKEND: {backend}')


def get_mailer() -> object:
    """Get the mailer for the current application."""
    return current_app.extensions['mailer']


def send_verification_code(to_address: str, first_name: str, code: str,
                           lifetime: int) -> None:
    """Send an e-mail verification code."""
    platform = current_app.config.get('PLATFORM_NAME', 'Coursegate')
    body = (
        f"Hello {first_name or 'there'},\n\n"
        f"Your {platform} verification code is: {code}\n\n"
        f"This code expires in {lifetime // 60} minutes. If you did not"
        f" create an account, you can ignore this message.\n"
    )
    get_mailer().send(to_address, f'{platform} email verification', body)


def send_welcome(to_address: str, first_name: str) -> None:
    """Tell a newly verified user that their account awaits approval."""
    platform = current_app.config.get('PLATFORM_NAME', 'Coursegate')
    body = (
        f"Hello {first_name or 'there'},\n\n"
        "Your email has been successfully verified. Your account is now"
        " pending admin approval. You will be able to access your courses"
        " once an administrator approves it.\n"
    )
    get_mailer().send(to_address, f'Welcome to {platform}', body)
