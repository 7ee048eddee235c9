import asyncio
import logging
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path

import aiosmtplib
from jinja2 import Environment, FileSystemLoader, select_autoescape

from backend.core import config
from backend.core.errors import MailDeliveryError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
SENDER_NAME = "NextLogin"

_jinja_env: Environment | None = None


def get_jinja_env() -> Environment:
    global _jinja_env
    if _jinja_env is None:
        _jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html", "xml"]),
        )
    return _jinja_env


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


def render_email(template_name: str, subject: str, **context) -> RenderedEmail:
    env = get_jinja_env()
    return RenderedEmail(
        subject=subject,
        html=env.get_template(f"email/{template_name}.html").render(**context),
        text=env.get_template(f"email/{template_name}.txt").render(**context),
    )


class Mailer:
    """Sends transactional mail over SMTP, or logs it when delivery is off."""

    def __init__(self, deliver: bool | None = None):
        if deliver is None:
            deliver = not config.is_development() and bool(config.SMTP_HOST)
        self.deliver = deliver

    def build_message(self, to_email: str, email: RenderedEmail) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((SENDER_NAME, config.FROM_EMAIL))
        message["To"] = to_email
        message["Subject"] = email.subject
        message.set_content(email.text)
        message.add_alternative(email.html, subtype="html")
        return message

    async def send(self, to_email: str, email: RenderedEmail) -> None:
        if not self.deliver:
            logger.info("Email delivery disabled; would send '%s' to %s", email.subject, to_email)
            logger.debug("Email body for %s:\n%s", to_email, email.text)
            return

        message = self.build_message(to_email, email)
        try:
            await aiosmtplib.send(
                message,
                hostname=config.SMTP_HOST,
                port=config.SMTP_PORT,
                username=config.SMTP_USER or None,
                password=config.SMTP_PASSWORD or None,
                use_tls=config.SMTP_USE_TLS,
                start_tls=config.SMTP_START_TLS,
                timeout=config.SMTP_TIMEOUT,
            )
        except (aiosmtplib.SMTPException, asyncio.TimeoutError, OSError) as exc:
            logger.error("Failed to send '%s' to %s: %s", email.subject, to_email, exc)
            raise MailDeliveryError() from exc

        logger.info("Sent '%s' to %s", email.subject, to_email)

    async def send_verification_email(self, to_email: str, name: str, verification_url: str) -> None:
        email = render_email(
            "verify_email",
            "Verify Your Email Address",
            name=name,
            verification_url=verification_url,
        )
        await self.send(to_email, email)

    async def send_password_reset_email(self, to_email: str, name: str, reset_url: str) -> None:
        email = render_email(
            "reset_password",
            "Reset Your Password",
            name=name,
            reset_url=reset_url,
        )
        await self.send(to_email, email)
