"""Mailer construction from settings."""

import structlog

from core.config import Settings
from infrastructure.mailer.noop import NoOpMailer
from infrastructure.mailer.provider import IMailer
from infrastructure.mailer.resend import ResendMailer

logger = structlog.get_logger()


def create_mailer(settings: Settings) -> IMailer:
    """Build the configured mailer."""
    if settings.resolved_mail_provider == "resend" and settings.resend_api_key:
        return ResendMailer(
            api_key=settings.resend_api_key,
            from_name=settings.mail_from_name,
            from_email=settings.mail_from_email,
            reply_to=settings.mail_reply_to,
        )

    logger.info("mailer_disabled")
    return NoOpMailer()
