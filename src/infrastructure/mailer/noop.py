"""Mailer that renders but never sends."""

from typing import Optional

import structlog

from infrastructure.mailer.templates import render_email

logger = structlog.get_logger()


class NoOpMailer:
    """Used when no mail provider is configured.

    Templates are still rendered so missing template data surfaces in
    development.
    """

    name = "noop"

    async def send_template_email(
        self,
        template: str,
        to: str,
        data: dict[str, str],
        locale: str = "en",
    ) -> Optional[str]:
        subject, _ = render_email(template, data)
        logger.debug("noop_email", template=template, subject=subject)
        return None

    async def close(self) -> None:
        pass
