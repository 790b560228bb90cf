"""Resend mailer over the Resend REST API."""

from typing import Optional

import httpx
import structlog

from core.exceptions import MailerError
from infrastructure.mailer.templates import render_email

logger = structlog.get_logger()

RESEND_API_URL = "https://api.resend.com"


class ResendMailer:
    """Sends rendered templates through ``POST /emails``."""

    name = "resend"

    def __init__(
        self,
        api_key: str,
        from_name: str,
        from_email: str,
        reply_to: Optional[str] = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._from = f"{from_name} <{from_email}>"
        self._from_name = from_name
        self._reply_to = reply_to
        self._client = client or httpx.AsyncClient(base_url=RESEND_API_URL, timeout=timeout)

    async def send_template_email(
        self,
        template: str,
        to: str,
        data: dict[str, str],
        locale: str = "en",
    ) -> Optional[str]:
        subject, html = render_email(template, data, app_name=self._from_name)

        payload: dict[str, object] = {
            "from": self._from,
            "to": [to],
            "subject": subject,
            "html": html,
            "tags": [
                {"name": "template", "value": template},
                {"name": "locale", "value": locale},
            ],
        }
        if self._reply_to:
            payload["reply_to"] = self._reply_to

        try:
            response = await self._client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.HTTPError as e:
            raise MailerError(self.name, f"request failed: {e}") from e

        if response.is_error:
            raise MailerError(
                self.name, f"API error ({response.status_code}): {response.text}"
            )

        message_id = response.json().get("id")
        logger.info("email_sent", template=template, message_id=message_id)
        return message_id

    async def close(self) -> None:
        await self._client.aclose()
