"""Mailer protocol."""

from typing import Optional, Protocol


class IMailer(Protocol):
    """Protocol for transactional email delivery."""

    name: str

    async def send_template_email(
        self,
        template: str,
        to: str,
        data: dict[str, str],
        locale: str = "en",
    ) -> Optional[str]:
        """
        Render and send a template email.

        Args:
            template: Template name (e.g. ``payment_failed``)
            to: Recipient address
            data: Template variables
            locale: Recipient locale

        Returns:
            The provider message id, if the provider returned one

        Raises:
            MailerError: If rendering or delivery fails
        """
        ...

    async def close(self) -> None:
        ...
