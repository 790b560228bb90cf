"""Authentication provider protocol."""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class TokenUser:
    """Represents a user extracted from a session token."""

    id: str
    email: str
    display_name: Optional[str] = None


class IAuthProvider(Protocol):
    """Protocol for authentication providers.

    Tokens are issued by the auth service; this service only verifies them.
    """

    async def validate_token(self, token: str) -> Optional[TokenUser]:
        """
        Validate a session token.

        Args:
            token: The bearer token to validate

        Returns:
            TokenUser if valid, None if invalid
        """
        ...

    def create_token(self, user: TokenUser) -> str:
        """
        Create a token for a user (tests and local tooling).

        Args:
            user: The user to create a token for

        Returns:
            The generated token string
        """
        ...
