"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import AuthenticationError, ErrorCode
from infrastructure.auth.jwt_provider import JWTAuthProvider
from infrastructure.auth.provider import TokenUser

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)

# Singleton auth provider
_auth_provider: JWTAuthProvider | None = None


def get_auth_provider() -> JWTAuthProvider:
    """Get or create the auth provider singleton."""
    global _auth_provider
    if _auth_provider is None:
        _auth_provider = JWTAuthProvider()
    return _auth_provider


async def _authenticate(token: str | None, auth_provider: JWTAuthProvider) -> TokenUser:
    if not token:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )

    user = await auth_provider.validate_token(token)
    if not user:
        raise AuthenticationError(
            message="Invalid or expired token",
            error_code=ErrorCode.INVALID_TOKEN,
        )
    return user


async def get_current_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """
    Dependency to get the current authenticated user.

    Raises:
        AuthenticationError: If no token provided or token is invalid
    """
    return await _authenticate(
        credentials.credentials if credentials else None, auth_provider
    )


async def get_stream_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
    access_token: Annotated[str | None, Query()] = None,
    auth_provider: JWTAuthProvider = Depends(get_auth_provider),
) -> TokenUser:
    """
    Like ``get_current_user`` but also accepts ``?access_token=``.

    Browser ``EventSource`` cannot set an Authorization header.
    """
    token = credentials.credentials if credentials else access_token
    return await _authenticate(token, auth_provider)


# Type aliases for convenience in route handlers
CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
StreamUser = Annotated[TokenUser, Depends(get_stream_user)]
