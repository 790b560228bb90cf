"""Push provider protocol and value types."""

from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Protocol

Platform = Literal["ios", "android", "web"]


def tenant_topic_key(tenant_id: str) -> str:
    """Topic key used for tenant-wide broadcasts."""
    return f"tenant_{tenant_id}"


@dataclass
class SubscriberInfo:
    """Profile sent to the provider when identifying a subscriber."""

    user_id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    locale: Optional[str] = None
    avatar: Optional[str] = None
    data: dict[str, Any] = field(default_factory=dict)


@dataclass
class PushCredentials:
    """Device credentials for push delivery."""

    platform: Platform
    token: str
    expo_push_token: Optional[str] = None


@dataclass
class SendPushParams:
    """Content of a single push or in-app message."""

    user_id: str
    title: str
    body: str
    type: Optional[str] = None
    deep_link: Optional[str] = None
    data: Optional[dict[str, Any]] = None


@dataclass
class SendPushResult:
    """Outcome reported by the provider for one send call."""

    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class IPushProvider(Protocol):
    """Protocol for push notification providers.

    Send methods report failure through ``SendPushResult``; subscriber and
    topic methods raise ``PushProviderError`` when the provider rejects the
    call.
    """

    name: str

    async def initialize(self) -> None:
        """Prepare the provider. Called once at startup."""
        ...

    def is_initialized(self) -> bool:
        ...

    async def identify_subscriber(self, info: SubscriberInfo) -> None:
        """Create or update the subscriber profile."""
        ...

    async def set_credentials(self, user_id: str, credentials: PushCredentials) -> None:
        """Register a device token for a subscriber."""
        ...

    async def remove_credentials(self, user_id: str, platform: Platform) -> None:
        """Remove the device token of one platform."""
        ...

    async def send_in_app(self, params: SendPushParams) -> SendPushResult:
        ...

    async def send_push(self, params: SendPushParams) -> SendPushResult:
        ...

    async def send_batched_push(
        self, user_id: str, notifications: list[SendPushParams]
    ) -> SendPushResult:
        """Send several notifications as a single summarised push."""
        ...

    async def create_topic(self, topic_key: str, name: Optional[str] = None) -> None:
        """Create a topic. An existing topic is not an error."""
        ...

    async def add_to_topic(self, topic_key: str, user_ids: list[str]) -> None:
        ...

    async def remove_from_topic(self, topic_key: str, user_ids: list[str]) -> None:
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...
