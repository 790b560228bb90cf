"""Push provider that sends nothing.

Used when no provider is configured and in tests.
"""

from typing import Optional

import structlog

from infrastructure.push.provider import (
    Platform,
    PushCredentials,
    SendPushParams,
    SendPushResult,
    SubscriberInfo,
)

logger = structlog.get_logger()


class NoOpPushProvider:
    """Accepts every call and reports success without a message id."""

    name = "noop"

    def __init__(self) -> None:
        self._initialized = False

    async def initialize(self) -> None:
        self._initialized = True

    def is_initialized(self) -> bool:
        return self._initialized

    async def identify_subscriber(self, info: SubscriberInfo) -> None:
        pass

    async def set_credentials(self, user_id: str, credentials: PushCredentials) -> None:
        pass

    async def remove_credentials(self, user_id: str, platform: Platform) -> None:
        pass

    async def send_in_app(self, params: SendPushParams) -> SendPushResult:
        logger.debug("noop_send_in_app", user_id=params.user_id, title=params.title)
        return SendPushResult(success=True)

    async def send_push(self, params: SendPushParams) -> SendPushResult:
        logger.debug("noop_send_push", user_id=params.user_id, title=params.title)
        return SendPushResult(success=True)

    async def send_batched_push(
        self, user_id: str, notifications: list[SendPushParams]
    ) -> SendPushResult:
        logger.debug("noop_send_batched_push", user_id=user_id, count=len(notifications))
        return SendPushResult(success=True)

    async def create_topic(self, topic_key: str, name: Optional[str] = None) -> None:
        pass

    async def add_to_topic(self, topic_key: str, user_ids: list[str]) -> None:
        pass

    async def remove_from_topic(self, topic_key: str, user_ids: list[str]) -> None:
        pass

    async def close(self) -> None:
        pass
