"""Novu push provider over the Novu REST API.

Only the calls this service needs are implemented:

    POST   /v1/subscribers                              identify
    PUT    /v1/subscribers/{id}/credentials             set device token
    DELETE /v1/subscribers/{id}/credentials/{provider}  remove device token
    POST   /v1/events/trigger                           in-app / push / batched push
    POST   /v1/topics                                   create topic
    POST   /v1/topics/{key}/subscribers                 add to topic
    POST   /v1/topics/{key}/subscribers/removal         remove from topic
"""

from typing import Any, Optional

import httpx
import structlog

from core.exceptions import PushProviderError
from infrastructure.push.provider import (
    Platform,
    PushCredentials,
    SendPushParams,
    SendPushResult,
    SubscriberInfo,
)

logger = structlog.get_logger()

PUSH_WORKFLOW = "push-notification"
PUSH_BATCHED_WORKFLOW = "push-notification-batched"
IN_APP_WORKFLOW = "in-app-notification"

_PLATFORM_PROVIDER_IDS: dict[str, str] = {
    "ios": "apns",
    "android": "fcm",
    "web": "web-push",
}


class NovuPushProvider:
    """Push provider backed by Novu workflows and topics."""

    name = "novu"

    def __init__(
        self,
        secret_key: str,
        base_url: str = "https://api.novu.co",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._secret_key = secret_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client
        self._initialized = False

    async def initialize(self) -> None:
        if self._initialized:
            return
        if not self._secret_key:
            raise PushProviderError(self.name, "secret key not configured")

        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self._base_url, timeout=self._timeout)
        self._initialized = True
        logger.info("push_provider_initialized", provider=self.name)

    def is_initialized(self) -> bool:
        return self._initialized

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        allow_status: tuple[int, ...] = (),
    ) -> dict[str, Any]:
        if not self._initialized or self._client is None:
            raise PushProviderError(self.name, "not initialized")

        try:
            response = await self._client.request(
                method,
                f"/v1{path}",
                json=json,
                headers={"Authorization": f"ApiKey {self._secret_key}"},
            )
        except httpx.HTTPError as e:
            raise PushProviderError(self.name, f"request failed: {e}") from e

        if response.status_code in allow_status:
            return {}
        if response.is_error:
            raise PushProviderError(
                self.name, f"API error ({response.status_code}): {response.text}"
            )
        if not response.content:
            return {}
        return response.json()

    async def _trigger(
        self, workflow: str, subscriber_id: str, payload: dict[str, Any]
    ) -> SendPushResult:
        try:
            body = await self._request(
                "POST",
                "/events/trigger",
                json={
                    "name": workflow,
                    "to": {"subscriberId": subscriber_id},
                    "payload": payload,
                },
            )
        except PushProviderError as e:
            logger.warning(
                "push_trigger_failed",
                workflow=workflow,
                user_id=subscriber_id,
                error=e.message,
            )
            return SendPushResult(success=False, error=e.message)

        transaction_id = (body.get("data") or {}).get("transactionId")
        return SendPushResult(success=True, message_id=transaction_id)

    # --- Subscribers ---

    async def identify_subscriber(self, info: SubscriberInfo) -> None:
        await self._request(
            "POST",
            "/subscribers",
            json={
                "subscriberId": info.user_id,
                "email": info.email,
                "firstName": info.first_name,
                "lastName": info.last_name,
                "locale": info.locale,
                "avatar": info.avatar,
                "data": info.data,
            },
        )

    async def set_credentials(self, user_id: str, credentials: PushCredentials) -> None:
        if credentials.expo_push_token:
            provider_id = "expo"
            token = credentials.expo_push_token
        elif credentials.platform in ("ios", "android"):
            provider_id = _PLATFORM_PROVIDER_IDS[credentials.platform]
            token = credentials.token
        else:
            # Web push subscriptions are registered by the browser SDK
            return

        await self._request(
            "PUT",
            f"/subscribers/{user_id}/credentials",
            json={"providerId": provider_id, "credentials": {"deviceTokens": [token]}},
        )

    async def remove_credentials(self, user_id: str, platform: Platform) -> None:
        provider_id = _PLATFORM_PROVIDER_IDS[platform]
        await self._request(
            "DELETE",
            f"/subscribers/{user_id}/credentials/{provider_id}",
            allow_status=(404,),
        )

    # --- Delivery ---

    async def send_in_app(self, params: SendPushParams) -> SendPushResult:
        return await self._trigger(
            IN_APP_WORKFLOW,
            params.user_id,
            {
                "title": params.title,
                "body": params.body,
                "data": params.data or {},
                "deepLink": params.deep_link,
                "type": params.type,
            },
        )

    async def send_push(self, params: SendPushParams) -> SendPushResult:
        return await self._trigger(
            PUSH_WORKFLOW,
            params.user_id,
            {
                "title": params.title,
                "body": params.body,
                "data": params.data or {},
                "deepLink": params.deep_link,
                "type": params.type,
            },
        )

    async def send_batched_push(
        self, user_id: str, notifications: list[SendPushParams]
    ) -> SendPushResult:
        if not notifications:
            return SendPushResult(success=True)

        count = len(notifications)
        first = notifications[0]
        if count == 1:
            title, body = first.title, first.body
        else:
            title = f"You have {count} new notifications"
            body = f"{first.title} and {count - 1} more"

        return await self._trigger(
            PUSH_BATCHED_WORKFLOW,
            user_id,
            {
                "count": count,
                "title": title,
                "body": body,
                "type": first.type,
                "notifications": [
                    {
                        "title": n.title,
                        "body": n.body,
                        "type": n.type,
                        "deepLink": n.deep_link,
                        "data": n.data,
                    }
                    for n in notifications
                ],
            },
        )

    # --- Topics ---

    async def create_topic(self, topic_key: str, name: Optional[str] = None) -> None:
        # 409: topic already exists
        await self._request(
            "POST",
            "/topics",
            json={"key": topic_key, "name": name or topic_key},
            allow_status=(409,),
        )

    async def add_to_topic(self, topic_key: str, user_ids: list[str]) -> None:
        if not user_ids:
            return
        await self._request(
            "POST", f"/topics/{topic_key}/subscribers", json={"subscribers": user_ids}
        )

    async def remove_from_topic(self, topic_key: str, user_ids: list[str]) -> None:
        if not user_ids:
            return
        await self._request(
            "POST",
            f"/topics/{topic_key}/subscribers/removal",
            json={"subscribers": user_ids},
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._initialized = False
