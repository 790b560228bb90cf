"""Application event handlers that turn events into notifications."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from domain.entities.events import (
    EVENT_TYPES,
    InviteAccepted,
    InviteSent,
    SubscriptionActivated,
    SubscriptionCanceled,
    SubscriptionPaymentFailed,
    SubscriptionTrialEnding,
    TenantCreated,
    TenantMemberJoined,
    UserPasswordReset,
    UserSignedUp,
    UserVerified,
)
from domain.entities.notification import (
    DeliveryChannel,
    DeliveryStatus,
    Notification,
    NotificationType,
)
from domain.services.event_bus import EventBus
from domain.services.notification_dispatcher import NotificationDispatcher, NotifyParams
from domain.services.notification_stream import NotificationStream
from infrastructure.mailer.provider import IMailer
from infrastructure.push.provider import IPushProvider, tenant_topic_key

logger = structlog.get_logger()

BILLING_DEEP_LINK = "/settings/billing"


@dataclass
class _EmailOutcome:
    template: str
    message_id: str | None = None
    error: str | None = None


class NotificationHandlers:
    """One handler per catalogue event.

    Handlers create inbox entries through the dispatcher and publish them
    to the live stream. Email and push-topic side effects are best-effort:
    failures are logged and never block the inbox path. Inbox persistence
    failures propagate to the emitter.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        stream: NotificationStream,
        push_provider: IPushProvider,
        mailer: IMailer,
        app_url: str = "",
    ) -> None:
        self._dispatcher = dispatcher
        self._stream = stream
        self._push = push_provider
        self._mailer = mailer
        self._app_url = app_url.rstrip("/")

    def handlers(self) -> dict[type, Callable[[Any], Awaitable[None]]]:
        return {
            UserSignedUp: self.on_user_signed_up,
            UserVerified: self.on_user_verified,
            UserPasswordReset: self.on_user_password_reset,
            InviteSent: self.on_invite_sent,
            InviteAccepted: self.on_invite_accepted,
            TenantCreated: self.on_tenant_created,
            TenantMemberJoined: self.on_tenant_member_joined,
            SubscriptionActivated: self.on_subscription_activated,
            SubscriptionPaymentFailed: self.on_subscription_payment_failed,
            SubscriptionTrialEnding: self.on_subscription_trial_ending,
            SubscriptionCanceled: self.on_subscription_canceled,
        }

    def register(self, bus: EventBus) -> list[Callable[[], None]]:
        """Attach every handler to the bus.

        Raises:
            RuntimeError: If a catalogue event has no handler.
        """
        table = self.handlers()
        missing = sorted(
            name for name, event_type in EVENT_TYPES.items() if event_type not in table
        )
        if missing:
            raise RuntimeError(f"Missing notification handlers for: {', '.join(missing)}")

        unsubscribers = [bus.on(event_type, handler) for event_type, handler in table.items()]
        logger.info("notification_handlers_registered", count=len(unsubscribers))
        return unsubscribers

    # --- Helpers ---

    async def _send(self, params: NotifyParams) -> Notification:
        notification = await self._dispatcher.notify(params)
        self._stream.publish(notification.recipient_user_id, notification)
        return notification

    async def _try_email(
        self,
        template: str,
        to: str,
        data: dict[str, str],
        user_id: str,
        tenant_id: str | None,
    ) -> _EmailOutcome | None:
        """Send a template email unless the recipient turned email off."""
        prefs = await self._dispatcher.resolve_preferences(user_id, tenant_id)
        if not prefs.email_enabled:
            return None

        outcome = _EmailOutcome(template=template)
        try:
            outcome.message_id = await self._mailer.send_template_email(template, to, data)
        except Exception as e:
            outcome.error = str(e)
            logger.warning("notification_email_failed", template=template, error=str(e))
        return outcome

    async def _record_email(
        self, notification: Notification, outcome: _EmailOutcome | None
    ) -> None:
        if outcome is None:
            return
        await self._dispatcher.record_delivery(
            notification.id,
            DeliveryChannel.EMAIL,
            DeliveryStatus.FAILED if outcome.error else DeliveryStatus.SENT,
            provider_message_id=outcome.message_id,
            error=outcome.error,
        )

    # --- Auth ---

    async def on_user_signed_up(self, event: UserSignedUp) -> None:
        # Email verification is the only communication at sign-up
        return None

    async def on_user_verified(self, event: UserVerified) -> None:
        await self._send(
            NotifyParams(
                recipient_user_id=event.user_id,
                type=NotificationType.MEMBER_JOINED,
                title="Welcome to App!",
                body=f"Hi {event.user_name}, your email is verified. Let's get started!",
                deep_link="/dashboard",
            )
        )

    async def on_user_password_reset(self, event: UserPasswordReset) -> None:
        # Handled by the password reset email flow
        return None

    # --- Invites ---

    async def on_invite_sent(self, event: InviteSent) -> None:
        await self._send(
            NotifyParams(
                recipient_user_id=event.inviter_user_id,
                tenant_id=event.tenant_id,
                type=NotificationType.MEMBER_INVITED,
                title="Invite sent!",
                body=f"Your invitation to {event.email} for {event.tenant_name} was sent.",
                data={"email": event.email, "tenantName": event.tenant_name},
            )
        )

    async def on_invite_accepted(self, event: InviteAccepted) -> None:
        await self._send(
            NotifyParams(
                recipient_user_id=event.inviter_user_id,
                tenant_id=event.tenant_id,
                actor_user_id=event.user_id,
                type=NotificationType.MEMBER_JOINED,
                title="New member joined!",
                body=f"{event.user_name} accepted your invite and joined {event.tenant_name}.",
                deep_link=f"/nest/{event.tenant_id}",
                data={"userName": event.user_name, "tenantName": event.tenant_name},
            )
        )

    # --- Tenants ---

    async def on_tenant_created(self, event: TenantCreated) -> None:
        if self._push.is_initialized():
            topic = tenant_topic_key(event.tenant_id)
            try:
                await self._push.create_topic(topic, event.tenant_name)
                await self._push.add_to_topic(topic, [event.owner_user_id])
            except Exception as e:
                logger.warning(
                    "tenant_topic_setup_failed",
                    tenant_id=event.tenant_id,
                    error=str(e),
                )

        await self._send(
            NotifyParams(
                recipient_user_id=event.owner_user_id,
                tenant_id=event.tenant_id,
                type=NotificationType.SETTINGS_CHANGED,
                title=f"{event.tenant_name} created!",
                body="Your group is ready. Invite your family or friends to get started.",
                deep_link=f"/nest/{event.tenant_id}/settings",
            )
        )

    async def on_tenant_member_joined(self, event: TenantMemberJoined) -> None:
        if not self._push.is_initialized():
            return
        try:
            await self._push.add_to_topic(tenant_topic_key(event.tenant_id), [event.user_id])
        except Exception as e:
            logger.warning(
                "tenant_topic_join_failed",
                tenant_id=event.tenant_id,
                user_id=event.user_id,
                error=str(e),
            )

    # --- Subscriptions ---

    async def on_subscription_activated(self, event: SubscriptionActivated) -> None:
        email = await self._try_email(
            "subscription_activated",
            event.user_email,
            {
                "name": event.user_name,
                "plan_name": event.plan_name,
                "dashboard_link": f"{self._app_url}/dashboard",
            },
            event.user_id,
            event.tenant_id,
        )
        notification = await self._send(
            NotifyParams(
                recipient_user_id=event.user_id,
                tenant_id=event.tenant_id,
                type=NotificationType.SETTINGS_CHANGED,
                title="Subscription Activated!",
                body=f"Your {event.plan_name} subscription is now active.",
                deep_link=BILLING_DEEP_LINK,
            )
        )
        await self._record_email(notification, email)

    async def on_subscription_payment_failed(self, event: SubscriptionPaymentFailed) -> None:
        email = await self._try_email(
            "payment_failed",
            event.user_email,
            {
                "name": event.user_name,
                "retry_date": event.retry_date,
                "update_payment_url": event.update_payment_url,
            },
            event.user_id,
            event.tenant_id,
        )
        notification = await self._send(
            NotifyParams(
                recipient_user_id=event.user_id,
                tenant_id=event.tenant_id,
                type=NotificationType.SETTINGS_CHANGED,
                title="Payment Failed",
                body="Please update your payment method to continue your subscription.",
                deep_link=BILLING_DEEP_LINK,
            )
        )
        await self._record_email(notification, email)

    async def on_subscription_trial_ending(self, event: SubscriptionTrialEnding) -> None:
        email = await self._try_email(
            "trial_ending",
            event.user_email,
            {
                "name": event.user_name,
                "plan_name": event.plan_name,
                "trial_end_date": event.trial_end_date,
                "upgrade_url": event.upgrade_url,
            },
            event.user_id,
            event.tenant_id,
        )
        notification = await self._send(
            NotifyParams(
                recipient_user_id=event.user_id,
                tenant_id=event.tenant_id,
                type=NotificationType.SETTINGS_CHANGED,
                title="Trial Ending Soon",
                body=(
                    f"Your free trial ends on {event.trial_end_date}. "
                    "Upgrade to keep premium features."
                ),
                deep_link=BILLING_DEEP_LINK,
            )
        )
        await self._record_email(notification, email)

    async def on_subscription_canceled(self, event: SubscriptionCanceled) -> None:
        await self._send(
            NotifyParams(
                recipient_user_id=event.user_id,
                tenant_id=event.tenant_id,
                type=NotificationType.SETTINGS_CHANGED,
                title="Subscription Canceled",
                body=(
                    f"Your {event.plan_name} subscription has been canceled. "
                    f"You'll have access until {event.canceled_at}."
                ),
                deep_link=BILLING_DEEP_LINK,
            )
        )
