"""Unit tests for application event handlers."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from core.exceptions import MailerError, PushProviderError
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
    NotificationPreferences,
    NotificationType,
)
from domain.services.event_bus import EventBus
from domain.services.notification_dispatcher import NotificationDispatcher
from domain.services.notification_handlers import BILLING_DEEP_LINK, NotificationHandlers
from domain.services.notification_stream import (
    NotificationStream,
    StreamEvent,
    StreamEventType,
)
from tests.unit.conftest import FakeUnitOfWork


@pytest.fixture
def push() -> MagicMock:
    provider = MagicMock()
    provider.name = "fake"
    provider.is_initialized.return_value = True
    provider.create_topic = AsyncMock()
    provider.add_to_topic = AsyncMock()
    provider.send_push = AsyncMock()
    provider.send_batched_push = AsyncMock()
    return provider


@pytest.fixture
def mailer() -> MagicMock:
    m = MagicMock()
    m.name = "fake"
    m.send_template_email = AsyncMock(return_value="email-1")
    return m


@pytest.fixture
def stream() -> NotificationStream:
    return NotificationStream()


@pytest.fixture
def handlers(
    uow: FakeUnitOfWork,
    stream: NotificationStream,
    push: MagicMock,
    mailer: MagicMock,
) -> NotificationHandlers:
    dispatcher = NotificationDispatcher(lambda: uow, push)
    return NotificationHandlers(
        dispatcher, stream, push, mailer, app_url="https://app.test/"
    )


def _created(uow: FakeUnitOfWork) -> list:
    return [c.args[0] for c in uow.notifications.create.call_args_list]


@pytest.fixture
def activated() -> SubscriptionActivated:
    return SubscriptionActivated(
        tenant_id="t1",
        user_id="u1",
        user_email="ada@example.com",
        user_name="Ada",
        plan_id="pro",
        plan_name="Pro",
        provider="polar",
    )


class TestRegistration:
    """Handler table and bus registration."""

    def test_every_catalogue_event_has_a_handler(self, handlers: NotificationHandlers):
        assert set(handlers.handlers()) == set(EVENT_TYPES.values())

    def test_register_attaches_one_listener_per_event(self, handlers: NotificationHandlers):
        bus = EventBus()

        unsubscribers = handlers.register(bus)

        assert len(unsubscribers) == len(EVENT_TYPES)
        for event_type in EVENT_TYPES.values():
            assert bus.listener_count(event_type) == 1

    def test_register_rejects_incomplete_table(
        self, handlers: NotificationHandlers, monkeypatch: pytest.MonkeyPatch
    ):
        table = handlers.handlers()
        del table[TenantMemberJoined]
        monkeypatch.setattr(handlers, "handlers", lambda: table)

        with pytest.raises(RuntimeError, match="tenant.member_joined"):
            handlers.register(EventBus())


class TestSubscriptionActivated:
    """Email, inbox entry and live update for subscription activation."""

    @pytest.mark.asyncio
    async def test_sends_email_notifies_and_publishes(
        self,
        handlers: NotificationHandlers,
        uow: FakeUnitOfWork,
        stream: NotificationStream,
        mailer: MagicMock,
        activated: SubscriptionActivated,
    ):
        live: list[StreamEvent] = []
        stream.subscribe("u1", live.append)

        await handlers.on_subscription_activated(activated)

        mailer.send_template_email.assert_awaited_once_with(
            "subscription_activated",
            "ada@example.com",
            {
                "name": "Ada",
                "plan_name": "Pro",
                "dashboard_link": "https://app.test/dashboard",
            },
        )

        [notification] = _created(uow)
        assert notification.recipient_user_id == "u1"
        assert notification.tenant_id == "t1"
        assert notification.type == NotificationType.SETTINGS_CHANGED
        assert notification.title == "Subscription Activated!"
        assert notification.body == "Your Pro subscription is now active."
        assert notification.deep_link == BILLING_DEEP_LINK

        assert [e.type for e in live] == [StreamEventType.NEW]
        assert live[0].notification is not None
        assert live[0].notification.id == notification.id

        channels = [(d.channel, d.status) for d in uow.created_deliveries]
        assert channels == [
            (DeliveryChannel.IN_APP, DeliveryStatus.SENT),
            (DeliveryChannel.EMAIL, DeliveryStatus.SENT),
        ]
        assert uow.created_deliveries[-1].provider_message_id == "email-1"

    @pytest.mark.asyncio
    async def test_email_failure_still_notifies(
        self,
        handlers: NotificationHandlers,
        uow: FakeUnitOfWork,
        mailer: MagicMock,
        activated: SubscriptionActivated,
    ):
        mailer.send_template_email.side_effect = MailerError("resend", "API error (500)")

        await handlers.on_subscription_activated(activated)

        assert len(_created(uow)) == 1
        email_record = uow.created_deliveries[-1]
        assert email_record.channel == DeliveryChannel.EMAIL
        assert email_record.status == DeliveryStatus.FAILED
        assert "API error" in (email_record.error or "")

    @pytest.mark.asyncio
    async def test_email_disabled_skips_mailer_and_audit(
        self,
        handlers: NotificationHandlers,
        uow: FakeUnitOfWork,
        mailer: MagicMock,
        activated: SubscriptionActivated,
    ):
        """A turned-off channel is skipped silently: no send, no email record."""

        async def prefs(user_id: str, tenant_id: str | None = None) -> NotificationPreferences:
            return NotificationPreferences(
                user_id=user_id, tenant_id=tenant_id, email_enabled=False
            )

        uow.preferences.get_preferences.side_effect = prefs

        await handlers.on_subscription_activated(activated)

        mailer.send_template_email.assert_not_awaited()
        assert len(_created(uow)) == 1
        assert [d.channel for d in uow.created_deliveries] == [DeliveryChannel.IN_APP]

    @pytest.mark.asyncio
    async def test_email_preference_read_for_event_tenant(
        self,
        handlers: NotificationHandlers,
        uow: FakeUnitOfWork,
        activated: SubscriptionActivated,
    ):
        await handlers.on_subscription_activated(activated)

        uow.preferences.get_preferences.assert_any_await("u1", "t1")

    @pytest.mark.asyncio
    async def test_inbox_failure_propagates(
        self,
        handlers: NotificationHandlers,
        uow: FakeUnitOfWork,
        activated: SubscriptionActivated,
    ):
        uow.notifications.create.side_effect = RuntimeError("db down")

        with pytest.raises(RuntimeError):
            await handlers.on_subscription_activated(activated)


class TestSubscriptionEvents:
    """Remaining billing notifications."""

    @pytest.mark.asyncio
    async def test_payment_failed(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork, mailer: MagicMock
    ):
        await handlers.on_subscription_payment_failed(
            SubscriptionPaymentFailed(
                tenant_id="t1",
                user_id="u1",
                user_email="ada@example.com",
                user_name="Ada",
                retry_date="2026-01-05",
                update_payment_url="https://billing.test/update",
            )
        )

        template, to, data = mailer.send_template_email.await_args.args
        assert template == "payment_failed"
        assert data["update_payment_url"] == "https://billing.test/update"
        [notification] = _created(uow)
        assert notification.title == "Payment Failed"
        assert notification.deep_link == BILLING_DEEP_LINK

    @pytest.mark.asyncio
    async def test_trial_ending(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork, mailer: MagicMock
    ):
        await handlers.on_subscription_trial_ending(
            SubscriptionTrialEnding(
                tenant_id="t1",
                user_id="u1",
                user_email="ada@example.com",
                user_name="Ada",
                plan_name="Pro",
                trial_end_date="2026-01-10",
                upgrade_url="https://billing.test/upgrade",
            )
        )

        assert mailer.send_template_email.await_args.args[0] == "trial_ending"
        [notification] = _created(uow)
        assert notification.title == "Trial Ending Soon"
        assert "2026-01-10" in notification.body

    @pytest.mark.asyncio
    async def test_canceled_sends_no_email(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork, mailer: MagicMock
    ):
        await handlers.on_subscription_canceled(
            SubscriptionCanceled(
                tenant_id="t1",
                user_id="u1",
                user_name="Ada",
                plan_name="Pro",
                canceled_at="2026-02-01",
            )
        )

        mailer.send_template_email.assert_not_awaited()
        [notification] = _created(uow)
        assert notification.title == "Subscription Canceled"
        assert "until 2026-02-01" in notification.body


class TestAuthEvents:
    @pytest.mark.asyncio
    async def test_signed_up_creates_nothing(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork
    ):
        await handlers.on_user_signed_up(
            UserSignedUp(user_id="u1", email="ada@example.com", user_name="Ada")
        )

        assert _created(uow) == []

    @pytest.mark.asyncio
    async def test_password_reset_creates_nothing(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork
    ):
        await handlers.on_user_password_reset(
            UserPasswordReset(user_id="u1", email="ada@example.com")
        )

        assert _created(uow) == []

    @pytest.mark.asyncio
    async def test_verified_sends_welcome(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork
    ):
        await handlers.on_user_verified(
            UserVerified(user_id="u1", email="ada@example.com", user_name="Ada")
        )

        [notification] = _created(uow)
        assert notification.type == NotificationType.MEMBER_JOINED
        assert notification.title == "Welcome to App!"
        assert "Hi Ada" in notification.body
        assert notification.deep_link == "/dashboard"


class TestInviteEvents:
    @pytest.mark.asyncio
    async def test_invite_sent_notifies_inviter(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork
    ):
        await handlers.on_invite_sent(
            InviteSent(
                invite_id="i1",
                inviter_user_id="owner",
                inviter_name="Olga",
                email="guest@example.com",
                tenant_id="t1",
                tenant_name="Home",
            )
        )

        [notification] = _created(uow)
        assert notification.recipient_user_id == "owner"
        assert notification.type == NotificationType.MEMBER_INVITED
        assert notification.data == {"email": "guest@example.com", "tenantName": "Home"}

    @pytest.mark.asyncio
    async def test_invite_accepted_notifies_inviter_with_actor(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork
    ):
        await handlers.on_invite_accepted(
            InviteAccepted(
                user_id="guest",
                user_name="Gus",
                tenant_id="t1",
                tenant_name="Home",
                inviter_user_id="owner",
            )
        )

        [notification] = _created(uow)
        assert notification.recipient_user_id == "owner"
        assert notification.actor_user_id == "guest"
        assert notification.deep_link == "/nest/t1"
        assert notification.batch_key is not None
        assert notification.batch_key.startswith("guest_member_joined_")


class TestTenantEvents:
    """Push topic management around tenants."""

    @pytest.mark.asyncio
    async def test_tenant_created_sets_up_topic_and_notifies(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork, push: MagicMock
    ):
        await handlers.on_tenant_created(
            TenantCreated(tenant_id="t1", tenant_name="Home", owner_user_id="owner")
        )

        push.create_topic.assert_awaited_once_with("tenant_t1", "Home")
        push.add_to_topic.assert_awaited_once_with("tenant_t1", ["owner"])
        [notification] = _created(uow)
        assert notification.title == "Home created!"
        assert notification.deep_link == "/nest/t1/settings"

    @pytest.mark.asyncio
    async def test_topic_failure_does_not_block_notification(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork, push: MagicMock
    ):
        push.create_topic.side_effect = PushProviderError("novu", "API error (500)")

        await handlers.on_tenant_created(
            TenantCreated(tenant_id="t1", tenant_name="Home", owner_user_id="owner")
        )

        push.add_to_topic.assert_not_awaited()
        assert len(_created(uow)) == 1

    @pytest.mark.asyncio
    async def test_uninitialized_provider_skips_topic(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork, push: MagicMock
    ):
        push.is_initialized.return_value = False

        await handlers.on_tenant_created(
            TenantCreated(tenant_id="t1", tenant_name="Home", owner_user_id="owner")
        )

        push.create_topic.assert_not_awaited()
        assert len(_created(uow)) == 1

    @pytest.mark.asyncio
    async def test_member_joined_adds_to_topic_without_notification(
        self, handlers: NotificationHandlers, uow: FakeUnitOfWork, push: MagicMock
    ):
        await handlers.on_tenant_member_joined(
            TenantMemberJoined(tenant_id="t1", tenant_name="Home", user_id="u2", user_name="Bo")
        )

        push.add_to_topic.assert_awaited_once_with("tenant_t1", ["u2"])
        assert _created(uow) == []

    @pytest.mark.asyncio
    async def test_member_joined_swallows_topic_failure(
        self, handlers: NotificationHandlers, push: MagicMock
    ):
        push.add_to_topic.side_effect = PushProviderError("novu", "timeout")

        await handlers.on_tenant_member_joined(
            TenantMemberJoined(tenant_id="t1", tenant_name="Home", user_id="u2", user_name="Bo")
        )


class TestThroughBus:
    """Handlers reached through emit()."""

    @pytest.mark.asyncio
    async def test_emit_reaches_registered_handler(
        self,
        handlers: NotificationHandlers,
        uow: FakeUnitOfWork,
        activated: SubscriptionActivated,
    ):
        bus = EventBus()
        handlers.register(bus)

        await bus.emit(activated)

        assert len(_created(uow)) == 1
