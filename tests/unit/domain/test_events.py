"""Unit tests for the application event catalogue."""

import dataclasses

import pytest

from core.exceptions import AppException, ErrorCode, UnknownEventError
from domain.entities.events import (
    EVENT_TYPES,
    InviteAccepted,
    SubscriptionActivated,
    TenantCreated,
    parse_event,
)


class TestCatalogue:
    def test_contains_every_event_name(self):
        assert set(EVENT_TYPES) == {
            "user.signed_up",
            "user.verified",
            "user.password_reset",
            "invite.sent",
            "invite.accepted",
            "tenant.created",
            "tenant.member_joined",
            "subscription.activated",
            "subscription.payment_failed",
            "subscription.trial_ending",
            "subscription.canceled",
        }

    def test_names_are_entity_dot_action(self):
        for name, event_type in EVENT_TYPES.items():
            entity, _, action = name.partition(".")
            assert entity and action
            assert event_type.name == name

    def test_events_are_immutable(self):
        event = TenantCreated(tenant_id="t1", tenant_name="Home", owner_user_id="u1")

        with pytest.raises(dataclasses.FrozenInstanceError):
            event.tenant_name = "Away"  # type: ignore[misc]


class TestParseEvent:
    def test_builds_typed_event(self):
        event = parse_event(
            "tenant.created",
            {"tenant_id": "t1", "tenant_name": "Home", "owner_user_id": "u1"},
        )

        assert isinstance(event, TenantCreated)
        assert event.owner_user_id == "u1"

    def test_unknown_name(self):
        with pytest.raises(UnknownEventError) as exc_info:
            parse_event("tenant.exploded", {})

        assert exc_info.value.error_code == ErrorCode.UNKNOWN_EVENT
        assert exc_info.value.status_code == 400

    def test_missing_and_unexpected_fields(self):
        with pytest.raises(AppException) as exc_info:
            parse_event(
                "subscription.activated",
                {"tenant_id": "t1", "user_id": "u1", "color": "blue"},
            )

        error = exc_info.value
        assert error.error_code == ErrorCode.VALIDATION_ERROR
        assert error.status_code == 422
        problems = {(d["field"], d["type"]) for d in error.details}
        assert ("planName", "missing") in problems
        assert ("color", "unexpected_keyword_argument") in problems

    def test_null_id_rejected(self):
        with pytest.raises(AppException) as exc_info:
            parse_event(
                "subscription.canceled",
                {
                    "tenant_id": "t1",
                    "user_id": None,
                    "user_name": "Ada",
                    "plan_name": "Pro",
                    "canceled_at": "2026-01-31",
                },
            )

        [problem] = exc_info.value.details
        assert problem["field"] == "userId"
        assert problem["type"] == "string_type"

    def test_provider_outside_choices_rejected(self):
        with pytest.raises(AppException) as exc_info:
            parse_event(
                "subscription.activated",
                {
                    "tenant_id": "t1",
                    "user_id": "u1",
                    "user_email": "ada@example.com",
                    "user_name": "Ada",
                    "plan_id": "pro",
                    "plan_name": "Pro",
                    "provider": "stripe",
                },
            )

        [problem] = exc_info.value.details
        assert problem["field"] == "provider"
        assert problem["type"] == "literal_error"

    def test_accepts_camel_case_keys(self):
        event = parse_event(
            "invite.accepted",
            {
                "userId": "u2",
                "userName": "Bob",
                "tenantId": "t1",
                "tenantName": "Acme",
                "inviterUserId": "u1",
            },
        )

        assert isinstance(event, InviteAccepted)
        assert event.inviter_user_id == "u1"
        assert event.user_name == "Bob"

    def test_full_payload(self):
        event = parse_event(
            "subscription.activated",
            {
                "tenant_id": "t1",
                "user_id": "u1",
                "user_email": "ada@example.com",
                "user_name": "Ada",
                "plan_id": "pro",
                "plan_name": "Pro",
                "provider": "revenuecat",
            },
        )

        assert isinstance(event, SubscriptionActivated)
        assert event.provider == "revenuecat"
