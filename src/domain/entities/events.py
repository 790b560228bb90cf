"""Application event catalogue.

Every event is a frozen Pydantic dataclass carrying its own payload and a
``name`` class attribute in ``{entity}.{action}`` form. ``AppEvent`` is the
closed union of all events; handler registration is checked against it.
"""

from typing import Any, ClassVar, Literal, Union

from pydantic import ConfigDict, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel
from pydantic.dataclasses import dataclass

from core.exceptions import AppException, ErrorCode, UnknownEventError

# Payload keys are camelCase on the wire; Python callers use field names.
EVENT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)

# --- Auth events ---


@dataclass(frozen=True, config=EVENT_CONFIG)
class UserSignedUp:
    name: ClassVar[str] = "user.signed_up"

    user_id: str
    email: str
    user_name: str


@dataclass(frozen=True, config=EVENT_CONFIG)
class UserVerified:
    name: ClassVar[str] = "user.verified"

    user_id: str
    email: str
    user_name: str


@dataclass(frozen=True, config=EVENT_CONFIG)
class UserPasswordReset:
    name: ClassVar[str] = "user.password_reset"

    user_id: str
    email: str


# --- Invite events ---


@dataclass(frozen=True, config=EVENT_CONFIG)
class InviteSent:
    name: ClassVar[str] = "invite.sent"

    invite_id: str
    inviter_user_id: str
    inviter_name: str
    email: str
    tenant_id: str
    tenant_name: str


@dataclass(frozen=True, config=EVENT_CONFIG)
class InviteAccepted:
    name: ClassVar[str] = "invite.accepted"

    user_id: str
    user_name: str
    tenant_id: str
    tenant_name: str
    inviter_user_id: str


# --- Tenant events ---


@dataclass(frozen=True, config=EVENT_CONFIG)
class TenantCreated:
    name: ClassVar[str] = "tenant.created"

    tenant_id: str
    tenant_name: str
    owner_user_id: str


@dataclass(frozen=True, config=EVENT_CONFIG)
class TenantMemberJoined:
    name: ClassVar[str] = "tenant.member_joined"

    tenant_id: str
    tenant_name: str
    user_id: str
    user_name: str


# --- Subscription events ---


@dataclass(frozen=True, config=EVENT_CONFIG)
class SubscriptionActivated:
    name: ClassVar[str] = "subscription.activated"

    tenant_id: str
    user_id: str
    user_email: str
    user_name: str
    plan_id: str
    plan_name: str
    provider: Literal["polar", "revenuecat"]


@dataclass(frozen=True, config=EVENT_CONFIG)
class SubscriptionPaymentFailed:
    name: ClassVar[str] = "subscription.payment_failed"

    tenant_id: str
    user_id: str
    user_email: str
    user_name: str
    retry_date: str
    update_payment_url: str


@dataclass(frozen=True, config=EVENT_CONFIG)
class SubscriptionTrialEnding:
    name: ClassVar[str] = "subscription.trial_ending"

    tenant_id: str
    user_id: str
    user_email: str
    user_name: str
    plan_name: str
    trial_end_date: str
    upgrade_url: str


@dataclass(frozen=True, config=EVENT_CONFIG)
class SubscriptionCanceled:
    name: ClassVar[str] = "subscription.canceled"

    tenant_id: str
    user_id: str
    user_name: str
    plan_name: str
    canceled_at: str


AppEvent = Union[
    UserSignedUp,
    UserVerified,
    UserPasswordReset,
    InviteSent,
    InviteAccepted,
    TenantCreated,
    TenantMemberJoined,
    SubscriptionActivated,
    SubscriptionPaymentFailed,
    SubscriptionTrialEnding,
    SubscriptionCanceled,
]

EVENT_TYPES: dict[str, type[AppEvent]] = {
    event_type.name: event_type for event_type in AppEvent.__args__  # type: ignore[attr-defined]
}


_ADAPTERS: dict[str, TypeAdapter[Any]] = {
    name: TypeAdapter(event_type) for name, event_type in EVENT_TYPES.items()
}


def parse_event(name: str, payload: dict[str, Any]) -> AppEvent:
    """Build a typed event from its catalogue name and a raw payload.

    Payload keys may be camelCase aliases or field names.

    Raises:
        UnknownEventError: If ``name`` is not in the catalogue.
        AppException: If the payload does not match the event's fields.
    """
    adapter = _ADAPTERS.get(name)
    if adapter is None:
        raise UnknownEventError(name)

    try:
        event: AppEvent = adapter.validate_python(payload)
    except ValidationError as e:
        raise AppException(
            error_code=ErrorCode.VALIDATION_ERROR,
            message=f"Invalid payload for event {name}",
            status_code=422,
            details=[
                {
                    "field": ".".join(str(x) for x in error["loc"]),
                    "message": error["msg"],
                    "type": error["type"],
                }
                for error in e.errors()
            ],
        ) from e
    return event
