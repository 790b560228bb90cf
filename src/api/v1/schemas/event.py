"""Pydantic schemas for the event emission API."""

from typing import Any

from pydantic import BaseModel, Field


class EmitEventRequest(BaseModel):
    """An application event by catalogue name."""

    name: str = Field(..., min_length=1, max_length=100, examples=["invite.accepted"])
    payload: dict[str, Any] = Field(default_factory=dict)


class EmitEventResponse(BaseModel):
    name: str
    listeners: int
