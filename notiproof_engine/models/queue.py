"""Notification queue weighting."""

from pydantic import BaseModel, Field


class NotificationWeight(BaseModel):
    """How often an event type appears in a queue and how long it stays eligible."""

    event_type: str
    weight: float = Field(gt=0, default=5)
    max_per_queue: int = Field(ge=0, default=20)
    ttl_days: int = Field(ge=0, default=14)
