"""Event — a unit of displayable social proof."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from notiproof_engine.models.clock import ensure_utc


class SourceKind(str, Enum):
    NATURAL = "natural"        # Real activity: manual, demo, integrations
    QUICK_WIN = "quick_win"    # Template / synthetic content

    @classmethod
    def from_origin(cls, origin: str) -> "SourceKind":
        """Map a raw ingestion source tag onto a source kind."""
        if origin == cls.QUICK_WIN.value:
            return cls.QUICK_WIN
        return cls.NATURAL


class Event(BaseModel):
    """A notification event as supplied by the event store. Never mutated by the engine."""

    id: str
    source_kind: SourceKind
    origin: str = "manual"                  # e.g., "manual", "demo", "woocommerce", "quick_win"
    event_type: str                         # e.g., "purchase", "testimonial"
    created_at: datetime
    expires_at: Optional[datetime] = None
    widget_id: Optional[str] = None
    views: int = Field(ge=0, default=0)
    clicks: int = Field(ge=0, default=0)
    flagged: bool = False
    event_data: dict = {}

    @field_validator("created_at", "expires_at")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= ensure_utc(now)
