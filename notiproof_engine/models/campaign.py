"""Campaign, Playlist and display request/decision models."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from notiproof_engine.models.clock import ensure_utc


class SequenceMode(str, Enum):
    PRIORITY = "priority"
    SEQUENTIAL = "sequential"
    ROUND_ROBIN = "round-robin"
    RANDOM = "random"


class FrequencyCap(BaseModel):
    """Per-campaign impression limits. Defaults match the widget's built-in cap."""

    per_session: int = Field(ge=0, default=5)
    per_user: int = Field(ge=0, default=10)
    cooldown_seconds: int = Field(ge=0, default=300)


class DisplayRules(BaseModel):
    """URL targeting. Patterns are globs where '*' matches any run of characters."""

    url_allowlist: List[str] = []           # Empty = every URL
    url_blocklist: List[str] = []


class CampaignSchedule(BaseModel):
    """When a campaign may run."""

    enabled: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    cron: Optional[str] = None              # Active window, e.g. "* 9-17 * * 1-5"

    @field_validator("start_date", "end_date")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class Campaign(BaseModel):
    """A configured notification unit. Read-only to the engine."""

    id: str
    name: str = ""
    website_id: Optional[str] = None
    widget_id: Optional[str] = None
    priority: int = 100
    status: str = "active"                  # "active" | "paused" | "draft"
    frequency_cap: FrequencyCap = FrequencyCap()
    display_rules: DisplayRules = DisplayRules()
    schedule: CampaignSchedule = CampaignSchedule()


class PlaylistRules(BaseModel):
    sequence_mode: SequenceMode = SequenceMode.PRIORITY
    max_per_session: Optional[int] = Field(ge=0, default=10)


class Playlist(BaseModel):
    """An ordered set of campaigns and the mode used to cycle through them."""

    id: str
    name: str = ""
    website_id: Optional[str] = None
    campaign_order: List[str] = []
    is_active: bool = True
    rules: PlaylistRules = PlaylistRules()


class DisplayRequest(BaseModel):
    """A widget asking what to show next."""

    website_id: str
    url: str
    session_id: str
    user_id: str
    now: datetime
    playlist_id: Optional[str] = None
    widget_id: Optional[str] = None

    @field_validator("now")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class DisplayDecision(BaseModel):
    """
    The orchestrator's answer for one display request.

    `campaign is None` is the "no display" outcome: every candidate was
    filtered out by targeting, schedule, caps or cooldown.
    """

    campaign: Optional[Campaign] = None
    sequence_mode: SequenceMode = SequenceMode.PRIORITY
    playlist_id: Optional[str] = None
    cursor: Optional[int] = None            # Index used by sequential / round-robin
    eligible_count: int = 0
    skipped: Dict[str, str] = {}            # campaign_id -> rejection reason

    @property
    def shown(self) -> bool:
        return self.campaign is not None

    @classmethod
    def no_display(
        cls,
        sequence_mode: SequenceMode,
        playlist_id: Optional[str] = None,
        skipped: Optional[Dict[str, str]] = None,
    ) -> "DisplayDecision":
        return cls(
            campaign=None,
            sequence_mode=sequence_mode,
            playlist_id=playlist_id,
            skipped=skipped or {},
        )
