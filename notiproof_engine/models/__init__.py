"""NotiProof engine data models."""

from notiproof_engine.models.blending import (
    BlendingAnalytics,
    BlendingConfig,
    GraduationRecommendation,
    GraduationStatus,
    HealthFactors,
    LifecycleHealth,
    LifecycleRules,
    SourceBucketStats,
    SuggestedRatio,
)
from notiproof_engine.models.campaign import (
    Campaign,
    CampaignSchedule,
    DisplayDecision,
    DisplayRequest,
    DisplayRules,
    FrequencyCap,
    Playlist,
    PlaylistRules,
    SequenceMode,
)
from notiproof_engine.models.display import DisplayResult
from notiproof_engine.models.event import Event, SourceKind
from notiproof_engine.models.queue import NotificationWeight

__all__ = [
    "BlendingAnalytics",
    "BlendingConfig",
    "Campaign",
    "CampaignSchedule",
    "DisplayDecision",
    "DisplayRequest",
    "DisplayResult",
    "DisplayRules",
    "Event",
    "FrequencyCap",
    "GraduationRecommendation",
    "GraduationStatus",
    "HealthFactors",
    "LifecycleHealth",
    "LifecycleRules",
    "NotificationWeight",
    "Playlist",
    "PlaylistRules",
    "SequenceMode",
    "SourceBucketStats",
    "SourceKind",
    "SuggestedRatio",
]
