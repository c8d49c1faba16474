"""Blending policy and analytics models."""

from typing import List

from pydantic import BaseModel, Field, model_validator


class BlendingConfig(BaseModel):
    """
    Per-category blending policy.

    Weights are percentages of a requested display slate and always sum
    to 100, including after graduation adjustment.
    """

    natural_weight: int = Field(ge=0, le=100)
    quick_win_weight: int = Field(ge=0, le=100)
    auto_graduation: bool = True
    min_natural_threshold: int = Field(ge=0, default=10)
    max_quick_wins_per_session: int = Field(ge=0, default=3)
    rotation_interval_ms: int = Field(gt=0, default=8000)

    @model_validator(mode="after")
    def _weights_sum_to_100(self) -> "BlendingConfig":
        if self.natural_weight + self.quick_win_weight != 100:
            raise ValueError(
                f"natural_weight + quick_win_weight must equal 100, "
                f"got {self.natural_weight} + {self.quick_win_weight}"
            )
        return self


class LifecycleRules(BaseModel):
    """Expiry and graduation rules for a business category."""

    auto_expire_quick_wins: bool = True
    quick_win_ttl_hours: int = 168
    auto_clean_flagged: bool = True
    flagged_ttl_hours: int = 24
    graduation_enabled: bool = True
    graduation_threshold: int = 10


class SourceBucketStats(BaseModel):
    count: int = 0
    views: int = 0
    clicks: int = 0
    ctr: float = 0.0


class BlendingAnalytics(BaseModel):
    """Read-side summary of how natural and quick-win events performed."""

    natural: SourceBucketStats
    quick_win: SourceBucketStats
    graduation_progress: float
    window_days: int


class SuggestedRatio(BaseModel):
    natural: int
    quick_win: int


class GraduationRecommendation(BaseModel):
    ready: bool
    recommendation: str
    suggested_ratio: SuggestedRatio


class GraduationStatus(BaseModel):
    ready: bool
    natural_count: int
    quick_win_count: int
    recommendation: str
    next_steps: List[str] = []


class HealthFactors(BaseModel):
    natural_event_growth: int
    quick_win_balance: int
    flagged_event_ratio: int
    graduation_progress: int


class LifecycleHealth(BaseModel):
    score: int
    factors: HealthFactors
    recommendations: List[str] = []
