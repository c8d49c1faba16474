"""
Analytics Accumulator — read-side summaries of blending outcomes.

Produces per-source view/click/CTR buckets, graduation progress and the
graduation recommendation shown to tenants. None of these numbers feed
back into the blending math; they are recommendation signals only.

The recommendation thresholds are fixed policy constants shared with the
dashboard and must not be tuned here.
"""

from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from notiproof_engine.models.blending import (
    BlendingAnalytics,
    GraduationRecommendation,
    GraduationStatus,
    HealthFactors,
    LifecycleHealth,
    LifecycleRules,
    SourceBucketStats,
    SuggestedRatio,
)
from notiproof_engine.models.clock import now_or_utc
from notiproof_engine.models.event import Event, SourceKind
from notiproof_engine.observability.logging import get_logger

logger = get_logger(__name__)


def click_through_rate(clicks: int, views: int) -> float:
    """Clicks per 100 views; 0 when nothing was viewed."""
    return (clicks / views) * 100 if views > 0 else 0.0


def graduation_progress(natural_count: int) -> float:
    """Percent progress toward graduating off quick-wins."""
    if natural_count >= 10:
        return min((natural_count / 20) * 100, 100.0)
    return (natural_count / 10) * 100


def _bucket(events: Iterable[Event]) -> SourceBucketStats:
    events = list(events)
    views = sum(e.views for e in events)
    clicks = sum(e.clicks for e in events)
    return SourceBucketStats(
        count=len(events),
        views=views,
        clicks=clicks,
        ctr=click_through_rate(clicks, views),
    )


def get_graduation_recommendation(
    natural_count: int,
    quick_win_count: int,
    natural_ctr: float,
    quick_win_ctr: float,
) -> GraduationRecommendation:
    """Tiered recommendation for how far to pull back on quick-wins."""
    if natural_count >= 20 and natural_ctr >= quick_win_ctr:
        return GraduationRecommendation(
            ready=True,
            recommendation=(
                "You have excellent natural event volume! "
                "Consider reducing quick-wins to 10-20%."
            ),
            suggested_ratio=SuggestedRatio(natural=85, quick_win=15),
        )

    if natural_count >= 10 and natural_ctr > quick_win_ctr * 0.8:
        return GraduationRecommendation(
            ready=True,
            recommendation=(
                "Good natural event growth! "
                "You can start reducing quick-wins gradually."
            ),
            suggested_ratio=SuggestedRatio(natural=70, quick_win=30),
        )

    if natural_count >= 5:
        return GraduationRecommendation(
            ready=False,
            recommendation=(
                "Natural events are growing. Keep current balance "
                "while building more integrations."
            ),
            suggested_ratio=SuggestedRatio(natural=60, quick_win=40),
        )

    return GraduationRecommendation(
        ready=False,
        recommendation="Focus on setting up integrations to generate more natural events.",
        suggested_ratio=SuggestedRatio(natural=40, quick_win=60),
    )


class AnalyticsAccumulator:

    def _window(
        self,
        events: Sequence[Event],
        window_days: int,
        now: Optional[datetime],
    ) -> List[Event]:
        now = now_or_utc(now)
        since = now - timedelta(days=window_days)
        return [e for e in events if e.created_at >= since]

    def summarize(
        self,
        events: Sequence[Event],
        window_days: int = 7,
        now: Optional[datetime] = None,
    ) -> BlendingAnalytics:
        """Views, clicks and CTR per source bucket over the trailing window."""
        recent = self._window(events, window_days, now)
        natural = [e for e in recent if e.source_kind == SourceKind.NATURAL]
        quick_wins = [e for e in recent if e.source_kind == SourceKind.QUICK_WIN]

        return BlendingAnalytics(
            natural=_bucket(natural),
            quick_win=_bucket(quick_wins),
            graduation_progress=graduation_progress(len(natural)),
            window_days=window_days,
        )

    def recommend(self, analytics: BlendingAnalytics) -> GraduationRecommendation:
        """Recommendation for an already computed summary."""
        return get_graduation_recommendation(
            analytics.natural.count,
            analytics.quick_win.count,
            analytics.natural.ctr,
            analytics.quick_win.ctr,
        )

    def check_graduation_status(
        self,
        events: Sequence[Event],
        rules: LifecycleRules,
        now: Optional[datetime] = None,
    ) -> GraduationStatus:
        """
        Whether a widget has enough natural volume to graduate.

        Natural events count over the last 7 days; quick-wins count while
        still unexpired.
        """
        now = now_or_utc(now)
        natural_count = len([
            e for e in self._window(events, 7, now)
            if e.source_kind == SourceKind.NATURAL
        ])
        quick_win_count = len([
            e for e in events
            if e.source_kind == SourceKind.QUICK_WIN and not e.is_expired(now)
        ])
        threshold = rules.graduation_threshold
        ready = rules.graduation_enabled and natural_count >= threshold

        if ready:
            recommendation = (
                f"Excellent! You have {natural_count} natural events. "
                f"Ready to reduce quick-wins."
            )
            next_steps = [
                "Reduce quick-win ratio to 20-30%",
                "Monitor conversion rates",
                "Set up more integrations for sustained growth",
            ]
        elif natural_count >= threshold * 0.5:
            recommendation = (
                f"Good progress! {natural_count}/{threshold} natural events needed."
            )
            next_steps = [
                "Continue current integration setup",
                "Consider adding more data sources",
                "Monitor event quality and authenticity",
            ]
        elif natural_count > 0:
            recommendation = "Natural events starting to flow. Keep building integrations."
            next_steps = [
                "Complete pending integration setups",
                "Test webhook connections",
                "Verify event data quality",
            ]
        else:
            recommendation = "Focus on connecting data sources to generate natural events."
            next_steps = [
                "Connect e-commerce platform (Shopify/WooCommerce)",
                "Set up email integration webhooks",
                "Configure Google Reviews sync",
                "Test event generation",
            ]

        return GraduationStatus(
            ready=ready,
            natural_count=natural_count,
            quick_win_count=quick_win_count,
            recommendation=recommendation,
            next_steps=next_steps,
        )

    def lifecycle_health(
        self,
        events: Sequence[Event],
        window_days: int = 30,
        now: Optional[datetime] = None,
    ) -> LifecycleHealth:
        """Weighted 0-100 health score for a widget's event mix."""
        recent = self._window(events, window_days, now)
        if not recent:
            return LifecycleHealth(
                score=0,
                factors=HealthFactors(
                    natural_event_growth=0,
                    quick_win_balance=0,
                    flagged_event_ratio=0,
                    graduation_progress=0,
                ),
                recommendations=["No events in the analysis window"],
            )

        total = len(recent)
        natural = len([e for e in recent if e.source_kind == SourceKind.NATURAL])
        quick_wins = len([e for e in recent if e.source_kind == SourceKind.QUICK_WIN])
        flagged = len([e for e in recent if e.flagged])

        natural_growth = min((natural / 20) * 100, 100)
        if quick_wins > 0:
            quick_win_balance = max(0.0, 100 - abs(50 - (quick_wins / total) * 100))
        else:
            quick_win_balance = 50.0
        flagged_ratio = max(0.0, 100 - (flagged / total) * 100)
        progress = min((natural / 10) * 100, 100)

        score = (
            natural_growth * 0.3
            + quick_win_balance * 0.2
            + flagged_ratio * 0.2
            + progress * 0.3
        )

        recommendations = []
        if natural_growth < 50:
            recommendations.append("Increase natural event generation through integrations")
        if quick_win_balance < 70:
            recommendations.append("Optimize quick-win to natural event ratio")
        if flagged_ratio < 80:
            recommendations.append("Review and improve event quality controls")
        if progress < 70:
            recommendations.append("Work towards graduation from quick-wins")

        logger.debug("lifecycle_health_scored", score=round(score), events=total)

        return LifecycleHealth(
            score=round(score),
            factors=HealthFactors(
                natural_event_growth=round(natural_growth),
                quick_win_balance=round(quick_win_balance),
                flagged_event_ratio=round(flagged_ratio),
                graduation_progress=round(progress),
            ),
            recommendations=recommendations,
        )
