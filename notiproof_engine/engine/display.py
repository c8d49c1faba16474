"""
Display Engine — one display request, end to end.

  request → orchestrator picks a campaign → blending config for the tenant
  → natural and quick-win pools from the event store → blended slate
  → impression recorded and playlist cursor moved

The engine holds no session state of its own; frequency counters and
playlist cursors live in the ImpressionRecord it is given.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from notiproof_engine.analytics.accumulator import AnalyticsAccumulator
from notiproof_engine.blending.config import BlendingConfigResolver
from notiproof_engine.blending.sequencer import BlendSequencer
from notiproof_engine.campaigns.store import CampaignStore
from notiproof_engine.config import EngineSettings
from notiproof_engine.errors import PlaylistNotFound
from notiproof_engine.events.store import EventStore
from notiproof_engine.impressions.store import ImpressionRecord
from notiproof_engine.models.blending import BlendingAnalytics
from notiproof_engine.models.clock import now_or_utc
from notiproof_engine.models.campaign import DisplayRequest, Playlist
from notiproof_engine.models.display import DisplayResult
from notiproof_engine.models.event import Event, SourceKind
from notiproof_engine.observability.logging import get_logger
from notiproof_engine.orchestration.orchestrator import CampaignOrchestrator
from notiproof_engine.queue.builder import NotificationQueueBuilder

logger = get_logger(__name__)


class DisplayEngine:

    def __init__(
        self,
        event_store: EventStore,
        campaign_store: CampaignStore,
        impressions: ImpressionRecord,
        config_resolver: Optional[BlendingConfigResolver] = None,
        orchestrator: Optional[CampaignOrchestrator] = None,
        sequencer: Optional[BlendSequencer] = None,
        accumulator: Optional[AnalyticsAccumulator] = None,
        queue_builder: Optional[NotificationQueueBuilder] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.event_store = event_store
        self.campaign_store = campaign_store
        self.impressions = impressions
        self.config_resolver = config_resolver or BlendingConfigResolver()
        self.orchestrator = orchestrator or CampaignOrchestrator()
        self.sequencer = sequencer or BlendSequencer()
        self.accumulator = accumulator or AnalyticsAccumulator()
        self.queue_builder = queue_builder or NotificationQueueBuilder()
        self.settings = settings or EngineSettings()

    def _load_playlist(self, request: DisplayRequest) -> Optional[Playlist]:
        if not request.playlist_id:
            return None
        playlist = self.campaign_store.fetch_playlist(request.playlist_id)
        if playlist is None:
            raise PlaylistNotFound(request.playlist_id)
        if not playlist.is_active:
            logger.info("playlist_inactive", playlist_id=playlist.id)
            return None
        return playlist

    def next_display(
        self,
        request: DisplayRequest,
        business_category: Optional[str] = None,
        requested_count: Optional[int] = None,
    ) -> DisplayResult:
        """Decide the campaign and event slate for a display request and commit it."""
        playlist = self._load_playlist(request)
        campaigns = self.campaign_store.fetch_eligible_campaigns(
            request.website_id, request.url
        )

        decision = self.orchestrator.select(campaigns, request, self.impressions, playlist)
        if not decision.shown:
            return DisplayResult(decision=decision)

        category = (
            business_category if business_category is not None else self.settings.default_category
        )
        config = self.config_resolver.resolve(category)
        count = (
            requested_count if requested_count is not None else self.settings.default_requested_count
        )

        widget_id = decision.campaign.widget_id or request.widget_id
        events: List[Event] = []
        if widget_id:
            since = request.now - timedelta(days=self.settings.event_window_days)
            natural = self.event_store.fetch_events(widget_id, SourceKind.NATURAL, since)
            # Quick-wins are bounded by expiry, not age
            quick_wins = self.event_store.fetch_events(widget_id, SourceKind.QUICK_WIN, None)
            events = self.sequencer.blend(natural, quick_wins, config, count, now=request.now)

        self.orchestrator.record_display(decision, request, self.impressions, playlist)

        logger.info(
            "display_committed",
            campaign_id=decision.campaign.id,
            widget_id=widget_id,
            category=category,
            events=len(events),
        )
        return DisplayResult(
            decision=decision,
            events=events,
            config=config,
            rotation_interval_ms=config.rotation_interval_ms,
        )

    def analytics(self, widget_id: str, now: Optional[datetime] = None) -> BlendingAnalytics:
        """Blending summary for a widget over the configured analytics window."""
        now = now_or_utc(now)
        window = self.settings.analytics_window_days
        events = self.event_store.fetch_events(widget_id, None, now - timedelta(days=window))
        return self.accumulator.summarize(events, window_days=window, now=now)

    def build_queue(
        self,
        widget_ids: Sequence[str],
        now: Optional[datetime] = None,
        target_size: Optional[int] = None,
    ) -> List[Event]:
        """Type-weighted queue across a website's widgets."""
        now = now_or_utc(now)
        events: List[Event] = []
        for widget_id in widget_ids:
            events.extend(self.event_store.fetch_events(widget_id, None, None))
        return self.queue_builder.build_from_events(
            events,
            target_size=target_size if target_size is not None else self.settings.queue_target_size,
            now=now,
        )
