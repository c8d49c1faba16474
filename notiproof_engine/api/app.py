"""
NotiProof Engine API — FastAPI endpoints.

Thin adapter around the display engine for:
- Blending policy lookup
- Display decisions for widget requests
- Blending analytics and graduation recommendations
- Type-weighted queue building
- Seeding in-memory stores (for testing)
"""

from datetime import datetime
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel

from notiproof_engine.analytics.accumulator import get_graduation_recommendation
from notiproof_engine.blending.config import BlendingConfigResolver
from notiproof_engine.campaigns.store import InMemoryCampaignStore
from notiproof_engine.config import EngineSettings
from notiproof_engine.engine.display import DisplayEngine
from notiproof_engine.errors import InvalidConfig, MalformedPlaylist, PlaylistNotFound
from notiproof_engine.events.store import InMemoryEventStore
from notiproof_engine.impressions.store import ImpressionRecord, SQLiteImpressionRecord
from notiproof_engine.models.clock import now_or_utc
from notiproof_engine.models.campaign import Campaign, DisplayRequest, Playlist
from notiproof_engine.models.event import Event
from notiproof_engine.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


# --- Request/Response Models ---

class DisplayNextRequest(BaseModel):
    website_id: str
    url: str
    session_id: str
    user_id: str
    now: Optional[datetime] = None
    playlist_id: Optional[str] = None
    widget_id: Optional[str] = None
    business_category: Optional[str] = None
    requested_count: Optional[int] = None


class QueueBuildRequest(BaseModel):
    widget_ids: List[str]
    target_size: Optional[int] = None
    now: Optional[datetime] = None


# --- Application Factory ---

def create_app(
    event_store: Optional[InMemoryEventStore] = None,
    campaign_store: Optional[InMemoryCampaignStore] = None,
    impressions: Optional[ImpressionRecord] = None,
    config_resolver: Optional[BlendingConfigResolver] = None,
    settings: Optional[EngineSettings] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    settings = settings or EngineSettings()
    setup_logging(settings.log_level, settings.json_logs)

    app = FastAPI(
        title="NotiProof Engine API",
        description="Notification blending and campaign orchestration",
        version="0.1.0",
    )

    # Initialize components
    es = event_store or InMemoryEventStore()
    cs = campaign_store or InMemoryCampaignStore()
    ir = impressions or SQLiteImpressionRecord(settings.impression_db_path)
    resolver = config_resolver or BlendingConfigResolver()

    engine = DisplayEngine(
        event_store=es,
        campaign_store=cs,
        impressions=ir,
        config_resolver=resolver,
        settings=settings,
    )

    # Store components on app state for access in endpoints
    app.state.event_store = es
    app.state.campaign_store = cs
    app.state.impressions = ir
    app.state.engine = engine

    @app.get("/health")
    def health():
        return {"status": "ok", "events": es.count()}

    # === BLENDING ===

    @app.get("/blending/config/{category}")
    def get_blending_config(category: str):
        """Blending preset for a business category (unknown categories fall back)."""
        try:
            return resolver.resolve(category).model_dump(mode="json")
        except InvalidConfig as exc:
            raise HTTPException(400, str(exc))

    # === DISPLAY ===

    @app.post("/display/next")
    def next_display(req: DisplayNextRequest):
        """Decide what a widget shows next and commit the impression."""
        request = DisplayRequest(
            website_id=req.website_id,
            url=req.url,
            session_id=req.session_id,
            user_id=req.user_id,
            now=now_or_utc(req.now),
            playlist_id=req.playlist_id,
            widget_id=req.widget_id,
        )
        try:
            result = engine.next_display(
                request,
                business_category=req.business_category,
                requested_count=req.requested_count,
            )
        except PlaylistNotFound as exc:
            raise HTTPException(404, str(exc))
        except MalformedPlaylist as exc:
            logger.warning("malformed_playlist", playlist_id=exc.playlist_id, detail=exc.detail)
            raise HTTPException(422, str(exc))
        except InvalidConfig as exc:
            raise HTTPException(400, str(exc))
        return result.model_dump(mode="json")

    # === ANALYTICS ===

    @app.get("/analytics/recommendation")
    def graduation_recommendation(
        natural_count: int,
        quick_win_count: int,
        natural_ctr: float,
        quick_win_ctr: float,
    ):
        """Graduation recommendation for supplied counts and CTRs."""
        return get_graduation_recommendation(
            natural_count, quick_win_count, natural_ctr, quick_win_ctr
        ).model_dump(mode="json")

    @app.get("/analytics/{widget_id}")
    def get_analytics(widget_id: str):
        """Blending analytics plus recommendation for a widget."""
        analytics = engine.analytics(widget_id)
        recommendation = engine.accumulator.recommend(analytics)
        return {
            "analytics": analytics.model_dump(mode="json"),
            "recommendation": recommendation.model_dump(mode="json"),
        }

    # === QUEUE ===

    @app.post("/queue/build")
    def build_queue(req: QueueBuildRequest):
        """Type-weighted notification queue across widgets."""
        queue = engine.build_queue(req.widget_ids, now=req.now, target_size=req.target_size)
        return [e.model_dump(mode="json") for e in queue]

    # === STORE SEEDING ===

    @app.post("/events")
    def ingest_event(event: Event):
        """Manual event ingestion (for testing)."""
        es.add(event)
        return {"status": "ingested", "event_id": event.id}

    @app.post("/campaigns")
    def upsert_campaign(campaign: Campaign):
        cs.upsert_campaign(campaign)
        return {"status": "saved", "campaign_id": campaign.id}

    @app.post("/playlists")
    def upsert_playlist(playlist: Playlist):
        cs.upsert_playlist(playlist)
        return {"status": "saved", "playlist_id": playlist.id}

    return app


# Default application instance
app = create_app()
