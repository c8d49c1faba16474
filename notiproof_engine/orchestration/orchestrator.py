"""
Campaign Orchestrator — decides which campaign a display request shows.

Behavioral Contract:
- Accepts the candidate campaigns, the request context, the caller's
  ImpressionRecord and an optional playlist
- Gating (status, URL targeting, schedule, frequency caps, cooldown) runs
  before the sequence mode picks a winner
- Returns a DisplayDecision; "nothing to show" is a decision, not an error
- Never writes to the ImpressionRecord while selecting. record_display
  commits an impression and moves the playlist cursor afterwards.

Sequence modes:
  priority     highest priority eligible campaign wins, ties keep input order
  sequential   walk campaign_order from the session's cursor, wrapping forever
  round-robin  campaign_order[i % N] for the session's impression counter i
  random       uniform pick among eligible campaigns
"""

from __future__ import annotations

import random
from datetime import timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from notiproof_engine.blending.sampler import RandomSource
from notiproof_engine.errors import MalformedPlaylist
from notiproof_engine.impressions.store import ImpressionRecord
from notiproof_engine.models.campaign import (
    Campaign,
    DisplayDecision,
    DisplayRequest,
    Playlist,
    SequenceMode,
)
from notiproof_engine.observability.logging import get_logger
from notiproof_engine.orchestration.targeting import schedule_active, url_matches

logger = get_logger(__name__)

ORDERED_MODES = (SequenceMode.SEQUENTIAL, SequenceMode.ROUND_ROBIN)


def _require_order(order: Sequence[str], playlist_id: str) -> None:
    if not order:
        raise MalformedPlaylist(
            playlist_id, "campaign_order is empty; ordered modes need at least one campaign"
        )


def sequential_pick(order: Sequence[str], index: int, playlist_id: str = "<inline>") -> str:
    """campaign_order[index], wrapping past the end."""
    _require_order(order, playlist_id)
    return order[index % len(order)]


def round_robin_pick(order: Sequence[str], counter: int, playlist_id: str = "<inline>") -> str:
    """Campaign for the counter-th impression; N*k impressions show each campaign k times."""
    _require_order(order, playlist_id)
    return order[counter % len(order)]


def resolve_priority_conflict(campaigns: Sequence[Campaign]) -> List[Campaign]:
    """Order overlapping campaigns so the highest priority wins; stable for ties."""
    return sorted(campaigns, key=lambda c: c.priority, reverse=True)


class CampaignOrchestrator:

    def __init__(self, rng: Optional[RandomSource] = None):
        self.rng = rng or random.Random()

    # --- Gating ---

    def rejection_reason(
        self,
        campaign: Campaign,
        request: DisplayRequest,
        impressions: ImpressionRecord,
    ) -> Optional[str]:
        """Why a campaign cannot show for this request, or None if it can."""
        if campaign.status != "active":
            return "inactive"
        if not url_matches(campaign.display_rules, request.url):
            return "url_not_targeted"
        if not schedule_active(campaign.schedule, request.now):
            return "outside_schedule"

        cap = campaign.frequency_cap
        if impressions.get_session_count(campaign.id, request.session_id) >= cap.per_session:
            return "session_cap"
        if impressions.get_user_count(campaign.id, request.user_id) >= cap.per_user:
            return "user_cap"

        last_shown = impressions.get_last_impression_time(campaign.id, request.session_id)
        if last_shown is not None:
            cooldown_ends = last_shown + timedelta(seconds=cap.cooldown_seconds)
            if request.now < cooldown_ends:
                return "cooldown"

        return None

    def _partition(
        self,
        campaigns: Sequence[Campaign],
        request: DisplayRequest,
        impressions: ImpressionRecord,
        playlist: Optional[Playlist],
    ) -> Tuple[List[Campaign], Dict[str, str]]:
        members = set(playlist.campaign_order) if playlist and playlist.campaign_order else None
        eligible: List[Campaign] = []
        skipped: Dict[str, str] = {}
        for campaign in campaigns:
            if members is not None and campaign.id not in members:
                skipped[campaign.id] = "not_in_playlist"
                continue
            reason = self.rejection_reason(campaign, request, impressions)
            if reason:
                skipped[campaign.id] = reason
            else:
                eligible.append(campaign)
        return eligible, skipped

    # --- Selection ---

    def select(
        self,
        campaigns: Sequence[Campaign],
        request: DisplayRequest,
        impressions: ImpressionRecord,
        playlist: Optional[Playlist] = None,
    ) -> DisplayDecision:
        """Pick the campaign to display next, or return a no-display decision."""
        mode = playlist.rules.sequence_mode if playlist else SequenceMode.PRIORITY
        playlist_id = playlist.id if playlist else None

        if mode in ORDERED_MODES:
            _require_order(playlist.campaign_order, playlist.id)

        if playlist and playlist.rules.max_per_session is not None:
            member_ids = playlist.campaign_order or [c.id for c in campaigns]
            shown = impressions.get_session_total(request.session_id, member_ids)
            if shown >= playlist.rules.max_per_session:
                logger.info(
                    "playlist_session_cap_reached",
                    playlist_id=playlist_id,
                    session_id=request.session_id,
                    shown=shown,
                )
                return DisplayDecision.no_display(
                    mode, playlist_id, {c.id: "playlist_session_cap" for c in campaigns}
                )

        eligible, skipped = self._partition(campaigns, request, impressions, playlist)
        if skipped:
            logger.debug("campaigns_skipped", skipped=skipped)

        if not eligible:
            logger.info(
                "no_eligible_campaign",
                website_id=request.website_id,
                url=request.url,
                mode=mode.value,
            )
            return DisplayDecision.no_display(mode, playlist_id, skipped)

        chosen, cursor = self._pick(mode, eligible, request, impressions, playlist)

        logger.info(
            "campaign_selected",
            campaign_id=chosen.id,
            mode=mode.value,
            cursor=cursor,
            eligible=len(eligible),
        )
        return DisplayDecision(
            campaign=chosen,
            sequence_mode=mode,
            playlist_id=playlist_id,
            cursor=cursor,
            eligible_count=len(eligible),
            skipped=skipped,
        )

    def _pick(
        self,
        mode: SequenceMode,
        eligible: List[Campaign],
        request: DisplayRequest,
        impressions: ImpressionRecord,
        playlist: Optional[Playlist],
    ) -> Tuple[Campaign, Optional[int]]:
        if mode == SequenceMode.SEQUENTIAL:
            start = impressions.get_sequence_index(playlist.id, request.session_id)
            return self._walk_order(playlist, eligible, start)

        if mode == SequenceMode.ROUND_ROBIN:
            counter = impressions.get_impression_counter(playlist.id, request.session_id)
            return self._walk_order(playlist, eligible, counter)

        if mode == SequenceMode.RANDOM:
            index = min(int(self.rng.random() * len(eligible)), len(eligible) - 1)
            return eligible[index], None

        return resolve_priority_conflict(eligible)[0], None

    def _walk_order(
        self,
        playlist: Playlist,
        eligible: List[Campaign],
        start: int,
    ) -> Tuple[Campaign, int]:
        """First eligible campaign at or after `start` in playlist order, wrapping."""
        by_id = {c.id: c for c in eligible}
        order = playlist.campaign_order
        for offset in range(len(order)):
            position = (start + offset) % len(order)
            campaign = by_id.get(order[position])
            if campaign is not None:
                return campaign, position
        # Eligible campaigns are always playlist members, so the walk finds one
        raise MalformedPlaylist(playlist.id, "no eligible campaign found in campaign_order")

    # --- Commit ---

    def record_display(
        self,
        decision: DisplayDecision,
        request: DisplayRequest,
        impressions: ImpressionRecord,
        playlist: Optional[Playlist] = None,
    ) -> None:
        """
        Commit a shown decision: count the impression and move the cursor.

        The sequential cursor is written as (cursor used + 1) % N, a plain
        read-modify-write: two racing requests for one session both read
        the same cursor and the last write wins.
        """
        if not decision.shown:
            return

        impressions.record_impression(
            decision.campaign.id,
            request.session_id,
            request.user_id,
            request.now,
            playlist_id=decision.playlist_id,
        )

        if decision.sequence_mode == SequenceMode.SEQUENTIAL and playlist is not None:
            _require_order(playlist.campaign_order, playlist.id)
            next_index = (decision.cursor + 1) % len(playlist.campaign_order)
            impressions.set_sequence_index(playlist.id, request.session_id, next_index)

    def advance_sequence(
        self,
        playlist: Playlist,
        session_id: str,
        impressions: ImpressionRecord,
    ) -> int:
        """Step a sequential cursor by one through the record's own advance."""
        _require_order(playlist.campaign_order, playlist.id)
        return impressions.advance_sequence_index(
            playlist.id, session_id, len(playlist.campaign_order)
        )
