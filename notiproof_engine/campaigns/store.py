"""
Campaign Store — read interface over tenant-configured campaigns and playlists.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol

from notiproof_engine.models.campaign import Campaign, Playlist
from notiproof_engine.orchestration.targeting import url_matches


class CampaignStore(Protocol):

    def fetch_eligible_campaigns(self, website_id: str, url: str) -> List[Campaign]: ...

    def fetch_playlist(self, playlist_id: str) -> Optional[Playlist]: ...


class InMemoryCampaignStore:
    """In-memory campaign store. Insertion order is preserved for stable tie-breaks."""

    def __init__(self):
        self._campaigns: Dict[str, Campaign] = {}
        self._playlists: Dict[str, Playlist] = {}

    def upsert_campaign(self, campaign: Campaign) -> None:
        self._campaigns[campaign.id] = campaign

    def upsert_playlist(self, playlist: Playlist) -> None:
        self._playlists[playlist.id] = playlist

    def fetch_eligible_campaigns(self, website_id: str, url: str) -> List[Campaign]:
        """Active campaigns of the website whose URL rules admit the page."""
        return [
            c for c in self._campaigns.values()
            if c.website_id == website_id
            and c.status == "active"
            and url_matches(c.display_rules, url)
        ]

    def fetch_playlist(self, playlist_id: str) -> Optional[Playlist]:
        return self._playlists.get(playlist_id)
