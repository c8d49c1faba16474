"""
Event Store — read interface over ingested notification events.

Written by: ingestion collaborators (webhooks, CSV imports, quick-win templates)
Read by: Display Engine + Analytics
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional, Protocol

from notiproof_engine.models.clock import ensure_utc
from notiproof_engine.models.event import Event, SourceKind


class EventStore(Protocol):
    """What the engine needs from event persistence."""

    def fetch_events(
        self,
        widget_id: str,
        source_filter: Optional[SourceKind],
        since: Optional[datetime],
    ) -> List[Event]: ...


class InMemoryEventStore:
    """
    In-memory event store for tests and the API adapter.
    Production reads from the hosted database.
    """

    def __init__(self):
        self._events: Dict[str, Event] = {}

    def add(self, event: Event) -> None:
        """Insert or replace an event."""
        self._events[event.id] = event

    def add_many(self, events: List[Event]) -> None:
        for event in events:
            self.add(event)

    def fetch_events(
        self,
        widget_id: str,
        source_filter: Optional[SourceKind] = None,
        since: Optional[datetime] = None,
    ) -> List[Event]:
        """Events for a widget, optionally narrowed by source kind and creation time."""
        since = ensure_utc(since)
        return [
            e for e in self._events.values()
            if e.widget_id == widget_id
            and (source_filter is None or e.source_kind == source_filter)
            and (since is None or e.created_at >= since)
        ]

    def count(self) -> int:
        return len(self._events)
