"""
Notification Queue Builder — composes a widget's queue across event types.

Each event type gets a weight, a per-queue cap and a TTL. The queue is
filled by repeatedly choosing a type with probability proportional to its
weight (among types that still have events) and taking that type's next
most recent event.
"""

import random
from datetime import datetime, timedelta
from typing import Dict, List, Mapping, Optional, Sequence

from notiproof_engine.blending.sampler import RandomSource
from notiproof_engine.models.clock import now_or_utc
from notiproof_engine.models.event import Event
from notiproof_engine.models.queue import NotificationWeight
from notiproof_engine.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TYPE_WEIGHT = 5.0
DEFAULT_TARGET_SIZE = 15

DEFAULT_NOTIFICATION_WEIGHTS: Dict[str, NotificationWeight] = {
    "purchase": NotificationWeight(event_type="purchase", weight=10, max_per_queue=20, ttl_days=7),
    "testimonial": NotificationWeight(event_type="testimonial", weight=8, max_per_queue=15, ttl_days=180),
    "form_capture": NotificationWeight(event_type="form_capture", weight=7, max_per_queue=20, ttl_days=14),
    "signup": NotificationWeight(event_type="signup", weight=6, max_per_queue=20, ttl_days=14),
    "announcement": NotificationWeight(event_type="announcement", weight=4, max_per_queue=5, ttl_days=30),
    "live_visitors": NotificationWeight(event_type="live_visitors", weight=2, max_per_queue=1, ttl_days=1),
}


def merge_weights(
    custom: Optional[Sequence[NotificationWeight]] = None,
    defaults: Optional[Mapping[str, NotificationWeight]] = None,
) -> Dict[str, NotificationWeight]:
    """Tenant overrides win over defaults, per event type."""
    merged = dict(defaults if defaults is not None else DEFAULT_NOTIFICATION_WEIGHTS)
    for weight in custom or []:
        merged[weight.event_type] = weight
    return merged


def group_by_type(events: Sequence[Event]) -> Dict[str, List[Event]]:
    grouped: Dict[str, List[Event]] = {}
    for event in events:
        grouped.setdefault(event.event_type, []).append(event)
    return grouped


class NotificationQueueBuilder:

    def __init__(
        self,
        weights: Optional[Mapping[str, NotificationWeight]] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.weights = dict(weights if weights is not None else DEFAULT_NOTIFICATION_WEIGHTS)
        self.rng = rng or random.Random()

    def weight_for(self, event_type: str) -> float:
        config = self.weights.get(event_type)
        return config.weight if config else DEFAULT_TYPE_WEIGHT

    def prepare_group(
        self,
        event_type: str,
        events: Sequence[Event],
        now: datetime,
    ) -> List[Event]:
        """Newest-first events of one type, trimmed by TTL, expiry and the per-queue cap."""
        config = self.weights.get(event_type)
        ranked = sorted(
            (e for e in events if not e.is_expired(now)),
            key=lambda e: e.created_at,
            reverse=True,
        )
        if config is None:
            return ranked
        since = now - timedelta(days=config.ttl_days)
        return [e for e in ranked if e.created_at >= since][: config.max_per_queue]

    def build(
        self,
        grouped_events: Mapping[str, Sequence[Event]],
        target_size: int = DEFAULT_TARGET_SIZE,
        now: Optional[datetime] = None,
    ) -> List[Event]:
        """Fill a queue of up to `target_size` events by weighted type selection."""
        now = now_or_utc(now)

        groups = {
            event_type: self.prepare_group(event_type, events, now)
            for event_type, events in grouped_events.items()
        }
        cursors = {event_type: 0 for event_type in groups}
        queue: List[Event] = []

        while len(queue) < target_size:
            available = [t for t in groups if cursors[t] < len(groups[t])]
            if not available:
                break

            total = sum(self.weight_for(t) for t in available)
            target = self.rng.random() * total
            selected = available[-1]
            cumulative = 0.0
            for event_type in available:
                cumulative += self.weight_for(event_type)
                if cumulative > target:
                    selected = event_type
                    break

            queue.append(groups[selected][cursors[selected]])
            cursors[selected] += 1

        logger.debug(
            "queue_built",
            target_size=target_size,
            size=len(queue),
            distribution={t: cursors[t] for t in groups},
        )
        return queue

    def build_from_events(
        self,
        events: Sequence[Event],
        target_size: int = DEFAULT_TARGET_SIZE,
        now: Optional[datetime] = None,
    ) -> List[Event]:
        return self.build(group_by_type(events), target_size=target_size, now=now)
