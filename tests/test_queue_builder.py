"""Tests for the type-weighted notification queue builder."""

import random
from datetime import datetime, timedelta

from notiproof_engine.models.event import Event, SourceKind
from notiproof_engine.models.queue import NotificationWeight
from notiproof_engine.queue.builder import (
    DEFAULT_NOTIFICATION_WEIGHTS,
    NotificationQueueBuilder,
    group_by_type,
    merge_weights,
)

NOW = datetime(2026, 10, 17, 12, 0)


class ScriptedRandom:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def _make_events(event_type, n, age=timedelta(hours=1), expires_at=None):
    return [
        Event(
            id=f"{event_type}_{i}",
            source_kind=SourceKind.NATURAL,
            event_type=event_type,
            created_at=NOW - age - timedelta(minutes=i),
            expires_at=expires_at,
        )
        for i in range(n)
    ]


class TestWeights:
    def test_merge_overrides_per_type(self):
        merged = merge_weights([NotificationWeight(event_type="purchase", weight=1)])
        assert merged["purchase"].weight == 1
        assert merged["testimonial"] == DEFAULT_NOTIFICATION_WEIGHTS["testimonial"]

    def test_unknown_type_gets_default_weight(self):
        assert NotificationQueueBuilder().weight_for("webinar_signup") == 5.0

    def test_group_by_type(self):
        grouped = group_by_type(_make_events("purchase", 2) + _make_events("signup", 1))
        assert {k: len(v) for k, v in grouped.items()} == {"purchase": 2, "signup": 1}


class TestNotificationQueueBuilder:
    def test_target_size(self):
        queue = NotificationQueueBuilder(rng=random.Random(1)).build_from_events(
            _make_events("purchase", 30), target_size=15, now=NOW
        )
        assert len(queue) == 15

    def test_short_pool_gives_short_queue(self):
        queue = NotificationQueueBuilder(rng=random.Random(1)).build_from_events(
            _make_events("signup", 4), target_size=15, now=NOW
        )
        assert len(queue) == 4

    def test_max_per_queue(self):
        queue = NotificationQueueBuilder(rng=random.Random(2)).build_from_events(
            _make_events("live_visitors", 3) + _make_events("purchase", 5), now=NOW
        )
        assert len([e for e in queue if e.event_type == "live_visitors"]) == 1

    def test_ttl_drops_stale_events(self):
        events = _make_events("purchase", 2) + [
            Event(
                id="stale",
                source_kind=SourceKind.NATURAL,
                event_type="purchase",
                created_at=NOW - timedelta(days=10),
            )
        ]
        queue = NotificationQueueBuilder(rng=random.Random(3)).build_from_events(events, now=NOW)
        assert "stale" not in [e.id for e in queue]

    def test_expired_events_dropped(self):
        events = _make_events("announcement", 2, expires_at=NOW - timedelta(minutes=1))
        assert NotificationQueueBuilder().build_from_events(events, now=NOW) == []

    def test_newest_first_within_type(self):
        queue = NotificationQueueBuilder(rng=random.Random(4)).build_from_events(
            _make_events("purchase", 5) + _make_events("signup", 5), now=NOW
        )
        purchases = [e for e in queue if e.event_type == "purchase"]
        assert purchases == sorted(purchases, key=lambda e: e.created_at, reverse=True)

    def test_low_draw_drains_types_in_order(self):
        builder = NotificationQueueBuilder(rng=ScriptedRandom(0.0))
        queue = builder.build(
            {"purchase": _make_events("purchase", 2), "signup": _make_events("signup", 2)},
            now=NOW,
        )
        assert [e.id for e in queue] == ["purchase_0", "purchase_1", "signup_0", "signup_1"]

    def test_no_duplicates(self):
        events = (
            _make_events("purchase", 10)
            + _make_events("signup", 10)
            + _make_events("testimonial", 10)
        )
        queue = NotificationQueueBuilder(rng=random.Random(5)).build_from_events(events, now=NOW)
        assert len({e.id for e in queue}) == len(queue) == 15
