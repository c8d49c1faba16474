"""
Weighted Sampler — recency-biased sampling without replacement.

Events are ranked newest first and weighted exp(-rank * decay), so the
most recent activity is the most likely to be shown while older events
still get an occasional turn.
"""

from __future__ import annotations

import math
import random
from typing import List, Optional, Protocol, Sequence, Tuple

from notiproof_engine.models.event import Event

RECENCY_DECAY = 0.1


class RandomSource(Protocol):
    """Anything with a random() returning a float in [0, 1)."""

    def random(self) -> float: ...


class WeightedSampler:
    """Draws up to `count` distinct events, favoring recent ones."""

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        decay: float = RECENCY_DECAY,
    ):
        self.rng = rng or random.Random()
        self.decay = decay

    def weights_for(self, events: Sequence[Event]) -> List[Tuple[Event, float]]:
        """Recency-sort events and attach their positional weights."""
        ranked = sorted(events, key=lambda e: e.created_at, reverse=True)
        return [
            (event, math.exp(-index * self.decay))
            for index, event in enumerate(ranked)
        ]

    def sample(self, events: Sequence[Event], count: int) -> List[Event]:
        """
        Select `count` events without replacement.

        Returns every event (recency-sorted) when the pool is not larger
        than `count`; never returns the same event twice.
        """
        if count <= 0 or not events:
            return []

        weighted = self.weights_for(events)
        if len(weighted) <= count:
            return [event for event, _ in weighted]

        selected: List[Event] = []
        while len(selected) < count and weighted:
            total = sum(weight for _, weight in weighted)
            target = self.rng.random() * total

            # Float drift can leave target past the last cumulative sum
            chosen = len(weighted) - 1
            cumulative = 0.0
            for index, (_, weight) in enumerate(weighted):
                cumulative += weight
                if cumulative > target:
                    chosen = index
                    break

            event, _ = weighted.pop(chosen)
            selected.append(event)

        return selected
