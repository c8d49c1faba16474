"""
Blend Sequencer — composes a display slate from natural and quick-win pools.

Behavioral Contract:
- Expired quick-wins are never shown
- The natural/quick-win split follows the graduation-adjusted weights
- Quick-wins are hard-limited by the per-session cap and the pool size
- The two picks are interleaved with one coin flip per index, so long
  same-source runs are rare but adjacent same-source pairs can still occur
  across index boundaries
"""

import random
from datetime import datetime
from typing import List, Optional, Sequence

from notiproof_engine.blending.graduation import GraduationAdjuster, round_half_up
from notiproof_engine.blending.sampler import RandomSource, WeightedSampler
from notiproof_engine.models.blending import BlendingConfig
from notiproof_engine.models.clock import now_or_utc
from notiproof_engine.models.event import Event
from notiproof_engine.observability.logging import get_logger

logger = get_logger(__name__)


class BlendSequencer:

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        sampler: Optional[WeightedSampler] = None,
        adjuster: Optional[GraduationAdjuster] = None,
    ):
        self.rng = rng or random.Random()
        self.sampler = sampler or WeightedSampler(rng=self.rng)
        self.adjuster = adjuster or GraduationAdjuster()

    def split_counts(
        self,
        config: BlendingConfig,
        requested_count: int,
        available_quick_wins: int,
    ) -> tuple:
        """How many natural and quick-win events a slate of `requested_count` gets."""
        natural_count = round_half_up(requested_count * config.natural_weight / 100)
        quick_win_count = min(
            requested_count - natural_count,
            config.max_quick_wins_per_session,
            available_quick_wins,
        )
        return natural_count, max(quick_win_count, 0)

    def blend(
        self,
        natural_events: Sequence[Event],
        quick_win_events: Sequence[Event],
        config: BlendingConfig,
        requested_count: int = 10,
        now: Optional[datetime] = None,
    ) -> List[Event]:
        """Build the ordered slate of events to display."""
        now = now_or_utc(now)

        active_quick_wins = [e for e in quick_win_events if not e.is_expired(now)]
        effective = self.adjuster.adjust(config, len(natural_events))

        natural_count, quick_win_count = self.split_counts(
            effective, requested_count, len(active_quick_wins)
        )

        selected_natural = self.sampler.sample(natural_events, natural_count)
        selected_quick_wins = self.sampler.sample(active_quick_wins, quick_win_count)

        slate = self.interleave(selected_natural, selected_quick_wins)

        logger.debug(
            "slate_blended",
            requested=requested_count,
            natural_weight=effective.natural_weight,
            natural=len(selected_natural),
            quick_win=len(selected_quick_wins),
            expired_quick_wins=len(quick_win_events) - len(active_quick_wins),
        )
        return slate

    def interleave(self, natural: Sequence[Event], quick_wins: Sequence[Event]) -> List[Event]:
        """Walk both lists in lockstep, flipping a coin per index for which goes first."""
        slate: List[Event] = []
        for i in range(max(len(natural), len(quick_wins))):
            pair = [
                natural[i] if i < len(natural) else None,
                quick_wins[i] if i < len(quick_wins) else None,
            ]
            if self.rng.random() <= 0.5:
                pair.reverse()
            slate.extend(e for e in pair if e is not None)
        return slate
