"""
Graduation Adjuster — moves the blend toward natural content as real
event volume grows.

Natural weight is capped so quick-win content never disappears entirely
while auto-graduation is on.
"""

import math

from notiproof_engine.models.blending import BlendingConfig
from notiproof_engine.observability.logging import get_logger

logger = get_logger(__name__)

MAX_NATURAL_WEIGHT = 95
GRADUATION_BOOST = 30


def round_half_up(value: float) -> int:
    """Round halves up; the builtin round() rounds halves to even."""
    return int(math.floor(value + 0.5))


class GraduationAdjuster:

    def __init__(
        self,
        max_natural_weight: int = MAX_NATURAL_WEIGHT,
        boost: int = GRADUATION_BOOST,
    ):
        self.max_natural_weight = max_natural_weight
        self.boost = boost

    def graduation_factor(self, config: BlendingConfig, natural_event_count: int) -> float:
        """Fraction of the full boost earned, in [0, 1]."""
        if config.min_natural_threshold <= 0:
            return 1.0
        return min(natural_event_count / (config.min_natural_threshold * 2), 1.0)

    def adjust(self, config: BlendingConfig, natural_event_count: int) -> BlendingConfig:
        """
        Return the effective config for the observed natural volume.

        The input config is never mutated; a no-op returns it unchanged.
        """
        if not config.auto_graduation:
            return config
        if natural_event_count < config.min_natural_threshold:
            return config

        factor = self.graduation_factor(config, natural_event_count)
        natural = min(
            self.max_natural_weight,
            round_half_up(config.natural_weight + factor * self.boost),
        )

        logger.debug(
            "graduation_adjusted",
            natural_event_count=natural_event_count,
            factor=round(factor, 3),
            natural_weight=natural,
        )
        return config.model_copy(
            update={"natural_weight": natural, "quick_win_weight": 100 - natural}
        )
