"""
Blending policy resolution.

Maps a tenant's business category to its blending and lifecycle presets.
The preset tables are injected so tests and tenants can substitute their
own policy sets; the defaults below are the production presets.
"""

from typing import Dict, Optional

from notiproof_engine.errors import InvalidConfig
from notiproof_engine.models.blending import BlendingConfig, LifecycleRules
from notiproof_engine.observability.logging import get_logger

logger = get_logger(__name__)

FALLBACK_CATEGORY = "saas"

DEFAULT_BLENDING_PRESETS: Dict[str, BlendingConfig] = {
    "saas": BlendingConfig(
        natural_weight=50,
        quick_win_weight=50,
        auto_graduation=True,
        min_natural_threshold=10,
        max_quick_wins_per_session=3,
        rotation_interval_ms=8000,
    ),
    "ecommerce": BlendingConfig(
        natural_weight=70,
        quick_win_weight=30,
        auto_graduation=True,
        min_natural_threshold=15,
        max_quick_wins_per_session=2,
        rotation_interval_ms=6000,
    ),
    "services": BlendingConfig(
        natural_weight=60,
        quick_win_weight=40,
        auto_graduation=True,
        min_natural_threshold=8,
        max_quick_wins_per_session=4,
        rotation_interval_ms=10000,
    ),
    "events": BlendingConfig(
        natural_weight=80,
        quick_win_weight=20,
        auto_graduation=False,
        min_natural_threshold=20,
        max_quick_wins_per_session=2,
        rotation_interval_ms=5000,
    ),
    "blog": BlendingConfig(
        natural_weight=40,
        quick_win_weight=60,
        auto_graduation=True,
        min_natural_threshold=12,
        max_quick_wins_per_session=5,
        rotation_interval_ms=12000,
    ),
}

DEFAULT_LIFECYCLE_PRESETS: Dict[str, LifecycleRules] = {
    "saas": LifecycleRules(
        auto_expire_quick_wins=True,
        quick_win_ttl_hours=168,            # 7 days
        flagged_ttl_hours=24,
        graduation_enabled=True,
        graduation_threshold=10,
    ),
    "ecommerce": LifecycleRules(
        auto_expire_quick_wins=True,
        quick_win_ttl_hours=72,             # 3 days
        flagged_ttl_hours=12,
        graduation_enabled=True,
        graduation_threshold=15,
    ),
    "services": LifecycleRules(
        auto_expire_quick_wins=True,
        quick_win_ttl_hours=240,            # 10 days
        flagged_ttl_hours=48,
        graduation_enabled=True,
        graduation_threshold=8,
    ),
    "events": LifecycleRules(
        auto_expire_quick_wins=False,       # Event promos may stay up
        quick_win_ttl_hours=720,            # 30 days
        flagged_ttl_hours=6,
        graduation_enabled=False,
        graduation_threshold=20,
    ),
    "blog": LifecycleRules(
        auto_expire_quick_wins=True,
        quick_win_ttl_hours=336,            # 14 days
        flagged_ttl_hours=72,
        graduation_enabled=True,
        graduation_threshold=12,
    ),
}


def _check_category(business_category) -> None:
    if not isinstance(business_category, str):
        raise InvalidConfig(
            f"business category must be a string, got {type(business_category).__name__}"
        )


class BlendingConfigResolver:
    """
    Resolves a business category to a BlendingConfig.

    Fallback is total: any unknown category resolves to the fallback preset.
    """

    def __init__(
        self,
        presets: Optional[Dict[str, BlendingConfig]] = None,
        fallback_category: str = FALLBACK_CATEGORY,
    ):
        self._presets = dict(presets if presets is not None else DEFAULT_BLENDING_PRESETS)
        if fallback_category not in self._presets:
            raise InvalidConfig(
                f"fallback category '{fallback_category}' has no preset"
            )
        self._fallback = fallback_category

    @property
    def categories(self) -> list:
        return sorted(self._presets)

    def resolve(self, business_category: str) -> BlendingConfig:
        """Return a copy of the preset for the category."""
        _check_category(business_category)
        preset = self._presets.get(business_category)
        if preset is None:
            logger.debug(
                "blending_category_fallback",
                category=business_category,
                fallback=self._fallback,
            )
            preset = self._presets[self._fallback]
        return preset.model_copy()


class LifecycleRulesResolver:
    """Same lookup contract as BlendingConfigResolver, for lifecycle rules."""

    def __init__(
        self,
        presets: Optional[Dict[str, LifecycleRules]] = None,
        fallback_category: str = FALLBACK_CATEGORY,
    ):
        self._presets = dict(presets if presets is not None else DEFAULT_LIFECYCLE_PRESETS)
        if fallback_category not in self._presets:
            raise InvalidConfig(
                f"fallback category '{fallback_category}' has no preset"
            )
        self._fallback = fallback_category

    def resolve(self, business_category: str) -> LifecycleRules:
        _check_category(business_category)
        preset = self._presets.get(business_category, self._presets[self._fallback])
        return preset.model_copy()
