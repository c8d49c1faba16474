"""Tests for blending and lifecycle policy resolution."""

import pytest

from notiproof_engine.blending.config import (
    DEFAULT_BLENDING_PRESETS,
    BlendingConfigResolver,
    LifecycleRulesResolver,
)
from notiproof_engine.errors import InvalidConfig
from notiproof_engine.models.blending import BlendingConfig, LifecycleRules


class TestBlendingConfigResolver:
    def setup_method(self):
        self.resolver = BlendingConfigResolver()

    @pytest.mark.parametrize(
        "category,natural,quick_win,auto,threshold,max_qw,rotation",
        [
            ("saas", 50, 50, True, 10, 3, 8000),
            ("ecommerce", 70, 30, True, 15, 2, 6000),
            ("services", 60, 40, True, 8, 4, 10000),
            ("events", 80, 20, False, 20, 2, 5000),
            ("blog", 40, 60, True, 12, 5, 12000),
        ],
    )
    def test_presets(self, category, natural, quick_win, auto, threshold, max_qw, rotation):
        config = self.resolver.resolve(category)
        assert config.natural_weight == natural
        assert config.quick_win_weight == quick_win
        assert config.auto_graduation is auto
        assert config.min_natural_threshold == threshold
        assert config.max_quick_wins_per_session == max_qw
        assert config.rotation_interval_ms == rotation

    def test_unknown_category_falls_back_to_saas(self):
        assert self.resolver.resolve("pet-grooming") == self.resolver.resolve("saas")

    def test_empty_string_falls_back(self):
        assert self.resolver.resolve("").natural_weight == 50

    @pytest.mark.parametrize("bad", [None, 42, ["saas"]])
    def test_non_string_category_raises(self, bad):
        with pytest.raises(InvalidConfig):
            self.resolver.resolve(bad)

    def test_every_preset_conserves_weight(self):
        for config in DEFAULT_BLENDING_PRESETS.values():
            assert config.natural_weight + config.quick_win_weight == 100

    def test_resolved_config_is_a_copy(self):
        config = self.resolver.resolve("saas")
        config.max_quick_wins_per_session = 99
        assert self.resolver.resolve("saas").max_quick_wins_per_session == 3

    def test_injected_policy_set(self):
        resolver = BlendingConfigResolver(
            presets={
                "default": BlendingConfig(natural_weight=90, quick_win_weight=10),
                "launch": BlendingConfig(natural_weight=20, quick_win_weight=80),
            },
            fallback_category="default",
        )
        assert resolver.resolve("launch").quick_win_weight == 80
        assert resolver.resolve("saas").natural_weight == 90
        assert resolver.categories == ["default", "launch"]

    def test_fallback_must_exist(self):
        with pytest.raises(InvalidConfig):
            BlendingConfigResolver(
                presets={"blog": BlendingConfig(natural_weight=40, quick_win_weight=60)},
            )


class TestLifecycleRulesResolver:
    def test_ecommerce_rules(self):
        rules = LifecycleRulesResolver().resolve("ecommerce")
        assert rules.quick_win_ttl_hours == 72
        assert rules.graduation_threshold == 15

    def test_events_keep_promos(self):
        rules = LifecycleRulesResolver().resolve("events")
        assert rules.auto_expire_quick_wins is False
        assert rules.graduation_enabled is False

    def test_unknown_falls_back(self):
        assert LifecycleRulesResolver().resolve("unknown") == LifecycleRules(
            quick_win_ttl_hours=168,
            flagged_ttl_hours=24,
            graduation_threshold=10,
        )

    def test_non_string_raises(self):
        with pytest.raises(InvalidConfig):
            LifecycleRulesResolver().resolve(None)
