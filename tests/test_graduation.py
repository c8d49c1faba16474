"""Tests for graduation weight adjustment."""

import pytest

from notiproof_engine.blending.config import BlendingConfigResolver
from notiproof_engine.blending.graduation import GraduationAdjuster, round_half_up
from notiproof_engine.models.blending import BlendingConfig


class TestRoundHalfUp:
    @pytest.mark.parametrize("value,expected", [(72.5, 73), (72.4, 72), (0.5, 1), (2.5, 3), (80.0, 80)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestGraduationAdjuster:
    def setup_method(self):
        self.adjuster = GraduationAdjuster()
        self.resolver = BlendingConfigResolver()

    def test_disabled_is_noop(self):
        config = self.resolver.resolve("events")
        assert self.adjuster.adjust(config, 500) is config

    def test_below_threshold_is_noop(self):
        config = self.resolver.resolve("saas")
        assert self.adjuster.adjust(config, 9) is config

    @pytest.mark.parametrize("count,natural", [(10, 65), (15, 73), (20, 80), (100, 80)])
    def test_saas_graduation(self, count, natural):
        """saas: 50 + min(n/20, 1) * 30, rounded half up."""
        adjusted = self.adjuster.adjust(self.resolver.resolve("saas"), count)
        assert adjusted.natural_weight == natural
        assert adjusted.quick_win_weight == 100 - natural

    def test_capped_at_95(self):
        adjusted = self.adjuster.adjust(self.resolver.resolve("ecommerce"), 30)
        assert adjusted.natural_weight == 95
        assert adjusted.quick_win_weight == 5

    def test_fractional_factor(self):
        # services: 60 + (9/16) * 30 = 76.875
        adjusted = self.adjuster.adjust(self.resolver.resolve("services"), 9)
        assert adjusted.natural_weight == 77
        assert adjusted.quick_win_weight == 23

    def test_zero_threshold_gives_full_boost(self):
        config = BlendingConfig(natural_weight=50, quick_win_weight=50, min_natural_threshold=0)
        assert self.adjuster.graduation_factor(config, 0) == 1.0
        assert self.adjuster.adjust(config, 0).natural_weight == 80

    def test_monotonic_and_conserving(self):
        for category in self.resolver.categories:
            config = self.resolver.resolve(category)
            previous = -1
            for count in range(0, 61):
                adjusted = self.adjuster.adjust(config, count)
                assert adjusted.natural_weight + adjusted.quick_win_weight == 100
                assert adjusted.natural_weight >= previous
                assert adjusted.natural_weight <= 95 or adjusted is config
                previous = adjusted.natural_weight

    def test_input_not_mutated(self):
        config = self.resolver.resolve("saas")
        self.adjuster.adjust(config, 40)
        assert config.natural_weight == 50
        assert config.quick_win_weight == 50
