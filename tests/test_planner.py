import random

import pytest

from design_critique.planner import (
    PRESHRINK_PIXELS,
    emergency_dimensions,
    emergency_quality,
    next_attempt,
    plan_dimensions,
)


class TestPlanDimensions:
    def test_small_image_is_untouched(self):
        assert plan_dimensions(640, 480, 800, 1000) == (640, 480)

    def test_width_bound(self):
        assert plan_dimensions(1600, 1200, 800, 1000) == (800, 600)

    def test_height_bound(self):
        assert plan_dimensions(1000, 2000, 800, 1000) == (500, 1000)

    def test_preshrink_runs_before_clamp(self):
        width, height = plan_dimensions(4000, 3000, 800, 1000)
        assert width == 800
        assert height in (599, 600)

    def test_preshrink_without_clamp_lands_near_pixel_target(self):
        width, height = plan_dimensions(4000, 3000, 10_000, 10_000)
        assert width * height <= PRESHRINK_PIXELS
        assert width * height > PRESHRINK_PIXELS * 0.99

    def test_extreme_ratio_keeps_one_pixel(self):
        assert plan_dimensions(10_000, 1, 800, 1000) == (800, 1)
        assert plan_dimensions(1, 10_000, 800, 1000) == (1, 1000)

    @pytest.mark.parametrize("width,height", [(0, 10), (10, 0), (-1, 5)])
    def test_rejects_empty_source(self, width, height):
        with pytest.raises(ValueError):
            plan_dimensions(width, height, 800, 1000)

    def test_aspect_ratio_preserved(self):
        rng = random.Random(7)
        for _ in range(500):
            width, height = rng.randint(1, 9000), rng.randint(1, 9000)
            target_w, target_h = plan_dimensions(width, height, 800, 1000)

            assert 1 <= target_w <= 800
            assert 1 <= target_h <= 1000
            # within one pixel of the exact ratio on the dependent side
            assert abs(target_h - target_w * height / width) <= 2 + height / width
            assert abs(target_w - target_h * width / height) <= 2 + width / height


class TestNextAttempt:
    def test_shrinks_by_size_ratio(self):
        # sqrt(1/4) = 0.5 beats the 0.8 cap
        assert next_attempt(800, 600, 0.65, 4_000_000, 1_000_000) == (400, 300, 0.5)

    def test_step_capped_at_twenty_percent(self):
        width, height, _ = next_attempt(800, 600, 0.65, 1_100_000, 1_000_000)
        assert (width, height) == (640, 480)

    def test_quality_floor(self):
        assert next_attempt(100, 100, 0.5, 200, 100)[2] == 0.4
        assert next_attempt(100, 100, 0.4, 200, 100)[2] == 0.4

    def test_quality_never_raised(self):
        assert next_attempt(100, 100, 0.3, 200, 100)[2] == 0.3

    def test_minimum_one_pixel(self):
        assert next_attempt(1, 1, 0.65, 10_000, 1)[:2] == (1, 1)


def test_emergency_dimensions():
    assert emergency_dimensions(800, 600) == (560, 420)
    assert emergency_dimensions(1, 1) == (1, 1)


def test_emergency_quality():
    assert emergency_quality(0.4) == 0.3
    assert emergency_quality(0.65) == 0.3
    assert emergency_quality(0.2) == 0.2
