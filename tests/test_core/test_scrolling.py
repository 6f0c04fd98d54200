"""
Tests for accelerated keyboard scrolling
"""

import pytest

from dbx.core.config import Settings
from dbx.core.scrolling import DOWN, PAGE_DOWN, PAGE_UP, UP, ScrollAccelerator


@pytest.fixture
def accelerator():
    return ScrollAccelerator(
        Settings(scroll_acceleration=3, scroll_repeat_threshold=2, scroll_repeat_timeout_ms=150, page_scroll_step=10)
    )


class TestScrollAccelerator:
    def test_single_press_moves_one_row(self, accelerator):
        assert accelerator.step(DOWN, now=0.0) == 1
        assert accelerator.step(UP, now=1.0) == -1

    def test_acceleration_after_threshold(self, accelerator):
        steps = [accelerator.step(DOWN, now=i * 0.05) for i in range(5)]
        # repeats 1 and 2 stay at one row, repeat 3 exceeds the threshold
        assert steps == [1, 1, 1, 3, 3]

    def test_slow_presses_never_accelerate(self, accelerator):
        steps = [accelerator.step(DOWN, now=i * 0.2) for i in range(6)]
        assert steps == [1] * 6

    def test_changing_direction_resets(self, accelerator):
        for i in range(5):
            accelerator.step(DOWN, now=i * 0.05)
        assert accelerator.step(UP, now=0.3) == -1
        assert accelerator.repeat_count == 0

    def test_page_keys(self, accelerator):
        assert accelerator.step(PAGE_DOWN, now=0.0) == 10
        assert accelerator.step(PAGE_UP, now=0.0) == -10

    def test_unknown_key(self, accelerator):
        with pytest.raises(ValueError):
            accelerator.step("left", now=0.0)

    def test_target_clamps(self, accelerator):
        assert accelerator.target(0, UP, row_count=5, now=0.0) == 0
        assert accelerator.target(3, PAGE_DOWN, row_count=5, now=1.0) == 4
        assert accelerator.target(4, PAGE_UP, row_count=50, now=2.0) == 0

    def test_target_empty_table(self, accelerator):
        assert accelerator.target(0, DOWN, row_count=0, now=0.0) == 0

    def test_defaults(self):
        accelerator = ScrollAccelerator()
        assert accelerator.page_step == 10
        assert accelerator.timeout == pytest.approx(0.15)
