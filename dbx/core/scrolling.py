"""Keyboard scrolling for the results table.

Holding an arrow key speeds up after a few repeats: a press of the same key
within ``scroll_repeat_timeout_ms`` of the previous one counts as a repeat,
and once more than ``scroll_repeat_threshold`` repeats have been seen each
press moves ``scroll_acceleration`` rows.
"""

from typing import Optional

from dbx.core.config import Settings

UP = "up"
DOWN = "down"
PAGE_UP = "page_up"
PAGE_DOWN = "page_down"


class ScrollAccelerator:
    """Turns key presses into target row indexes."""

    def __init__(self, settings: Optional[Settings] = None):
        settings = settings or Settings()
        self.acceleration = settings.scroll_acceleration
        self.threshold = settings.scroll_repeat_threshold
        self.timeout = settings.scroll_repeat_timeout_ms / 1000.0
        self.page_step = settings.page_scroll_step

        self._last_key: Optional[str] = None
        self._last_time = 0.0
        self.repeat_count = 0

    def step(self, key: str, now: float) -> int:
        """
        Signed number of rows a key press moves.

        Args:
            key: One of "up", "down", "page_up", "page_down"
            now: Monotonic time of the press, in seconds
        """
        if key == PAGE_DOWN:
            return self.page_step
        if key == PAGE_UP:
            return -self.page_step
        if key not in (UP, DOWN):
            raise ValueError(f"Unknown scroll key: {key}")

        is_repeat = key == self._last_key and (now - self._last_time) < self.timeout
        if is_repeat:
            self.repeat_count += 1
        else:
            self.repeat_count = 0
        self._last_key = key
        self._last_time = now

        distance = self.acceleration if is_repeat and self.repeat_count > self.threshold else 1
        return distance if key == DOWN else -distance

    def target(self, current: int, key: str, row_count: int, now: float) -> int:
        """Row index to move to, clamped to the table."""
        if row_count <= 0:
            return 0
        return min(max(current + self.step(key, now), 0), row_count - 1)
