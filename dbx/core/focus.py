"""
Focus ring - which pane of the session receives input

    EDITOR -> HISTORY -> RESULTS -> DETAIL -> RAW -> EDITOR

Besides cycling, two session events jump directly: activating a history
entry returns to the editor, and submitting a query moves to the results
(before the response arrives). Any pane can also be entered by clicking it.
"""

from enum import Enum
from typing import Callable, List


class Pane(Enum):
    """Interactive zones of the session."""

    EDITOR = "editor"
    HISTORY = "history"
    RESULTS = "results"
    DETAIL = "detail"
    RAW = "raw"

    def __str__(self) -> str:
        return self.value


CYCLE = (Pane.EDITOR, Pane.HISTORY, Pane.RESULTS, Pane.DETAIL, Pane.RAW)


class FocusRing:
    """Finite state machine over the session panes."""

    def __init__(self, initial: Pane = Pane.EDITOR):
        self._current = Pane(initial)
        self._listeners: List[Callable[[Pane], None]] = []

    @property
    def current(self) -> Pane:
        return self._current

    def subscribe(self, listener: Callable[[Pane], None]) -> None:
        """Call ``listener`` with the new pane after every transition."""
        self._listeners.append(listener)

    def advance(self) -> Pane:
        """Move to the next pane in cycle order."""
        index = CYCLE.index(self._current)
        return self._move(CYCLE[(index + 1) % len(CYCLE)])

    def enter(self, pane: Pane) -> Pane:
        """
        Enter a pane directly (pointer activation).

        Raises:
            ValueError: If ``pane`` is not one of the session panes
        """
        if not isinstance(pane, Pane):
            raise ValueError(f"Not a session pane: {pane!r}")
        return self._move(pane)

    def history_activated(self) -> Pane:
        return self._move(Pane.EDITOR)

    def query_submitted(self) -> Pane:
        return self._move(Pane.RESULTS)

    def _move(self, pane: Pane) -> Pane:
        previous = self._current
        self._current = pane
        if pane is not previous:
            for listener in self._listeners:
                listener(pane)
        return pane
