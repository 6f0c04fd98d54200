"""
Query history

Keeps past queries most-recent-first and persists them to a single JSON file:

    {"entries": [{"query": "...", "timestamp": "2024-05-01T10:00:00+00:00"}, ...]}

A missing or corrupt file loads as an empty history; losing history is never
fatal. Write failures are raised so the session can report them.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from rich.markup import escape

from dbx.core.errors import PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 200

# Fractions of any length (e.g. nanoseconds, trailing zeros dropped) become microseconds
_FRACTION_RE = re.compile(r"\.(\d+)")

LABEL_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _now() -> datetime:
    return datetime.now(timezone.utc).astimezone()


def _parse_timestamp(value: str) -> datetime:
    """Parse an RFC3339 timestamp, tolerating a Z suffix and nanoseconds."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class HistoryEntry:
    """One submitted query and when it was last submitted."""

    query: str
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, str]:
        return {"query": self.query, "timestamp": self.timestamp.isoformat()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryEntry":
        query, timestamp = data["query"], data["timestamp"]
        if not isinstance(query, str) or not isinstance(timestamp, str):
            raise ValueError(f"Malformed history entry: {data!r}")
        return cls(query=query, timestamp=_parse_timestamp(timestamp))

    def label(self) -> str:
        """Single-line label: time followed by the flattened query."""
        flat = " ".join(self.query.split())
        return f"{self.timestamp.strftime(LABEL_TIME_FORMAT)} — {flat}"


@dataclass
class History:
    """
    Ordered query log, most recent first.

    Invariants:
        - no two consecutive entries share the same query text
        - append() never leaves more than max_len entries
    """

    entries: List[HistoryEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self.entries)

    def __getitem__(self, index: int) -> HistoryEntry:
        return self.entries[index]

    def append(self, query: str, max_len: int = DEFAULT_MAX_ENTRIES, now: Optional[datetime] = None) -> bool:
        """
        Record a submitted query.

        Only the most recent entry is checked for a duplicate: re-submitting it
        refreshes its timestamp instead of adding a new entry. Older duplicates
        are allowed.

        Args:
            query: Query text, trimmed before comparison
            max_len: Maximum number of entries to keep
            now: Timestamp to record (defaults to the current time)

        Returns:
            True if the history changed
        """
        query = query.strip()
        if not query:
            return False

        timestamp = now or _now()

        if self.entries and self.entries[0].query == query:
            self.entries[0].timestamp = timestamp
            return True

        self.entries.insert(0, HistoryEntry(query=query, timestamp=timestamp))
        if len(self.entries) > max_len:
            del self.entries[max_len:]
        return True

    def delete(self, index: int) -> HistoryEntry:
        """Remove and return the entry at ``index``."""
        if index < 0 or index >= len(self.entries):
            raise IndexError(f"History index out of range: {index}")
        return self.entries.pop(index)

    def labels(self, limit: Optional[int] = 100) -> List[str]:
        """Labels for the history list, at most ``limit + 1`` of them."""
        entries = self.entries if limit is None else self.entries[: limit + 1]
        return [entry.label() for entry in entries]

    def preview(self, index: int) -> str:
        """Text shown in the preview pane for one entry."""
        entry = self.entries[index]
        return (
            f"[yellow]Time:[/yellow] {entry.timestamp.strftime(LABEL_TIME_FORMAT)}\n\n"
            f"[yellow]Query:[/yellow]\n{escape(entry.query)}"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"entries": [entry.to_dict() for entry in self.entries]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "History":
        raw_entries = data.get("entries") or []
        if not isinstance(raw_entries, list):
            raise ValueError("History 'entries' must be a list")
        return cls(entries=[HistoryEntry.from_dict(item) for item in raw_entries])


class HistoryStore:
    """Loads and saves a History to one JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> History:
        """
        Read the history file.

        Returns:
            The stored history, or an empty one if the file is missing,
            unreadable or corrupt
        """
        if not self.path.exists():
            return History()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            return History.from_dict(data)
        except OSError as e:
            logger.warning("Could not read history %s: %s", self.path, e)
        except (ValueError, KeyError, TypeError) as e:
            # Corrupt history starts over rather than blocking the session
            logger.warning("Ignoring corrupt history %s: %s", self.path, e)
        return History()

    def save(self, history: History) -> None:
        """
        Overwrite the history file with ``history``.

        Raises:
            PersistenceError: If the file or its directory cannot be written
        """
        temp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_path.write_text(json.dumps(history.to_dict(), indent=2), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            raise PersistenceError(f"Failed to save history to {self.path}: {e}") from e
        logger.debug("Saved %d history entries to %s", len(history), self.path)
