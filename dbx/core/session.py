"""
Session controller - owns the state of one interactive session

Every piece of mutable session state (current result, result model,
selected row, history, focus and connection status) lives here and is only
touched on the thread that owns the controller, normally the UI event loop.

Background work never mutates the session directly. It computes a message
(QueryCompleted, ConnectionChecked), hands it to post(), and the owner calls
drain() to apply queued messages in arrival order:

    ticket = session.submit(text)            # owner thread
    message = session.fetch(ticket)          # worker thread, pure
    session.post(message)                    # worker thread
    session.drain()                          # owner thread

Query results are applied in completion order. A slow query that finishes
after a newer one replaces the newer result.
"""

import logging
import queue
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from dbx.core.client import QueryClient
from dbx.core.config import Settings
from dbx.core.errors import ExportError, PersistenceError, TransportError
from dbx.core.export import export_rows
from dbx.core.focus import FocusRing, Pane
from dbx.core.history import History, HistoryStore
from dbx.core.results import ResultModel, project
from dbx.core.types import ConnectionStatus, QueryResult, ResponseShape

logger = logging.getLogger(__name__)

HELP_TEXT = "Shortcuts: Enter Run  Tab Cycle  D Delete  Ctrl-E Export  Ctrl-Q Quit"


class MessageLevel(Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @property
    def color(self) -> str:
        return {
            MessageLevel.INFO: "white",
            MessageLevel.SUCCESS: "green",
            MessageLevel.WARNING: "yellow",
            MessageLevel.ERROR: "red",
        }[self]


@dataclass(frozen=True)
class SessionMessage:
    """Text for the status line."""

    level: MessageLevel
    text: str


@dataclass(frozen=True)
class QueryTicket:
    """A submitted query waiting to be fetched."""

    request_id: int
    query: str


@dataclass(frozen=True)
class QueryCompleted:
    """Outcome of one fetch: either a result or a transport error."""

    request_id: int
    query: str
    result: Optional[QueryResult] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ConnectionChecked:
    status: ConnectionStatus


Inbound = Union[QueryCompleted, ConnectionChecked]


class SessionController:
    """
    Mediates every user action of an interactive session.

    Example:
        session = SessionController(settings, store=HistoryStore(path))
        ticket = session.submit("select 1")
        session.post(session.fetch(ticket))
        session.drain()
        print(session.message.text)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[QueryClient] = None,
        store: Optional[HistoryStore] = None,
        history: Optional[History] = None,
    ):
        """
        Initialize the session

        Args:
            settings: Session options (default: built-in defaults)
            client: Query client (default: one for ``settings.endpoint``)
            store: History file; without one history is kept in memory only
            history: Initial history (default: loaded from ``store``)
        """
        self.settings = settings or Settings()
        self.client = client or QueryClient(self.settings.endpoint)
        self.store = store
        if history is None:
            history = store.load() if store is not None else History()
        del history.entries[self.settings.max_history_entries :]
        self.history = history

        self.result: Optional[QueryResult] = None
        self.error: Optional[str] = None
        self.model: Optional[ResultModel] = None
        self.selected_row: Optional[int] = None
        self.placeholder = "No row selected"

        self.focus = FocusRing()
        self.connection_status = ConnectionStatus.UNKNOWN
        self.message = SessionMessage(MessageLevel.INFO, HELP_TEXT)

        self._inbox: "queue.SimpleQueue[Inbound]" = queue.SimpleQueue()
        self._request_counter = 0

    # ---- Status line ----

    def notify(self, level: MessageLevel, text: str) -> SessionMessage:
        self.message = SessionMessage(level, text)
        return self.message

    # ---- Queries ----

    def submit(self, text: str) -> Optional[QueryTicket]:
        """
        Record a query and prepare it for fetching

        The query is added to history (and saved) before it is sent, and
        focus moves to the results pane right away.

        Args:
            text: Editor contents; sent verbatim, trimmed for history

        Returns:
            Ticket to pass to fetch(), or None if the text is blank
        """
        query = text.strip()
        if not query:
            self.notify(MessageLevel.WARNING, "Nothing to run")
            return None

        self.notify(MessageLevel.INFO, "Running query...")
        self.model = None
        self.selected_row = None
        self.placeholder = "Running query..."

        self.history.append(query, self.settings.max_history_entries)
        self._save_history()

        self.focus.query_submitted()

        self._request_counter += 1
        ticket = QueryTicket(request_id=self._request_counter, query=text)
        logger.info("Submitting query #%d: %s", ticket.request_id, query)
        return ticket

    def fetch(self, ticket: QueryTicket) -> QueryCompleted:
        """
        Execute a ticket against the endpoint

        Safe to call from any thread: it does not touch session state.
        """
        try:
            result = self.client.execute(ticket.query)
        except TransportError as e:
            return QueryCompleted(ticket.request_id, ticket.query, error=str(e))
        return QueryCompleted(ticket.request_id, ticket.query, result=result)

    # ---- Hand-back channel ----

    def post(self, message: Inbound) -> None:
        """Queue a message for the owner thread. Thread-safe."""
        self._inbox.put(message)

    def drain(self) -> List[Inbound]:
        """
        Apply every queued message in arrival order

        Returns:
            The messages that were applied
        """
        applied = []
        while True:
            try:
                message = self._inbox.get_nowait()
            except queue.Empty:
                break
            if isinstance(message, QueryCompleted):
                self._apply_query(message)
            elif isinstance(message, ConnectionChecked):
                self.connection_status = message.status
            else:
                raise TypeError(f"Unexpected session message: {message!r}")
            applied.append(message)
        return applied

    def _apply_query(self, message: QueryCompleted) -> None:
        if message.request_id != self._request_counter:
            logger.debug("Applying query #%d after newer #%d", message.request_id, self._request_counter)

        self.model = None
        self.selected_row = None

        if message.error is not None:
            self.result = None
            self.error = message.error
            self.placeholder = "No results"
            self.notify(MessageLevel.ERROR, f"Error: {message.error}")
            return

        result = message.result
        self.result = result
        self.error = None
        self.model = project(result.shape, result.payload, self.settings.max_column_width)

        if self.model is not None:
            self.selected_row = 0 if self.model.rows else None
            self.placeholder = "No results"
            self.notify(MessageLevel.SUCCESS, f"Fetched {len(self.model)} rows")
        elif result.shape is ResponseShape.STRUCTURED and isinstance(result.payload, list):
            self.placeholder = "JSON result (non-tabular)"
            self.notify(MessageLevel.SUCCESS, "JSON result (non-tabular)")
        elif result.shape is ResponseShape.STRUCTURED:
            self.placeholder = "JSON result (see raw output)"
            self.notify(MessageLevel.SUCCESS, "JSON result")
        else:
            self.placeholder = "Text result (see raw output)"
            self.notify(MessageLevel.SUCCESS, "Text result")

    # ---- Result views ----

    @property
    def raw_text(self) -> str:
        """Contents of the raw output pane."""
        if self.error is not None:
            return f"Error: {self.error}"
        if self.result is not None:
            return self.result.raw
        return ""

    def results_title(self) -> str:
        if self.model is None:
            return "Results"
        return self.model.title()

    def sort(self, column_index: int) -> bool:
        """
        Sort the results by a column (toggling on repeat)

        Returns:
            True if the rows were sorted
        """
        if self.model is None or self.model.is_empty:
            return False
        if column_index < 0 or column_index >= len(self.model.columns):
            return False
        self.model.sort(column_index)
        self.selected_row = 0
        return True

    def select_row(self, index: int) -> Optional[int]:
        """Select a result row, clamped to the table."""
        if self.model is None or self.model.is_empty:
            self.selected_row = None
        else:
            self.selected_row = min(max(index, 0), len(self.model) - 1)
        return self.selected_row

    def detail_text(self) -> str:
        """
        Contents of the detail pane

        A ``Row i/N`` header followed by one ``key: value`` line per field,
        or a placeholder when no row is selected.
        """
        if self.model is None or self.model.is_empty or self.selected_row is None:
            return self.placeholder
        lines = [f"Row {self.selected_row + 1}/{len(self.model)}"]
        lines.extend(f"{key}: {value}" for key, value in self.model.detail(self.selected_row))
        return "\n".join(lines)

    def export(self, directory: Optional[Path] = None) -> Optional[Path]:
        """
        Write the current rows to a JSON file

        Returns:
            Path of the export, or None if there was nothing to export or
            writing failed (the status line says which)
        """
        if self.model is None or self.model.is_empty:
            self.notify(MessageLevel.WARNING, "No results to export")
            return None
        try:
            path = export_rows(self.model.rows, directory=directory)
        except ExportError as e:
            self.notify(MessageLevel.ERROR, str(e))
            return None
        self.notify(MessageLevel.SUCCESS, f"Exported {len(self.model)} rows to {path.name}")
        return path

    # ---- History ----

    def history_labels(self) -> List[str]:
        return self.history.labels()

    def history_preview(self, index: int) -> str:
        if not len(self.history):
            return "[dim]No history available[/dim]"
        if index < 0 or index >= len(self.history):
            return "[dim]No history selected[/dim]"
        return self.history.preview(index)

    def delete_history(self, index: int) -> bool:
        """
        Remove one history entry and save

        Returns:
            True if an entry was removed
        """
        try:
            self.history.delete(index)
        except IndexError:
            return False
        if self._save_history():
            self.notify(MessageLevel.SUCCESS, "History entry deleted")
        return True

    def activate_history(self, index: int) -> str:
        """
        Recall a history entry into the editor

        Returns:
            The stored query text
        """
        query = self.history[index].query
        self.focus.history_activated()
        return query

    def _save_history(self) -> bool:
        if self.store is None:
            return True
        try:
            self.store.save(self.history)
        except PersistenceError as e:
            logger.warning("%s", e)
            self.notify(MessageLevel.ERROR, f"Failed to save history: {e}")
            return False
        return True

    # ---- Focus ----

    def focus_next(self) -> Pane:
        return self.focus.advance()

    def enter_pane(self, pane: Pane) -> Pane:
        return self.focus.enter(pane)

    def close(self) -> None:
        self.client.close()
