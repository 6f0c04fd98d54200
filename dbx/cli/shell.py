"""
dbx Interactive Shell

Terminal workbench built on Textual. Type a query, press Enter, and explore
the answer: the results table, a detail view of the selected row and the
raw response body. Past queries are listed on the left and can be replayed.

The app only renders; every decision is made by the SessionController.
Background workers (query fetches, connection checks) hand their outcome to
the session with post() and wake the event loop with call_from_thread, which
drains the session inbox and redraws.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Optional

from rich.text import Text
from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.widgets import DataTable, Footer, Header, OptionList, Static, TextArea

from dbx.core.config import HISTORY_FILE, Settings
from dbx.core.focus import Pane
from dbx.core.history import HistoryStore
from dbx.core.monitor import ConnectionMonitor
from dbx.core.scrolling import DOWN, PAGE_DOWN, PAGE_UP, UP, ScrollAccelerator
from dbx.core.session import ConnectionChecked, MessageLevel, QueryCompleted, SessionController, SessionMessage
from dbx.core.types import ConnectionStatus

logger = logging.getLogger(__name__)

PANE_IDS = {
    Pane.EDITOR: "#editor",
    Pane.HISTORY: "#history-list",
    Pane.RESULTS: "#results",
    Pane.DETAIL: "#detail",
    Pane.RAW: "#raw",
}


class PaneMixin:
    """Reports focus changes of a session pane to the app."""

    PANE: Pane

    def on_focus(self) -> None:
        self.app.pane_focused(self.PANE)


class ConnectionIndicator(Static):
    """Dot and label for the endpoint health."""

    def __init__(self, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.status = ConnectionStatus.UNKNOWN

    def on_mount(self) -> None:
        self.show_status(self.status)

    def show_status(self, status: ConnectionStatus) -> None:
        self.status = status
        self.update(Text.assemble(("● ", status.color), status.label))


class HistoryList(PaneMixin, OptionList):
    """Past queries, most recent first."""

    PANE = Pane.HISTORY

    BINDINGS = [
        Binding("d", "delete_entry", "Delete"),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.border_title = "History"

    def show_labels(self, labels, highlighted: Optional[int] = None) -> None:
        self.clear_options()
        self.add_options([Text(label) for label in labels])
        if labels:
            self.highlighted = min(highlighted or 0, len(labels) - 1)

    def action_delete_entry(self) -> None:
        """Delete the highlighted entry."""
        if self.highlighted is not None:
            self.app.delete_history(self.highlighted)


class HistoryPreview(Static):
    """Full text of the highlighted history entry."""

    def __init__(self, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.border_title = "Preview"


class QueryEditor(PaneMixin, TextArea):
    """Multi-line query editor."""

    PANE = Pane.EDITOR

    BINDINGS = [
        Binding("enter", "execute_query", "Run", priority=True),
        Binding("ctrl+l", "clear_editor", "Clear", priority=True),
        Binding("ctrl+up", "history_prev", "Prev Query", priority=True),
        Binding("ctrl+down", "history_next", "Next Query", priority=True),
    ]

    class ExecuteQuery(Message):
        """Message sent when user wants to execute a query."""

        def __init__(self, query_text: str) -> None:
            super().__init__()
            self.query_text = query_text

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.border_title = "Query"

    def action_execute_query(self) -> None:
        """Execute the current query."""
        self.post_message(self.ExecuteQuery(self.text))

    def action_clear_editor(self) -> None:
        """Clear the query editor."""
        self.clear()
        self.focus()

    def action_history_prev(self) -> None:
        """Show previous query from history."""
        self.app.action_history_prev()

    def action_history_next(self) -> None:
        """Show next query from history."""
        self.app.action_history_next()


class ResultsViewer(PaneMixin, DataTable):
    """Results table with accelerated keyboard scrolling."""

    PANE = Pane.RESULTS

    BINDINGS = [
        Binding("up", f"scroll_rows('{UP}')", "Up", show=False),
        Binding("down", f"scroll_rows('{DOWN}')", "Down", show=False),
        Binding("pageup", f"scroll_rows('{PAGE_UP}')", "Page Up", show=False),
        Binding("pagedown", f"scroll_rows('{PAGE_DOWN}')", "Page Down", show=False),
        Binding("s", "sort_column", "Sort"),
    ]

    def __init__(self, accelerator: Optional[ScrollAccelerator] = None, **kwargs) -> None:
        super().__init__(zebra_stripes=True, cursor_type="cell", **kwargs)
        self.border_title = "Results"
        self.accelerator = accelerator or ScrollAccelerator()

    def action_scroll_rows(self, key: str) -> None:
        if not self.row_count:
            return
        row = self.accelerator.target(self.cursor_row, key, self.row_count, time.monotonic())
        self.move_cursor(row=row)

    def action_sort_column(self) -> None:
        """Sort by the column under the cursor."""
        self.app.sort_results(self.cursor_column)


class TextPane(PaneMixin, VerticalScroll):
    """Scrollable block of text."""

    def __init__(self, title: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.border_title = title
        self.text = ""
        self._body = Static("", classes="pane-body")

    def compose(self) -> ComposeResult:
        yield self._body

    def show_text(self, text: str, header_style: Optional[str] = None) -> None:
        self.text = text
        content = Text(text)
        if header_style and text:
            content.stylize(header_style, 0, len(text.split("\n", 1)[0]))
        self._body.update(content)
        self.scroll_home(animate=False)


class DetailPane(TextPane):
    PANE = Pane.DETAIL


class RawPane(TextPane):
    PANE = Pane.RAW


class StatusBar(Static):
    """Status line showing the latest session message."""

    def __init__(self, **kwargs) -> None:
        super().__init__("", **kwargs)
        self.message: Optional[SessionMessage] = None

    def update_status(self, message: SessionMessage) -> None:
        self.message = message
        self.update(Text(message.text, style=message.level.color))
        self.set_class(message.level is MessageLevel.ERROR, "error")
        self.set_class(message.level is MessageLevel.SUCCESS, "success")


class DbxShellApp(App):
    """
    dbx Interactive Shell Application.

    Query editor, history, results table, row detail and raw output around
    one SessionController.
    """

    CSS = """
    Screen {
        background: $surface;
    }

    #main-container {
        width: 100%;
        height: 1fr;
    }

    #left-panel {
        width: 40%;
        height: 100%;
    }

    #right-panel {
        width: 1fr;
        height: 100%;
    }

    #editor {
        height: 40%;
        border: round $primary;
    }

    #history-list {
        height: 1fr;
        border: round $primary;
    }

    #history-preview {
        height: 8;
        border: round $primary-darken-2;
        padding: 0 1;
    }

    #results {
        height: 1fr;
        border: round $primary;
    }

    #bottom-panel {
        height: 40%;
    }

    #detail, #raw {
        width: 1fr;
        border: round $primary;
        padding: 0 1;
    }

    #editor:focus, #history-list:focus, #results:focus, #detail:focus, #raw:focus {
        border: round $accent;
    }

    #status-line {
        height: 1;
        dock: bottom;
        background: $panel;
    }

    #connection-indicator {
        width: 18;
        padding: 0 1;
    }

    #status-bar {
        width: 1fr;
        padding: 0 1;
    }

    #status-bar.error {
        background: $error 30%;
    }

    #status-bar.success {
        background: $success 20%;
    }
    """

    BINDINGS = [
        Binding("tab", "cycle_focus", "Cycle", priority=True),
        Binding("ctrl+e", "export", "Export", priority=True),
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(self, session: SessionController, check_connection: bool = True, **kwargs):
        super().__init__(**kwargs)
        self.session = session
        self.check_connection = check_connection
        self.monitor = ConnectionMonitor(session.client, interval=session.settings.connection_check_sec)
        self._stop_monitor = threading.Event()
        self.history_index = -1

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        with Horizontal(id="main-container"):
            with Vertical(id="left-panel"):
                yield QueryEditor(id="editor")
                yield HistoryList(id="history-list")
                yield HistoryPreview(id="history-preview")

            with Vertical(id="right-panel"):
                yield ResultsViewer(ScrollAccelerator(self.session.settings), id="results")
                with Horizontal(id="bottom-panel"):
                    yield DetailPane("Detail", id="detail")
                    yield RawPane("Raw Output", id="raw")

        with Horizontal(id="status-line"):
            yield ConnectionIndicator(id="connection-indicator")
            yield StatusBar(id="status-bar")

        yield Footer()

    def on_mount(self) -> None:
        """Initialize the shell on mount."""
        self.title = "dbx"
        self.sub_title = self.session.settings.endpoint

        self.session.focus.subscribe(self._focus_pane)

        self._render_history()
        self._render_results()
        self._show_status()
        self.query_one(PANE_IDS[self.session.focus.current]).focus()

        if self.check_connection:
            self._watch_connection()

    def on_unmount(self) -> None:
        self._stop_monitor.set()

    # ---- Focus ----

    def _focus_pane(self, pane: Pane) -> None:
        self.query_one(PANE_IDS[pane]).focus()

    def pane_focused(self, pane: Pane) -> None:
        """Keep the focus ring in step with pointer focus."""
        if self.session.focus.current is not pane:
            self.session.enter_pane(pane)

    def action_cycle_focus(self) -> None:
        self.session.focus_next()

    # ---- Queries ----

    def on_query_editor_execute_query(self, message: QueryEditor.ExecuteQuery) -> None:
        """Handle query execution request."""
        ticket = self.session.submit(message.query_text)
        self._show_status()
        if ticket is None:
            return

        self.history_index = -1
        self._render_history()
        self._render_results()
        self._fetch(ticket)

    @work(thread=True)
    def _fetch(self, ticket) -> None:
        """Run one query off the event loop."""
        self.session.post(self.session.fetch(ticket))
        self.call_from_thread(self._drain_session)

    @work(thread=True, exit_on_error=False)
    def _watch_connection(self) -> None:
        """Probe the endpoint until the app exits."""

        def publish(status: ConnectionStatus) -> None:
            self.session.post(ConnectionChecked(status))
            self.call_from_thread(self._drain_session)

        self.monitor.run(self._stop_monitor, publish)

    def _drain_session(self) -> None:
        """Apply queued background results and redraw what they touched."""
        for message in self.session.drain():
            if isinstance(message, QueryCompleted):
                self._render_results()
                self._show_status()
            elif isinstance(message, ConnectionChecked):
                self.query_one(ConnectionIndicator).show_status(message.status)

    # ---- Results ----

    def _render_results(self) -> None:
        results_viewer = self.query_one(ResultsViewer)
        results_viewer.clear(columns=True)
        results_viewer.border_title = self.session.results_title()

        model = self.session.model
        if model is not None:
            for column in model.columns:
                results_viewer.add_column(column.name, width=column.width, key=column.name)
            for index in range(len(model)):
                results_viewer.add_row(*[Text(cell) for cell in model.display_row(index)])
            if self.session.selected_row is not None:
                results_viewer.move_cursor(row=self.session.selected_row)

        self._render_detail()
        self.query_one(RawPane).show_text(self.session.raw_text)

    def _render_detail(self) -> None:
        header_style = "bold yellow" if self.session.selected_row is not None else "yellow"
        self.query_one(DetailPane).show_text(self.session.detail_text(), header_style=header_style)

    def on_data_table_cell_highlighted(self, event: DataTable.CellHighlighted) -> None:
        """Show the highlighted row in the detail pane."""
        if self.session.model is None or self.session.model.is_empty:
            return
        if self.session.select_row(event.coordinate.row) is not None:
            self._render_detail()

    def on_data_table_header_selected(self, event: DataTable.HeaderSelected) -> None:
        """Handle column header clicks for sorting."""
        self.sort_results(event.column_index)

    def sort_results(self, column_index: int) -> None:
        if not self.session.sort(column_index):
            return
        column = self.query_one(ResultsViewer).cursor_column
        self._render_results()
        self.query_one(ResultsViewer).move_cursor(row=0, column=column)

    def action_export(self) -> None:
        """Write the current rows to a JSON file."""
        self.session.export()
        self._show_status()

    # ---- History ----

    def _render_history(self, highlighted: Optional[int] = None) -> None:
        self.query_one(HistoryList).show_labels(self.session.history_labels(), highlighted)
        if not len(self.session.history):
            self.query_one(HistoryPreview).update(self.session.history_preview(-1))

    def on_option_list_option_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        self.query_one(HistoryPreview).update(self.session.history_preview(event.option_index))

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        """Load the selected query into the editor."""
        self._set_editor_text(self.session.activate_history(event.option_index))

    def delete_history(self, index: int) -> None:
        if self.session.delete_history(index):
            self._render_history(highlighted=index)
            self._show_status()

    def action_history_prev(self) -> None:
        """Navigate to the previous (older) query in history."""
        if not len(self.session.history):
            return
        self.history_index = min(self.history_index + 1, len(self.session.history) - 1)
        self._set_editor_text(self.session.history[self.history_index].query)

    def action_history_next(self) -> None:
        """Navigate to the next (newer) query in history."""
        if self.history_index == -1:
            return
        self.history_index -= 1
        if self.history_index == -1:
            self._set_editor_text("")
        else:
            self._set_editor_text(self.session.history[self.history_index].query)

    def _set_editor_text(self, text: str) -> None:
        editor = self.query_one(QueryEditor)
        editor.text = text
        lines = text.splitlines() or [""]
        editor.cursor_location = (len(lines) - 1, len(lines[-1]))

    # ---- Status ----

    def _show_status(self) -> None:
        self.query_one(StatusBar).update_status(self.session.message)


def launch_shell(settings: Settings, config_dir: Path) -> None:
    """
    Launch the interactive shell.

    Args:
        settings: Loaded settings
        config_dir: Directory holding the history file
    """
    session = SessionController(settings, store=HistoryStore(Path(config_dir) / HISTORY_FILE))
    try:
        DbxShellApp(session).run()
    finally:
        session.close()
