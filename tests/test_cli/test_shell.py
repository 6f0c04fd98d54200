"""Tests for the interactive shell.

Component tests instantiate widgets without a terminal; the app tests drive
DbxShellApp headless through Textual's pilot with a stubbed endpoint.
"""

from datetime import datetime, timezone

import pytest

from dbx.cli.shell import (
    ConnectionIndicator,
    DbxShellApp,
    DetailPane,
    HistoryList,
    QueryEditor,
    RawPane,
    ResultsViewer,
    StatusBar,
)
from dbx.core.config import Settings
from dbx.core.focus import Pane
from dbx.core.history import History, HistoryStore
from dbx.core.session import SessionController
from dbx.core.types import ConnectionStatus


@pytest.fixture
def session(client, tmp_path):
    return SessionController(Settings(), client=client, store=HistoryStore(tmp_path / "history.json"))


@pytest.fixture
def session_with_history(client, tmp_path):
    history = History()
    stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    history.append("select 1", now=stamp)
    history.append("select * from people", now=stamp)
    return SessionController(
        Settings(), client=client, store=HistoryStore(tmp_path / "history.json"), history=history
    )


class TestShellComponents:
    """Test shell component imports and initialization."""

    def test_widgets_instantiate(self):
        assert ResultsViewer(id="test-viewer").border_title == "Results"
        assert HistoryList(id="test-history").border_title == "History"
        assert DetailPane("Detail", id="test-detail").text == ""
        assert StatusBar(id="test-status").message is None
        assert ConnectionIndicator().status is ConnectionStatus.UNKNOWN

    def test_panes_know_their_focus_zone(self):
        assert QueryEditor.PANE is Pane.EDITOR
        assert HistoryList.PANE is Pane.HISTORY
        assert ResultsViewer.PANE is Pane.RESULTS
        assert DetailPane.PANE is Pane.DETAIL
        assert RawPane.PANE is Pane.RAW

    def test_app_initialization(self, session):
        app = DbxShellApp(session, check_connection=False)
        assert app.session is session
        assert app.history_index == -1
        assert app.monitor.interval == 5


class TestShellApp:
    """Drive the app headless."""

    @pytest.mark.anyio
    async def test_starts_in_editor(self, session):
        app = DbxShellApp(session, check_connection=False)
        async with app.run_test():
            assert isinstance(app.focused, QueryEditor)
            assert "Shortcuts" in app.query_one(StatusBar).message.text

    @pytest.mark.anyio
    async def test_run_query(self, session):
        app = DbxShellApp(session, check_connection=False)
        async with app.run_test() as pilot:
            app.query_one(QueryEditor).text = "select * from people"
            await pilot.press("enter")
            await app.workers.wait_for_complete()
            await pilot.pause()

            table = app.query_one(ResultsViewer)
            assert table.row_count == 3
            assert table.border_title == "Results (3 rows)"
            assert isinstance(app.focused, ResultsViewer)
            assert app.query_one(StatusBar).message.text == "Fetched 3 rows"
            assert app.query_one(DetailPane).text.startswith("Row 1/3")
            assert app.query_one(HistoryList).option_count == 1

    @pytest.mark.anyio
    async def test_blank_query_stays_in_editor(self, session):
        app = DbxShellApp(session, check_connection=False)
        async with app.run_test() as pilot:
            await pilot.press("enter")
            await pilot.pause()

            assert isinstance(app.focused, QueryEditor)
            assert app.query_one(StatusBar).message.text == "Nothing to run"

    @pytest.mark.anyio
    async def test_text_result_shows_raw(self, session):
        app = DbxShellApp(session, check_connection=False)
        async with app.run_test() as pilot:
            app.query_one(QueryEditor).text = "boom"
            await pilot.press("enter")
            await app.workers.wait_for_complete()
            await pilot.pause()

            assert app.query_one(ResultsViewer).row_count == 0
            assert app.query_one(RawPane).text == "internal error"
            assert app.query_one(DetailPane).text == "Text result (see raw output)"

    @pytest.mark.anyio
    async def test_tab_cycles_panes(self, session):
        app = DbxShellApp(session, check_connection=False)
        async with app.run_test() as pilot:
            expected = [HistoryList, ResultsViewer, DetailPane, RawPane, QueryEditor]
            for widget_type in expected:
                await pilot.press("tab")
                assert isinstance(app.focused, widget_type)
            assert session.focus.current is Pane.EDITOR

    @pytest.mark.anyio
    async def test_sort_and_navigate(self, session):
        app = DbxShellApp(session, check_connection=False)
        async with app.run_test() as pilot:
            app.query_one(QueryEditor).text = "select * from people"
            await pilot.press("enter")
            await app.workers.wait_for_complete()
            await pilot.pause()

            app.sort_results(2)
            app.sort_results(2)
            await pilot.pause()

            table = app.query_one(ResultsViewer)
            assert table.get_row_at(0)[2].plain == "Charlie"
            assert table.border_title == "Results (3 rows) [sorted by name ↓]"

            await pilot.press("down")
            await pilot.pause()
            assert session.selected_row == 1
            assert app.query_one(DetailPane).text.startswith("Row 2/3")

    @pytest.mark.anyio
    async def test_history_select_and_delete(self, session_with_history):
        session = session_with_history
        app = DbxShellApp(session, check_connection=False)
        async with app.run_test() as pilot:
            history_list = app.query_one(HistoryList)
            assert history_list.option_count == 2

            history_list.focus()
            await pilot.pause()
            await pilot.press("d")
            await pilot.pause()
            assert [entry.query for entry in session.history] == ["select 1"]
            assert app.query_one(StatusBar).message.text == "History entry deleted"

            await pilot.press("enter")
            await pilot.pause()
            assert app.query_one(QueryEditor).text == "select 1"
            assert isinstance(app.focused, QueryEditor)

    @pytest.mark.anyio
    async def test_history_navigation_in_editor(self, session_with_history):
        app = DbxShellApp(session_with_history, check_connection=False)
        async with app.run_test() as pilot:
            app.action_history_prev()
            assert app.query_one(QueryEditor).text == "select * from people"
            app.action_history_prev()
            assert app.query_one(QueryEditor).text == "select 1"
            app.action_history_next()
            app.action_history_next()
            assert app.query_one(QueryEditor).text == ""
            await pilot.pause()

    @pytest.mark.anyio
    async def test_export_without_results(self, session):
        app = DbxShellApp(session, check_connection=False)
        async with app.run_test() as pilot:
            await pilot.press("ctrl+e")
            await pilot.pause()
            assert app.query_one(StatusBar).message.text == "No results to export"

    @pytest.mark.anyio
    async def test_connection_indicator(self, client, tmp_path):
        session = SessionController(Settings(connection_check_sec=1), client=client)
        app = DbxShellApp(session)
        async with app.run_test() as pilot:
            for _ in range(20):
                await pilot.pause(0.05)
                if session.connection_status is ConnectionStatus.CONNECTED:
                    break
            assert app.query_one(ConnectionIndicator).status is ConnectionStatus.CONNECTED
