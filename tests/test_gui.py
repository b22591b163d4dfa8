#!/usr/bin/env uv python
# /// script
# dependencies = [
#   "pandas",
#   "numpy",
#   "matplotlib",
#   "seaborn",
#   "flet",
#   "python-levenshtein",
#   "jellyfish",
#   "pytest"
# ]
# ///

import json
from unittest.mock import MagicMock

import pytest

from naming_laws import gui


@pytest.fixture
def app(tmp_path, monkeypatch):
    """A NameCheckGUI on a mocked page; worker threads are recorded, not run."""
    monkeypatch.setattr(gui, "STATE_FILE", tmp_path / "app_state.json")
    return gui.NameCheckGUI(MagicMock())


@pytest.mark.parametrize("view, worker", [
    ("tile_map", "tile_map_worker"),
    ("summary", "summary_worker"),
    ("correlation", "correlation_worker"),
])
def test_dark_plots_redraws_current_plot(app, view, worker):
    app.current_view = view
    app.page.run_thread.reset_mock()
    app.dark_checkbox.on_change(None)
    app.page.run_thread.assert_called_once_with(getattr(app, worker))


def test_dark_plots_ignored_for_tables(app):
    app.current_view = "states"
    app.page.run_thread.reset_mock()
    app.dark_checkbox.on_change(None)
    app.page.run_thread.assert_not_called()


def test_table_options_are_saved_and_restored(app):
    app.descending_checkbox.value = True
    app.dark_checkbox.value = False
    app.sort_dropdown.value = "Max Length"
    app._save_state()

    saved = json.loads(gui.STATE_FILE.read_text())
    assert saved["sort_descending"] is True
    assert saved["dark_plots"] is False

    restored = gui.NameCheckGUI(MagicMock())
    assert restored.descending_checkbox.value is True
    assert restored.dark_checkbox.value is False
    assert restored.sort_dropdown.value == "Max Length"
