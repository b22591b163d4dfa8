#!/usr/bin/env python

import logging
import re
from typing import List, Optional, Tuple

import pandas as pd
from matplotlib.colors import to_rgb
from rich.text import Text

from textual import work
from textual.app import App, ComposeResult
from textual.containers import Container, VerticalScroll, Grid
from textual.screen import ModalScreen
from textual.timer import Timer
from textual.widgets import Header, Footer, Button, Input, DataTable, Static, LoadingIndicator, RadioSet, RadioButton, TabbedContent, TabPane, Checkbox, Markdown, Select
from textual_plotext import PlotextPlot

from . import config
from .data_analyzer import RestrictionAnalyzer, CorrelationData, STATE_TABLE_COLUMNS
from .layout import LabelLayoutController, LayoutSnapshot
from .models import Category
from .regression import regression_status
from .results import UnknownStateError
from .rule_table import default_rule_table
from .suggestions import suggest_spelling
from .validator import NameValidator, Status

logger = logging.getLogger(__name__)

PLOT_VIEWS = ("welcome", "summary", "correlation")
TABLE_VIEWS = ("check", "suggest", "states")

STATUS_STYLES = {
    Status.OK: "bold green",
    Status.EMPTY: "bold yellow",
    Status.TOO_LONG: "bold red",
    Status.DISALLOWED: "bold red",
}

# --- Help Screen ---

HELP_TEXT = """
## Baby Name Law Checker

Check a proposed first name against the naming rules of each U.S. state, and
compare how restrictive the states are.

### How to Use

- **Check Name:** pick a state, type a name and press Enter or *Check Name*.
  *Suggest Spelling* proposes the closest spelling the state accepts.
- **Maps:** tile-grid maps of accent and length restrictions, and a summary of
  how many states fall at each level.
- **Correlation:** length limits plotted against accent restrictions, with a
  trend line for states that limit the first name and for states that limit
  the full name. Labels settle into place while the layout runs.
- **States:** a searchable, sortable table of every state's rule. Click a state
  to check a name against it.
- Use the **Export CSV** button to save the data from any visible table.

Asterisks mark values that are not from an official source.

**Press ESC, Q, or ? to close this screen.**
"""


class HelpScreen(ModalScreen):
    """A modal screen that displays help information."""

    BINDINGS = [
        ("escape", "app.pop_screen", "Close Help"),
        ("q", "app.pop_screen", "Close Help"),
        ("?", "app.pop_screen", "Close Help"),
    ]

    def compose(self) -> ComposeResult:
        with Grid(id="help-grid"):
            yield Markdown(HELP_TEXT)


def render_tile_map(tiles: pd.DataFrame, title: str, legend: List[Tuple[str, str]], note: str) -> Text:
    """Draws a tile-grid map as coloured Rich cells, one row of tiles per text line."""
    text = Text()
    text.append(f"{title}\n\n", style="bold")
    cells = {(tile.Row, tile.Col): tile for tile in tiles.itertuples()}
    for row in range(1, int(tiles["Row"].max()) + 1):
        for col in range(1, int(tiles["Col"].max()) + 1):
            tile = cells.get((row, col))
            if tile is None:
                text.append(" " * 6)
            else:
                text.append(f"{tile.Label:^5}", style=f"bold white on {tile.Color}")
                text.append(" ")
        text.append("\n\n")
    for label, color in legend:
        text.append("   ", style=f"on {color}")
        text.append(f" {label}   ")
    text.append(f"\n\n{note}", style="dim")
    return text


def _plotext_color(hex_color: str) -> Tuple[int, int, int]:
    return tuple(int(round(c * 255)) for c in to_rgb(hex_color))


# --- Textual Application ---

class NameCheckApp(App):
    """A Textual app to check baby names against state naming laws."""

    TITLE = "Baby Name Law Checker"

    CSS = """
    #app-grid {
        layout: grid;
        grid-size: 2;
        grid-columns: 45 1fr;
        grid-rows: 1fr;
        height: 100%;
        width: 100%;
    }
    #controls-pane {
        layout: grid;
        grid-rows: 1fr auto;
        padding: 1 2;
        border-right: solid $accent;
    }
    #results-pane {
        padding: 0 1;
        height: 100%;
        layout: grid;
        grid-rows: 1fr;
        grid-columns: 1fr;
    }
    .header {
        background: $primary-background-darken-1;
        color: $text;
        padding: 0 1;
        margin-top: 1;
        text-style: bold;
    }
    Button {
        width: 100%;
        margin-top: 1;
    }
    Input, Select {
        margin-top: 1;
    }
    RadioSet, Checkbox {
        margin-top: 1;
    }
    #control-tabs {
        height: auto;
    }
    TabPane {
        padding-top: 1;
    }
    #plot-container {
        height: 100%;
    }
    #plot_view {
        height: 60%;
    }
    #plot-details-table {
        height: 40%;
    }
    #map-container {
        height: 100%;
        padding: 1 2;
    }
    #results-table {
        height: 100%;
    }
    #status-container {
        border: round $panel-lighten-1;
        border-title-color: $accent;
        padding: 0 1;
        margin-top: 1;
        height: 6;
    }
    #status_widget {
        height: 100%;
    }
    .input-label {
        margin-top: 1;
    }
    #loading-overlay {
        background: $surface 50%;
        width: 100%;
        height: 100%;
        align: center middle;
        display: none;
    }
    HelpScreen {
        align: center middle;
    }
    #help-grid {
        grid-size: 1;
        grid-gutter: 1 2;
        padding: 0 1;
        width: 80;
        height: 24;
        border: thick $primary;
        background: $surface;
    }
    """

    BINDINGS = [
        ("d", "toggle_dark", "Toggle dark mode"),
        ("?", "show_help", "Show Help"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self):
        super().__init__()
        self.rule_table = default_rule_table()
        self.analyzer = RestrictionAnalyzer(self.rule_table)
        self.validator = NameValidator(self.rule_table)
        self.layout_controller = LabelLayoutController()
        self.status_widget = Static("Loading...", id="status_widget")
        self.current_view: str = "welcome"
        self.exportable_data: Optional[pd.DataFrame] = None
        self._correlation: Optional[CorrelationData] = None
        self._layout_timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        states = self.rule_table.states
        yield Header()
        with Container(id="app-grid"):
            with Container(id="controls-pane"):
                with VerticalScroll():
                    with TabbedContent(id="control-tabs"):
                        with TabPane("Check Name", id="check-controls"):
                            yield Static("State:", classes="input-label")
                            yield Select([(s, s) for s in states], value=states[0], allow_blank=False, id="state_select")
                            yield Static("Name:", classes="input-label")
                            yield Input(placeholder="Enter a first name...", id="name_input")
                            yield Button("Check Name", variant="primary", id="check_button")
                            yield Button("Suggest Spelling", variant="warning", id="suggest_button")
                        with TabPane("Maps", id="map-controls"):
                            with RadioSet(id="map_kind"):
                                yield RadioButton("Accents", value=True, id="map_diacritics")
                                yield RadioButton("Length", id="map_length")
                            yield Button("Show Tile Map", variant="primary", id="tile_map_button", disabled=True)
                            yield Button("Restriction Summary", variant="primary", id="summary_button", disabled=True)
                        with TabPane("Correlation", id="correlation-controls"):
                            yield Checkbox("Animate Labels", value=True, id="animate_layout")
                            yield Button("Plot Correlation", variant="primary", id="correlation_button", disabled=True)
                            yield Button("Stop Layout", variant="error", id="stop_layout_button", disabled=True)
                        with TabPane("States", id="states-controls"):
                            yield Static("Search:", classes="input-label")
                            yield Input(placeholder="State, abbreviation or rule text...", id="state_filter")
                            yield Static("Sort by:", classes="input-label")
                            yield Select([(c, c) for c in STATE_TABLE_COLUMNS[:6]], value="State", allow_blank=False, id="sort_by")
                            yield Checkbox("Descending", id="sort_descending")
                            yield Checkbox("Only states with a length limit", id="only_limited")
                            yield Button("Show Table", variant="primary", id="table_button", disabled=True)
                with Container():
                    yield Static("Options", classes="header")
                    yield Button("Export CSV", id="export_csv_button", disabled=True)
                    with Container(id="status-container"):
                        yield self.status_widget
            with Container(id="results-pane"):
                with VerticalScroll(id="plot-container"):
                    yield PlotextPlot(id="plot_view")
                    yield DataTable(id="plot-details-table")
                with VerticalScroll(id="map-container"):
                    yield Static(id="tile_map")
                yield DataTable(id="results-table")
                with Container(id="loading-overlay"):
                    yield LoadingIndicator()
        yield Footer()

    def action_show_help(self) -> None:
        """Show the help screen."""
        self.push_screen(HelpScreen())

    def on_mount(self) -> None:
        self.query_one("#status-container").border_title = "Status"
        self._set_view("welcome")
        self._draw_welcome_plot()
        self.status_widget.update("Loading restriction data...")
        self.load_data_worker()

    @work(exclusive=True, thread=True)
    def load_data_worker(self) -> None:
        self.call_from_thread(self._set_loading, True)
        try:
            status = self.analyzer.load_data()
        except (OSError, ValueError, KeyError) as e:
            logger.exception("Failed to load restriction data")
            self.call_from_thread(self._data_failed, e)
            return
        self.call_from_thread(self._data_loaded, status)

    def _set_loading(self, loading: bool) -> None:
        self.query_one("#loading-overlay").display = loading

    def _data_loaded(self, status: str) -> None:
        self._set_loading(False)
        self.status_widget.update(f"[bold green]{status}[/]\nReady. Press '?' for help.")
        for button_id in ("tile_map_button", "summary_button", "correlation_button", "table_button"):
            self.query_one(f"#{button_id}", Button).disabled = False

    def _data_failed(self, error: Exception) -> None:
        self._set_loading(False)
        self.status_widget.update(f"[bold red]Failed to load restriction data: {error}[/]\nName checks still work.")

    # --- View switching ---

    def _set_view(self, view: str) -> None:
        if view != "correlation":
            self._cancel_layout()
        self.current_view = view
        self.query_one("#plot-container").display = view in PLOT_VIEWS
        self.query_one("#map-container").display = view == "tile_map"
        self.query_one("#results-table").display = view in TABLE_VIEWS

    def _refresh_current_view(self) -> None:
        actions = {
            "check": self._check_name,
            "suggest": self._suggest_spelling,
            "tile_map": self._show_tile_map,
            "summary": self._show_summary,
            "states": self._show_state_table,
        }
        if self.current_view in actions:
            actions[self.current_view]()

    def _update_export_button_state(self):
        """Enables or disables the export button based on data availability."""
        self.query_one("#export_csv_button").disabled = self.exportable_data is None or self.exportable_data.empty

    def _set_exportable_data(self, data: Optional[pd.DataFrame]):
        self.exportable_data = data
        self._update_export_button_state()

    def _clear_exportable_data(self):
        self._set_exportable_data(None)

    def _selected_state(self) -> str:
        return self.query_one("#state_select", Select).value

    def _map_kind(self) -> str:
        pressed = self.query_one("#map_kind", RadioSet).pressed_button
        return "length" if pressed is not None and pressed.id == "map_length" else "diacritics"

    def _draw_welcome_plot(self) -> None:
        plot = self.query_one(PlotextPlot)
        plt = plot.plt
        plt.clear_data()
        plt.clear_figure()
        plt.title("Welcome to the Baby Name Law Checker!")
        plt.xlabel("Select a tab on the left panel. Press '?' for help.")
        plt.build()
        plot.refresh()
        self.query_one("#plot-details-table").display = False
        self._clear_exportable_data()

    # --- Check Name ---

    def _check_name(self) -> None:
        self._set_view("check")
        state = self._selected_state()
        name = self.query_one("#name_input", Input).value
        try:
            verdict = self.validator.validate(state, name)
        except UnknownStateError as e:
            self.status_widget.update(f"[bold red]{e}[/]")
            return
        law = self.rule_table[state]

        table = self.query_one("#results-table", DataTable)
        table.clear(columns=True)
        table.add_column("Check", key="check", width=14)
        table.add_column("Result", key="result")
        rows = [
            ("Name", name.strip()),
            ("State", law.state),
            ("Verdict", verdict.status.value),
            ("Reason", verdict.reason or ""),
            ("Max Length", str(law.max_length) if law.max_length is not None else "No limit"),
            ("Rule", law.rule),
            ("Source", law.link or "N/A"),
        ]
        for check, result in rows:
            table.add_row(check, result)
        self._set_exportable_data(pd.DataFrame(rows, columns=["Check", "Result"]))
        self.status_widget.update(f"[{STATUS_STYLES[verdict.status]}]{verdict.message}[/]")

    def _suggest_spelling(self) -> None:
        self._set_view("suggest")
        state = self._selected_state()
        name = self.query_one("#name_input", Input).value.strip()
        if not name:
            self.status_widget.update("[bold yellow]Please enter a name to get a suggestion.[/]")
            return
        law = self.rule_table[state]
        suggestion = suggest_spelling(law, name)

        table = self.query_one("#results-table", DataTable)
        table.clear(columns=True)
        table.add_column("Original", key="original")
        table.add_column("Suggestion", key="suggestion")
        table.add_column("Edits", key="edits")
        table.add_column("Sounds Alike", key="sounds_alike")
        if suggestion is None:
            verdict = self.validator.validate(state, name)
            message = "already allowed" if verdict.ok else "no compliant spelling found"
            table.add_row(name, f"[yellow]({message})[/]", "", "")
            self._clear_exportable_data()
            self.status_widget.update(f"No suggestion for '{name}' in {law.state}: {message}.")
            return
        table.add_row(suggestion.original, f"[bold green]{suggestion.name}[/]", str(suggestion.distance),
                      "Yes" if suggestion.sounds_alike else "No")
        self._set_exportable_data(pd.DataFrame([{
            "Original": suggestion.original, "Suggestion": suggestion.name,
            "Edits": suggestion.distance, "Sounds Alike": suggestion.sounds_alike,
        }]))
        self.status_widget.update(f"Suggested spelling for {law.state}: '{suggestion.name}'.")

    # --- Maps ---

    def _show_tile_map(self) -> None:
        self._set_view("tile_map")
        map_kind = self._map_kind()
        tiles = self.analyzer.get_tile_grid(map_kind)
        if tiles is None or tiles.empty:
            self.status_widget.update("[bold red]No tile data to show.[/]")
            return
        style = config.MAP_STYLES[map_kind]
        self.query_one("#tile_map", Static).update(
            render_tile_map(tiles, style["title"], self.analyzer.get_legend(map_kind), style["note"])
        )
        self._set_exportable_data(tiles)
        self.status_widget.update(f"Showing {style['title'].lower()}.")

    def _show_summary(self) -> None:
        self._set_view("summary")
        map_kind = self._map_kind()
        summary = self.analyzer.get_restriction_summary(map_kind)
        plot = self.query_one(PlotextPlot)
        plt = plot.plt
        plt.clear_data()
        plt.clear_figure()
        if summary is None or summary.empty:
            self.status_widget.update("[bold red]Could not summarize restrictions.[/]")
            self._draw_welcome_plot()
            return

        style = config.MAP_STYLES[map_kind]
        plt.bar(summary["Label"].tolist(), summary["Percentage"].round(1).tolist(),
                color=_plotext_color(style["colors"][-1]))
        plt.title(style["title"])
        plt.ylabel("% of States")
        plt.build()
        plot.refresh()

        details_table = self.query_one("#plot-details-table", DataTable)
        details_table.display = True
        details_table.clear(columns=True)
        details_table.add_columns("Level", "Restriction", "States", "% of States")
        for row in summary.itertuples():
            details_table.add_row(str(row.Level), row.Label, str(row.States), f"{row.Percentage:.1f}%")
        self._set_exportable_data(summary[["Level", "Label", "States", "Percentage"]])
        self.status_widget.update(f"Summary of {style['title'].lower()}.")

    # --- Correlation ---

    def _start_correlation(self) -> None:
        self._set_view("correlation")
        self._cancel_layout()
        data = self.analyzer.get_correlation()
        animate = self.query_one("#animate_layout", Checkbox).value

        layout = self.layout_controller.start(
            data.points, data.x_scale, data.y_scale, data.width, data.height,
            on_tick=self._draw_correlation if animate else None,
            on_end=self._layout_finished,
        )
        if layout is None:
            self.status_widget.update("[bold yellow]No states have both a length limit and an accent rule.[/]")
            self._draw_welcome_plot()
            return

        self._correlation = data
        self._show_regression_table(data)
        if animate:
            self.query_one("#stop_layout_button", Button).disabled = False
            self.status_widget.update("Placing labels...")
            self._draw_correlation(layout.snapshot())
            self._layout_timer = self.set_interval(config.ANIMATION_INTERVAL, self._advance_layout)
        else:
            layout.run()

    def _advance_layout(self) -> None:
        layout = self.layout_controller.layout
        if layout is None or layout.tick() is None:
            self._stop_timer()

    def _stop_timer(self) -> None:
        if self._layout_timer is not None:
            self._layout_timer.stop()
            self._layout_timer = None
        self.query_one("#stop_layout_button", Button).disabled = True

    def _cancel_layout(self) -> None:
        self._stop_timer()
        self.layout_controller.cancel()

    def _layout_finished(self, snapshot: LayoutSnapshot) -> None:
        self._stop_timer()
        self._draw_correlation(snapshot)
        self._set_exportable_data(snapshot.to_frame())
        self.status_widget.update(f"Labels placed after {snapshot.tick} steps.")

    def _draw_correlation(self, snapshot: LayoutSnapshot) -> None:
        data = self._correlation
        if data is None:
            return
        plot = self.query_one(PlotextPlot)
        plt = plot.plt
        plt.clear_data()
        plt.clear_figure()

        for category in Category:
            members = [p for p in data.points if p.category == category]
            if members:
                plt.scatter([p.x for p in members], [p.y for p in members],
                            color=_plotext_color(config.CATEGORY_COLORS[category.value]),
                            label=config.CATEGORY_LABELS[category.value])
            line = data.lines.get(category)
            if line is not None:
                (x0, y0), (x1, y1) = line.segment(*data.x_scale.domain)
                plt.plot([x0, x1], [y0, y1], color=_plotext_color(config.CATEGORY_COLORS[category.value]))

        for label in snapshot.labels().values():
            plt.text(label.id, data.x_scale.invert(label.x), data.y_scale.invert(label.y))

        plt.xlim(*data.x_scale.domain)
        plt.ylim(*sorted(data.y_scale.domain))
        accent_levels = config.MAP_STYLES["diacritics"]["levels"]
        plt.yticks(list(accent_levels), list(accent_levels.values()))
        plt.title("Name Length Limits vs. Accent Restrictions")
        plt.xlabel("Maximum Name Length (characters)")
        plt.build()
        plot.refresh()

    def _show_regression_table(self, data: CorrelationData) -> None:
        details_table = self.query_one("#plot-details-table", DataTable)
        details_table.display = True
        details_table.clear(columns=True)
        details_table.add_columns("Group", "States", "Slope", "Intercept", "Trend")
        for category in Category:
            line = data.lines.get(category)
            count = sum(1 for p in data.points if p.category == category)
            if line is None:
                details_table.add_row(config.CATEGORY_LABELS[category.value], str(count), "-", "-",
                                      f"[dim]{regression_status(line).value}[/]")
            else:
                details_table.add_row(config.CATEGORY_LABELS[category.value], str(count),
                                      f"{line.slope:.4f}", f"{line.intercept:.3f}", "shown")

    # --- States table ---

    def _show_state_table(self) -> None:
        self._set_view("states")
        table_data = self.analyzer.get_state_table(
            search=self.query_one("#state_filter", Input).value,
            sort_by=self.query_one("#sort_by", Select).value,
            ascending=not self.query_one("#sort_descending", Checkbox).value,
            only_limited=self.query_one("#only_limited", Checkbox).value,
        )
        table = self.query_one("#results-table", DataTable)
        table.clear(columns=True)
        if table_data is None:
            table.add_column("Error")
            table.add_row("Restriction data is not loaded.")
            self._clear_exportable_data()
            return

        table.add_column("State", key="state")
        table.add_column("Abbr", key="abbr")
        table.add_column("Max Length", key="max_length")
        table.add_column("Accents", key="accents")
        table.add_column("Length Level", key="length_level")
        table.add_column("First Name Only", key="first_name_only")
        accent_levels = config.MAP_STYLES["diacritics"]["levels"]
        for row in table_data.itertuples(index=False):
            max_length = row[STATE_TABLE_COLUMNS.index("Max Length")]
            table.add_row(
                row.State, row.Abbr,
                "No limit" if pd.isna(max_length) else str(max_length),
                accent_levels.get(row.Accents, "No Data"),
                str(row[STATE_TABLE_COLUMNS.index("Length Level")] or "-"),
                "Yes" if row[STATE_TABLE_COLUMNS.index("First Name Only")] else "No",
            )
        self._set_exportable_data(table_data)
        self.status_widget.update(f"Showing {len(table_data)} of {len(self.rule_table)} states.")

    # --- Events ---

    def on_button_pressed(self, event: Button.Pressed) -> None:
        actions = {
            "check_button": self._check_name,
            "suggest_button": self._suggest_spelling,
            "tile_map_button": self._show_tile_map,
            "summary_button": self._show_summary,
            "correlation_button": self._start_correlation,
            "stop_layout_button": self._stop_layout_pressed,
            "table_button": self._show_state_table,
            "export_csv_button": self.export_current_data,
        }
        action = actions.get(event.button.id)
        if action:
            action()

    def _stop_layout_pressed(self) -> None:
        self._cancel_layout()
        self.status_widget.update("[bold yellow]Label layout stopped.[/]")

    def on_radio_set_changed(self, event: RadioSet.Changed) -> None:
        if self.current_view in ("tile_map", "summary"):
            self._refresh_current_view()

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        if event.checkbox.id in ("sort_descending", "only_limited") and self.current_view == "states":
            self._refresh_current_view()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "state_select" and self.current_view in ("check", "suggest"):
            self._refresh_current_view()
        elif event.select.id == "sort_by" and self.current_view == "states":
            self._refresh_current_view()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "name_input":
            self._check_name()
        elif event.input.id == "state_filter" and self.analyzer.states_df is not None:
            self._show_state_table()

    def on_data_table_cell_selected(self, event: DataTable.CellSelected) -> None:
        if self.current_view != "states" or event.cell_key.column_key.value != "state":
            return
        if selected_state := str(event.value):
            self.query_one("#state_select", Select).value = selected_state
            self.query_one("#control-tabs", TabbedContent).active = "check-controls"
            self._check_name()

    def export_current_data(self):
        if self.exportable_data is None or self.exportable_data.empty:
            self.status_widget.update("[bold red]No data to export.[/]")
            return

        filename = self.current_view
        if self.current_view in ("check", "suggest"):
            state = re.sub(r"[\W_]+", "", self._selected_state())
            filename += f"_for_{state}"
        elif self.current_view in ("tile_map", "summary"):
            filename += f"_{self._map_kind()}"
        filename += ".csv"

        try:
            self.exportable_data.to_csv(filename, index=False)
            logger.info("Exported %d rows to %s", len(self.exportable_data), filename)
            self.status_widget.update(f"[bold green]Data exported to '{filename}'[/]")
        except OSError as e:
            logger.exception("Export failed")
            self.status_widget.update(f"[bold red]Error exporting data: {e}[/]")
