#!/usr/bin/env python

import json
import logging
from pathlib import Path

import flet as ft
import pandas as pd

from . import config
from .charts import correlation_figure, fig_to_base64, summary_figure, tile_map_figure
from .data_analyzer import RestrictionAnalyzer, STATE_TABLE_COLUMNS
from .layout import LabelLayoutController, LayoutSnapshot
from .models import Category
from .regression import regression_status
from .rule_table import default_rule_table
from .suggestions import suggest_spelling
from .validator import NameValidator, Status

logger = logging.getLogger(__name__)

# --- Configuration ---
STATE_FILE = Path("app_state.json")
FRAME_EVERY = 30  # layout ticks between redraws of the correlation image

STATUS_COLORS = {
    Status.OK: ft.Colors.GREEN,
    Status.EMPTY: ft.Colors.AMBER,
    Status.TOO_LONG: ft.Colors.RED,
    Status.DISALLOWED: ft.Colors.RED,
}


class NameCheckGUI:
    def __init__(self, page: ft.Page):
        self.page = page
        self.page.title = "Baby Name Law Checker (GUI)"
        self.page.theme_mode = ft.ThemeMode.DARK
        self.page.window_width = 1400
        self.page.window_height = 900

        self.page.theme = ft.Theme(color_scheme_seed=ft.Colors.BLUE_GREY)
        self.page.dark_theme = ft.Theme(color_scheme_seed=ft.Colors.BLUE_GREY)

        self.rule_table = default_rule_table()
        self.analyzer = RestrictionAnalyzer(self.rule_table)
        self.validator = NameValidator(self.rule_table)
        self.layout_controller = LabelLayoutController()
        self.current_view = "welcome"
        self.loaded_state = None

        # --- UI Control References ---
        self.plot_image = ft.Image(expand=True)
        self.data_table = ft.DataTable(columns=[], rows=[], expand=True)
        self.results_stack = ft.Stack(expand=True)
        self.progress_ring = ft.ProgressRing(width=32, height=32)
        self.status_text = ft.Text("Loading...")

        self._load_state()
        self.page.on_window_event = self.on_window_event

        self.build_ui()

        self.page.run_thread(self.load_data_worker)

    def on_window_event(self, e):
        """Saves the application state when the window is closed."""
        if e.data == "close":
            self.layout_controller.cancel()
            self._save_state()
            self.page.window_destroy()

    def _save_state(self):
        try:
            state = {
                "state_select": self.state_dropdown.value,
                "name_input": self.name_input.value,
                "map_kind": self.map_kind.value,
                "search_input": self.search_input.value,
                "sort_by": self.sort_dropdown.value,
                "sort_descending": self.descending_checkbox.value,
                "only_limited": self.only_limited_checkbox.value,
                "dark_plots": self.dark_checkbox.value,
                "control_tab": self.control_tabs.selected_index,
                "active_view": self.current_view,
            }
            STATE_FILE.write_text(json.dumps(state, indent=4))
        except OSError as e:
            logger.warning("Error saving state: %s", e)

    def _load_state(self):
        if not STATE_FILE.exists():
            return
        try:
            self.loaded_state = json.loads(STATE_FILE.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Error loading state file: %s", e)
            self.loaded_state = None

    def build_ui(self):
        """Builds the main UI structure, including loading and main views."""
        self.loading_container = ft.Column([self.progress_ring, self.status_text], alignment=ft.MainAxisAlignment.CENTER, horizontal_alignment=ft.CrossAxisAlignment.CENTER, expand=True, visible=True)
        self.main_container = self.build_full_app_layout()
        self.main_container.visible = False
        self.page.add(self.loading_container, self.main_container)
        self.page.update()

    def load_data_worker(self):
        """Worker thread to load data and update UI when done."""
        try:
            status = self.analyzer.load_data()
        except (OSError, ValueError, KeyError) as e:
            logger.exception("Failed to load restriction data")
            self.progress_ring.visible = False
            self.status_text.value = f"Failed to load data. Error: {e}"
            self.page.update()
            return
        self.status_text.value = f"{status} Ready to check names."
        self.loading_container.visible = False
        self.main_container.visible = True
        self.page.update()
        if self.loaded_state:
            self._restore_last_view()

    def _restore_last_view(self):
        """Re-runs the last view based on the loaded state."""
        view_map = {
            "check": self.check_name_worker, "suggest": self.suggest_worker,
            "tile_map": self.tile_map_worker, "summary": self.summary_worker,
            "correlation": self.correlation_worker, "states": self.state_table_worker,
        }
        worker_func = view_map.get(self.loaded_state.get("active_view"))
        if worker_func:
            worker_func()

    def _plot_option_changed(self, e=None):
        """Redraws the current plot when a map or plot option changes."""
        view_map = {
            "tile_map": self.run_tile_map_worker,
            "summary": self.run_summary_worker,
            "correlation": self.run_correlation_worker,
        }
        worker_to_run = view_map.get(self.current_view)
        if worker_to_run:
            worker_to_run()

    def _table_option_changed(self, e=None):
        if self.current_view == "states":
            self.run_state_table_worker()

    def build_full_app_layout(self) -> ft.Row:
        """Builds and returns the main application layout control."""
        state = self.loaded_state or {}
        states = self.rule_table.states
        selected_state = state.get("state_select") if state.get("state_select") in states else states[0]

        self.state_dropdown = ft.Dropdown(label="State", value=selected_state, options=[ft.dropdown.Option(s) for s in states], on_change=self._state_changed)
        self.name_input = ft.TextField(label="Name", on_submit=self.run_check_name_worker, value=state.get("name_input", ""), border_color=ft.Colors.OUTLINE, focused_border_color=ft.Colors.PRIMARY, focused_border_width=2)
        self.map_kind = ft.RadioGroup(content=ft.Row([ft.Radio(value="diacritics", label="Accents"), ft.Radio(value="length", label="Length")]), value=state.get("map_kind", "diacritics"), on_change=self._plot_option_changed)
        self.animate_checkbox = ft.Checkbox(label="Animate Labels", value=True)
        self.stop_layout_button = ft.ElevatedButton("Stop Layout", icon=ft.Icons.STOP, on_click=self.stop_layout_clicked, disabled=True)
        self.search_input = ft.TextField(label="Search", value=state.get("search_input", ""), on_submit=self.run_state_table_worker, border_color=ft.Colors.OUTLINE, focused_border_color=ft.Colors.PRIMARY, focused_border_width=2)
        self.sort_dropdown = ft.Dropdown(label="Sort by", value=state.get("sort_by", "State"), options=[ft.dropdown.Option(c) for c in STATE_TABLE_COLUMNS[:6]], on_change=self._table_option_changed)
        self.descending_checkbox = ft.Checkbox(label="Descending", value=state.get("sort_descending", False), on_change=self._table_option_changed)
        self.only_limited_checkbox = ft.Checkbox(label="Only states with a length limit", value=state.get("only_limited", False), on_change=self._table_option_changed)
        self.dark_checkbox = ft.Checkbox(label="Dark Plots", value=state.get("dark_plots", True), on_change=self._plot_option_changed)

        self.control_tabs = ft.Tabs(selected_index=state.get("control_tab", 0), animation_duration=300,
            tabs=[
                ft.Tab(text="Check Name", icon=ft.Icons.PERSON, content=ft.Container(content=ft.Column([self.state_dropdown, self.name_input, ft.Row([ft.ElevatedButton("Check Name", icon=ft.Icons.GAVEL, on_click=self.run_check_name_worker, expand=True), ft.ElevatedButton("Suggest Spelling", icon=ft.Icons.SPELLCHECK, on_click=self.run_suggest_worker, expand=True)])]), padding=ft.padding.only(top=10))),
                ft.Tab(text="Maps", icon=ft.Icons.MAP, content=ft.Container(content=ft.Column([self.map_kind, ft.ElevatedButton("Show Tile Map", icon=ft.Icons.GRID_VIEW, on_click=self.run_tile_map_worker), ft.ElevatedButton("Restriction Summary", icon=ft.Icons.BAR_CHART, on_click=self.run_summary_worker)]), padding=ft.padding.only(top=10))),
                ft.Tab(text="Correlation", icon=ft.Icons.SCATTER_PLOT, content=ft.Container(content=ft.Column([self.animate_checkbox, ft.ElevatedButton("Plot Correlation", icon=ft.Icons.INSIGHTS, on_click=self.run_correlation_worker), self.stop_layout_button]), padding=ft.padding.only(top=10))),
                ft.Tab(text="States", icon=ft.Icons.TABLE_ROWS, content=ft.Container(content=ft.Column([self.search_input, self.sort_dropdown, self.descending_checkbox, self.only_limited_checkbox, ft.ElevatedButton("Show Table", icon=ft.Icons.SEARCH, on_click=self.run_state_table_worker)]), padding=ft.padding.only(top=10))),
            ], expand=1)

        controls_container = ft.Container(content=ft.Column([ft.Row([ft.Text("Controls", size=24, weight=ft.FontWeight.BOLD)]), ft.Container(content=self.control_tabs, expand=True), ft.Column([ft.Divider(), ft.Text("Options", size=20, weight=ft.FontWeight.BOLD), self.dark_checkbox])]), width=350, padding=ft.padding.all(10), border=ft.border.only(right=ft.BorderSide(1, ft.Colors.OUTLINE)))
        self.results_stack.controls = [self.plot_image, self.data_table]
        self.plot_image.visible = False
        self.data_table.visible = True
        self.data_table.columns = [ft.DataColumn(ft.Text("Info"))]
        self.data_table.rows = [ft.DataRow(cells=[ft.DataCell(ft.Text("Pick a state and a name, or choose a map, then click a button to see results."))])]
        main_area = ft.Container(content=ft.Column([ft.Row([ft.Text("Results", size=24, weight=ft.FontWeight.BOLD)]), self.results_stack, ft.Row([ft.Icon(ft.Icons.INFO_OUTLINE), self.status_text])], expand=True, horizontal_alignment=ft.CrossAxisAlignment.CENTER), expand=True, padding=ft.padding.all(10))
        return ft.Row([controls_container, main_area], expand=True, vertical_alignment=ft.CrossAxisAlignment.STRETCH)

    def _state_changed(self, e=None):
        if self.current_view == "check":
            self.run_check_name_worker()
        elif self.current_view == "suggest":
            self.run_suggest_worker()

    def run_check_name_worker(self, e=None): self.page.run_thread(self.check_name_worker)
    def run_suggest_worker(self, e=None): self.page.run_thread(self.suggest_worker)
    def run_tile_map_worker(self, e=None): self.page.run_thread(self.tile_map_worker)
    def run_summary_worker(self, e=None): self.page.run_thread(self.summary_worker)
    def run_correlation_worker(self, e=None): self.page.run_thread(self.correlation_worker)
    def run_state_table_worker(self, e=None): self.page.run_thread(self.state_table_worker)

    def stop_layout_clicked(self, e=None):
        self.layout_controller.cancel()
        self.stop_layout_button.disabled = True
        self.status_text.value = "Label layout stopped."
        self.page.update()

    def _begin_view(self, view: str):
        if view != "correlation":
            self.layout_controller.cancel()
            self.stop_layout_button.disabled = True
        self.current_view = view

    # --- Workers ---

    def check_name_worker(self):
        self._begin_view("check")
        state, name = self.state_dropdown.value, self.name_input.value or ""
        verdict = self.validator.validate(state, name)
        law = self.rule_table[state]
        self.show_table()
        self.data_table.columns = [ft.DataColumn(ft.Text("Check", weight=ft.FontWeight.BOLD)), ft.DataColumn(ft.Text("Result", weight=ft.FontWeight.BOLD))]
        rows = {
            "Name": name.strip(),
            "State": law.state,
            "Verdict": verdict.status.value,
            "Reason": verdict.reason or "",
            "Max Length": str(law.max_length) if law.max_length is not None else "No limit",
            "Rule": law.rule,
            "Source": law.link or "N/A",
        }
        self.data_table.rows = [ft.DataRow(cells=[ft.DataCell(ft.Text(k)), ft.DataCell(ft.Text(v, color=STATUS_COLORS[verdict.status] if k == "Verdict" else None))]) for k, v in rows.items()]
        self.status_text.value = verdict.message
        self.page.update()
        self._save_state()

    def suggest_worker(self):
        self._begin_view("suggest")
        state, name = self.state_dropdown.value, (self.name_input.value or "").strip()
        if not name:
            self.status_text.value = "Please enter a name."
            self.page.update()
            return
        law = self.rule_table[state]
        suggestion = suggest_spelling(law, name)
        self.show_table()
        self.data_table.columns = [ft.DataColumn(ft.Text("Original")), ft.DataColumn(ft.Text("Suggestion")), ft.DataColumn(ft.Text("Edits")), ft.DataColumn(ft.Text("Sounds Alike"))]
        if suggestion is None:
            message = "already allowed" if self.validator.validate(state, name).ok else "no compliant spelling found"
            self.data_table.rows = [ft.DataRow(cells=[ft.DataCell(ft.Text(name)), ft.DataCell(ft.Text(f"({message})", italic=True)), ft.DataCell(ft.Text("")), ft.DataCell(ft.Text(""))])]
            self.status_text.value = f"No suggestion for '{name}' in {law.state}: {message}."
        else:
            self.data_table.rows = [ft.DataRow(cells=[ft.DataCell(ft.Text(suggestion.original)), ft.DataCell(ft.Text(suggestion.name, weight=ft.FontWeight.BOLD, color=ft.Colors.GREEN)), ft.DataCell(ft.Text(str(suggestion.distance))), ft.DataCell(ft.Text("Yes" if suggestion.sounds_alike else "No"))])]
            self.status_text.value = f"Suggested spelling for {law.state}: '{suggestion.name}'"
        self.page.update()
        self._save_state()

    def tile_map_worker(self):
        self._begin_view("tile_map")
        map_kind = self.map_kind.value
        tiles = self.analyzer.get_tile_grid(map_kind)
        if tiles is None or tiles.empty:
            self.status_text.value = "No tile data to show."
            self.page.update()
            return
        style = config.MAP_STYLES[map_kind]
        fig, _ = tile_map_figure(tiles, style["title"], self.analyzer.get_legend(map_kind), style["note"], dark=self.dark_checkbox.value)
        self.plot_image.src_base64 = fig_to_base64(fig)
        self.show_plot()
        self.status_text.value = style["title"]
        self.page.update()
        self._save_state()

    def summary_worker(self):
        self._begin_view("summary")
        map_kind = self.map_kind.value
        summary = self.analyzer.get_restriction_summary(map_kind)
        if summary is None or summary.empty:
            self.status_text.value = "Could not summarize restrictions."
            self.page.update()
            return
        style = config.MAP_STYLES[map_kind]
        fig, _ = summary_figure(summary, style["title"], dark=self.dark_checkbox.value)
        self.plot_image.src_base64 = fig_to_base64(fig)
        self.show_plot()
        self.status_text.value = f"Summary of {style['title'].lower()}"
        self.page.update()
        self._save_state()

    def correlation_worker(self):
        self._begin_view("correlation")
        data = self.analyzer.get_correlation()
        categories = {p.id: p.category for p in data.points}
        dark = self.dark_checkbox.value

        def draw(snapshot: LayoutSnapshot):
            fig, _ = correlation_figure(snapshot, categories, data.lines, data.x_scale, data.y_scale, data.width, data.height, dark=dark)
            self.plot_image.src_base64 = fig_to_base64(fig)
            self.show_plot()
            self.page.update()

        def on_tick(snapshot: LayoutSnapshot):
            if snapshot.tick % FRAME_EVERY == 0:
                draw(snapshot)

        def on_end(snapshot: LayoutSnapshot):
            draw(snapshot)
            self.stop_layout_button.disabled = True
            self.status_text.value = f"Labels placed after {snapshot.tick} steps. {self._trend_summary(data.lines)}"
            self.page.update()

        animate = self.animate_checkbox.value
        layout = self.layout_controller.start(data.points, data.x_scale, data.y_scale, data.width, data.height,
                                              on_tick=on_tick if animate else None, on_end=on_end)
        if layout is None:
            self.status_text.value = "No states have both a length limit and an accent rule."
            self.page.update()
            return
        self.stop_layout_button.disabled = not animate
        self.status_text.value = "Placing labels..."
        self.page.update()
        layout.run()
        self._save_state()

    @staticmethod
    def _trend_summary(lines) -> str:
        parts = []
        for category in Category:
            line = lines.get(category)
            label = config.CATEGORY_LABELS[category.value]
            parts.append(f"{label}: slope {line.slope:.4f}" if line is not None else f"{label}: {regression_status(line).value}")
        return "; ".join(parts)

    def state_table_worker(self):
        self._begin_view("states")
        table_data = self.analyzer.get_state_table(search=self.search_input.value or "", sort_by=self.sort_dropdown.value or "State",
                                                   ascending=not self.descending_checkbox.value, only_limited=self.only_limited_checkbox.value)
        self.show_table()
        if table_data is None:
            self.data_table.columns = [ft.DataColumn(ft.Text("Error"))]
            self.data_table.rows = [ft.DataRow(cells=[ft.DataCell(ft.Text("Restriction data is not loaded."))])]
            self.page.update()
            return
        accent_levels = config.MAP_STYLES["diacritics"]["levels"]
        self.data_table.columns = [ft.DataColumn(ft.Text(c)) for c in STATE_TABLE_COLUMNS[:6]]
        rows = []
        for _, row in table_data.iterrows():
            cells = [
                row["State"], row["Abbr"],
                "No limit" if pd.isna(row["Max Length"]) else str(row["Max Length"]),
                accent_levels.get(row["Accents"], "No Data"),
                str(row["Length Level"] or "-"),
                "Yes" if row["First Name Only"] else "No",
            ]
            rows.append(ft.DataRow(cells=[ft.DataCell(ft.Text(c)) for c in cells], on_select_changed=self._state_row_selected, data=row["State"]))
        self.data_table.rows = rows
        self.status_text.value = f"Showing {len(table_data)} of {len(self.rule_table)} states"
        self.page.update()
        self._save_state()

    def _state_row_selected(self, e):
        self.state_dropdown.value = e.control.data
        self.control_tabs.selected_index = 0
        self.page.update()
        self.run_check_name_worker()

    def show_plot(self): self.plot_image.visible = True; self.data_table.visible = False; self.results_stack.update()
    def show_table(self): self.plot_image.visible = False; self.data_table.visible = True; self.results_stack.update()


def main(page: ft.Page):
    NameCheckGUI(page)


if __name__ == "__main__":
    ft.app(target=main)
