#!/usr/bin/env python

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import pandas as pd

from . import config
from .layout import Margins, build_scales
from .models import Category, DataPoint
from .regression import RegressionLine, fit_by_category
from .rule_table import RuleTable
from .scales import LinearScale, color_at

logger = logging.getLogger(__name__)

MAP_KINDS = tuple(config.MAP_STYLES)

STATE_TABLE_COLUMNS = ["State", "Abbr", "Max Length", "Accents", "Length Level", "First Name Only", "Rule", "Link"]


@dataclass(frozen=True)
class CorrelationData:
    points: List[DataPoint]
    x_scale: LinearScale
    y_scale: LinearScale
    lines: Dict[Category, Optional[RegressionLine]]
    width: float
    height: float


def _style(map_kind: str) -> dict:
    if map_kind not in config.MAP_STYLES:
        raise ValueError(f"Unknown map '{map_kind}', expected one of {MAP_KINDS}")
    return config.MAP_STYLES[map_kind]


class RestrictionAnalyzer:
    """Loads the rule table and tile-grid datasets and derives every view the front ends show."""

    def __init__(self, rule_table: Optional[RuleTable] = None, grid_files: Optional[Dict[str, object]] = None):
        self.rule_table = rule_table
        self.grid_files = grid_files or {kind: style["file"] for kind, style in config.MAP_STYLES.items()}
        self.grids: Dict[str, pd.DataFrame] = {}
        self.states_df: Optional[pd.DataFrame] = None

    def load_data(self) -> str:
        if self.states_df is not None:
            return "Data already loaded."

        if self.rule_table is None:
            self.rule_table = RuleTable.load()

        for kind, path in self.grid_files.items():
            self.grids[kind] = self._read_grid(path)

        self.states_df = self._build_states_df()
        logger.info("Loaded %d states and %d grid maps", len(self.states_df), len(self.grids))
        return f"Data loaded for {len(self.states_df)} states."

    @staticmethod
    def _read_grid(path) -> pd.DataFrame:
        grid = pd.read_csv(path)
        grid = grid.rename(columns={
            "abbr": "Abbr", "row": "Row", "col": "Col", "value": "Value",
            "asterisk": "Asterisk", "first_name_only": "FirstNameOnly",
        })
        grid["Abbr"] = grid["Abbr"].str.upper()
        grid["Value"] = pd.to_numeric(grid["Value"], errors="coerce").fillna(0).astype(int)
        for column in ("Asterisk", "FirstNameOnly"):
            if column in grid.columns:
                grid[column] = grid[column].astype(str).str.strip().str.lower().eq("true")
        return grid

    def _build_states_df(self) -> pd.DataFrame:
        rows = [{
            "State": law.state,
            "Abbr": law.abbr.upper(),
            "Max Length": law.max_length,
            "Rule": law.rule,
            "Link": law.link or "",
        } for law in self.rule_table]
        states = pd.DataFrame(rows, columns=["State", "Abbr", "Max Length", "Rule", "Link"])
        states["Max Length"] = states["Max Length"].astype("Int64")

        diacritics = self.grids.get("diacritics")
        accents = diacritics.set_index("Abbr")["Value"] if diacritics is not None else pd.Series(dtype=int)
        states["Accents"] = states["Abbr"].map(accents).fillna(0).astype(int)

        length = self.grids.get("length")
        if length is not None and "FirstNameOnly" in length.columns:
            indexed = length.set_index("Abbr")
            states["Length Level"] = states["Abbr"].map(indexed["Value"]).fillna(0).astype(int)
            states["First Name Only"] = states["Abbr"].map(indexed["FirstNameOnly"]).fillna(False).astype(bool)
        else:
            states["Length Level"] = 0
            states["First Name Only"] = False
        return states[STATE_TABLE_COLUMNS]

    def get_tile_grid(self, map_kind: str) -> Optional[pd.DataFrame]:
        """Tiles for one map: grid cell, level, label and fill colour per state."""
        style = _style(map_kind)
        grid = self.grids.get(map_kind)
        if grid is None or self.states_df is None:
            return None

        tiles = grid.merge(self.states_df[["Abbr", "State"]], on="Abbr", how="left")
        tiles["State"] = tiles["State"].fillna(tiles["Abbr"])
        tiles["Label"] = tiles["Abbr"] + tiles["Asterisk"].map({True: "*", False: ""})
        tiles["Color"] = tiles["Value"].apply(lambda v: color_at(v, style["domain"], style["colors"]))
        return tiles[["Abbr", "State", "Row", "Col", "Value", "Asterisk", "Label", "Color"]].sort_values(
            by=["Row", "Col"]).reset_index(drop=True)

    def get_legend(self, map_kind: str) -> List[Tuple[str, str]]:
        style = _style(map_kind)
        return [(label, color_at(level, style["domain"], style["colors"])) for level, label in style["levels"].items()]

    def get_restriction_summary(self, map_kind: str) -> Optional[pd.DataFrame]:
        """Number and share of states at each restriction level."""
        style = _style(map_kind)
        grid = self.grids.get(map_kind)
        if grid is None:
            return None

        levels = dict(style["levels"])
        counts = grid["Value"].where(grid["Value"].isin(list(levels)), 0).value_counts()
        summary = pd.DataFrame({"Level": [0] + list(levels)})
        summary["Label"] = summary["Level"].map({0: "No Data", **levels})
        summary["States"] = summary["Level"].map(counts).fillna(0).astype(int)
        total = summary["States"].sum()
        summary["Percentage"] = summary["States"] / (total if total else 1) * 100
        summary["Color"] = summary["Level"].apply(lambda v: color_at(v, style["domain"], style["colors"]))
        return summary[summary["States"] > 0].reset_index(drop=True)

    def get_data_points(self) -> List[DataPoint]:
        """One point per state with a length limit and a known accent restriction level."""
        if self.states_df is None:
            return []
        known = self.states_df[self.states_df["Max Length"].notna() & (self.states_df["Accents"] > 0)]
        known = known[known["Max Length"] > 0]
        return [
            DataPoint(
                id=row.Abbr,
                x=float(row["Max Length"]),
                y=float(row.Accents),
                category=Category.A if row["First Name Only"] else Category.B,
            )
            for _, row in known.iterrows()
        ]

    def get_correlation(self, width: float = config.VIEWPORT_WIDTH, height: float = config.VIEWPORT_HEIGHT,
                        margins: Optional[Margins] = None) -> CorrelationData:
        points = self.get_data_points()
        x_scale, y_scale = build_scales(points, width, height, margins)
        return CorrelationData(points, x_scale, y_scale, fit_by_category(points), width, height)

    def get_state_table(self, search: str = "", sort_by: str = "State", ascending: bool = True,
                        only_limited: bool = False) -> Optional[pd.DataFrame]:
        if self.states_df is None:
            return None
        if sort_by not in STATE_TABLE_COLUMNS:
            raise ValueError(f"Cannot sort by '{sort_by}'")

        table = self.states_df.copy()
        search = (search or "").strip().lower()
        if search:
            mask = (
                table["State"].str.lower().str.contains(search, regex=False)
                | table["Abbr"].str.lower().eq(search)
                | table["Rule"].str.lower().str.contains(search, regex=False)
            )
            table = table[mask]
        if only_limited:
            table = table[table["Max Length"].notna()]
        by = [sort_by] if sort_by == "State" else [sort_by, "State"]
        return table.sort_values(by=by, ascending=[ascending] + [True] * (len(by) - 1),
                                 na_position="last").reset_index(drop=True)
