#!/usr/bin/env uv python
# /// script
# dependencies = [
#   "pandas",
#   "numpy",
#   "matplotlib",
#   "pytest"
# ]
# ///

import pandas as pd
import pytest

from naming_laws.config import NO_DATA_COLOR
from naming_laws.data_analyzer import RestrictionAnalyzer, STATE_TABLE_COLUMNS
from naming_laws.models import Category


@pytest.fixture(scope="module")
def analyzer():
    """A RestrictionAnalyzer loaded with the bundled rule table and tile grids."""
    analyzer = RestrictionAnalyzer()
    analyzer.load_data()
    return analyzer


@pytest.fixture
def small_analyzer(tmp_path):
    """An analyzer over a three-state dataset written to a temp directory."""
    from naming_laws.rule_table import RuleTable

    table = RuleTable.from_dict({
        "Alpha": {"abbr": "AA", "rule": "Letters.", "allowed": "^[A-Za-z]+$", "max_length": 40},
        "Beta": {"abbr": "BB", "rule": "Letters and accents.", "allowed": "^[A-Za-zé]+$", "max_length": 80},
        "Gamma": {"abbr": "GG", "rule": "Letters.", "allowed": "^[A-Za-z]+$", "max_length": None},
    })
    diacritics = tmp_path / "diacritics.csv"
    diacritics.write_text("abbr,row,col,value,asterisk\naa,1,1,3,false\nBB,1,2,2,TRUE\nGG,2,1,3,false\n")
    length = tmp_path / "length.csv"
    length.write_text("abbr,row,col,value,asterisk,first_name_only\n"
                      "AA,1,1,5,false,true\nBB,1,2,2,false,false\nGG,2,1,0,false,true\n")
    analyzer = RestrictionAnalyzer(table, {"diacritics": diacritics, "length": length})
    analyzer.load_data()
    return analyzer


def test_load_data(analyzer):
    assert analyzer.states_df is not None
    assert len(analyzer.states_df) == 51
    assert list(analyzer.states_df.columns) == STATE_TABLE_COLUMNS
    assert analyzer.load_data() == "Data already loaded."


def test_views_before_loading():
    analyzer = RestrictionAnalyzer()
    assert analyzer.get_tile_grid("diacritics") is None
    assert analyzer.get_data_points() == []
    assert analyzer.get_state_table() is None

# --- Maps ---

def test_tile_grid(analyzer):
    tiles = analyzer.get_tile_grid("diacritics")
    assert len(tiles) == 51
    assert tiles["Abbr"].is_unique
    assert not tiles.duplicated(["Row", "Col"]).any()
    arizona = tiles.set_index("Abbr").loc["AZ"]
    assert arizona["State"] == "Arizona"
    assert arizona["Color"] == "#14183d"


def test_tile_grid_marks_unofficial_data(small_analyzer):
    tiles = small_analyzer.get_tile_grid("diacritics").set_index("Abbr")
    assert tiles.loc["BB", "Label"] == "BB*"
    assert tiles.loc["AA", "Label"] == "AA"
    assert tiles.loc["AA", "State"] == "Alpha"


def test_tile_grid_no_data_colour(small_analyzer):
    tiles = small_analyzer.get_tile_grid("length").set_index("Abbr")
    assert tiles.loc["GG", "Color"] == NO_DATA_COLOR
    assert tiles.loc["AA", "Color"] == "#300000"


def test_unknown_map_kind(analyzer):
    with pytest.raises(ValueError):
        analyzer.get_tile_grid("population")


def test_legend(analyzer):
    legend = analyzer.get_legend("length")
    assert [label for label, _ in legend] == ["Lesser (1)", "Less (2)", "Moderate (3)", "Great (4)", "Greater (5)"]
    assert legend[0][1] == "#ff0000"
    assert legend[-1][1] == "#300000"


def test_restriction_summary(analyzer):
    summary = analyzer.get_restriction_summary("diacritics")
    assert summary["States"].sum() == 51
    assert summary["Percentage"].sum() == pytest.approx(100)
    assert (summary["States"] > 0).all()
    assert "No Data" not in summary["Label"].tolist()


def test_restriction_summary_counts_missing_data(small_analyzer):
    summary = small_analyzer.get_restriction_summary("length").set_index("Label")
    assert summary.loc["No Data", "States"] == 1
    assert summary.loc["Greater (5)", "States"] == 1
    assert summary.loc["Less (2)", "Percentage"] == pytest.approx(100 / 3)

# --- Correlation ---

def test_data_points(small_analyzer):
    points = {p.id: p for p in small_analyzer.get_data_points()}
    assert set(points) == {"AA", "BB"}
    assert points["AA"].x == 40
    assert points["AA"].y == 3
    assert points["AA"].category is Category.A
    assert points["BB"].category is Category.B


def test_bundled_data_points(analyzer):
    points = analyzer.get_data_points()
    assert len(points) == 40
    assert all(p.x > 0 and p.y > 0 for p in points)
    arizona = next(p for p in points if p.id == "AZ")
    assert (arizona.x, arizona.y, arizona.category) == (141, 3, Category.B)


def test_correlation(analyzer):
    data = analyzer.get_correlation()
    assert set(data.lines) == {Category.A, Category.B}
    assert data.width == 600 and data.height == 400
    for p in data.points:
        assert 0 <= data.x_scale(p.x) <= data.width
        assert 0 <= data.y_scale(p.y) <= data.height

# --- State table ---

def test_state_table_search(analyzer):
    table = analyzer.get_state_table(search="colorado")
    assert table["State"].tolist() == ["Colorado"]


def test_state_table_search_by_abbreviation(small_analyzer):
    assert small_analyzer.get_state_table(search="bb")["State"].tolist() == ["Beta"]


def test_state_table_only_limited(analyzer):
    table = analyzer.get_state_table(only_limited=True)
    assert len(table) == 40
    assert table["Max Length"].notna().all()


def test_state_table_sort(analyzer):
    table = analyzer.get_state_table(sort_by="Max Length", ascending=False)
    assert table.iloc[0]["State"] == "Arizona"
    assert pd.isna(table.iloc[-1]["Max Length"])

    alphabetical = analyzer.get_state_table()
    assert alphabetical["State"].tolist() == sorted(alphabetical["State"])


def test_state_table_bad_sort_column(analyzer):
    with pytest.raises(ValueError):
        analyzer.get_state_table(sort_by="Population")
