#!/usr/bin/env uv python
# /// script
# dependencies = [
#   "pandas",
#   "numpy",
#   "matplotlib",
#   "seaborn",
#   "pytest"
# ]
# ///

import base64

import matplotlib.pyplot as plt
import pytest

from naming_laws import config
from naming_laws.charts import correlation_figure, fig_to_base64, summary_figure, tile_map_figure
from naming_laws.data_analyzer import RestrictionAnalyzer
from naming_laws.layout import run_layout

PNG_MAGIC = b"\x89PNG"


@pytest.fixture(scope="module")
def analyzer():
    analyzer = RestrictionAnalyzer()
    analyzer.load_data()
    return analyzer


def test_tile_map_figure(analyzer):
    tiles = analyzer.get_tile_grid("length")
    style = config.MAP_STYLES["length"]
    fig, ax = tile_map_figure(tiles, style["title"], analyzer.get_legend("length"), style["note"], dark=False)
    assert len(ax.patches) == len(tiles)
    assert ax.get_title() == style["title"]
    assert base64.b64decode(fig_to_base64(fig)).startswith(PNG_MAGIC)


def test_summary_figure(analyzer):
    summary = analyzer.get_restriction_summary("diacritics")
    fig, ax = summary_figure(summary, "Accents")
    assert ax.get_xlim() == (0, 100)
    plt.close(fig)


def test_correlation_figure(analyzer):
    data = analyzer.get_correlation()
    result = run_layout(data.points, data.width, data.height, max_ticks=20)
    categories = {p.id: p.category for p in data.points}
    fig, ax = correlation_figure(result.snapshot, categories, data.lines, result.x_scale, result.y_scale,
                                 data.width, data.height)
    assert len(ax.texts) == len(data.points)
    # Screen coordinates: y axis points down
    assert ax.get_ylim() == (data.height, 0)
    assert base64.b64decode(fig_to_base64(fig)).startswith(PNG_MAGIC)
