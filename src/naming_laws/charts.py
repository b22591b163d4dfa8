#!/usr/bin/env python

import base64
from io import BytesIO
from typing import Dict, List, Optional, Tuple

import matplotlib
matplotlib.use("Agg")  # Use the Agg backend for thread-safe plotting
import matplotlib.pyplot as plt
from matplotlib.patches import Patch, Rectangle
import pandas as pd
import seaborn as sns

from . import config
from .layout import LayoutSnapshot
from .models import Category
from .regression import RegressionLine
from .scales import LinearScale


def create_plot(dark: bool = True, show_grid: bool = True, figsize=(10, 6)):
    text_color = "white" if dark else "black"
    theme_style = "darkgrid" if dark else "whitegrid"
    if not show_grid:
        theme_style = "dark" if dark else "white"
    sns.set_theme(style=theme_style)

    matplotlib.rcParams.update({
        'text.color': text_color,
        'axes.labelcolor': text_color,
        'xtick.color': text_color,
        'ytick.color': text_color,
        'axes.edgecolor': text_color,
        'axes.titlecolor': text_color,
    })

    fig, ax = plt.subplots(figsize=figsize)
    return fig, ax


def fig_to_base64(fig) -> str:
    buf = BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight", transparent=True)
    plt.close(fig)
    return base64.b64encode(buf.getvalue()).decode("utf-8")


def tile_map_figure(tiles: pd.DataFrame, title: str, legend: List[Tuple[str, str]], note: str = "",
                    dark: bool = True):
    """Square tile-grid map: one coloured square per state at its (row, col) cell."""
    fig, ax = create_plot(dark=dark, show_grid=False, figsize=(10, 7))
    for tile in tiles.itertuples():
        ax.add_patch(Rectangle((tile.Col - 1, tile.Row - 1), 0.92, 0.92, facecolor=tile.Color, edgecolor="none"))
        ax.text(tile.Col - 1 + 0.46, tile.Row - 1 + 0.46, tile.Label, ha="center", va="center",
                color="white", fontsize=9, fontweight="bold")

    ax.set_xlim(-0.1, tiles["Col"].max() + 0.1)
    ax.set_ylim(tiles["Row"].max() + 0.1, -0.1)
    ax.set_aspect("equal")
    ax.axis("off")
    ax.set_title(title, fontsize=16)
    handles = [Patch(facecolor=color, label=label) for label, color in legend]
    ax.legend(handles=handles, loc="upper center", bbox_to_anchor=(0.5, -0.02), ncol=len(handles), frameon=False)
    if note:
        fig.text(0.5, 0.02, note, ha="center", fontsize=8, wrap=True)
    return fig, ax


def summary_figure(summary: pd.DataFrame, title: str, dark: bool = True):
    """Horizontal percentage bars, one per restriction level."""
    fig, ax = create_plot(dark=dark, figsize=(10, 4))
    palette = dict(zip(summary["Label"], summary["Color"]))
    sns.barplot(x="Percentage", y="Label", data=summary, ax=ax, hue="Label", palette=palette, legend=False)
    for i, row in enumerate(summary.itertuples()):
        ax.text(row.Percentage + 0.5, i, f"{row.Percentage:.0f}% ({row.States})", va="center")
    ax.set_xlim(0, 100)
    ax.set_xlabel("% of States")
    ax.set_ylabel("")
    ax.set_title(title, fontsize=16)
    plt.tight_layout()
    return fig, ax


def correlation_figure(snapshot: LayoutSnapshot, categories: Dict[str, Category],
                       lines: Dict[Category, Optional[RegressionLine]],
                       x_scale: LinearScale, y_scale: LinearScale,
                       width: float, height: float, dark: bool = True):
    """
    Scatter of anchors with force-placed labels, drawn in viewport pixels.

    `categories` maps node id to its category; regression lines are mapped
    through the same scales as the anchors.
    """
    fig, ax = create_plot(dark=dark, figsize=(10, 10 * height / width))
    anchors, labels = snapshot.anchors(), snapshot.labels()

    for node_id, anchor in anchors.items():
        label = labels[node_id]
        color = config.CATEGORY_COLORS[categories[node_id].value]
        ax.plot([anchor.x, label.x], [anchor.y, label.y], color="grey", linewidth=0.5, alpha=0.6)
        ax.scatter([anchor.x], [anchor.y], s=30, color=color, zorder=3)
        ax.text(label.x, label.y, node_id, fontsize=7, ha="center", va="center", zorder=4)

    for category, line in lines.items():
        if line is None:
            continue
        (x0, y0), (x1, y1) = line.segment(*x_scale.domain)
        ax.plot([x_scale(x0), x_scale(x1)], [y_scale(y0), y_scale(y1)], linestyle="--",
                color=config.CATEGORY_COLORS[category.value], label=f"{config.CATEGORY_LABELS[category.value]} (trend)")

    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    x_ticks = [x_scale.domain[0] + i * (x_scale.domain[1] - x_scale.domain[0]) / 4 for i in range(5)]
    ax.set_xticks([x_scale(t) for t in x_ticks], [f"{t:.0f}" for t in x_ticks])
    y_levels = [level for level in (1, 2, 3) if y_scale.domain[0] <= level <= y_scale.domain[1]]
    ax.set_yticks([y_scale(level) for level in y_levels],
                  [config.MAP_STYLES["diacritics"]["levels"][level] for level in y_levels])
    ax.set_xlabel("Maximum Name Length (characters)")
    ax.set_ylabel("Accent Restrictions")
    ax.set_title("Name Length Limits vs. Accent Restrictions", fontsize=16)
    if any(line is not None for line in lines.values()):
        ax.legend()
    return fig, ax
