#!/usr/bin/env python

import os
import logging
from pathlib import Path


def _env(name, default, cast=str):
    """Read an environment variable, falling back to *default* when unset or malformed."""
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return cast(raw)
    except (ValueError, TypeError):
        return default


def _log_level(raw: str) -> int:
    level = logging.getLevelName(raw.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {raw}")
    return level


# --- Configuration ---
DATA_DIR = Path(__file__).resolve().parent / "data"
RULES_FILE = DATA_DIR / "naming_laws.json"
DIACRITICS_GRID_FILE = DATA_DIR / "state_grid_diacritics.csv"
LENGTH_GRID_FILE = DATA_DIR / "state_grid_length.csv"

LOG_LEVEL = _env("NAMING_LAWS_LOG_LEVEL", logging.INFO, _log_level)
LOG_FILE = _env("NAMING_LAWS_LOG_FILE", None)

# --- Map styles ---
NO_DATA_COLOR = "#dddddd"

MAP_STYLES = {
    "diacritics": {
        "title": "Accents Permitted in First Names",
        "file": DIACRITICS_GRID_FILE,
        "domain": (1, 3),
        "colors": ("#3fa9f5", "#14183d"),
        "levels": {1: "No Restrictions", 2: "Some Restrictions", 3: "Many Restrictions"},
        "note": "Map visualizes restriction levels from light blue to dark blue. "
                "Asterisks indicate that the data is not from an official source.",
    },
    "length": {
        "title": "First Name Length Restrictions",
        "file": LENGTH_GRID_FILE,
        "domain": (1, 5),
        "colors": ("#ff0000", "#300000"),
        "levels": {1: "Lesser (1)", 2: "Less (2)", 3: "Moderate (3)", 4: "Great (4)", 5: "Greater (5)"},
        "note": "Map visualizes restriction levels from 1 (lightest red) to 5 (darkest red). "
                "Grey tiles indicate no specific data for this scale or state not included.",
    },
}

# --- Correlation plot ---
VIEWPORT_WIDTH = 600
VIEWPORT_HEIGHT = 400
MARGINS = {"top": 20, "right": 30, "bottom": 40, "left": 50}
CATEGORY_LABELS = {"A": "Limit on first name", "B": "Limit on full name"}
CATEGORY_COLORS = {"A": "#3fa9f5", "B": "#ff0000"}

# Label layout forces, tuned for ~50 two-letter labels in the default viewport.
NODE_RADIUS = 6.0
LINK_DISTANCE = 12.0
LINK_STRENGTH = 1.0
CHARGE = -20.0
CENTER_STRENGTH = 0.02
ALPHA_MIN = 0.001
VELOCITY_DECAY = 0.4
LAYOUT_SEED = 7
ANIMATION_INTERVAL = 1 / 30
