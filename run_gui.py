#!/usr/bin/env python

import flet as ft

from naming_laws import config
from naming_laws.gui import main as gui_main
from naming_laws.logging_config import setup_logging

if __name__ == "__main__":
    """
    This script is the entry point for running the Flet-based Graphical User Interface (GUI).
    """
    setup_logging(config.LOG_LEVEL, config.LOG_FILE)
    ft.app(target=gui_main)
