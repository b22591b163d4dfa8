#!/usr/bin/env python

from naming_laws import config
from naming_laws.logging_config import setup_logging
from naming_laws.tui import NameCheckApp

if __name__ == "__main__":
    """
    This script is the entry point for running the Textual User Interface (TUI).
    Textual owns the terminal, so logs only go to NAMING_LAWS_LOG_FILE when it is set.
    """
    setup_logging(config.LOG_LEVEL, config.LOG_FILE, stream=False)
    app = NameCheckApp()
    app.run()
