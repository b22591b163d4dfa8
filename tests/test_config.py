#!/usr/bin/env uv python
# /// script
# dependencies = [
#   "pytest"
# ]
# ///

import logging

import pytest

from naming_laws import config
from naming_laws.logging_config import setup_logging


def test_env_falls_back_on_missing_or_bad_values(monkeypatch):
    monkeypatch.delenv("NAMING_LAWS_TEST_VALUE", raising=False)
    assert config._env("NAMING_LAWS_TEST_VALUE", 5, int) == 5
    monkeypatch.setenv("NAMING_LAWS_TEST_VALUE", "not-a-number")
    assert config._env("NAMING_LAWS_TEST_VALUE", 5, int) == 5
    monkeypatch.setenv("NAMING_LAWS_TEST_VALUE", "12")
    assert config._env("NAMING_LAWS_TEST_VALUE", 5, int) == 12


def test_log_level_names():
    assert config._log_level("debug") == logging.DEBUG
    assert config._log_level(" Warning ") == logging.WARNING
    with pytest.raises(ValueError):
        config._log_level("loud")


def test_bundled_data_files_exist():
    for style in config.MAP_STYLES.values():
        assert style["file"].exists()
    assert config.RULES_FILE.exists()


def test_setup_logging_writes_to_file(tmp_path):
    log_file = tmp_path / "naming_laws.log"
    logger = setup_logging(logging.DEBUG, str(log_file), stream=False)
    logging.getLogger("naming_laws.layout").debug("layout started")
    for handler in logger.handlers:
        handler.flush()
    text = log_file.read_text(encoding="utf-8")
    assert "Logging to FileHandler" in text
    assert "layout started" in text
    assert not any(type(h) is logging.StreamHandler for h in logger.handlers)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_setup_logging_is_repeatable():
    logger = setup_logging(logging.INFO, stream=False)
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0], logging.NullHandler)
    logger = setup_logging(logging.INFO, stream=False)
    assert len(logger.handlers) == 1
