#!/usr/bin/env uv python
# /// script
# dependencies = [
#   "pytest"
# ]
# ///

import json

import pytest

from naming_laws.results import UnknownStateError
from naming_laws.rule_table import NamingLaw, RuleTable, default_rule_table


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({
        "Vermont": {"abbr": "VT", "rule": "Letters only.", "allowed": "^[A-Za-z]+$", "max_length": "40"},
        "Maine": {"abbr": "ME", "rule": "Letters and hyphens.", "allowed": "^[A-Za-z-]+$",
                  "max_length": None, "link": "https://example.org/maine"},
    }), encoding="utf-8")
    return path


def test_load_from_file(rules_file):
    table = RuleTable.load(rules_file)
    assert len(table) == 2
    assert table.states == ["Maine", "Vermont"]
    assert table["Vermont"].max_length == 40
    assert table["Maine"].max_length is None
    assert table["Maine"].link == "https://example.org/maine"
    assert table["Vermont"].link is None


def test_lookup_by_name_or_abbreviation(rules_file):
    table = RuleTable.load(rules_file)
    assert table["VT"] is table["Vermont"]
    assert table.get(" me ") is table["Maine"]
    assert "vt" in table
    assert "Atlantis" not in table
    assert table.get("Atlantis") is None


def test_missing_state_raises(rules_file):
    table = RuleTable.load(rules_file)
    with pytest.raises(UnknownStateError):
        table["Atlantis"]


def test_naming_law_matching():
    law = NamingLaw("Vermont", "VT", "Letters only.", "^[A-Za-z]+$")
    assert law.matches("Ada")
    assert not law.matches("Ada-Lee")
    assert law.allows_character("a")
    assert not law.allows_character("-")


def test_bundled_table_covers_every_state():
    table = default_rule_table()
    assert len(table) == 51
    assert "District of Columbia" in table
    assert all(len(law.abbr) == 2 for law in table)
    assert table["Arizona"].max_length == 141
    assert table["Colorado"].max_length == 75
    assert default_rule_table() is table
