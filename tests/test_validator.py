#!/usr/bin/env uv python
# /// script
# dependencies = [
#   "pandas",
#   "matplotlib",
#   "pytest"
# ]
# ///

import pytest

from naming_laws.results import ResultCode, UnknownStateError
from naming_laws.rule_table import NamingLaw, RuleTable, default_rule_table
from naming_laws.validator import (
    NameValidator, Status, check_name, diagnose, validate,
    REASON_INVALID_CHARACTERS, REASON_NON_ENGLISH, REASON_NUMBERS, REASON_STATE_RULES,
)


@pytest.fixture
def rule_table():
    """A small rule table covering the pattern families the bundled data uses."""
    return RuleTable.from_dict({
        "Alabama": {"abbr": "AL", "rule": "English letters, hyphens and apostrophes.",
                    "allowed": "^[A-Za-z'-]+$", "max_length": 50},
        "Arizona": {"abbr": "AZ", "rule": "English letters, hyphens and apostrophes.",
                    "allowed": "^[A-Za-z'-]+$", "max_length": 141},
        "Colorado": {"abbr": "CO", "rule": "English letters and hyphens.",
                     "allowed": "^[A-Za-z-]+$", "max_length": 75},
        "Texas": {"abbr": "TX", "rule": "Spanish accents allowed.",
                  "allowed": "^[A-Za-zÁÉÍÓÚÜÑáéíóúüñ'-]+$", "max_length": 50},
        "Idaho": {"abbr": "ID", "rule": "No length limit.",
                  "allowed": "^[A-Za-z'-]+$", "max_length": None},
    })


@pytest.fixture
def validator(rule_table):
    return NameValidator(rule_table)

# --- Verdicts ---

def test_hyphenated_name_allowed_in_alabama(validator):
    verdict = validator.validate("Alabama", "Mary-Jane")
    assert verdict.status is Status.OK
    assert verdict.ok
    assert verdict.code is ResultCode.OK
    assert verdict.message == "'Mary-Jane' is allowed in Alabama."


def test_apostrophe_rejected_in_colorado(validator):
    """Colorado drops the apostrophe from the English-letters rule."""
    verdict = validator.validate("Colorado", "O'Brien")
    assert verdict.status is Status.DISALLOWED
    assert verdict.reason == REASON_INVALID_CHARACTERS
    assert verdict.code is ResultCode.INPUT_DISALLOWED
    assert "invalid characters" in verdict.message


def test_too_long_reports_the_limit(validator):
    verdict = validator.validate("Arizona", "a" * 150)
    assert verdict.status is Status.TOO_LONG
    assert verdict.limit == 141
    assert verdict.code is ResultCode.INPUT_TOO_LONG
    assert "141" in verdict.message


def test_name_at_the_limit_is_not_too_long(validator):
    assert validator.validate("Arizona", "a" * 141).ok


@pytest.mark.parametrize("name", ["", "   ", None])
def test_empty_name(validator, name):
    verdict = validator.validate("Alabama", name)
    assert verdict.status is Status.EMPTY
    assert verdict.code is ResultCode.INPUT_EMPTY
    assert verdict.message == "Please enter a name."


def test_surrounding_whitespace_is_ignored(validator):
    verdict = validator.validate("Alabama", "  Mary  ")
    assert verdict.ok
    assert "'Mary'" in verdict.message


def test_length_is_checked_before_pattern(validator):
    """An over-long name full of digits still reports the length limit."""
    verdict = validator.validate("Alabama", "1" * 60)
    assert verdict.status is Status.TOO_LONG


def test_no_length_limit(validator):
    assert validator.validate("Idaho", "a" * 500).ok


def test_lookup_by_abbreviation(validator):
    assert validator.validate("tx", "José").ok


def test_unknown_state_raises(validator):
    with pytest.raises(UnknownStateError) as excinfo:
        validator.validate("Atlantis", "Mary")
    assert excinfo.value.state == "Atlantis"
    assert isinstance(excinfo.value, LookupError)


def test_module_level_validate(rule_table):
    assert validate("Texas", "Peña", rule_table).ok
    assert not validate("Alabama", "Peña", rule_table).ok

# --- Diagnostic cascade ---

@pytest.mark.parametrize("state, name, reason", [
    ("Colorado", "O'Brien", REASON_INVALID_CHARACTERS),
    ("Alabama", "Mary Jane", REASON_INVALID_CHARACTERS),
    ("Alabama", "X_Æ", REASON_INVALID_CHARACTERS),
    ("Alabama", "R2D2", REASON_NUMBERS),
    ("Alabama", "José", REASON_NON_ENGLISH),
    ("Texas", "Zoë", REASON_NON_ENGLISH),
    ("Alabama", "Иван", REASON_STATE_RULES),
])
def test_disallowed_reasons(rule_table, state, name, reason):
    verdict = check_name(rule_table[state], name)
    assert verdict.status is Status.DISALLOWED
    assert verdict.reason == reason


def test_only_first_reason_is_reported(rule_table):
    """A name with both a symbol and a digit is reported for the symbol."""
    assert diagnose(rule_table["Alabama"], "Anne!2") == REASON_INVALID_CHARACTERS


def test_accents_allowed_by_state_are_not_blamed(rule_table):
    """Texas allows é, so 'Joséß' fails on ß alone."""
    law = rule_table["Texas"]
    assert law.allows_character("é")
    assert diagnose(law, "Joséß") == REASON_NON_ENGLISH
    assert check_name(law, "José").ok


def test_hawaiian_okina_on_bundled_rules():
    """The bundled Hawaii rule accepts the ʻokina and kahakō vowels."""
    verdict = validate("Hawaii", "Kaʻiulani")
    assert verdict.ok
    assert validate("HI", "Kēhau").ok

# --- Every bundled state ---

BUNDLED_LAWS = list(default_rule_table())

# Colorado's pattern leaves out the apostrophe, so O'Brien is the one English-letter name it rejects.
APOSTROPHE_EXCEPTIONS = {"Colorado"}


@pytest.mark.parametrize("law", BUNDLED_LAWS, ids=lambda law: law.abbr)
def test_every_state_accepts_plain_english_names(law):
    for name in ("Mary", "Mary-Jane", "Ann"):
        verdict = check_name(law, name)
        assert verdict.status is Status.OK, (law.state, name, verdict.reason)

    verdict = check_name(law, "O'Brien")
    if law.state in APOSTROPHE_EXCEPTIONS:
        assert verdict.reason == REASON_INVALID_CHARACTERS
    else:
        assert verdict.ok


@pytest.mark.parametrize("law", [law for law in BUNDLED_LAWS if law.max_length is not None],
                         ids=lambda law: law.abbr)
def test_every_limit_reports_too_long_regardless_of_content(law):
    """One character over the limit is TOO_LONG even when the name is all digits and symbols."""
    name = ("9#" * law.max_length)[:law.max_length + 1]
    verdict = check_name(law, name)
    assert verdict.status is Status.TOO_LONG
    assert verdict.limit == law.max_length
    assert check_name(law, "a" * law.max_length).ok
