#!/usr/bin/env python

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .results import ResultCode
from .rule_table import NamingLaw, RuleTable, default_rule_table

# Diagnostic cascade, checked in this order. Only the first hit is reported.
SYMBOL_RE = re.compile(r"[^\w-]|_")
DIGIT_RE = re.compile(r"\d")
ACCENTED_RE = re.compile(r"[À-ÖØ-öø-ɏ]")

REASON_INVALID_CHARACTERS = "invalid characters"
REASON_NUMBERS = "contains numbers"
REASON_NON_ENGLISH = "non-English characters not allowed"
REASON_STATE_RULES = "violates state-specific rules"


class Status(str, Enum):
    OK = "OK"
    EMPTY = "EMPTY"
    TOO_LONG = "TOO_LONG"
    DISALLOWED = "DISALLOWED"


_CODES = {
    Status.OK: ResultCode.OK,
    Status.EMPTY: ResultCode.INPUT_EMPTY,
    Status.TOO_LONG: ResultCode.INPUT_TOO_LONG,
    Status.DISALLOWED: ResultCode.INPUT_DISALLOWED,
}


@dataclass(frozen=True)
class Verdict:
    status: Status
    message: str
    reason: Optional[str] = None
    limit: Optional[int] = None

    @property
    def ok(self) -> bool:
        return self.status is Status.OK

    @property
    def code(self) -> ResultCode:
        return _CODES[self.status]


def diagnose(law: NamingLaw, name: str) -> str:
    """Explains why a name failed the state's pattern. Advisory text only."""
    if SYMBOL_RE.search(name):
        return REASON_INVALID_CHARACTERS
    if DIGIT_RE.search(name):
        return REASON_NUMBERS
    if any(not law.allows_character(char) for char in ACCENTED_RE.findall(name)):
        return REASON_NON_ENGLISH
    return REASON_STATE_RULES


def check_name(law: NamingLaw, name: str) -> Verdict:
    name = (name or "").strip()
    if not name:
        return Verdict(Status.EMPTY, "Please enter a name.")

    if law.max_length is not None and len(name) > law.max_length:
        return Verdict(
            Status.TOO_LONG,
            f"Name is too long: {law.state} allows at most {law.max_length} characters "
            f"(this name has {len(name)}).",
            limit=law.max_length,
        )

    if not law.matches(name):
        reason = diagnose(law, name)
        return Verdict(Status.DISALLOWED, f"'{name}' is not allowed in {law.state}: {reason}.", reason=reason)

    return Verdict(Status.OK, f"'{name}' is allowed in {law.state}.")


class NameValidator:
    """Validates candidate first names against a rule table."""

    def __init__(self, rule_table: Optional[RuleTable] = None):
        self.rule_table = rule_table or default_rule_table()

    def validate(self, state: str, name: str) -> Verdict:
        return check_name(self.rule_table[state], name)


def validate(state: str, name: str, rule_table: Optional[RuleTable] = None) -> Verdict:
    """Checks `name` against the naming law of `state` (name or abbreviation)."""
    return NameValidator(rule_table).validate(state, name)
