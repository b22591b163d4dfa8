#!/usr/bin/env python

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .config import RULES_FILE
from .results import UnknownStateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NamingLaw:
    """One state's naming rule: descriptive text, allowed pattern and optional length limit."""
    state: str
    abbr: str
    rule: str
    allowed: str
    max_length: Optional[int] = None
    link: Optional[str] = None

    @property
    def pattern(self) -> re.Pattern:
        return _compile(self.allowed)

    def matches(self, name: str) -> bool:
        return self.pattern.fullmatch(name) is not None

    def allows_character(self, char: str) -> bool:
        # Patterns are single character-class repetitions, so one character is a valid probe.
        return self.pattern.fullmatch(char) is not None


_PATTERN_CACHE: Dict[str, re.Pattern] = {}


def _compile(pattern: str) -> re.Pattern:
    if pattern not in _PATTERN_CACHE:
        _PATTERN_CACHE[pattern] = re.compile(pattern)
    return _PATTERN_CACHE[pattern]


class RuleTable:
    """Read-only mapping of state name to NamingLaw, also addressable by USPS abbreviation."""

    def __init__(self, laws: Dict[str, NamingLaw]):
        self._laws = dict(laws)
        self._by_abbr = {law.abbr.upper(): law for law in self._laws.values()}

    @classmethod
    def from_dict(cls, raw: dict) -> "RuleTable":
        laws = {}
        for state, entry in raw.items():
            max_length = entry.get("max_length")
            laws[state] = NamingLaw(
                state=state,
                abbr=entry["abbr"],
                rule=entry["rule"],
                allowed=entry["allowed"],
                max_length=int(max_length) if max_length is not None else None,
                link=entry.get("link"),
            )
        return cls(laws)

    @classmethod
    def load(cls, path: Path = RULES_FILE) -> "RuleTable":
        with open(path, encoding="utf-8") as f:
            table = cls.from_dict(json.load(f))
        logger.info("Loaded %d naming laws from %s", len(table), path.name)
        return table

    def __getitem__(self, state: str) -> NamingLaw:
        law = self.get(state)
        if law is None:
            raise UnknownStateError(state)
        return law

    def get(self, state: str) -> Optional[NamingLaw]:
        if state in self._laws:
            return self._laws[state]
        return self._by_abbr.get(state.strip().upper())

    def __contains__(self, state: str) -> bool:
        return self.get(state) is not None

    def __iter__(self) -> Iterator[NamingLaw]:
        return iter(self._laws.values())

    def __len__(self) -> int:
        return len(self._laws)

    @property
    def states(self) -> List[str]:
        return sorted(self._laws)


_default_table: Optional[RuleTable] = None


def default_rule_table() -> RuleTable:
    """Returns the bundled rule table, loading it on first use."""
    global _default_table
    if _default_table is None:
        _default_table = RuleTable.load()
    return _default_table
