#!/usr/bin/env python

from enum import Enum


class ResultCode(str, Enum):
    """Expected outcomes reported as typed results rather than raised."""
    OK = "OK"
    INPUT_EMPTY = "INPUT_EMPTY"
    INPUT_TOO_LONG = "INPUT_TOO_LONG"
    INPUT_DISALLOWED = "INPUT_DISALLOWED"
    REGRESSION_UNDEFINED = "REGRESSION_UNDEFINED"
    DEGENERATE_DATASET = "DEGENERATE_DATASET"


class UnknownStateError(LookupError):
    """Raised when a state is not present in the rule table."""

    def __init__(self, state: str):
        super().__init__(f"No naming law on record for '{state}'")
        self.state = state
