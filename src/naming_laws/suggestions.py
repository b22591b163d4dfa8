#!/usr/bin/env python

import unicodedata
from dataclasses import dataclass
from typing import Optional

import Levenshtein
import jellyfish

from .rule_table import NamingLaw
from .validator import check_name


@dataclass(frozen=True)
class Suggestion:
    original: str
    name: str
    distance: int
    sounds_alike: bool


def strip_accents(name: str) -> str:
    decomposed = unicodedata.normalize("NFKD", name)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def suggest_spelling(law: NamingLaw, name: str) -> Optional[Suggestion]:
    """
    Proposes the closest spelling of `name` that the state accepts.

    Characters the state allows are kept as typed, accents are stripped
    from the rest, and anything still not accepted is dropped. Returns
    None when the name is already valid or nothing compliant remains.
    """
    name = (name or "").strip()
    if not name or check_name(law, name).ok:
        return None

    kept = []
    for char in name:
        if law.allows_character(char):
            kept.append(char)
            continue
        kept.extend(c for c in strip_accents(char) if law.allows_character(c))
    candidate = "".join(kept).strip("-'")
    if law.max_length is not None:
        candidate = candidate[:law.max_length]

    if not candidate or candidate == name or not check_name(law, candidate).ok:
        return None

    return Suggestion(
        original=name,
        name=candidate,
        distance=Levenshtein.distance(name, candidate),
        sounds_alike=jellyfish.metaphone(strip_accents(name)) == jellyfish.metaphone(candidate),
    )
