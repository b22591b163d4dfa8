#!/usr/bin/env python

from dataclasses import dataclass
from enum import Enum


class Category(str, Enum):
    A = "A"  # length limit applies to the first name only
    B = "B"  # length limit applies to the full name


@dataclass(frozen=True)
class DataPoint:
    """One state's (length limit, accent restriction level) pair."""
    id: str
    x: float
    y: float
    category: Category
