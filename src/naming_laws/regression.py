#!/usr/bin/env python

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

import numpy as np

from .models import Category, DataPoint
from .results import ResultCode


@dataclass(frozen=True)
class RegressionLine:
    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept

    def segment(self, x0: float, x1: float) -> Tuple[Tuple[float, float], Tuple[float, float]]:
        """Endpoints of the line between two x values, for drawing."""
        return (x0, self.predict(x0)), (x1, self.predict(x1))


def fit(points: Iterable[Tuple[float, float]]) -> Optional[RegressionLine]:
    """
    Ordinary least-squares fit of y on x.

    Returns None when the line is undefined: fewer than two points, all x
    values identical, or any non-finite coefficient.
    """
    xy = np.asarray(list(points), dtype=float)
    if len(xy) < 2:
        return None
    x, y = xy[:, 0], xy[:, 1]
    if np.ptp(x) == 0:
        return None

    n = len(xy)
    sum_x, sum_y = x.sum(), y.sum()
    sum_xy, sum_xx = (x * y).sum(), (x * x).sum()

    with np.errstate(divide="ignore", invalid="ignore"):
        slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x ** 2)
        intercept = (sum_y - slope * sum_x) / n

    if not (np.isfinite(slope) and np.isfinite(intercept)):
        return None
    return RegressionLine(float(slope), float(intercept))


def regression_status(line: Optional[RegressionLine]) -> ResultCode:
    return ResultCode.OK if line is not None else ResultCode.REGRESSION_UNDEFINED


def fit_by_category(points: Sequence[DataPoint]) -> Dict[Category, Optional[RegressionLine]]:
    """Fits one line per category; categories with no usable fit map to None."""
    return {
        category: fit((p.x, p.y) for p in points if p.category == category)
        for category in Category
    }
