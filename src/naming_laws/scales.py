#!/usr/bin/env python

import math
from typing import Optional, Sequence, Tuple

from matplotlib.colors import to_hex, to_rgb

from .config import NO_DATA_COLOR


class LinearScale:
    """Maps a numeric domain onto a numeric range, like d3's scaleLinear."""

    def __init__(self, domain: Sequence[float], range_: Sequence[float], clamp: bool = False):
        self.domain: Tuple[float, float] = (float(domain[0]), float(domain[1]))
        self.range: Tuple[float, float] = (float(range_[0]), float(range_[1]))
        self.clamp = clamp

    def _normalize(self, value: float) -> float:
        d0, d1 = self.domain
        if d1 == d0:
            return 0.5
        t = (value - d0) / (d1 - d0)
        if self.clamp:
            t = min(max(t, 0.0), 1.0)
        return t

    def __call__(self, value: float) -> float:
        r0, r1 = self.range
        return r0 + self._normalize(value) * (r1 - r0)

    def invert(self, value: float) -> float:
        r0, r1 = self.range
        d0, d1 = self.domain
        t = 0.5 if r1 == r0 else (value - r0) / (r1 - r0)
        if self.clamp:
            t = min(max(t, 0.0), 1.0)
        return d0 + t * (d1 - d0)

    def __repr__(self):
        return f"LinearScale(domain={self.domain}, range={self.range})"


def color_at(value: Optional[float], domain: Sequence[float], color_range: Sequence[str],
             no_data: str = NO_DATA_COLOR) -> str:
    """Interpolates between two colours in RGB; values outside the domain take the nearest end."""
    if value is None or math.isnan(float(value)) or value <= 0:
        return no_data
    t = LinearScale(domain, (0.0, 1.0), clamp=True)(value)
    start, end = to_rgb(color_range[0]), to_rgb(color_range[1])
    return to_hex(tuple(a + (b - a) * t for a, b in zip(start, end)))
