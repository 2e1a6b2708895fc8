from __future__ import annotations

import math
from typing import List, Sequence, Tuple

from .ticks import pretty_ticks


class LinearScale:
    """
    Linear map from a data domain onto a pixel range.

    A zero-width domain (or range, for ``invert``) maps everything onto the
    start of the other side.
    """

    def __init__(self, domain: Sequence[float], range: Sequence[float]):
        self.domain: Tuple[float, float] = (float(domain[0]), float(domain[1]))
        self.range: Tuple[float, float] = (float(range[0]), float(range[1]))

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return r0
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    def invert(self, pixel: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if r1 == r0:
            return d0
        return d0 + (float(pixel) - r0) / (r1 - r0) * (d1 - d0)

    def ticks(self, count: int = 5) -> List[float]:
        lo, hi = sorted(self.domain)
        return [t for t in pretty_ticks([lo, hi], "both", count) if lo <= t <= hi]

    def __repr__(self) -> str:
        return f"LinearScale(domain={list(self.domain)}, range={list(self.range)})"


def constrain(value: float, limit_exponent: int) -> float:
    """
    Keep a procedurally generated ratio finite and within
    ``10**-limit_exponent .. 10**limit_exponent`` in magnitude, keeping its sign.
    """
    neg_min = -(10 ** limit_exponent)
    neg_max = -(10 ** -limit_exponent)
    pos_min = 10 ** -limit_exponent
    pos_max = 10 ** limit_exponent
    if value == math.inf:
        return pos_max
    if value == -math.inf:
        return neg_min
    if value == 0:
        return pos_min
    if value > 0:
        return max(min(value, pos_max), pos_min)
    if value < 0:
        return max(min(value, neg_max), neg_min)
    return value
