from __future__ import annotations

import math
from typing import List, Sequence, Union

Number = Union[int, float]

CLIP_RANGES = ("low", "high", "both", "neither")


def pretty_ticks(
        rng: Sequence[Number],
        clip_range: str = "neither",
        target_tick_count: int = 5,
) -> List[Number]:
    """
    Generate evenly spaced, human-friendly tick values covering a range.

    The step is one of 1, 2, 5 or 10 times a power of ten, picked with the same
    biases R's ``pretty()`` uses. The first tick is at or below ``rng[0]`` and
    the last at or above ``rng[1]``.

    :param rng: two numbers, low then high
    :param clip_range: "low", "high" or "both" drop a first/last tick that
        falls outside the range; "neither" keeps them
    :param target_tick_count: the number of ticks to aim for
    """
    if clip_range not in CLIP_RANGES:
        clip_range = "neither"

    try:
        target = int(target_tick_count)
    except (TypeError, ValueError):
        target = 5
    if target < 1:
        target = 5

    low, high = float(rng[0]), float(rng[1])
    span = abs(low - high)
    if span == 0 or not math.isfinite(span):
        return [rng[0]]

    min_n = target / 3
    shrink_sml = 0.75
    high_u_bias = 1.5
    u5_bias = 0.5 + 1.5 * high_u_bias

    c = span / target
    if math.log10(span) < -2:
        c = (span * shrink_sml) / min_n

    base = 10 ** math.floor(math.log10(c))
    decimals = 0
    if 0 < base < 1:
        decimals = abs(round(math.log10(base)))

    unit = base
    if (2 * base) - c < high_u_bias * (c - unit):
        unit = 2 * base
        if (5 * base) - c < u5_bias * (c - unit):
            unit = 5 * base
            if (10 * base) - c < high_u_bias * (c - unit):
                unit = 10 * base

    ticks: List[Number] = []
    i = round(math.floor(low / unit) * unit, decimals)
    while i < high:
        ticks.append(_tidy(i, decimals))
        i += unit
        if decimals > 0:
            i = round(i, decimals)
    ticks.append(_tidy(i, decimals))

    if clip_range in ("low", "both") and ticks[0] < low:
        ticks = ticks[1:]
    if clip_range in ("high", "both") and ticks[-1] > high:
        ticks.pop()

    return ticks


def _tidy(value: float, decimals: int) -> Number:
    if decimals == 0 and float(value).is_integer():
        return int(value)
    return value
