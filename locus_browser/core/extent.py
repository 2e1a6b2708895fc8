from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from .configs import LayerAxisConfig
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

Extent = List[float]


def data_layer_extent(
        axis: LayerAxisConfig,
        records: Sequence[Dict[str, Any]],
        state: Mapping[str, Any],
        dimension: str,
) -> Optional[Extent]:
    """
    Compute the extent one data layer contributes along ``dimension``.

    Order of precedence:
    1. floor and ceiling both set -> exactly that
    2. numeric min/max of ``axis.field`` over the records (non-numeric ignored),
       widened by the buffers and ``min_extent``, then pinned by a lone floor/ceiling
    3. for x only, the region in state
    Returns None when nothing applies.
    """
    if dimension not in ("x", "y"):
        raise ConfigurationError(f"Invalid dimension identifier: {dimension!r}")

    if axis.floor is not None and axis.ceiling is not None:
        return [float(axis.floor), float(axis.ceiling)]

    if axis.field and records:
        values = pd.to_numeric(
            pd.Series([r.get(axis.field) for r in records], dtype=object),
            errors="coerce",
        ).dropna()

        if not values.empty:
            low, high = float(values.min()), float(values.max())
            span = high - low
            candidates = [low, high]
            if axis.lower_buffer is not None:
                candidates.append(low - span * axis.lower_buffer)
            if axis.upper_buffer is not None:
                candidates.append(high + span * axis.upper_buffer)
            if axis.min_extent is not None:
                candidates.extend(axis.min_extent)

            extent = [min(candidates), max(candidates)]
            if axis.floor is not None:
                extent[0] = float(axis.floor)
            if axis.ceiling is not None:
                extent[1] = float(axis.ceiling)
            return extent

        logger.debug(
            "No numeric values for axis field",
            extra={"field": axis.field, "dimension": dimension, "records": len(records)},
        )

    if dimension == "x":
        start, end = state.get("start"), state.get("end")
        if isinstance(start, (int, float)) and isinstance(end, (int, float)):
            return [start, end]

    return None


def union_extents(extents: Iterable[Optional[Sequence[float]]]) -> Optional[Extent]:
    """Smallest interval covering every given extent; None entries are skipped."""
    values: List[float] = []
    for extent in extents:
        if extent:
            values.extend(extent)
    if not values:
        return None
    return [min(values), max(values)]
