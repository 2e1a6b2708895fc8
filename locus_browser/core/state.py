"""
Shared plot state and region validation.

The state is one mutable mapping owned by the plot and held by reference by
every panel and data layer. Top-level keys are the region (``chr``, ``start``,
``end``) plus free-form parameters such as ``ldrefvar``. Panels keep a
sub-namespace under their id, data layers under ``"<panel>.<layer>"``.
"""
from __future__ import annotations

import copy
import logging
import math
import re
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Tuple

from .exceptions import ValidationIssue

logger = logging.getLogger(__name__)

ELEMENT_STATUSES = ("highlighted", "selected")

_LEADING_INT = re.compile(r"^\s*([-+]?\d+)")


class PlotState(MutableMapping[str, Any]):

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = dict(initial or {})

    # MutableMapping protocol
    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"PlotState({self._data!r})"

    # ------------------------------------------------------------------
    # Region helpers
    # ------------------------------------------------------------------

    @property
    def chr(self) -> Any:
        return self._data.get("chr")

    @property
    def start(self) -> Any:
        return self._data.get("start")

    @property
    def end(self) -> Any:
        return self._data.get("end")

    @property
    def region(self) -> Optional[Tuple[Any, int, int]]:
        if self.chr is None or self.start is None or self.end is None:
            return None
        return self.chr, self.start, self.end

    # ------------------------------------------------------------------
    # Sub-namespaces
    # ------------------------------------------------------------------

    def namespace(self, state_id: str) -> Dict[str, Any]:
        """Return (creating if needed) the sub-dict for a panel or data layer."""
        ns = self._data.get(state_id)
        if not isinstance(ns, dict):
            ns = {}
            self._data[state_id] = ns
        return ns

    def element_ids(self, state_id: str, status: str) -> List[str]:
        """Ordered element id list for a status, created on first access."""
        return self.namespace(state_id).setdefault(status, [])

    def drop_panel(self, panel_id: str) -> None:
        """Delete a panel's namespace and every layer namespace under it."""
        prefix = f"{panel_id}."
        for key in [k for k in self._data if k == panel_id or k.startswith(prefix)]:
            del self._data[key]

    def snapshot(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def replace(self, new_state: Dict[str, Any]) -> None:
        """Write every key of ``new_state`` into this instance, keeping identity."""
        for key, value in new_state.items():
            self._data[key] = value

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> PlotState:
        return cls(copy.deepcopy(data or {}))


# ---------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------


def _to_int(value: Any) -> Optional[int]:
    """Lenient integer coercion: numbers truncate, strings use their leading digits."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate_state(
        new_state: Dict[str, Any],
        min_region_scale: Optional[int] = None,
        max_region_scale: Optional[int] = None,
) -> Tuple[Dict[str, Any], List[ValidationIssue]]:
    """
    Repair a candidate state so its region is usable.

    The region is only touched when ``chr``, ``start`` and ``end`` are all
    present. Bad input is coerced rather than rejected; every change is
    reported as a ValidationIssue (and logged at DEBUG).

    :param new_state: candidate state, not modified
    :param min_region_scale: smallest allowed ``end - start``
    :param max_region_scale: largest allowed ``end - start``
    :returns: the repaired copy and the list of repairs made
    """
    state = dict(new_state or {})
    issues: List[ValidationIssue] = []

    if state.get("chr") is None or state.get("start") is None or state.get("end") is None:
        return state, issues

    start = _to_int(state["start"])
    end = _to_int(state["end"])
    if start is not None:
        start = max(start, 1)
    if end is not None:
        end = max(end, 1)

    if start is None and end is None:
        issues.append(ValidationIssue("region_not_numeric", "start and end are not numbers; reset to 1"))
        start = end = 1
        midpoint = 0.5
        scale = 0
    elif start is None or end is None:
        issues.append(ValidationIssue("region_bound_missing", "one region bound is not a number; copied the other"))
        midpoint = start if start is not None else end
        start = end = midpoint
        scale = 0
    else:
        if end < start:
            issues.append(ValidationIssue("region_inverted", f"start {start} > end {end}; swapped"))
            start, end = end, start
        midpoint = _round_half_up((start + end) / 2)
        scale = end - start

    if min_region_scale is not None and scale < min_region_scale:
        issues.append(ValidationIssue(
            "region_too_small", f"region width {scale} < {min_region_scale}; expanded",
        ))
        start = max(int(math.floor(midpoint - min_region_scale // 2)), 1)
        end = start + int(min_region_scale)
    elif max_region_scale is not None and scale > max_region_scale:
        issues.append(ValidationIssue(
            "region_too_large", f"region width {scale} > {max_region_scale}; shrunk",
        ))
        start = max(int(math.floor(midpoint - max_region_scale // 2)), 1)
        end = start + int(max_region_scale)

    state["start"], state["end"] = start, end

    for issue in issues:
        logger.debug("State repaired", extra={"code": issue.code, "detail": issue.message})

    return state, issues
