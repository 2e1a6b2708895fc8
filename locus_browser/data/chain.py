from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class Chain:
    """
    The value threaded through the sources of one resolution.

    - header: metadata passed from one source to the next (e.g. ``ldrefvar``)
    - body: the records produced so far
    """

    header: Dict[str, Any] = field(default_factory=dict)
    body: List[Dict[str, Any]] = field(default_factory=list)
