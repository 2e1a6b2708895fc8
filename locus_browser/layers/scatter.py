from __future__ import annotations

from typing import Any, List, Optional, Sequence

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from .base_layer import BaseDataLayer

DEFAULT_COLOR = "#888888"
SELECTED_LINE_COLOR = "#111111"


def numerical_bin(value: Any, breaks: Sequence[float], values: Sequence[str], null_value: Optional[str] = None):
    """
    Map a number onto ``values`` by the largest break not above it.
    Values below the first break fall into the first bin.
    """
    if value is None:
        return null_value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return null_value
    if np.isnan(number):
        return null_value
    idx = int(np.searchsorted(np.asarray(breaks, dtype=float), number, side="right")) - 1
    return values[max(idx, 0)]


class ScatterLayer(BaseDataLayer):
    """
    One marker per record.

    Style keys:
    - size, color: defaults for every point
    - color_field + color_breaks + color_values (+ null_color): binned colour by a numeric field
    - flag_field, flag_color, flag_size: override for records whose flag field is 1
    """

    type = "scatter"

    def _colors(self, frame: pd.DataFrame) -> List[str]:
        style = self.layout.style
        base = style.get("color", DEFAULT_COLOR)
        field = style.get("color_field")
        if field and field in frame.columns:
            colors = [
                numerical_bin(v, style.get("color_breaks", []), style.get("color_values", []),
                              style.get("null_color", base))
                for v in frame[field]
            ]
        else:
            colors = [style.get("null_color", base)] * len(frame)

        flag = style.get("flag_field")
        if flag and flag in frame.columns and style.get("flag_color"):
            colors = [style["flag_color"] if f == 1 else c for c, f in zip(colors, frame[flag])]
        return colors

    def _sizes(self, frame: pd.DataFrame) -> List[float]:
        style = self.layout.style
        size = style.get("size", 6)
        flag = style.get("flag_field")
        if flag and flag in frame.columns and style.get("flag_size"):
            return [style["flag_size"] if f == 1 else size for f in frame[flag]]
        return [size] * len(frame)

    def render(self) -> List[go.Scatter]:
        x_field = self.layout.x_axis.field
        y_field = self.layout.y_axis.field
        if not self.data or not x_field or not y_field:
            return []

        frame = pd.DataFrame.from_records(self.data)
        if x_field not in frame.columns or y_field not in frame.columns:
            return []

        element_ids = [self.get_element_id(r) if self.layout.id_field in r else None for r in self.data]
        selected = set(self.status_ids("selected"))
        highlighted = set(self.status_ids("highlighted"))
        line_widths = [2 if eid in selected or eid in highlighted else 0 for eid in element_ids]

        return [go.Scatter(
            x=frame[x_field].tolist(),
            y=frame[y_field].tolist(),
            mode="markers",
            name=self.id,
            customdata=element_ids,
            hovertext=[self.hover_text(r) for r in self.data],
            hoverinfo="text",
            marker={
                "color": self._colors(frame),
                "size": self._sizes(frame),
                "line": {"width": line_widths, "color": SELECTED_LINE_COLOR},
            },
            showlegend=False,
        )]
