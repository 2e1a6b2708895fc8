from __future__ import annotations

from typing import List

import plotly.graph_objects as go

from .base_layer import BaseDataLayer


class LineLayer(BaseDataLayer):
    """A single path through the records, in record order (e.g. recombination rate, a significance line)."""

    type = "line"

    def render(self) -> List[go.Scatter]:
        x_field = self.layout.x_axis.field
        y_field = self.layout.y_axis.field
        if not self.data or not x_field or not y_field:
            return []

        style = self.layout.style
        return [go.Scatter(
            x=[r.get(x_field) for r in self.data],
            y=[r.get(y_field) for r in self.data],
            mode="lines",
            name=self.id,
            hoverinfo="skip",
            line={
                "color": style.get("color", "#000000"),
                "width": style.get("width", 1),
                "dash": style.get("dash", "solid"),
            },
            showlegend=False,
        )]
