from __future__ import annotations

from typing import Any, Dict, List, Optional

import plotly.graph_objects as go

from locus_browser.core.extent import Extent
from .base_layer import BaseDataLayer


class GenesLayer(BaseDataLayer):
    """
    Gene spans packed into non-overlapping horizontal tracks.

    Records need ``start`` and ``end``; ``gene_name`` labels the span. Track
    ``k`` is drawn at ``y = -k`` so the first track sits on top.
    """

    type = "genes"

    # minimum gap (bp) between two genes sharing a track
    track_padding = 0

    def assign_tracks(self) -> List[int]:
        order = sorted(range(len(self.data)), key=lambda i: (self.data[i].get("start") or 0))
        track_ends: List[float] = []
        tracks = [0] * len(self.data)
        for i in order:
            start = self.data[i].get("start") or 0
            end = self.data[i].get("end") or start
            for k, track_end in enumerate(track_ends):
                if start > track_end + self.track_padding:
                    tracks[i] = k
                    track_ends[k] = end
                    break
            else:
                tracks[i] = len(track_ends)
                track_ends.append(end)
        return tracks

    def get_axis_extent(self, dimension: str) -> Optional[Extent]:
        if dimension == "y" and self.layout.y_axis.field is None:
            if not self.data:
                return None
            n_tracks = max(self.assign_tracks()) + 1
            return [-n_tracks + 0.5, 0.5]
        return super().get_axis_extent(dimension)

    def render(self) -> List[go.Scatter]:
        if not self.data:
            return []

        tracks = self.assign_tracks()
        selected = set(self.status_ids("selected"))
        color = self.layout.style.get("color", "#363696")

        xs: List[Any] = []
        ys: List[Any] = []
        label_x: List[float] = []
        label_y: List[float] = []
        labels: List[str] = []
        label_hover: List[str] = []
        label_ids: List[Optional[str]] = []
        selected_xs: List[Any] = []
        selected_ys: List[Any] = []

        for record, track in zip(self.data, tracks):
            start, end = record.get("start"), record.get("end")
            if start is None or end is None:
                continue
            y = -track
            target_x, target_y = (selected_xs, selected_ys) if self._is_selected(record, selected) else (xs, ys)
            target_x.extend([start, end, None])
            target_y.extend([y, y, None])
            label_x.append((start + end) / 2)
            label_y.append(y)
            labels.append(str(record.get("gene_name", "")))
            label_hover.append(self.hover_text(record))
            label_ids.append(self.get_element_id(record) if self.layout.id_field in record else None)

        traces = [
            go.Scatter(x=xs, y=ys, mode="lines", name=self.id, line={"color": color, "width": 6},
                       hoverinfo="skip", showlegend=False),
            go.Scatter(x=label_x, y=label_y, mode="text", text=labels, textposition="top center",
                       hovertext=label_hover, hoverinfo="text", customdata=label_ids,
                       name=f"{self.id}-labels", showlegend=False),
        ]
        if selected_xs:
            traces.append(go.Scatter(x=selected_xs, y=selected_ys, mode="lines", name=f"{self.id}-selected",
                                     line={"color": "#ff7f0e", "width": 8}, hoverinfo="skip", showlegend=False))
        return traces

    def _is_selected(self, record: Dict[str, Any], selected: set) -> bool:
        if self.layout.id_field not in record:
            return False
        return self.get_element_id(record) in selected
