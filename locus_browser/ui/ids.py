from __future__ import annotations

__all__ = ["IDs"]


class IDs:
    class Control:
        MAIN_GRAPH = "locus-graph"
        REGION_INPUT = "region-input"
        REGION_SUBMIT = "region-submit"
        REFRESH_BTN = "refresh-btn"

    class Display:
        STATUS = "status-line"
