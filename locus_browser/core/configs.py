from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import ConfigurationError

AXIS_NAMES = ("x", "y1", "y2")


def _opt_number(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Layout value `{key}` must be a number, got {value!r}") from None
    if math.isnan(number):
        return None
    return number


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# ---------------------------------------------------------------------
# Data layer layouts
# ---------------------------------------------------------------------


@dataclass
class LayerAxisConfig:
    """
    Per-layer axis directives used by the extent engine.

    - axis: which panel axis the layer contributes to (1 or 2; only meaningful for y)
    - field: record key holding the values for this dimension
    - floor / ceiling: hard bounds; both set means the extent is fixed
    - lower_buffer / upper_buffer: padding as a fraction of the data span
    - min_extent: the extent always covers at least this interval
    - decoupled: the layer does not contribute to the panel extent
    """

    axis: int = 1
    field: Optional[str] = None
    floor: Optional[float] = None
    ceiling: Optional[float] = None
    lower_buffer: Optional[float] = None
    upper_buffer: Optional[float] = None
    min_extent: Optional[Tuple[float, float]] = None
    decoupled: bool = False
    ticks: Optional[List[Any]] = None

    def override_extent(self, extent: List[float]) -> None:
        """Pin the axis to an extent, dropping every directive that could move it."""
        self.floor = extent[0]
        self.ceiling = extent[1]
        self.lower_buffer = None
        self.upper_buffer = None
        self.min_extent = None
        self.ticks = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> LayerAxisConfig:
        data = dict(data or {})
        axis = data.get("axis", 1)
        if axis not in (1, 2):
            axis = 1

        min_extent = data.get("min_extent")
        if min_extent is not None:
            if not isinstance(min_extent, (list, tuple)) or len(min_extent) != 2:
                raise ConfigurationError(f"min_extent must be a pair of numbers, got {min_extent!r}")
            min_extent = (float(min_extent[0]), float(min_extent[1]))

        ticks = data.get("ticks")
        return cls(
            axis=axis,
            field=data.get("field"),
            floor=_opt_number(data, "floor"),
            ceiling=_opt_number(data, "ceiling"),
            lower_buffer=_opt_number(data, "lower_buffer"),
            upper_buffer=_opt_number(data, "upper_buffer"),
            min_extent=min_extent,
            decoupled=bool(data.get("decoupled", False)),
            ticks=list(ticks) if ticks is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = _drop_none(asdict(self))
        if self.min_extent is not None:
            out["min_extent"] = list(self.min_extent)
        return out


@dataclass
class DataLayerLayout:
    id: str
    type: str
    fields: List[str] = field(default_factory=list)
    id_field: str = "id"
    z_index: Optional[int] = None
    x_axis: LayerAxisConfig = field(default_factory=LayerAxisConfig)
    y_axis: LayerAxisConfig = field(default_factory=LayerAxisConfig)
    # Renderer options (colors, sizes, dash patterns, hover templates)
    style: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.id, str) or not self.id:
            raise ConfigurationError("Data layer layout requires a non-empty string `id`")
        if not isinstance(self.type, str) or not self.type:
            raise ConfigurationError(f"Data layer [{self.id}] requires a string `type`")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DataLayerLayout:
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid data layer layout: {data!r}")
        z_index = data.get("z_index")
        return cls(
            id=data.get("id"),
            type=data.get("type"),
            fields=list(data.get("fields", [])),
            id_field=data.get("id_field", "id"),
            z_index=int(z_index) if z_index is not None else None,
            x_axis=LayerAxisConfig.from_dict(data.get("x_axis")),
            y_axis=LayerAxisConfig.from_dict(data.get("y_axis")),
            style=dict(data.get("style", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "type": self.type,
            "fields": list(self.fields),
            "id_field": self.id_field,
            "z_index": self.z_index,
            "x_axis": self.x_axis.to_dict(),
            "y_axis": self.y_axis.to_dict(),
            "style": dict(self.style),
        })


# ---------------------------------------------------------------------
# Panel layouts
# ---------------------------------------------------------------------


@dataclass
class AxisLayout:
    """
    Panel-level axis display settings.

    ``extent="state"`` makes the x axis always show the plot region.
    ``tick_format="region"`` formats ticks as megabase positions.
    """

    render: bool = False
    label: Optional[str] = None
    label_function: Optional[str] = None
    tick_format: Optional[str] = None
    extent: Optional[str] = None
    ticks: Optional[List[Any]] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> AxisLayout:
        data = dict(data or {})
        ticks = data.get("ticks")
        return cls(
            render=bool(data) and data.get("render", True) is not False,
            label=data.get("label"),
            label_function=data.get("label_function"),
            tick_format=data.get("tick_format"),
            extent=data.get("extent"),
            ticks=list(ticks) if ticks is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        if not self.render:
            return {}
        return _drop_none(asdict(self))


@dataclass
class InteractionLayout:
    drag_background_to_pan: bool = False
    drag_x_ticks_to_scale: bool = False
    drag_y1_ticks_to_scale: bool = False
    drag_y2_ticks_to_scale: bool = False
    scroll_to_zoom: bool = False
    x_linked: bool = False
    y1_linked: bool = False
    y2_linked: bool = False

    def is_linked(self, axis: str) -> bool:
        return bool(getattr(self, f"{axis}_linked"))

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> InteractionLayout:
        data = data or {}
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: bool(v) for k, v in data.items() if k in known})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Margin:
    top: int = 0
    right: int = 0
    bottom: int = 0
    left: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Margin:
        data = data or {}
        return cls(**{k: int(data.get(k, 0)) for k in ("top", "right", "bottom", "left")})


@dataclass
class Origin:
    x: float = 0
    y: float = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Origin:
        data = data or {}
        return cls(x=data.get("x", 0), y=data.get("y", 0))


@dataclass
class ClipArea:
    """Drawable region of a panel, inside its margins. Derived, never configured."""

    width: float = 0
    height: float = 0
    origin: Origin = field(default_factory=Origin)


@dataclass
class PanelLayout:
    id: Optional[str] = None
    title: Optional[str] = None
    y_index: Optional[int] = None
    width: float = 0
    height: float = 0
    origin: Origin = field(default_factory=Origin)
    min_width: float = 1
    min_height: float = 1
    proportional_width: Optional[float] = None
    proportional_height: Optional[float] = None
    proportional_origin: Origin = field(default_factory=Origin)
    margin: Margin = field(default_factory=Margin)
    axes: Dict[str, AxisLayout] = field(
        default_factory=lambda: {name: AxisLayout() for name in AXIS_NAMES}
    )
    interaction: InteractionLayout = field(default_factory=InteractionLayout)
    data_layers: List[DataLayerLayout] = field(default_factory=list)
    background_click: Optional[str] = "clear_selections"

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise ConfigurationError(f"Panel [{self.id}] width and height must not be negative")
        for name in AXIS_NAMES:
            self.axes.setdefault(name, AxisLayout())

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PanelLayout:
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid panel layout: {data!r}")
        raw_axes = data.get("axes", {}) or {}
        y_index = data.get("y_index")
        return cls(
            id=data.get("id") or None,
            title=data.get("title"),
            y_index=int(y_index) if y_index is not None else None,
            width=_opt_number(data, "width") or 0,
            height=_opt_number(data, "height") or 0,
            origin=Origin.from_dict(data.get("origin")),
            min_width=_opt_number(data, "min_width") or 1,
            min_height=_opt_number(data, "min_height") or 1,
            proportional_width=_opt_number(data, "proportional_width"),
            proportional_height=_opt_number(data, "proportional_height"),
            proportional_origin=Origin.from_dict(data.get("proportional_origin")),
            margin=Margin.from_dict(data.get("margin")),
            axes={name: AxisLayout.from_dict(raw_axes.get(name)) for name in AXIS_NAMES},
            interaction=InteractionLayout.from_dict(data.get("interaction")),
            data_layers=[DataLayerLayout.from_dict(d) for d in data.get("data_layers", [])],
            background_click=data.get("background_click", "clear_selections"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "id": self.id,
            "title": self.title,
            "y_index": self.y_index,
            "width": self.width,
            "height": self.height,
            "origin": asdict(self.origin),
            "min_width": self.min_width,
            "min_height": self.min_height,
            "proportional_width": self.proportional_width,
            "proportional_height": self.proportional_height,
            "proportional_origin": asdict(self.proportional_origin),
            "margin": asdict(self.margin),
            "axes": {name: axis.to_dict() for name, axis in self.axes.items()},
            "interaction": self.interaction.to_dict(),
            "data_layers": [d.to_dict() for d in self.data_layers],
            "background_click": self.background_click,
        })


# ---------------------------------------------------------------------
# Plot layout
# ---------------------------------------------------------------------


@dataclass
class PlotLayout:
    width: float = 1
    height: float = 1
    min_width: float = 1
    min_height: float = 1
    responsive_resize: bool = False
    aspect_ratio: float = 1
    min_region_scale: Optional[int] = None
    max_region_scale: Optional[int] = None
    panels: List[PanelLayout] = field(default_factory=list)
    state: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        for name in ("width", "height", "aspect_ratio"):
            value = getattr(self, name)
            if value is None or isinstance(value, bool) or not value > 0:
                raise ConfigurationError(f"Plot layout parameter `{name}` must be a positive number")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PlotLayout:
        if not isinstance(data, dict):
            raise ConfigurationError(f"Invalid plot layout: {data!r}")
        min_scale = _opt_number(data, "min_region_scale")
        max_scale = _opt_number(data, "max_region_scale")
        return cls(
            width=_opt_number(data, "width") if "width" in data else 1,
            height=_opt_number(data, "height") if "height" in data else 1,
            min_width=_opt_number(data, "min_width") or 1,
            min_height=_opt_number(data, "min_height") or 1,
            responsive_resize=bool(data.get("responsive_resize", False)),
            aspect_ratio=_opt_number(data, "aspect_ratio") if "aspect_ratio" in data else 1,
            min_region_scale=int(min_scale) if min_scale is not None else None,
            max_region_scale=int(max_scale) if max_scale is not None else None,
            panels=[PanelLayout.from_dict(p) for p in data.get("panels", [])],
            state=dict(data.get("state", {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "width": self.width,
            "height": self.height,
            "min_width": self.min_width,
            "min_height": self.min_height,
            "responsive_resize": self.responsive_resize,
            "aspect_ratio": self.aspect_ratio,
            "min_region_scale": self.min_region_scale,
            "max_region_scale": self.max_region_scale,
            "panels": [p.to_dict() for p in self.panels],
            "state": dict(self.state),
        })
