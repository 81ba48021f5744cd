"""
NeoVPC Plot Specification

Backend-agnostic description of a VPC plot: an ordered tuple of layers
plus faceting, scales, labels and the data sources the layers refer to.
Pure dataclasses; rendering happens in backends.py.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

import pandas as pd


def _frozen(mapping: Mapping) -> Mapping:
    """Read-only copy of a mapping."""
    return MappingProxyType(dict(mapping))


def _items(mapping: Mapping) -> Tuple:
    return tuple(sorted(mapping.items()))


class LayerKind(str, Enum):
    """Geometry of a layer."""
    LINE = "line"
    STEP = "step"
    RIBBON = "ribbon"
    RECT = "rect"
    POINT = "point"
    RUG = "rug"


# ============================================================================
# Styling
# ============================================================================

@dataclass(frozen=True)
class LayerStyle:
    """Visual attributes of a layer (ggplot-style names)."""
    color: Optional[str] = None
    fill: Optional[str] = None
    linetype: Optional[str] = None
    size: Optional[float] = None
    alpha: Optional[float] = None
    shape: Optional[Any] = None


# ============================================================================
# Layers
# ============================================================================

@dataclass(frozen=True)
class Layer:
    """
    A single drawable directive.

    Attributes:
        kind: Geometry (line, step, ribbon, rect, point, rug)
        category: Logical band this layer belongs to (e.g. 'sim_median_ci', 'obs_dv')
        source: Key into PlotSpec.data
        aes: Aesthetic -> column mapping (x, y, ymin, ymax, xmin, xmax, group, colour, fill)
        style: Fixed visual attributes
        params: Geometry specific options (e.g. rug 'sides')
    """
    kind: LayerKind
    category: str
    source: str
    aes: Mapping[str, str]
    style: LayerStyle = field(default_factory=LayerStyle)
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "aes", _frozen(self.aes))
        object.__setattr__(self, "params", _frozen(self.params))

    def __hash__(self):
        return hash((self.kind, self.category, self.source, _items(self.aes),
                     self.style, _items(self.params)))


# ============================================================================
# Faceting and scales
# ============================================================================

class FacetKind(str, Enum):
    NONE = "none"
    WRAP = "wrap"
    GRID_ROW = "grid_row"
    GRID_COL = "grid_col"
    GRID_BOTH = "grid_both"


@dataclass(frozen=True)
class FacetDirective:
    """
    Panel layout.

    rows/cols name table columns; WRAP keys its single column in `cols`.
    """
    kind: FacetKind = FacetKind.NONE
    rows: Optional[str] = None
    cols: Optional[str] = None

    @classmethod
    def none(cls) -> "FacetDirective":
        return cls(FacetKind.NONE)

    @classmethod
    def wrap(cls, column: str) -> "FacetDirective":
        return cls(FacetKind.WRAP, cols=column)

    @classmethod
    def grid_row(cls, column: str) -> "FacetDirective":
        return cls(FacetKind.GRID_ROW, rows=column)

    @classmethod
    def grid_col(cls, column: str) -> "FacetDirective":
        return cls(FacetKind.GRID_COL, cols=column)

    @classmethod
    def grid_both(cls, rows: str, cols: str) -> "FacetDirective":
        return cls(FacetKind.GRID_BOTH, rows=rows, cols=cols)

    @property
    def columns(self) -> Tuple[str, ...]:
        return tuple(c for c in (self.rows, self.cols) if c is not None)


@dataclass(frozen=True)
class AxisScale:
    """Axis transform with optional fixed breaks and labels."""
    transform: str = "identity"  # identity, log10
    breaks: Optional[Tuple[float, ...]] = None
    labels: Optional[Tuple[str, ...]] = None


# ============================================================================
# Plot specification
# ============================================================================

@dataclass(frozen=True)
class PlotSpec:
    """
    Complete VPC plot, agnostic of backend.

    Attributes:
        layers: Ordered layers, drawn first to last
        facet: Panel layout
        data: Data sources referenced by Layer.source
        hue: Column mapped to discrete colour on the base layer
        colour_legend: Legend title of the discrete colour scale (None = no scale)
        fill_legend: Legend title of the discrete fill scale (None = no scale)
        x_scale: X axis transform
        y_scale: Y axis transform / breaks
        xlab: X axis label
        ylab: Y axis label
        title: Plot title
        strip_labels: Table column -> stratification variable name
        theme: Base theme name
    """
    layers: Tuple[Layer, ...]
    facet: FacetDirective = field(default_factory=FacetDirective)
    data: Mapping[str, pd.DataFrame] = field(default_factory=dict, compare=False)
    hue: Optional[str] = None
    colour_legend: Optional[str] = None
    fill_legend: Optional[str] = None
    x_scale: AxisScale = field(default_factory=AxisScale)
    y_scale: AxisScale = field(default_factory=AxisScale)
    xlab: Optional[str] = None
    ylab: Optional[str] = None
    title: Optional[str] = None
    strip_labels: Mapping[str, str] = field(default_factory=dict)
    theme: str = "plain"

    def __post_init__(self):
        object.__setattr__(self, "layers", tuple(self.layers))
        object.__setattr__(self, "data", _frozen(self.data))
        object.__setattr__(self, "strip_labels", _frozen(self.strip_labels))

    def __hash__(self):
        return hash((self.layers, self.facet, self.hue, self.colour_legend, self.fill_legend,
                     self.x_scale, self.y_scale, self.xlab, self.ylab, self.title,
                     _items(self.strip_labels), self.theme))

    @property
    def categories(self) -> Tuple[str, ...]:
        """Distinct layer categories in drawing order."""
        seen = []
        for layer in self.layers:
            if layer.category not in seen:
                seen.append(layer.category)
        return tuple(seen)

    def layers_of(self, category: str) -> Tuple[Layer, ...]:
        return tuple(layer for layer in self.layers if layer.category == category)

    def frame(self, layer: Layer) -> pd.DataFrame:
        return self.data[layer.source]
