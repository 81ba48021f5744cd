"""
NeoVPC Plotting Backends

Fold a PlotSpec into a native figure. Supports static (matplotlib) and
interactive (plotly) output; the active backend is chosen with
set_backend().
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

import numpy as np
import pandas as pd

from .layers import FacetKind, Layer, LayerKind, PlotSpec
from .themes import get_color


class PlotBackend(str, Enum):
    MATPLOTLIB = "matplotlib"
    PLOTLY = "plotly"


_current_backend = PlotBackend.MATPLOTLIB

DEFAULT_LINE_COLOR = "#000000"
DEFAULT_FILL_COLOR = "#3388cc"


def available_backends() -> List[str]:
    """Backends whose plotting library is installed."""
    found = []
    try:
        import matplotlib  # noqa: F401
        found.append(PlotBackend.MATPLOTLIB.value)
    except ImportError:
        pass
    try:
        import plotly  # noqa: F401
        found.append(PlotBackend.PLOTLY.value)
    except ImportError:
        pass
    return found


def set_backend(backend: str) -> None:
    """
    Set the plotting backend.

    Args:
        backend: 'matplotlib' or 'plotly'

    Example:
        >>> set_backend("plotly")
    """
    global _current_backend
    try:
        _current_backend = PlotBackend(backend)
    except ValueError:
        raise ValueError(
            f"Unknown backend '{backend}'. Available: {[b.value for b in PlotBackend]}"
        ) from None


def get_backend() -> str:
    return _current_backend.value


def _get_plotter(backend: Optional[str] = None):
    name = PlotBackend(backend) if backend is not None else _current_backend
    if name is PlotBackend.PLOTLY:
        return PlotlyPlotter()
    return MatplotlibPlotter()


# ============================================================================
# Facet layout
# ============================================================================

@dataclass(frozen=True)
class Panel:
    row: int
    col: int
    key: Tuple[Tuple[str, Any], ...]
    title: Optional[str]


@dataclass(frozen=True)
class FacetLayout:
    n_rows: int
    n_cols: int
    panels: Tuple[Panel, ...]


def _levels(spec: PlotSpec, column: str) -> List[Any]:
    values = [frame[column] for frame in spec.data.values() if column in frame.columns]
    if not values:
        return []
    levels = list(pd.unique(pd.concat(values, ignore_index=True).dropna()))
    try:
        return sorted(levels)
    except TypeError:
        return levels


def _strip(spec: PlotSpec, column: str, value: Any) -> str:
    name = spec.strip_labels.get(column)
    return f"{name}: {value}" if name else str(value)


def facet_layout(spec: PlotSpec) -> FacetLayout:
    """Panels of a spec, in row-major order."""
    facet = spec.facet
    if facet.kind is FacetKind.NONE:
        return FacetLayout(1, 1, (Panel(0, 0, (), None),))

    if facet.kind is FacetKind.GRID_BOTH:
        rows = _levels(spec, facet.rows) or [None]
        cols = _levels(spec, facet.cols) or [None]
        panels = tuple(
            Panel(r, c, ((facet.rows, rv), (facet.cols, cv)),
                  f"{_strip(spec, facet.rows, rv)} | {_strip(spec, facet.cols, cv)}")
            for r, rv in enumerate(rows) for c, cv in enumerate(cols)
        )
        return FacetLayout(len(rows), len(cols), panels)

    column = facet.rows if facet.kind is FacetKind.GRID_ROW else facet.cols
    levels = _levels(spec, column) or [None]
    n = len(levels)
    if facet.kind is FacetKind.GRID_ROW:
        n_rows, n_cols = n, 1
    elif facet.kind is FacetKind.GRID_COL:
        n_rows, n_cols = 1, n
    else:
        n_cols = int(math.ceil(math.sqrt(n)))
        n_rows = int(math.ceil(n / n_cols))
    panels = tuple(
        Panel(i // n_cols, i % n_cols, ((column, v),), _strip(spec, column, v))
        for i, v in enumerate(levels)
    )
    return FacetLayout(n_rows, n_cols, panels)


def panel_frame(frame: pd.DataFrame, key: Tuple[Tuple[str, Any], ...]) -> pd.DataFrame:
    """Rows of a layer's data that belong to a panel; unstratified data goes everywhere."""
    mask = np.ones(len(frame), dtype=bool)
    for column, value in key:
        if column in frame.columns and value is not None:
            mask &= (frame[column] == value).to_numpy()
    return frame[mask]


# ============================================================================
# Colour scales and grouping
# ============================================================================

def _mapped_column(layer: Layer, spec: PlotSpec, frame: pd.DataFrame) -> Optional[str]:
    """Column mapped to colour/fill for a layer, if any."""
    for aesthetic in ("colour", "fill"):
        if aesthetic in layer.aes:
            return layer.aes[aesthetic]
    if spec.hue is not None and spec.hue in frame.columns and layer.style.color is None \
            and layer.kind in (LayerKind.LINE, LayerKind.STEP, LayerKind.POINT):
        return spec.hue
    return None


def colour_levels(spec: PlotSpec) -> Dict[Any, str]:
    """Palette colour per level of every mapped column."""
    columns = {a for layer in spec.layers for k, a in layer.aes.items() if k in ("colour", "fill")}
    if spec.hue is not None:
        columns.add(spec.hue)
    levels = []
    for column in sorted(columns):
        for value in _levels(spec, column):
            if value not in levels:
                levels.append(value)
    return {level: get_color(i) for i, level in enumerate(levels)}


def iter_groups(layer: Layer, frame: pd.DataFrame, mapped: Optional[str]) -> Iterator[Tuple[Any, pd.DataFrame]]:
    """(mapped level, rows) per group of a layer."""
    columns = [c for c in (layer.aes.get("group"), mapped) if c is not None and c in frame.columns]
    columns = list(dict.fromkeys(columns))
    if not columns:
        yield None, frame
        return
    for key, group in frame.groupby(columns, sort=False):
        if mapped in columns:
            key = key if not isinstance(key, tuple) else key[columns.index(mapped)]
            yield key, group
        else:
            yield None, group


def _line_colour(layer: Layer, level: Any, levels: Dict[Any, str]) -> str:
    if level is not None and level in levels:
        return levels[level]
    return layer.style.color or DEFAULT_LINE_COLOR


def _fill_colour(layer: Layer, level: Any, levels: Dict[Any, str]) -> str:
    if level is not None and level in levels:
        return levels[level]
    return layer.style.fill or DEFAULT_FILL_COLOR


def _sorted(group: pd.DataFrame, x: str) -> pd.DataFrame:
    return group.sort_values(x, kind="mergesort")


def _line_width(layer: Layer) -> float:
    return 1.5 * (layer.style.size if layer.style.size is not None else 1.0)


# ============================================================================
# Matplotlib
# ============================================================================

_MPL_LINESTYLES = {"solid": "-", "dashed": "--", "dotted": ":", "dotdash": "-.", "longdash": "--"}


class MatplotlibPlotter:
    """Static figures with matplotlib."""

    def render(self, spec: PlotSpec, figsize: Tuple[float, float] = (10, 6)) -> Any:
        import matplotlib.pyplot as plt

        layout = facet_layout(spec)
        fig, axes = plt.subplots(layout.n_rows, layout.n_cols, figsize=figsize,
                                 squeeze=False, sharex=True, sharey=True)
        levels = colour_levels(spec)

        used = set()
        for panel in layout.panels:
            ax = axes[panel.row][panel.col]
            used.add((panel.row, panel.col))
            for layer in spec.layers:
                frame = panel_frame(spec.frame(layer), panel.key)
                if len(frame) > 0:
                    self._draw(ax, layer, frame, spec, levels)
            ax.autoscale_view()
            if panel.title:
                ax.set_title(panel.title, fontsize="small")
            self._style_axes(ax, spec, panel, layout)

        for r in range(layout.n_rows):
            for c in range(layout.n_cols):
                if (r, c) not in used:
                    axes[r][c].set_visible(False)

        if levels and (spec.colour_legend is not None or spec.fill_legend is not None):
            from matplotlib.patches import Patch
            handles = [Patch(color=colour, label=str(level)) for level, colour in levels.items()]
            fig.legend(handles=handles, title=spec.colour_legend or spec.fill_legend or None,
                       loc="center right", fontsize="small")

        if spec.title:
            fig.suptitle(spec.title)
        fig.tight_layout()
        return fig

    def _style_axes(self, ax, spec: PlotSpec, panel: Panel, layout: FacetLayout) -> None:
        ax.set_facecolor("white")
        ax.grid(False)
        if spec.x_scale.transform == "log10":
            ax.set_xscale("log")
        if spec.y_scale.transform == "log10":
            ax.set_yscale("log")
        if spec.y_scale.breaks is not None:
            ax.set_yticks(list(spec.y_scale.breaks))
            if spec.y_scale.labels is not None:
                ax.set_yticklabels(list(spec.y_scale.labels))
        if panel.row == layout.n_rows - 1 or layout.n_rows == 1:
            ax.set_xlabel(spec.xlab or "")
        if panel.col == 0:
            ax.set_ylabel(spec.ylab or "")

    def _draw(self, ax, layer: Layer, frame: pd.DataFrame, spec: PlotSpec, levels) -> None:
        aes = layer.aes
        style = layer.style
        mapped = _mapped_column(layer, spec, frame)
        linestyle = _MPL_LINESTYLES.get(style.linetype or "solid", "-")

        if layer.kind is LayerKind.RUG:
            ax.vlines(frame[aes["x"]].to_numpy(), 0.97, 1.0,
                      transform=ax.get_xaxis_transform(),
                      colors=style.color or DEFAULT_LINE_COLOR, linewidth=0.8)
            return

        for level, group in iter_groups(layer, frame, mapped):
            if layer.kind in (LayerKind.LINE, LayerKind.STEP):
                group = _sorted(group, aes["x"])
                draw = ax.step if layer.kind is LayerKind.STEP else ax.plot
                kwargs = {"where": "post"} if layer.kind is LayerKind.STEP else {}
                draw(group[aes["x"]].to_numpy(), group[aes["y"]].to_numpy(),
                     color=_line_colour(layer, level, levels), linestyle=linestyle,
                     linewidth=_line_width(layer),
                     alpha=style.alpha if style.alpha is not None else 1.0, **kwargs)
            elif layer.kind is LayerKind.RIBBON:
                group = _sorted(group, aes["x"])
                ax.fill_between(group[aes["x"]].to_numpy(), group[aes["ymin"]].to_numpy(),
                                group[aes["ymax"]].to_numpy(),
                                color=_fill_colour(layer, level, levels),
                                alpha=style.alpha if style.alpha is not None else 1.0,
                                linewidth=0)
            elif layer.kind is LayerKind.RECT:
                from matplotlib.patches import Rectangle
                for row in group.itertuples(index=False):
                    row = row._asdict()
                    ax.add_patch(Rectangle(
                        (row[aes["xmin"]], row[aes["ymin"]]),
                        row[aes["xmax"]] - row[aes["xmin"]],
                        row[aes["ymax"]] - row[aes["ymin"]],
                        facecolor=_fill_colour(layer, level, levels),
                        alpha=style.alpha if style.alpha is not None else 1.0,
                        linewidth=0,
                    ))
            elif layer.kind is LayerKind.POINT:
                colour = _line_colour(layer, level, levels)
                marker, hollow = _mpl_marker(style.shape)
                ax.scatter(group[aes["x"]].to_numpy(), group[aes["y"]].to_numpy(),
                           marker=marker,
                           s=20.0 * (style.size if style.size is not None else 1.0),
                           facecolors="none" if hollow else colour,
                           edgecolors=colour,
                           alpha=style.alpha if style.alpha is not None else 1.0)


def _mpl_marker(shape: Any) -> Tuple[str, bool]:
    if shape == "|":
        return "|", False
    if shape in (1, "1", None):
        return "o", True
    return "o", False


# ============================================================================
# Plotly
# ============================================================================

_PLOTLY_DASHES = {"solid": "solid", "dashed": "dash", "dotted": "dot", "dotdash": "dashdot",
                  "longdash": "longdash"}


def _rgba(colour: str, alpha: Optional[float]) -> str:
    """Plotly rgba() string for any matplotlib colour spec."""
    from matplotlib.colors import to_rgba

    r, g, b, a = to_rgba(colour, alpha)
    return f"rgba({round(r * 255)},{round(g * 255)},{round(b * 255)},{a})"


class PlotlyPlotter:
    """Interactive figures with plotly."""

    def render(self, spec: PlotSpec, figsize: Tuple[float, float] = (10, 6)) -> Any:
        import plotly.graph_objects as go
        from plotly.subplots import make_subplots

        layout = facet_layout(spec)
        titles = [""] * (layout.n_rows * layout.n_cols)
        for panel in layout.panels:
            titles[panel.row * layout.n_cols + panel.col] = panel.title or ""

        fig = make_subplots(rows=layout.n_rows, cols=layout.n_cols,
                            subplot_titles=titles, shared_xaxes=True, shared_yaxes=True)
        levels = colour_levels(spec)
        in_legend = set()

        for panel in layout.panels:
            row, col = panel.row + 1, panel.col + 1
            for layer in spec.layers:
                frame = panel_frame(spec.frame(layer), panel.key)
                if len(frame) > 0:
                    self._draw(fig, go, layer, frame, spec, levels, in_legend, row, col)

        if spec.x_scale.transform == "log10":
            fig.update_xaxes(type="log")
        if spec.y_scale.transform == "log10":
            fig.update_yaxes(type="log")
        if spec.y_scale.breaks is not None:
            fig.update_yaxes(tickvals=list(spec.y_scale.breaks),
                             ticktext=list(spec.y_scale.labels or spec.y_scale.breaks))
        fig.update_xaxes(title_text=spec.xlab or "", row=layout.n_rows)
        fig.update_yaxes(title_text=spec.ylab or "", col=1)
        fig.update_layout(
            title=spec.title,
            template="simple_white",
            width=figsize[0] * 100,
            height=figsize[1] * 100,
            legend_title_text=spec.colour_legend or spec.fill_legend or "",
            showlegend=bool(levels),
        )
        return fig

    def _draw(self, fig, go, layer: Layer, frame, spec, levels, in_legend, row, col) -> None:
        aes = layer.aes
        style = layer.style
        mapped = _mapped_column(layer, spec, frame)

        if layer.kind is LayerKind.RUG:
            for x in frame[aes["x"]].to_numpy():
                fig.add_vline(x=float(x), y0=0.97, y1=1.0, line_width=1,
                              line_color=style.color or DEFAULT_LINE_COLOR, row=row, col=col)
            return

        for level, group in iter_groups(layer, frame, mapped):
            name = str(level) if level is not None else layer.category
            show_legend = level is not None and name not in in_legend
            if show_legend:
                in_legend.add(name)

            if layer.kind in (LayerKind.LINE, LayerKind.STEP):
                group = _sorted(group, aes["x"])
                fig.add_trace(go.Scatter(
                    x=group[aes["x"]], y=group[aes["y"]], mode="lines",
                    line=dict(color=_line_colour(layer, level, levels),
                              dash=_PLOTLY_DASHES.get(style.linetype or "solid", "solid"),
                              width=_line_width(layer),
                              shape="hv" if layer.kind is LayerKind.STEP else "linear"),
                    opacity=style.alpha if style.alpha is not None else 1.0,
                    name=name, legendgroup=name, showlegend=show_legend,
                ), row=row, col=col)
            elif layer.kind is LayerKind.RIBBON:
                group = _sorted(group, aes["x"])
                fill = _rgba(_fill_colour(layer, level, levels), style.alpha)
                fig.add_trace(go.Scatter(
                    x=group[aes["x"]], y=group[aes["ymax"]], mode="lines",
                    line=dict(width=0), showlegend=False, hoverinfo="skip",
                ), row=row, col=col)
                fig.add_trace(go.Scatter(
                    x=group[aes["x"]], y=group[aes["ymin"]], mode="lines",
                    line=dict(width=0), fill="tonexty", fillcolor=fill,
                    name=name, legendgroup=name, showlegend=show_legend,
                ), row=row, col=col)
            elif layer.kind is LayerKind.RECT:
                fill = _fill_colour(layer, level, levels)
                for _, rect in group.iterrows():
                    fig.add_shape(type="rect", x0=rect[aes["xmin"]], x1=rect[aes["xmax"]],
                                  y0=rect[aes["ymin"]], y1=rect[aes["ymax"]],
                                  fillcolor=fill, line_width=0,
                                  opacity=style.alpha if style.alpha is not None else 1.0,
                                  row=row, col=col)
            elif layer.kind is LayerKind.POINT:
                symbol = "line-ns-open" if style.shape == "|" else (
                    "circle-open" if style.shape in (1, "1", None) else "circle")
                fig.add_trace(go.Scatter(
                    x=group[aes["x"]], y=group[aes["y"]], mode="markers",
                    marker=dict(color=_line_colour(layer, level, levels), symbol=symbol,
                                size=6 * (style.size if style.size is not None else 1.0)),
                    opacity=style.alpha if style.alpha is not None else 1.0,
                    name=name, legendgroup=name, showlegend=show_legend,
                ), row=row, col=col)
