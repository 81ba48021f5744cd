"""
NeoVPC Continuous VPC Builder

Layer stack for continuous, censored and categorical VPCs: simulated
percentile bands, observed percentile lines, observed points and bin
separators.
"""

from __future__ import annotations

import logging
from itertools import chain
from typing import Dict, List, Optional

import pandas as pd

from ..data import STRAT, ResultBundle, has_bin_boundaries
from .layers import Layer, LayerKind, LayerStyle, PlotSpec
from .show import ShowFlags
from .stratification import StratificationPlan
from .themes import VPCTheme

logger = logging.getLogger(__name__)

SIMULATED = "simulated_summary"
OBSERVED = "observed_summary"
OBSERVED_RAW = "observed_raw"
BIN_SEPARATORS = "bin_separators"


def _has_columns(frame: Optional[pd.DataFrame], *columns: str) -> bool:
    return frame is not None and all(c in frame.columns for c in columns)


def _aes(frame: pd.DataFrame, **mapping: str) -> Dict[str, str]:
    """Aesthetic mapping; strata are kept apart when the table is stratified."""
    if STRAT in frame.columns and "group" not in mapping:
        mapping["group"] = STRAT
    return mapping


def _line_style(style: LayerStyle) -> LayerStyle:
    return LayerStyle(color=style.color, linetype=style.linetype, size=style.size)


def _area_style(style: LayerStyle) -> LayerStyle:
    return LayerStyle(fill=style.fill, alpha=style.alpha)


def band_layer(
    category: str,
    source: str,
    frame: pd.DataFrame,
    ymin: str,
    ymax: str,
    style: LayerStyle,
    smooth: bool,
) -> Layer:
    """
    Area between two columns.

    Smooth bands are ribbons through the bin midpoints; otherwise one
    rectangle per bin spanning bin_min..bin_max.
    """
    if smooth:
        aes = _aes(frame, x="bin_mid", ymin=ymin, ymax=ymax)
        return Layer(LayerKind.RIBBON, category, source, aes, _area_style(style))
    aes = _aes(frame, xmin="bin_min", xmax="bin_max", ymin=ymin, ymax=ymax)
    return Layer(LayerKind.RECT, category, source, aes, _area_style(style))


# ============================================================================
# Layer groups
# ============================================================================

def _simulated_layers(
    sim: Optional[pd.DataFrame], show: ShowFlags, theme: VPCTheme, smooth: bool
) -> List[Layer]:
    if sim is None:
        return []

    median_style = theme.style("sim_median")
    pi_style = theme.style("sim_pi")
    layers = []

    if show.sim_median:
        layers.append(Layer(LayerKind.LINE, "sim_median", SIMULATED,
                            _aes(sim, x="bin_mid", y="q50_med"), _line_style(median_style)))

    if show.pi_as_area:
        layers.append(band_layer("pi_area", SIMULATED, sim, "q5_med", "q95_med",
                                 median_style, smooth))
        return layers

    if show.sim_median_ci:
        if _has_columns(sim, "q50_low", "q50_up"):
            layers.append(band_layer("sim_median_ci", SIMULATED, sim, "q50_low", "q50_up",
                                     median_style, smooth))
        else:
            logger.debug("No confidence bounds for the simulated median, skipping band")

    if show.pi:
        for column in ("q5_med", "q95_med"):
            layers.append(Layer(LayerKind.LINE, "pi", SIMULATED,
                                _aes(sim, x="bin_mid", y=column), _line_style(pi_style)))

    if show.pi_ci:
        if _has_columns(sim, "q5_low", "q5_up", "q95_low", "q95_up"):
            for low, up in (("q5_low", "q5_up"), ("q95_low", "q95_up")):
                layers.append(band_layer("pi_ci", SIMULATED, sim, low, up, pi_style, smooth))
        else:
            logger.debug("No confidence bounds for the simulated percentiles, skipping bands")

    return layers


def _observed_layers(bundle: ResultBundle, show: ShowFlags, theme: VPCTheme) -> List[Layer]:
    obs = bundle.observed_summary
    layers = []

    if obs is not None:
        if show.obs_median:
            layers.append(Layer(LayerKind.LINE, "obs_median", OBSERVED,
                                _aes(obs, x="bin_mid", y="obs50"),
                                _line_style(theme.style("obs_median"))))
        if show.obs_ci and _has_columns(obs, "obs5", "obs95"):
            for column in ("obs5", "obs95"):
                layers.append(Layer(LayerKind.LINE, "obs_ci", OBSERVED,
                                    _aes(obs, x="bin_mid", y=column),
                                    _line_style(theme.style("obs_ci"))))

    raw = bundle.observed_raw
    if raw is not None and show.obs_dv:
        style = theme.style("obs")
        layers.append(Layer(LayerKind.POINT, "obs_dv", OBSERVED_RAW,
                            {"x": "idv", "y": "dv"},
                            LayerStyle(color=style.color, size=style.size,
                                       alpha=style.alpha, shape=style.shape)))
    return layers


def separator_layers(bins, show: ShowFlags, theme: VPCTheme) -> List[Layer]:
    """Rug ticks along the top axis at the bin boundaries."""
    if not show.bin_sep or not has_bin_boundaries(bins):
        return []
    style = LayerStyle(color=theme.style("bin_separators").color)
    return [Layer(LayerKind.RUG, "bin_sep", BIN_SEPARATORS, {"x": "x"}, style, {"sides": "t"})]


def separator_frame(bins) -> pd.DataFrame:
    return pd.DataFrame({"x": [float(b) for b in bins]})


# ============================================================================
# Builder
# ============================================================================

def build_continuous_vpc(
    bundle: ResultBundle,
    show: ShowFlags,
    theme: VPCTheme,
    plan: StratificationPlan,
    smooth: bool = True,
) -> PlotSpec:
    """
    Build the layer stack of a continuous, censored or categorical VPC.

    Args:
        bundle: Aggregated VPC tables
        show: Resolved show flags
        theme: Resolved theme
        plan: Stratification plan
        smooth: Ribbons through bin midpoints (True) or one rectangle per bin (False)

    Returns:
        PlotSpec without labels, axis transforms or title
    """
    layers = tuple(chain(
        _simulated_layers(bundle.simulated_summary, show, theme, smooth),
        _observed_layers(bundle, show, theme),
        separator_layers(bundle.bins, show, theme),
    ))

    data = {
        SIMULATED: bundle.simulated_summary,
        OBSERVED: bundle.observed_summary,
        OBSERVED_RAW: bundle.observed_raw,
    }
    if any(layer.source == BIN_SEPARATORS for layer in layers):
        data[BIN_SEPARATORS] = separator_frame(bundle.bins)
    data = {k: v for k, v in data.items() if v is not None}

    return PlotSpec(
        layers=layers,
        facet=plan.facet,
        data=data,
        hue=plan.hue,
        colour_legend="" if plan.hue is not None else None,
        strip_labels=dict(plan.strip_labels),
    )
