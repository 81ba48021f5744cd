"""
NeoVPC Time-to-Event VPC Builder

Layer stack for (repeated) time-to-event VPCs: simulated survival
curves, the simulated Kaplan-Meier band, censoring ticks and the
observed Kaplan-Meier curve with its confidence band.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from itertools import chain
from typing import List, Optional

import pandas as pd

from ..data import STRAT, STRAT_COLOR, ResultBundle
from .continuous import BIN_SEPARATORS, band_layer, separator_frame, separator_layers
from .layers import AxisScale, Layer, LayerKind, LayerStyle, PlotSpec
from .show import ShowFlags
from .stratification import StratificationPlan
from .themes import VPCTheme

logger = logging.getLogger(__name__)

SIM_KM = "simulated_km_summary"
SIM_CURVES = "simulated_survival_curves"
OBS_KM = "observed_km_summary"
CENSORING = "censoring_points"

SIM_CURVE_COLOR = "#3387cb"
PERCENT_BREAKS = (0.0, 0.25, 0.5, 0.75, 1.0)
PERCENT_LABELS = ("0", "25", "50", "75", "100")


def replicate_alpha(n_replicates: int) -> float:
    """Opacity of one simulated curve: min(0.1, 20 / n_replicates)."""
    if n_replicates <= 0:
        return 0.1
    return min(0.1, 20.0 / n_replicates)


def has_degenerate_strata(obs_km: pd.DataFrame) -> bool:
    """True when any stratum has zero or one observed KM rows."""
    if STRAT not in obs_km.columns:
        return len(obs_km) <= 1
    counts = obs_km.groupby(STRAT, sort=False).size()
    return len(counts) == 0 or bool((counts <= 1).any())


def _with_group(frame: pd.DataFrame, **aes: str):
    if STRAT in frame.columns:
        aes.setdefault("group", STRAT)
    return aes


# ============================================================================
# Layer groups
# ============================================================================

def _replicate_layers(curves: Optional[pd.DataFrame], show: ShowFlags) -> List[Layer]:
    if curves is None or not show.sim_km:
        return []
    alpha = replicate_alpha(curves["i"].nunique())
    style = LayerStyle(color=SIM_CURVE_COLOR, alpha=alpha)
    return [Layer(LayerKind.STEP, "sim_km", SIM_CURVES,
                  {"x": "bin_mid", "y": "surv", "group": "strat_sim"}, style)]


def _replicate_frame(curves: pd.DataFrame) -> pd.DataFrame:
    replicate = curves["i"].astype(str)
    if STRAT in curves.columns:
        return curves.assign(strat_sim=curves[STRAT].astype(str) + "_" + replicate)
    return curves.assign(strat_sim=replicate)


def _simulated_band(
    sim_km: pd.DataFrame, theme: VPCTheme, plan: StratificationPlan, smooth: bool
) -> Layer:
    layer = band_layer("pi_area", SIM_KM, sim_km, "qmin", "qmax",
                       theme.style("sim_median"), smooth)
    if plan.has_color and STRAT_COLOR in sim_km.columns:
        return replace(layer, aes={**layer.aes, "fill": STRAT_COLOR},
                       style=LayerStyle(alpha=layer.style.alpha))
    return layer


def _censoring_layers(cens: Optional[pd.DataFrame]) -> List[Layer]:
    if cens is None or len(cens) == 0:
        return []
    return [Layer(LayerKind.POINT, "censoring", CENSORING,
                  _with_group(cens, x="time", y="y"),
                  LayerStyle(shape="|", size=2.5))]


def _sim_median_layers(sim_km: pd.DataFrame, show: ShowFlags, smooth: bool) -> List[Layer]:
    if not show.sim_median:
        return []
    kind = LayerKind.LINE if smooth else LayerKind.STEP
    return [Layer(kind, "sim_median", SIM_KM,
                  _with_group(sim_km, x="bin_mid", y="qmed"),
                  LayerStyle(linetype="dashed"))]


def _observed_layers(
    obs_km: Optional[pd.DataFrame],
    show: ShowFlags,
    theme: VPCTheme,
    plan: StratificationPlan,
    verbose: bool,
) -> List[Layer]:
    if obs_km is None:
        return []
    by_color = plan.has_color and STRAT_COLOR in obs_km.columns
    layers = []

    if show.obs_ci and all(c in obs_km.columns for c in ("lower", "upper")):
        style = theme.style("obs_ci")
        aes = {"x": "time", "ymin": "lower", "ymax": "upper"}
        if by_color:
            aes["group"] = STRAT_COLOR
        elif STRAT in obs_km.columns:
            aes["group"] = STRAT
        layers.append(Layer(LayerKind.RIBBON, "obs_ci", OBS_KM, aes,
                            LayerStyle(fill=style.fill, alpha=style.alpha)))

    if show.obs_dv:
        kind = LayerKind.STEP
        if has_degenerate_strata(obs_km):
            kind = LayerKind.LINE
            if verbose:
                logger.warning(
                    "Some strata in the observed data had zero or one observations, "
                    "using line instead of step plot. Consider using less strata "
                    "(e.g. using the 'events' argument)."
                )
        aes = {"x": "time", "y": "surv"}
        if by_color:
            aes["colour"] = STRAT_COLOR
        elif STRAT in obs_km.columns:
            aes["group"] = STRAT
        layers.append(Layer(kind, "obs_dv", OBS_KM, aes, LayerStyle(size=0.8)))

    return layers


def _y_axis(bundle: ResultBundle):
    """Default y label and scale: covariate mean, survival percentage or survival."""
    if bundle.kmmc is not None:
        return f"Mean ({bundle.kmmc})", AxisScale()
    if bundle.as_percentage:
        return "Survival (%)", AxisScale(breaks=PERCENT_BREAKS, labels=PERCENT_LABELS)
    return "Survival", AxisScale()


# ============================================================================
# Builder
# ============================================================================

def build_tte_vpc(
    bundle: ResultBundle,
    show: ShowFlags,
    theme: VPCTheme,
    plan: StratificationPlan,
    smooth: bool = True,
    verbose: bool = False,
) -> PlotSpec:
    """
    Build the layer stack of a time-to-event VPC.

    The simulated interval is always drawn as an area, whatever the
    pi_as_area, pi, pi_ci and sim_median_ci flags say.

    Args:
        bundle: Aggregated KM tables
        show: Resolved show flags
        theme: Resolved theme
        plan: Stratification plan
        smooth: Ribbon/line (True) or rectangles/steps (False)
        verbose: Log a warning when step curves fall back to lines

    Returns:
        PlotSpec with default y label and y scale, without x label or title
    """
    sim_km = bundle.simulated_km_summary
    curves = bundle.simulated_survival_curves
    sep_bins = bundle.separator_bins()

    layers = tuple(chain(
        _replicate_layers(curves, show),
        [_simulated_band(sim_km, theme, plan, smooth)],
        _censoring_layers(bundle.censoring_points),
        _sim_median_layers(sim_km, show, smooth),
        _observed_layers(bundle.observed_km_summary, show, theme, plan, verbose),
        separator_layers(sep_bins, show, theme),
    ))
    sources = {layer.source for layer in layers}

    data = {SIM_KM: sim_km}
    if SIM_CURVES in sources:
        data[SIM_CURVES] = _replicate_frame(curves)
    if CENSORING in sources:
        data[CENSORING] = bundle.censoring_points
    if OBS_KM in sources:
        data[OBS_KM] = bundle.observed_km_summary
    if BIN_SEPARATORS in sources:
        data[BIN_SEPARATORS] = separator_frame(sep_bins)

    has_fill = any("fill" in layer.aes for layer in layers)
    has_colour = any("colour" in layer.aes for layer in layers)
    ylab, y_scale = _y_axis(bundle)

    return PlotSpec(
        layers=layers,
        facet=plan.facet,
        data=data,
        fill_legend="" if has_fill else None,
        colour_legend="" if has_colour else None,
        y_scale=y_scale,
        ylab=ylab,
        strip_labels=dict(plan.strip_labels),
    )
