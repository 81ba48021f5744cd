"""
NeoVPC Plot Assembly

plot_vpc() turns a ResultBundle into a PlotSpec: it resolves show flags
and theme, plans stratification, dispatches on the data modality to the
continuous or time-to-event builder and applies labels, axis transforms
and the title. render_vpc() draws the result with the active backend.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional, Union

from ..data import Modality, ResultBundle
from ..errors import ConfigurationError
from .continuous import build_continuous_vpc
from .layers import AxisScale, PlotSpec
from .show import ShowFlags, resolve_show
from .stratification import plan_stratification
from .themes import VPCTheme, resolve_theme
from .tte import build_tte_vpc

logger = logging.getLogger(__name__)

DEFAULT_XLAB = "Time"
DEFAULT_YLAB = "Dependent value"


def _check_bundle(bundle: ResultBundle) -> None:
    if bundle.modality.is_tte:
        if bundle.simulated_km_summary is None:
            raise ConfigurationError("Time-to-event VPC requires a simulated KM summary")
    elif bundle.simulated_summary is None and bundle.observed_summary is None:
        raise ConfigurationError(
            f"{bundle.modality.value} VPC requires a simulated or observed summary"
        )


def _log_scale(scale: AxisScale, enabled: bool) -> AxisScale:
    return replace(scale, transform="log10") if enabled else scale


def plot_vpc(
    bundle: ResultBundle,
    show: Optional[Union[ShowFlags, Mapping[str, Any]]] = None,
    vpc_theme: Optional[VPCTheme] = None,
    smooth: bool = True,
    log_x: bool = False,
    log_y: bool = False,
    title: Optional[str] = None,
    xlab: Optional[str] = None,
    ylab: Optional[str] = None,
    facet: Optional[str] = None,
    verbose: bool = False,
) -> PlotSpec:
    """
    Assemble a Visual Predictive Check plot.

    Args:
        bundle: Aggregated VPC tables (continuous, censored, categorical or time-to-event)
        show: Show option overrides (obs_dv, obs_ci, obs_median, sim_median,
            sim_median_ci, pi, pi_ci, pi_as_area, bin_sep, sim_km)
        vpc_theme: VPCTheme from new_vpc_theme(); anything else uses the default theme
        smooth: Connect bin midpoints (True) or show bins as rectangles (False)
        log_x: Logarithmic x-axis
        log_y: Logarithmic y-axis
        title: Plot title
        xlab: X-axis label (default "Time")
        ylab: Y-axis label (default "Dependent value", or survival / covariate
            mean label for time-to-event)
        facet: Facet orientation ('wrap', 'rows', 'columns'), overrides bundle.facet
        verbose: Log diagnostics

    Returns:
        PlotSpec ready for render_vpc() or any other backend

    Raises:
        ConfigurationError: Unknown show option or missing required tables
        StratificationError: Stratification cannot be mapped to panels/colour

    Example:
        >>> spec = plot_vpc(bundle, show={"obs_dv": True, "pi_as_area": True}, log_y=True)
        >>> fig = render_vpc(spec)
    """
    flags = resolve_show(show)
    theme = resolve_theme(vpc_theme)
    _check_bundle(bundle)

    plan = plan_stratification(
        bundle.stratify_original,
        bundle.stratify_color,
        facet=facet or bundle.facet,
        columns=bundle.summary_columns(),
        single_facet=bundle.modality.is_tte and bundle.repeated_event,
    )

    if bundle.modality is Modality.TIME_TO_EVENT:
        spec = build_tte_vpc(bundle, flags, theme, plan, smooth=smooth, verbose=verbose)
    else:
        spec = build_continuous_vpc(bundle, flags, theme, plan, smooth=smooth)

    logger.debug("Assembled %s VPC with %d layers", bundle.modality.value, len(spec.layers))

    return replace(
        spec,
        xlab=xlab if xlab is not None else DEFAULT_XLAB,
        ylab=ylab if ylab is not None else (spec.ylab or DEFAULT_YLAB),
        title=title,
        x_scale=_log_scale(spec.x_scale, log_x),
        y_scale=_log_scale(spec.y_scale, log_y),
        theme="plain",
    )


def render_vpc(spec: PlotSpec, backend: Optional[str] = None, **kwargs) -> Any:
    """
    Draw a PlotSpec with a plotting backend.

    Args:
        spec: Result of plot_vpc()
        backend: 'matplotlib' or 'plotly' (default: active backend)
        **kwargs: Passed to the backend (e.g. figsize)

    Returns:
        matplotlib Figure or plotly Figure
    """
    from .backends import _get_plotter

    return _get_plotter(backend).render(spec, **kwargs)
