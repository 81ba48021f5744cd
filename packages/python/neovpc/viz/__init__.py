"""
NeoVPC Visualization Module

Visual Predictive Check plot assembly for continuous, censored,
categorical and time-to-event data, with matplotlib and plotly
rendering backends.

Example:
    >>> from neovpc import ResultBundle, viz
    >>>
    >>> bundle = ResultBundle(modality="continuous", simulated_summary=vpc_dat,
    ...                       observed_summary=aggr_obs, bins=bins)
    >>> spec = viz.plot_vpc(bundle, show={"obs_dv": True}, smooth=False)
    >>>
    >>> viz.set_backend("plotly")
    >>> fig = viz.render_vpc(spec)
    >>> fig.show()
"""

from .backends import (
    get_backend,
    set_backend,
    available_backends,
    PlotBackend,
)

from .layers import (
    AxisScale,
    FacetDirective,
    FacetKind,
    Layer,
    LayerKind,
    LayerStyle,
    PlotSpec,
)

from .show import (
    ShowFlags,
    SHOW_DEFAULT,
    SHOW_OPTIONS,
    resolve_show,
)

from .themes import (
    VPCTheme,
    DEFAULT_THEME,
    NEOVPC_COLORS,
    new_vpc_theme,
    resolve_theme,
)

from .stratification import (
    StratificationPlan,
    plan_stratification,
)

from .continuous import build_continuous_vpc
from .tte import build_tte_vpc, replicate_alpha

from .vpc import (
    plot_vpc,
    render_vpc,
)


__all__ = [
    # Backends
    "get_backend",
    "set_backend",
    "available_backends",
    "PlotBackend",
    # Plot specification
    "AxisScale",
    "FacetDirective",
    "FacetKind",
    "Layer",
    "LayerKind",
    "LayerStyle",
    "PlotSpec",
    # Configuration
    "ShowFlags",
    "SHOW_DEFAULT",
    "SHOW_OPTIONS",
    "resolve_show",
    "VPCTheme",
    "DEFAULT_THEME",
    "NEOVPC_COLORS",
    "new_vpc_theme",
    "resolve_theme",
    # Stratification
    "StratificationPlan",
    "plan_stratification",
    # Builders
    "build_continuous_vpc",
    "build_tte_vpc",
    "replicate_alpha",
    # VPC
    "plot_vpc",
    "render_vpc",
]
