"""
NeoVPC - Visual Predictive Check plots

Builds VPC plots for pharmacometric model evaluation from aggregated
observed/simulated tables. Supports continuous, censored, categorical
and (repeated) time-to-event data, stratification by one or two
variables, and matplotlib or plotly output.

Quick Start:
    >>> import neovpc
    >>> bundle = neovpc.ResultBundle(
    ...     modality="continuous",
    ...     simulated_summary=vpc_dat,
    ...     observed_summary=aggr_obs,
    ...     bins=[0, 1, 2, 4, 8, 12, 24],
    ... )
    >>> spec = neovpc.plot_vpc(bundle, show={"pi_as_area": True}, log_y=True)
    >>> fig = neovpc.render_vpc(spec)
"""

from .data import Modality, ResultBundle
from .errors import ConfigurationError, NeoVPCError, StratificationError
from .viz import (
    ShowFlags,
    new_vpc_theme,
    plot_vpc,
    render_vpc,
    set_backend,
)

__version__ = "0.1.0"

__all__ = [
    "Modality",
    "ResultBundle",
    "NeoVPCError",
    "ConfigurationError",
    "StratificationError",
    "ShowFlags",
    "new_vpc_theme",
    "plot_vpc",
    "render_vpc",
    "set_backend",
    "__version__",
]
