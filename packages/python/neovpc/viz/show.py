"""
NeoVPC Show Flags

Which optional VPC elements are drawn. User overrides are merged onto
SHOW_DEFAULT by value; the defaults are never modified.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional, Union

from ..errors import ConfigurationError


@dataclass(frozen=True)
class ShowFlags:
    """
    Resolved show options.

    Attributes:
        obs_dv: Observed data points
        obs_ci: Observed outer percentile lines (or KM confidence band for TTE)
        obs_median: Observed median line
        sim_median: Simulated median line
        sim_median_ci: Confidence band around the simulated median
        pi: Simulated outer percentile lines
        pi_ci: Confidence bands around the simulated outer percentiles
        pi_as_area: Draw the simulated prediction interval as a single area
        bin_sep: Bin separator ticks
        sim_km: Individual simulated KM curves (TTE only)
    """
    obs_dv: bool = False
    obs_ci: bool = True
    obs_median: bool = True
    sim_median: bool = False
    sim_median_ci: bool = True
    pi: bool = False
    pi_ci: bool = True
    pi_as_area: bool = False
    bin_sep: bool = True
    sim_km: bool = False


SHOW_DEFAULT = ShowFlags()

SHOW_OPTIONS = tuple(f.name for f in fields(ShowFlags))


def resolve_show(
    show: Optional[Union[ShowFlags, Mapping[str, Any]]] = None,
    defaults: ShowFlags = SHOW_DEFAULT,
) -> ShowFlags:
    """
    Overlay user show options onto the defaults.

    Args:
        show: None, a ShowFlags instance, or a mapping of option -> bool
        defaults: Base flags

    Returns:
        New ShowFlags

    Raises:
        ConfigurationError: If the mapping contains unknown options or
            non-boolean values

    Example:
        >>> flags = resolve_show({"obs_dv": True, "pi_as_area": True})
        >>> flags.obs_dv, flags.obs_ci
        (True, True)
    """
    if show is None:
        return defaults
    if isinstance(show, ShowFlags):
        return show

    unknown = sorted(str(k) for k in show if k not in SHOW_OPTIONS)
    if unknown:
        raise ConfigurationError(
            f"Unknown show option(s): {', '.join(unknown)}. "
            f"Valid options: {', '.join(SHOW_OPTIONS)}"
        )
    invalid = sorted(str(k) for k, v in show.items() if not isinstance(v, bool))
    if invalid:
        raise ConfigurationError(
            f"Show option(s) must be True or False: {', '.join(invalid)}"
        )
    return replace(defaults, **dict(show))
