"""
NeoVPC Result Bundle

Read-only container for the aggregated tables produced by the upstream
VPC computation (binning, percentiles, Kaplan-Meier). The plotting code
never modifies a bundle; it only derives a PlotSpec from it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Union

import pandas as pd

from .errors import ConfigurationError


class Modality(str, Enum):
    """Data modality of a VPC."""
    CONTINUOUS = "continuous"
    CENSORED = "censored"
    CATEGORICAL = "categorical"
    TIME_TO_EVENT = "time-to-event"

    @classmethod
    def coerce(cls, value: Union[str, "Modality"]) -> "Modality":
        """Accept an enum member or its string value ('time_to_event' also works)."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "-")
        for member in cls:
            if member.value == key:
                return member
        raise ConfigurationError(
            f"Unknown VPC type '{value}'. Expected one of: "
            + ", ".join(m.value for m in cls)
        )

    @property
    def is_tte(self) -> bool:
        return self is Modality.TIME_TO_EVENT


# Stratification columns inside the aggregated tables
STRAT = "strat"
STRAT1 = "strat1"
STRAT2 = "strat2"
STRAT_COLOR = "strat_color"

BinBoundaries = Union[Sequence[float], bool, None]


def has_bin_boundaries(bins: BinBoundaries) -> bool:
    """False (or None) is the 'no separators' sentinel."""
    if bins is None or isinstance(bins, bool):
        return False
    return len(bins) > 0


def _columns(df: Optional[pd.DataFrame]) -> List[str]:
    return [] if df is None else list(df.columns)


@dataclass(frozen=True)
class ResultBundle:
    """
    Aggregated VPC tables for a single plot.

    Attributes:
        modality: Data modality (continuous, censored, categorical, time-to-event)
        simulated_summary: Per-bin percentile-of-percentile table (q5_med, q50_low, ...)
        observed_summary: Per-bin observed percentiles (obs5, obs50, obs95)
        observed_raw: Individual observations (idv, dv)
        bins: Bin boundaries, or False when no separators should be drawn
        stratify: Stratification variable names (0-2)
        stratify_color: Stratification variable rendered as colour instead of panel
        facet: Facet orientation preference ('wrap', 'rows', 'columns')
        simulated_survival_curves: Per-replicate simulated KM curves (TTE)
        simulated_km_summary: Simulated KM percentile bands per bin (TTE)
        observed_km_summary: Observed KM curve with confidence band (TTE)
        censoring_points: Censoring events (TTE)
        pre_merge_bins: Bin boundaries before bins were combined (TTE separators)
        repeated_event: Repeated time-to-event data (TTE)
        kmmc: Covariate name for a Kaplan-Meier mean covariate plot (TTE)
        as_percentage: Show survival as percentage (TTE)

    Example:
        >>> bundle = ResultBundle(
        ...     modality="continuous",
        ...     simulated_summary=vpc_dat,
        ...     observed_summary=aggr_obs,
        ...     bins=[0, 1, 2, 4, 8, 24],
        ... )
    """
    modality: Modality
    simulated_summary: Optional[pd.DataFrame] = None
    observed_summary: Optional[pd.DataFrame] = None
    observed_raw: Optional[pd.DataFrame] = None
    bins: BinBoundaries = False
    stratify: Sequence[str] = field(default_factory=tuple)
    stratify_color: Optional[str] = None
    facet: str = "wrap"
    simulated_survival_curves: Optional[pd.DataFrame] = None
    simulated_km_summary: Optional[pd.DataFrame] = None
    observed_km_summary: Optional[pd.DataFrame] = None
    censoring_points: Optional[pd.DataFrame] = None
    pre_merge_bins: BinBoundaries = None
    repeated_event: bool = False
    kmmc: Optional[str] = None
    as_percentage: bool = False

    def __post_init__(self):
        object.__setattr__(self, "modality", Modality.coerce(self.modality))
        stratify = self.stratify
        if isinstance(stratify, str):
            stratify = (stratify,)
        object.__setattr__(self, "stratify", tuple(stratify or ()))

    @property
    def stratify_original(self) -> List[str]:
        """Stratification variables rendered as panels (colour variable excluded)."""
        return [s for s in self.stratify if s != self.stratify_color]

    @property
    def stratify_all(self) -> List[str]:
        """All distinct stratification variables, panel variables first."""
        names = self.stratify_original
        if self.stratify_color is not None:
            names = names + [self.stratify_color]
        return names

    def summary_columns(self) -> List[str]:
        """Column names of the aggregated tables used to resolve stratification."""
        if self.modality.is_tte:
            return _columns(self.simulated_km_summary) + _columns(self.observed_km_summary)
        return _columns(self.simulated_summary) + _columns(self.observed_summary)

    def separator_bins(self) -> BinBoundaries:
        """Boundaries used for bin separators; TTE uses the pre-merge boundaries."""
        if not has_bin_boundaries(self.bins):
            return False
        if self.modality.is_tte and has_bin_boundaries(self.pre_merge_bins):
            return self.pre_merge_bins
        return self.bins
