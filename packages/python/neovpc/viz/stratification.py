"""
NeoVPC Stratification Planner

Maps (stratification arity, colour stratification, facet orientation,
available table columns) to a facet directive and a hue column. Both the
continuous and the time-to-event builders use the same plan.

Decision table (orientation: exact 'wrap' -> wrap, any string containing
'row' -> rows, anything else -> columns):

    panel vars  colour  result
    ----------  ------  -----------------------------------------------
    0           no      no facet
    1 (or RTTE) no      facet on 'strat'
    1 (or RTTE) yes     facet on 'strat1', hue on 'strat2'
    2 / other   any     grid 'strat1' x 'strat2' if 'strat1' in tables,
                        else colour only if 'strat' in tables,
                        else StratificationError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional, Sequence, Tuple

from ..data import STRAT, STRAT1, STRAT2, STRAT_COLOR
from ..errors import StratificationError
from .layers import FacetDirective, FacetKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StratificationPlan:
    """
    Resolved stratification.

    Attributes:
        facet: Panel layout (columns refer to the aggregated tables)
        hue: Table column mapped to discrete colour, if any
        color: Name of the colour stratification variable, if any
        strip_labels: Table column -> stratification variable name
    """
    facet: FacetDirective = field(default_factory=FacetDirective)
    hue: Optional[str] = None
    color: Optional[str] = None
    strip_labels: Dict[str, str] = field(default_factory=dict)

    @property
    def has_color(self) -> bool:
        return self.color is not None

    @property
    def facet_variables(self) -> Tuple[str, ...]:
        """Stratification variable names used for panels."""
        return tuple(self.strip_labels.get(c, c) for c in self.facet.columns)


NO_STRATIFICATION = StratificationPlan()


def facet_on(column: str, orientation: str) -> FacetDirective:
    """Single-variable facet directive for an orientation preference."""
    if orientation == "wrap":
        return FacetDirective.wrap(column)
    if "row" in orientation:
        return FacetDirective.grid_row(column)
    return FacetDirective.grid_col(column)


def facet_grid(orientation: str) -> FacetDirective:
    """Two-variable grid; 'row' orientations put the first variable on rows."""
    if "row" in orientation:
        return FacetDirective.grid_both(STRAT1, STRAT2)
    return FacetDirective.grid_both(STRAT2, STRAT1)


def _strip_labels(names: Sequence[str], color: Optional[str]) -> Dict[str, str]:
    labels = {STRAT: ", ".join(names)}
    if len(names) == 2:
        labels[STRAT1] = names[0]
        labels[STRAT2] = names[1]
    if color is not None:
        labels[STRAT_COLOR] = color
    return labels


def plan_stratification(
    stratify: Sequence[str],
    stratify_color: Optional[str] = None,
    facet: str = "wrap",
    columns: Iterable[str] = (),
    single_facet: bool = False,
) -> StratificationPlan:
    """
    Plan faceting and colour mapping for a stratified VPC.

    Args:
        stratify: Panel stratification variables (colour variable excluded)
        stratify_color: Colour stratification variable
        facet: Orientation preference ('wrap', 'rows', 'columns')
        columns: Column names present in the aggregated tables
        single_facet: Force the single-variable layout (repeated time-to-event)

    Returns:
        StratificationPlan

    Raises:
        StratificationError: If the variables cannot be resolved to a layout

    Example:
        >>> plan = plan_stratification(["SEX"], facet="rows")
        >>> plan.facet.kind, plan.facet_variables
        (<FacetKind.GRID_ROW: 'grid_row'>, ('SEX',))
    """
    panel_vars = [s for s in stratify if s != stratify_color]
    names = list(panel_vars)
    if stratify_color is not None:
        names.append(stratify_color)

    if len(names) > 2:
        raise StratificationError(
            f"At most two stratification variables are supported, got {names}"
        )
    if not names:
        return NO_STRATIFICATION

    facet = facet or "wrap"
    hue = None
    if stratify_color is not None:
        hue = STRAT2 if len(names) == 2 else STRAT
    labels = _strip_labels(names, stratify_color)

    if len(panel_vars) == 1 or single_facet:
        column = STRAT1 if stratify_color is not None else STRAT
        return StratificationPlan(facet_on(column, facet), hue, stratify_color, labels)

    available = set(columns)
    if STRAT1 in available:
        return StratificationPlan(facet_grid(facet), hue, stratify_color, labels)
    if STRAT in available:
        logger.debug("Stratification on %s rendered as colour only", names)
        return StratificationPlan(FacetDirective(FacetKind.NONE), hue, stratify_color, labels)
    raise StratificationError("Stratification unsuccessful.")
