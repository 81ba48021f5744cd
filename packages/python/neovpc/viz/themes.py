"""
NeoVPC Themes

Style attributes per VPC layer category, with built-in defaults, and the
colour palette used for discrete colour/fill scales.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional

from ..errors import ConfigurationError
from .layers import LayerStyle

logger = logging.getLogger(__name__)


# ============================================================================
# Palette
# ============================================================================

NEOVPC_COLORS = [
    "#3388CC",  # blue
    "#E74C3C",  # red
    "#27AE60",  # green
    "#F39C12",  # orange
    "#8E44AD",  # purple
    "#16A085",  # teal
    "#2C3E50",  # dark slate
    "#D35400",  # pumpkin
]


def get_color(index: int) -> str:
    """Palette colour for a discrete scale level (cycles)."""
    return NEOVPC_COLORS[index % len(NEOVPC_COLORS)]


# ============================================================================
# VPC theme
# ============================================================================

THEME_CATEGORIES = ("obs", "obs_median", "obs_ci", "sim_pi", "sim_median", "bin_separators")

_STYLE_ATTRIBUTES = tuple(f.name for f in fields(LayerStyle))


def _default_styles() -> Dict[str, LayerStyle]:
    return {
        "obs": LayerStyle(color="#000000", size=1.0, alpha=0.7, shape=1),
        "obs_median": LayerStyle(color="#000000", linetype="solid", size=1.0),
        "obs_ci": LayerStyle(color="#000000", linetype="dashed", size=0.5,
                             fill="#3388cc", alpha=0.15),
        "sim_pi": LayerStyle(color="#000000", linetype="dotted", size=1.0,
                             fill="#3388cc", alpha=0.15),
        "sim_median": LayerStyle(color="#000000", linetype="dashed", size=1.0,
                                 fill="#3388cc", alpha=0.3),
        "bin_separators": LayerStyle(color="#000000"),
    }


@dataclass(frozen=True)
class VPCTheme:
    """
    Per-category layer styles.

    Use new_vpc_theme() to build one with overrides.
    """
    styles: Dict[str, LayerStyle] = field(default_factory=_default_styles)

    def style(self, category: str) -> LayerStyle:
        """Style for a category; unknown categories get an empty style."""
        return self.styles.get(category, LayerStyle())

    def get(self, key: str) -> Any:
        """Flat lookup, e.g. theme.get('sim_median_fill')."""
        category, attribute = _split_key(key)
        return getattr(self.style(category), attribute)


def _split_key(key: str):
    for attribute in _STYLE_ATTRIBUTES:
        suffix = "_" + attribute
        if key.endswith(suffix) and key[: -len(suffix)] in THEME_CATEGORIES:
            return key[: -len(suffix)], attribute
    raise ConfigurationError(
        f"Unknown theme option '{key}'. Expected '<category>_<attribute>' with "
        f"category in {THEME_CATEGORIES} and attribute in {_STYLE_ATTRIBUTES}"
    )


def new_vpc_theme(update: Optional[Mapping[str, Any]] = None) -> VPCTheme:
    """
    Create a VPC theme from the built-in defaults.

    Args:
        update: Flat overrides such as {"sim_pi_fill": "#ff0000", "obs_ci_linetype": "solid"}

    Returns:
        VPCTheme

    Raises:
        ConfigurationError: If an override key is not a known category/attribute

    Example:
        >>> theme = new_vpc_theme({"sim_median_fill": "#cc3333", "sim_median_alpha": 0.5})
    """
    styles = _default_styles()
    for key, value in (update or {}).items():
        category, attribute = _split_key(key)
        styles[category] = replace(styles[category], **{attribute: value})
    return VPCTheme(styles=styles)


DEFAULT_THEME = new_vpc_theme()


def resolve_theme(theme: Any) -> VPCTheme:
    """Return `theme` if it is a VPCTheme, else the default theme."""
    if isinstance(theme, VPCTheme):
        return theme
    if theme is not None:
        logger.debug("Ignoring theme of type %s, using default VPC theme", type(theme).__name__)
    return DEFAULT_THEME
