"""
NeoVPC error types.
"""


class NeoVPCError(Exception):
    """Base class for all NeoVPC errors."""


class ConfigurationError(NeoVPCError, ValueError):
    """Invalid plot configuration (unknown show option, theme key, modality)."""


class StratificationError(NeoVPCError, ValueError):
    """Stratification could not be resolved to a facet/colour plan."""
