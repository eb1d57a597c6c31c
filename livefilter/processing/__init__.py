"""
Processing system for Live Filter.

Provides the filter catalog, the filter chain and the processor that folds
the chain over RGBA8 pixel buffers.
"""

from .filters import (
    FilterDescriptor,
    FilterParameter,
    ParameterType,
    get_catalog,
    get_descriptor,
    get_filters_by_category,
    get_all_categories,
)
from .pipeline import FilterChain, FilterInstance, DEFAULT_MAX_FILTERS
from .transforms import TRANSFORMS, apply_transform
from .executor import PipelineProcessor

__all__ = [
    "FilterChain",
    "FilterInstance",
    "FilterDescriptor",
    "FilterParameter",
    "ParameterType",
    "PipelineProcessor",
    "DEFAULT_MAX_FILTERS",
    # Helpers
    "get_catalog",
    "get_descriptor",
    "get_filters_by_category",
    "get_all_categories",
    "apply_transform",
    "TRANSFORMS",
]
