"""
Filter catalog for the processing pipeline.

Each descriptor names a filter kind, its display metadata and the schema of
its parameters. The catalog is built once, on first access, and is
read-only afterwards. Transform functions are registered separately in
`transforms.py`.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Optional, List, Dict, Mapping
import math

from ..core import FilterKind


class ParameterType(Enum):
    """Type of filter parameter."""
    FLOAT = auto()
    INT = auto()
    COLOR = auto()


@dataclass(frozen=True)
class FilterParameter:
    """
    Schema for a single filter parameter.

    min_val/max_val/step are slider hints for the UI. The pipeline does not
    enforce them; transforms clamp their own output instead.
    """
    name: str
    param_type: ParameterType
    default: Any
    min_val: Optional[float] = None
    max_val: Optional[float] = None
    step: Optional[float] = None
    description: str = ""
    used: bool = True

    @property
    def is_numeric(self) -> bool:
        return self.param_type in (ParameterType.FLOAT, ParameterType.INT)

    def validate(self, value: Any) -> tuple[bool, str]:
        """Check a value against the slider range. Returns (is_valid, error_message)."""
        if self.is_numeric:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False, f"{self.name} must be a number"
            if not math.isfinite(value):
                return False, f"{self.name} must be finite"
            if self.min_val is not None and value < self.min_val:
                return False, f"{self.name} must be >= {self.min_val}"
            if self.max_val is not None and value > self.max_val:
                return False, f"{self.name} must be <= {self.max_val}"

        elif self.param_type == ParameterType.COLOR:
            if not isinstance(value, str) or not value.startswith("#"):
                return False, f"{self.name} must be a #rrggbb color"

        return True, ""


@dataclass(frozen=True)
class FilterDescriptor:
    """Immutable catalog entry."""
    kind: FilterKind
    name: str
    description: str
    category: str
    parameters: Mapping[str, FilterParameter] = field(default_factory=dict)

    @property
    def default_parameters(self) -> Dict[str, Any]:
        """Fresh dict of parameter name -> default value."""
        return {key: param.default for key, param in self.parameters.items()}

    def get_parameter(self, name: str) -> Optional[FilterParameter]:
        """Get a parameter schema by name."""
        return self.parameters.get(name)

    @property
    def ignored_parameters(self) -> List[str]:
        """Parameters that are accepted and stored but have no effect."""
        return [key for key, param in self.parameters.items() if not param.used]


def _amount(name: str, default: float, description: str, used: bool = True) -> FilterParameter:
    # Generic 0..3 multiplier slider
    return FilterParameter(
        name=name,
        param_type=ParameterType.FLOAT,
        default=default,
        min_val=0.0,
        max_val=3.0,
        step=0.1,
        description=description,
        used=used,
    )


def _build_catalog() -> Mapping[FilterKind, FilterDescriptor]:
    entries = [
        FilterDescriptor(
            kind=FilterKind.GRAYSCALE,
            name="Grayscale",
            description="Convert to black and white",
            category="color",
            parameters={
                "strength": _amount("Strength", 1.0, "Blend towards luma (0 = off, 1 = full)"),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.SEPIA,
            name="Sepia",
            description="Vintage sepia tone effect",
            category="vintage",
            parameters={
                "warmth": _amount("Warmth", 0.8, "Blend towards the sepia matrix"),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.BLUR,
            name="Box Blur",
            description="Smooth blur effect",
            category="blur",
            parameters={
                "radius": FilterParameter(
                    name="Radius",
                    param_type=ParameterType.INT,
                    default=5,
                    min_val=0,
                    max_val=20,
                    step=1,
                    description="Window half-size in pixels; edges within radius are not blurred",
                ),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.BRIGHTNESS,
            name="Brightness",
            description="Adjust image brightness",
            category="color",
            parameters={
                "level": _amount("Level", 1.2, "Brightness multiplier (1.0 = no change)"),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.CONTRAST,
            name="Contrast",
            description="Adjust image contrast",
            category="color",
            parameters={
                "level": _amount("Level", 1.3, "Contrast multiplier around mid-gray (1.0 = no change)"),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.SATURATION,
            name="Saturation",
            description="Adjust color saturation",
            category="color",
            parameters={
                "level": _amount("Level", 1.5, "Saturation multiplier (>1 boosts)"),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.HUE_SHIFT,
            name="Hue Shift",
            description="Shift color hues",
            category="color",
            parameters={
                "degrees": FilterParameter(
                    name="Degrees",
                    param_type=ParameterType.FLOAT,
                    default=30,
                    min_val=-180,
                    max_val=180,
                    step=1,
                    description="Hue rotation in degrees",
                ),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.EDGE_DETECT,
            name="Edge Detection",
            description="Detect and highlight edges",
            category="artistic",
            parameters={
                "threshold": _amount("Threshold", 0.5, "Sobel magnitude threshold as a fraction of 255"),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.EMBOSS,
            name="Emboss",
            description="3D embossed effect",
            category="artistic",
            parameters={
                "strength": _amount("Strength", 0.8, "Kernel response multiplier"),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.VINTAGE,
            name="Vintage Film",
            description="Old film camera effect",
            category="vintage",
            parameters={
                "grain": _amount("Grain", 0.3, "Film grain amount"),
                "vignette": _amount("Vignette", 0.5, "Accepted but not applied", used=False),
            },
        ),
        FilterDescriptor(
            kind=FilterKind.NEON_GLOW,
            name="Neon Glow",
            description="Cyberpunk neon effect",
            category="modern",
            parameters={
                "glow": _amount("Glow", 1.2, "Multiplier for bright pixels"),
                "color": FilterParameter(
                    name="Color",
                    param_type=ParameterType.COLOR,
                    default="#ff00ff",
                    description="Accepted but not applied",
                    used=False,
                ),
            },
        ),
    ]
    frozen = {}
    for entry in entries:
        object.__setattr__(entry, "parameters", MappingProxyType(dict(entry.parameters)))
        frozen[entry.kind] = entry
    return MappingProxyType(frozen)


_CATALOG: Optional[Mapping[FilterKind, FilterDescriptor]] = None


def get_catalog() -> Mapping[FilterKind, FilterDescriptor]:
    """Read-only mapping of every filter kind to its descriptor."""
    global _CATALOG
    if _CATALOG is None:
        _CATALOG = _build_catalog()
    return _CATALOG


def get_descriptor(kind) -> FilterDescriptor:
    """Look up a descriptor by kind or kind name."""
    return get_catalog()[FilterKind.parse(kind)]


def get_filters_by_category(category: str) -> List[FilterDescriptor]:
    """Get all descriptors in a specific category."""
    return [d for d in get_catalog().values() if d.category == category]


def get_all_categories() -> List[str]:
    """Get all filter categories in order."""
    categories = []
    for descriptor in get_catalog().values():
        if descriptor.category not in categories:
            categories.append(descriptor.category)

    preferred_order = [
        "color",
        "vintage",
        "blur",
        "artistic",
        "modern",
    ]

    # Return in preferred order, then any others
    result = [cat for cat in preferred_order if cat in categories]
    result.extend(cat for cat in categories if cat not in result)
    return result
