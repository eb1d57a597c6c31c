"""
Filter chain management.

Manages an ordered, capacity-bounded chain of filter instances that are
applied sequentially to image data. Insertion order is the application
order.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple
import logging
import uuid

from PySide6.QtCore import QObject, Signal

from ..core import CapacityExceeded, FilterKind
from .filters import FilterDescriptor, get_descriptor

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILTERS = 5


@dataclass
class FilterInstance:
    """One active filter in a chain: a kind plus its parameter overrides."""
    kind: FilterKind
    parameter_overrides: Dict[str, Any] = field(default_factory=dict)
    instance_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def descriptor(self) -> FilterDescriptor:
        return get_descriptor(self.kind)

    @property
    def name(self) -> str:
        return self.descriptor.name

    def get_parameter(self, name: str) -> Any:
        """Effective value: override if present, else the catalog default."""
        if name in self.parameter_overrides:
            return self.parameter_overrides[name]
        param = self.descriptor.get_parameter(name)
        return param.default if param else None

    def effective_parameters(self) -> Dict[str, Any]:
        """Catalog defaults merged with this instance's overrides."""
        params = self.descriptor.default_parameters
        params.update(self.parameter_overrides)
        return params


class FilterChain(QObject):
    """Ordered list of filter instances, with mutation notifications."""

    filter_applied = Signal(str, str, dict)  # (instance_id, kind, parameters)
    filter_removed = Signal(str)  # instance_id
    filter_moved = Signal(str, int)  # (instance_id, new_index)
    parameter_changed = Signal(str, str)  # (instance_id, parameter name)
    cleared = Signal()
    changed = Signal()
    log = Signal(str)

    def __init__(self, max_filters: int = DEFAULT_MAX_FILTERS):
        super().__init__()
        if max_filters < 0:
            raise ValueError("max_filters must be >= 0")
        self.max_filters = max_filters
        self._instances: List[FilterInstance] = []

    # ========== Mutation ==========

    def add(self, kind) -> str:
        """
        Append a new instance seeded with catalog defaults.

        Raises CapacityExceeded if the chain is full; the chain is left
        unchanged in that case.
        """
        kind = FilterKind.parse(kind)
        if len(self._instances) >= self.max_filters:
            message = f"Cannot add {kind.value}: chain is full ({self.max_filters} filters max)"
            logger.info(message)
            self.log.emit(message)
            raise CapacityExceeded(self.max_filters)

        instance = FilterInstance(kind=kind, parameter_overrides=get_descriptor(kind).default_parameters)
        self._instances.append(instance)
        logger.debug("Added %s (%s)", kind.value, instance.instance_id)
        self.filter_applied.emit(instance.instance_id, kind.value, dict(instance.parameter_overrides))
        self.changed.emit()
        return instance.instance_id

    def append_instance(self, instance: FilterInstance) -> None:
        """Append an existing instance (used when restoring a saved chain)."""
        if len(self._instances) >= self.max_filters:
            raise CapacityExceeded(self.max_filters)
        self._instances.append(instance)
        self.filter_applied.emit(instance.instance_id, instance.kind.value, instance.effective_parameters())
        self.changed.emit()

    def remove(self, instance_id: str) -> bool:
        """Remove an instance and its overrides. No-op if absent; returns success."""
        index = self.index_of(instance_id)
        if index is None:
            return False
        del self._instances[index]
        self.filter_removed.emit(instance_id)
        self.changed.emit()
        return True

    def set_parameter(self, instance_id: str, name: str, value: Any) -> None:
        """
        Create or overwrite one parameter override.

        No range validation happens here; the transform's own clamping
        applies at processing time.
        """
        instance = self.get(instance_id)
        if instance is None:
            raise KeyError(f"No filter instance {instance_id!r} in chain")
        instance.parameter_overrides[name] = value
        self.parameter_changed.emit(instance_id, name)
        self.changed.emit()

    def move(self, instance_id: str, new_index: int) -> bool:
        """Move an instance to a new position. Returns success."""
        index = self.index_of(instance_id)
        if index is None:
            return False
        new_index = max(0, min(new_index, len(self._instances) - 1))
        if new_index == index:
            return True

        instance = self._instances.pop(index)
        self._instances.insert(new_index, instance)
        self.filter_moved.emit(instance_id, new_index)
        self.changed.emit()
        return True

    def clear(self) -> None:
        """Remove all instances from the chain."""
        self._instances.clear()
        self.cleared.emit()
        self.changed.emit()

    # ========== Queries ==========

    def order(self) -> Tuple[FilterInstance, ...]:
        """Instances in application order."""
        return tuple(self._instances)

    def get(self, instance_id: str) -> Optional[FilterInstance]:
        """Get an instance by id."""
        for instance in self._instances:
            if instance.instance_id == instance_id:
                return instance
        return None

    def index_of(self, instance_id: str) -> Optional[int]:
        for i, instance in enumerate(self._instances):
            if instance.instance_id == instance_id:
                return i
        return None

    def is_full(self) -> bool:
        return len(self._instances) >= self.max_filters

    def is_empty(self) -> bool:
        """Check if chain has any filters."""
        return len(self._instances) == 0

    def __len__(self) -> int:
        """Return number of filters in chain."""
        return len(self._instances)

    def __iter__(self) -> Iterator[FilterInstance]:
        """Iterate over filters in application order."""
        return iter(list(self._instances))

    # ========== Serialization ==========

    def to_dict(self) -> Dict[str, Any]:
        """Serialize chain to dictionary."""
        return {
            "max_filters": self.max_filters,
            "filters": [self._serialize_instance(f) for f in self._instances],
        }

    @staticmethod
    def _serialize_instance(instance: FilterInstance) -> Dict[str, Any]:
        """Serialize a single instance, including ignored parameters."""
        return {
            "kind": instance.kind.value,
            "parameters": dict(instance.parameter_overrides),
        }

    @staticmethod
    def from_dict(data: Dict[str, Any], max_filters: Optional[int] = None) -> "FilterChain":
        """
        Deserialize chain from dictionary.

        Unknown kinds and entries beyond capacity are skipped with a warning.
        """
        capacity = max_filters if max_filters is not None else data.get("max_filters", DEFAULT_MAX_FILTERS)
        chain = FilterChain(max_filters=capacity)

        for filter_data in data.get("filters", []):
            instance = FilterChain._deserialize_instance(filter_data)
            if instance is None:
                continue
            if chain.is_full():
                logger.warning("Dropping %s: chain capacity %d reached", instance.kind.value, capacity)
                continue
            chain.append_instance(instance)

        return chain

    @staticmethod
    def _deserialize_instance(data: Dict[str, Any]) -> Optional[FilterInstance]:
        """Deserialize a single instance from data."""
        kind_name = data.get("kind")
        if not kind_name:
            return None
        try:
            kind = FilterKind.parse(kind_name)
        except ValueError:
            logger.warning("Skipping unknown filter kind %r", kind_name)
            return None

        # Restore overrides on top of fresh defaults
        overrides = get_descriptor(kind).default_parameters
        overrides.update(data.get("parameters", {}))
        return FilterInstance(kind=kind, parameter_overrides=overrides)
