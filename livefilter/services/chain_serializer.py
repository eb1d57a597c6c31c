"""
Filter chain serialization and deserialization.

Handles saving and loading of a filter chain to/from JSON. Every parameter
value is kept, including parameters the transforms ignore, so a saved
chain round-trips without losing user-set values.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from ..processing import FilterChain


class ChainSerializer:
    """Serializes and deserializes FilterChain to/from JSON."""

    # Format version for future compatibility
    FORMAT_VERSION = "1.0"

    @staticmethod
    def serialize(chain: FilterChain) -> Dict[str, Any]:
        """Convert a FilterChain to a serializable dictionary."""
        data = chain.to_dict()
        data["format_version"] = ChainSerializer.FORMAT_VERSION
        return data

    @staticmethod
    def deserialize(data: Dict[str, Any], max_filters: Optional[int] = None) -> FilterChain:
        """Convert a dictionary back to a FilterChain."""
        version = data.get("format_version", ChainSerializer.FORMAT_VERSION)
        if version != ChainSerializer.FORMAT_VERSION:
            raise ValueError(
                f"Unsupported chain format version: {version}. "
                f"Expected {ChainSerializer.FORMAT_VERSION}"
            )
        if not isinstance(data.get("filters", []), list):
            raise ValueError("'filters' must be a list")
        return FilterChain.from_dict(data, max_filters=max_filters)

    @staticmethod
    def save_to_file(chain: FilterChain, file_path: Path) -> None:
        """Save chain to JSON file."""
        file_path = Path(file_path)
        data = ChainSerializer.serialize(chain)
        file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(file_path, "w") as f:
            json.dump(data, f, indent=2)

    @staticmethod
    def load_from_file(file_path: Path, max_filters: Optional[int] = None) -> FilterChain:
        """Load chain from JSON file."""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Chain file not found: {file_path}")

        with open(file_path, "r") as f:
            data = json.load(f)

        return ChainSerializer.deserialize(data, max_filters=max_filters)
