"""
Utils Package

Serialization and utility functions.
"""

from .serialization import (
    deserialize_document,
    deserialize_design_node,
    load_document,
    serialize_design_node,
    serialize_scene_node,
)

__all__ = [
    "deserialize_document",
    "deserialize_design_node",
    "load_document",
    "serialize_design_node",
    "serialize_scene_node",
]
