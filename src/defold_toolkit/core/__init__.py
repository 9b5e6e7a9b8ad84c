"""
Defold Toolkit Core Package

Shared data models, schema validation and document loading.
"""

from .models import DesignNode, GuiData, Pivot, SceneNode, Vector4

__all__ = [
    "DesignNode",
    "GuiData",
    "Pivot",
    "SceneNode",
    "Vector4",
]
