"""
Module: document

Purpose:
    Provides DesignDocument - the loaded input: root layers plus the
    project tables (render layers, font families, atlases) that the
    exporter queries while building scene nodes.

Key Classes:
    - LayerInfo, FontInfo, SpriteInfo, AtlasInfo: Project table rows
    - DesignDocument: Roots plus tables

Dependencies:
    - dataclasses (std)
    - .design.DesignNode

Used By:
    - core.utils.serialization: Built from JSON
    - exporter.resources: Registries built from the tables
    - exporter.pipeline: Export entry points
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .design import DesignNode


@dataclass(frozen=True, slots=True)
class LayerInfo:
    """Named render layer. ``id`` is what node metadata refers to."""
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class FontInfo:
    """
    Project font family.

    Attributes:
        id: Family name as used by the design tool
        name: Engine font resource name
        path: Engine font resource path
    """
    id: str
    name: str
    path: str


@dataclass(frozen=True, slots=True)
class SpriteInfo:
    """One sprite inside an atlas, keyed by the component it was drawn from."""
    name: str
    width: float
    height: float
    component: Optional[str] = None


@dataclass(frozen=True, slots=True)
class AtlasInfo:
    """Texture atlas and its sprites."""
    name: str
    path: str
    sprites: Tuple[SpriteInfo, ...] = ()
    id: Optional[str] = None

    @property
    def sprite_area(self) -> float:
        """Summed pixel area of every sprite."""
        return sum(s.width * s.height for s in self.sprites)


@dataclass
class DesignDocument:
    """
    A loaded design document.

    Example:
        >>> doc = DesignDocument(roots=[])
        >>> doc.find_root("menu") is None
        True
    """
    roots: List[DesignNode] = field(default_factory=list)
    layers: List[LayerInfo] = field(default_factory=list)
    fonts: List[FontInfo] = field(default_factory=list)
    atlases: List[AtlasInfo] = field(default_factory=list)

    def find_root(self, name: str) -> Optional[DesignNode]:
        for root in self.roots:
            if root.name == name:
                return root
        return None
