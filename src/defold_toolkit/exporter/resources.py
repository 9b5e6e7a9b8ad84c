"""
Module: exporter.resources

Purpose:
    Project resource lookups used while building scene nodes: which atlas
    sprite an instance draws, which engine font a text family maps to and
    which render layer a node belongs to. Also collects the texture, font
    and layer tables written into a GUI file.

Key Classes:
    - TextureResolver: Abstract texture lookup
    - AtlasRegistry: Atlas-membership implementation (document or disk)
    - TextureRef: Resolved texture
    - FontTable: Design family -> engine font
    - LayerTable: Layer id -> engine layer name

Key Functions:
    - extract_texture_data(): Textures table for emitted nodes
    - extract_font_data(): Fonts table for emitted nodes
    - extract_layer_data(): Layers table

Dependencies:
    - PIL: Sprite sizes of on-disk atlases

Used By:
    - exporter.conversion: Texture, font and layer of each record
    - exporter.pipeline: Resource tables of each GuiData
    - exporter.validation: Atlas size checks
    - exporter.collection: Sprite textures
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from PIL import Image

from defold_toolkit.core.models.design import DesignNode
from defold_toolkit.core.models.document import AtlasInfo, DesignDocument, FontInfo, LayerInfo, SpriteInfo
from defold_toolkit.core.models.scene import SceneNode, TextNode
from defold_toolkit.core.models.vectors import Vector4

logger = logging.getLogger(__name__)

DEFAULT_LAYER_ID = "DEFAULT"
SPRITE_EXTENSIONS = (".png", ".jpg", ".jpeg")


# ─────────────────────────────────────────────────────────────────────────────
# Textures
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class TextureRef:
    """
    Texture resolved for one instance.

    Attributes:
        texture: Engine texture reference, "<atlas>/<sprite>"
        size: Sprite size in pixels
        atlas: Atlas the sprite belongs to
    """
    texture: str
    size: Vector4
    atlas: AtlasInfo


class TextureResolver(ABC):
    """Lookup of the texture an exported node draws."""

    @abstractmethod
    def resolve_texture(self, node: DesignNode) -> Optional[TextureRef]:
        """
        Texture for a design node, or None when it draws none.

        Args:
            node: Design layer being exported
        """

    @abstractmethod
    def find_atlas(self, name: str) -> Optional[AtlasInfo]:
        """Atlas by name, or None."""

    def is_sprite(self, node: DesignNode) -> bool:
        """True when the node is an instance of an atlas sprite."""
        return self.resolve_texture(node) is not None


class AtlasRegistry(TextureResolver):
    """
    Texture lookup keyed by component -> atlas membership.

    A sprite is addressed by its ``component`` id, or by
    ``"<atlas>/<sprite>"`` when it has none (sprites found on disk).

    Example:
        >>> registry = AtlasRegistry([AtlasInfo("ui", "/assets/ui.atlas",
        ...     (SpriteInfo("button", 120, 40, component="c:1"),))])
        >>> registry.resolve_component("c:1")[1].name
        'button'
    """

    def __init__(self, atlases: Iterable[AtlasInfo] = ()):
        self._atlases: Dict[str, AtlasInfo] = {}
        self._sprites: Dict[str, Tuple[AtlasInfo, SpriteInfo]] = {}
        for atlas in atlases:
            self.add(atlas)

    def add(self, atlas: AtlasInfo) -> None:
        if atlas.name in self._atlases:
            logger.warning(f"Atlas '{atlas.name}' registered twice, keeping the last one")
        self._atlases[atlas.name] = atlas
        for sprite in atlas.sprites:
            key = sprite.component or f"{atlas.name}/{sprite.name}"
            self._sprites[key] = (atlas, sprite)

    @property
    def atlases(self) -> List[AtlasInfo]:
        return list(self._atlases.values())

    @classmethod
    def from_document(cls, document: DesignDocument) -> AtlasRegistry:
        return cls(document.atlases)

    @classmethod
    def from_directory(cls, root: Path, asset_prefix: str = "/assets") -> AtlasRegistry:
        """
        Build a registry from a directory of atlases.

        Every sub-directory is one atlas; every image inside it is one
        sprite keyed by file stem, sized from the image header.

        Args:
            root: Directory holding one sub-directory per atlas
            asset_prefix: Engine path the atlases live under

        Returns:
            AtlasRegistry with one atlas per sub-directory
        """
        registry = cls()
        for atlas_dir in sorted(p for p in Path(root).iterdir() if p.is_dir()):
            sprites = []
            for image_path in sorted(atlas_dir.iterdir()):
                if image_path.suffix.lower() not in SPRITE_EXTENSIONS:
                    continue
                with Image.open(image_path) as image:
                    width, height = image.size
                sprites.append(SpriteInfo(name=image_path.stem, width=width, height=height))
            path = f"{asset_prefix.rstrip('/')}/{atlas_dir.name}.atlas"
            registry.add(AtlasInfo(name=atlas_dir.name, path=path, sprites=tuple(sprites)))
            logger.debug(f"Loaded atlas '{atlas_dir.name}' with {len(sprites)} sprites")
        return registry

    def resolve_component(self, component: Optional[str]) -> Optional[Tuple[AtlasInfo, SpriteInfo]]:
        if not component:
            return None
        return self._sprites.get(component)

    def resolve_texture(self, node: DesignNode) -> Optional[TextureRef]:
        if not node.is_instance:
            return None
        found = self.resolve_component(node.main_component)
        if found is None:
            return None
        atlas, sprite = found
        return TextureRef(
            texture=f"{atlas.name}/{sprite.name}",
            size=Vector4(sprite.width, sprite.height),
            atlas=atlas,
        )

    def find_atlas(self, name: str) -> Optional[AtlasInfo]:
        return self._atlases.get(name)


# ─────────────────────────────────────────────────────────────────────────────
# Fonts and layers
# ─────────────────────────────────────────────────────────────────────────────

class FontTable:
    """Design font family -> engine font. Unknown families use the first font."""

    def __init__(self, fonts: Iterable[FontInfo] = ()):
        self._fonts: List[FontInfo] = list(fonts)

    def resolve(self, family: str) -> Optional[FontInfo]:
        if not self._fonts:
            return None
        for font in self._fonts:
            if font.id == family:
                return font
        return self._fonts[0]

    def by_name(self, name: str) -> Optional[FontInfo]:
        for font in self._fonts:
            if font.name == name:
                return font
        return None

    def by_id(self, font_id: str) -> Optional[FontInfo]:
        for font in self._fonts:
            if font.id == font_id:
                return font
        return None


class LayerTable:
    """Layer id -> engine layer name. ``DEFAULT`` and unknown ids map to ""."""

    def __init__(self, layers: Iterable[LayerInfo] = ()):
        self._layers: List[LayerInfo] = [l for l in layers if l.id != DEFAULT_LAYER_ID]

    def resolve(self, layer_id: Optional[str]) -> str:
        if not layer_id or layer_id == DEFAULT_LAYER_ID:
            return ""
        for layer in self._layers:
            if layer.id == layer_id:
                return layer.name
        logger.debug(f"Unknown layer id '{layer_id}', using default layer")
        return ""

    def names(self) -> List[str]:
        return [layer.name for layer in self._layers]


# ─────────────────────────────────────────────────────────────────────────────
# Resource tables
# ─────────────────────────────────────────────────────────────────────────────

def extract_texture_data(nodes: Iterable[SceneNode], textures: TextureResolver) -> Dict[str, str]:
    """
    Atlases used by the emitted nodes, as atlas name -> atlas path.

    Example:
        >>> extract_texture_data(nodes, registry)
        {'ui': '/assets/ui.atlas'}
    """
    table: Dict[str, str] = {}
    for node in nodes:
        if not node.texture:
            continue
        atlas_name = node.texture.split("/", 1)[0]
        atlas = textures.find_atlas(atlas_name)
        if atlas is None:
            logger.warning(f"Texture '{node.texture}' on '{node.id}' has no known atlas")
            continue
        table.setdefault(atlas.name, atlas.path)
    return table


def extract_font_data(nodes: Iterable[SceneNode], fonts: FontTable) -> Dict[str, str]:
    """Fonts used by the emitted text nodes, as font name -> font path."""
    table: Dict[str, str] = {}
    for node in nodes:
        if not isinstance(node, TextNode) or not node.font:
            continue
        font = fonts.by_name(node.font)
        if font is None:
            logger.warning(f"Font '{node.font}' on '{node.id}' is not in the font table")
            continue
        table.setdefault(font.name, font.path)
    return table


def extract_layer_data(layers: LayerTable) -> List[str]:
    return layers.names()
