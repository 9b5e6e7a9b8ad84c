"""
Module: collection

Purpose:
    Provides the game-object side of the output model: the records built
    when a design root is exported as a game collection instead of a GUI
    scene. A collection holds game objects; a game object holds embedded
    sprite and label components.

Key Classes:
    - GameObjectType: Empty game object, sprite or label component
    - GameObject: One game object or embedded component record
    - CollectionSettings: Header fields of a .collection file
    - CollectionData: Complete collection export of one root

Dependencies:
    - dataclasses (std)
    - .vectors.Vector4
    - .pivot.Pivot

Used By:
    - exporter.collection: Record construction and post-processing
    - output.collection_serializer: Text output

Notes:
    Like scene records, game objects are mutable: post-processing renames
    them, moves nested empties to the top level and drops empty entries
    from component lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Tuple

from .pivot import Pivot
from .vectors import ONE, ZERO, Vector4

if TYPE_CHECKING:
    from .design import DesignNode


class GameObjectType(str, Enum):
    """Kind of collection record."""
    EMPTY = "TYPE_EMPTY"
    SPRITE = "TYPE_SPRITE"
    LABEL = "TYPE_LABEL"

    def __str__(self) -> str:
        return self.value

    @property
    def type_id(self) -> str:
        """
        Component type name as written in game object files.

        Example:
            >>> GameObjectType.SPRITE.type_id
            'sprite'
        """
        return self.value.replace("TYPE_", "").lower()

    @property
    def is_empty(self) -> bool:
        return self is GameObjectType.EMPTY


LABEL_OUTLINE = Vector4(0, 0, 0, 1)
LABEL_SHADOW = Vector4(0, 0, 0, 1)

# Properties each record type keeps once the collection is post-processed
EMPTY_PROPERTIES: Tuple[str, ...] = ("type", "id", "position", "rotation", "scale", "children", "components")
SPRITE_PROPERTIES: Tuple[str, ...] = (
    "type", "id", "position", "rotation", "scale", "size", "size_mode",
    "image", "default_animation", "slice9", "material", "blend_mode",
)
LABEL_PROPERTIES: Tuple[str, ...] = (
    "type", "id", "position", "rotation", "scale", "size", "text", "color",
    "outline", "shadow", "leading", "tracking", "pivot", "line_break", "blend_mode",
)


@dataclass(eq=False)
class GameObject:
    """
    One game object (TYPE_EMPTY) or embedded component (sprite, label).

    Attributes:
        id: Record id, unique among game objects after sanitization
        type: Record kind
        position, rotation, scale, size: Placement in engine units
        children: Ids of child game objects
        components: Nested records; after post-processing only sprite
            and label components remain here
        image: Atlas path a sprite draws from ("" when it draws none)
        default_animation: Sprite name inside the atlas
        atlas: Name of that atlas (transient, feeds the texture table)
        size_mode, slice9, blend_mode, material: Sprite rendering
        text, color, outline, shadow: Label content and colours
        line_break, leading, tracking, pivot: Label layout
        source: Originating design node (transient)
        figma_position: Source x/y, used to accumulate skipped-parent shifts
        skip, exclude, implied_game_object: Author flags (transient)
        arrange_depth, depth_axis: Depth arrangement of the children

    Example:
        >>> sprite = GameObject("icon", GameObjectType.SPRITE, image="/assets/ui.atlas")
        >>> sprite.properties()["image"]
        '/assets/ui.atlas'
    """

    id: str
    type: GameObjectType = GameObjectType.EMPTY
    position: Vector4 = ZERO
    rotation: Vector4 = ZERO
    scale: Vector4 = ONE
    size: Vector4 = ZERO
    children: List[str] = field(default_factory=list)
    components: List[GameObject] = field(default_factory=list)

    # Sprite
    image: str = ""
    default_animation: str = ""
    size_mode: str = "SIZE_MODE_AUTO"
    slice9: Vector4 = ZERO
    blend_mode: str = "BLEND_MODE_ALPHA"
    material: str = ""
    atlas: str = ""

    # Label
    text: str = ""
    color: Vector4 = ONE
    outline: Vector4 = LABEL_OUTLINE
    shadow: Vector4 = LABEL_SHADOW
    line_break: bool = False
    leading: float = 1.0
    tracking: float = 0.0
    pivot: Pivot = Pivot.CENTER

    # Transient
    source: Optional[DesignNode] = field(default=None, repr=False)
    figma_position: Vector4 = ZERO
    skip: bool = False
    exclude: bool = False
    implied_game_object: bool = False
    arrange_depth: bool = False
    depth_axis: str = ""

    @property
    def is_empty(self) -> bool:
        return self.type.is_empty

    def iter_all(self) -> Iterator[GameObject]:
        """Iterate over this record and all nested components (pre-order)."""
        stack: List[GameObject] = [self]
        while stack:
            record = stack.pop()
            yield record
            stack.extend(reversed(record.components))

    def properties(self) -> Dict[str, Any]:
        """
        Properties kept for this record's type, in declaration order.

        Transient fields are never included.
        """
        values: Dict[str, Any] = {
            "type": self.type.value,
            "id": self.id,
            "position": self.position,
            "rotation": self.rotation,
            "scale": self.scale,
            "size": self.size,
            "children": list(self.children),
            "components": list(self.components),
            "size_mode": self.size_mode,
            "image": self.image,
            "default_animation": self.default_animation,
            "slice9": self.slice9,
            "material": self.material,
            "blend_mode": self.blend_mode,
            "text": self.text,
            "color": self.color,
            "outline": self.outline,
            "shadow": self.shadow,
            "leading": self.leading,
            "tracking": self.tracking,
            "pivot": self.pivot.value,
            "line_break": self.line_break,
        }
        if self.type is GameObjectType.SPRITE:
            keys = SPRITE_PROPERTIES
        elif self.type is GameObjectType.LABEL:
            keys = LABEL_PROPERTIES
        else:
            keys = EMPTY_PROPERTIES
        return {key: values[key] for key in keys}


@dataclass(frozen=True)
class CollectionSettings:
    """Header of a .collection file (immutable)."""
    name: str = "default"
    scale_along_z: int = 0

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Collection name must not be empty")

    def properties(self) -> Dict[str, Any]:
        return {"name": self.name, "scale_along_z": self.scale_along_z}


@dataclass
class CollectionData:
    """
    Collection export of one root, before serialization.

    Attributes:
        name: Root layer name (file stem)
        collection: Header settings
        game_objects: Flat list of game objects after post-processing
        textures: Atlas name -> atlas path of every drawn sprite
        file_path: Directory the file belongs in
    """
    name: str
    collection: CollectionSettings
    game_objects: List[GameObject] = field(default_factory=list)
    textures: Dict[str, str] = field(default_factory=dict)
    file_path: str = "/"

    @property
    def file_name(self) -> str:
        return f"{self.name}.collection"

    def find(self, object_id: str) -> Optional[GameObject]:
        """Find a game object or component by id, or None."""
        for game_object in self.game_objects:
            for record in game_object.iter_all():
                if record.id == object_id:
                    return record
        return None
