"""
Module: scene

Purpose:
    Provides the output-side model: scene node records, one per emitted
    design layer. Records are a tagged variant - BoxNode, TextNode and
    TemplateNode share a SceneNode base and add kind-specific fields -
    so the serializer can pick a node's field set with a single type match.

Key Classes:
    - NodeType: Engine node type tag
    - SceneNode: Shared base (identity, placement, transient export flags)
    - BoxNode: Textured / coloured box
    - TextNode: Text with font and text layout parameters
    - TemplateNode: Reference to a separately exported template file

Dependencies:
    - dataclasses (std)
    - .vectors.Vector4
    - .pivot.Pivot

Used By:
    - exporter.conversion: Record construction
    - exporter.postprocess: Collapse / sanitize / flatten
    - output.gui_serializer: Text output

Notes:
    Records are mutable on purpose: the post-processor merges, renames and
    re-parents them in place. The ``source`` back-reference and the flag
    fields are transient and never reach the serialized output.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterator, List, Optional

from .pivot import Pivot
from .vectors import ONE, ZERO, Vector4

if TYPE_CHECKING:
    from .design import DesignNode


class NodeType(str, Enum):
    """Engine node type."""
    BOX = "TYPE_BOX"
    TEXT = "TYPE_TEXT"
    TEMPLATE = "TYPE_TEMPLATE"

    def __str__(self) -> str:
        return self.value


WHITE = Vector4(1, 1, 1, 0)


@dataclass(eq=False)
class SceneNode:
    """
    Fields shared by every scene node record.

    Attributes:
        id: Node id, unique after sanitization
        parent: Parent node id (None at root or for cloneables)
        position, rotation, scale, size: Placement in engine units
        pivot: Box anchor
        color, alpha: Hue (w unused) and opacity
        layer: Render layer name ("" for the default layer)
        visible: Engine visibility flag
        children: Nested records before flattening
        source: Originating design node (transient)
        figma_position: Source x/y, used to accumulate skipped-parent shifts
        skip, exclude, fixed, cloneable, screen: Author flags (transient)
        template, template_path, template_name: Template bookkeeping
        wrapper, wrapper_padding: Implied wrapper request
        export_variants: Raw variant spec string
    """

    NODE_TYPE: ClassVar[NodeType] = NodeType.BOX

    id: str
    parent: Optional[str] = None
    position: Vector4 = ZERO
    rotation: Vector4 = ZERO
    scale: Vector4 = ONE
    size: Vector4 = ZERO
    pivot: Pivot = Pivot.CENTER
    color: Vector4 = WHITE
    alpha: float = 1.0
    layer: str = ""
    xanchor: str = "XANCHOR_NONE"
    yanchor: str = "YANCHOR_NONE"
    adjust_mode: str = "ADJUST_MODE_FIT"
    inherit_alpha: bool = False
    enabled: bool = True
    visible: bool = True
    children: List[SceneNode] = field(default_factory=list)

    # Transient
    source: Optional[DesignNode] = field(default=None, repr=False)
    figma_position: Vector4 = ZERO
    skip: bool = False
    exclude: bool = False
    fixed: bool = False
    cloneable: bool = False
    screen: bool = False
    template: bool = False
    template_path: str = "/"
    template_name: str = ""
    wrapper: bool = False
    wrapper_padding: Vector4 = ZERO
    export_variants: str = ""

    @property
    def type(self) -> NodeType:
        return self.NODE_TYPE

    @property
    def texture(self) -> str:
        """Texture reference; only boxes carry one."""
        return ""

    def iter_all(self) -> Iterator[SceneNode]:
        """Iterate over this record and all nested records (pre-order)."""
        stack: List[SceneNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def engine_properties(self) -> Dict[str, Any]:
        """
        Engine-visible properties of this record, unordered.

        Transient fields are never included.
        """
        props: Dict[str, Any] = {
            "position": self.position,
            "rotation": self.rotation,
            "scale": self.scale,
            "size": self.size,
            "color": self.color,
            "type": self.type.value,
            "id": self.id,
            "xanchor": self.xanchor,
            "yanchor": self.yanchor,
            "pivot": self.pivot.value,
            "adjust_mode": self.adjust_mode,
            "layer": self.layer,
            "inherit_alpha": self.inherit_alpha,
            "alpha": self.alpha,
            "enabled": self.enabled,
            "visible": self.visible,
        }
        if self.parent:
            props["parent"] = self.parent
        return props


@dataclass(eq=False)
class BoxNode(SceneNode):
    """Box record: texture, slice-9 and clipping."""

    NODE_TYPE: ClassVar[NodeType] = NodeType.BOX

    texture_ref: str = ""
    texture_size: Optional[Vector4] = None
    slice9: Vector4 = ZERO
    size_mode: str = "SIZE_MODE_MANUAL"
    blend_mode: str = "BLEND_MODE_ALPHA"
    clipping_mode: str = "CLIPPING_MODE_NONE"
    clipping_visible: bool = True
    clipping_inverted: bool = False
    material: str = ""

    @property
    def texture(self) -> str:
        return self.texture_ref

    def engine_properties(self) -> Dict[str, Any]:
        props = super().engine_properties()
        props.update(
            texture=self.texture_ref,
            slice9=self.slice9,
            size_mode=self.size_mode,
            blend_mode=self.blend_mode,
            clipping_mode=self.clipping_mode,
            clipping_visible=self.clipping_visible,
            clipping_inverted=self.clipping_inverted,
            material=self.material,
        )
        return props


@dataclass(eq=False)
class TextNode(SceneNode):
    """Text record: font, outline/shadow and line layout."""

    NODE_TYPE: ClassVar[NodeType] = NodeType.TEXT

    text: str = ""
    font: str = ""
    outline: Vector4 = WHITE
    outline_alpha: float = 1.0
    shadow: Vector4 = WHITE
    shadow_alpha: float = 1.0
    line_break: bool = False
    text_leading: float = 1.0
    text_tracking: float = 0.0
    size_mode: str = "SIZE_MODE_MANUAL"
    blend_mode: str = "BLEND_MODE_ALPHA"
    material: str = ""

    def engine_properties(self) -> Dict[str, Any]:
        props = super().engine_properties()
        props.update(
            text=self.text,
            font=self.font,
            outline=self.outline,
            outline_alpha=self.outline_alpha,
            shadow=self.shadow,
            shadow_alpha=self.shadow_alpha,
            line_break=self.line_break,
            text_leading=self.text_leading,
            text_tracking=self.text_tracking,
            size_mode=self.size_mode,
            blend_mode=self.blend_mode,
            material=self.material,
        )
        return props


@dataclass(eq=False)
class TemplateNode(SceneNode):
    """
    Reference to a template exported as its own file.

    Only identity and placement fields are engine-visible; the engine
    rejects visual fields on template references.
    """

    NODE_TYPE: ClassVar[NodeType] = NodeType.TEMPLATE

    template: bool = True

    @property
    def template_reference(self) -> str:
        path = self.template_path.rstrip("/")
        return f"{path}/{self.template_name or self.id}.gui"

    def engine_properties(self) -> Dict[str, Any]:
        props: Dict[str, Any] = {
            "position": self.position,
            "rotation": self.rotation,
            "scale": self.scale,
            "size": self.size,
            "color": self.color,
            "type": self.type.value,
            "id": self.id,
            "layer": self.layer,
            "inherit_alpha": self.inherit_alpha,
            "alpha": self.alpha,
            "enabled": self.enabled,
            "template": self.template_reference,
        }
        if self.parent:
            props["parent"] = self.parent
        return props
