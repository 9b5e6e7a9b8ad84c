"""
Module: exporter.conversion

Purpose:
    Build one scene-node record from one design layer and its parent
    frame. Box layers become BoxNode (or TemplateNode when they reference
    a separately exported template), text layers become TextNode.
    Author metadata overrides inferred values field by field.

Key Functions:
    - convert_box_node(): Box or template record
    - convert_text_node(): Text record
    - convert_node_id(): Id from name, prefixes and variant
    - is_skippable() / is_sprite_holder(): Elision rules
    - resolve_color(): Hue and alpha from fills

Dependencies:
    - exporter.geometry: Placement
    - exporter.slice9: Margins
    - exporter.context: Parent frame and lookups

Used By:
    - exporter.walker
    - exporter.collection: Skip rules, box sizes, colours
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from defold_toolkit.core.models.design import DesignNode, TextStyle
from defold_toolkit.core.models.pivot import Pivot, text_pivot
from defold_toolkit.core.models.scene import WHITE, BoxNode, SceneNode, TemplateNode, TextNode
from defold_toolkit.core.models.vectors import ZERO, Vector4, readable_number

from .context import ExportContext, ExportResources
from .geometry import box_scale, resolve_position, resolve_rotation, text_box_size, text_scale
from .slice9 import find_slice9_layer, is_slice9_placeholder, resolve_slice9

logger = logging.getLogger(__name__)

SIZE_MODES = ("SIZE_MODE_MANUAL", "SIZE_MODE_AUTO")


# ─────────────────────────────────────────────────────────────────────────────
# Identity and elision
# ─────────────────────────────────────────────────────────────────────────────

def convert_node_id(node: DesignNode, context: ExportContext) -> str:
    """
    Scene node id for a layer.

    Example:
        >>> ctx = ExportContext(name_prefix="button_", variant_prefix="Pressed")
        >>> convert_node_id(DesignNode("1", "icon", DesignKind.FRAME), ctx)
        'button_icon_pressed'
    """
    name = context.forced_name or node.name
    if node.metadata.get("ignore_prefixes"):
        return name
    suffix = f"_{context.variant_prefix.lower()}" if context.variant_prefix else ""
    return f"{context.name_prefix}{name}{suffix}"


def is_sprite_holder(node: DesignNode, resources: ExportResources) -> bool:
    """
    An instance wrapping exactly one atlas sprite of its own size, or one
    slice-9 placeholder around a sprite.
    """
    if not node.is_instance or len(node.children) != 1:
        return False
    child = node.children[0]
    if is_slice9_placeholder(child):
        original = find_slice9_layer(child)
        return original is not None and resources.textures.is_sprite(original)
    same_size = child.width == node.width and child.height == node.height
    return same_size and resources.textures.is_sprite(child)


def is_skippable(node: DesignNode, resources: ExportResources) -> bool:
    """Layers that are not emitted but whose children are."""
    prefix = resources.config.autoskip_prefix
    return (
        bool(node.metadata.get("skip"))
        or bool(prefix and node.name.startswith(prefix))
        or is_slice9_placeholder(node)
        or is_sprite_holder(node, resources)
    )


def is_template_reference(node: DesignNode, context: ExportContext) -> bool:
    """A template layer met anywhere except as the root of its own export."""
    if not node.metadata.get("template") or context.collapse_templates:
        return False
    return not context.at_root or not context.as_template


# ─────────────────────────────────────────────────────────────────────────────
# Shared fields
# ─────────────────────────────────────────────────────────────────────────────

def resolve_color(node: DesignNode) -> Tuple[Vector4, float]:
    """
    Hue (w = 0) and alpha of the first visible solid fill; white otherwise.

    Example:
        >>> node.fills = [Paint(Vector4(1, 0, 0, 1), opacity=0.5)]
        >>> resolve_color(node)
        (Vector4(1, 0, 0, 0), 0.5)
    """
    for paint in node.fills:
        if paint.visible and paint.type == "SOLID":
            color = paint.color
            hue = Vector4(color.x, color.y, color.z, 0).readable()
            return hue, readable_number(color.w * paint.opacity)
    return WHITE, 1.0


def _has_visible_fill(node: DesignNode) -> bool:
    return any(p.visible and p.type == "SOLID" for p in node.fills)


def resolve_box_size(node: DesignNode) -> Vector4:
    """A slice-9 layer takes the size of the placeholder stretching it."""
    parent = node.parent
    if parent is not None and is_slice9_placeholder(parent) and find_slice9_layer(parent) is node:
        return parent.size.readable()
    return node.size.readable()


def resolve_size_mode(node: DesignNode, default: str) -> str:
    value = node.metadata.get("size_mode")
    if value in SIZE_MODES:
        return value
    if value:
        logger.debug(f"Ignoring unknown size_mode '{value}' on '{node.name}'")
    return default


def _common_fields(
    node: DesignNode,
    context: ExportContext,
    resources: ExportResources,
    pivot: Pivot,
    size: Vector4,
    template_reference: bool = False,
) -> Dict[str, Any]:
    meta = node.metadata
    screen = bool(meta.get("screen"))
    screen_size = resources.config.screen_size if screen and not context.as_template else None
    position = resolve_position(
        node,
        pivot,
        context.parent_pivot,
        size,
        context.parent_size,
        context.parent_shift,
        context.at_root,
        template_reference=template_reference,
        screen_size=screen_size,
    )
    cloneable = bool(meta.get("cloneable"))
    wrapper_padding = meta.get("wrapper_padding")
    return dict(
        id=convert_node_id(node, context),
        parent=None if cloneable else (context.parent_id or None),
        position=position,
        rotation=resolve_rotation(node),
        pivot=pivot,
        layer=resources.layers.resolve(meta.get("layer")),
        xanchor=meta.get("xanchor") or "XANCHOR_NONE",
        yanchor=meta.get("yanchor") or "YANCHOR_NONE",
        adjust_mode=meta.get("adjust_mode") or "ADJUST_MODE_FIT",
        inherit_alpha=bool(meta.get("inherit_alpha", False)),
        enabled=bool(meta.get("enabled", True)),
        source=node,
        figma_position=node.position,
        skip=bool(meta.get("skip")),
        exclude=bool(meta.get("exclude")),
        fixed=bool(meta.get("fixed")),
        cloneable=cloneable,
        screen=screen,
        template=bool(meta.get("template")),
        template_path=meta.get("template_path") or resources.config.default_template_path,
        template_name=meta.get("template_name") or node.name,
        wrapper=bool(meta.get("wrapper")),
        wrapper_padding=wrapper_padding if isinstance(wrapper_padding, Vector4) else ZERO,
        export_variants=meta.get("export_variants") or "",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Record builders
# ─────────────────────────────────────────────────────────────────────────────

def convert_box_node(node: DesignNode, context: ExportContext, resources: ExportResources) -> SceneNode:
    """
    Build the record for a box layer.

    Args:
        node: Frame, group, component or instance layer
        context: Parent frame
        resources: Shared lookups

    Returns:
        TemplateNode for template references, BoxNode otherwise
    """
    meta = node.metadata
    pivot = Pivot.parse(meta.get("pivot"))
    size = resolve_box_size(node)
    template_reference = is_template_reference(node, context)
    common = _common_fields(node, context, resources, pivot, size, template_reference)
    color, alpha = resolve_color(node)

    if template_reference:
        return TemplateNode(**common, size=size, scale=box_scale(), color=color, alpha=alpha)

    texture = resources.textures.resolve_texture(node)
    visible = meta.get("visible")
    if visible is None:
        visible = _has_visible_fill(node) or texture is not None
    default_size_mode = "SIZE_MODE_MANUAL"
    if texture is not None and size == texture.size:
        default_size_mode = "SIZE_MODE_AUTO"

    return BoxNode(
        **common,
        size=size,
        scale=box_scale(),
        color=color,
        alpha=alpha,
        visible=bool(visible),
        texture_ref=texture.texture if texture is not None else "",
        texture_size=texture.size if texture is not None else None,
        slice9=resolve_slice9(node),
        size_mode=resolve_size_mode(node, default_size_mode),
        blend_mode=meta.get("blend_mode") or "BLEND_MODE_ALPHA",
        clipping_mode=meta.get("clipping_mode") or "CLIPPING_MODE_NONE",
        clipping_visible=bool(meta.get("clipping_visible", True)),
        clipping_inverted=bool(meta.get("clipping_inverted", False)),
        material=meta.get("material") or "",
    )


def convert_text_node(node: DesignNode, context: ExportContext, resources: ExportResources) -> TextNode:
    """
    Build the record for a text layer.

    The pivot follows the text alignment. Placement uses the design box;
    the emitted size is that box divided by the font scale.
    """
    meta = node.metadata
    style = node.text or TextStyle()
    pivot = text_pivot(style.align_horizontal, style.align_vertical)
    box = node.size.readable()
    scale = text_scale(style.font_size, resources.config.base_font_size)
    common = _common_fields(node, context, resources, pivot, box)
    color, alpha = resolve_color(node)
    visible = meta.get("visible")

    return TextNode(
        **common,
        size=text_box_size(box, scale),
        scale=scale,
        color=color,
        alpha=alpha,
        visible=True if visible is None else bool(visible),
        text=style.characters.strip(),
        font=_resolve_font(node, style, resources),
        line_break=style.auto_resize == "HEIGHT",
        text_leading=resolve_text_leading(style),
        text_tracking=readable_number(style.letter_spacing or 0),
        size_mode=resolve_size_mode(node, "SIZE_MODE_MANUAL"),
        blend_mode=meta.get("blend_mode") or "BLEND_MODE_ALPHA",
        material=meta.get("material") or "",
    )


def _resolve_font(node: DesignNode, style: TextStyle, resources: ExportResources) -> str:
    override: Optional[str] = node.metadata.get("font")
    if override:
        font = resources.fonts.by_id(override) or resources.fonts.by_name(override)
        return font.name if font is not None else override
    if not style.font_family:
        return ""
    font = resources.fonts.resolve(style.font_family)
    return font.name if font is not None else ""


def resolve_text_leading(style: TextStyle) -> float:
    if style.line_height and style.font_size:
        return readable_number(style.line_height / style.font_size)
    return 1.0
