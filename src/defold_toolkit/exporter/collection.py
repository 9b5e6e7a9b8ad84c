"""
Module: exporter.collection

Purpose:
    Design tree -> game collection export. Atlas sprites become sprite
    components, text layers become label components and every other box
    layer becomes an empty game object holding them. Placement reuses the
    geometry and slice-9 helpers of the GUI export; the resulting nested
    records are then flattened into the collection's game object list.

    For every layer the walk decides, in order:

    1. A visible atlas sprite (or a hidden slice-9 layer) is a sprite
       component; slice-9 service frames never are.
    2. A visible text layer is a label component.
    3. Any other visible box layer is an empty game object; its children
       become its components.

    Excluded and skipped layers produce nothing; the children of a skipped
    empty land in the skipped layer's own parent. A component met at the
    root level is wrapped in an implied game object of the same id.

Key Classes:
    - CollectionContext: Parent frame of the layer being converted

Key Functions:
    - walk_collection(): Traverse one root into nested records
    - convert_empty_object() / convert_sprite_component() /
      convert_label_component(): Record builders
    - wrap_in_implied_game_object(): Root-level component -> game object
    - calculate_depth() / parse_depth_axis(): Depth arrangement
    - postprocess_game_objects(): Sanitize, restructure, clean components
    - extract_collection_textures(): Atlases drawn by sprite components

Dependencies:
    - exporter.geometry: Placement
    - exporter.slice9: Margins and service layers
    - exporter.conversion: Ids, elision rules, colour and size helpers

Used By:
    - exporter.pipeline
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from defold_toolkit.core.models.collection import GameObject, GameObjectType
from defold_toolkit.core.models.design import DesignNode, TextStyle
from defold_toolkit.core.models.pivot import Pivot, text_pivot
from defold_toolkit.core.models.vectors import ONE, ZERO, Vector4, readable_number

from .context import ExportResources
from .conversion import (
    is_skippable,
    is_sprite_holder,
    resolve_box_size,
    resolve_color,
    resolve_size_mode,
    resolve_text_leading,
)
from .geometry import calculate_centered_position, calculate_pivot_shift, resolve_rotation, text_box_size, text_scale
from .postprocess import unique_id
from .slice9 import is_slice9_layer, is_slice9_placeholder, is_slice9_service_layer, resolve_slice9

logger = logging.getLogger(__name__)

DEFAULT_DEPTH_AXIS = "y0.001"


@dataclass(frozen=True)
class CollectionContext:
    """
    Parent frame of the layer being converted (immutable).

    Attributes:
        at_root: Layer is the traversal root, or only skipped layers sit
            between it and the root
        name_prefix: Prefix accumulated from component ancestors
        forced_name: Name to use instead of the layer's own
        parent_id: Id of the emitted parent game object ("" at root)
        parent_size: Size of the emitted parent (zero at root)
        parent_shift: Design-space offset of skipped ancestors
        arrange_depth: Derive z from the layer's design position
        depth_axis: Axis and step of the depth arrangement, e.g. "y0.001"
    """
    at_root: bool = True
    name_prefix: str = ""
    forced_name: Optional[str] = None
    parent_id: str = ""
    parent_size: Vector4 = ZERO
    parent_shift: Vector4 = ZERO
    arrange_depth: bool = False
    depth_axis: str = DEFAULT_DEPTH_AXIS

    @classmethod
    def for_root(cls, root: DesignNode) -> CollectionContext:
        """Root frame; depth arrangement comes from the root's own metadata."""
        arrange_depth, depth_axis = _depth_parameters(root)
        return cls(arrange_depth=arrange_depth, depth_axis=depth_axis)


# ─────────────────────────────────────────────────────────────────────────────
# Depth
# ─────────────────────────────────────────────────────────────────────────────

def parse_depth_axis(depth_axis: str) -> Tuple[str, float]:
    """
    Split a depth axis string into its axes and step.

    Args:
        depth_axis: One or both of "x" and "y", followed by the step

    Returns:
        (axes, step), axes being "x", "y" or "xy"

    Raises:
        ValueError: If no axis or no numeric step is given

    Example:
        >>> parse_depth_axis("xy0.01")
        ('xy', 0.01)
    """
    lowered = depth_axis.lower()
    x_index = lowered.find("x")
    y_index = lowered.find("y")
    if x_index == -1 and y_index == -1:
        raise ValueError(f"Depth axis '{depth_axis}' names no axis")
    axes = ("x" if x_index != -1 else "") + ("y" if y_index != -1 else "")
    try:
        step = float(lowered[max(x_index, y_index) + 1:])
    except ValueError as e:
        raise ValueError(f"Depth axis '{depth_axis}' has no numeric step") from e
    return axes, step


def calculate_depth(x: float, y: float, arrange_depth: bool, depth_axis: str) -> float:
    """
    Depth offset of a layer from its design position.

    Zero unless ``arrange_depth`` is set. With both axes the distance from
    the origin is used.

    Example:
        >>> calculate_depth(30, 40, True, "xy0.1")
        5.0
    """
    if not arrange_depth:
        return 0.0
    axes, step = parse_depth_axis(depth_axis or DEFAULT_DEPTH_AXIS)
    if axes == "xy":
        return math.hypot(x, y) * step
    if axes == "x":
        return x * step
    return y * step


def _depth_parameters(node: DesignNode) -> Tuple[bool, str]:
    meta = node.metadata
    return bool(meta.get("arrange_depth")), meta.get("depth_axis") or DEFAULT_DEPTH_AXIS


# ─────────────────────────────────────────────────────────────────────────────
# Record builders
# ─────────────────────────────────────────────────────────────────────────────

def convert_object_id(node: DesignNode, context: CollectionContext) -> str:
    name = context.forced_name or node.name
    if node.metadata.get("ignore_prefixes"):
        return name
    return f"{context.name_prefix}{name}"


def resolve_object_position(
    node: DesignNode,
    size: Vector4,
    context: CollectionContext,
    pivot: Pivot = Pivot.CENTER,
) -> Vector4:
    """
    Position of a record inside its parent game object, z carrying depth.

    The traversal root sits at the origin. Everything else is placed by
    its own pivot (the centre for game objects and sprites) relative to
    the parent's centre, offset by the shift of skipped ancestors.
    """
    z = float(node.metadata.get("z_position") or 0)
    z += calculate_depth(node.x, node.y, context.arrange_depth, context.depth_axis)
    if context.at_root and context.parent_size.is_zero:
        return Vector4(0, 0, z).readable()
    centered = calculate_centered_position(node, size, context.parent_size)
    anchored = centered + calculate_pivot_shift(pivot, size, node.rotation)
    shift = context.parent_shift
    return Vector4(anchored.x + shift.x, anchored.y - shift.y, z).readable()


def _common_fields(
    node: DesignNode,
    context: CollectionContext,
    size: Vector4,
    pivot: Pivot = Pivot.CENTER,
) -> dict:
    meta = node.metadata
    arrange_depth, depth_axis = _depth_parameters(node)
    return dict(
        id=convert_object_id(node, context),
        position=resolve_object_position(node, size, context, pivot),
        rotation=resolve_rotation(node),
        source=node,
        figma_position=node.position,
        skip=bool(meta.get("skip")),
        exclude=bool(meta.get("exclude")),
        arrange_depth=arrange_depth,
        depth_axis=depth_axis,
    )


def convert_empty_object(node: DesignNode, context: CollectionContext) -> GameObject:
    size = node.size.readable()
    return GameObject(type=GameObjectType.EMPTY, scale=ONE, **_common_fields(node, context, size))


def convert_sprite_component(
    node: DesignNode,
    context: CollectionContext,
    resources: ExportResources,
) -> GameObject:
    """
    Sprite component for an atlas sprite layer.

    The image is the atlas path and the default animation the sprite
    name. Size mode defaults to auto when the layer keeps the sprite's
    own size.
    """
    meta = node.metadata
    size = resolve_box_size(node)
    texture = resources.textures.resolve_texture(node)
    default_size_mode = "SIZE_MODE_MANUAL"
    if texture is not None and size == texture.size:
        default_size_mode = "SIZE_MODE_AUTO"
    return GameObject(
        type=GameObjectType.SPRITE,
        size=size,
        scale=ONE,
        image=texture.atlas.path if texture is not None else "",
        default_animation=texture.texture.split("/", 1)[1] if texture is not None else "",
        atlas=texture.atlas.name if texture is not None else "",
        size_mode=resolve_size_mode(node, default_size_mode),
        slice9=resolve_slice9(node),
        blend_mode=meta.get("blend_mode") or "BLEND_MODE_ALPHA",
        material=meta.get("material") or "",
        implied_game_object=context.at_root or bool(meta.get("implied_game_object")),
        **_common_fields(node, context, size),
    )


def convert_label_component(
    node: DesignNode,
    context: CollectionContext,
    resources: ExportResources,
) -> GameObject:
    """
    Label component for a text layer.

    Placed at the point of its design box the text alignment anchors; the
    emitted size is that box divided by the font scale, as for GUI text.
    """
    meta = node.metadata
    style = node.text or TextStyle()
    pivot = text_pivot(style.align_horizontal, style.align_vertical)
    box = node.size.readable()
    scale = text_scale(style.font_size, resources.config.base_font_size)
    hue, alpha = resolve_color(node)
    return GameObject(
        type=GameObjectType.LABEL,
        size=text_box_size(box, scale),
        scale=scale,
        text=style.characters.strip(),
        color=Vector4(hue.x, hue.y, hue.z, alpha),
        line_break=style.auto_resize == "HEIGHT",
        leading=resolve_text_leading(style),
        tracking=readable_number(style.letter_spacing or 0),
        pivot=pivot,
        blend_mode=meta.get("blend_mode") or "BLEND_MODE_ALPHA",
        implied_game_object=context.at_root or bool(meta.get("implied_game_object")),
        **_common_fields(node, context, box, pivot),
    )


def wrap_in_implied_game_object(component: GameObject) -> GameObject:
    """
    Wrap a component in an empty game object that takes over its id and
    position.

    The component is renamed ``<id>_<type>`` and moved to the origin of
    its new game object.

    Example:
        >>> wrapper = wrap_in_implied_game_object(GameObject("logo", GameObjectType.SPRITE))
        >>> wrapper.id, wrapper.components[0].id
        ('logo', 'logo_sprite')
    """
    game_object = GameObject(
        id=component.id,
        type=GameObjectType.EMPTY,
        position=component.position,
        source=component.source,
        figma_position=component.figma_position,
        skip=component.skip,
        exclude=component.exclude,
    )
    component.id = f"{component.id}_{component.type.type_id}"
    component.position = ZERO
    component.implied_game_object = False
    game_object.components.append(component)
    return game_object


# ─────────────────────────────────────────────────────────────────────────────
# Walk
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class _Visit:
    node: DesignNode
    context: CollectionContext
    sink: List[GameObject]


def is_sprite_component(node: DesignNode, resources: ExportResources) -> bool:
    if is_slice9_service_layer(node):
        return False
    if not (node.visible or is_slice9_layer(node)):
        return False
    return node.is_box and resources.textures.is_sprite(node)


async def walk_collection(
    root: DesignNode,
    context: CollectionContext,
    resources: ExportResources,
) -> List[GameObject]:
    """
    Convert a design subtree into nested game object records.

    Args:
        root: Traversal root
        context: Root frame (see CollectionContext.for_root)
        resources: Shared lookups and settings

    Returns:
        Top-level records; components and nested empties hang off
        ``components``. Empty if the root has no exportable content.

    Example:
        >>> records = asyncio.run(walk_collection(root, CollectionContext.for_root(root), resources))
        >>> [r.id for r in records[0].iter_all()]
        ['level', 'player']
    """
    result: List[GameObject] = []
    stack = [_Visit(root, context, result)]
    while stack:
        _visit(stack.pop(), stack, resources)
    return result


def _visit(frame: _Visit, stack: List[_Visit], resources: ExportResources) -> None:
    node, context, sink = frame.node, frame.context, frame.sink
    if is_sprite_component(node, resources):
        _emit_component(convert_sprite_component(node, context, resources), node, sink, resources)
    elif node.is_text:
        if node.visible:
            _emit_component(convert_label_component(node, context, resources), node, sink, resources)
    elif node.visible:
        _visit_empty(node, context, sink, stack, resources)


def _emit_component(
    record: GameObject,
    node: DesignNode,
    sink: List[GameObject],
    resources: ExportResources,
) -> None:
    if record.exclude:
        logger.debug(f"Excluded '{node.name}'")
        return
    if is_skippable(node, resources):
        logger.debug(f"Skipped component '{node.name}'")
        return
    sink.append(wrap_in_implied_game_object(record) if record.implied_game_object else record)


def _visit_empty(
    node: DesignNode,
    context: CollectionContext,
    sink: List[GameObject],
    stack: List[_Visit],
    resources: ExportResources,
) -> None:
    record = convert_empty_object(node, context)
    if record.exclude:
        logger.debug(f"Excluded '{node.name}'")
        return
    should_skip = is_skippable(node, resources)
    if should_skip:
        logger.debug(f"Skipped '{node.name}', children move to '{context.parent_id or '<root>'}'")
    else:
        sink.append(record)
    if not node.children:
        return
    child_sink = sink if should_skip else record.components
    child_context = _child_context(node, record, should_skip, context, resources)
    for child in reversed(node.children):
        if not is_slice9_service_layer(child):
            stack.append(_Visit(child, child_context, child_sink))


def _child_context(
    node: DesignNode,
    record: GameObject,
    should_skip: bool,
    context: CollectionContext,
    resources: ExportResources,
) -> CollectionContext:
    """
    Parent frame handed to the children of ``node``.

    A skipped layer forwards its own incoming frame, adding its design
    position to the shift below the root level.
    """
    if should_skip:
        parent_id = context.parent_id
        parent_size = node.size if context.parent_size.is_zero else context.parent_size
        parent_shift = ZERO if context.at_root else context.parent_shift + record.figma_position
        name_prefix = context.name_prefix
    else:
        parent_id = record.id
        parent_size = node.size
        parent_shift = ZERO
        name_prefix = f"{context.name_prefix}{node.name}_" if node.is_component_like else context.name_prefix
    forced_name = None
    if should_skip and context.forced_name and is_slice9_placeholder(node):
        forced_name = context.forced_name
    elif is_sprite_holder(node, resources):
        forced_name = node.name
    return CollectionContext(
        at_root=should_skip and context.at_root,
        name_prefix=name_prefix,
        forced_name=forced_name,
        parent_id=parent_id,
        parent_size=parent_size,
        parent_shift=parent_shift,
        arrange_depth=record.arrange_depth,
        depth_axis=record.depth_axis,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Post-processing
# ─────────────────────────────────────────────────────────────────────────────

def postprocess_game_objects(records: List[GameObject]) -> List[GameObject]:
    """
    Turn walked records into the collection's flat game object list.

    Steps, in order:
    1. Rename colliding game object ids (``_N``, smallest free N) and
       colliding component ids within one game object.
    2. Move nested empties out of ``components`` to the top level, right
       after their parent, recording their ids in the parent's
       ``children``.
    3. Drop top-level entries that are not empty game objects.
    """
    sanitize_object_ids(records)
    flat = restructure_game_objects(records)
    for game_object in flat:
        game_object.components = [c for c in game_object.components if not c.is_empty]
    logger.debug(f"Post-processed {len(records)} records into {len(flat)} game objects")
    return flat


def sanitize_object_ids(records: List[GameObject]) -> List[GameObject]:
    """
    Rename duplicates in pre-order; the earlier record keeps its id.

    Empty game objects share one id space for the whole collection,
    components one per owning game object.
    """
    used: Set[str] = set()
    stack = list(reversed(records))
    while stack:
        record = stack.pop()
        if not record.is_empty:
            continue
        if record.id in used:
            old_id = record.id
            record.id = unique_id(old_id, used)
            logger.debug(f"Renamed duplicate game object id '{old_id}' to '{record.id}'")
        used.add(record.id)
        component_ids: Set[str] = set()
        for component in record.components:
            if component.is_empty:
                continue
            if component.id in component_ids:
                component.id = unique_id(component.id, component_ids)
            component_ids.add(component.id)
        stack.extend(reversed(record.components))
    return records


def restructure_game_objects(records: Iterable[GameObject]) -> List[GameObject]:
    flat: List[GameObject] = []
    for record in records:
        if not record.is_empty:
            logger.debug(f"Component '{record.id}' has no game object, dropped")
            continue
        flat.append(record)
        nested = [c for c in record.components if c.is_empty]
        for child in nested:
            if child.id not in record.children:
                record.children.append(child.id)
        flat.extend(restructure_game_objects(nested))
    return flat


def extract_collection_textures(game_objects: Iterable[GameObject]) -> Dict[str, str]:
    """Atlases drawn by sprite components, as atlas name -> atlas path."""
    table: Dict[str, str] = {}
    for game_object in game_objects:
        for record in game_object.iter_all():
            if record.type is GameObjectType.SPRITE and record.atlas:
                table.setdefault(record.atlas, record.image)
    return table

