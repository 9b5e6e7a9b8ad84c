"""
Module: exporter.geometry

Purpose:
    Convert a design layer's parent-local box into the engine's
    pivot-relative coordinate space.

    The design tool places a box by its top-left corner with y pointing
    down. The engine places a node by its pivot, relative to the parent's
    pivot, with y pointing up. Conversion runs in four steps:

    1. Centre the box relative to the parent's centre (flipping y).
    2. Re-anchor that point to the parent's pivot.
    3. Move from the box centre to the box's own pivot (rotated with the box).
    4. Add the shift accumulated through skipped ancestors.

Key Functions:
    - resolve_position(): Entry point used by record builders
    - calculate_child_position() / calculate_root_position()
    - resolve_rotation(), box_scale(), text_scale(), text_box_size()

Dependencies:
    - core.models.vectors: Vector4 math
    - core.models.pivot: Compass predicates

Used By:
    - exporter.conversion: Placement of every record
    - exporter.postprocess: Re-placing children after a collapse
    - exporter.collection: Game object and component placement
"""

from __future__ import annotations

import math
from typing import Optional

from defold_toolkit.core.models.design import DesignNode
from defold_toolkit.core.models.pivot import Pivot
from defold_toolkit.core.models.vectors import ZERO, Vector4, calculate_center, shift_along_axis


def calculate_centered_position(node: DesignNode, size: Vector4, parent_size: Vector4) -> Vector4:
    """
    Centre of the node relative to the parent's centre, y up.

    Rotation is applied around the node's top-left corner, as the design
    tool does.

    Example:
        >>> node = DesignNode("1", "box", DesignKind.FRAME, x=25, y=25, width=50, height=50)
        >>> calculate_centered_position(node, node.size, Vector4(100, 100))
        Vector4(0, 0, 0, 0)
    """
    center = calculate_center(node.x, node.y, size.x, size.y, node.rotation)
    return Vector4(center.x - parent_size.x / 2, parent_size.y / 2 - center.y)


def reanchor_to_parent_pivot(centered: Vector4, parent_pivot: Pivot, parent_size: Vector4) -> Vector4:
    """Express a parent-centre-relative point relative to the parent's pivot."""
    x, y = centered.x, centered.y
    if parent_pivot.is_north:
        y -= parent_size.y / 2
    elif parent_pivot.is_south:
        y += parent_size.y / 2
    if parent_pivot.is_east:
        x -= parent_size.x / 2
    elif parent_pivot.is_west:
        x += parent_size.x / 2
    return Vector4(x, y)


def calculate_pivot_shift(pivot: Pivot, size: Vector4, rotation: float) -> Vector4:
    """Offset from a box's centre to its own pivot, rotated with the box."""
    x = 0.0
    y = 0.0
    if pivot.is_east:
        x = size.x / 2
    elif pivot.is_west:
        x = -size.x / 2
    if pivot.is_north:
        y = size.y / 2
    elif pivot.is_south:
        y = -size.y / 2
    return shift_along_axis(Vector4(x, y), rotation)


def calculate_pivoted_position(
    centered: Vector4,
    pivot: Pivot,
    parent_pivot: Pivot,
    size: Vector4,
    parent_size: Vector4,
    rotation: float,
) -> Vector4:
    anchored = reanchor_to_parent_pivot(centered, parent_pivot, parent_size)
    return anchored + calculate_pivot_shift(pivot, size, rotation)


def calculate_child_position(
    node: DesignNode,
    pivot: Pivot,
    parent_pivot: Pivot,
    size: Vector4,
    parent_size: Vector4,
    parent_shift: Vector4,
    *,
    template_reference: bool = False,
) -> Vector4:
    """
    Position of a non-root node inside its parent.

    Template references are placed by their centre only; their own pivot
    lives in the template file.

    Args:
        node: Design layer being placed
        pivot: The node's own pivot
        parent_pivot: The emitted parent's pivot
        size: Node size in design units
        parent_size: Emitted parent's size
        parent_shift: Design-space offset accumulated through skipped
            ancestors (y down)
        template_reference: Node is emitted as a template reference

    Returns:
        Unrounded position
    """
    centered = calculate_centered_position(node, size, parent_size)
    if template_reference:
        position = centered
    else:
        position = calculate_pivoted_position(centered, pivot, parent_pivot, size, parent_size, node.rotation)
    return Vector4(position.x + parent_shift.x, position.y - parent_shift.y)


def calculate_root_position(
    node: DesignNode,
    pivot: Pivot,
    parent_pivot: Pivot,
    size: Vector4,
    parent_size: Vector4,
    parent_shift: Vector4,
    *,
    template_reference: bool = False,
    screen_size: Optional[Vector4] = None,
) -> Vector4:
    """
    Position of a root node.

    Without a parent frame (zero parent size) the root sits at the origin,
    offset only by its own pivot. A ``screen`` root (``screen_size`` given)
    is centred on the screen instead.
    """
    if screen_size is not None:
        half_width = screen_size.x / 2
        half_height = screen_size.y / 2
        if node.parent is None:
            centered = Vector4(half_width, half_height)
        else:
            local = calculate_centered_position(node, size, parent_size)
            centered = Vector4(
                local.x + half_width + parent_shift.x,
                local.y + half_height + parent_shift.y,
            )
    elif parent_size.is_zero:
        centered = ZERO
    else:
        centered = calculate_centered_position(node, size, parent_size)
    if template_reference:
        return centered
    return calculate_pivoted_position(centered, pivot, parent_pivot, size, parent_size, node.rotation)


def resolve_position(
    node: DesignNode,
    pivot: Pivot,
    parent_pivot: Pivot,
    size: Vector4,
    parent_size: Vector4,
    parent_shift: Vector4,
    at_root: bool,
    *,
    template_reference: bool = False,
    screen_size: Optional[Vector4] = None,
) -> Vector4:
    """
    Engine position of a node, rounded to 3 decimal places.

    Example:
        >>> parent = Vector4(200, 80)
        >>> node = DesignNode("1", "icon", DesignKind.FRAME, x=90, y=30, width=20, height=20)
        >>> resolve_position(node, Pivot.CENTER, Pivot.CENTER, node.size, parent, ZERO, False)
        Vector4(0, 0, 0, 0)
    """
    if at_root:
        position = calculate_root_position(
            node, pivot, parent_pivot, size, parent_size, parent_shift,
            template_reference=template_reference,
            screen_size=screen_size,
        )
    else:
        position = calculate_child_position(
            node, pivot, parent_pivot, size, parent_size, parent_shift,
            template_reference=template_reference,
        )
    return position.readable()


def resolve_rotation(node: DesignNode) -> Vector4:
    """Design rotation goes to the engine's z rotation channel."""
    return Vector4(0, 0, node.rotation, 0).readable()


def box_scale() -> Vector4:
    return Vector4(1, 1, 1, 1)


def text_scale(font_size: float, base_font_size: float) -> Vector4:
    """
    Uniform text scale relative to the project's base font size.

    Example:
        >>> text_scale(36, 18)
        Vector4(2, 2, 2, 1)
    """
    scale = font_size / base_font_size
    return Vector4(scale, scale, scale, 1).readable()


def text_box_size(size: Vector4, scale: Vector4) -> Vector4:
    """Text box size in unscaled engine units, rounded up to whole units."""
    return Vector4(math.ceil(size.x / scale.x), math.ceil(size.y / scale.y))
