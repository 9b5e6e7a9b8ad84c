"""
Module: exporter.postprocess

Purpose:
    Reshape the walker's nested records into the flat list the serializer
    writes. Passes run in a fixed order:

    1. collapse_nodes: merge a bare container with a same-size child
    2. sanitize_ids: make ids unique, fixing parent references
    3. flatten_nodes: pre-order linearization
    4. generate_wrapper_nodes: implied wrapper boxes
    5. verify_parent_references: every parent id must resolve

Key Functions:
    - postprocess_nodes(): All passes in order
    - collapse_nodes(), sanitize_ids(), flatten_nodes()
    - generate_wrapper_nodes(), verify_parent_references()

Key Classes:
    - SceneGraphError: Dangling parent reference (a traversal bug)

Dependencies:
    - exporter.geometry: Re-placing children after a collapse

Used By:
    - exporter.pipeline
    - exporter.collection: unique_id
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Set

from defold_toolkit.core.models.pivot import Pivot
from defold_toolkit.core.models.scene import BoxNode, SceneNode, TextNode
from defold_toolkit.core.models.vectors import ONE, ZERO, Vector4

from .geometry import resolve_position

logger = logging.getLogger(__name__)


class SceneGraphError(Exception):
    """A post-processed node set references a parent that does not exist."""

    def __init__(self, message: str, node_id: Optional[str] = None, parent_id: Optional[str] = None):
        super().__init__(message)
        self.node_id = node_id
        self.parent_id = parent_id


def postprocess_nodes(nodes: List[SceneNode]) -> List[SceneNode]:
    """
    Run every pass over the walker output.

    Args:
        nodes: Top-level nested records

    Returns:
        Flat, pre-order node list followed by implied wrapper nodes

    Raises:
        SceneGraphError: If a parent reference does not resolve
    """
    collapsed = collapse_nodes(nodes)
    sanitize_ids(collapsed)
    flat = flatten_nodes(collapsed)
    wrappers = generate_wrapper_nodes(flat)
    result = flat + wrappers
    verify_parent_references(result)
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Collapse
# ─────────────────────────────────────────────────────────────────────────────

def can_collapse(parent: SceneNode, child: SceneNode) -> bool:
    """
    A child merges into its parent when the parent is an untextured box of
    the same size and the child is either a visible textured box or an
    invisible one. ``fixed`` children never merge.
    """
    if not isinstance(parent, BoxNode) or type(child) is not type(parent):
        return False
    return (
        not child.fixed
        and parent.size == child.size
        and not parent.texture
        and ((child.visible and bool(child.texture)) or not child.visible)
    )


def _merge_child(parent: BoxNode, child: BoxNode, index: int) -> None:
    parent.visible = child.visible
    parent.texture_ref = child.texture_ref
    parent.texture_size = child.texture_size
    parent.color = child.color
    parent.size_mode = child.size_mode
    parent.slice9 = child.slice9
    parent.material = child.material
    parent.adjust_mode = child.adjust_mode
    parent.blend_mode = child.blend_mode
    parent.source = child.source
    for offset, grandchild in enumerate(child.children):
        if parent.pivot != child.pivot and grandchild.source is not None:
            # Text records hold a font-scaled size; placement uses the design box
            size = grandchild.source.size if isinstance(grandchild, TextNode) else grandchild.size
            grandchild.position = resolve_position(
                grandchild.source,
                grandchild.pivot,
                parent.pivot,
                size,
                parent.size,
                ZERO,
                False,
            )
        if grandchild.parent == child.id:
            grandchild.parent = parent.id
        parent.children.insert(index + offset, grandchild)
    logger.debug(f"Collapsed '{child.id}' into '{parent.id}'")


def collapse_node(node: SceneNode) -> SceneNode:
    """
    Collapse one subtree bottom-up.

    A parent keeps absorbing eligible children until none is left, so the
    result is stable: collapsing it again changes nothing.
    """
    # Post-order over an explicit stack: parents are handled after children
    order: List[SceneNode] = []
    stack = [node]
    while stack:
        current = stack.pop()
        order.append(current)
        stack.extend(current.children)
    for current in reversed(order):
        while _collapse_first_child(current):
            pass
    return node


def _collapse_first_child(parent: SceneNode) -> bool:
    for index, child in enumerate(parent.children):
        if can_collapse(parent, child):
            del parent.children[index]
            _merge_child(parent, child, index)
            return True
    return False


def collapse_nodes(nodes: List[SceneNode]) -> List[SceneNode]:
    return [collapse_node(node) for node in nodes]


# ─────────────────────────────────────────────────────────────────────────────
# Sanitize
# ─────────────────────────────────────────────────────────────────────────────

def unique_id(original: str, used: Set[str]) -> str:
    index = 1
    candidate = f"{original}_{index}"
    while candidate in used:
        index += 1
        candidate = f"{original}_{index}"
    return candidate


def sanitize_ids(nodes: List[SceneNode]) -> List[SceneNode]:
    """
    Rename colliding ids in pre-order, appending ``_N`` (smallest free N).

    The earlier-encountered node keeps its id. Children that referenced a
    renamed node are pointed at its new id.

    Example:
        >>> # two sibling text nodes named "label"
        >>> [n.id for n in flatten_nodes(sanitize_ids(nodes))]
        ['panel', 'label', 'label_1']
    """
    used: Set[str] = set()
    stack = list(reversed(nodes))
    while stack:
        node = stack.pop()
        old_id = node.id
        if old_id in used:
            node.id = unique_id(old_id, used)
            logger.debug(f"Renamed duplicate id '{old_id}' to '{node.id}'")
            for child in node.children:
                if child.parent == old_id:
                    child.parent = node.id
        used.add(node.id)
        stack.extend(reversed(node.children))
    return nodes


# ─────────────────────────────────────────────────────────────────────────────
# Flatten
# ─────────────────────────────────────────────────────────────────────────────

def flatten_nodes(nodes: Iterable[SceneNode]) -> List[SceneNode]:
    """Pre-order list of every record in ``nodes`` and their descendants."""
    flat: List[SceneNode] = []
    for node in nodes:
        flat.extend(node.iter_all())
    return flat


# ─────────────────────────────────────────────────────────────────────────────
# Wrappers
# ─────────────────────────────────────────────────────────────────────────────

def generate_wrapper_node(node: SceneNode, used: Optional[Set[str]] = None) -> BoxNode:
    """
    Insert an invisible box around ``node``, padded by ``wrapper_padding``
    (left, top, right, bottom).

    The wrapper is named ``<id>_wrapper``; when ``used`` already holds that
    id, the smallest free ``_N`` suffix is appended and the new id is added
    to ``used``.

    The wrapper takes over the node's placement; the node is re-parented
    to it and offset so the padding lands on the requested sides.
    """
    used = used if used is not None else set()
    wrapper_id = f"{node.id}_wrapper"
    if wrapper_id in used:
        wrapper_id = unique_id(wrapper_id, used)
    used.add(wrapper_id)
    padding = node.wrapper_padding
    size = Vector4(node.size.x + padding.x + padding.z, node.size.y + padding.y + padding.w)
    shift = Vector4((padding.x - padding.z) / 2, (padding.w - padding.y) / 2)
    wrapper = BoxNode(
        id=wrapper_id,
        parent=node.parent,
        position=node.position + shift.flipped(),
        rotation=node.rotation,
        scale=node.scale,
        size=size,
        pivot=node.pivot,
        visible=False,
        size_mode="SIZE_MODE_MANUAL",
    )
    node.parent = wrapper.id
    node.position = shift
    node.rotation = ZERO
    node.scale = ONE
    node.pivot = Pivot.CENTER
    return wrapper


def generate_wrapper_nodes(nodes: Iterable[SceneNode]) -> List[SceneNode]:
    nodes = list(nodes)
    used = {node.id for node in nodes}
    return [generate_wrapper_node(node, used) for node in nodes if node.wrapper]


# ─────────────────────────────────────────────────────────────────────────────
# Consistency
# ─────────────────────────────────────────────────────────────────────────────

def verify_parent_references(nodes: Iterable[SceneNode]) -> None:
    """
    Check that every parent id resolves to exactly one node.

    Raises:
        SceneGraphError: On a missing or ambiguous parent
    """
    nodes = list(nodes)
    counts: dict = {}
    for node in nodes:
        counts[node.id] = counts.get(node.id, 0) + 1
    for node in nodes:
        if not node.parent:
            continue
        found = counts.get(node.parent, 0)
        if found != 1:
            raise SceneGraphError(
                f"Node '{node.id}' references parent '{node.parent}' "
                f"which resolves to {found} nodes",
                node_id=node.id,
                parent_id=node.parent,
            )
