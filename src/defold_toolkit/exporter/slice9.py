"""
Module: exporter.slice9

Purpose:
    Slice-9 margin resolution. A sliced layer is previewed in the design
    tool by a placeholder frame holding the original instance plus eight
    service frames, one per corner and edge. Margins are inferred from the
    service frame sizes and written back into the original layer's
    metadata before traversal, so the walker only has to read them.

Key Functions:
    - is_slice9_placeholder(): Placeholder frame predicate
    - is_slice9_service_layer(): Service frame predicate
    - find_slice9_layer(): Original instance inside a placeholder
    - parse_slice9(): Margins inferred from a placeholder's service frames
    - restore_slice9_layer_data(): Recursive write-back over a subtree
    - resolve_slice9(): Margins for one node (metadata or zero)

Dependencies:
    - core.models.design: DesignNode and metadata store
    - core.models.vectors: Vector4

Used By:
    - exporter.pipeline: Preprocessing before traversal
    - exporter.conversion: Box records
    - exporter.walker: Placeholder skip and forced-name rules
    - exporter.collection: Sprite margins and service layers
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from defold_toolkit.core.models.design import DesignKind, DesignNode
from defold_toolkit.core.models.vectors import ZERO, Vector4

logger = logging.getLogger(__name__)

PLACEHOLDER_SUFFIX = "-slice9Placeholder"
SERVICE_PREFIX = "slice9Frame-"


# Service frame name suffix -> margins contributed by a frame of (w, h)
_SERVICE_MARGINS: Dict[str, Callable[[float, float], Vector4]] = {
    "leftTop": lambda w, h: Vector4(w, h, 0, 0),
    "centerTop": lambda w, h: Vector4(0, h, 0, 0),
    "rightTop": lambda w, h: Vector4(0, h, w, 0),
    "leftCenter": lambda w, h: Vector4(w, 0, 0, 0),
    "rightCenter": lambda w, h: Vector4(0, 0, w, 0),
    "leftBottom": lambda w, h: Vector4(w, 0, 0, h),
    "centerBottom": lambda w, h: Vector4(0, 0, 0, h),
    "rightBottom": lambda w, h: Vector4(0, 0, w, h),
}


# ─────────────────────────────────────────────────────────────────────────────
# Predicates
# ─────────────────────────────────────────────────────────────────────────────

def is_slice9_placeholder(node: DesignNode) -> bool:
    return node.is_box and node.name.endswith(PLACEHOLDER_SUFFIX)


def is_slice9_service_layer(node: DesignNode) -> bool:
    return node.name.startswith(SERVICE_PREFIX)


def is_slice9_layer(node: DesignNode) -> bool:
    """An instance that has had slice-9 margins written to it."""
    return node.is_instance and bool(node.metadata.get("slice9_layer"))


def find_slice9_layer(placeholder: DesignNode) -> Optional[DesignNode]:
    """
    Original instance wrapped by a placeholder.

    A child already flagged as a slice-9 layer wins; otherwise the first
    instance child is taken.
    """
    instances = [c for c in placeholder.children if c.kind is DesignKind.INSTANCE]
    for child in instances:
        if is_slice9_layer(child):
            return child
    return instances[0] if instances else None


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────

def parse_service_layer(node: DesignNode) -> Vector4:
    """Margins contributed by one service frame; zero for unknown names."""
    for suffix, margins in _SERVICE_MARGINS.items():
        if node.name.endswith(suffix):
            return margins(node.width, node.height)
    return ZERO


def parse_slice9(placeholder: DesignNode) -> Vector4:
    """
    Infer (left, top, right, bottom) margins from a placeholder.

    Each component takes the last non-zero value any service frame
    supplies for it.

    Example:
        >>> # placeholder with slice9Frame-leftTop (12x8) and
        >>> # slice9Frame-rightBottom (10x6)
        >>> parse_slice9(placeholder)
        Vector4(12, 8, 10, 6)
    """
    x = y = z = w = 0.0
    for child in placeholder.children:
        if not is_slice9_service_layer(child):
            continue
        margins = parse_service_layer(child)
        x = margins.x or x
        y = margins.y or y
        z = margins.z or z
        w = margins.w or w
    return Vector4(x, y, z, w)


def restore_slice9_layer_data(node: DesignNode, warnings: Optional[List[str]] = None) -> int:
    """
    Write inferred margins onto the original layer of every placeholder
    in a subtree.

    Malformed placeholders (no original instance, or no service frames)
    are left alone and reported through ``warnings``.

    Args:
        node: Subtree root
        warnings: Optional list collecting recovered problems

    Returns:
        Number of layers updated
    """
    updated = 0
    stack = [node]
    while stack:
        current = stack.pop()
        if not current.is_box:
            continue
        if is_slice9_placeholder(current):
            if _restore_placeholder(current, warnings):
                updated += 1
        stack.extend(reversed(current.children))
    return updated


def _restore_placeholder(placeholder: DesignNode, warnings: Optional[List[str]]) -> bool:
    original = find_slice9_layer(placeholder)
    slice9 = parse_slice9(placeholder)
    if original is None or slice9.is_zero:
        message = f"Malformed slice-9 placeholder '{placeholder.name}', margins left unchanged"
        logger.warning(message)
        if warnings is not None:
            warnings.append(message)
        return False
    original.metadata.set("slice9", slice9)
    original.metadata.set("slice9_layer", True)
    logger.debug(f"Restored slice-9 {slice9!r} on '{original.name}'")
    return True


def resolve_slice9(node: DesignNode) -> Vector4:
    """
    Margins for a node being exported.

    A layer sitting inside a placeholder is re-parsed from its siblings so
    stale metadata never wins; otherwise the stored margins are used.
    """
    parent = node.parent
    if parent is not None and is_slice9_placeholder(parent) and find_slice9_layer(parent) is node:
        parsed = parse_slice9(parent)
        if not parsed.is_zero:
            return parsed
    stored = node.metadata.get("slice9")
    if isinstance(stored, Vector4):
        return stored
    return ZERO
