"""
Module: exporter.walker

Purpose:
    Depth-first, pre-order traversal of a design tree into nested
    scene-node records. Runs on an explicit stack so deep trees never hit
    the recursion limit.

    For every box layer the walker decides, in order:

    1. Excluded layers (and their subtrees) produce nothing.
    2. A cloneable instance already emitted for the same component and
       variant state produces nothing.
    3. Skipped layers are not emitted; their children land in the
       skipped layer's own parent, with the parent frame and name prefix
       carried through the skip.
    4. Children are visited unless the layer is a template reference or
       an atlas sprite.
    5. Instances with ``export_variants`` get one extra pass over their
       children per (group, value) pair, after the base pass.

    Text layers produce exactly one record (or none if excluded/skipped).

Key Classes:
    - WalkState: Clone registry and warnings shared by one traversal

Key Functions:
    - walk(): Traverse one root
    - is_visitable(): Visibility gate

Dependencies:
    - exporter.conversion: Record builders
    - exporter.variants: Variant passes

Used By:
    - exporter.pipeline
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from defold_toolkit.core.models.design import DesignNode
from defold_toolkit.core.models.scene import SceneNode
from defold_toolkit.core.models.vectors import ZERO

from .context import ExportContext, ExportResources
from .conversion import convert_box_node, convert_text_node, is_skippable, is_sprite_holder
from .slice9 import is_slice9_layer, is_slice9_placeholder, is_slice9_service_layer
from .variants import applied_variant, iter_variant_passes, parse_export_variants

logger = logging.getLogger(__name__)

CloneKey = Tuple[Optional[str], Dict[str, str]]


@dataclass
class WalkState:
    """
    Mutable bookkeeping for one traversal.

    Attributes:
        clones: (main component, variant properties) of emitted cloneables
        warnings: Locally recovered problems
        visited: Number of layers converted
    """
    clones: List[CloneKey] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    visited: int = 0


@dataclass
class _Visit:
    node: DesignNode
    context: ExportContext
    sink: List[SceneNode]


@dataclass
class _VariantPass:
    node: DesignNode
    record: SceneNode
    should_skip: bool
    context: ExportContext
    sink: List[SceneNode]


_Frame = Union[_Visit, _VariantPass]


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

async def walk(
    root: DesignNode,
    context: ExportContext,
    resources: ExportResources,
    state: Optional[WalkState] = None,
) -> List[SceneNode]:
    """
    Convert a design subtree into nested scene-node records.

    Args:
        root: Traversal root
        context: Root frame (see ExportContext.for_root)
        resources: Shared lookups and settings
        state: Traversal bookkeeping; a fresh one is used if None

    Returns:
        Top-level records; nested records hang off ``children``. Empty if
        the root has no exportable content.

    Example:
        >>> records = asyncio.run(walk(root, ExportContext.for_root(root, False), resources))
        >>> [r.id for r in records[0].iter_all()]
        ['menu', 'title', 'play_button']
    """
    state = state if state is not None else WalkState()
    result: List[SceneNode] = []
    await _drain([_Visit(root, context, result)], resources, state)
    return result


async def _drain(stack: List[_Frame], resources: ExportResources, state: WalkState) -> None:
    while stack:
        frame = stack.pop()
        if isinstance(frame, _VariantPass):
            await _expand_variants(frame, resources, state)
        else:
            _visit(frame, stack, resources, state)


# ─────────────────────────────────────────────────────────────────────────────
# Visiting
# ─────────────────────────────────────────────────────────────────────────────

def is_visitable(node: DesignNode) -> bool:
    """Service frames never; invisible layers only when they carry slice-9 structure."""
    if is_slice9_service_layer(node):
        return False
    return node.visible or is_slice9_placeholder(node) or is_slice9_layer(node)


def _visit(frame: _Visit, stack: List[_Frame], resources: ExportResources, state: WalkState) -> None:
    node, context, sink = frame.node, frame.context, frame.sink
    if not is_visitable(node):
        return
    state.visited += 1
    if node.is_text:
        _visit_text(node, context, sink, resources)
        return

    record = convert_box_node(node, context, resources)
    collapse_templates = context.collapse_templates
    if record.exclude and not collapse_templates:
        logger.debug(f"Excluded '{node.name}'")
        return
    if not collapse_templates and _is_already_cloned(node, record, state):
        logger.debug(f"'{node.name}' is a clone of an emitted instance, dropped")
        return
    if record.cloneable and node.is_instance and not collapse_templates:
        state.clones.append(_clone_key(node))

    should_skip = _should_skip_empty(node, record, context) or is_skippable(node, resources)
    if should_skip:
        logger.debug(f"Skipped '{node.name}', children move to '{context.parent_id or '<root>'}'")
    else:
        sink.append(record)
    child_sink = sink if should_skip else record.children

    # Pushed first so it runs after the whole base pass over the children
    if _can_export_variants(node, record, context):
        stack.append(_VariantPass(node, record, should_skip, context, child_sink))
    if _can_visit_children(node, record, context, resources):
        child_context = _child_context(node, record, should_skip, context, resources)
        for child in reversed(node.children):
            stack.append(_Visit(child, child_context, child_sink))


def _visit_text(node: DesignNode, context: ExportContext, sink: List[SceneNode], resources: ExportResources) -> None:
    record = convert_text_node(node, context, resources)
    if record.exclude:
        logger.debug(f"Excluded '{node.name}'")
        return
    if is_skippable(node, resources):
        logger.debug(f"Skipped text '{node.name}'")
        return
    sink.append(record)


def _should_skip_empty(node: DesignNode, record: SceneNode, context: ExportContext) -> bool:
    if context.at_root or not context.collapse_empty:
        return False
    return not record.texture and len(node.children) <= 1


def _can_visit_children(
    node: DesignNode,
    record: SceneNode,
    context: ExportContext,
    resources: ExportResources,
) -> bool:
    if not node.children:
        return False
    expands = context.collapse_templates or not record.template or (context.at_root and context.as_template)
    return expands and not resources.textures.is_sprite(node)


def _can_export_variants(node: DesignNode, record: SceneNode, context: ExportContext) -> bool:
    return (
        not context.collapse_templates
        and not context.variant_prefix
        and bool(record.export_variants)
        and node.is_instance
    )


# ─────────────────────────────────────────────────────────────────────────────
# Clones
# ─────────────────────────────────────────────────────────────────────────────

def _clone_key(node: DesignNode) -> CloneKey:
    return node.main_component, dict(node.variant_properties)


def _is_already_cloned(node: DesignNode, record: SceneNode, state: WalkState) -> bool:
    if not record.cloneable or not node.is_instance or not node.main_component:
        return False
    return _clone_key(node) in state.clones


# ─────────────────────────────────────────────────────────────────────────────
# Child frames
# ─────────────────────────────────────────────────────────────────────────────

def _child_name_prefix(node: DesignNode, should_skip: bool, context: ExportContext) -> str:
    if should_skip:
        return context.name_prefix
    if node.is_component_like:
        return f"{context.name_prefix}{node.name}_"
    return context.name_prefix


def _child_forced_name(
    node: DesignNode,
    should_skip: bool,
    context: ExportContext,
    resources: ExportResources,
) -> Optional[str]:
    if should_skip and context.forced_name and is_slice9_placeholder(node):
        return context.forced_name
    if is_sprite_holder(node, resources):
        return node.name
    return None


def _child_context(
    node: DesignNode,
    record: SceneNode,
    should_skip: bool,
    context: ExportContext,
    resources: ExportResources,
) -> ExportContext:
    """
    Parent frame handed to the children of ``node``.

    A skipped node forwards its own incoming frame, adding its design
    position to the shift so the children keep their absolute placement.
    """
    if should_skip:
        parent_id = context.parent_id
        parent_pivot = context.parent_pivot
        parent_size = record.size if context.parent_size.is_zero else context.parent_size
        parent_shift = context.parent_shift + record.figma_position
    else:
        parent_id = record.id
        parent_pivot = record.pivot
        parent_size = record.size
        parent_shift = ZERO
    return ExportContext(
        at_root=should_skip and context.at_root,
        as_template=context.as_template,
        options=context.options,
        name_prefix=_child_name_prefix(node, should_skip, context),
        forced_name=_child_forced_name(node, should_skip, context, resources),
        parent_id=parent_id,
        parent_pivot=parent_pivot,
        parent_size=parent_size,
        parent_shift=parent_shift,
        variant_prefix=context.variant_prefix,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Variants
# ─────────────────────────────────────────────────────────────────────────────

async def _expand_variants(frame: _VariantPass, resources: ExportResources, state: WalkState) -> None:
    """
    One pass over the children per (group, value) pair.

    Records are captured while the value is applied; the node is switched
    back before the next pair, even if the pass fails.
    """
    node = frame.node
    variants = parse_export_variants(frame.record.export_variants)
    for group, value in iter_variant_passes(node, variants, state.warnings):
        produced: List[SceneNode] = []
        async with applied_variant(node, group, value, resources.config.settle_delay):
            context = frame.context.with_variant(value)
            child_context = _child_context(node, frame.record, frame.should_skip, context, resources)
            await _drain(
                [_Visit(child, child_context, produced) for child in reversed(node.children)],
                resources,
                state,
            )
        frame.sink.extend(produced)
        logger.debug(f"Variant {group}={value} of '{node.name}' added {len(produced)} records")
