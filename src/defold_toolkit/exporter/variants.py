"""
Module: exporter.variants

Purpose:
    Component-variant enumeration. A node's ``export_variants`` metadata
    ("State=on,State=off,Size=big") names the variant values to export;
    each (group, value) pair is applied on its own, with every other group
    held at its initial value, and the subtree is exported once per pair.

    Applying a value is a scoped acquisition: switch, wait for the
    document to settle, let the caller capture, then switch back. The
    restore runs in ``finally`` so the document is never left mutated,
    and a per-node lock keeps concurrent exports from reading a node's
    variant state mid-switch.

Key Functions:
    - parse_export_variants(): Metadata string -> {group: [values]}
    - resolve_initial_values(): Current value of each requested group
    - iter_variant_passes(): (group, value) pairs that can be applied
    - applied_variant(): Async context manager around one pass

Dependencies:
    - asyncio (std): Settle delay and per-node locks

Used By:
    - exporter.walker: Variant expansion of instances
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterator, List, Optional, Tuple

from defold_toolkit.core.models.design import DesignNode

logger = logging.getLogger(__name__)

VariantSpec = Dict[str, List[str]]

_NODE_LOCKS: "weakref.WeakKeyDictionary[DesignNode, asyncio.Lock]" = weakref.WeakKeyDictionary()


# ─────────────────────────────────────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────────────────────────────────────

def parse_export_variants(spec: Optional[str]) -> VariantSpec:
    """
    Parse an export-variants string.

    Pairs are comma separated ``group=value``. Malformed pairs are
    ignored; values keep their first-seen order within a group.

    Example:
        >>> parse_export_variants("State=on, State=off,Size=big")
        {'State': ['on', 'off'], 'Size': ['big']}
        >>> parse_export_variants("broken,=x")
        {}
    """
    variants: VariantSpec = {}
    if not spec:
        return variants
    for pair in spec.split(","):
        group, sep, value = pair.partition("=")
        group, value = group.strip(), value.strip()
        if not sep or not group or not value:
            continue
        values = variants.setdefault(group, [])
        if value not in values:
            values.append(value)
    return variants


def resolve_initial_values(node: DesignNode, variants: VariantSpec) -> Dict[str, str]:
    """Current value of every requested group the node actually has."""
    return {
        group: node.variant_properties[group]
        for group in variants
        if node.variant_properties.get(group)
    }


def iter_variant_passes(
    node: DesignNode,
    variants: VariantSpec,
    warnings: Optional[List[str]] = None,
) -> Iterator[Tuple[str, str]]:
    """
    Yield the (group, value) pairs to export, group by group.

    Groups the node does not declare are skipped with a warning.
    """
    initial = resolve_initial_values(node, variants)
    for group, values in variants.items():
        if group not in initial:
            message = f"'{node.name}' has no variant group '{group}', skipping"
            logger.warning(message)
            if warnings is not None:
                warnings.append(message)
            continue
        for value in values:
            yield group, value


# ─────────────────────────────────────────────────────────────────────────────
# Scoped application
# ─────────────────────────────────────────────────────────────────────────────

def _node_lock(node: DesignNode) -> asyncio.Lock:
    lock = _NODE_LOCKS.get(node)
    if lock is None:
        lock = asyncio.Lock()
        _NODE_LOCKS[node] = lock
    return lock


@asynccontextmanager
async def applied_variant(
    node: DesignNode,
    group: str,
    value: str,
    settle_delay: float = 0.1,
) -> AsyncIterator[DesignNode]:
    """
    Hold ``node`` at ``group=value`` for the duration of the block.

    Args:
        node: Component instance to switch
        group: Variant group name
        value: Value to apply
        settle_delay: Seconds to wait after switching

    Yields:
        The switched node

    Raises:
        KeyError: If the node has no such group

    Example:
        >>> async with applied_variant(button, "State", "pressed", 0):
        ...     records = await walk(button, context, resources)
        >>> button.variant_properties["State"]
        'idle'
    """
    async with _node_lock(node):
        initial = node.variant_properties[group]
        node.set_variant_property(group, value)
        try:
            await asyncio.sleep(settle_delay)
            yield node
        finally:
            node.set_variant_property(group, initial)
            logger.debug(f"Restored '{node.name}' {group}={initial}")
