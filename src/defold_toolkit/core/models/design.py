"""
Module: design

Purpose:
    Provides the input-side model: DesignNode - one layer of the authoring
    tool's tree - together with its paints, text style, per-node metadata
    store and component-variant state.

Key Classes:
    - DesignKind: Layer kind (frame, group, component, instance, text)
    - Paint: Solid fill
    - TextStyle: Text layer properties
    - MetadataStore / DictMetadataStore: Per-node key/value capability
    - VariantOverride: State a variant value imposes on an instance
    - DesignNode: Mutable tree node

Dependencies:
    - dataclasses (std)
    - typing (std)
    - .vectors.Vector4

Used By:
    - core.utils.serialization: Document loading
    - exporter.*: Every export stage reads design nodes

Notes:
    DesignNode is the one mutable model in the package. The exporter only
    reads it, except for two narrow writes: the slice-9 resolver writes
    margins into metadata, and the variant enumerator switches (and always
    restores) variant properties.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, runtime_checkable

from .vectors import Vector4


class DesignKind(str, Enum):
    """Type of design layer."""
    FRAME = "FRAME"
    GROUP = "GROUP"
    COMPONENT = "COMPONENT"
    INSTANCE = "INSTANCE"
    TEXT = "TEXT"

    def __str__(self) -> str:
        return self.value

    @property
    def is_box(self) -> bool:
        """Container-like layers that export as box nodes."""
        return self is not DesignKind.TEXT


@dataclass(frozen=True, slots=True)
class Paint:
    """Solid fill. ``color`` holds (r, g, b, a) in 0..1."""
    color: Vector4
    opacity: float = 1.0
    visible: bool = True
    type: str = "SOLID"


@dataclass(frozen=True, slots=True)
class TextStyle:
    """Properties of a text layer that survive into the text node."""
    characters: str = ""
    font_family: str = ""
    font_size: float = 18.0
    align_horizontal: str = "CENTER"
    align_vertical: str = "CENTER"
    line_height: Optional[float] = None
    letter_spacing: float = 0.0
    auto_resize: str = "NONE"


# ─────────────────────────────────────────────────────────────────────────────
# Metadata
# ─────────────────────────────────────────────────────────────────────────────

@runtime_checkable
class MetadataStore(Protocol):
    """Narrow read/write capability over one node's author metadata."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def as_dict(self) -> Dict[str, Any]: ...


class DictMetadataStore:
    """MetadataStore backed by a plain dict."""

    def __init__(self, data: Optional[Mapping[str, Any]] = None):
        self._data: Dict[str, Any] = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def __repr__(self) -> str:
        return f"DictMetadataStore({self._data!r})"


# ─────────────────────────────────────────────────────────────────────────────
# Variants
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class VariantOverride:
    """
    Partial node state imposed while a variant value is active.

    ``None`` fields leave the base state untouched.
    """
    x: Optional[float] = None
    y: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    fills: Optional[List[Paint]] = None
    children: Optional[List[DesignNode]] = None
    text: Optional[TextStyle] = None


# ─────────────────────────────────────────────────────────────────────────────
# Design node
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(eq=False)
class DesignNode:
    """
    One layer of the design tree.

    Geometry is parent-local with a top-left origin and y pointing down.

    Attributes:
        id: Stable layer id
        name: Display name (source of the scene node id)
        kind: Layer kind
        x, y, width, height: Parent-local box
        rotation: Degrees, counter-clockwise
        visible: Layer visibility
        fills: Solid paints, first visible one is used for colour
        children: Ordered child layers
        metadata: Author overrides (skip, pivot, slice9, template, ...)
        main_component: Component id an instance was created from
        variant_properties: Current value per variant group
        variants: group -> value -> state override
        text: Text properties (TEXT layers only)
        parent: Back-reference, set by the loader

    Example:
        >>> root = DesignNode("1", "root", DesignKind.FRAME, width=100, height=100)
        >>> root.add_child(DesignNode("2", "icon", DesignKind.INSTANCE, width=10, height=10))
        >>> [n.name for n in root.iter_all()]
        ['root', 'icon']
    """

    id: str
    name: str
    kind: DesignKind
    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    rotation: float = 0.0
    visible: bool = True
    fills: List[Paint] = field(default_factory=list)
    children: List[DesignNode] = field(default_factory=list)
    metadata: MetadataStore = field(default_factory=DictMetadataStore)
    main_component: Optional[str] = None
    variant_properties: Dict[str, str] = field(default_factory=dict)
    variants: Dict[str, Dict[str, VariantOverride]] = field(default_factory=dict)
    text: Optional[TextStyle] = None
    parent: Optional[DesignNode] = field(default=None, repr=False)

    _base_state: Optional[VariantOverride] = field(default=None, init=False, repr=False)
    _initial_variants: Dict[str, str] = field(default_factory=dict, init=False, repr=False)

    def __post_init__(self) -> None:
        for child in self.children:
            child.parent = self

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_box(self) -> bool:
        return self.kind.is_box

    @property
    def is_text(self) -> bool:
        return self.kind is DesignKind.TEXT

    @property
    def is_instance(self) -> bool:
        return self.kind is DesignKind.INSTANCE

    @property
    def is_component_like(self) -> bool:
        """Components and their instances contribute to child name prefixes."""
        return self.kind in (DesignKind.COMPONENT, DesignKind.INSTANCE)

    @property
    def position(self) -> Vector4:
        return Vector4(self.x, self.y)

    @property
    def size(self) -> Vector4:
        return Vector4(self.width, self.height)

    # ─────────────────────────────────────────────────────────────────────────
    # Tree
    # ─────────────────────────────────────────────────────────────────────────

    def add_child(self, child: DesignNode) -> DesignNode:
        child.parent = self
        self.children.append(child)
        return child

    def iter_all(self) -> Iterator[DesignNode]:
        """
        Iterate over this node and all descendants (pre-order).

        Uses an explicit stack so deep trees do not hit the recursion limit.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, name: str) -> Optional[DesignNode]:
        """Find the first node (pre-order) with the given name."""
        for node in self.iter_all():
            if node.name == name:
                return node
        return None

    # ─────────────────────────────────────────────────────────────────────────
    # Variant state
    # ─────────────────────────────────────────────────────────────────────────

    def set_variant_property(self, group: str, value: str) -> None:
        """
        Switch one variant group to ``value`` and re-derive the node state.

        The state is always rebuilt from the snapshot taken on the first
        switch, so switching back to the initial value restores the node
        exactly.

        Raises:
            KeyError: If the node has no such variant group
        """
        if group not in self.variant_properties:
            raise KeyError(f"{self.name!r} has no variant group {group!r}")
        if self._base_state is None:
            self._base_state = self._capture_state()
            self._initial_variants = dict(self.variant_properties)
        self.variant_properties[group] = value
        self._apply_state(self._base_state)
        for name, current in self.variant_properties.items():
            if current != self._initial_variants.get(name):
                override = self.variants.get(name, {}).get(current)
                if override is not None:
                    self._apply_state(override)

    def _capture_state(self) -> VariantOverride:
        return VariantOverride(
            x=self.x,
            y=self.y,
            width=self.width,
            height=self.height,
            fills=list(self.fills),
            children=list(self.children),
            text=self.text,
        )

    def _apply_state(self, state: VariantOverride) -> None:
        if state.x is not None:
            self.x = state.x
        if state.y is not None:
            self.y = state.y
        if state.width is not None:
            self.width = state.width
        if state.height is not None:
            self.height = state.height
        if state.fills is not None:
            self.fills = list(state.fills)
        if state.text is not None:
            self.text = state.text
        if state.children is not None:
            self.children = list(state.children)
            for child in self.children:
                child.parent = self
