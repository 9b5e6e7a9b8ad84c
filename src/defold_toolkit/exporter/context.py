"""
Module: exporter.context

Purpose:
    The two objects threaded through a traversal: ExportContext, the
    per-node parent frame (rebuilt for every child), and ExportResources,
    the per-document lookups and settings shared by every node.

Key Classes:
    - ExportContext: Parent id, pivot, size, shift, prefixes and mode flags
    - ExportResources: Config plus texture, font and layer lookups

Dependencies:
    - exporter.config: ExportConfig, PackOptions
    - exporter.resources: Lookup tables

Used By:
    - exporter.conversion: Record builders read both
    - exporter.walker: Builds child contexts
    - exporter.pipeline: Builds root contexts
    - exporter.collection: Reads ExportResources
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Optional

from defold_toolkit.core.models.design import DesignNode
from defold_toolkit.core.models.document import DesignDocument
from defold_toolkit.core.models.pivot import Pivot
from defold_toolkit.core.models.vectors import ZERO, Vector4

from .config import ExportConfig, PackOptions
from .resources import AtlasRegistry, FontTable, LayerTable, TextureResolver


@dataclass(frozen=True)
class ExportContext:
    """
    Parent frame of the node being converted (immutable).

    Attributes:
        at_root: Node is the traversal root, or only skipped nodes sit
            between it and the root
        as_template: The traversal exports a template file
        options: Pack switches
        name_prefix: Prefix accumulated from component ancestors
        forced_name: Name to use instead of the node's own
        parent_id: Id of the emitted parent ("" at root)
        parent_pivot: Pivot of the emitted parent
        parent_size: Size of the emitted parent (zero at root)
        parent_shift: Design-space offset of skipped ancestors
        variant_prefix: Variant value being exported ("" outside a pass)

    Example:
        >>> ctx = ExportContext.for_root(root, as_template=False)
        >>> ctx.parent_shift == Vector4(-root.x, -root.y)
        True
    """
    at_root: bool = True
    as_template: bool = False
    options: PackOptions = field(default_factory=PackOptions)
    name_prefix: str = ""
    forced_name: Optional[str] = None
    parent_id: str = ""
    parent_pivot: Pivot = Pivot.CENTER
    parent_size: Vector4 = ZERO
    parent_shift: Vector4 = ZERO
    variant_prefix: str = ""

    @classmethod
    def for_root(
        cls,
        root: DesignNode,
        as_template: bool,
        options: Optional[PackOptions] = None,
    ) -> ExportContext:
        """Context of a traversal root: no parent frame, offset cancels the root's own x/y."""
        return cls(
            at_root=True,
            as_template=as_template,
            options=options or PackOptions(),
            parent_shift=Vector4(-root.x, -root.y),
        )

    @property
    def collapse_templates(self) -> bool:
        return self.options.collapse_templates

    @property
    def collapse_empty(self) -> bool:
        return self.options.collapse_empty

    def with_variant(self, value: str) -> ExportContext:
        return dataclasses.replace(self, variant_prefix=value)


@dataclass
class ExportResources:
    """Settings and lookups shared by every node of one document."""
    config: ExportConfig = field(default_factory=ExportConfig)
    textures: TextureResolver = field(default_factory=AtlasRegistry)
    fonts: FontTable = field(default_factory=FontTable)
    layers: LayerTable = field(default_factory=LayerTable)

    @classmethod
    def from_document(
        cls,
        document: DesignDocument,
        config: Optional[ExportConfig] = None,
        textures: Optional[TextureResolver] = None,
    ) -> ExportResources:
        """
        Build lookups from a document's tables.

        Args:
            document: Loaded design document
            config: Export settings (defaults if None)
            textures: Texture lookup to use instead of the document atlases
        """
        return cls(
            config=config or ExportConfig(),
            textures=textures or AtlasRegistry.from_document(document),
            fonts=FontTable(document.fonts),
            layers=LayerTable(document.layers),
        )
