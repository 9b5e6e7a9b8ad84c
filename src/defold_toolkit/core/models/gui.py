"""
Module: gui

Purpose:
    Provides the records describing one exported GUI file: the header
    settings and the GuiData bundle (nodes plus texture/font/layer tables)
    handed from the exporter to the serializer.

Key Classes:
    - GuiSettings: Header fields of a .gui file
    - GuiData: Complete export of one root

Dependencies:
    - dataclasses (std)
    - .scene.SceneNode
    - .vectors.Vector4

Used By:
    - exporter.pipeline
    - output.gui_serializer
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .scene import SceneNode
from .vectors import ZERO, Vector4


@dataclass(frozen=True)
class GuiSettings:
    """
    Header of a .gui file (immutable).

    Field order is the order written to the file; ``script`` is always
    first and the resource tables and nodes are inserted right after it.
    """
    script: str = ""
    background_color: Vector4 = ZERO
    material: str = "/builtins/materials/gui.material"
    adjust_reference: str = "ADJUST_REFERENCE_PARENT"
    max_nodes: int = 512

    def properties(self) -> Dict[str, Any]:
        return {
            "script": self.script,
            "background_color": self.background_color,
            "material": self.material,
            "adjust_reference": self.adjust_reference,
            "max_nodes": self.max_nodes,
        }


@dataclass
class GuiData:
    """
    Export result for one root, before serialization.

    Attributes:
        name: Root layer name (file stem)
        gui: Header settings
        nodes: Flat, pre-order node list
        textures: Atlas name -> atlas path
        fonts: Font name -> font path
        layers: Ordered layer names
        file_path: Directory the file belongs in
        as_template: Whether this root was exported as a template
        size: Root box size
    """
    name: str
    gui: GuiSettings
    nodes: List[SceneNode] = field(default_factory=list)
    textures: Dict[str, str] = field(default_factory=dict)
    fonts: Dict[str, str] = field(default_factory=dict)
    layers: List[str] = field(default_factory=list)
    file_path: str = "/"
    as_template: bool = False
    size: Vector4 = ZERO

    @property
    def file_name(self) -> str:
        return f"{self.name}.gui"

    def find(self, node_id: str):
        """Find a node by id, or None."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None
