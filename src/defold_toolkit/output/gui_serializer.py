"""
Module: output.gui_serializer

Purpose:
    Write a GuiData export as the engine's .gui property text: ``key: value``
    lines and nested ``key { ... }`` blocks indented by two spaces.

    Value rules:
    - bool -> ``true`` / ``false``
    - numbers -> rounded to 3 decimals, no trailing ``.0``
    - strings -> double-quoted unless the key is a constant key
    - Vector4 -> ``key { x y z w }`` block

    Node properties are written in a fixed order; properties equal to the
    engine default are dropped when ``omit_default_values`` is set.
    Template references only carry identity and placement fields.

Key Functions:
    - serialize_gui(): GuiData -> SerializedGui
    - serialize_node(): One node block
    - format_property(): One ``key: value`` line or vector block

Key Classes:
    - SerializedGui: Output text plus file placement

Dependencies:
    - exporter.config.ExportConfig: Quoting and omission switches

Used By:
    - scripts/export_gui.py
    - output.collection_serializer: Value formatting
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from defold_toolkit.core.models.gui import GuiData, GuiSettings
from defold_toolkit.core.models.scene import SceneNode
from defold_toolkit.core.models.vectors import ONE, ZERO, Vector4, readable_number
from defold_toolkit.exporter.config import ExportConfig

logger = logging.getLogger(__name__)

INDENT = "  "

GUI_NODE_PROPERTY_ORDER: Tuple[str, ...] = (
    "position",
    "rotation",
    "scale",
    "size",
    "color",
    "type",
    "blend_mode",
    "text",
    "font",
    "texture",
    "id",
    "parent",
    "xanchor",
    "yanchor",
    "pivot",
    "outline",
    "shadow",
    "adjust_mode",
    "line_break",
    "layer",
    "inherit_alpha",
    "outline_alpha",
    "shadow_alpha",
    "text_leading",
    "text_tracking",
    "slice9",
    "clipping_mode",
    "clipping_visible",
    "clipping_inverted",
    "alpha",
    "enabled",
    "visible",
)

_DEFAULT_NODE_VALUES: Dict[str, Any] = {
    "size_mode": "SIZE_MODE_MANUAL",
    "pivot": "PIVOT_CENTER",
    "adjust_mode": "ADJUST_MODE_FIT",
    "clipping_mode": "CLIPPING_MODE_NONE",
    "blend_mode": "BLEND_MODE_ALPHA",
    "xanchor": "XANCHOR_NONE",
    "yanchor": "YANCHOR_NONE",
    "scale": ONE,
    "color": ONE,
    "position": ZERO,
    "rotation": ZERO,
    "size": ZERO,
    "slice9": ZERO,
    "outline": ZERO,
    "shadow": ZERO,
    "text_leading": 1,
    "outline_alpha": 1,
    "shadow_alpha": 1,
    "alpha": 1,
    "text_tracking": 0,
    "visible": True,
    "enabled": True,
    "clipping_visible": True,
    "inherit_alpha": False,
    "clipping_inverted": False,
    "line_break": False,
}

_DEFAULT_HEADER_VALUES: Dict[str, Any] = {
    "background_color": ZERO,
    "max_nodes": 512,
}


@dataclass(frozen=True)
class SerializedGui:
    """
    One .gui file ready to be written.

    Attributes:
        name: File stem
        data: File contents
        file_path: Directory the file belongs in
        template: Whether the file is a template
        template_name: Template name (templates only)
        template_path: Template directory (templates only)
    """
    name: str
    data: str
    file_path: str = "/"
    template: bool = False
    template_name: Optional[str] = None
    template_path: Optional[str] = None

    @property
    def file_name(self) -> str:
        return f"{self.name}.gui"

    @property
    def relative_path(self) -> str:
        """Path below the project root, without a leading slash."""
        directory = self.file_path.strip("/")
        return f"{directory}/{self.file_name}" if directory else self.file_name


# ─────────────────────────────────────────────────────────────────────────────
# Values
# ─────────────────────────────────────────────────────────────────────────────

def format_number(value: float) -> str:
    """
    Example:
        >>> format_number(1.0), format_number(0.12345)
        ('1', '0.123')
    """
    rounded = readable_number(value)
    if float(rounded).is_integer():
        return str(int(rounded))
    return repr(rounded)


def quote_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def indent_lines(text: str) -> str:
    return "\n".join(f"{INDENT}{line}" for line in text.splitlines())


def format_property(key: str, value: Any, config: ExportConfig) -> Optional[str]:
    """
    Serialize one property.

    Args:
        key: Property name
        value: bool, number, string or Vector4
        config: Quoting and vector switches

    Returns:
        Serialized text, or None for values with no representation (None)

    Example:
        >>> format_property("type", "TYPE_BOX", config)
        'type: TYPE_BOX'
        >>> format_property("id", "TYPE_BOX", config)
        'id: "TYPE_BOX"'
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return f"{key}: {'true' if value else 'false'}"
    if isinstance(value, (int, float)):
        return f"{key}: {format_number(value)}"
    if isinstance(value, Vector4):
        return format_vector(key, value, config.omit_zero_components)
    if isinstance(value, str):
        if key in config.const_keys:
            return f"{key}: {value}"
        return f"{key}: {quote_string(value)}"
    logger.debug(f"No representation for '{key}' of type {type(value).__name__}")
    return None


def format_vector(key: str, value: Vector4, omit_zero_components: bool = False) -> str:
    lines = []
    for axis, component in zip("xyzw", value.components()):
        if omit_zero_components and readable_number(component) == 0:
            continue
        lines.append(f"{axis}: {format_number(component)}")
    if not lines:
        return f"{key} {{\n}}"
    body = "\n".join(lines)
    return f"{key} {{\n{indent_lines(body)}\n}}"


def _is_default(key: str, value: Any, defaults: Dict[str, Any]) -> bool:
    if isinstance(value, str) and key not in defaults:
        return value == ""
    if key not in defaults:
        return False
    default = defaults[key]
    if isinstance(default, Vector4):
        return isinstance(value, Vector4) and value.readable() == default
    if isinstance(default, bool) or isinstance(value, bool):
        return value is default
    return value == default


# ─────────────────────────────────────────────────────────────────────────────
# Nodes
# ─────────────────────────────────────────────────────────────────────────────

def _property_rank(key: str) -> int:
    try:
        return GUI_NODE_PROPERTY_ORDER.index(key)
    except ValueError:
        return len(GUI_NODE_PROPERTY_ORDER)


def ordered_properties(node: SceneNode) -> List[Tuple[str, Any]]:
    """Engine properties in file order; unlisted keys keep their relative order at the end."""
    return sorted(node.engine_properties().items(), key=lambda item: _property_rank(item[0]))


def serialize_node(node: SceneNode, config: ExportConfig) -> str:
    """
    One ``nodes { ... }`` block.

    Written from ``node.engine_properties()``, so a template reference only
    carries the fields ``TemplateNode.engine_properties`` lets through.

    Example:
        >>> print(serialize_node(BoxNode(id="bg", size=Vector4(10, 10)), config))
        nodes {
          size {
            x: 10
            y: 10
            z: 0
            w: 0
          }
        ...
    """
    lines = []
    for key, value in ordered_properties(node):
        if config.omit_default_values and _is_default(key, value, _DEFAULT_NODE_VALUES):
            continue
        text = format_property(key, value, config)
        if text is not None:
            lines.append(text)
    body = "\n".join(lines)
    return f"nodes {{\n{indent_lines(body)}\n}}\n"


def serialize_nodes(nodes: Iterable[SceneNode], config: ExportConfig) -> str:
    return "".join(serialize_node(node, config) for node in nodes)


# ─────────────────────────────────────────────────────────────────────────────
# Tables and header
# ─────────────────────────────────────────────────────────────────────────────

def _named_block(block: str, fields: Dict[str, str]) -> str:
    body = "\n".join(f"{key}: {quote_string(value)}" for key, value in fields.items())
    return f"{block} {{\n{indent_lines(body)}\n}}\n"


def serialize_textures(textures: Dict[str, str]) -> str:
    return "".join(_named_block("textures", {"name": name, "texture": path}) for name, path in textures.items())


def serialize_fonts(fonts: Dict[str, str]) -> str:
    return "".join(_named_block("fonts", {"name": name, "font": path}) for name, path in fonts.items())


def serialize_layers(layers: Iterable[str]) -> str:
    return "".join(_named_block("layers", {"name": name}) for name in layers)


def serialize_header(settings: GuiSettings, body: str, config: ExportConfig) -> str:
    """
    Header fields with ``body`` inserted right after ``script``.

    ``script`` is always written, even when empty.
    """
    parts = []
    for key, value in settings.properties().items():
        if key != "script" and config.omit_default_values and _is_default(key, value, _DEFAULT_HEADER_VALUES):
            continue
        text = format_property(key, value, config)
        if text is not None:
            parts.append(f"{text}\n")
        if key == "script":
            parts.append(body)
    return "".join(parts)


def serialize_gui(data: GuiData, config: Optional[ExportConfig] = None) -> SerializedGui:
    """
    Serialize a complete export.

    Args:
        data: Export of one root
        config: Output switches (defaults if None)

    Returns:
        SerializedGui with the file text and where it belongs

    Example:
        >>> result = serialize_gui(gui_data)
        >>> result.data.splitlines()[0]
        'script: ""'
    """
    config = config or ExportConfig()
    body = "".join((
        serialize_textures(data.textures),
        serialize_fonts(data.fonts),
        serialize_nodes(data.nodes, config),
        serialize_layers(data.layers),
    ))
    text = serialize_header(data.gui, body, config).strip()
    template_name = template_path = None
    if data.as_template and data.nodes:
        template_name = data.nodes[0].template_name
        template_path = data.nodes[0].template_path
    logger.debug(f"Serialized '{data.name}': {len(data.nodes)} nodes, {len(text)} chars")
    return SerializedGui(
        name=data.name,
        data=text,
        file_path=data.file_path,
        template=data.as_template,
        template_name=template_name,
        template_path=template_path,
    )
