"""
Module: output.collection_serializer

Purpose:
    Write a CollectionData export as the engine's .collection property
    text. Game objects are written as ``embedded_instances`` blocks; the
    game object text itself (its ``embedded_components``) is embedded as a
    quoted string, and each component's data is embedded one level deeper.

    Embedded text is written line by line: every line becomes one quoted
    string ending in ``\\n``, so nesting only ever escapes quotes and
    backslashes once more per level.

    Values equal to the engine default are dropped when
    ``omit_default_values`` is set. Rotations are stored as z-axis degrees
    and written as quaternions.

Key Functions:
    - serialize_collection(): CollectionData -> SerializedCollection
    - serialize_game_object(): One ``embedded_instances`` block
    - serialize_component(): One ``embedded_components`` block
    - serialize_component_data(): Sprite or label component text
    - quote_lines(): Embed multi-line text as a quoted string

Key Classes:
    - SerializedCollection: Output text plus file placement

Dependencies:
    - output.gui_serializer: Value formatting shared with .gui output
    - exporter.config.ExportConfig: Quoting and omission switches

Used By:
    - scripts/export_gui.py
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from defold_toolkit.core.models.collection import LABEL_OUTLINE, LABEL_SHADOW, CollectionData, GameObject, GameObjectType
from defold_toolkit.core.models.vectors import ONE, ZERO, Vector4, readable_number
from defold_toolkit.exporter.config import ExportConfig

from .gui_serializer import format_number, format_property, indent_lines, quote_string

logger = logging.getLogger(__name__)

LABEL_FONT = "/builtins/fonts/default.font"
LABEL_MATERIAL = "/builtins/fonts/label-df.material"
TEXTURE_SAMPLER = "texture_sampler"

COMPONENT_DATA_ORDER: Tuple[str, ...] = (
    "default_animation",
    "material",
    "blend_mode",
    "slice9",
    "size",
    "size_mode",
    "image",
    "color",
    "outline",
    "shadow",
    "leading",
    "tracking",
    "pivot",
    "line_break",
    "text",
)

_DEFAULT_COMPONENT_VALUES: Dict[str, Any] = {
    "image": "",
    "default_animation": "",
    "material": "",
    "blend_mode": "BLEND_MODE_ALPHA",
    "slice9": ZERO,
    "size_mode": "SIZE_MODE_AUTO",
    "color": ONE,
    "outline": LABEL_OUTLINE,
    "shadow": LABEL_SHADOW,
    "leading": 1,
    "tracking": 0,
    "pivot": "PIVOT_CENTER",
    "line_break": False,
}


@dataclass(frozen=True)
class SerializedCollection:
    """
    One .collection file ready to be written.

    Attributes:
        name: File stem
        data: File contents
        file_path: Directory the file belongs in
    """
    name: str
    data: str
    file_path: str = "/"

    @property
    def file_name(self) -> str:
        return f"{self.name}.collection"

    @property
    def relative_path(self) -> str:
        """Path below the project root, without a leading slash."""
        directory = self.file_path.strip("/")
        return f"{directory}/{self.file_name}" if directory else self.file_name


# ─────────────────────────────────────────────────────────────────────────────
# Values
# ─────────────────────────────────────────────────────────────────────────────

def quote_lines(text: str) -> str:
    """
    Embed text as a string value, one quoted line per source line.

    Example:
        >>> print(quote_lines('id: "logo"\\ntype: "sprite"'))
        "id: \\"logo\\"\\n"
        "type: \\"sprite\\"\\n"
    """
    lines = text.splitlines()
    if not lines:
        return '""'
    return "\n".join(quote_string(f"{line}\n") for line in lines)


def _embedded_value(key: str, text: str) -> str:
    quoted = quote_lines(text).splitlines()
    if len(quoted) == 1:
        return f"{key}: {quoted[0]}"
    continuation = "\n".join(quoted[1:])
    return f"{key}: {quoted[0]}\n{continuation}"


def format_vector3(key: str, value: Vector4) -> str:
    body = "\n".join(f"{axis}: {format_number(c)}" for axis, c in zip("xyz", value.components()))
    return f"{key} {{\n{indent_lines(body)}\n}}"


def rotation_quaternion(rotation: Vector4) -> Vector4:
    """
    Quaternion of a rotation of ``rotation.z`` degrees around the z axis.

    Example:
        >>> rotation_quaternion(Vector4(0, 0, 180))
        Vector4(0, 0, 1, 0)
    """
    half = math.radians(rotation.z) / 2
    return Vector4(0, 0, math.sin(half), math.cos(half)).readable()


def format_quaternion(key: str, rotation: Vector4) -> str:
    quaternion = rotation_quaternion(rotation)
    body = "\n".join(f"{axis}: {format_number(c)}" for axis, c in zip("xyzw", quaternion.components()))
    return f"{key} {{\n{indent_lines(body)}\n}}"


def _is_zero_xyz(value: Vector4) -> bool:
    return readable_number(value.x) == 0 and readable_number(value.y) == 0 and readable_number(value.z) == 0


def _is_unit_xyz(value: Vector4) -> bool:
    return readable_number(value.x) == 1 and readable_number(value.y) == 1 and readable_number(value.z) == 1


def _transform_lines(record: GameObject, scale_key: str, config: ExportConfig) -> List[str]:
    """Position, rotation and scale blocks of a game object or component."""
    omit = config.omit_default_values
    lines = []
    if not (omit and _is_zero_xyz(record.position)):
        lines.append(format_vector3("position", record.position))
    if not (omit and readable_number(record.rotation.z) == 0):
        lines.append(format_quaternion("rotation", record.rotation))
    if not (omit and _is_unit_xyz(record.scale)):
        lines.append(format_vector3(scale_key, record.scale))
    return lines


def _is_default(key: str, value: Any) -> bool:
    if key == "size":
        return readable_number(value.x) == 0 and readable_number(value.y) == 0
    if key not in _DEFAULT_COMPONENT_VALUES:
        return False
    default = _DEFAULT_COMPONENT_VALUES[key]
    if isinstance(default, Vector4):
        return value.readable() == default
    if isinstance(default, bool):
        return value is default
    return value == default


# ─────────────────────────────────────────────────────────────────────────────
# Components
# ─────────────────────────────────────────────────────────────────────────────

def _data_rank(key: str) -> int:
    try:
        return COMPONENT_DATA_ORDER.index(key)
    except ValueError:
        return len(COMPONENT_DATA_ORDER)


def serialize_component_data(component: GameObject, config: ExportConfig) -> str:
    """
    Text of a sprite or label component.

    A sprite's image is written as a ``textures`` sampler block and its
    material is left to the engine default. Labels always name the
    built-in font and label material.
    """
    data_keys = [
        key for key in component.properties()
        if key not in ("type", "id", "position", "rotation", "scale")
    ]
    values = component.properties()
    lines = []
    for key in sorted(data_keys, key=_data_rank):
        value = values[key]
        if key == "material":
            continue
        if config.omit_default_values and _is_default(key, value):
            continue
        if key == "image":
            body = f"sampler: {quote_string(TEXTURE_SAMPLER)}\ntexture: {quote_string(value)}"
            lines.append(f"textures {{\n{indent_lines(body)}\n}}")
            continue
        text = format_property(key, value, config)
        if text is not None:
            lines.append(text)
    if component.type is GameObjectType.LABEL:
        lines.append(f"font: {quote_string(LABEL_FONT)}")
        lines.append(f"material: {quote_string(LABEL_MATERIAL)}")
    return "\n".join(lines)


def serialize_component(component: GameObject, config: ExportConfig) -> str:
    """
    One ``embedded_components { ... }`` block of a game object file.

    Example:
        >>> print(serialize_component(GameObject("logo_sprite", GameObjectType.SPRITE), config))
        embedded_components {
          id: "logo_sprite"
          type: "sprite"
          data: ""
        }
    """
    data = serialize_component_data(component, config)
    lines = [
        f"id: {quote_string(component.id)}",
        f"type: {quote_string(component.type.type_id)}",
        _embedded_value("data", data),
    ]
    lines.extend(_transform_lines(component, "scale", config))
    body = "\n".join(lines)
    return f"embedded_components {{\n{indent_lines(body)}\n}}\n"


def serialize_game_object_data(game_object: GameObject, config: ExportConfig) -> str:
    """Game object file text: its embedded components."""
    return "".join(serialize_component(component, config) for component in game_object.components)


# ─────────────────────────────────────────────────────────────────────────────
# Game objects and collection
# ─────────────────────────────────────────────────────────────────────────────

def serialize_game_object(game_object: GameObject, config: ExportConfig) -> str:
    """
    One ``embedded_instances { ... }`` block.

    Order: id, one ``children`` line per child, the embedded game object
    data, then position, rotation and ``scale3``.
    """
    lines = [f"id: {quote_string(game_object.id)}"]
    lines.extend(f"children: {quote_string(child)}" for child in game_object.children)
    lines.append(_embedded_value("data", serialize_game_object_data(game_object, config)))
    lines.extend(_transform_lines(game_object, "scale3", config))
    body = "\n".join(lines)
    return f"embedded_instances {{\n{indent_lines(body)}\n}}\n"


def serialize_collection(data: CollectionData, config: Optional[ExportConfig] = None) -> SerializedCollection:
    """
    Serialize a complete collection export.

    Args:
        data: Collection export of one root
        config: Output switches (defaults if None)

    Returns:
        SerializedCollection with the file text and where it belongs

    Example:
        >>> result = serialize_collection(collection_data)
        >>> result.data.splitlines()[:2]
        ['name: "default"', 'scale_along_z: 0']
    """
    config = config or ExportConfig()
    header = "".join(
        f"{format_property(key, value, config)}\n"
        for key, value in data.collection.properties().items()
    )
    body = "".join(serialize_game_object(game_object, config) for game_object in data.game_objects)
    text = f"{header}{body}".strip()
    logger.debug(f"Serialized collection '{data.name}': {len(data.game_objects)} game objects, {len(text)} chars")
    return SerializedCollection(name=data.name, data=text, file_path=data.file_path)
