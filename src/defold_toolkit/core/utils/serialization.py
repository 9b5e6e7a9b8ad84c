"""
Serialization Utilities

Provides to/from JSON utilities for the design document and scene models.

- ``deserialize_document`` / ``load_document``: JSON -> DesignDocument,
  validated against the document schema first.
- ``serialize_design_node``: DesignNode -> JSON-ready dict (round-trips
  through ``deserialize_design_node``).
- ``serialize_scene_node``: SceneNode -> engine-property dict, used for
  debugging dumps and tests.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..models.design import DesignKind, DesignNode, DictMetadataStore, Paint, TextStyle, VariantOverride
from ..models.document import AtlasInfo, DesignDocument, FontInfo, LayerInfo, SpriteInfo
from ..models.scene import SceneNode
from ..models.vectors import Vector4
from ..schemas.validator import validate_document


# ─────────────────────────────────────────────────────────────────────────────
# Document Serialization
# ─────────────────────────────────────────────────────────────────────────────

def deserialize_document(data: dict[str, Any], *, validate: bool = True) -> DesignDocument:
    """
    Deserialize a DesignDocument from a dictionary.

    Args:
        data: Dictionary from JSON
        validate: Whether to validate against the schema first

    Returns:
        DesignDocument instance

    Raises:
        ValidationError: If validate=True and data is invalid
    """
    if validate:
        validate_document(data, strict=True)

    return DesignDocument(
        roots=[deserialize_design_node(node) for node in data.get("roots", [])],
        layers=[LayerInfo(id=l["id"], name=l["name"]) for l in data.get("layers", [])],
        fonts=[FontInfo(id=f["id"], name=f["name"], path=f["path"]) for f in data.get("fonts", [])],
        atlases=[_deserialize_atlas(a) for a in data.get("atlases", [])],
    )


def load_document(path: Path, *, validate: bool = True) -> DesignDocument:
    """
    Load a design document from a JSON file.

    Args:
        path: Path to the .json file
        validate: Whether to validate against the schema first

    Returns:
        DesignDocument instance
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return deserialize_document(data, validate=validate)


def _deserialize_atlas(data: dict[str, Any]) -> AtlasInfo:
    sprites = tuple(
        SpriteInfo(
            name=s["name"],
            width=s["width"],
            height=s["height"],
            component=s.get("component"),
        )
        for s in data.get("sprites", [])
    )
    return AtlasInfo(name=data["name"], path=data["path"], sprites=sprites, id=data.get("id"))


# ─────────────────────────────────────────────────────────────────────────────
# Design Node Serialization
# ─────────────────────────────────────────────────────────────────────────────

def deserialize_design_node(data: dict[str, Any]) -> DesignNode:
    """
    Deserialize one design node (and its subtree) from a dictionary.

    Parent back-references are set for every child, including the
    children held by variant overrides.
    """
    kind = DesignKind(data["type"])
    node = DesignNode(
        id=data["id"],
        name=data["name"],
        kind=kind,
        x=data.get("x", 0),
        y=data.get("y", 0),
        width=data.get("width", 0),
        height=data.get("height", 0),
        rotation=data.get("rotation", 0),
        visible=data.get("visible", True),
        fills=[_deserialize_paint(p) for p in data.get("fills", [])],
        children=[deserialize_design_node(c) for c in data.get("children", [])],
        metadata=DictMetadataStore(_deserialize_metadata(data.get("metadata") or {})),
        main_component=data.get("main_component"),
        variant_properties=dict(data.get("variant_properties") or {}),
        text=_deserialize_text(data) if kind is DesignKind.TEXT else None,
    )
    for group, values in (data.get("variants") or {}).items():
        node.variants[group] = {
            value: _deserialize_override(override or {}, node.text)
            for value, override in values.items()
        }
    return node


def _deserialize_metadata(data: dict[str, Any]) -> Dict[str, Any]:
    """Margin-like values become Vector4 so consumers never see raw dicts."""
    metadata = dict(data)
    for key in ("slice9", "wrapper_padding"):
        if isinstance(metadata.get(key), dict):
            metadata[key] = Vector4.from_dict(metadata[key])
    return metadata


def _deserialize_paint(data: dict[str, Any]) -> Paint:
    color = data.get("color") or {}
    return Paint(
        color=Vector4(color.get("r", 1), color.get("g", 1), color.get("b", 1), color.get("a", 1)),
        opacity=data.get("opacity", 1),
        visible=data.get("visible", True),
        type=data.get("type", "SOLID"),
    )


def _deserialize_text(data: dict[str, Any], base: Optional[TextStyle] = None) -> TextStyle:
    base = base or TextStyle()
    return TextStyle(
        characters=data.get("characters", base.characters),
        font_family=data.get("font_family", base.font_family),
        font_size=data.get("font_size", base.font_size),
        align_horizontal=data.get("text_align_horizontal", base.align_horizontal),
        align_vertical=data.get("text_align_vertical", base.align_vertical),
        line_height=data.get("line_height", base.line_height),
        letter_spacing=data.get("letter_spacing", base.letter_spacing),
        auto_resize=data.get("text_auto_resize", base.auto_resize),
    )


def _deserialize_override(data: dict[str, Any], text: Optional[TextStyle]) -> VariantOverride:
    children: Optional[List[DesignNode]] = None
    if "children" in data:
        children = [deserialize_design_node(c) for c in data["children"]]
    fills = [_deserialize_paint(p) for p in data["fills"]] if "fills" in data else None
    return VariantOverride(
        x=data.get("x"),
        y=data.get("y"),
        width=data.get("width"),
        height=data.get("height"),
        fills=fills,
        children=children,
        text=_deserialize_text(data, text) if text is not None and "characters" in data else None,
    )


def serialize_design_node(node: DesignNode) -> dict[str, Any]:
    """
    Serialize a design node subtree to a dictionary.

    Variant overrides are not written back; the current variant state is.
    """
    data: dict[str, Any] = {
        "id": node.id,
        "name": node.name,
        "type": node.kind.value,
        "x": node.x,
        "y": node.y,
        "width": node.width,
        "height": node.height,
    }
    if node.rotation:
        data["rotation"] = node.rotation
    if not node.visible:
        data["visible"] = False
    if node.fills:
        data["fills"] = [
            {
                "type": p.type,
                "color": {"r": p.color.x, "g": p.color.y, "b": p.color.z, "a": p.color.w},
                "opacity": p.opacity,
                "visible": p.visible,
            }
            for p in node.fills
        ]
    metadata = {
        key: value.to_dict() if isinstance(value, Vector4) else value
        for key, value in node.metadata.as_dict().items()
    }
    if metadata:
        data["metadata"] = metadata
    if node.main_component:
        data["main_component"] = node.main_component
    if node.variant_properties:
        data["variant_properties"] = dict(node.variant_properties)
    if node.text is not None:
        data.update(
            characters=node.text.characters,
            font_family=node.text.font_family,
            font_size=node.text.font_size,
            text_align_horizontal=node.text.align_horizontal,
            text_align_vertical=node.text.align_vertical,
            line_height=node.text.line_height,
            letter_spacing=node.text.letter_spacing,
            text_auto_resize=node.text.auto_resize,
        )
    if node.children:
        data["children"] = [serialize_design_node(c) for c in node.children]
    return data


# ─────────────────────────────────────────────────────────────────────────────
# Scene Node Serialization
# ─────────────────────────────────────────────────────────────────────────────

def serialize_scene_node(node: SceneNode) -> dict[str, Any]:
    """
    Serialize a scene node's engine-visible properties to a dictionary.

    Vectors become {x, y, z, w} dicts. Nested children are not included;
    parent linkage is by id.
    """
    return {
        key: value.to_dict() if isinstance(value, Vector4) else value
        for key, value in node.engine_properties().items()
    }
