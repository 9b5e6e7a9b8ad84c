"""
Core Models Package

Data models shared by the exporter and the serializer.

- Vector4 and Pivot are immutable value types.
- DesignNode is the read-mostly input tree.
- SceneNode records are the mutable output built during traversal and
  reshaped by post-processing.
- GameObject records are the collection-export counterpart of SceneNode.
"""

from .vectors import Vector4, vector4
from .pivot import Pivot
from .design import DesignKind, DesignNode, DictMetadataStore, MetadataStore, Paint, TextStyle, VariantOverride
from .scene import BoxNode, NodeType, SceneNode, TemplateNode, TextNode
from .gui import GuiData, GuiSettings
from .collection import CollectionData, CollectionSettings, GameObject, GameObjectType
from .document import AtlasInfo, DesignDocument, FontInfo, LayerInfo, SpriteInfo

__all__ = [
    "Vector4",
    "vector4",
    "Pivot",
    "DesignKind",
    "DesignNode",
    "DictMetadataStore",
    "MetadataStore",
    "Paint",
    "TextStyle",
    "VariantOverride",
    "BoxNode",
    "NodeType",
    "SceneNode",
    "TemplateNode",
    "TextNode",
    "GuiData",
    "GuiSettings",
    "CollectionData",
    "CollectionSettings",
    "GameObject",
    "GameObjectType",
    "AtlasInfo",
    "DesignDocument",
    "FontInfo",
    "LayerInfo",
    "SpriteInfo",
]
