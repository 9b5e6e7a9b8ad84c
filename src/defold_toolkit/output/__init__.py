"""
Module: output

Purpose:
    Text output for exported GUI scenes and game collections.

Key Functions:
    - serialize_gui(): GuiData -> .gui file text
    - serialize_collection(): CollectionData -> .collection file text

Dependencies:
    - defold_toolkit.core.models: GuiData, CollectionData and their records

Used By:
    - scripts/export_gui.py
"""

from .collection_serializer import SerializedCollection, serialize_collection
from .gui_serializer import SerializedGui, serialize_gui

__all__ = [
    "SerializedCollection",
    "SerializedGui",
    "serialize_collection",
    "serialize_gui",
]
