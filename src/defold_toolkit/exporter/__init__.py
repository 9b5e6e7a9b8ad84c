"""
Module: exporter

Purpose:
    Design tree -> GUI scene export. Walks design roots into scene-node
    records, resolves placement, slice-9 and variants, post-processes the
    records into a flat node list and collects the resource tables. The
    same roots can instead be exported as game collections of sprite and
    label components.

Key Functions:
    - run_export(): Synchronous entry point for a loaded document
    - export_gui_set(): Async export of several roots
    - export_gui(): Async export of one request
    - pack_gui(): Roots -> export requests
    - run_collection_export(): Same roots as game collections

Key Classes:
    - ExportConfig: Project-wide settings
    - PackOptions: Per-invocation switches
    - GuiExportSet: Results, errors and warnings

Dependencies:
    - defold_toolkit.core.models: Design and scene models
    - PIL: Sprite sizes for on-disk atlases

Used By:
    - scripts/export_gui.py
"""

from .config import ExportConfig, PackOptions
from .pipeline import (
    CollectionExportSet,
    ExportError,
    ExportRequest,
    GuiExportSet,
    export_collection,
    export_collection_set,
    export_gui,
    export_gui_set,
    pack_gui,
    run_collection_export,
    run_export,
)
from .postprocess import SceneGraphError
from .resources import AtlasRegistry
from .timing import TimingLog

__all__ = [
    "AtlasRegistry",
    "CollectionExportSet",
    "ExportConfig",
    "ExportError",
    "ExportRequest",
    "GuiExportSet",
    "PackOptions",
    "SceneGraphError",
    "TimingLog",
    "export_collection",
    "export_collection_set",
    "export_gui",
    "export_gui_set",
    "pack_gui",
    "run_collection_export",
    "run_export",
]
