"""
Module: exporter.pipeline

Purpose:
    Main orchestrator for GUI export. Turns the selected design roots into
    export requests (one per root plus one per nested template), runs the
    walker and post-processor for each, fills the resource tables and
    checks atlas sizes.

    Roots are exported one after another; a failing root is recorded and
    the remaining roots still export.

Key Functions:
    - pack_gui(): Roots -> export requests
    - preprocess_roots(): Slice-9 restore before traversal
    - export_gui(): One request -> GuiData
    - export_gui_set(): All roots, partial success
    - run_export(): Synchronous entry point for a loaded document
    - export_collection() / export_collection_set(): Game collection export
    - run_collection_export(): Synchronous collection entry point

Key Classes:
    - ExportRequest: One root to export and how
    - GuiExportSet: Results, per-root errors and warnings
    - CollectionExportSet: Same, for game collections
    - ExportError: Per-root failure

Dependencies:
    - exporter.walker / postprocess / validation / resources
    - exporter.collection: Game object walk and post-processing
    - exporter.timing: Optional phase timing

Used By:
    - scripts/export_gui.py
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from defold_toolkit.core.models.collection import CollectionData, CollectionSettings
from defold_toolkit.core.models.design import DesignNode
from defold_toolkit.core.models.document import DesignDocument
from defold_toolkit.core.models.gui import GuiData, GuiSettings

from .collection import CollectionContext, extract_collection_textures, postprocess_game_objects, walk_collection
from .config import ExportConfig, PackOptions
from .context import ExportContext, ExportResources
from .postprocess import SceneGraphError, postprocess_nodes
from .resources import TextureResolver, extract_font_data, extract_layer_data, extract_texture_data
from .slice9 import restore_slice9_layer_data
from .timing import TimingLog, timed_phase
from .validation import AtlasIssue, validate_atlases
from .walker import WalkState, walk

logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Export of one root failed."""

    def __init__(self, message: str, root: Optional[str] = None):
        super().__init__(message)
        self.root = root


@dataclass(frozen=True)
class ExportRequest:
    """
    One root to export.

    Attributes:
        root: Design root
        as_template: Export as a standalone template file
        options: Pack switches
    """
    root: DesignNode
    as_template: bool = False
    options: PackOptions = field(default_factory=PackOptions)

    @property
    def name(self) -> str:
        if self.as_template:
            return self.root.metadata.get("template_name") or self.root.name
        return self.root.name


@dataclass
class GuiExportSet:
    """
    Outcome of exporting several roots.

    Attributes:
        results: Successfully exported files, in request order
        errors: (request name, error) per failed request
        warnings: Locally recovered problems
        atlas_issues: Atlases over the configured size
    """
    results: List[GuiData] = field(default_factory=list)
    errors: List[Tuple[str, Exception]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    atlas_issues: List[AtlasIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.atlas_issues

    def find(self, name: str) -> Optional[GuiData]:
        for data in self.results:
            if data.name == name:
                return data
        return None


@dataclass
class CollectionExportSet:
    """Outcome of exporting several roots as game collections."""
    results: List[CollectionData] = field(default_factory=list)
    errors: List[Tuple[str, Exception]] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    atlas_issues: List[AtlasIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors and not self.atlas_issues

    def find(self, name: str) -> Optional[CollectionData]:
        for data in self.results:
            if data.name == name:
                return data
        return None


# ─────────────────────────────────────────────────────────────────────────────
# Packing
# ─────────────────────────────────────────────────────────────────────────────

def _is_template_candidate(node: DesignNode) -> bool:
    meta = node.metadata
    return node.is_box and node.visible and bool(meta.get("template")) and not meta.get("exclude")


def _find_nested_templates(root: DesignNode) -> List[DesignNode]:
    """Template layers below ``root`` (not ``root`` itself), pre-order."""
    found = []
    stack = list(reversed(root.children))
    while stack:
        node = stack.pop()
        if _is_template_candidate(node):
            found.append(node)
        stack.extend(reversed(node.children))
    return found


def pack_gui(roots: Iterable[DesignNode], options: Optional[PackOptions] = None) -> List[ExportRequest]:
    """
    Build the export requests for a selection of roots.

    Each root gives one request (as a template when it is marked as one).
    Unless templates are collapsed, every template nested anywhere below a
    root gives its own template request. A layer is requested once.

    Example:
        >>> [(r.name, r.as_template) for r in pack_gui([menu])]
        [('menu', False), ('button', True)]
    """
    options = options or PackOptions()
    roots = list(roots)
    requests: List[ExportRequest] = []
    seen = set()
    for root in roots:
        as_template = not options.collapse_templates and bool(root.metadata.get("template"))
        requests.append(ExportRequest(root, as_template, options))
        seen.add(id(root))
    if options.collapse_templates:
        return requests
    for root in roots:
        for template in _find_nested_templates(root):
            if id(template) in seen:
                continue
            seen.add(id(template))
            requests.append(ExportRequest(template, True, options))
    logger.info(f"Packed {len(roots)} roots into {len(requests)} export requests")
    return requests


def preprocess_roots(roots: Iterable[DesignNode], warnings: Optional[List[str]] = None) -> int:
    """Write inferred slice-9 margins back onto every original layer."""
    return sum(restore_slice9_layer_data(root, warnings) for root in roots)


# ─────────────────────────────────────────────────────────────────────────────
# Single root
# ─────────────────────────────────────────────────────────────────────────────

def build_gui_settings(root: DesignNode, config: ExportConfig) -> GuiSettings:
    """Header for a root: a script reference when the root asks for one."""
    meta = root.metadata
    if not meta.get("script"):
        return GuiSettings()
    script_path = (meta.get("script_path") or config.default_script_path).rstrip("/")
    script_name = meta.get("script_name") or root.name
    return GuiSettings(script=f"{script_path}/{script_name}.gui_script")


def resolve_file_path(request: ExportRequest, config: ExportConfig) -> str:
    meta = request.root.metadata
    if request.as_template:
        return meta.get("template_path") or config.default_template_path
    return meta.get("path") or config.default_path


async def export_gui(
    request: ExportRequest,
    resources: ExportResources,
    *,
    state: Optional[WalkState] = None,
    timing: Optional[TimingLog] = None,
) -> GuiData:
    """
    Export one request.

    Args:
        request: Root and mode
        resources: Shared lookups and settings
        state: Traversal bookkeeping (warnings are collected here)
        timing: Optional phase timing log

    Returns:
        GuiData with the flat node list and resource tables

    Raises:
        ExportError: If the root cannot be converted
        SceneGraphError: If post-processing finds a dangling parent
    """
    root = request.root
    name = request.name
    state = state if state is not None else WalkState()
    context = ExportContext.for_root(root, request.as_template, request.options)
    logger.info(f"Exporting '{name}'{' as template' if request.as_template else ''}")

    try:
        with timed_phase(timing, "walk", root=name):
            records = await walk(root, context, resources, state)
        with timed_phase(timing, "postprocess", root=name):
            nodes = postprocess_nodes(records)
    except SceneGraphError:
        raise
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise ExportError(f"Failed to export '{name}': {e}", root=name) from e

    with timed_phase(timing, "resources", root=name):
        textures = extract_texture_data(nodes, resources.textures)
        fonts = extract_font_data(nodes, resources.fonts)
        layers = extract_layer_data(resources.layers)

    logger.info(f"Exported '{name}': {len(nodes)} nodes, {len(textures)} atlases, {len(fonts)} fonts")
    return GuiData(
        name=name,
        gui=build_gui_settings(root, resources.config),
        nodes=nodes,
        textures=textures,
        fonts=fonts,
        layers=layers,
        file_path=resolve_file_path(request, resources.config),
        as_template=request.as_template,
        size=root.size.readable(),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Batch
# ─────────────────────────────────────────────────────────────────────────────

def _used_atlases(results: Iterable[GuiData], textures: TextureResolver):
    names = []
    for data in results:
        for atlas_name in data.textures:
            if atlas_name not in names:
                names.append(atlas_name)
    return [atlas for atlas in (textures.find_atlas(n) for n in names) if atlas is not None]


async def export_gui_set(
    roots: Iterable[DesignNode],
    resources: ExportResources,
    options: Optional[PackOptions] = None,
    *,
    timing: Optional[TimingLog] = None,
) -> GuiExportSet:
    """
    Export every root (and its nested templates).

    A root that fails is reported in ``errors`` and the rest still export.
    Oversized atlases are reported in ``atlas_issues``.

    Raises:
        SceneGraphError: Post-processing consistency failure
    """
    roots = list(roots)
    result = GuiExportSet()
    with timed_phase(timing, "preprocess"):
        restored = preprocess_roots(roots, result.warnings)
    if restored:
        logger.info(f"Restored slice-9 data on {restored} layers")

    for request in pack_gui(roots, options):
        state = WalkState()
        try:
            data = await export_gui(request, resources, state=state, timing=timing)
        except ExportError as e:
            logger.error(str(e))
            result.errors.append((request.name, e))
            continue
        finally:
            result.warnings.extend(state.warnings)
        result.results.append(data)

    with timed_phase(timing, "validation"):
        atlases = _used_atlases(result.results, resources.textures)
        result.atlas_issues.extend(validate_atlases(atlases, resources.config.atlas_max_size))

    logger.info(
        f"Exported {len(result.results)} files, {len(result.errors)} errors, "
        f"{len(result.atlas_issues)} atlas issues"
    )
    return result


def run_export(
    document: DesignDocument,
    config: Optional[ExportConfig] = None,
    options: Optional[PackOptions] = None,
    *,
    roots: Optional[Iterable[str]] = None,
    textures: Optional[TextureResolver] = None,
    timing: Optional[TimingLog] = None,
) -> GuiExportSet:
    """
    Export a loaded document from synchronous code.

    Args:
        document: Loaded design document
        config: Export settings
        options: Pack switches
        roots: Root names to export (all roots if None)
        textures: Texture lookup to use instead of the document atlases
        timing: Optional phase timing log

    Raises:
        ExportError: If a requested root name does not exist

    Example:
        >>> result = run_export(load_document(Path("ui.json")), ExportConfig(settle_delay=0))
        >>> [data.file_name for data in result.results]
        ['menu.gui', 'button.gui']
    """
    resources = ExportResources.from_document(document, config, textures)
    selected = select_roots(document, roots)
    return asyncio.run(export_gui_set(selected, resources, options, timing=timing))


def select_roots(document: DesignDocument, names: Optional[Iterable[str]] = None) -> List[DesignNode]:
    """
    Roots of a document by name, or all of them.

    Raises:
        ExportError: If a requested root name does not exist
    """
    if names is None:
        return list(document.roots)
    selected = []
    for name in names:
        root = document.find_root(name)
        if root is None:
            raise ExportError(f"No root named '{name}'", root=name)
        selected.append(root)
    return selected


# ─────────────────────────────────────────────────────────────────────────────
# Game collections
# ─────────────────────────────────────────────────────────────────────────────

def build_collection_settings(root: DesignNode) -> CollectionSettings:
    return CollectionSettings(name=root.metadata.get("collection_name") or "default")


async def export_collection(
    root: DesignNode,
    resources: ExportResources,
    *,
    timing: Optional[TimingLog] = None,
) -> CollectionData:
    """
    Export one root as a game collection.

    Args:
        root: Design root
        resources: Shared lookups and settings
        timing: Optional phase timing log

    Returns:
        CollectionData with the flat game object list and atlas table

    Raises:
        ExportError: If the root cannot be converted
    """
    name = root.name
    logger.info(f"Exporting '{name}' as collection")
    try:
        with timed_phase(timing, "walk", root=name):
            records = await walk_collection(root, CollectionContext.for_root(root), resources)
        with timed_phase(timing, "postprocess", root=name):
            game_objects = postprocess_game_objects(records)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise ExportError(f"Failed to export collection '{name}': {e}", root=name) from e

    textures = extract_collection_textures(game_objects)
    logger.info(f"Exported collection '{name}': {len(game_objects)} game objects, {len(textures)} atlases")
    return CollectionData(
        name=name,
        collection=build_collection_settings(root),
        game_objects=game_objects,
        textures=textures,
        file_path=root.metadata.get("path") or resources.config.default_path,
    )


async def export_collection_set(
    roots: Iterable[DesignNode],
    resources: ExportResources,
    *,
    timing: Optional[TimingLog] = None,
) -> CollectionExportSet:
    """
    Export every root as a game collection.

    A root that fails is reported in ``errors`` and the rest still export.
    """
    roots = list(roots)
    result = CollectionExportSet()
    with timed_phase(timing, "preprocess"):
        restored = preprocess_roots(roots, result.warnings)
    if restored:
        logger.info(f"Restored slice-9 data on {restored} layers")

    for root in roots:
        try:
            data = await export_collection(root, resources, timing=timing)
        except ExportError as e:
            logger.error(str(e))
            result.errors.append((root.name, e))
            continue
        result.results.append(data)

    with timed_phase(timing, "validation"):
        atlases = _used_atlases(result.results, resources.textures)
        result.atlas_issues.extend(validate_atlases(atlases, resources.config.atlas_max_size))

    logger.info(f"Exported {len(result.results)} collections, {len(result.errors)} errors")
    return result


def run_collection_export(
    document: DesignDocument,
    config: Optional[ExportConfig] = None,
    *,
    roots: Optional[Iterable[str]] = None,
    textures: Optional[TextureResolver] = None,
    timing: Optional[TimingLog] = None,
) -> CollectionExportSet:
    """
    Export a loaded document as game collections from synchronous code.

    Raises:
        ExportError: If a requested root name does not exist

    Example:
        >>> result = run_collection_export(load_document(Path("level.json")))
        >>> [data.file_name for data in result.results]
        ['level.collection']
    """
    resources = ExportResources.from_document(document, config, textures)
    selected = select_roots(document, roots)
    return asyncio.run(export_collection_set(selected, resources, timing=timing))
