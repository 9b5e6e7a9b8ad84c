#!/usr/bin/env python3
"""Export design roots from a JSON design document as Defold .gui files.

Each root (and every nested template) is written to
``<out>/<path>/<name>.gui``. With ``--collection`` each root is written
as a game collection, ``<out>/<path>/<name>.collection``, instead. Failed roots and oversized atlases are
reported; the remaining files are still written.

Usage:
    python scripts/export_gui.py design.json --out build/gui
    python scripts/export_gui.py design.json --root menu --collapse-templates
    python scripts/export_gui.py design.json --atlas-dir assets/sprites --timing timing.json
    python scripts/export_gui.py level.json --collection --out build/main
"""

import argparse
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

# Add src to path so we can import defold_toolkit
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from defold_toolkit.core.schemas.validator import ValidationError
from defold_toolkit.core.utils.serialization import load_document
from defold_toolkit.exporter import (
    AtlasRegistry,
    ExportConfig,
    ExportError,
    PackOptions,
    SceneGraphError,
    TimingLog,
    run_collection_export,
    run_export,
)
from defold_toolkit.exporter.file_locking import locked_append_jsonl
from defold_toolkit.exporter.timing import timed_phase
from defold_toolkit.output import serialize_collection, serialize_gui

logger = logging.getLogger("export_gui")


def main():
    parser = argparse.ArgumentParser(description="Export design roots as Defold GUI files")
    parser.add_argument("document", type=Path, help="Design document (JSON)")
    parser.add_argument("--out", "-o", type=Path, default=Path("build/gui"), help="Output directory")
    parser.add_argument("--root", "-r", action="append", help="Root name to export (repeatable, default: all)")
    parser.add_argument("--atlas-dir", type=Path, help="Read atlases from sprite folders instead of the document")
    parser.add_argument("--asset-prefix", default="/assets", help="Project path of --atlas-dir (default: /assets)")
    parser.add_argument("--collapse-templates", action="store_true", help="Inline templates instead of referencing them")
    parser.add_argument("--collapse-empty", action="store_true", help="Skip bare containers with at most one child")
    parser.add_argument("--collection", action="store_true", help="Export game collections instead of GUI scenes")
    parser.add_argument("--base-font-size", type=float, default=18.0, help="Font size for text scale 1")
    parser.add_argument("--atlas-max-size", type=int, default=2048, help="Maximum atlas edge in pixels")
    parser.add_argument("--settle-delay", type=float, default=0.0, help="Seconds to wait after switching a variant")
    parser.add_argument("--timing", type=Path, help="Merge phase timings into this JSON file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log per-node decisions")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = ExportConfig(
            base_font_size=args.base_font_size,
            atlas_max_size=args.atlas_max_size,
            settle_delay=args.settle_delay,
        )
    except ValueError as e:
        logger.error(f"Invalid settings: {e}")
        sys.exit(2)

    timing = TimingLog() if args.timing else None
    try:
        with timed_phase(timing, "load"):
            document = load_document(args.document)
    except ValidationError as e:
        logger.error(f"{args.document}: {e}")
        for error in e.errors:
            logger.error(f"  {error}")
        sys.exit(1)

    textures = AtlasRegistry.from_directory(args.atlas_dir, args.asset_prefix) if args.atlas_dir else None
    options = PackOptions(collapse_templates=args.collapse_templates, collapse_empty=args.collapse_empty)

    try:
        if args.collection:
            result = run_collection_export(document, config, roots=args.root, textures=textures, timing=timing)
        else:
            result = run_export(document, config, options, roots=args.root, textures=textures, timing=timing)
    except (ExportError, SceneGraphError) as e:
        logger.error(str(e))
        sys.exit(1)

    manifest = args.out / "exports.jsonl"
    with timed_phase(timing, "write"):
        for data in result.results:
            if args.collection:
                serialized = serialize_collection(data, config)
                entry = {"collection": True, "game_objects": len(data.game_objects)}
            else:
                serialized = serialize_gui(data, config)
                entry = {"template": serialized.template, "nodes": len(data.nodes)}
            target = args.out / serialized.relative_path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(serialized.data + "\n", encoding="utf-8")
            logger.info(f"Wrote {target}")
            locked_append_jsonl(manifest, {
                "name": serialized.name,
                "file": serialized.relative_path,
                **entry,
                "exported_at": datetime.now(timezone.utc).isoformat(),
            })

    for warning in result.warnings:
        logger.warning(warning)
    for name, error in result.errors:
        logger.error(f"{name}: {error}")
    for issue in result.atlas_issues:
        logger.error(f"{issue.atlas}: {issue.message}")

    if timing is not None:
        timing.save(args.timing)
        logger.info(timing.summary())

    logger.info(f"Exported {len(result.results)} files to {args.out}")
    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()
