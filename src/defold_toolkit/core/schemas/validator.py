"""
Schema Validation Utilities

Validates design documents before they are turned into models.

Two layers of checks:
- Basic structural checks that produce precise, path-qualified messages
  for the mistakes authors actually make (bad pivot names, malformed
  slice-9 margins, unsupported schema versions).
- Full JSON Schema validation (jsonschema, draft 2020-12) against
  ``design_document.schema.json``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

import jsonschema

from defold_toolkit.core.models.pivot import Pivot


# Schema version constants
DOCUMENT_SCHEMA_VERSION = 1

# Load schemas lazily
_SCHEMAS: dict[str, dict] = {}

_VALID_PIVOTS = {pivot.value for pivot in Pivot}


def _load_schema(name: str) -> dict:
    """Load a schema from the schemas directory."""
    if name not in _SCHEMAS:
        schema_path = Path(__file__).parent / f"{name}.schema.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")
        with open(schema_path, "r", encoding="utf-8") as f:
            _SCHEMAS[name] = json.load(f)
    return _SCHEMAS[name]


class ValidationError(Exception):
    """Raised when data fails validation."""

    def __init__(self, message: str, path: str = "", errors: list[str] | None = None):
        super().__init__(message)
        self.path = path
        self.errors = errors or []


def validate_document(data: dict[str, Any], *, strict: bool = True) -> None:
    """
    Validate a design document.

    Args:
        data: Parsed JSON document
        strict: If True, also run full JSON Schema validation

    Raises:
        ValidationError: If data is invalid

    Example:
        >>> validate_document({"schema_version": 1, "roots": []})
    """
    if not isinstance(data, dict):
        raise ValidationError("Document must be a JSON object")

    missing = [f for f in ("schema_version", "roots") if f not in data]
    if missing:
        raise ValidationError(
            f"Missing required fields: {missing}",
            path="",
            errors=[f"Missing field: {f}" for f in missing]
        )

    version = data.get("schema_version")
    if version != DOCUMENT_SCHEMA_VERSION:
        raise ValidationError(
            f"Unsupported document schema version: {version} (expected {DOCUMENT_SCHEMA_VERSION})",
            path="schema_version"
        )

    roots = data.get("roots")
    if not isinstance(roots, list):
        raise ValidationError("roots must be a list", path="roots")

    for path, node in _iter_nodes(roots, "roots"):
        _validate_metadata(node.get("metadata") or {}, f"{path}.metadata")

    if strict:
        schema = _load_schema("design_document")
        validator = jsonschema.Draft202012Validator(schema)
        errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
        if errors:
            first = errors[0]
            raise ValidationError(
                f"Schema validation failed: {first.message}",
                path=".".join(str(p) for p in first.absolute_path),
                errors=[e.message for e in errors]
            )


def _iter_nodes(nodes: list, path: str) -> Iterator[tuple[str, dict]]:
    """Yield (path, node) for every node dict, including variant overrides."""
    stack = [(f"{path}[{i}]", node) for i, node in enumerate(nodes)]
    stack.reverse()
    while stack:
        node_path, node = stack.pop()
        if not isinstance(node, dict):
            raise ValidationError("node must be an object", path=node_path)
        yield node_path, node
        pending = []
        for i, child in enumerate(node.get("children") or []):
            pending.append((f"{node_path}.children[{i}]", child))
        for group, values in (node.get("variants") or {}).items():
            for value, override in (values or {}).items():
                for i, child in enumerate((override or {}).get("children") or []):
                    pending.append((f"{node_path}.variants.{group}.{value}.children[{i}]", child))
        stack.extend(reversed(pending))


def _validate_metadata(metadata: dict[str, Any], path: str) -> None:
    """Validate the metadata keys whose values the exporter interprets."""
    if not isinstance(metadata, dict):
        raise ValidationError("metadata must be an object", path=path)

    pivot = metadata.get("pivot")
    if pivot and str(pivot).upper() not in _VALID_PIVOTS and f"PIVOT_{str(pivot).upper()}" not in _VALID_PIVOTS:
        raise ValidationError(
            f"Invalid pivot: {pivot!r}",
            path=f"{path}.pivot"
        )

    for key in ("slice9", "wrapper_padding"):
        if key in metadata:
            _validate_margins(metadata[key], f"{path}.{key}")

    variants = metadata.get("export_variants")
    if variants is not None and not isinstance(variants, str):
        raise ValidationError(
            f"export_variants must be a string like 'Group=Value,Group=Value': {variants!r}",
            path=f"{path}.export_variants"
        )


def _validate_margins(value: Any, path: str) -> None:
    """Margins are an {x, y, z, w} object of non-negative numbers."""
    if not isinstance(value, dict):
        raise ValidationError("margins must be an object with x, y, z, w", path=path)
    for component in ("x", "y", "z", "w"):
        number = value.get(component, 0)
        if isinstance(number, bool) or not isinstance(number, (int, float)) or number < 0:
            raise ValidationError(
                f"Invalid {component}: {number!r} (must be a non-negative number)",
                path=f"{path}.{component}"
            )
