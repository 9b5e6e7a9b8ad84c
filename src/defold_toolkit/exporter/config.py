"""
Module: exporter.config

Purpose:
    Configuration dataclasses for the export pipeline. Immutable
    configuration with validation on construction.

Key Classes:
    - ExportConfig: Project-wide export settings
    - PackOptions: Per-invocation packing switches

Dependencies:
    - dataclasses (std)

Used By:
    - exporter.pipeline: Main export entry points
    - exporter.walker / conversion / variants: Read settings
    - output.gui_serializer: Quoting and default omission
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet

from defold_toolkit.core.models.vectors import Vector4


# Keys whose string values are engine constants and are written unquoted
DEFAULT_CONST_KEYS: FrozenSet[str] = frozenset({
    "type",
    "blend_mode",
    "xanchor",
    "yanchor",
    "pivot",
    "adjust_mode",
    "size_mode",
    "clipping_mode",
    "adjust_reference",
})


@dataclass(frozen=True)
class ExportConfig:
    """
    Configuration for exporting GUI scenes (immutable).

    Attributes:
        base_font_size: Font size that maps to text scale 1
        autoskip_prefix: Layers whose name starts with this are skipped
        screen_size: Target screen, used to centre ``screen`` roots
        atlas_max_size: Maximum atlas edge in pixels (area check)
        settle_delay: Seconds to wait after switching a variant
        omit_default_values: Drop properties equal to engine defaults
        omit_zero_components: Drop zero x/y/z/w lines from vector blocks
        const_keys: Keys written without quotes
        default_path: Output directory when a root sets none
        default_template_path: Template directory when a template sets none
        default_script_path: Script directory when a root sets none

    Example:
        >>> config = ExportConfig(base_font_size=24, settle_delay=0)
        >>> config.autoskip_prefix
        '#'
    """

    # Text
    base_font_size: float = 18.0

    # Traversal
    autoskip_prefix: str = "#"
    screen_size: Vector4 = Vector4(960, 640)
    settle_delay: float = 0.1

    # Validation
    atlas_max_size: int = 2048

    # Output
    omit_default_values: bool = True
    omit_zero_components: bool = False
    const_keys: FrozenSet[str] = field(default_factory=lambda: DEFAULT_CONST_KEYS)
    default_path: str = "/"
    default_template_path: str = "/"
    default_script_path: str = "/"

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if self.base_font_size <= 0:
            raise ValueError(f"base_font_size must be positive: {self.base_font_size}")
        if self.settle_delay < 0:
            raise ValueError(f"settle_delay must be non-negative: {self.settle_delay}")
        if self.atlas_max_size <= 0:
            raise ValueError(f"atlas_max_size must be positive: {self.atlas_max_size}")
        if self.screen_size.x <= 0 or self.screen_size.y <= 0:
            raise ValueError(f"screen_size must be positive: {self.screen_size!r}")


@dataclass(frozen=True)
class PackOptions:
    """
    Switches for one export invocation (immutable).

    Attributes:
        collapse_templates: Inline templates instead of referencing them
        collapse_empty: Skip bare containers with at most one child
    """
    collapse_templates: bool = False
    collapse_empty: bool = False
