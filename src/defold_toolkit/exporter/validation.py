"""
Module: exporter.validation

Purpose:
    Resource checks run after traversal. Failures are reported with the
    offending atlas and the measured vs. allowed value, and never abort
    the traversal of sibling roots.

Key Classes:
    - AtlasIssue: One failed atlas check

Key Functions:
    - check_atlas_size(): Single atlas
    - validate_atlases(): Every atlas, returning issues
    - ensure_atlases_valid(): Raise ValidationError on any issue

Dependencies:
    - core.schemas.validator.ValidationError

Used By:
    - exporter.pipeline
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from defold_toolkit.core.models.document import AtlasInfo
from defold_toolkit.core.schemas.validator import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AtlasIssue:
    """Atlas whose summed sprite area exceeds the configured square."""
    atlas: str
    size: float
    max_size: float

    @property
    def message(self) -> str:
        return f"Atlas size exceeds maximum size: {self.size:g} > {self.max_size:g}"


def check_atlas_size(atlas: AtlasInfo, atlas_max_size: int) -> Optional[AtlasIssue]:
    """
    Compare the atlas' summed sprite area with ``atlas_max_size`` squared.

    Example:
        >>> atlas = AtlasInfo("ui", "/ui.atlas", (SpriteInfo("bg", 64, 64),))
        >>> check_atlas_size(atlas, 32).message
        'Atlas size exceeds maximum size: 4096 > 1024'
    """
    size = atlas.sprite_area
    max_size = atlas_max_size * atlas_max_size
    if size > max_size:
        return AtlasIssue(atlas=atlas.name, size=size, max_size=max_size)
    return None


def validate_atlases(atlases: Iterable[AtlasInfo], atlas_max_size: int) -> List[AtlasIssue]:
    issues = []
    for atlas in atlases:
        issue = check_atlas_size(atlas, atlas_max_size)
        if issue is not None:
            logger.warning(f"{atlas.name}: {issue.message}")
            issues.append(issue)
    return issues


def ensure_atlases_valid(atlases: Iterable[AtlasInfo], atlas_max_size: int) -> None:
    """
    Raises:
        ValidationError: Listing every oversized atlas
    """
    issues = validate_atlases(atlases, atlas_max_size)
    if issues:
        raise ValidationError(
            issues[0].message if len(issues) == 1 else f"{len(issues)} atlases exceed the maximum size",
            path=issues[0].atlas,
            errors=[f"{issue.atlas}: {issue.message}" for issue in issues],
        )
