"""
Module: pivot

Purpose:
    Provides the Pivot enum - the nine anchor positions of a scene node box -
    and compass predicates used by the geometry module.

Key Functions:
    - Pivot.is_north / is_south / is_east / is_west
    - Pivot.parse(value): Lenient conversion from metadata strings
    - text_pivot(horizontal, vertical): Pivot implied by text alignment

Dependencies:
    - enum (std)

Used By:
    - core.models.scene
    - exporter.geometry
    - exporter.conversion
    - exporter.collection
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class Pivot(str, Enum):
    """Box anchor position, named after the engine's pivot constants."""
    CENTER = "PIVOT_CENTER"
    N = "PIVOT_N"
    NE = "PIVOT_NE"
    E = "PIVOT_E"
    SE = "PIVOT_SE"
    S = "PIVOT_S"
    SW = "PIVOT_SW"
    W = "PIVOT_W"
    NW = "PIVOT_NW"

    def __str__(self) -> str:
        return self.value

    @property
    def is_north(self) -> bool:
        return self in (Pivot.N, Pivot.NE, Pivot.NW)

    @property
    def is_south(self) -> bool:
        return self in (Pivot.S, Pivot.SE, Pivot.SW)

    @property
    def is_east(self) -> bool:
        return self in (Pivot.NE, Pivot.E, Pivot.SE)

    @property
    def is_west(self) -> bool:
        return self in (Pivot.NW, Pivot.W, Pivot.SW)

    @classmethod
    def parse(cls, value: Optional[str]) -> Pivot:
        """
        Convert a metadata value to a Pivot.

        Accepts both "PIVOT_NE" and "NE". Empty or unknown values fall
        back to CENTER.
        """
        if not value:
            return cls.CENTER
        name = str(value).upper()
        if not name.startswith("PIVOT_"):
            name = f"PIVOT_{name}"
        try:
            return cls(name)
        except ValueError:
            return cls.CENTER


_TEXT_PIVOTS = {
    ("TOP", "LEFT"): Pivot.NW,
    ("TOP", "CENTER"): Pivot.N,
    ("TOP", "RIGHT"): Pivot.NE,
    ("CENTER", "RIGHT"): Pivot.E,
    ("BOTTOM", "RIGHT"): Pivot.SE,
    ("BOTTOM", "CENTER"): Pivot.S,
    ("BOTTOM", "LEFT"): Pivot.SW,
    ("CENTER", "LEFT"): Pivot.W,
}


def text_pivot(horizontal: str, vertical: str) -> Pivot:
    """
    Pivot implied by a text box's alignment.

    Example:
        >>> text_pivot("LEFT", "TOP")
        <Pivot.NW: 'PIVOT_NW'>
        >>> text_pivot("JUSTIFIED", "CENTER")
        <Pivot.CENTER: 'PIVOT_CENTER'>
    """
    return _TEXT_PIVOTS.get((vertical, horizontal), Pivot.CENTER)
