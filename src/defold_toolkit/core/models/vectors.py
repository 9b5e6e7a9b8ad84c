"""
Module: vectors

Purpose:
    Provides the Vector4 dataclass used for every positional, size, colour
    and margin value in the scene model, plus the small amount of 2D math
    the geometry module needs (rotated centres, axis shifts, rounding).

Key Functions:
    - vector4(x, y, z, w): Construct a vector (single argument fills all)
    - readable_number(value): Round to 3 decimal places
    - calculate_center(...): Centre of a box rotated around its top-left
    - shift_along_axis(shift, rotation): Rotate a 2D shift

Dependencies:
    - dataclasses (std)
    - math (std)

Used By:
    - core.models.scene
    - exporter.geometry
    - exporter.slice9
    - output.gui_serializer
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Vector4:
    """
    Four-component vector (immutable).

    The engine format stores positions, sizes, colours and slice-9 margins
    as x/y/z/w blocks. Only x and y carry meaning for positions and sizes;
    slice-9 uses all four as (left, top, right, bottom).

    Example:
        >>> Vector4(1, 2) + Vector4(3, 4)
        Vector4(4, 6, 0, 0)
        >>> Vector4(0, 0).is_zero
        True
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 0.0

    # ─────────────────────────────────────────────────────────────────────────
    # Properties
    # ─────────────────────────────────────────────────────────────────────────

    @property
    def is_zero(self) -> bool:
        """True when every component is exactly zero."""
        return self.x == 0 and self.y == 0 and self.z == 0 and self.w == 0

    def components(self) -> tuple[float, float, float, float]:
        return (self.x, self.y, self.z, self.w)

    # ─────────────────────────────────────────────────────────────────────────
    # Arithmetic
    # ─────────────────────────────────────────────────────────────────────────

    def __add__(self, other: Vector4) -> Vector4:
        """Add x and y; z and w are kept from the left operand."""
        return Vector4(self.x + other.x, self.y + other.y, self.z, self.w)

    def __sub__(self, other: Vector4) -> Vector4:
        """Subtract x and y; z and w are kept from the left operand."""
        return Vector4(self.x - other.x, self.y - other.y, self.z, self.w)

    def flipped(self) -> Vector4:
        """Negate x and y."""
        return Vector4(-self.x, -self.y, self.z, self.w)

    def readable(self) -> Vector4:
        """Copy with every component rounded to 3 decimal places."""
        return Vector4(*(readable_number(c) for c in self.components()))

    # ─────────────────────────────────────────────────────────────────────────
    # Serialization
    # ─────────────────────────────────────────────────────────────────────────

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "z": self.z, "w": self.w}

    @classmethod
    def from_dict(cls, data: dict) -> Vector4:
        """
        Deserialize from dictionary.

        Missing components default to 0.

        Args:
            data: Dict with any of x, y, z, w

        Returns:
            Vector4 instance
        """
        return cls(
            x=data.get("x", 0),
            y=data.get("y", 0),
            z=data.get("z", 0),
            w=data.get("w", 0),
        )

    def __repr__(self) -> str:
        """Concise representation for debugging."""
        return f"Vector4({_fmt(self.x)}, {_fmt(self.y)}, {_fmt(self.z)}, {_fmt(self.w)})"


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


ZERO = Vector4()
ONE = Vector4(1, 1, 1, 1)


def vector4(
    x: float,
    y: Optional[float] = None,
    z: Optional[float] = None,
    w: Optional[float] = None,
) -> Vector4:
    """
    Construct a Vector4.

    With a single argument every component takes that value; otherwise
    missing components default to 0.

    Example:
        >>> vector4(1)
        Vector4(1, 1, 1, 1)
        >>> vector4(3, 4)
        Vector4(3, 4, 0, 0)
    """
    if y is None and z is None and w is None:
        return Vector4(x, x, x, x)
    return Vector4(x, y or 0, z or 0, w or 0)


def readable_number(value: float) -> float:
    """
    Round to three decimal places, halves rounding up.

    Example:
        >>> readable_number(1.23456)
        1.235
        >>> readable_number(-0.0004)
        0.0
    """
    rounded = math.floor(value * 1000 + 0.5) / 1000
    # Collapse -0.0 so it never serializes as "-0"
    return rounded + 0.0


def calculate_center(x: float, y: float, width: float, height: float, rotation: float) -> Vector4:
    """
    Centre of a rectangle rotated (degrees) around its top-left corner.

    Coordinates use the design convention: origin top-left, y pointing down.
    """
    radians = math.radians(rotation)
    cos, sin = math.cos(radians), math.sin(radians)
    upper_right_x = x + width * cos
    upper_right_y = y - width * sin
    lower_left_x = x + height * sin
    lower_left_y = y + height * cos
    lower_right_x = upper_right_x + height * sin
    lower_right_y = upper_right_y + height * cos
    center_x = (x + lower_right_x + upper_right_x + lower_left_x) / 4
    center_y = (y + lower_right_y + upper_right_y + lower_left_y) / 4
    return Vector4(center_x, center_y)


def shift_along_axis(shift: Vector4, rotation: float) -> Vector4:
    """Rotate the x/y part of a shift by ``rotation`` degrees."""
    if not rotation:
        return Vector4(shift.x, shift.y)
    radians = math.radians(rotation)
    cos, sin = math.cos(radians), math.sin(radians)
    return Vector4(shift.x * cos - shift.y * sin, shift.x * sin + shift.y * cos)
