"""
Unit Tests for Pivot parsing and text pivot inference.
"""

import pytest

from defold_toolkit.core.models.pivot import Pivot, text_pivot


class TestPivot:
    """Tests for the Pivot enum."""

    @pytest.mark.parametrize("value, expected", [
        ("PIVOT_NE", Pivot.NE),
        ("ne", Pivot.NE),
        ("SW", Pivot.SW),
        ("", Pivot.CENTER),
        (None, Pivot.CENTER),
        ("diagonal", Pivot.CENTER),
    ])
    def test_parse(self, value, expected):
        assert Pivot.parse(value) is expected

    def test_compass_predicates_when_corner_then_two_axes(self):
        assert Pivot.NE.is_north and Pivot.NE.is_east
        assert not Pivot.NE.is_south and not Pivot.NE.is_west

    def test_compass_predicates_when_center_then_none(self):
        center = Pivot.CENTER

        assert not (center.is_north or center.is_south or center.is_east or center.is_west)

    def test_str_when_called_then_engine_constant(self):
        assert str(Pivot.SE) == "PIVOT_SE"


class TestTextPivot:
    """Tests for text_pivot()."""

    @pytest.mark.parametrize("horizontal, vertical, expected", [
        ("LEFT", "TOP", Pivot.NW),
        ("CENTER", "TOP", Pivot.N),
        ("RIGHT", "TOP", Pivot.NE),
        ("RIGHT", "CENTER", Pivot.E),
        ("RIGHT", "BOTTOM", Pivot.SE),
        ("CENTER", "BOTTOM", Pivot.S),
        ("LEFT", "BOTTOM", Pivot.SW),
        ("LEFT", "CENTER", Pivot.W),
        ("CENTER", "CENTER", Pivot.CENTER),
        ("JUSTIFIED", "TOP", Pivot.CENTER),
    ])
    def test_text_pivot(self, horizontal, vertical, expected):
        assert text_pivot(horizontal, vertical) is expected
