"""
Unit Tests for Vector4 and the numeric helpers.
"""

import pytest

from defold_toolkit.core.models.vectors import (
    ONE,
    ZERO,
    Vector4,
    calculate_center,
    readable_number,
    shift_along_axis,
    vector4,
)


class TestVector4:
    """Tests for the Vector4 value type."""

    def test_add_when_two_vectors_then_adds_xy_only(self):
        result = Vector4(1, 2, 5, 6) + Vector4(3, 4, 7, 8)

        assert result == Vector4(4, 6, 5, 6)

    def test_sub_when_two_vectors_then_subtracts_xy_only(self):
        assert Vector4(5, 5, 1, 1) - Vector4(2, 3, 9, 9) == Vector4(3, 2, 1, 1)

    def test_flipped_when_called_then_negates_xy(self):
        assert Vector4(1, -2, 3, 4).flipped() == Vector4(-1, 2, 3, 4)

    def test_is_zero_when_any_component_set_then_false(self):
        assert ZERO.is_zero
        assert not Vector4(0, 0, 0, 1).is_zero

    def test_readable_when_long_fraction_then_rounded(self):
        assert Vector4(1.23456, 0.0001, -2.5, 0).readable() == Vector4(1.235, 0, -2.5, 0)

    def test_vector4_is_frozen(self):
        with pytest.raises(AttributeError):
            Vector4().x = 1

    def test_to_dict_from_dict_when_partial_dict_then_defaults_to_zero(self):
        assert Vector4.from_dict({"x": 3}) == Vector4(3, 0, 0, 0)
        assert Vector4(1, 2, 3, 4).to_dict() == {"x": 1, "y": 2, "z": 3, "w": 4}

    def test_repr_when_integral_then_no_decimal_point(self):
        assert repr(Vector4(1, 2.5)) == "Vector4(1, 2.5, 0, 0)"


class TestVectorHelpers:
    """Tests for vector4(), readable_number() and rotation helpers."""

    def test_vector4_when_single_argument_then_broadcasts(self):
        assert vector4(1) == ONE

    def test_vector4_when_two_arguments_then_zero_fills(self):
        assert vector4(3, 4) == Vector4(3, 4, 0, 0)

    def test_readable_number_when_tiny_negative_then_positive_zero(self):
        result = readable_number(-0.0004)

        assert result == 0
        assert str(result) == "0.0"

    def test_readable_number_when_more_than_three_decimals_then_rounded(self):
        assert readable_number(1.0006) == 1.001
        assert readable_number(-1.0004) == -1.0
        assert readable_number(1.5) == 1.5

    def test_calculate_center_when_unrotated_then_box_middle(self):
        assert calculate_center(10, 20, 40, 60, 0) == Vector4(30, 50)

    def test_calculate_center_when_rotated_quarter_then_rotates_around_top_left(self):
        center = calculate_center(0, 0, 10, 20, 90)

        assert center.x == pytest.approx(10)
        assert center.y == pytest.approx(-5)

    def test_shift_along_axis_when_no_rotation_then_unchanged(self):
        assert shift_along_axis(Vector4(3, 4, 9, 9), 0) == Vector4(3, 4)

    def test_shift_along_axis_when_quarter_turn_then_rotated(self):
        shifted = shift_along_axis(Vector4(1, 0), 90)

        assert shifted.x == pytest.approx(0, abs=1e-9)
        assert shifted.y == pytest.approx(1)
