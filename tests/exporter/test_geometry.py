"""
Tests for exporter.geometry

Test Coverage:
- Centred placement and the y flip between design and engine space
- Parent pivot re-anchoring and own pivot shift
- Root placement (no parent frame, screen roots, template references)
- Text scale and size
"""

import pytest

from conftest import make_node
from defold_toolkit.core.models import DesignKind, Pivot, Vector4
from defold_toolkit.core.models.vectors import ZERO
from defold_toolkit.exporter.geometry import (
    calculate_centered_position,
    calculate_pivot_shift,
    reanchor_to_parent_pivot,
    resolve_position,
    resolve_rotation,
    text_box_size,
    text_scale,
)


PARENT = Vector4(100, 100)


def _child_position(node, pivot=Pivot.CENTER, parent_pivot=Pivot.CENTER, parent_size=PARENT, shift=ZERO):
    return resolve_position(node, pivot, parent_pivot, node.size, parent_size, shift, False)


class TestCenteredPosition:
    """Tests for the centre-relative placement."""

    @pytest.mark.parametrize("parent_size", [Vector4(100, 100), Vector4(300, 80), Vector4(17, 1001)])
    def test_resolve_position_when_child_at_parent_centre_then_origin(self, parent_size):
        node = make_node("child", x=parent_size.x / 2 - 10, y=parent_size.y / 2 - 5, width=20, height=10)

        assert _child_position(node, parent_size=parent_size) == Vector4(0, 0)

    def test_calculate_centered_position_when_top_left_then_y_up(self):
        node = make_node("child", x=0, y=0, width=20, height=20)

        assert calculate_centered_position(node, node.size, PARENT) == Vector4(-40, 40)

    def test_resolve_position_when_parent_shift_then_added_with_y_flipped(self):
        node = make_node("child", x=40, y=40, width=20, height=20)

        assert _child_position(node, shift=Vector4(5, 7)) == Vector4(5, -7)


class TestPivots:
    """Tests for parent re-anchoring and own pivot shifts."""

    @pytest.mark.parametrize("parent_pivot, expected", [
        (Pivot.N, Vector4(0, -50)),
        (Pivot.S, Vector4(0, 50)),
        (Pivot.E, Vector4(-50, 0)),
        (Pivot.W, Vector4(50, 0)),
        (Pivot.NW, Vector4(50, -50)),
        (Pivot.CENTER, Vector4(0, 0)),
    ])
    def test_reanchor_to_parent_pivot(self, parent_pivot, expected):
        assert reanchor_to_parent_pivot(ZERO, parent_pivot, PARENT) == expected

    @pytest.mark.parametrize("pivot, expected", [
        (Pivot.NE, Vector4(10, 5)),
        (Pivot.SW, Vector4(-10, -5)),
        (Pivot.N, Vector4(0, 5)),
        (Pivot.CENTER, Vector4(0, 0)),
    ])
    def test_calculate_pivot_shift(self, pivot, expected):
        assert calculate_pivot_shift(pivot, Vector4(20, 10), 0) == expected

    def test_calculate_pivot_shift_when_rotated_then_follows_box(self):
        shift = calculate_pivot_shift(Pivot.E, Vector4(20, 10), 90)

        assert shift.x == pytest.approx(0, abs=1e-9)
        assert shift.y == pytest.approx(10)

    def test_resolve_position_when_pivot_mirrored_then_position_mirrored(self):
        north_west = make_node("nw", x=10, y=10, width=20, height=20)
        south_east = make_node("se", x=70, y=70, width=20, height=20)

        nw = _child_position(north_west, pivot=Pivot.NW)
        se = _child_position(south_east, pivot=Pivot.SE)

        assert nw == Vector4(-40, 40)
        assert se == Vector4(40, -40)

    def test_resolve_position_when_parent_pivot_top_left_then_relative_to_corner(self):
        node = make_node("child", x=10, y=10, width=20, height=20)

        position = _child_position(node, pivot=Pivot.NW, parent_pivot=Pivot.NW)

        assert position == Vector4(10, -10)


class TestRootPosition:
    """Tests for root placement."""

    def test_resolve_position_when_root_without_frame_then_origin(self):
        root = make_node("root", x=300, y=200, width=100, height=50)

        position = resolve_position(root, Pivot.CENTER, Pivot.CENTER, root.size, ZERO, Vector4(-300, -200), True)

        assert position == Vector4(0, 0)

    def test_resolve_position_when_root_with_pivot_then_shifted_by_own_pivot(self):
        root = make_node("root", width=100, height=50)

        position = resolve_position(root, Pivot.NE, Pivot.CENTER, root.size, ZERO, ZERO, True)

        assert position == Vector4(50, 25)

    def test_resolve_position_when_screen_root_then_centred_on_screen(self):
        root = make_node("root", width=100, height=50)

        position = resolve_position(
            root, Pivot.CENTER, Pivot.CENTER, root.size, ZERO, ZERO, True, screen_size=Vector4(960, 640),
        )

        assert position == Vector4(480, 320)

    def test_resolve_position_when_template_reference_then_pivot_ignored(self):
        node = make_node("child", x=40, y=40, width=20, height=20)

        position = resolve_position(
            node, Pivot.NE, Pivot.CENTER, node.size, PARENT, ZERO, False, template_reference=True,
        )

        assert position == Vector4(0, 0)


class TestRotationAndScale:
    """Tests for rotation, text scale and text size."""

    def test_resolve_rotation_when_rotated_then_z_channel(self):
        node = make_node("n", rotation=45.12345)

        assert resolve_rotation(node) == Vector4(0, 0, 45.123, 0)

    def test_text_scale_when_double_base_then_two(self):
        assert text_scale(36, 18) == Vector4(2, 2, 2, 1)

    def test_text_box_size_when_scaled_then_divided_and_rounded_up(self):
        assert text_box_size(Vector4(101, 21), text_scale(36, 18)) == Vector4(51, 11)

    def test_text_box_size_when_unit_scale_then_unchanged(self):
        assert text_box_size(Vector4(80, 20), text_scale(18, 18)) == Vector4(80, 20)

    def test_resolve_position_when_text_layer_then_placed_like_box(self):
        node = make_node("t", DesignKind.TEXT, x=40, y=45, width=20, height=10)

        assert _child_position(node) == Vector4(0, 0)
