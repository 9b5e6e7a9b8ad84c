"""
Tests for output.gui_serializer

Test Coverage:
- Number, string and vector formatting
- Property order and default omission
- Text and template nodes
- Header layout and resource tables
- SerializedGui paths and template bookkeeping
"""

import pytest

from defold_toolkit.core.models import BoxNode, GuiData, GuiSettings, Pivot, TemplateNode, TextNode, Vector4
from defold_toolkit.core.models.scene import WHITE
from defold_toolkit.exporter.config import ExportConfig
from defold_toolkit.output.gui_serializer import (
    SerializedGui,
    format_number,
    format_property,
    format_vector,
    ordered_properties,
    serialize_gui,
    serialize_node,
)


@pytest.fixture
def config():
    return ExportConfig(settle_delay=0)


class TestValues:
    """Tests for scalar and vector formatting."""

    @pytest.mark.parametrize("value, expected", [
        (1.0, "1"),
        (0.12345, "0.123"),
        (-0.0001, "0"),
        (2.5, "2.5"),
        (512, "512"),
    ])
    def test_format_number(self, value, expected):
        assert format_number(value) == expected

    def test_format_property_when_const_key_then_unquoted(self, config):
        assert format_property("type", "TYPE_BOX", config) == "type: TYPE_BOX"
        assert format_property("pivot", "PIVOT_N", config) == "pivot: PIVOT_N"

    def test_format_property_when_plain_string_then_quoted(self, config):
        assert format_property("id", "TYPE_BOX", config) == 'id: "TYPE_BOX"'

    def test_format_property_when_special_characters_then_escaped(self, config):
        assert format_property("text", 'Say "hi"\nnow', config) == 'text: "Say \\"hi\\"\\nnow"'

    def test_format_property_when_bool_then_lowercase(self, config):
        assert format_property("visible", False, config) == "visible: false"
        assert format_property("line_break", True, config) == "line_break: true"

    def test_format_property_when_none_then_nothing(self, config):
        assert format_property("parent", None, config) is None

    def test_format_vector_when_full_then_four_lines(self):
        assert format_vector("position", Vector4(1, 2.5)) == (
            "position {\n"
            "  x: 1\n"
            "  y: 2.5\n"
            "  z: 0\n"
            "  w: 0\n"
            "}"
        )

    def test_format_vector_when_omitting_zeros_then_only_set_components(self):
        assert format_vector("position", Vector4(1, 0), omit_zero_components=True) == "position {\n  x: 1\n}"


class TestNodes:
    """Tests for serialize_node()."""

    def test_serialize_node_when_defaults_then_omitted(self, config):
        node = BoxNode(id="bg", parent="root", color=WHITE)

        assert serialize_node(node, config) == (
            "nodes {\n"
            "  color {\n"
            "    x: 1\n"
            "    y: 1\n"
            "    z: 1\n"
            "    w: 0\n"
            "  }\n"
            "  type: TYPE_BOX\n"
            '  id: "bg"\n'
            '  parent: "root"\n'
            "}\n"
        )

    def test_serialize_node_when_not_omitting_then_every_property(self):
        config = ExportConfig(settle_delay=0, omit_default_values=False)

        text = serialize_node(BoxNode(id="bg"), config)

        assert 'layer: ""' in text
        assert "visible: true" in text
        assert "pivot: PIVOT_CENTER" in text
        assert "size_mode: SIZE_MODE_MANUAL" in text

    def test_serialize_node_when_set_then_written_in_property_order(self, config):
        node = BoxNode(
            id="play",
            parent="menu",
            position=Vector4(10, -20),
            size=Vector4(120, 40),
            texture_ref="ui/button",
            pivot=Pivot.NW,
            layer="top",
            visible=False,
            size_mode="SIZE_MODE_AUTO",
        )

        keys = [line.strip().split(" ")[0].rstrip(":") for line in serialize_node(node, config).splitlines()
                if line.startswith("  ") and not line.startswith("    ") and line.strip() != "}"]

        assert keys == ["position", "size", "color", "type", "texture", "id", "parent",
                        "pivot", "layer", "visible", "size_mode"]

    def test_ordered_properties_when_unknown_key_then_last(self):
        keys = [key for key, _ in ordered_properties(BoxNode(id="bg"))]

        assert keys.index("visible") < keys.index("size_mode")
        assert keys[0] == "position"

    def test_serialize_node_when_text_then_text_fields(self, config):
        node = TextNode(
            id="title",
            text="Play",
            font="inter",
            line_break=True,
            text_leading=1.5,
            scale=Vector4(2, 2, 2, 1),
        )

        text = serialize_node(node, config)

        assert 'text: "Play"' in text
        assert 'font: "inter"' in text
        assert "line_break: true" in text
        assert "text_leading: 1.5" in text
        assert "type: TYPE_TEXT" in text
        assert "text_tracking" not in text

    def test_serialize_node_when_template_then_reference_only(self, config):
        node = TemplateNode(id="card", parent="menu", template_path="/gui/templates/", template_name="card")

        text = serialize_node(node, config)

        assert 'template: "/gui/templates/card.gui"' in text
        assert "type: TYPE_TEMPLATE" in text
        assert "texture" not in text
        assert "visible" not in text


class TestSerializeGui:
    """Tests for serialize_gui()."""

    @pytest.fixture
    def data(self):
        return GuiData(
            name="menu",
            gui=GuiSettings(),
            nodes=[BoxNode(id="menu", color=WHITE)],
            textures={"ui": "/assets/ui.atlas"},
            layers=["top"],
            file_path="/gui/",
        )

    def test_serialize_gui_when_simple_then_exact_layout(self, data, config):
        result = serialize_gui(data, config)

        assert result.data == (
            'script: ""\n'
            "textures {\n"
            '  name: "ui"\n'
            '  texture: "/assets/ui.atlas"\n'
            "}\n"
            "nodes {\n"
            "  color {\n"
            "    x: 1\n"
            "    y: 1\n"
            "    z: 1\n"
            "    w: 0\n"
            "  }\n"
            "  type: TYPE_BOX\n"
            '  id: "menu"\n'
            "}\n"
            "layers {\n"
            '  name: "top"\n'
            "}\n"
            'material: "/builtins/materials/gui.material"\n'
            "adjust_reference: ADJUST_REFERENCE_PARENT"
        )

    def test_serialize_gui_when_header_not_default_then_written(self, data, config):
        data.gui = GuiSettings(script="/main/menu.gui_script", background_color=Vector4(0, 0, 0, 1), max_nodes=1024)

        text = serialize_gui(data, config).data

        assert text.startswith('script: "/main/menu.gui_script"\n')
        assert "background_color {" in text
        assert text.endswith("max_nodes: 1024")

    def test_serialize_gui_when_fonts_then_font_blocks(self, data, config):
        data.fonts = {"inter": "/fonts/inter.font"}

        text = serialize_gui(data, config).data

        assert 'fonts {\n  name: "inter"\n  font: "/fonts/inter.font"\n}' in text
        assert text.index("textures {") < text.index("fonts {") < text.index("nodes {")

    def test_serialize_gui_when_plain_then_path_and_no_template_fields(self, data, config):
        result = serialize_gui(data, config)

        assert result.file_name == "menu.gui"
        assert result.relative_path == "gui/menu.gui"
        assert result.template is False
        assert result.template_name is None

    def test_serialize_gui_when_template_then_name_and_path_from_root(self, data, config):
        data.as_template = True
        data.nodes[0].template_name = "main_menu"
        data.nodes[0].template_path = "/gui/templates/"

        result = serialize_gui(data, config)

        assert result.template is True
        assert result.template_name == "main_menu"
        assert result.template_path == "/gui/templates/"

    def test_serialized_gui_relative_path_when_root_directory_then_bare_name(self):
        assert SerializedGui(name="hud", data="").relative_path == "hud.gui"
