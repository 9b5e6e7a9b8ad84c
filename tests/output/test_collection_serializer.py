"""
Tests for output.collection_serializer

Test Coverage:
- quote_lines(): Line-by-line embedding
- rotation_quaternion(): z rotation to quaternion
- serialize_component_data(): Order, default omission, textures block, label font
- serialize_component() / serialize_game_object(): Block layout and transforms
- serialize_collection(): Header and SerializedCollection paths
"""

import pytest

from defold_toolkit.core.models import (
    CollectionData,
    CollectionSettings,
    GameObject,
    GameObjectType,
    Pivot,
    Vector4,
)
from defold_toolkit.exporter.config import ExportConfig
from defold_toolkit.output.collection_serializer import (
    SerializedCollection,
    quote_lines,
    rotation_quaternion,
    serialize_collection,
    serialize_component,
    serialize_component_data,
    serialize_game_object,
)


@pytest.fixture
def config():
    return ExportConfig(settle_delay=0)


def _sprite(**kwargs):
    return GameObject(
        "logo_sprite",
        GameObjectType.SPRITE,
        size=Vector4(100, 100),
        image="/assets/ui.atlas",
        default_animation="button",
        **kwargs,
    )


def _label(**kwargs):
    return GameObject(
        "hint_label",
        GameObjectType.LABEL,
        size=Vector4(80, 20),
        text="Play",
        pivot=Pivot.W,
        color=Vector4(1, 0, 0, 1),
        **kwargs,
    )


class TestValues:
    """Tests for embedded text and rotations."""

    def test_quote_lines_when_several_lines_then_one_string_each(self):
        assert quote_lines('id: "logo"\ntype: "sprite"') == (
            '"id: \\"logo\\"\\n"\n'
            '"type: \\"sprite\\"\\n"'
        )

    def test_quote_lines_when_empty_then_empty_string(self):
        assert quote_lines("") == '""'

    @pytest.mark.parametrize("degrees, expected", [
        (0, Vector4(0, 0, 0, 1)),
        (180, Vector4(0, 0, 1, 0)),
        (90, Vector4(0, 0, 0.707, 0.707)),
    ])
    def test_rotation_quaternion(self, degrees, expected):
        assert rotation_quaternion(Vector4(0, 0, degrees)) == expected


class TestComponentData:
    """Tests for serialize_component_data()."""

    def test_serialize_component_data_when_sprite_then_textures_block(self, config):
        assert serialize_component_data(_sprite(), config) == (
            'default_animation: "button"\n'
            "size {\n"
            "  x: 100\n"
            "  y: 100\n"
            "  z: 0\n"
            "  w: 0\n"
            "}\n"
            "textures {\n"
            '  sampler: "texture_sampler"\n'
            '  texture: "/assets/ui.atlas"\n'
            "}"
        )

    def test_serialize_component_data_when_sprite_draws_nothing_then_no_textures(self, config):
        sprite = GameObject("frame", GameObjectType.SPRITE, size=Vector4(10, 10))

        assert "textures" not in serialize_component_data(sprite, config)

    def test_serialize_component_data_when_sprite_set_then_written_in_order(self, config):
        sprite = _sprite(
            slice9=Vector4(8, 8, 8, 8),
            size_mode="SIZE_MODE_MANUAL",
            blend_mode="BLEND_MODE_ADD",
            material="/materials/glow.material",
        )

        text = serialize_component_data(sprite, config)
        keys = [line.split(" ")[0].rstrip(":") for line in text.splitlines() if not line.startswith(" ")]

        assert keys == ["default_animation", "blend_mode", "slice9", "}", "size", "}", "size_mode", "textures", "}"]
        assert "blend_mode: BLEND_MODE_ADD" in text
        assert "size_mode: SIZE_MODE_MANUAL" in text
        assert "glow.material" not in text

    def test_serialize_component_data_when_label_then_font_and_material_last(self, config):
        lines = serialize_component_data(_label(), config).splitlines()

        assert "pivot: PIVOT_W" in lines
        assert 'text: "Play"' in lines
        assert lines[-2:] == [
            'font: "/builtins/fonts/default.font"',
            'material: "/builtins/fonts/label-df.material"',
        ]
        assert lines.index('text: "Play"') > lines.index("pivot: PIVOT_W")

    def test_serialize_component_data_when_label_defaults_then_omitted(self, config):
        text = serialize_component_data(_label(), config)

        for key in ("outline", "shadow", "leading", "tracking", "line_break", "blend_mode"):
            assert key not in text

    def test_serialize_component_data_when_label_wraps_then_line_break(self, config):
        text = serialize_component_data(_label(line_break=True, leading=1.5), config)

        assert "line_break: true" in text
        assert "leading: 1.5" in text

    def test_serialize_component_data_when_not_omitting_then_defaults_written(self):
        config = ExportConfig(settle_delay=0, omit_default_values=False)

        text = serialize_component_data(_label(), config)

        assert "leading: 1" in text
        assert "line_break: false" in text
        assert "blend_mode: BLEND_MODE_ALPHA" in text


class TestBlocks:
    """Tests for serialize_component() and serialize_game_object()."""

    def test_serialize_component_when_at_origin_then_no_transform(self, config):
        text = serialize_component(_sprite(), config)
        lines = text.splitlines()

        assert lines[:4] == [
            "embedded_components {",
            '  id: "logo_sprite"',
            '  type: "sprite"',
            '  data: "default_animation: \\"button\\"\\n"',
        ]
        assert '  "textures {\\n"' in lines
        assert lines[-1] == "}"
        assert "position" not in text
        assert "rotation" not in text

    def test_serialize_component_when_placed_then_transform_blocks(self, config):
        label = _label(position=Vector4(-40, 130, 0), scale=Vector4(2, 2, 2, 1))

        text = serialize_component(label, config)

        assert '  type: "label"' in text
        assert "  position {\n    x: -40\n    y: 130\n    z: 0\n  }" in text
        assert "  scale {\n    x: 2\n    y: 2\n    z: 2\n  }" in text

    def test_serialize_game_object_when_children_then_listed_before_data(self, config):
        level = GameObject(
            "level",
            children=["enemies", "items"],
            position=Vector4(10, 20, 0.5),
            rotation=Vector4(0, 0, 90),
            scale=Vector4(2, 2, 2, 1),
        )

        assert serialize_game_object(level, config) == (
            "embedded_instances {\n"
            '  id: "level"\n'
            '  children: "enemies"\n'
            '  children: "items"\n'
            '  data: ""\n'
            "  position {\n"
            "    x: 10\n"
            "    y: 20\n"
            "    z: 0.5\n"
            "  }\n"
            "  rotation {\n"
            "    x: 0\n"
            "    y: 0\n"
            "    z: 0.707\n"
            "    w: 0.707\n"
            "  }\n"
            "  scale3 {\n"
            "    x: 2\n"
            "    y: 2\n"
            "    z: 2\n"
            "  }\n"
            "}\n"
        )

    def test_serialize_game_object_when_components_then_embedded_twice_escaped(self, config):
        logo = GameObject("logo", components=[_sprite()])

        lines = serialize_game_object(logo, config).splitlines()

        assert lines[2] == '  data: "embedded_components {\\n"'
        assert '  "  id: \\"logo_sprite\\"\\n"' in lines
        assert '  "  data: \\"default_animation: \\\\\\"button\\\\\\"\\\\n\\"\\n"' in lines

    def test_serialize_game_object_when_not_omitting_then_identity_transform(self):
        config = ExportConfig(settle_delay=0, omit_default_values=False)

        text = serialize_game_object(GameObject("level"), config)

        assert "  rotation {\n    x: 0\n    y: 0\n    z: 0\n    w: 1\n  }" in text
        assert "  scale3 {\n    x: 1\n    y: 1\n    z: 1\n  }" in text


class TestCollection:
    """Tests for serialize_collection() and SerializedCollection."""

    def test_serialize_collection_when_game_objects_then_header_first(self, config):
        data = CollectionData(
            name="level",
            collection=CollectionSettings(),
            game_objects=[GameObject("level", children=["enemies"]), GameObject("enemies")],
            file_path="/levels",
        )

        result = serialize_collection(data, config)
        lines = result.data.splitlines()

        assert lines[:2] == ['name: "default"', "scale_along_z: 0"]
        assert lines.count("embedded_instances {") == 2
        assert not result.data.endswith("\n")
        assert result.relative_path == "levels/level.collection"

    def test_serialize_collection_when_named_then_header_name(self):
        data = CollectionData(name="level", collection=CollectionSettings(name="main"))

        assert serialize_collection(data).data == 'name: "main"\nscale_along_z: 0'

    def test_collection_settings_when_empty_name_then_value_error(self):
        with pytest.raises(ValueError):
            CollectionSettings(name="")

    def test_serialized_collection_when_root_path_then_bare_file_name(self):
        result = SerializedCollection(name="level", data="")

        assert result.file_name == "level.collection"
        assert result.relative_path == "level.collection"
