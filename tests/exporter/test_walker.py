"""
Tests for exporter.walker

Test Coverage:
- Pre-order record tree for a simple root
- Exclusion, skipping (children re-parented with absolute placement kept)
- Cloneable instances emitted once per component and variant state
- Sprites and template references are leaves
- Variant passes append prefixed records and restore the instance
- Deep trees without recursion
"""

import asyncio

import pytest

from conftest import RED, make_node, make_sprite, make_text
from defold_toolkit.core.models import BoxNode, DesignKind, TemplateNode, TextNode, VariantOverride, Vector4
from defold_toolkit.exporter.config import PackOptions
from defold_toolkit.exporter.context import ExportContext
from defold_toolkit.exporter.walker import WalkState, is_visitable, walk


def _walk(root, resources, *, as_template=False, options=None, state=None):
    context = ExportContext.for_root(root, as_template, options)
    return asyncio.run(walk(root, context, resources, state))


def _ids(records):
    return [node.id for record in records for node in record.iter_all()]


@pytest.fixture
def menu():
    return make_node("menu", width=320, height=200, children=[
        make_text("title", x=120, y=90),
        make_sprite("play", x=110, y=50),
    ])


class TestWalkBasics:
    """Tests for the shape of the record tree."""

    def test_walk_when_simple_root_then_pre_order_tree(self, menu, resources):
        records = _walk(menu, resources)

        assert len(records) == 1
        assert _ids(records) == ["menu", "title", "play"]
        assert isinstance(records[0].children[0], TextNode)
        assert records[0].children[0].parent == "menu"

    def test_walk_when_root_then_placed_at_origin(self, menu, resources):
        root = _walk(menu, resources)[0]

        assert root.position == Vector4(0, 0)
        assert root.parent is None

    def test_walk_when_child_centred_then_origin(self, menu, resources):
        title = _walk(menu, resources)[0].children[0]

        assert title.position == Vector4(0, 0)

    def test_walk_when_invisible_layer_then_dropped(self, menu, resources):
        menu.children[0].visible = False

        assert _ids(_walk(menu, resources)) == ["menu", "play"]

    def test_walk_when_state_given_then_visits_counted(self, menu, resources):
        state = WalkState()

        _walk(menu, resources, state=state)

        assert state.visited == 3

    def test_is_visitable_when_service_frame_then_false(self):
        assert not is_visitable(make_node("slice9Frame-leftTop"))


class TestExcludeAndSkip:
    """Tests for exclusion and skipping."""

    def test_walk_when_excluded_then_subtree_dropped(self, resources):
        root = make_node("menu", children=[
            make_node("debug", metadata={"exclude": True}, children=[make_node("grid", fills=[RED])]),
        ])

        assert _ids(_walk(root, resources)) == ["menu"]

    def test_walk_when_excluded_text_then_dropped(self, resources):
        root = make_node("menu", children=[make_text("hint", metadata={"exclude": True})])

        assert _ids(_walk(root, resources)) == ["menu"]

    def test_walk_when_skipped_then_children_move_to_grandparent(self, resources):
        root = make_node("menu", width=320, height=200, children=[
            make_node("#group", x=10, y=10, children=[
                make_node("bg", width=20, height=20, fills=[RED]),
            ]),
        ])

        records = _walk(root, resources)

        bg = records[0].children[0]
        assert _ids(records) == ["menu", "bg"]
        assert bg.parent == "menu"
        assert bg.position == Vector4(-140, 80)

    def test_walk_when_skipped_component_then_no_prefix_added(self, resources):
        root = make_node("menu", children=[
            make_node("#card", DesignKind.COMPONENT, children=[make_node("bg", fills=[RED])]),
        ])

        assert _ids(_walk(root, resources)) == ["menu", "bg"]

    def test_walk_when_component_then_children_prefixed(self, resources):
        root = make_node("menu", children=[
            make_sprite("card", component="c:card", children=[make_node("bg", fills=[RED])]),
        ])

        assert _ids(_walk(root, resources)) == ["menu", "card", "card_bg"]

    def test_walk_when_sprite_holder_then_sprite_takes_holder_name(self, resources):
        root = make_node("menu", children=[
            make_sprite("coin", component="c:coin", children=[make_sprite("art")]),
        ])

        records = _walk(root, resources)

        assert _ids(records) == ["menu", "coin"]
        assert records[0].children[0].texture == "ui/button"

    def test_walk_when_collapse_empty_then_bare_container_skipped(self, resources):
        root = make_node("menu", children=[
            make_node("wrap", children=[make_sprite("play")]),
        ])

        records = _walk(root, resources, options=PackOptions(collapse_empty=True))

        assert _ids(records) == ["menu", "play"]
        assert records[0].children[0].parent == "menu"


class TestLeaves:
    """Tests for nodes whose children are not visited."""

    def test_walk_when_sprite_has_children_then_not_visited(self, resources):
        root = make_node("menu", children=[make_sprite("play", children=[make_node("shine", fills=[RED])])])

        assert _ids(_walk(root, resources)) == ["menu", "play"]

    def test_walk_when_nested_template_then_reference_leaf(self, resources):
        root = make_node("menu", children=[
            make_node("card", metadata={"template": True}, children=[make_text("label")]),
        ])

        records = _walk(root, resources)

        card = records[0].children[0]
        assert isinstance(card, TemplateNode)
        assert card.children == []

    def test_walk_when_template_root_exported_as_template_then_expanded(self, resources):
        card = make_node("card", metadata={"template": True}, children=[make_text("label")])

        records = _walk(card, resources, as_template=True)

        assert isinstance(records[0], BoxNode)
        assert _ids(records) == ["card", "label"]

    def test_walk_when_collapse_templates_then_inlined(self, resources):
        root = make_node("menu", children=[
            make_node("card", metadata={"template": True}, children=[make_text("label")]),
        ])

        records = _walk(root, resources, options=PackOptions(collapse_templates=True))

        assert not isinstance(records[0].children[0], TemplateNode)
        assert _ids(records) == ["menu", "card", "label"]


class TestClones:
    """Tests for cloneable instances."""

    def test_walk_when_same_cloneable_twice_then_emitted_once(self, resources):
        root = make_node("menu", children=[
            make_sprite("coin", metadata={"cloneable": True}),
            make_sprite("coin_2", metadata={"cloneable": True}),
        ])

        records = _walk(root, resources)

        assert _ids(records) == ["menu", "coin"]
        assert records[0].children[0].parent is None

    def test_walk_when_cloneable_variant_differs_then_both_emitted(self, resources):
        first = make_sprite("coin", metadata={"cloneable": True}, variant_properties={"State": "gold"})
        second = make_sprite("coin_2", metadata={"cloneable": True}, variant_properties={"State": "silver"})

        records = _walk(make_node("menu", children=[first, second]), resources)

        assert _ids(records) == ["menu", "coin", "coin_2"]

    def test_walk_when_shared_state_then_clones_span_calls(self, resources):
        state = WalkState()

        _walk(make_node("a", children=[make_sprite("coin", metadata={"cloneable": True})]), resources, state=state)
        records = _walk(make_node("b", children=[make_sprite("coin", metadata={"cloneable": True})]), resources, state=state)

        assert _ids(records) == ["b"]


class TestVariants:
    """Tests for export_variants expansion."""

    @pytest.fixture
    def toggle(self):
        node = make_sprite(
            "toggle",
            component="c:toggle",
            metadata={"export_variants": "State=on"},
            children=[make_node("knob", width=10, height=10, fills=[RED])],
        )
        node.variant_properties = {"State": "off"}
        node.variants = {"State": {"on": VariantOverride(children=[
            make_node("glow", width=10, height=10, fills=[RED]),
        ])}}
        return node

    def test_walk_when_export_variants_then_prefixed_records_appended(self, toggle, resources):
        records = _walk(make_node("menu", children=[toggle]), resources)

        assert _ids(records) == ["menu", "toggle", "toggle_knob", "toggle_glow_on"]

    def test_walk_when_variant_pass_done_then_instance_restored(self, toggle, resources):
        _walk(make_node("menu", children=[toggle]), resources)

        assert toggle.variant_properties["State"] == "off"
        assert [c.name for c in toggle.children] == ["knob"]

    def test_walk_when_variant_unchanged_then_children_reemitted_with_suffix(self, toggle, resources):
        toggle.variants = {"State": {"on": VariantOverride(x=0)}}

        records = _walk(make_node("menu", children=[toggle]), resources)

        assert _ids(records) == ["menu", "toggle", "toggle_knob", "toggle_knob_on"]

    def test_walk_when_variant_replaces_text_then_both_texts_kept(self, resources):
        toggle = make_sprite(
            "toggle",
            component="c:toggle",
            metadata={"export_variants": "State=on"},
            children=[make_text("label", "Off")],
        )
        toggle.variant_properties = {"State": "off"}
        toggle.variants = {"State": {"on": VariantOverride(children=[make_text("label", "On")])}}

        records = _walk(make_node("menu", children=[toggle]), resources)

        texts = {n.id: n.text for r in records for n in r.iter_all() if isinstance(n, TextNode)}
        assert texts == {"toggle_label": "Off", "toggle_label_on": "On"}

    def test_walk_when_skipped_instance_then_variant_records_kept_beside_siblings(self, toggle, resources):
        toggle.metadata.set("skip", True)
        toggle.variants = {"State": {"on": VariantOverride(x=0)}}
        sibling = make_node("knob", width=10, height=10, fills=[RED])

        records = _walk(make_node("menu", children=[sibling, toggle]), resources)

        assert _ids(records) == ["menu", "knob", "knob", "knob_on"]

    def test_walk_when_variant_group_missing_then_warning(self, toggle, resources):
        toggle.metadata.set("export_variants", "Colour=red")
        state = WalkState()

        records = _walk(make_node("menu", children=[toggle]), resources, state=state)

        assert _ids(records) == ["menu", "toggle", "toggle_knob"]
        assert any("Colour" in w for w in state.warnings)

    def test_walk_when_collapse_templates_then_variants_not_expanded(self, toggle, resources):
        records = _walk(make_node("menu", children=[toggle]), resources, options=PackOptions(collapse_templates=True))

        assert _ids(records) == ["menu", "toggle", "toggle_knob"]


class TestDeepTrees:
    """Tests for traversal depth."""

    def test_walk_when_very_deep_then_no_recursion_error(self, resources):
        depth = 3000
        node = make_node(f"n{depth}", fills=[RED])
        for index in range(depth - 1, -1, -1):
            node = make_node(f"n{index}", children=[node])

        records = _walk(node, resources)

        assert len(_ids(records)) == depth + 1
