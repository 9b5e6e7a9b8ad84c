"""
Tests for exporter.variants

Test Coverage:
- parse_export_variants(): Parsing and malformed pairs
- iter_variant_passes(): Missing groups are skipped with a warning
- applied_variant(): Switch, settle, restore (also on failure)
"""

import asyncio

import pytest

from conftest import make_node, make_sprite
from defold_toolkit.core.models import VariantOverride
from defold_toolkit.exporter.variants import (
    applied_variant,
    iter_variant_passes,
    parse_export_variants,
    resolve_initial_values,
)


@pytest.fixture
def toggle():
    node = make_sprite("toggle", component="c:toggle")
    node.variant_properties = {"State": "off", "Size": "small"}
    node.variants = {"State": {"on": VariantOverride(x=5)}}
    return node


class TestParseExportVariants:
    """Tests for parse_export_variants()."""

    def test_parse_when_groups_then_values_in_order(self):
        result = parse_export_variants("State=on, State=off,Size=big")

        assert result == {"State": ["on", "off"], "Size": ["big"]}

    def test_parse_when_duplicate_value_then_kept_once(self):
        assert parse_export_variants("State=on,State=on") == {"State": ["on"]}

    @pytest.mark.parametrize("spec", ["", None, "broken", "=x", "State=", " , "])
    def test_parse_when_malformed_then_ignored(self, spec):
        assert parse_export_variants(spec) == {}


class TestVariantPasses:
    """Tests for resolve_initial_values() and iter_variant_passes()."""

    def test_resolve_initial_values_when_group_missing_then_omitted(self, toggle):
        initial = resolve_initial_values(toggle, {"State": ["on"], "Colour": ["red"]})

        assert initial == {"State": "off"}

    def test_iter_variant_passes_when_groups_then_each_pair_once(self, toggle):
        passes = list(iter_variant_passes(toggle, {"State": ["on", "off"], "Size": ["big"]}))

        assert passes == [("State", "on"), ("State", "off"), ("Size", "big")]

    def test_iter_variant_passes_when_unknown_group_then_skipped_with_warning(self, toggle):
        warnings = []

        passes = list(iter_variant_passes(toggle, {"Colour": ["red"], "State": ["on"]}, warnings))

        assert passes == [("State", "on")]
        assert "Colour" in warnings[0]


class TestAppliedVariant:
    """Tests for the applied_variant() context manager."""

    def test_applied_variant_when_inside_then_value_applied(self, toggle):
        async def run():
            async with applied_variant(toggle, "State", "on", settle_delay=0) as node:
                return node.variant_properties["State"], node.x

        assert asyncio.run(run()) == ("on", 5)

    def test_applied_variant_when_many_values_then_original_restored(self, toggle):
        async def run():
            for value in ("on", "off", "on"):
                async with applied_variant(toggle, "State", value, settle_delay=0):
                    pass

        asyncio.run(run())

        assert toggle.variant_properties["State"] == "off"
        assert toggle.x == 0

    def test_applied_variant_when_block_raises_then_still_restored(self, toggle):
        async def run():
            async with applied_variant(toggle, "State", "on", settle_delay=0):
                raise RuntimeError("capture failed")

        with pytest.raises(RuntimeError):
            asyncio.run(run())

        assert toggle.variant_properties["State"] == "off"

    def test_applied_variant_when_concurrent_then_serialized_per_node(self, toggle):
        seen = []

        async def capture(value):
            async with applied_variant(toggle, "State", value, settle_delay=0) as node:
                await asyncio.sleep(0)
                seen.append((value, node.variant_properties["State"]))

        async def run():
            await asyncio.gather(capture("on"), capture("off"))

        asyncio.run(run())

        assert sorted(seen) == [("off", "off"), ("on", "on")]
        assert toggle.variant_properties["State"] == "off"

    def test_applied_variant_when_unknown_group_then_key_error(self, toggle):
        async def run():
            async with applied_variant(toggle, "Colour", "red", settle_delay=0):
                pass

        with pytest.raises(KeyError):
            asyncio.run(run())
