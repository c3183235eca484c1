"""
Experts Router - Entity Helper Tests
====================================
Tests for backend/experts_router/core/entities.py

Usage:
    pytest backend/tests/test_entities.py -v
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from experts_router.core.entities import (
    SLUG_STRATEGIES,
    StateResolver,
    entity_id,
    entity_name,
    entity_slug,
    is_archived,
    is_hidden,
    names_by_id,
    reference_ids,
    resolve_first,
    slugify,
)


# =============================================================================
# slugify
# =============================================================================

class TestSlugify:

    def test_collapses_whitespace_and_strips_punctuation(self):
        assert slugify("Web  Design!") == "web-design"

    def test_empty_string(self):
        assert slugify("") == ""

    def test_none(self):
        assert slugify(None) == ""

    def test_trims_and_lowercases(self):
        assert slugify("  New York City  ") == "new-york-city"

    def test_collapses_repeated_hyphens(self):
        assert slugify("A -- B") == "a-b"

    def test_trims_edge_hyphens(self):
        assert slugify("-Design-") == "design"

    def test_keeps_underscores_and_digits(self):
        assert slugify("Web_3 Dev") == "web_3-dev"

    def test_punctuation_only_is_empty(self):
        assert slugify("!!!") == ""


# =============================================================================
# Slug resolution order
# =============================================================================

class TestEntitySlug:

    def test_explicit_top_level_slug_wins(self):
        item = {"slug": "tx", "fieldData": {"slug": "texas", "name": "Texas"}}
        assert entity_slug(item) == "tx"

    def test_field_data_slug(self):
        item = {"fieldData": {"slug": "texas", "name": "Lone Star"}}
        assert entity_slug(item) == "texas"

    def test_nested_name_slugified(self):
        item = {"name": "Other", "fieldData": {"name": "New Mexico"}}
        assert entity_slug(item) == "new-mexico"

    def test_top_level_name_slugified(self):
        assert entity_slug({"name": "North Dakota"}) == "north-dakota"

    def test_first_short_string_field_fallback(self):
        item = {"fieldData": {"count": 3, "title": "Graphic Design"}}
        assert entity_slug(item) == "graphic-design"

    def test_long_strings_skipped_in_fallback(self):
        item = {"fieldData": {"bio": "x" * 150, "label": "Short Label"}}
        assert entity_slug(item) == "short-label"

    def test_unroutable_returns_none(self):
        assert entity_slug({"fieldData": {"count": 3}}) is None

    def test_empty_field_data_does_not_fall_back_to_item(self):
        assert entity_slug({"id": "R3", "fieldData": {}}) is None

    def test_resolve_first_respects_strategy_order(self):
        calls = []

        def first(item):
            calls.append("first")
            return None

        def second(item):
            calls.append("second")
            return "two"

        def third(item):
            calls.append("third")
            return "three"

        assert resolve_first({}, [first, second, third]) == "two"
        assert calls == ["first", "second"]

    def test_default_strategies_are_ranked(self):
        assert len(SLUG_STRATEGIES) == 4


# =============================================================================
# Accessors
# =============================================================================

class TestAccessors:

    def test_entity_id_falls_back_to_underscore_id(self):
        assert entity_id({"_id": "abc"}) == "abc"
        assert entity_id({"id": "x", "_id": "y"}) == "x"

    def test_entity_name_prefers_field_data(self):
        assert entity_name({"name": "Top", "fieldData": {"name": "Nested"}}) == "Nested"
        assert entity_name({"name": "Top"}) == "Top"

    def test_reference_ids_accepts_single_string(self):
        assert reference_ids({"fieldData": {"category": "CAT1"}}, "category") == ["CAT1"]

    def test_reference_ids_missing_field(self):
        assert reference_ids({"fieldData": {}}, "category") == []

    def test_archived_flag_in_either_place(self):
        assert is_archived({"isArchived": True})
        assert is_archived({"fieldData": {"isArchived": True}})
        assert not is_archived({"fieldData": {}})

    def test_hidden_flag(self):
        assert is_hidden({"fieldData": {"hidden": True}})
        assert not is_hidden({"fieldData": {}})

    def test_names_by_id_skips_nameless(self):
        items = [{"id": "a", "fieldData": {"name": "A"}}, {"id": "b", "fieldData": {}}]
        assert names_by_id(items) == {"a": "A"}


# =============================================================================
# City -> state resolution
# =============================================================================

class TestStateResolver:

    @pytest.fixture
    def resolver(self):
        return StateResolver([
            {"id": "R1", "fieldData": {"name": "Texas"}},
            {"id": "R2", "fieldData": {"name": "California"}},
        ])

    def test_resolves_by_id(self, resolver):
        city = {"fieldData": {"name": "Austin", "state": "R1"}}
        assert entity_id(resolver.resolve(city)) == "R1"

    def test_falls_back_to_case_insensitive_name(self, resolver):
        city = {"fieldData": {"name": "Fresno", "state": "california"}}
        assert entity_id(resolver.resolve(city)) == "R2"

    def test_id_match_preferred_over_name(self):
        resolver = StateResolver([
            {"id": "texas", "fieldData": {"name": "Lone Star"}},
            {"id": "R1", "fieldData": {"name": "Texas"}},
        ])
        city = {"fieldData": {"state": "texas"}}
        assert entity_id(resolver.resolve(city)) == "texas"

    def test_top_level_state_reference(self, resolver):
        city = {"state": "R2", "fieldData": {"name": "Fresno"}}
        assert entity_id(resolver.resolve(city)) == "R2"

    def test_unknown_state(self, resolver):
        assert resolver.resolve({"fieldData": {"state": "R9"}}) is None
        assert resolver.resolve({"fieldData": {}}) is None
