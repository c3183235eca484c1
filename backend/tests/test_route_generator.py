"""
Experts Router - Route Generation Tests
=======================================
Tests for backend/experts_router/core/route_generator.py

Uses the sample directory from conftest.py:
    20 routes survive pruning (3 state-category, 2 state-city,
    4 state-city-category, 4 state, 5 city, 1 state-certification,
    1 city-certification).

Usage:
    pytest backend/tests/test_route_generator.py -v
"""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from experts_router.core.route_generator import (
    DirectoryData,
    ExpertCounter,
    RouteGenerator,
    RouteKind,
    generate_all_routes,
)
from conftest import item


def paths(result):
    return {route.path: route for route in result.routes}


@pytest.fixture
def result(directory_data):
    return RouteGenerator("/experts").generate(directory_data)


# =============================================================================
# Scenario: one state, one category, one skill
# =============================================================================

class TestTexasScenario:

    def test_skill_route(self, texas_data):
        routes = paths(generate_all_routes(texas_data, base_path=""))
        route = routes["/texas/web-design/wordpress"]
        assert route.kind == RouteKind.STATE_SKILL
        assert route.params["expertCount"] == 1

    def test_category_route_counts_only_experts_with_skill_in_category(self, texas_data):
        routes = paths(generate_all_routes(texas_data, base_path=""))
        assert routes["/texas/web-design"].params["expertCount"] == 1

    def test_no_city_routes_without_cities(self, texas_data):
        result = generate_all_routes(texas_data, base_path="")
        assert set(paths(result)) == {"/texas/web-design", "/texas/web-design/wordpress"}
        assert result.stats["stateCity"] == 0
        assert result.stats["cityLevel"] == 0


# =============================================================================
# Full sample directory
# =============================================================================

class TestGeneration:

    def test_per_kind_counts(self, result):
        assert result.stats == {
            "total": 20,
            "stateCategory": 3,
            "stateCity": 2,
            "stateCityCategory": 4,
            "stateLevel": 4,
            "cityLevel": 5,
            "stateCertLevel": 1,
            "cityCertLevel": 1,
            "candidates": result.stats["candidates"],
            "states": 2,
            "cities": 3,
            "categories": 2,
            "skills": 3,
            "certifications": 1,
            "experts": 4,
        }

    def test_candidates_before_pruning(self, result):
        # states x categories + cities x (1 + categories) + skill/cert fan-out
        # 2*2 + 2*(1+2) + 2*4 + 2*4 + 2*1 + 2*1 = 30
        assert result.stats["candidates"] == 30

    def test_pruning_invariant(self, result):
        assert all(route.params["expertCount"] >= 1 for route in result.routes)

    def test_paths_unique(self, result):
        assert len({r.path for r in result.routes}) == len(result.routes)

    def test_by_kind_matches_routes(self, result):
        assert sum(len(v) for v in result.by_kind.values()) == len(result.routes)
        for kind, routes in result.by_kind.items():
            assert all(r.kind == kind for r in routes)
            assert all(r.params["type"] == kind.value for r in routes)

    def test_state_category_counts(self, result):
        routes = paths(result)
        assert routes["/experts/texas/web-design"].params["expertCount"] == 2
        # E3 qualifies through its certification alone
        assert routes["/experts/texas/marketing"].params["expertCount"] == 3
        assert routes["/experts/california/web-design"].params["expertCount"] == 1
        assert "/experts/california/marketing" not in routes

    def test_city_resolved_by_state_name(self, result):
        routes = paths(result)
        houston = routes["/experts/texas/houston"]
        assert houston.params["stateId"] == "R1"
        assert houston.params["cityId"] == "C-HOU"

    def test_city_with_unknown_state_skipped(self, result):
        assert not any("ghost-town" in path for path in paths(result))

    def test_skill_fans_out_per_category(self, result):
        routes = paths(result)
        assert routes["/experts/texas/web-design/seo"].params["categoryId"] == "CAT1"
        assert routes["/experts/texas/marketing/seo"].params["categoryId"] == "CAT2"
        assert routes["/experts/texas/web-design/seo"].params["expertCount"] == 2
        assert routes["/experts/texas/marketing/seo"].params["expertCount"] == 2

    def test_skill_without_experts_pruned(self, result):
        assert "/experts/texas/web-design/figma" not in paths(result)

    def test_certification_routes(self, result):
        routes = paths(result)
        state_cert = routes["/experts/texas/marketing/google-ads"]
        assert state_cert.kind == RouteKind.STATE_CERTIFICATION
        assert state_cert.params["expertCount"] == 2
        city_cert = routes["/experts/texas/houston/marketing/google-ads"]
        assert city_cert.kind == RouteKind.CITY_CERTIFICATION
        assert city_cert.params["expertCount"] == 1
        assert "/experts/texas/austin/marketing/google-ads" not in routes

    def test_city_skill_route_params(self, result):
        params = paths(result)["/experts/texas/austin/web-design/wordpress"].params
        assert params == {
            "type": "city",
            "state": "texas",
            "city": "austin",
            "category": "web-design",
            "skill": "wordpress",
            "stateId": "R1",
            "cityId": "C-AUS",
            "categoryId": "CAT1",
            "skillId": "S1",
            "stateName": "Texas",
            "cityName": "Austin",
            "categoryName": "Web Design",
            "skillName": "WordPress",
            "expertCount": 1,
        }

    def test_idempotent(self, directory_data):
        generator = RouteGenerator("/experts")
        first = generator.generate(directory_data)
        second = generator.generate(directory_data)
        assert [r.path for r in first.routes] == [r.path for r in second.routes]
        assert [r.params for r in first.routes] == [r.params for r in second.routes]

    def test_base_path_trailing_slash(self, texas_data):
        routes = paths(generate_all_routes(texas_data, base_path="/hire/"))
        assert "/hire/texas/web-design" in routes


# =============================================================================
# Fan-out and edge cases
# =============================================================================

class TestEdgeCases:

    def test_two_categories_yield_two_routes(self):
        data = DirectoryData(
            states=[item("R1", name="Texas")],
            categories=[item("A", name="Alpha"), item("B", name="Beta")],
            skills=[item("S1", name="Python", **{"expert-category": ["A", "B"]})],
            experts=[item("E1", state="R1", **{"skills-2": ["S1"]})],
        )
        result = generate_all_routes(data, base_path="")
        skill_routes = result.by_kind[RouteKind.STATE_SKILL]
        assert sorted(r.path for r in skill_routes) == ["/texas/alpha/python", "/texas/beta/python"]

    def test_duplicate_category_reference_not_repeated(self):
        data = DirectoryData(
            states=[item("R1", name="Texas")],
            categories=[item("A", name="Alpha")],
            skills=[item("S1", name="Python", **{"expert-category": ["A", "A"]})],
            experts=[item("E1", state="R1", **{"skills-2": ["S1"]})],
        )
        result = generate_all_routes(data, base_path="")
        assert len(result.by_kind[RouteKind.STATE_SKILL]) == 1

    def test_unknown_category_reference_skipped(self):
        data = DirectoryData(
            states=[item("R1", name="Texas")],
            categories=[item("A", name="Alpha")],
            skills=[item("S1", name="Python", **{"expert-category": ["ZZZ"]})],
            experts=[item("E1", state="R1", **{"skills-2": ["S1"]})],
        )
        result = generate_all_routes(data, base_path="")
        assert result.by_kind[RouteKind.STATE_SKILL] == []

    def test_unroutable_entities_dropped(self):
        data = DirectoryData(
            states=[item("R1", name="Texas"), {"id": "R2", "fieldData": {"code": 7}}],
            categories=[item("A", name="!!!")],
            skills=[],
            experts=[item("E1", state="R2")],
        )
        result = generate_all_routes(data, base_path="")
        assert result.routes == []

    def test_no_experts_supplied_skips_pruning(self, directory_data):
        directory_data.experts = None
        result = generate_all_routes(directory_data)
        assert result.stats["total"] == result.stats["candidates"] == 30
        assert all("expertCount" not in r.params for r in result.routes)

    def test_empty_expert_list_prunes_everything(self, directory_data):
        directory_data.experts = []
        result = generate_all_routes(directory_data)
        assert result.routes == []


# =============================================================================
# ExpertCounter
# =============================================================================

class TestExpertCounter:

    @pytest.fixture
    def counter(self, directory_data):
        return ExpertCounter(
            directory_data.experts, directory_data.skills, directory_data.certifications
        )

    def test_state_only(self, counter):
        assert counter.count(state_id="R1") == 3

    def test_no_filters_counts_everyone(self, counter):
        assert counter.count() == 4

    def test_category_accepts_skill_or_certification(self, counter):
        assert counter.count(state_id="R1", category_id="CAT2") == 3

    def test_category_with_skill_ignores_certification_only_experts(self, counter):
        # E3 has only the certification; the skill filter decides
        assert counter.count(state_id="R1", category_id="CAT2", skill_id="S2") == 2

    def test_city_filter(self, counter):
        assert counter.count(state_id="R1", city_id="C-AUS") == 1

    def test_certification_filter(self, counter):
        assert counter.count(state_id="R1", certification_id="CERT1") == 2
