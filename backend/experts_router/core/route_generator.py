"""
Experts Router - Route Generation
=================================
Builds every valid listing URL for the experts directory.

Pipeline:
1. Resolve slugs for states, cities, categories, skills, certifications
2. Expand the cross product for each route kind
   (a skill/certification in several categories fans out to one route per category)
3. Count matching experts per route and drop the empty ones
4. Report per-kind stats

Route kinds:
    /{base}/{state}/{category}                          state-category
    /{base}/{state}/{city}                              state-city
    /{base}/{state}/{city}/{category}                   state-city-category
    /{base}/{state}/{category}/{skill}                  state
    /{base}/{state}/{city}/{category}/{skill}           city
    /{base}/{state}/{category}/{certification}          state-certification
    /{base}/{state}/{city}/{category}/{certification}   city-certification
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from functools import partial
from typing import Any, Dict, List, Optional, Set, Tuple

from .entities import (
    CERTIFICATION_CATEGORIES_FIELD,
    EXPERT_CERTIFICATIONS_FIELD,
    EXPERT_CITY_FIELD,
    EXPERT_SKILLS_FIELD,
    EXPERT_STATE_FIELD,
    SKILL_CATEGORIES_FIELD,
    StateResolver,
    entity_id,
    entity_name,
    entity_slug,
    reference_id,
    reference_ids,
)

logger = logging.getLogger(__name__)


DEFAULT_BASE_PATH = "/experts"


# =============================================================================
# DATA CLASSES
# =============================================================================

class RouteKind(str, Enum):
    """Route kind, stored as the `type` tag of every manifest entry."""
    STATE_CATEGORY = "state-category"
    STATE_CITY = "state-city"
    STATE_CITY_CATEGORY = "state-city-category"
    STATE_SKILL = "state"
    CITY_SKILL = "city"
    STATE_CERTIFICATION = "state-certification"
    CITY_CERTIFICATION = "city-certification"


# Stats key reported for each kind
STATS_KEYS: Dict[RouteKind, str] = {
    RouteKind.STATE_CATEGORY: "stateCategory",
    RouteKind.STATE_CITY: "stateCity",
    RouteKind.STATE_CITY_CATEGORY: "stateCityCategory",
    RouteKind.STATE_SKILL: "stateLevel",
    RouteKind.CITY_SKILL: "cityLevel",
    RouteKind.STATE_CERTIFICATION: "stateCertLevel",
    RouteKind.CITY_CERTIFICATION: "cityCertLevel",
}


@dataclass
class Route:
    """A single listing URL and the parameters the page needs to render it."""
    path: str
    kind: RouteKind
    params: Dict[str, Any]


@dataclass
class DirectoryData:
    """Raw CMS collections used for generation."""
    states: List[Dict] = field(default_factory=list)
    cities: List[Dict] = field(default_factory=list)
    categories: List[Dict] = field(default_factory=list)
    skills: List[Dict] = field(default_factory=list)
    certifications: List[Dict] = field(default_factory=list)
    experts: Optional[List[Dict]] = None  # None = skip pruning


@dataclass
class GenerationResult:
    """Routes grouped by kind plus operator-facing counts."""
    routes: List[Route]
    by_kind: Dict[RouteKind, List[Route]]
    stats: Dict[str, int]


@dataclass
class _Dimension:
    """A resolved (slug, id, name) for one entity."""
    key: str
    slug: str
    id: Optional[str]
    name: Optional[str]


def _dimension(key: str, item: Dict) -> Optional[_Dimension]:
    slug = entity_slug(item)
    if not slug:
        logger.debug(f"Skipping unroutable {key}: {entity_id(item)}")
        return None
    return _Dimension(key=key, slug=slug, id=entity_id(item), name=entity_name(item))


def _make_route(base_path: str, kind: RouteKind, *dimensions: _Dimension) -> Route:
    path = base_path.rstrip("/") + "/" + "/".join(d.slug for d in dimensions)

    # slugs first, then ids, then names (stable key order in the manifest)
    params: Dict[str, Any] = {"type": kind.value}
    for suffix, attr in (("", "slug"), ("Id", "id"), ("Name", "name")):
        for d in dimensions:
            params[f"{d.key}{suffix}"] = getattr(d, attr)

    return Route(path=path, kind=kind, params=params)


# =============================================================================
# EXPERT COUNTING
# =============================================================================

class ExpertCounter:
    """
    Counts experts matching a route's filters.

    Experts are grouped by state once so each route only scans its own
    state. Category matching (without a skill or certification) accepts an
    expert with any skill OR any certification in that category.
    """

    def __init__(
        self,
        experts: List[Dict],
        skills: List[Dict],
        certifications: List[Dict],
    ):
        self.skills_in_category: Dict[str, Set[str]] = defaultdict(set)
        for skill in skills:
            for category_id in reference_ids(skill, SKILL_CATEGORIES_FIELD):
                self.skills_in_category[category_id].add(entity_id(skill))

        self.certifications_in_category: Dict[str, Set[str]] = defaultdict(set)
        for cert in certifications:
            for category_id in reference_ids(cert, CERTIFICATION_CATEGORIES_FIELD):
                self.certifications_in_category[category_id].add(entity_id(cert))

        self._all: List[Tuple[Optional[str], Set[str], Set[str]]] = []
        self._by_state: Dict[str, List[Tuple[Optional[str], Set[str], Set[str]]]] = defaultdict(list)
        for expert in experts:
            prepared = (
                reference_id(expert, EXPERT_CITY_FIELD),
                set(reference_ids(expert, EXPERT_SKILLS_FIELD)),
                set(reference_ids(expert, EXPERT_CERTIFICATIONS_FIELD)),
            )
            self._all.append(prepared)
            self._by_state[reference_id(expert, EXPERT_STATE_FIELD)].append(prepared)

    def count(
        self,
        state_id: Optional[str] = None,
        city_id: Optional[str] = None,
        category_id: Optional[str] = None,
        skill_id: Optional[str] = None,
        certification_id: Optional[str] = None,
    ) -> int:
        candidates = self._by_state.get(state_id, []) if state_id else self._all

        check_category = bool(category_id) and not skill_id and not certification_id
        category_skills = self.skills_in_category.get(category_id, set()) if check_category else set()
        category_certs = self.certifications_in_category.get(category_id, set()) if check_category else set()

        total = 0
        for expert_city, expert_skills, expert_certs in candidates:
            if city_id and expert_city != city_id:
                continue
            if skill_id and skill_id not in expert_skills:
                continue
            if certification_id and certification_id not in expert_certs:
                continue
            if check_category:
                if expert_skills.isdisjoint(category_skills) and expert_certs.isdisjoint(category_certs):
                    continue
            total += 1
        return total

    def count_route(self, route: Route) -> int:
        p = route.params
        return self.count(
            state_id=p.get("stateId"),
            city_id=p.get("cityId"),
            category_id=p.get("categoryId"),
            skill_id=p.get("skillId"),
            certification_id=p.get("certificationId"),
        )


# =============================================================================
# GENERATOR
# =============================================================================

class RouteGenerator:
    """Expands CMS reference data into the full set of listing routes."""

    def __init__(self, base_path: str = DEFAULT_BASE_PATH):
        self.base_path = base_path

    # --- resolution ---------------------------------------------------------

    def _states(self, data: DirectoryData) -> List[_Dimension]:
        return [d for d in (_dimension("state", s) for s in data.states) if d]

    def _cities(self, data: DirectoryData) -> List[Tuple[_Dimension, _Dimension]]:
        """(state, city) pairs for every city whose state resolves."""
        resolver = StateResolver(data.states)
        pairs = []
        for city in data.cities:
            city_dim = _dimension("city", city)
            if not city_dim:
                continue
            state = resolver.resolve(city)
            if state is None:
                logger.debug(f"Skipping city with unknown state: {city_dim.slug}")
                continue
            state_dim = _dimension("state", state)
            if state_dim:
                pairs.append((state_dim, city_dim))
        return pairs

    def _categories(self, data: DirectoryData) -> Dict[str, _Dimension]:
        categories = {}
        for category in data.categories:
            dim = _dimension("category", category)
            if dim and dim.id:
                categories[dim.id] = dim
        return categories

    def _fan_out(
        self,
        items: List[Dict],
        key: str,
        category_field: str,
        categories: Dict[str, _Dimension],
    ) -> List[Tuple[_Dimension, _Dimension]]:
        """(category, item) pairs: one per category the item references."""
        pairs = []
        for item in items:
            dim = _dimension(key, item)
            if not dim:
                continue
            seen = set()
            for category_id in reference_ids(item, category_field):
                if category_id in seen or category_id not in categories:
                    continue
                seen.add(category_id)
                pairs.append((categories[category_id], dim))
        return pairs

    # --- expansion ----------------------------------------------------------

    def expand(self, data: DirectoryData) -> Dict[RouteKind, List[Route]]:
        """Every structurally valid route, before pruning."""
        states = self._states(data)
        cities = self._cities(data)
        categories = self._categories(data)
        skill_pairs = self._fan_out(data.skills, "skill", SKILL_CATEGORIES_FIELD, categories)
        cert_pairs = self._fan_out(
            data.certifications, "certification", CERTIFICATION_CATEGORIES_FIELD, categories
        )
        route = partial(_make_route, self.base_path)

        return {
            RouteKind.STATE_CATEGORY: [
                route(RouteKind.STATE_CATEGORY, s, c)
                for s in states for c in categories.values()
            ],
            RouteKind.STATE_CITY: [
                route(RouteKind.STATE_CITY, s, city)
                for s, city in cities
            ],
            RouteKind.STATE_CITY_CATEGORY: [
                route(RouteKind.STATE_CITY_CATEGORY, s, city, c)
                for s, city in cities for c in categories.values()
            ],
            RouteKind.STATE_SKILL: [
                route(RouteKind.STATE_SKILL, s, c, skill)
                for s in states for c, skill in skill_pairs
            ],
            RouteKind.CITY_SKILL: [
                route(RouteKind.CITY_SKILL, s, city, c, skill)
                for s, city in cities for c, skill in skill_pairs
            ],
            RouteKind.STATE_CERTIFICATION: [
                route(RouteKind.STATE_CERTIFICATION, s, c, cert)
                for s in states for c, cert in cert_pairs
            ],
            RouteKind.CITY_CERTIFICATION: [
                route(RouteKind.CITY_CERTIFICATION, s, city, c, cert)
                for s, city in cities for c, cert in cert_pairs
            ],
        }

    def prune(
        self,
        by_kind: Dict[RouteKind, List[Route]],
        counter: ExpertCounter,
    ) -> Dict[RouteKind, List[Route]]:
        """Attach expertCount to every route and keep those with at least one expert."""
        pruned = {}
        for kind, routes in by_kind.items():
            kept = []
            for route in routes:
                count = counter.count_route(route)
                if count > 0:
                    route.params["expertCount"] = count
                    kept.append(route)
            logger.info(f"Filtered {kind.value}: {len(routes)} -> {len(kept)}")
            pruned[kind] = kept
        return pruned

    def generate(self, data: DirectoryData) -> GenerationResult:
        """
        Main entry point: generate all routes (only those with experts when
        an expert list is supplied).
        """
        logger.info(
            f"Generating routes: {len(data.states)} states, {len(data.cities)} cities, "
            f"{len(data.categories)} categories, {len(data.skills)} skills, "
            f"{len(data.certifications)} certifications, "
            f"{len(data.experts) if data.experts is not None else 0} experts"
        )

        by_kind = self.expand(data)
        candidates = sum(len(r) for r in by_kind.values())

        if data.experts is not None:
            counter = ExpertCounter(data.experts, data.skills, data.certifications)
            by_kind = self.prune(by_kind, counter)

        routes = [route for kind in RouteKind for route in by_kind[kind]]

        stats = {"total": len(routes)}
        for kind in RouteKind:
            stats[STATS_KEYS[kind]] = len(by_kind[kind])
        stats.update({
            "candidates": candidates,
            "states": len(data.states),
            "cities": len(data.cities),
            "categories": len(data.categories),
            "skills": len(data.skills),
            "certifications": len(data.certifications),
            "experts": len(data.experts) if data.experts is not None else 0,
        })

        logger.info(f"Generated {len(routes)} total routes (from {candidates} candidates)")
        return GenerationResult(routes=routes, by_kind=by_kind, stats=stats)


def generate_all_routes(data: DirectoryData, base_path: str = DEFAULT_BASE_PATH) -> GenerationResult:
    """Convenience wrapper around RouteGenerator.generate()."""
    return RouteGenerator(base_path).generate(data)
