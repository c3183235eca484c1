"""
Experts Router - Expert Listing Query
=====================================
Filters, enriches, shuffles and paginates the expert directory.

Steps for every request:
1. Load cached experts (archived / hidden already removed by the fetcher)
2. Load cached reference collections (skills, certifications, states, cities)
3. Attach display names for state, city, skills and certifications
4. Apply filters (all must match)
5. Shuffle with a seed that changes once per calendar day
6. Slice [offset, offset + limit)

Category filtering only looks at an expert's skills; a certification in the
category is not enough on its own.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Set

from . import cache as cache_keys
from .cache import CacheManager
from .entities import (
    EXPERT_CERTIFICATIONS_FIELD,
    EXPERT_CITY_FIELD,
    EXPERT_SKILLS_FIELD,
    EXPERT_STATE_FIELD,
    SKILL_CATEGORIES_FIELD,
    entity_id,
    names_by_id,
    reference_id,
    reference_ids,
)

logger = logging.getLogger(__name__)


DEFAULT_LIMIT = 100
DEFAULT_OFFSET = 0


class InvalidPaginationError(ValueError):
    """limit/offset was negative or not an integer."""


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass
class ExpertFilters:
    """Optional filters; unset filters match everything."""
    state_id: Optional[str] = None
    city_id: Optional[str] = None
    category_id: Optional[str] = None
    skill_id: Optional[str] = None
    certification_id: Optional[str] = None

    def is_empty(self) -> bool:
        return not any((
            self.state_id, self.city_id, self.category_id,
            self.skill_id, self.certification_id,
        ))

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "stateId": self.state_id or None,
            "cityId": self.city_id or None,
            "categoryId": self.category_id or None,
            "skillId": self.skill_id or None,
            "certificationId": self.certification_id or None,
        }


@dataclass
class ReferenceData:
    """Reference collections used for enrichment and category lookups."""
    skills: List[Dict] = field(default_factory=list)
    certifications: List[Dict] = field(default_factory=list)
    states: List[Dict] = field(default_factory=list)
    cities: List[Dict] = field(default_factory=list)


@dataclass
class ExpertPage:
    """One page of query results."""
    items: List[Dict]
    total: int
    limit: int
    offset: int
    filters: ExpertFilters = field(default_factory=ExpertFilters)

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def has_more(self) -> bool:
        return self.offset + self.count < self.total

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": self.items,
            "count": self.count,
            "total": self.total,
            "filters": self.filters.to_dict(),
            "pagination": {
                "limit": self.limit,
                "offset": self.offset,
                "hasMore": self.has_more,
            },
        }


# =============================================================================
# PAGINATION
# =============================================================================

def parse_pagination_value(value: Any, name: str, default: int) -> int:
    """
    Validate a limit/offset value.

    Accepts non-negative ints and digit strings; None means the default.
    Anything else raises InvalidPaginationError.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise InvalidPaginationError(f"{name} must be a non-negative integer")
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise InvalidPaginationError(f"{name} must be a non-negative integer, got {value!r}")
        return int(value)
    if not isinstance(value, int):
        raise InvalidPaginationError(f"{name} must be a non-negative integer, got {value!r}")
    if value < 0:
        raise InvalidPaginationError(f"{name} must be a non-negative integer, got {value}")
    return value


def paginate(items: Sequence[Dict], limit: int, offset: int) -> List[Dict]:
    return list(items[offset:offset + limit])


# =============================================================================
# DAILY SHUFFLE
# =============================================================================

def daily_seed(day: date) -> int:
    """year * 1000 + day-of-year: stable for a calendar day."""
    return day.year * 1000 + day.timetuple().tm_yday


def seeded_random(value: float) -> float:
    """frac(sin(value) * 10000), in [0, 1)."""
    x = math.sin(value) * 10000
    return x - math.floor(x)


def seeded_shuffle(items: Sequence[Any], seed: int) -> List[Any]:
    """
    Fisher-Yates shuffle driven by seeded_random().

    Walks i from the last index down to 1 and swaps i with
    j = floor(seeded_random(seed + i) * (i + 1)). Returns a new list.
    """
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(math.floor(seeded_random(seed + i) * (i + 1)))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


# =============================================================================
# ENRICHMENT & FILTERING
# =============================================================================

def _resolve_names(ids: List[str], names: Dict[str, str]) -> List[str]:
    return [names[i] for i in ids if i in names]


def enrich_experts(experts: List[Dict], reference: ReferenceData) -> List[Dict]:
    """
    Return copies of the experts with display names attached.

    Adds stateName, cityName, skillNames and certificationNames. References
    that don't resolve are left out.
    """
    state_names = names_by_id(reference.states)
    city_names = names_by_id(reference.cities)
    skill_names = names_by_id(reference.skills)
    cert_names = names_by_id(reference.certifications)

    enriched = []
    for expert in experts:
        item = dict(expert)
        item["stateName"] = state_names.get(reference_id(expert, EXPERT_STATE_FIELD))
        item["cityName"] = city_names.get(reference_id(expert, EXPERT_CITY_FIELD))
        item["skillNames"] = _resolve_names(reference_ids(expert, EXPERT_SKILLS_FIELD), skill_names)
        item["certificationNames"] = _resolve_names(
            reference_ids(expert, EXPERT_CERTIFICATIONS_FIELD), cert_names
        )
        enriched.append(item)
    return enriched


def skills_in_category(skills: List[Dict], category_id: str) -> Set[str]:
    return {
        entity_id(skill) for skill in skills
        if category_id in reference_ids(skill, SKILL_CATEGORIES_FIELD)
    }


def filter_experts(experts: List[Dict], filters: ExpertFilters, skills: List[Dict]) -> List[Dict]:
    """Keep experts matching every filter that is set."""
    if filters.is_empty():
        return list(experts)

    category_skills = skills_in_category(skills, filters.category_id) if filters.category_id else set()

    matched = []
    for expert in experts:
        if filters.state_id and reference_id(expert, EXPERT_STATE_FIELD) != filters.state_id:
            continue
        if filters.city_id and reference_id(expert, EXPERT_CITY_FIELD) != filters.city_id:
            continue

        expert_skills = reference_ids(expert, EXPERT_SKILLS_FIELD)
        if filters.skill_id and filters.skill_id not in expert_skills:
            continue
        if filters.certification_id and filters.certification_id not in reference_ids(
            expert, EXPERT_CERTIFICATIONS_FIELD
        ):
            continue
        if filters.category_id and not any(s in category_skills for s in expert_skills):
            continue

        matched.append(expert)
    return matched


# =============================================================================
# ENGINE
# =============================================================================

def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


class ExpertQueryEngine:
    """
    Answers expert listing requests from cached collections.

    Expects the cache manager to have cells registered for experts, skills,
    certifications, states and cities.
    """

    def __init__(self, cache: CacheManager, today: Optional[Callable[[], date]] = None):
        self.cache = cache
        self.today = today or _utc_today

    def reference_data(self) -> ReferenceData:
        return ReferenceData(
            skills=self.cache.get(cache_keys.SKILLS),
            certifications=self.cache.get(cache_keys.CERTIFICATIONS),
            states=self.cache.get(cache_keys.STATES),
            cities=self.cache.get(cache_keys.CITIES),
        )

    def query(
        self,
        filters: Optional[ExpertFilters] = None,
        limit: Any = DEFAULT_LIMIT,
        offset: Any = DEFAULT_OFFSET,
    ) -> ExpertPage:
        filters = filters or ExpertFilters()
        limit = parse_pagination_value(limit, "limit", DEFAULT_LIMIT)
        offset = parse_pagination_value(offset, "offset", DEFAULT_OFFSET)

        experts = self.cache.get(cache_keys.EXPERTS)
        reference = self.reference_data()

        enriched = enrich_experts(experts, reference)
        filtered = filter_experts(enriched, filters, reference.skills)
        shuffled = seeded_shuffle(filtered, daily_seed(self.today()))

        logger.info(
            f"Expert query {filters.to_dict()}: {len(filtered)}/{len(experts)} matched "
            f"(limit={limit}, offset={offset})"
        )

        return ExpertPage(
            items=paginate(shuffled, limit, offset),
            total=len(filtered),
            limit=limit,
            offset=offset,
            filters=filters,
        )
