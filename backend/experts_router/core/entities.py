"""
Experts Router - Entity Helpers
===============================
Shared accessors for raw Webflow CMS items.

Every collection (states, cities, categories, skills, certifications,
experts) comes back as:

    {"id": "...", "isArchived": false, "fieldData": {"name": "...", ...}}

but the field that carries a usable name or slug is not consistent across
collections, so resolution is an ordered list of accessors tried in turn.
"""

import re
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence


# =============================================================================
# FIELD NAMES
# =============================================================================

CITY_STATE_FIELD = "state"
SKILL_CATEGORIES_FIELD = "expert-category"
CERTIFICATION_CATEGORIES_FIELD = "category"

EXPERT_STATE_FIELD = "state"
EXPERT_CITY_FIELD = "city"
EXPERT_SKILLS_FIELD = "skills-2"
EXPERT_CERTIFICATIONS_FIELD = "certifications"

ARCHIVED_FIELD = "isArchived"
HIDDEN_FIELD = "hidden"

# Last-resort slug candidates must be shorter than this
MAX_FALLBACK_NAME_LENGTH = 100


Accessor = Callable[[Dict], Optional[str]]


# =============================================================================
# BASIC ACCESSORS
# =============================================================================

def field_data(item: Dict) -> Dict:
    """Return the item's fieldData mapping (empty if missing)."""
    data = item.get("fieldData")
    return data if isinstance(data, dict) else {}


def entity_id(item: Dict) -> Optional[str]:
    """Webflow v2 uses `id`; older exports use `_id`."""
    return item.get("id") or item.get("_id")


def entity_name(item: Dict) -> Optional[str]:
    return field_data(item).get("name") or item.get("name")


def reference_ids(item: Dict, field: str) -> List[str]:
    """Read a multi-reference field as a list of ids."""
    value = field_data(item).get(field)
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [v for v in value if isinstance(v, str) and v]


def reference_id(item: Dict, field: str) -> Optional[str]:
    """Read a single-reference field (falls back to the top level)."""
    value = field_data(item).get(field) or item.get(field)
    return value if isinstance(value, str) and value else None


def is_archived(item: Dict) -> bool:
    return bool(item.get(ARCHIVED_FIELD) or field_data(item).get(ARCHIVED_FIELD))


def is_hidden(item: Dict) -> bool:
    return bool(field_data(item).get(HIDDEN_FIELD))


# =============================================================================
# SLUGS
# =============================================================================

def slugify(text: Any) -> str:
    """
    Convert text to a URL-friendly slug.

    "Web  Design!" -> "web-design", "" -> "".
    """
    if not text:
        return ""
    slug = str(text).lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w\-]+", "", slug)
    slug = re.sub(r"\-\-+", "-", slug)
    return slug.strip("-")


def _explicit_slug(item: Dict) -> Optional[str]:
    return item.get("slug") or field_data(item).get("slug")


def _nested_name_slug(item: Dict) -> Optional[str]:
    return slugify(field_data(item).get("name"))


def _top_level_name_slug(item: Dict) -> Optional[str]:
    return slugify(item.get("name"))


def _first_short_string_slug(item: Dict) -> Optional[str]:
    source = item["fieldData"] if isinstance(item.get("fieldData"), dict) else item
    for value in source.values():
        if isinstance(value, str) and 0 < len(value) < MAX_FALLBACK_NAME_LENGTH:
            return slugify(value)
    return None


SLUG_STRATEGIES: Sequence[Accessor] = (
    _explicit_slug,
    _nested_name_slug,
    _top_level_name_slug,
    _first_short_string_slug,
)


def resolve_first(item: Dict, strategies: Iterable[Accessor]) -> Optional[str]:
    """Return the first non-empty value produced by the strategies."""
    for strategy in strategies:
        value = strategy(item)
        if value:
            return value
    return None


def entity_slug(item: Dict) -> Optional[str]:
    """
    Resolve the URL slug for an item.

    Order: explicit slug -> fieldData.name -> name -> first short string
    field. Returns None when nothing usable is found (unroutable entity).
    """
    return resolve_first(item, SLUG_STRATEGIES)


# =============================================================================
# LOOKUP TABLES
# =============================================================================

def index_by_id(items: Iterable[Dict]) -> Dict[str, Dict]:
    index = {}
    for item in items:
        item_id = entity_id(item)
        if item_id:
            index[item_id] = item
    return index


def index_by_name(items: Iterable[Dict]) -> Dict[str, Dict]:
    """Case-insensitive name index."""
    index = {}
    for item in items:
        name = entity_name(item)
        if name:
            index[name.lower()] = item
    return index


def names_by_id(items: Iterable[Dict]) -> Dict[str, str]:
    names = {}
    for item in items:
        item_id = entity_id(item)
        name = entity_name(item)
        if item_id and name:
            names[item_id] = name
    return names


class StateResolver:
    """
    Resolves a city's parent state.

    The city's state reference is sometimes an id and sometimes the state's
    display name, so the id index is tried first and the name index second.
    """

    def __init__(self, states: Iterable[Dict]):
        states = list(states)
        self._by_id = index_by_id(states)
        self._by_name = index_by_name(states)

    def resolve(self, city: Dict) -> Optional[Dict]:
        ref = reference_id(city, CITY_STATE_FIELD)
        if not ref:
            return None
        state = self._by_id.get(ref)
        if state is None:
            state = self._by_name.get(ref.lower())
        return state
