"""
Experts Router - Navigation Menu Summary
========================================
Derives the dropdown menu (states, top cities, categories, popular skills)
from a route manifest alone, so a manifest loaded in another process
produces the same menu.

Aggregation rules:
- States: max expertCount over every route mentioning the state
- Cities: from state-city routes, first seen wins, top N by count
- Categories: sum of expertCount over every route mentioning the category
- Skills: sum of expertCount over every route mentioning the skill, top N

Category and skill sums count an expert once per matching route, so an
expert with two skills in one category adds to that category twice.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Union

from .manifest import RouteManifest
from .route_generator import DEFAULT_BASE_PATH, RouteKind

TOP_SUBUNITS = 30
TOP_SKILLS = 10


@dataclass
class MenuSummary:
    regions: List[Dict[str, Any]] = field(default_factory=list)
    subunits: List[Dict[str, Any]] = field(default_factory=list)
    categories: List[Dict[str, Any]] = field(default_factory=list)
    skills: List[Dict[str, Any]] = field(default_factory=list)
    generated: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "regions": self.regions,
            "subunits": self.subunits,
            "categories": self.categories,
            "skills": self.skills,
            "generated": self.generated,
            "stats": {
                "totalRegions": len(self.regions),
                "totalSubunits": len(self.subunits),
                "totalCategories": len(self.categories),
                "totalSkills": len(self.skills),
            },
        }


RoutesInput = Union[RouteManifest, Mapping[str, Mapping[str, Any]]]


def summarize(
    source: RoutesInput,
    base_path: str = DEFAULT_BASE_PATH,
    top_subunits: int = TOP_SUBUNITS,
    top_skills: int = TOP_SKILLS,
) -> MenuSummary:
    """Build the menu summary from a manifest (or its `routes` mapping)."""
    base = base_path.rstrip("/")
    regions: Dict[str, Dict[str, Any]] = {}
    subunits: Dict[str, Dict[str, Any]] = {}
    categories: Dict[str, Dict[str, Any]] = {}
    skills: Dict[str, Dict[str, Any]] = {}

    for _path, params in source.items():
        count = params.get("expertCount") or 0

        state_id = params.get("stateId")
        if state_id and params.get("stateName"):
            existing = regions.get(state_id)
            if existing is None:
                regions[state_id] = {
                    "path": f"{base}/{params.get('state')}",
                    "name": params.get("stateName"),
                    "slug": params.get("state"),
                    "expertCount": count,
                }
            else:
                existing["expertCount"] = max(existing["expertCount"], count)

        city_id = params.get("cityId")
        if params.get("type") == RouteKind.STATE_CITY.value and city_id and city_id not in subunits:
            subunits[city_id] = {
                "path": f"{base}/{params.get('state')}/{params.get('city')}",
                "name": params.get("cityName"),
                "slug": params.get("city"),
                "region": params.get("stateName"),
                "regionSlug": params.get("state"),
                "expertCount": count,
            }

        category_id = params.get("categoryId")
        if category_id:
            existing = categories.get(category_id)
            if existing is None:
                categories[category_id] = {
                    "name": params.get("categoryName"),
                    "slug": params.get("category"),
                    "totalExperts": count,
                }
            else:
                existing["totalExperts"] += count

        skill_id = params.get("skillId")
        if skill_id:
            existing = skills.get(skill_id)
            if existing is None:
                skills[skill_id] = {
                    "name": params.get("skillName"),
                    "slug": params.get("skill"),
                    "category": params.get("categoryName"),
                    "categorySlug": params.get("category"),
                    "totalExperts": count,
                }
            else:
                existing["totalExperts"] += count

    generated = None
    if isinstance(source, RouteManifest):
        generated = source.generated_at().isoformat()

    return MenuSummary(
        regions=sorted(
            (r for r in regions.values() if r["expertCount"] > 0),
            key=lambda r: str(r["name"]).lower(),
        ),
        subunits=sorted(
            (c for c in subunits.values() if c["expertCount"] > 0),
            key=lambda c: c["expertCount"],
            reverse=True,
        )[:top_subunits],
        categories=sorted(
            (c for c in categories.values() if c["totalExperts"] > 0),
            key=lambda c: c["totalExperts"],
            reverse=True,
        ),
        skills=sorted(
            (s for s in skills.values() if s["totalExperts"] > 0),
            key=lambda s: s["totalExperts"],
            reverse=True,
        )[:top_skills],
        generated=generated,
    )
