"""
Experts Router - API Models
===========================
Pydantic models for response validation.
"""

from pydantic import BaseModel
from typing import Any, Dict, List, Optional


# =============================================================
# ROUTES
# =============================================================

class GenerateRoutesResponse(BaseModel):
    success: bool
    cached: bool = False
    stale: bool = False
    generated: str
    count: int
    stats: Dict[str, int]
    message: str


class RouteLookupResponse(BaseModel):
    path: str
    found: bool
    route: Optional[Dict[str, Any]] = None


# =============================================================
# MENU
# =============================================================

class MenuRegion(BaseModel):
    path: str
    name: str
    slug: str
    expertCount: int


class MenuSubunit(BaseModel):
    path: str
    name: Optional[str] = None
    slug: str
    region: Optional[str] = None
    regionSlug: str
    expertCount: int


class MenuCategory(BaseModel):
    name: Optional[str] = None
    slug: str
    totalExperts: int


class MenuSkill(BaseModel):
    name: Optional[str] = None
    slug: str
    category: Optional[str] = None
    categorySlug: str
    totalExperts: int


class MenuResponse(BaseModel):
    regions: List[MenuRegion]
    subunits: List[MenuSubunit]
    categories: List[MenuCategory]
    skills: List[MenuSkill]
    generated: Optional[str] = None
    stats: Dict[str, int]


# =============================================================
# EXPERTS
# =============================================================

class ExpertFiltersModel(BaseModel):
    stateId: Optional[str] = None
    cityId: Optional[str] = None
    categoryId: Optional[str] = None
    skillId: Optional[str] = None
    certificationId: Optional[str] = None


class Pagination(BaseModel):
    limit: int
    offset: int
    hasMore: bool


class ExpertListResponse(BaseModel):
    """Filtered, shuffled page of experts (raw CMS items plus display names)."""
    items: List[Dict[str, Any]]
    count: int
    total: int
    filters: ExpertFiltersModel
    pagination: Pagination
