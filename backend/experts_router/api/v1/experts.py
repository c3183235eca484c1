"""
Experts Router - Experts API
============================
Filtered, paginated expert listing.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ...config import settings
from ...core.expert_query import ExpertFilters, InvalidPaginationError, parse_pagination_value
from ...models.directory import ExpertListResponse
from ...services.directory import DirectoryService
from ...services.webflow import ConfigurationError, UpstreamFetchError
from .deps import get_directory_service, upstream_http_error

router = APIRouter(prefix="/experts", tags=["Experts"])


@router.get("", response_model=ExpertListResponse)
def list_experts(
    stateId: Optional[str] = Query(None, description="Filter by state ID"),
    cityId: Optional[str] = Query(None, description="Filter by city ID"),
    categoryId: Optional[str] = Query(None, description="Filter by category ID (via the expert's skills)"),
    skillId: Optional[str] = Query(None, description="Filter by skill ID"),
    certificationId: Optional[str] = Query(None, description="Filter by certification ID"),
    limit: Optional[str] = Query(None, description="Page size (non-negative integer)"),
    offset: Optional[str] = Query(None, description="Items to skip (non-negative integer)"),
    directory: DirectoryService = Depends(get_directory_service),
):
    """
    List experts matching every given filter.

    Order is shuffled once per day, so paging through the same filters on
    the same day is stable.
    """
    filters = ExpertFilters(
        state_id=stateId,
        city_id=cityId,
        category_id=categoryId,
        skill_id=skillId,
        certification_id=certificationId,
    )
    try:
        page_size = parse_pagination_value(limit, "limit", settings.experts_default_limit)
        skip = parse_pagination_value(offset, "offset", 0)
        page = directory.query_experts(
            filters, limit=min(page_size, settings.experts_max_limit), offset=skip
        )
    except InvalidPaginationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (UpstreamFetchError, ConfigurationError) as e:
        raise upstream_http_error(e)
    return page.to_dict()
