"""
Experts Router - Route API
==========================
Route generation, manifest lookup and the navigation menu.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from ...core import cache as cache_keys
from ...models.directory import GenerateRoutesResponse, MenuResponse, RouteLookupResponse
from ...services.directory import DirectoryService, ManifestNotReady
from ...services.webflow import ConfigurationError, UpstreamFetchError
from .deps import get_directory_service, upstream_http_error

router = APIRouter(tags=["Routes"])


# =============================================================================
# GENERATION
# =============================================================================

@router.api_route("/routes/generate", methods=["GET", "POST"], response_model=GenerateRoutesResponse)
def generate_routes(
    force: bool = Query(False, description="Regenerate even if the cached manifest is fresh"),
    directory: DirectoryService = Depends(get_directory_service),
):
    """
    Fetch CMS data and regenerate the route manifest.

    Can be triggered manually, by a scheduler, or by a CMS webhook.
    """
    try:
        outcome = directory.generate_routes(force=force)
    except (UpstreamFetchError, ConfigurationError) as e:
        raise upstream_http_error(e)

    manifest = outcome.manifest
    if outcome.cached:
        message = "Using cached manifest. Add ?force=true to regenerate."
    elif outcome.stale:
        message = "Regeneration failed; serving the previous manifest."
    else:
        message = f"Generated {manifest.count} routes successfully"

    return GenerateRoutesResponse(
        success=not outcome.stale,
        cached=outcome.cached,
        stale=outcome.stale,
        generated=manifest.generated_at().isoformat(),
        count=manifest.count,
        stats=dict(manifest.stats),
        message=message,
    )


# =============================================================================
# MANIFEST
# =============================================================================

@router.get("/routes/manifest")
def route_manifest(directory: DirectoryService = Depends(get_directory_service)):
    """Full manifest for edge routers and client-side page setup."""
    try:
        manifest = directory.get_manifest()
    except (UpstreamFetchError, ConfigurationError) as e:
        raise upstream_http_error(e)
    return manifest.to_dict()


@router.get("/routes/lookup", response_model=RouteLookupResponse)
def lookup_route(
    path: str = Query(..., description="Listing path, e.g. /experts/texas/web-design"),
    directory: DirectoryService = Depends(get_directory_service),
):
    """Resolve one path to its route parameters (including its `type`)."""
    try:
        params = directory.lookup(path)
    except (UpstreamFetchError, ConfigurationError) as e:
        raise upstream_http_error(e)

    if params is None:
        raise HTTPException(status_code=404, detail=f"Route {path} not found")
    return RouteLookupResponse(path=path, found=True, route=dict(params))


# =============================================================================
# MENU
# =============================================================================

@router.get("/menu", response_model=MenuResponse)
def dropdown_menu(directory: DirectoryService = Depends(get_directory_service)):
    """States, top cities, categories and popular skills for the navigation menu."""
    try:
        summary = directory.menu()
    except ManifestNotReady as e:
        raise HTTPException(status_code=503, detail={
            "error": str(e),
            "message": "Please call /api/v1/routes/generate first",
        })
    except (UpstreamFetchError, ConfigurationError) as e:
        raise upstream_http_error(e)
    return summary.to_dict()


# =============================================================================
# CACHE
# =============================================================================

@router.post("/cache/invalidate")
def invalidate_cache(
    key: Optional[str] = Query(None, description="Cache key; omit to drop everything"),
    directory: DirectoryService = Depends(get_directory_service),
):
    """Drop cached collections so the next request refetches them."""
    try:
        directory.invalidate(key)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown cache key: {key}")
    return {
        "invalidated": key or "all",
        "keys": directory.cache.keys(),
        "manifestKey": cache_keys.ROUTE_MANIFEST,
    }
