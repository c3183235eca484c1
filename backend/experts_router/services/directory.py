"""
Experts Router - Directory Service
==================================
Owns every process-local cache: one cell per CMS collection plus the
current route manifest and its menu summary.

Created once at startup and handed to the request handlers. The manifest
is rebuilt in full and then swapped in; readers see either the previous
manifest or the new one. Concurrent generation requests wait on the one
already running.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import date
from functools import partial
from typing import Any, Callable, Optional, Tuple

from ..core import cache as cache_keys
from ..core.cache import CacheManager, Clock
from ..core.expert_query import ExpertFilters, ExpertPage, ExpertQueryEngine
from ..core.manifest import RouteManifest, build_manifest
from ..core.menu import TOP_SKILLS, TOP_SUBUNITS, MenuSummary, summarize
from ..core.route_generator import DEFAULT_BASE_PATH, DirectoryData, RouteGenerator
from .webflow import CollectionIds, WebflowClient

logger = logging.getLogger(__name__)


class ManifestNotReady(RuntimeError):
    """No manifest has been generated yet."""


@dataclass
class GenerationOutcome:
    manifest: RouteManifest
    cached: bool = False  # fresh manifest reused, nothing regenerated
    stale: bool = False   # regeneration failed, previous manifest served


class DirectoryService:
    """Cache manager for the experts directory."""

    def __init__(
        self,
        client: WebflowClient,
        collection_ids: CollectionIds,
        base_path: str = DEFAULT_BASE_PATH,
        manifest_ttl_seconds: float = 24 * 60 * 60,
        experts_ttl_seconds: float = 5 * 60,
        reference_ttl_seconds: float = 30 * 60,
        top_subunits: int = TOP_SUBUNITS,
        top_skills: int = TOP_SKILLS,
        clock: Optional[Clock] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        self.client = client
        self.collection_ids = collection_ids
        self.base_path = base_path
        self.top_subunits = top_subunits
        self.top_skills = top_skills
        self.generator = RouteGenerator(base_path)

        ids = collection_ids
        self.cache = CacheManager(clock)
        self.cache.register(cache_keys.EXPERTS, lambda: client.get_experts(ids.experts), experts_ttl_seconds)
        self.cache.register(cache_keys.SKILLS, lambda: client.get_skills(ids.skills), reference_ttl_seconds)
        self.cache.register(
            cache_keys.CERTIFICATIONS,
            lambda: client.get_certifications(ids.certifications),
            reference_ttl_seconds,
        )
        self.cache.register(cache_keys.STATES, lambda: client.get_states(ids.states), reference_ttl_seconds)
        self.cache.register(cache_keys.CITIES, lambda: client.get_cities(ids.cities), reference_ttl_seconds)
        self.cache.register(
            cache_keys.CATEGORIES, lambda: client.get_categories(ids.categories), reference_ttl_seconds
        )
        self.cache.register(
            cache_keys.ROUTE_MANIFEST,
            self._build_manifest,
            manifest_ttl_seconds,
            serve_stale_on_error=True,
        )

        self.query_engine = ExpertQueryEngine(self.cache, today=today)
        self._generation_lock = threading.Lock()
        self._menu: Optional[Tuple[RouteManifest, MenuSummary]] = None

    @classmethod
    def from_settings(cls, settings) -> "DirectoryService":
        return cls(
            client=WebflowClient.from_settings(settings),
            collection_ids=CollectionIds.from_settings(settings),
            base_path=settings.experts_base_path,
            manifest_ttl_seconds=settings.manifest_ttl_seconds,
            experts_ttl_seconds=settings.experts_cache_ttl_seconds,
            reference_ttl_seconds=settings.reference_cache_ttl_seconds,
            top_subunits=settings.menu_top_subunits,
            top_skills=settings.menu_top_skills,
        )

    # =========================================================================
    # ROUTES
    # =========================================================================

    def _build_manifest(self, refresh_collections: bool = False) -> RouteManifest:
        """
        Build a complete new manifest from the collection caches.

        Fresh collection cells are reused; with `refresh_collections` every
        collection is refetched first.
        """
        load = self.cache.force_refresh if refresh_collections else self.cache.get
        data = DirectoryData(
            states=load(cache_keys.STATES),
            cities=load(cache_keys.CITIES),
            categories=load(cache_keys.CATEGORIES),
            skills=load(cache_keys.SKILLS),
            certifications=load(cache_keys.CERTIFICATIONS),
            experts=load(cache_keys.EXPERTS),
        )
        result = self.generator.generate(data)
        return build_manifest(result.routes, stats=result.stats)

    def generate_routes(self, force: bool = False) -> GenerationOutcome:
        """
        Regenerate the manifest unless a fresh one exists (or force is set).

        If regeneration fails and a previous manifest exists it is served
        instead; with no previous manifest the UpstreamFetchError propagates.
        """
        cell = self.cache.cell(cache_keys.ROUTE_MANIFEST)
        with self._generation_lock:
            if not force and cell.is_fresh():
                logger.info("Using cached manifest")
                return GenerationOutcome(manifest=cell.peek(), cached=True)

            previous = cell.peek()
            logger.info(f"Starting route generation (force={force})...")
            manifest = cell.force_refresh(partial(self._build_manifest, refresh_collections=force))
            if previous is not None and manifest is previous:
                return GenerationOutcome(manifest=manifest, stale=True)

            self._menu = (manifest, self._summarize(manifest))
            logger.info(f"Route generation complete: {manifest.count} routes")
            return GenerationOutcome(manifest=manifest)

    def get_manifest(self, generate: bool = True) -> Optional[RouteManifest]:
        """
        Current manifest.

        When it is missing or past its TTL and `generate` is set, it is
        regenerated first. None means nothing has been generated yet.
        """
        cell = self.cache.cell(cache_keys.ROUTE_MANIFEST)
        if generate and not cell.is_fresh():
            return self.generate_routes().manifest
        return cell.peek()

    def lookup(self, path: str) -> Optional[Any]:
        manifest = self.get_manifest()
        return manifest.get(path) if manifest else None

    # =========================================================================
    # MENU
    # =========================================================================

    def _summarize(self, manifest: RouteManifest) -> MenuSummary:
        return summarize(
            manifest,
            base_path=self.base_path,
            top_subunits=self.top_subunits,
            top_skills=self.top_skills,
        )

    def menu(self, generate: bool = True) -> MenuSummary:
        manifest = self.get_manifest(generate=generate)
        if manifest is None:
            raise ManifestNotReady("Route manifest not yet generated")

        cached = self._menu
        if cached is not None and cached[0] is manifest:
            return cached[1]

        summary = self._summarize(manifest)
        self._menu = (manifest, summary)
        return summary

    # =========================================================================
    # EXPERTS
    # =========================================================================

    def query_experts(
        self,
        filters: Optional[ExpertFilters] = None,
        limit: Any = None,
        offset: Any = None,
    ) -> ExpertPage:
        return self.query_engine.query(filters, limit=limit, offset=offset)

    # =========================================================================
    # CACHE CONTROL
    # =========================================================================

    def invalidate(self, key: Optional[str] = None) -> None:
        self.cache.invalidate(key)
        if key is None or key == cache_keys.ROUTE_MANIFEST:
            self._menu = None

    def force_refresh(self, key: str) -> Any:
        if key == cache_keys.ROUTE_MANIFEST:
            return self.generate_routes(force=True).manifest
        return self.cache.force_refresh(key)
