"""
Experts Router - Webflow CMS Service
====================================
Fetches complete collections from the Webflow Data API (v2).

Collections are paginated 100 items at a time; a short page means the
collection is exhausted. Archived items are removed for experts, skills and
certifications, and hidden experts are removed as well.
"""

import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

import requests

from ..core.entities import is_archived, is_hidden
from ..core.route_generator import DirectoryData

logger = logging.getLogger(__name__)


WEBFLOW_API_BASE_URL = "https://api.webflow.com/v2"
PAGE_SIZE = 100


class ConfigurationError(RuntimeError):
    """Required Webflow settings are missing."""


class UpstreamFetchError(RuntimeError):
    """Webflow was unreachable or returned a non-success status."""

    def __init__(self, collection_id: str, status_code: Optional[int] = None, detail: str = ""):
        self.collection_id = collection_id
        self.status_code = status_code
        self.detail = detail
        status = status_code if status_code is not None else "no response"
        super().__init__(f"Failed to fetch collection {collection_id} ({status}): {detail}")


@dataclass
class CollectionIds:
    """Webflow collection ids for every entity type."""
    experts: Optional[str] = None
    states: Optional[str] = None
    cities: Optional[str] = None
    categories: Optional[str] = None
    skills: Optional[str] = None
    certifications: Optional[str] = None

    @classmethod
    def from_settings(cls, settings) -> "CollectionIds":
        return cls(
            experts=settings.webflow_experts_collection_id,
            states=settings.webflow_states_collection_id,
            cities=settings.webflow_cities_collection_id,
            categories=settings.webflow_categories_collection_id,
            skills=settings.webflow_skills_collection_id,
            certifications=settings.webflow_certifications_collection_id,
        )


class WebflowClient:
    """Thin client over the Webflow collection items endpoint."""

    def __init__(
        self,
        api_token: Optional[str],
        base_url: str = WEBFLOW_API_BASE_URL,
        page_size: int = PAGE_SIZE,
        page_delay: float = 0.1,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self.page_delay = page_delay
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings) -> "WebflowClient":
        return cls(
            api_token=settings.webflow_api_token,
            base_url=settings.webflow_api_base_url,
            page_size=settings.webflow_page_size,
            page_delay=settings.webflow_page_delay_seconds,
            timeout=settings.webflow_timeout_seconds,
        )

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "accept-version": "1.0.0",
            "Content-Type": "application/json",
        }

    def _get_page(self, collection_id: str, offset: int) -> List[Dict]:
        url = f"{self.base_url}/collections/{collection_id}/items"
        params = {"offset": offset, "limit": self.page_size}
        try:
            response = self.session.get(url, headers=self.headers, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamFetchError(collection_id, None, str(e)) from e

        if response.status_code != 200:
            raise UpstreamFetchError(collection_id, response.status_code, response.text[:500])

        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamFetchError(collection_id, response.status_code, f"Invalid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise UpstreamFetchError(
                collection_id, response.status_code, f"Expected a JSON object, got {type(payload).__name__}"
            )

        return payload.get("items") or []

    def fetch_collection(self, collection_id: Optional[str]) -> List[Dict]:
        """Fetch every item in a collection, following offset pagination."""
        if not self.api_token:
            raise ConfigurationError("WEBFLOW_API_TOKEN environment variable is required")
        if not collection_id:
            raise ConfigurationError("Collection id is not configured")

        items: List[Dict] = []
        offset = 0
        while True:
            page = self._get_page(collection_id, offset)
            items.extend(page)
            if len(page) < self.page_size:
                break
            offset += self.page_size
            if self.page_delay:
                time.sleep(self.page_delay)  # rate limit

        logger.info(f"Fetched {len(items)} items from collection {collection_id}")
        return items

    # --- per-entity helpers -------------------------------------------------

    def get_experts(self, collection_id: Optional[str]) -> List[Dict]:
        """Active experts: archived and hidden items removed."""
        items = self.fetch_collection(collection_id)
        return [i for i in items if not is_archived(i) and not is_hidden(i)]

    def get_skills(self, collection_id: Optional[str]) -> List[Dict]:
        return [i for i in self.fetch_collection(collection_id) if not is_archived(i)]

    def get_certifications(self, collection_id: Optional[str]) -> List[Dict]:
        """Certifications are optional; an unset collection yields nothing."""
        if not collection_id:
            return []
        return [i for i in self.fetch_collection(collection_id) if not is_archived(i)]

    def get_states(self, collection_id: Optional[str]) -> List[Dict]:
        return self.fetch_collection(collection_id)

    def get_cities(self, collection_id: Optional[str]) -> List[Dict]:
        return self.fetch_collection(collection_id)

    def get_categories(self, collection_id: Optional[str]) -> List[Dict]:
        return self.fetch_collection(collection_id)

    def fetch_all(self, ids: CollectionIds) -> DirectoryData:
        """Fetch all CMS data needed for route generation."""
        logger.info("Fetching all CMS data from Webflow...")
        return DirectoryData(
            states=self.get_states(ids.states),
            cities=self.get_cities(ids.cities),
            categories=self.get_categories(ids.categories),
            skills=self.get_skills(ids.skills),
            certifications=self.get_certifications(ids.certifications),
            experts=self.get_experts(ids.experts),
        )
