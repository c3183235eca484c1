"""
Experts Router - Route Manifest
===============================
Immutable path -> params lookup built from generated routes.

Serialized layout:
    {
        "generated": "2024-01-01T00:00:00+00:00",
        "count": 123,
        "routes": {"/experts/texas/web-design": {"type": "state-category", ...}},
        "stats": {...}
    }
"""

import logging
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from .route_generator import Route

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """Strip a trailing slash (but keep the root path)."""
    if len(path) > 1 and path.endswith("/"):
        return path.rstrip("/") or "/"
    return path


class RouteManifest:
    """
    Read-only snapshot of the current routes.

    A new manifest is built in full and then swapped in by the owner;
    nothing mutates an existing one.
    """

    def __init__(
        self,
        routes: Mapping[str, Mapping[str, Any]],
        generated_at: datetime,
        stats: Optional[Mapping[str, int]] = None,
    ):
        self._routes = MappingProxyType(
            {path: MappingProxyType(dict(params)) for path, params in routes.items()}
        )
        self._generated_at = generated_at
        self._stats = MappingProxyType(dict(stats or {}))

    # --- consumer contract ---------------------------------------------------

    def get(self, path: str) -> Optional[Mapping[str, Any]]:
        return self._routes.get(normalize_path(path))

    def __contains__(self, path: str) -> bool:
        return normalize_path(path) in self._routes

    def __len__(self) -> int:
        return len(self._routes)

    def all(self) -> Dict[str, Dict[str, Any]]:
        """Plain-dict copy of every route."""
        return {path: dict(params) for path, params in self._routes.items()}

    def items(self):
        return self._routes.items()

    def kind(self, path: str) -> Optional[str]:
        params = self.get(path)
        return params.get("type") if params else None

    def generated_at(self) -> datetime:
        return self._generated_at

    @property
    def count(self) -> int:
        return len(self._routes)

    @property
    def stats(self) -> Mapping[str, int]:
        return self._stats

    # --- serialization -------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "generated": self._generated_at.isoformat(),
            "count": self.count,
            "routes": self.all(),
        }
        if self._stats:
            data["stats"] = dict(self._stats)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RouteManifest":
        """Load a manifest produced by to_dict() (e.g. fetched from another process)."""
        generated = data.get("generated")
        generated_at = (
            datetime.fromisoformat(generated.replace("Z", "+00:00"))
            if generated else datetime.now(timezone.utc)
        )
        return cls(
            routes=data.get("routes") or {},
            generated_at=generated_at,
            stats=data.get("stats"),
        )


def build_manifest(
    routes: Iterable[Route],
    stats: Optional[Mapping[str, int]] = None,
    generated_at: Optional[datetime] = None,
) -> RouteManifest:
    """
    Index routes by path.

    Paths are unique by construction; if two routes do collide, the later
    one wins and a warning is logged.
    """
    indexed: Dict[str, Dict[str, Any]] = {}
    for route in routes:
        if route.path in indexed:
            logger.warning(f"Route path collision, keeping last: {route.path}")
        indexed[route.path] = route.params

    return RouteManifest(
        routes=indexed,
        generated_at=generated_at or datetime.now(timezone.utc),
        stats=stats,
    )
