"""
Experts Router Configuration
============================
Centralized configuration management for all environments.
"""
from pydantic_settings import BaseSettings
from typing import Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Environment
    environment: str = "development"
    debug: bool = True

    # API
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Experts Router"
    version: str = "1.0.0"

    # Webflow CMS
    webflow_api_token: Optional[str] = None
    webflow_api_base_url: str = "https://api.webflow.com/v2"
    webflow_experts_collection_id: Optional[str] = None
    webflow_cities_collection_id: Optional[str] = None
    webflow_states_collection_id: Optional[str] = None
    webflow_skills_collection_id: Optional[str] = None
    webflow_categories_collection_id: Optional[str] = None
    webflow_certifications_collection_id: Optional[str] = None
    webflow_page_size: int = 100
    webflow_page_delay_seconds: float = 0.1
    webflow_timeout_seconds: float = 30.0

    # Routing
    experts_base_path: str = "/experts"

    # Caching
    cache_duration_hours: float = 24
    experts_cache_ttl_seconds: float = 5 * 60
    reference_cache_ttl_seconds: float = 30 * 60

    # Expert listing
    experts_default_limit: int = 100
    experts_max_limit: int = 1000

    # Menu
    menu_top_subunits: int = 30
    menu_top_skills: int = 10

    # CORS
    cors_origins: list = ["*"]


    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def manifest_ttl_seconds(self) -> float:
        return self.cache_duration_hours * 60 * 60


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()
