"""
Experts Router - API Dependencies
"""
from fastapi import HTTPException, Request

from ...services.directory import DirectoryService
from ...services.webflow import ConfigurationError, UpstreamFetchError


def get_directory_service(request: Request) -> DirectoryService:
    """The DirectoryService created at startup."""
    return request.app.state.directory


def upstream_http_error(error: Exception) -> HTTPException:
    """Map Webflow / configuration failures to 503."""
    if isinstance(error, UpstreamFetchError):
        detail = {
            "error": "Content store unavailable",
            "message": str(error),
            "upstreamStatus": error.status_code,
        }
    elif isinstance(error, ConfigurationError):
        detail = {"error": "Service not configured", "message": str(error)}
    else:
        detail = {"error": "Service unavailable", "message": str(error)}
    return HTTPException(status_code=503, detail=detail)
