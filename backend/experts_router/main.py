"""
Experts Router - FastAPI Backend
================================
Listing routes and filtered expert queries for a Webflow experts directory.
Main entry point for the API server.
"""
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .api.v1.router import api_router
from .services.directory import DirectoryService


# =============================================================
# LIFESPAN
# =============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    # One DirectoryService (and its caches) per process
    if getattr(app.state, "directory", None) is None:
        app.state.directory = DirectoryService.from_settings(settings)
    yield


# =============================================================
# APP INITIALIZATION
# =============================================================
app = FastAPI(
    title=settings.project_name,
    description="""
## Experts Directory Router
Generates every state / city / category / skill / certification listing
URL that has at least one expert, and serves filtered expert lists.

### Key Features:
- Route manifest with expert counts
- Navigation menu summary
- Filtered, daily-shuffled expert listing
    """,
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# =============================================================
# MIDDLEWARE
# =============================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# =============================================================
# ROUTES
# =============================================================
app.include_router(api_router)

@app.get("/", tags=["Root"])
async def root():
    """Welcome endpoint."""
    return {
        "name": settings.project_name,
        "version": settings.version,
        "environment": settings.environment,
        "status": "healthy",
        "docs": "/docs",
    }

@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    manifest = app.state.directory.get_manifest(generate=False) if getattr(app.state, "directory", None) else None
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "version": settings.version,
        "environment": settings.environment,
        "manifest": {
            "generated": manifest.generated_at().isoformat() if manifest else None,
            "count": manifest.count if manifest else 0,
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
