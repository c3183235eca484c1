"""
Experts Router - API Router Aggregator
"""
from fastapi import APIRouter
from ...config import settings
from .routes import router as routes_router
from .experts import router as experts_router

api_router = APIRouter(prefix=settings.api_v1_prefix)
api_router.include_router(routes_router)
api_router.include_router(experts_router)
