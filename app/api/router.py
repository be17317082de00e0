"""
Main API router
"""
from fastapi import APIRouter

from app.api.routes import health, pages, profile, roles
from app.api.routes.admin import admin_router

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(pages.router, prefix="/pages", tags=["pages"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
api_router.include_router(roles.router, prefix="/roles", tags=["roles"])
api_router.include_router(admin_router)
