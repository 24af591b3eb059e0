"""Main API router aggregating all v1 routes."""

from fastapi import APIRouter

from ppdo.api.routes import agencies, departments, health, search, users

# Create main router
api_router = APIRouter()

# Include route modules
api_router.include_router(health.router)
api_router.include_router(search.router)
api_router.include_router(agencies.router)
api_router.include_router(departments.router)
api_router.include_router(users.router)
