"""
Backend API package initialization.

This package contains FastAPI router modules for the onboarding wizard:
- organization: Hierarchy, customer types, entity attributes and KPI counters
- program: Value type, value config, tiers and earning rules
- queues: Alert queues and signal templates
"""

from fastapi import APIRouter

# Import router modules
from loyalty_backend.api.organization import router as organization_router
from loyalty_backend.api.program import router as program_router
from loyalty_backend.api.queues import router as queues_router

# Create main API router
api_router = APIRouter()

# Include all sub-routers
api_router.include_router(organization_router, prefix="/organization", tags=["organization"])
api_router.include_router(program_router, prefix="/program", tags=["program"])
api_router.include_router(queues_router, prefix="/queues", tags=["queues"])

# Export all routers for selective imports
__all__ = [
    "api_router",
    "organization_router",
    "program_router",
    "queues_router",
]
