"""
API Router
Main router combining all API endpoints for kvgateway
"""

from fastapi import APIRouter

from .values import router as values_router

# Create main API router
api_router = APIRouter(prefix="/api")

api_router.include_router(values_router)
