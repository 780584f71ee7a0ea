"""
Routes package - organized API routes.

Import the combined router for use in main.py; it is mounted under /api/v1.
"""
from fastapi import APIRouter

from .admin_routes import router as admin_router
from .auth_routes import router as auth_router
from .client_routes import router as client_router
from .exercise_routes import router as exercise_router
from .location_routes import router as location_router
from .notification_routes import router as notification_router
from .program_routes import router as program_router
from .schedule_routes import router as schedule_router
from .session_routes import router as session_router
from .trainer_routes import router as trainer_router

API_PREFIX = "/api/v1"

# Combined router that includes all sub-routers
combined_router = APIRouter()
combined_router.include_router(auth_router, tags=["auth"])
combined_router.include_router(schedule_router, tags=["schedules"])
combined_router.include_router(session_router, tags=["sessions"])
combined_router.include_router(program_router, tags=["programs"])
combined_router.include_router(notification_router, tags=["notifications"])
combined_router.include_router(client_router, tags=["clients"])
combined_router.include_router(trainer_router, tags=["trainers"])
combined_router.include_router(exercise_router, tags=["exercises"])
combined_router.include_router(location_router, tags=["locations"])
combined_router.include_router(admin_router, tags=["admin"])

__all__ = ['combined_router', 'API_PREFIX']
