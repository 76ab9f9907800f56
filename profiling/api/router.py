"""
Main API router for the assessment service

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from profiling.api.endpoints import sessions, test, proctoring

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    sessions.router,
    prefix="/psychometric/sessions",
    tags=["Sessions"]
)

api_router.include_router(
    test.router,
    prefix="/test",
    tags=["Test"]
)

api_router.include_router(
    proctoring.router,
    prefix="/test/proctoring",
    tags=["Proctoring"]
)
