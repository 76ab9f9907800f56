"""
API layer for the assessment service

Contains FastAPI routers for:
- Session lifecycle and reports
- Test submission
- Proctoring
"""

from profiling.api.router import api_router

__all__ = ["api_router"]
