"""
API endpoint modules for the assessment service
"""

from profiling.api.endpoints import sessions, test, proctoring

__all__ = ["sessions", "test", "proctoring"]
