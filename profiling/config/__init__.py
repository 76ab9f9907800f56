"""
Configuration for the assessment service.
"""

from profiling.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
