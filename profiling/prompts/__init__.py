"""
AI prompt templates for the assessment service

Contains structured prompts for:
- Section question generation
- Report narrative synthesis
"""

from profiling.prompts.generator import QuestionPrompts
from profiling.prompts.report import ReportPrompts

__all__ = [
    "QuestionPrompts",
    "ReportPrompts",
]
