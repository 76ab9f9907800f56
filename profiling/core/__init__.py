"""
Core business logic modules for the assessment service

Contains:
- Session Store: Versioned per-session storage with single-writer updates
- State Machine: Session lifecycle transitions
- Generation Coordinator: Background section generation
- Scoring Engine: Submission scoring and report scores
- Report Generator / Report Cache: Report synthesis, computed once per session
- Proctoring Ledger: Append-only violation records
- Session Service: Facade used by the API layer
"""

from profiling.core.session_store import SessionStore, InMemorySessionStore, FileSessionStore
from profiling.core.generation_coordinator import GenerationCoordinator
from profiling.core.question_generator import LLMQuestionGenerator, QuestionBankGenerator
from profiling.core.report_generator import ReportGenerator
from profiling.core.report_cache import ReportCache
from profiling.core.proctoring_ledger import ProctoringLedger
from profiling.core.session_service import SessionService

__all__ = [
    "SessionStore",
    "InMemorySessionStore",
    "FileSessionStore",
    "GenerationCoordinator",
    "LLMQuestionGenerator",
    "QuestionBankGenerator",
    "ReportGenerator",
    "ReportCache",
    "ProctoringLedger",
    "SessionService",
]
