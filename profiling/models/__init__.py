"""
Data models and schemas for the assessment service

Contains Pydantic models for:
- Assessment sessions and candidate profiles
- Questions and answers
- Scored test results
- Reports
- Proctoring violations
"""

from profiling.models.user import UserInfo, Gender
from profiling.models.question import Question, QuestionType, Answer, Section
from profiling.models.session import (
    Session,
    SessionStatus,
    SessionProgress,
    TestResults,
    SubmittedBy,
)
from profiling.models.report import (
    Report,
    BigFiveScores,
    ScoreBreakdown,
    ChartData,
    PerformanceBucket,
)
from profiling.models.proctoring import ProctoringViolation, Severity, ViolationStats
from profiling.models.submission import TestSubmission, AnswerSheet, AnswerSheetEntry

__all__ = [
    # Candidate
    "UserInfo",
    "Gender",
    # Question
    "Question",
    "QuestionType",
    "Answer",
    "Section",
    # Session
    "Session",
    "SessionStatus",
    "SessionProgress",
    "TestResults",
    "SubmittedBy",
    # Report
    "Report",
    "BigFiveScores",
    "ScoreBreakdown",
    "ChartData",
    "PerformanceBucket",
    # Proctoring
    "ProctoringViolation",
    "Severity",
    "ViolationStats",
    # Submission
    "TestSubmission",
    "AnswerSheet",
    "AnswerSheetEntry",
]
