"""
Test submission and answer-sheet export models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from profiling.models.question import Answer, QuestionType
from profiling.models.report import PerformanceBucket
from profiling.models.session import SubmittedBy, TestResults


class TestSubmission(BaseModel):
    """Everything the client sends when the timed test ends."""

    __test__ = False  # not a pytest test class

    session_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    test_id: str | None = None
    answers: list[Answer] = Field(default_factory=list)

    # Client-side tally; totals are re-checked, review counts are trusted
    results: TestResults | None = None

    warnings: int = Field(default=0, ge=0)
    submitted_by: SubmittedBy = SubmittedBy.USER


class AnswerSheetEntry(BaseModel):
    """One row of the answer sheet."""

    number: int
    question_id: str
    section_number: int
    category: str
    question_type: QuestionType
    prompt: str
    options: list[str]
    selected_option_index: int | None = None
    selected_option: str | None = None
    correct_option_index: int | None = None
    correct_option: str | None = None
    is_correct: bool | None = None  # None for ungraded items
    text_response: str | None = None


class AnswerSheet(BaseModel):
    """Per-question answer data for a completed session."""

    session_id: str
    candidate_name: str
    generated_at: datetime
    test_results: TestResults
    overall_score: float
    performance_bucket: PerformanceBucket
    entries: list[AnswerSheetEntry]
