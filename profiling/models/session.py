"""
Assessment session and state models.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator

from profiling.models.proctoring import ProctoringViolation
from profiling.models.question import Answer, Question, Section
from profiling.models.report import Report
from profiling.models.user import UserInfo


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionStatus(str, Enum):
    """Session state machine states."""

    CREATED = "CREATED"              # Persisted, generation not started
    GENERATING = "GENERATING"        # Background generation running, nothing ready
    PARTIAL_READY = "PARTIAL_READY"  # Some sections ready, others still generating
    READY = "READY"                  # All sections ready
    IN_PROGRESS = "IN_PROGRESS"      # Candidate has started the timed test
    COMPLETED = "COMPLETED"          # Submission received and scored
    FAILED = "FAILED"                # Generation could not produce a usable set

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.FAILED)

    @property
    def is_generating(self) -> bool:
        return self in (SessionStatus.GENERATING, SessionStatus.PARTIAL_READY)


class SubmittedBy(str, Enum):
    """Who triggered the submission."""

    USER = "user"
    TIMER = "timer"
    PROCTOR = "proctor"


class TestResults(BaseModel):
    """Immutable statistics for a scored submission."""

    __test__ = False  # not a pytest test class

    total_questions: int = Field(..., ge=0)
    attempted: int = Field(..., ge=0)
    not_attempted: int = Field(..., ge=0)
    correct: int = Field(default=0, ge=0)
    wrong: int = Field(default=0, ge=0)
    marked_for_review: int = Field(default=0, ge=0)
    answered_and_marked_for_review: int = Field(default=0, ge=0)
    submitted_at: datetime = Field(default_factory=utcnow)
    warning_count: int = Field(default=0, ge=0)
    submitted_by: SubmittedBy = SubmittedBy.USER

    @model_validator(mode="after")
    def _check_totals(self) -> "TestResults":
        if self.attempted + self.not_attempted != self.total_questions:
            raise ValueError("attempted + not_attempted must equal total_questions")
        if self.correct + self.wrong > self.attempted:
            raise ValueError("correct + wrong must not exceed attempted")
        return self


class SessionProgress(BaseModel):
    """Lightweight status view polled by clients during generation."""

    session_id: str
    status: SessionStatus
    aptitude: bool = False
    behavioral: bool = False
    domain: bool = False
    question_count: int = 0
    failure_reason: str | None = None


class Session(BaseModel):
    """Complete assessment session record."""

    # Identification
    session_id: str = Field(default_factory=lambda: str(uuid4()))

    # Candidate
    user_info: UserInfo

    # State
    status: SessionStatus = SessionStatus.CREATED
    aptitude_ready: bool = False
    behavioral_ready: bool = False
    domain_ready: bool = False
    failure_reason: str | None = None

    # Content
    questions: list[Question] = Field(default_factory=list)
    answers: list[Answer] = Field(default_factory=list)
    test_results: TestResults | None = None
    report: Report | None = None
    proctoring_violations: list[ProctoringViolation] = Field(default_factory=list)

    # Bookkeeping
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    version: int = 0

    def is_section_ready(self, section: Section) -> bool:
        return getattr(self, f"{section.key}_ready")

    def mark_section_ready(self, section: Section) -> None:
        """Set a readiness flag. Flags only ever go from False to True."""
        setattr(self, f"{section.key}_ready", True)

    @property
    def ready_sections(self) -> list[Section]:
        return [s for s in Section if self.is_section_ready(s)]

    def questions_for(self, section: Section) -> list[Question]:
        return [q for q in self.questions if q.section_number == section.value]

    def to_progress(self) -> SessionProgress:
        return SessionProgress(
            session_id=self.session_id,
            status=self.status,
            aptitude=self.aptitude_ready,
            behavioral=self.behavioral_ready,
            domain=self.domain_ready,
            question_count=len(self.questions),
            failure_reason=self.failure_reason,
        )
