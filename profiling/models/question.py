"""
Question and answer models for the psychometric assessment.
"""

from enum import Enum, IntEnum
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


class Section(IntEnum):
    """The three independently generated question sections."""

    APTITUDE = 1
    BEHAVIORAL = 2
    DOMAIN = 3

    @property
    def display_name(self) -> str:
        """Human-readable section name."""
        names = {
            1: "Aptitude & Cognitive",
            2: "Behavioral & Personality",
            3: "Domain & Career Fit",
        }
        return names[self.value]

    @property
    def key(self) -> str:
        """Short lowercase key used in progress maps and score breakdowns."""
        return self.name.lower()


class QuestionType(str, Enum):
    """How a question is presented and scored."""

    MCQ = "MCQ"            # Objective multiple choice with an answer key
    SJT = "SJT"            # Situational judgment, scored by trait impact
    SCENARIO = "SCENARIO"  # Domain scenario, usually with an answer key
    TEXT = "TEXT"          # Free-text response, never graded


class Question(BaseModel):
    """A single assessment question."""

    id: str = Field(default_factory=lambda: f"q_{uuid4().hex[:12]}")
    section_number: int = Field(..., ge=1, le=3)
    category: str = ""
    question_type: QuestionType = QuestionType.MCQ

    prompt: str = Field(..., min_length=1)
    scenario: str | None = None
    options: list[str] = Field(default_factory=list)

    # Answer key for objective items only
    correct_option_index: int | None = None

    # Per-option effectiveness (0-100) and explanation for behavioral items
    trait_impact_scores: list[int] | None = None
    rationales: list[str] | None = None

    @model_validator(mode="after")
    def _check_option_alignment(self) -> "Question":
        n = len(self.options)
        if self.correct_option_index is not None and not 0 <= self.correct_option_index < n:
            raise ValueError(
                f"correct_option_index {self.correct_option_index} out of range for {n} options"
            )
        if self.trait_impact_scores is not None:
            if len(self.trait_impact_scores) != n:
                raise ValueError("trait_impact_scores must have one entry per option")
            if any(not 0 <= s <= 100 for s in self.trait_impact_scores):
                raise ValueError("trait_impact_scores must be within 0-100")
        if self.rationales is not None and len(self.rationales) != n:
            raise ValueError("rationales must have one entry per option")
        return self

    @property
    def section(self) -> Section:
        return Section(self.section_number)

    @property
    def is_objective(self) -> bool:
        """Whether the question has an answer key and counts toward correct/wrong."""
        return self.correct_option_index is not None


class Answer(BaseModel):
    """A candidate's answer to one question."""

    question_id: str = Field(..., min_length=1)
    selected_option_index: int | None = None
    text_response: str | None = None

    @property
    def is_attempted(self) -> bool:
        """Both fields empty means the question was not attempted."""
        if self.selected_option_index is not None:
            return True
        return bool(self.text_response and self.text_response.strip())
