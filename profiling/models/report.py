"""
Report models for the psychometric assessment.

Defines the structure of the final candidate report.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from profiling.models.user import UserInfo


class PerformanceBucket(str, Enum):
    """Overall performance classification."""

    POOR = "POOR"
    AVERAGE = "AVERAGE"
    GOOD = "GOOD"
    BEST = "BEST"

    @property
    def description(self) -> str:
        """Bucket description."""
        descriptions = {
            "POOR": "Performance is below the expected baseline and needs focused preparation.",
            "AVERAGE": "Performance is in line with the typical candidate pool.",
            "GOOD": "Performance is clearly above the typical candidate pool.",
            "BEST": "Performance places the candidate among the strongest in the pool.",
        }
        return descriptions.get(self.value, "")


class BigFiveScores(BaseModel):
    """Big Five personality trait scores on a 0-100 scale."""

    model_config = ConfigDict(frozen=True)

    openness: int = Field(default=50, ge=0, le=100)
    conscientiousness: int = Field(default=50, ge=0, le=100)
    extraversion: int = Field(default=50, ge=0, le=100)
    agreeableness: int = Field(default=50, ge=0, le=100)
    neuroticism: int = Field(default=50, ge=0, le=100)


class ScoreBreakdown(BaseModel):
    """Section and overall percentages."""

    model_config = ConfigDict(frozen=True)

    aptitude: float = Field(default=0.0, ge=0, le=100)
    behavioral: float = Field(default=0.0, ge=0, le=100)
    domain: float = Field(default=0.0, ge=0, le=100)
    overall: float = Field(default=0.0, ge=0, le=100)


class ChartData(BaseModel):
    """Reference points for the performance distribution chart."""

    model_config = ConfigDict(frozen=True)

    poor_score: int = 30
    average_score: int = 60
    best_score: int = 90
    candidate_position: PerformanceBucket


class Report(BaseModel):
    """Complete candidate report. Immutable once cached on the session."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Candidate echo
    user_info: UserInfo

    # Narrative
    summary_bio: str = ""
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    threats: list[str] = Field(default_factory=list)
    swot_analysis: str = ""
    fit_analysis: str = ""
    behavioral_insights: str = ""
    domain_insights: str = ""
    narrative_summary: str = ""

    # Scores
    big_five: BigFiveScores = Field(default_factory=BigFiveScores)
    scores: ScoreBreakdown = Field(default_factory=ScoreBreakdown)

    # Counts
    total_questions: int = 0
    attempted: int = 0
    correct: int = 0
    wrong: int = 0
    not_attempted: int = 0

    candidate_percentile: float = Field(default=0.0, ge=0, le=100)
    performance_bucket: PerformanceBucket = PerformanceBucket.POOR
    charts: ChartData
