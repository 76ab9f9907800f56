"""
Proctoring violation models.
"""

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_utc(value: datetime) -> datetime:
    """Treat timezone-less timestamps from clients as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ProctoringViolation(BaseModel):
    """A structured record of a suspected integrity issue. Never mutated."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    session_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    violation_type: str = Field(..., min_length=1)
    severity: Severity = Severity.MEDIUM
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    snapshot_ref: str | None = None
    description: str | None = None

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ViolationStats(BaseModel):
    """Aggregate view of a session's violations."""

    session_id: str
    total: int = 0
    by_type: dict[str, int] = Field(default_factory=dict)
    by_severity: dict[str, int] = Field(default_factory=dict)
