"""
Test-taking API endpoints

Handles:
- Submitting answers at the end of the timed test
- Logging client-detected cheat events
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, field_validator

from profiling.api.dependencies import get_session_service
from profiling.core.session_service import SessionService
from profiling.models.proctoring import as_utc
from profiling.models.session import TestResults
from profiling.models.submission import TestSubmission

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class SubmitTestResponse(BaseModel):
    """Response after a scored submission."""
    session_id: str
    status: str
    message: str
    results: TestResults


class CheatEventRequest(BaseModel):
    """A cheat event detected by the test client."""
    session_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)
    warning_count: int = Field(default=0, ge=0)
    timestamp: datetime | None = None

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value) if value is not None else None


class CheatEventResponse(BaseModel):
    status: str
    violation_id: str


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/submit", response_model=SubmitTestResponse)
async def submit_test(
    submission: TestSubmission,
    service: SessionService = Depends(get_session_service),
) -> SubmitTestResponse:
    """
    Submit the candidate's answers.

    Correct/wrong counts are recomputed server-side; the client's totals must
    agree with the recomputed ones.
    """
    results = await service.submit_test(submission)
    return SubmitTestResponse(
        session_id=submission.session_id,
        status="COMPLETED",
        message="Test submitted successfully",
        results=results,
    )


@router.post("/log-cheat-event", response_model=CheatEventResponse)
async def log_cheat_event(
    event: CheatEventRequest,
    service: SessionService = Depends(get_session_service),
) -> CheatEventResponse:
    """Record a cheat event as a proctoring violation."""
    violation = await service.log_cheat_event(
        event.session_id,
        event.user_id,
        event.reason,
        warning_count=event.warning_count,
        timestamp=event.timestamp,
    )
    return CheatEventResponse(status="logged", violation_id=violation.id)
