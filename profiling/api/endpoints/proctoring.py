"""
Proctoring API endpoints

Handles:
- Recording structured violations
- Listing a session's violations
- Violation statistics
"""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from profiling.api.dependencies import get_session_service
from profiling.core.session_service import SessionService
from profiling.models.proctoring import ProctoringViolation, Severity, ViolationStats

router = APIRouter()


class ViolationRequest(BaseModel):
    """Request model for recording a violation."""
    session_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    violation_type: str = Field(..., min_length=1)
    severity: Severity = Severity.MEDIUM
    timestamp: datetime | None = None
    snapshot_ref: str | None = None
    description: str | None = None


@router.post(
    "/violation",
    response_model=ProctoringViolation,
    status_code=status.HTTP_201_CREATED,
)
async def record_violation(
    request: ViolationRequest,
    service: SessionService = Depends(get_session_service),
) -> ProctoringViolation:
    """Record a proctoring violation. Accepted in every session state."""
    violation = ProctoringViolation(**request.model_dump(exclude_none=True))
    return await service.record_violation(violation)


@router.get("/violations/{session_id}", response_model=list[ProctoringViolation])
async def list_violations(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> list[ProctoringViolation]:
    """List a session's violations, newest first."""
    return await service.list_violations(session_id)


@router.get("/violations/{session_id}/stats", response_model=ViolationStats)
async def violation_stats(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> ViolationStats:
    """Violation counts by type and severity."""
    return await service.violation_stats(session_id)
