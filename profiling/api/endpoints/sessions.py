"""
Psychometric session API endpoints

Handles session lifecycle:
- Creating sessions (starts background question generation)
- Polling generation status
- Fetching questions
- Starting the test
- Reports and answer sheets
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel

from profiling.api.dependencies import get_session_service
from profiling.core.session_service import SessionService
from profiling.models.question import Question, Section
from profiling.models.report import Report
from profiling.models.session import Session, SessionStatus, TestResults
from profiling.models.submission import AnswerSheet
from profiling.models.user import UserInfo

router = APIRouter()


# Internal state names differ from the strings clients have always polled for
WIRE_STATUS = {SessionStatus.CREATED: "CREATING"}


def wire_status(session_status: SessionStatus) -> str:
    return WIRE_STATUS.get(session_status, session_status.value)


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class CreateSessionRequest(BaseModel):
    """Request model for creating a session."""
    user_info: UserInfo


class CreateSessionResponse(BaseModel):
    """Response model for a newly created session."""
    session_id: str
    status: str
    message: str


class SessionStatusResponse(BaseModel):
    """Response for generation status polling."""
    session_id: str
    status: str
    progress: dict[str, bool]
    question_count: int
    failure_reason: str | None = None


class SessionResponse(BaseModel):
    """Read-only session snapshot."""
    session_id: str
    status: str
    user_info: UserInfo
    progress: dict[str, bool]
    questions: list[Question]
    test_results: TestResults | None = None
    has_report: bool
    failure_reason: str | None = None
    created_at: datetime
    updated_at: datetime


class QuestionsResponse(BaseModel):
    """Questions available so far."""
    session_id: str
    status: str
    questions: list[Question]
    total: int


def _section_flags(session: Session) -> dict[str, bool]:
    return {section.key: session.is_section_ready(section) for section in Section}


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("", response_model=CreateSessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: CreateSessionRequest,
    service: SessionService = Depends(get_session_service),
) -> CreateSessionResponse:
    """
    Create a new assessment session.

    Question generation runs in the background; poll /status until READY.
    """
    session = await service.create_session(request.user_info)
    return CreateSessionResponse(
        session_id=session.session_id,
        status=wire_status(session.status),
        message="Session created. Poll /status until sections are ready.",
    )


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> SessionResponse:
    """Get the full session snapshot."""
    session = await service.get_session(session_id)
    return SessionResponse(
        session_id=session.session_id,
        status=wire_status(session.status),
        user_info=session.user_info,
        progress=_section_flags(session),
        questions=session.questions,
        test_results=session.test_results,
        has_report=session.report is not None,
        failure_reason=session.failure_reason,
        created_at=session.created_at,
        updated_at=session.updated_at,
    )


@router.get("/{session_id}/status", response_model=SessionStatusResponse)
async def get_status(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> SessionStatusResponse:
    """Get generation status and per-section readiness."""
    progress = await service.get_status(session_id)
    return SessionStatusResponse(
        session_id=progress.session_id,
        status=wire_status(progress.status),
        progress={
            "aptitude": progress.aptitude,
            "behavioral": progress.behavioral,
            "domain": progress.domain,
        },
        question_count=progress.question_count,
        failure_reason=progress.failure_reason,
    )


@router.get("/{session_id}/questions", response_model=QuestionsResponse)
async def get_questions(
    session_id: str,
    section: int | None = Query(default=None, ge=1, le=3),
    service: SessionService = Depends(get_session_service),
) -> QuestionsResponse:
    """
    Get the questions generated so far.

    Ready sections can be consumed while others are still generating.
    """
    questions = await service.get_questions(
        session_id, Section(section) if section is not None else None
    )
    progress = await service.get_status(session_id)
    return QuestionsResponse(
        session_id=session_id,
        status=wire_status(progress.status),
        questions=questions,
        total=len(questions),
    )


@router.post("/{session_id}/start", response_model=SessionStatusResponse)
async def start_test(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> SessionStatusResponse:
    """Start the timed test once every section is ready."""
    session = await service.begin_test(session_id)
    return SessionStatusResponse(
        session_id=session.session_id,
        status=wire_status(session.status),
        progress=_section_flags(session),
        question_count=len(session.questions),
    )


@router.get("/{session_id}/report", response_model=Report)
async def get_report(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> Report:
    """Get the session report, generating it on first request."""
    return await service.get_report(session_id)


@router.post("/{session_id}/generate-report", response_model=Report)
async def generate_report(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> Report:
    """Regenerate the session report, replacing any cached one."""
    return await service.get_report(session_id, force=True)


@router.get("/{session_id}/answers", response_model=AnswerSheet)
async def export_answers(
    session_id: str,
    service: SessionService = Depends(get_session_service),
) -> AnswerSheet:
    """Get the per-question answer sheet for a completed session."""
    return await service.export_answers(session_id)
