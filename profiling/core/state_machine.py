"""
Session state machine.

    CREATED -> GENERATING -> [PARTIAL_READY] -> READY -> IN_PROGRESS -> COMPLETED
                                  FAILED is reachable from any pre-COMPLETED state

PARTIAL_READY is optional: a session may go GENERATING -> READY directly when
every section lands in one merge.
"""

from profiling.core.exceptions import StateTransitionError
from profiling.models.session import Session, SessionStatus


VALID_TRANSITIONS: dict[SessionStatus, list[SessionStatus]] = {
    SessionStatus.CREATED: [SessionStatus.GENERATING, SessionStatus.FAILED],
    SessionStatus.GENERATING: [
        SessionStatus.PARTIAL_READY,
        SessionStatus.READY,
        SessionStatus.FAILED,
    ],
    SessionStatus.PARTIAL_READY: [
        SessionStatus.PARTIAL_READY,
        SessionStatus.READY,
        SessionStatus.FAILED,
    ],
    # Submission is accepted straight from READY when the client skips /start
    SessionStatus.READY: [
        SessionStatus.IN_PROGRESS,
        SessionStatus.COMPLETED,
        SessionStatus.FAILED,
    ],
    SessionStatus.IN_PROGRESS: [SessionStatus.COMPLETED, SessionStatus.FAILED],
    SessionStatus.COMPLETED: [],  # Terminal state
    SessionStatus.FAILED: [],  # Terminal state
}


def can_transition(old: SessionStatus, new: SessionStatus) -> bool:
    return new in VALID_TRANSITIONS.get(old, [])


def ensure_transition(session: Session, new_status: SessionStatus) -> None:
    """
    Move a session to a new status in place.

    Raises:
        StateTransitionError: If the transition is not allowed
    """
    old_status = session.status
    if not can_transition(old_status, new_status):
        raise StateTransitionError(
            f"Invalid transition from {old_status.value} to {new_status.value}. "
            f"Valid transitions: {[s.value for s in VALID_TRANSITIONS.get(old_status, [])]}"
        )
    session.status = new_status


def status_for_flags(
    current: SessionStatus,
    aptitude_ready: bool,
    behavioral_ready: bool,
    domain_ready: bool,
) -> SessionStatus:
    """
    Derive the generation status from the readiness flags.

    All three ready -> READY; at least one -> PARTIAL_READY; none -> unchanged.
    """
    ready = sum((aptitude_ready, behavioral_ready, domain_ready))
    if ready == 3:
        return SessionStatus.READY
    if ready > 0:
        return SessionStatus.PARTIAL_READY
    return current


def recompute_status(session: Session) -> SessionStatus:
    """Apply ``status_for_flags`` to a session that is still generating."""
    if not session.status.is_generating:
        return session.status
    new_status = status_for_flags(
        session.status,
        session.aptitude_ready,
        session.behavioral_ready,
        session.domain_ready,
    )
    if new_status != session.status:
        ensure_transition(session, new_status)
    return session.status
