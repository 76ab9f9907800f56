"""
Domain errors raised by the core components.

The API layer maps each of these to an HTTP status in
``profiling.api.errors``.
"""


class ProfilingError(Exception):
    """Base class for all assessment domain errors."""


class SessionNotFoundError(ProfilingError):
    """Raised when a session id does not exist."""

    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidStateError(ProfilingError):
    """Raised when an operation is not allowed in the session's current state."""


class StateTransitionError(InvalidStateError):
    """Raised when an invalid state transition is attempted."""


class SubmissionValidationError(ProfilingError):
    """Raised when a submission payload is malformed or does not reconcile."""


class ConcurrentModificationError(ProfilingError):
    """Raised when a conditional update sees a newer version than expected."""


class GenerationError(ProfilingError):
    """Raised when an external content producer fails."""


class ContentGenerationError(GenerationError):
    """Raised when question generation for a section fails."""


class ReportGenerationError(GenerationError):
    """Raised when report synthesis fails. Callers may retry."""
