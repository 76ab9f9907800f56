"""
Session Service - facade over the assessment lifecycle.

This is the single entry point the API layer talks to. It wires together
the session store, the generation coordinator, the scoring engine, the
report cache and the proctoring ledger, and owns the state checks for
candidate-driven actions (begin test, submit, export).
"""

import logging
from datetime import datetime, timezone
from typing import Any

from profiling.core import scoring_engine
from profiling.core.exceptions import InvalidStateError
from profiling.core.generation_coordinator import GenerationCoordinator
from profiling.core.proctoring_ledger import ProctoringLedger
from profiling.core.report_cache import ReportCache
from profiling.core.session_store import SessionStore
from profiling.core.state_machine import ensure_transition
from profiling.models.proctoring import ProctoringViolation, ViolationStats
from profiling.models.question import Question, Section
from profiling.models.report import Report
from profiling.models.session import Session, SessionProgress, SessionStatus, TestResults
from profiling.models.submission import AnswerSheet, AnswerSheetEntry, TestSubmission
from profiling.models.user import UserInfo

logger = logging.getLogger(__name__)

SUBMITTABLE_STATES = (SessionStatus.READY, SessionStatus.IN_PROGRESS)


class SessionService:
    """
    Coordinates a candidate session from creation to report.

    Flow:
        create_session -> (background generation) -> begin_test
            -> submit_test -> get_report / export_answers
    """

    def __init__(
        self,
        store: SessionStore,
        coordinator: GenerationCoordinator,
        report_cache: ReportCache,
        ledger: ProctoringLedger,
        prewarm_report: bool = False,
    ):
        """
        Initialize the service with its collaborators.

        Args:
            store: Session storage
            coordinator: Background section generation
            report_cache: Memoized report synthesis
            ledger: Proctoring violation records
            prewarm_report: Start report generation right after submission
        """
        self.store = store
        self.coordinator = coordinator
        self.report_cache = report_cache
        self.ledger = ledger
        self.prewarm_report = prewarm_report

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    async def create_session(self, user_info: UserInfo) -> Session:
        """
        Persist a new session and start generating its questions.

        Returns immediately; progress is observed through ``get_status``.
        """
        session = await self.store.create(Session(user_info=user_info))
        logger.info(f"Created session {session.session_id} for {user_info.email}")
        await self.coordinator.start_generation(session.session_id)
        return await self.store.get(session.session_id)

    async def get_session(self, session_id: str) -> Session:
        return await self.store.get(session_id)

    async def get_status(self, session_id: str) -> SessionProgress:
        return await self.coordinator.get_status(session_id)

    async def get_questions(
        self, session_id: str, section: Section | None = None
    ) -> list[Question]:
        """
        Questions generated so far, in merge order.

        Works in every state; a failed session returns the sections that did
        complete.
        """
        session = await self.store.get(session_id)
        if section is None:
            return session.questions
        return session.questions_for(section)

    # =========================================================================
    # TEST FLOW
    # =========================================================================

    async def begin_test(self, session_id: str) -> Session:
        """
        Mark the timed test as started. Idempotent once IN_PROGRESS.

        Raises:
            InvalidStateError: If the session is not READY or IN_PROGRESS
        """

        def apply(session: Session) -> bool | None:
            if session.status == SessionStatus.IN_PROGRESS:
                return False
            if session.status != SessionStatus.READY:
                raise InvalidStateError(
                    f"Cannot start test: session is {session.status.value}, all sections must be READY"
                )
            ensure_transition(session, SessionStatus.IN_PROGRESS)

        session = await self.store.update(session_id, apply)
        logger.info(f"Test started for session {session_id}")
        return session

    async def submit_test(self, submission: TestSubmission) -> TestResults:
        """
        Score a submission and complete the session.

        Scoring happens inside the session's write so two racing submissions
        cannot both be accepted.

        Raises:
            SessionNotFoundError: If the session does not exist
            InvalidStateError: If the session is not READY/IN_PROGRESS,
                including a repeat submission
            SubmissionValidationError: If the answers or totals do not reconcile
        """
        session_id = submission.session_id

        def apply(session: Session) -> None:
            if session.status not in SUBMITTABLE_STATES:
                raise InvalidStateError(
                    f"Cannot submit: session {session_id} is {session.status.value}"
                )
            results = scoring_engine.score_submission(
                session.questions,
                submission.answers,
                submission.results,
                warning_count=submission.warnings,
                submitted_by=submission.submitted_by,
                submitted_at=submission.results.submitted_at if submission.results else None,
            )
            session.answers = list(submission.answers)
            session.test_results = results
            ensure_transition(session, SessionStatus.COMPLETED)

        session = await self.store.update(session_id, apply)
        results = session.test_results
        logger.info(
            f"Session {session_id} submitted by {results.submitted_by.value}: "
            f"{results.attempted}/{results.total_questions} attempted, "
            f"{results.correct} correct, {results.wrong} wrong"
        )

        if self.prewarm_report:
            self.report_cache.schedule(session_id)
        return results

    # =========================================================================
    # REPORTING
    # =========================================================================

    async def get_report(self, session_id: str, force: bool = False) -> Report:
        return await self.report_cache.get_or_generate(session_id, force=force)

    def schedule_report(self, session_id: str) -> None:
        self.report_cache.schedule(session_id)

    async def export_answers(self, session_id: str) -> AnswerSheet:
        """
        Build the per-question answer sheet for a completed session.

        Scores come from the cached report when there is one; the sheet never
        triggers report synthesis.

        Raises:
            InvalidStateError: If the session is not COMPLETED
        """
        session = await self.store.get(session_id)
        if session.status != SessionStatus.COMPLETED or session.test_results is None:
            raise InvalidStateError(
                f"Answers export requires a COMPLETED session, {session_id} is {session.status.value}"
            )

        if session.report is not None:
            overall, bucket = session.report.scores.overall, session.report.performance_bucket
        else:
            overall = scoring_engine.calculate_section_scores(
                session.questions, session.answers
            ).overall
            bucket = scoring_engine.determine_performance_bucket(overall)
        answer_map = {a.question_id: a for a in session.answers}

        entries = []
        for number, question in enumerate(session.questions, 1):
            answer = answer_map.get(question.id)
            selected = answer.selected_option_index if answer else None
            entry: dict[str, Any] = {
                "number": number,
                "question_id": question.id,
                "section_number": question.section_number,
                "category": question.category,
                "question_type": question.question_type,
                "prompt": question.prompt,
                "options": question.options,
                "selected_option_index": selected,
                "selected_option": question.options[selected] if selected is not None else None,
                "text_response": answer.text_response if answer else None,
            }
            if question.is_objective:
                entry["correct_option_index"] = question.correct_option_index
                entry["correct_option"] = question.options[question.correct_option_index]
                entry["is_correct"] = selected == question.correct_option_index
            entries.append(AnswerSheetEntry(**entry))

        return AnswerSheet(
            session_id=session_id,
            candidate_name=session.user_info.name,
            generated_at=datetime.now(timezone.utc),
            test_results=session.test_results,
            overall_score=overall,
            performance_bucket=bucket,
            entries=entries,
        )

    # =========================================================================
    # PROCTORING
    # =========================================================================

    async def record_violation(self, violation: ProctoringViolation) -> ProctoringViolation:
        return await self.ledger.record(violation)

    async def list_violations(self, session_id: str) -> list[ProctoringViolation]:
        return await self.ledger.violations_for(session_id)

    async def violation_stats(self, session_id: str) -> ViolationStats:
        return await self.ledger.stats_for(session_id)

    async def log_cheat_event(
        self,
        session_id: str,
        user_id: str,
        reason: str,
        warning_count: int = 0,
        timestamp: datetime | None = None,
    ) -> ProctoringViolation:
        return await self.ledger.log_cheat_event(
            session_id, user_id, reason, warning_count=warning_count, timestamp=timestamp
        )

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def shutdown(self) -> None:
        """Cancel background work."""
        await self.coordinator.shutdown()
        await self.report_cache.shutdown()
