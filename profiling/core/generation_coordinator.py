"""
Generation Coordinator - fans out section generation for a session.

Each of the three sections is generated by its own asyncio task, so sections
finish in any order and never wait on each other. Every completed section is
folded into the session with one read-modify-write through the store, which
appends the questions, sets the readiness flag and recomputes the status.
"""

import asyncio
import logging
from typing import Awaitable, Callable
from uuid import uuid4

from profiling.config.settings import Settings, get_settings
from profiling.core.exceptions import ContentGenerationError, StateTransitionError
from profiling.core.question_generator import ContentGenerator
from profiling.core.session_store import SessionStore
from profiling.core.state_machine import can_transition, ensure_transition, recompute_status
from profiling.models.question import Question, Section
from profiling.models.session import Session, SessionProgress, SessionStatus
from profiling.models.user import UserInfo

logger = logging.getLogger(__name__)

StatusCallback = Callable[[str, SessionStatus, SessionStatus], Awaitable[None]]


class GenerationCoordinator:
    """
    Starts and tracks background question generation.

    Lifecycle per session:
        CREATED -> GENERATING -> PARTIAL_READY* -> READY
                              \\-> FAILED (a section ran out of retries)
    """

    def __init__(
        self,
        store: SessionStore,
        generator: ContentGenerator,
        settings: Settings | None = None,
    ):
        self.store = store
        self.generator = generator
        self.settings = settings or get_settings()

        self._tasks: dict[str, asyncio.Task] = {}
        self._status_callbacks: list[StatusCallback] = []

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def start_generation(self, session_id: str) -> bool:
        """
        Kick off generation for a session without waiting for it.

        Idempotent: returns False if generation was already started (or the
        session has moved past CREATED), True if this call started it.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        if session_id in self._tasks:
            return False

        session = await self.store.get(session_id)
        if session.status != SessionStatus.CREATED:
            logger.info(f"Generation already started for {session_id} ({session.status.value})")
            return False

        try:
            committed = await self.store.update(
                session_id, lambda s: ensure_transition(s, SessionStatus.GENERATING)
            )
        except StateTransitionError:
            # Another caller won the CREATED -> GENERATING race
            return False

        await self._notify(session_id, SessionStatus.CREATED, committed.status)

        task = asyncio.create_task(
            self._run(session_id, committed.user_info),
            name=f"generate-{session_id}",
        )
        self._tasks[session_id] = task
        task.add_done_callback(lambda _: self._tasks.pop(session_id, None))

        logger.info(f"Started generation for session {session_id}")
        return True

    async def get_status(self, session_id: str) -> SessionProgress:
        """Latest committed status and readiness flags."""
        session = await self.store.get(session_id)
        return session.to_progress()

    def is_running(self, session_id: str) -> bool:
        return session_id in self._tasks

    async def wait_for(self, session_id: str) -> None:
        """Wait until the session's generation task (if any) has finished."""
        task = self._tasks.get(session_id)
        if task is not None:
            await task

    async def shutdown(self) -> None:
        """Cancel outstanding generation tasks."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info(f"Cancelled {len(tasks)} generation tasks")
        self._tasks.clear()

    def on_status_change(self, callback: StatusCallback) -> None:
        """Register a callback for status changes."""
        self._status_callbacks.append(callback)

    # =========================================================================
    # SECTION WORKERS
    # =========================================================================

    async def _run(self, session_id: str, user_info: UserInfo) -> None:
        await asyncio.gather(
            *(self._generate_section(session_id, section, user_info) for section in Section)
        )
        session = await self.store.get(session_id)
        logger.info(
            f"Generation finished for {session_id}: {session.status.value}, "
            f"{len(session.questions)} questions"
        )

    async def _generate_section(
        self, session_id: str, section: Section, user_info: UserInfo
    ) -> None:
        max_attempts = self.settings.generation_max_attempts
        timeout = self.settings.section_timeout_seconds
        delay = self.settings.generation_retry_backoff_seconds
        last_error = "unknown error"

        for attempt in range(1, max_attempts + 1):
            try:
                questions = await asyncio.wait_for(
                    self.generator.generate_section(section, user_info),
                    timeout=timeout,
                )
                if not questions:
                    raise ContentGenerationError("generator returned no questions")
                await self._merge_section(session_id, section, questions)
                return
            except asyncio.TimeoutError:
                last_error = f"timed out after {timeout}s"
            except Exception as e:
                last_error = str(e) or type(e).__name__

            logger.warning(
                f"Section {section.value} for {session_id} failed "
                f"(attempt {attempt}/{max_attempts}): {last_error}"
            )
            if attempt < max_attempts:
                await asyncio.sleep(delay)
                delay *= 2

        await self._mark_failed(
            session_id,
            f"{section.display_name} generation failed after {max_attempts} attempts: {last_error}",
        )

    # =========================================================================
    # MERGES
    # =========================================================================

    async def _merge_section(
        self, session_id: str, section: Section, questions: list[Question]
    ) -> None:
        """Fold one section's questions into the session."""
        previous: list[SessionStatus] = []

        def apply(session: Session) -> bool | None:
            previous.append(session.status)
            if session.status == SessionStatus.FAILED:
                logger.info(f"Discarding section {section.value} for failed session {session_id}")
                return False
            if session.is_section_ready(section):
                return False

            existing_ids = {q.id for q in session.questions}
            for question in questions:
                update = {"section_number": section.value}
                if question.id in existing_ids:
                    update["id"] = f"q_{uuid4().hex[:12]}"
                session.questions.append(question.model_copy(update=update))
                existing_ids.add(session.questions[-1].id)

            session.mark_section_ready(section)
            recompute_status(session)

        committed = await self.store.update(session_id, apply)
        if committed.status != previous[-1]:
            logger.info(
                f"Session {session_id}: section {section.value} ready, "
                f"{previous[-1].value} -> {committed.status.value}"
            )
            await self._notify(session_id, previous[-1], committed.status)

    async def _mark_failed(self, session_id: str, reason: str) -> None:
        previous: list[SessionStatus] = []

        def apply(session: Session) -> bool | None:
            previous.append(session.status)
            if not can_transition(session.status, SessionStatus.FAILED):
                return False
            session.failure_reason = reason
            ensure_transition(session, SessionStatus.FAILED)

        committed = await self.store.update(session_id, apply)
        if committed.status == SessionStatus.FAILED and previous[-1] != SessionStatus.FAILED:
            logger.error(f"Session {session_id} failed: {reason}")
            await self._notify(session_id, previous[-1], SessionStatus.FAILED)

    async def _notify(
        self, session_id: str, old_status: SessionStatus, new_status: SessionStatus
    ) -> None:
        for callback in self._status_callbacks:
            try:
                await callback(session_id, old_status, new_status)
            except Exception as e:
                logger.error(f"Status change callback error: {e}")
