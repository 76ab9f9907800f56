"""
Report cache - compute a session's report once and memoize it on the record.

Concurrent callers for the same session queue on a per-session lock; the
second caller finds the report the first one stored and never reaches the
synthesizer. The store's writer lock is only held for the final save, not
for the slow synthesis call.
"""

import asyncio
import logging
import weakref

from profiling.core.exceptions import (
    InvalidStateError,
    ProfilingError,
    ReportGenerationError,
)
from profiling.core.report_generator import ReportSynthesizer
from profiling.core.session_store import SessionStore
from profiling.models.report import Report
from profiling.models.session import Session, SessionStatus

logger = logging.getLogger(__name__)


class ReportCache:
    """Guards the report synthesizer so each session's report is stable."""

    def __init__(self, store: SessionStore, synthesizer: ReportSynthesizer):
        self.store = store
        self.synthesizer = synthesizer
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self._background: set[asyncio.Task] = set()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    async def get_or_generate(self, session_id: str, force: bool = False) -> Report:
        """
        Return the cached report, generating and storing it on first use.

        Args:
            session_id: Session to report on
            force: Regenerate even if a report is already cached

        Raises:
            SessionNotFoundError: If the session does not exist
            InvalidStateError: If the session is not COMPLETED
            ReportGenerationError: If synthesis fails (retryable, nothing stored)
        """
        async with self._lock_for(session_id):
            session = await self.store.get(session_id)
            if session.report is not None and not force:
                return session.report

            if session.status != SessionStatus.COMPLETED:
                raise InvalidStateError(
                    f"Report requires a COMPLETED session, {session_id} is {session.status.value}"
                )

            try:
                report = await self.synthesizer.synthesize(session)
            except ReportGenerationError:
                raise
            except Exception as e:
                raise ReportGenerationError(f"Report synthesis failed: {e}") from e

            def store_report(record: Session) -> None:
                record.report = report

            committed = await self.store.update(session_id, store_report)
            logger.info(
                f"{'Regenerated' if force else 'Generated'} report for session {session_id}"
            )
            return committed.report

    def schedule(self, session_id: str) -> asyncio.Task:
        """Warm the cache in the background without blocking the caller."""
        task = asyncio.create_task(self._warm(session_id), name=f"report-{session_id}")
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _warm(self, session_id: str) -> None:
        try:
            await self.get_or_generate(session_id)
        except ProfilingError as e:
            # The next foreground request retries and reports the error
            logger.warning(f"Background report generation for {session_id} failed: {e}")

    async def shutdown(self) -> None:
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
