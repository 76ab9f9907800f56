"""
Proctoring ledger - append-only violation records per session.

Recording never depends on the session's state: late signals after
completion are still accepted. A write that keeps failing is parked in an
in-process queue and retried on the next write, so a storage hiccup never
fails the surrounding request and never loses a record.
"""

import asyncio
import logging
from collections import Counter, deque
from datetime import datetime

from profiling.core.exceptions import SessionNotFoundError
from profiling.core.session_store import SessionStore
from profiling.models.proctoring import ProctoringViolation, Severity, ViolationStats
from profiling.models.session import Session

logger = logging.getLogger(__name__)

CHEAT_EVENT = "CHEAT_EVENT"


class ProctoringLedger:
    """Records and aggregates proctoring violations."""

    def __init__(self, store: SessionStore, write_attempts: int = 3, retry_delay: float = 0.05):
        self.store = store
        self.write_attempts = write_attempts
        self.retry_delay = retry_delay
        self._pending: deque[ProctoringViolation] = deque()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    # =========================================================================
    # WRITES
    # =========================================================================

    async def record(self, violation: ProctoringViolation) -> ProctoringViolation:
        """
        Append a violation to its session.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        if not await self.store.exists(violation.session_id):
            raise SessionNotFoundError(violation.session_id)

        await self.flush_pending()

        if not await self._write(violation):
            self._pending.append(violation)
            logger.error(
                f"Parked proctoring violation {violation.id} for {violation.session_id} "
                f"after {self.write_attempts} failed writes ({len(self._pending)} pending)"
            )
        else:
            logger.info(
                f"Recorded {violation.severity.value} violation '{violation.violation_type}' "
                f"for session {violation.session_id}"
            )
        return violation

    async def log_cheat_event(
        self,
        session_id: str,
        user_id: str,
        reason: str,
        warning_count: int = 0,
        timestamp: datetime | None = None,
    ) -> ProctoringViolation:
        """Record a client-detected cheat event (tab switch, copy attempt, ...)."""
        logger.warning(
            f"Cheat event for session {session_id} (user {user_id}): "
            f"{reason} [warnings: {warning_count}]"
        )
        fields = {
            "session_id": session_id,
            "user_id": user_id,
            "violation_type": CHEAT_EVENT,
            "severity": Severity.HIGH if warning_count >= 3 else Severity.MEDIUM,
            "description": f"{reason} (warning {warning_count})",
        }
        if timestamp is not None:
            fields["timestamp"] = timestamp
        return await self.record(ProctoringViolation(**fields))

    async def flush_pending(self) -> int:
        """Retry parked writes. Returns how many were persisted."""
        flushed = 0
        for _ in range(len(self._pending)):
            violation = self._pending.popleft()
            if await self._write(violation):
                flushed += 1
            else:
                self._pending.append(violation)
        if flushed:
            logger.info(f"Flushed {flushed} pending proctoring violations")
        return flushed

    async def _write(self, violation: ProctoringViolation) -> bool:
        def append(session: Session) -> bool | None:
            if any(v.id == violation.id for v in session.proctoring_violations):
                return False
            session.proctoring_violations.append(violation)

        for attempt in range(1, self.write_attempts + 1):
            try:
                await self.store.update(violation.session_id, append)
                return True
            except SessionNotFoundError:
                raise
            except Exception as e:
                logger.warning(
                    f"Proctoring write failed for {violation.session_id} "
                    f"(attempt {attempt}/{self.write_attempts}): {e}"
                )
                if attempt < self.write_attempts:
                    await asyncio.sleep(self.retry_delay)
        return False

    # =========================================================================
    # READS
    # =========================================================================

    async def violations_for(self, session_id: str) -> list[ProctoringViolation]:
        """All violations for a session, newest first, including parked ones."""
        session = await self.store.get(session_id)
        stored_ids = {v.id for v in session.proctoring_violations}
        pending = [
            v for v in self._pending if v.session_id == session_id and v.id not in stored_ids
        ]
        return sorted(
            [*session.proctoring_violations, *pending],
            key=lambda v: v.timestamp,
            reverse=True,
        )

    async def stats_for(self, session_id: str) -> ViolationStats:
        """Tally violations by type and severity. Recomputed on every call."""
        violations = await self.violations_for(session_id)
        return ViolationStats(
            session_id=session_id,
            total=len(violations),
            by_type=dict(Counter(v.violation_type for v in violations)),
            by_severity=dict(Counter(v.severity.value for v in violations)),
        )
