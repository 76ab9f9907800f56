"""
Session storage.

All writes for one session are serialized through ``SessionStore.update``:
the current record is read, a working copy is mutated, and the result is
committed with ``version + 1`` while holding that session's lock. Readers
never take the lock; they get a deep copy of the last committed record.
Different sessions never contend.
"""

import asyncio
import logging
import os
import weakref
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from profiling.core.exceptions import ConcurrentModificationError, SessionNotFoundError
from profiling.models.session import Session

logger = logging.getLogger(__name__)

Mutator = Callable[[Session], bool | None]


class SessionStore:
    """
    Keyed session storage with per-session single-writer updates.

    Subclasses implement the raw ``_load``/``_save``/``_exists`` primitives.
    """

    def __init__(self):
        # Locks live only while a writer holds or waits on them
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    # =========================================================================
    # BACKEND PRIMITIVES
    # =========================================================================

    def _load(self, session_id: str) -> Session | None:
        raise NotImplementedError

    def _save(self, session: Session) -> None:
        raise NotImplementedError

    def _exists(self, session_id: str) -> bool:
        raise NotImplementedError

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def create(self, session: Session) -> Session:
        """Persist a brand-new session record."""
        async with self._lock_for(session.session_id):
            if self._exists(session.session_id):
                raise ConcurrentModificationError(
                    f"Session already exists: {session.session_id}"
                )
            stored = session.model_copy(deep=True)
            stored.version = 1
            stored.updated_at = datetime.now(timezone.utc)
            self._save(stored)
        logger.info(f"Stored new session: {session.session_id}")
        return stored.model_copy(deep=True)

    async def get(self, session_id: str) -> Session:
        """
        Read the latest committed record.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        session = self._load(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session.model_copy(deep=True)

    async def exists(self, session_id: str) -> bool:
        return self._exists(session_id)

    async def update(self, session_id: str, mutate: Mutator) -> Session:
        """
        Read-modify-write a session under its writer lock.

        ``mutate`` receives a private copy and edits it in place. If it raises,
        nothing is committed and the exception propagates to the caller. If it
        returns ``False`` the update is a no-op and the version is unchanged.

        Returns:
            The committed record
        """
        async with self._lock_for(session_id):
            current = self._load(session_id)
            if current is None:
                raise SessionNotFoundError(session_id)
            working = current.model_copy(deep=True)
            if mutate(working) is False:
                return current.model_copy(deep=True)
            # Re-validate the whole record so model invariants hold on commit
            committed = Session.model_validate(working.model_dump())
            committed.version = current.version + 1
            committed.updated_at = datetime.now(timezone.utc)
            self._save(committed)
        return committed.model_copy(deep=True)

    async def compare_and_set(self, session: Session, expected_version: int) -> Session:
        """
        Replace a record only if it is still at ``expected_version``.

        Raises:
            ConcurrentModificationError: If another writer committed first
        """
        async with self._lock_for(session.session_id):
            current = self._load(session.session_id)
            if current is None:
                raise SessionNotFoundError(session.session_id)
            if current.version != expected_version:
                raise ConcurrentModificationError(
                    f"Session {session.session_id} is at version {current.version}, "
                    f"expected {expected_version}"
                )
            committed = Session.model_validate(session.model_dump())
            committed.version = expected_version + 1
            committed.updated_at = datetime.now(timezone.utc)
            self._save(committed)
        return committed.model_copy(deep=True)


class InMemorySessionStore(SessionStore):
    """Process-local storage. Records are kept as immutable snapshots."""

    def __init__(self):
        super().__init__()
        self._sessions: dict[str, Session] = {}

    def _load(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def _save(self, session: Session) -> None:
        self._sessions[session.session_id] = session

    def _exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


class FileSessionStore(SessionStore):
    """One JSON document per session under ``base_dir``."""

    def __init__(self, base_dir: str | Path):
        super().__init__()
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, session_id: str) -> Path:
        # Keep ids from escaping base_dir
        safe_id = "".join(c for c in session_id if c.isalnum() or c in "-_")
        if not safe_id:
            raise SessionNotFoundError(session_id)
        return self.base_dir / f"{safe_id}.json"

    def _load(self, session_id: str) -> Session | None:
        path = self._path(session_id)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as f:
            return Session.model_validate_json(f.read())

    def _save(self, session: Session) -> None:
        path = self._path(session.session_id)
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            f.write(session.model_dump_json(indent=2))
        os.replace(tmp_path, path)

    def _exists(self, session_id: str) -> bool:
        return self._path(session_id).exists()


def build_session_store(backend: str, directory: str) -> SessionStore:
    """Create the configured session store backend."""
    if backend == "file":
        logger.info(f"Using file session store at {directory}")
        return FileSessionStore(directory)
    return InMemorySessionStore()
