# ontogen/adapters/api/dependencies.py
from __future__ import annotations

import uuid
from threading import Lock
from typing import Callable, Dict, Optional

import structlog
from fastapi import HTTPException, status

from ontogen.core.use_cases.session import Session

logger = structlog.get_logger()


class SessionRegistry:
    """
    The live sessions of this process, by id.

    Each session owns its ontology, so sessions never see each other's
    declarations. Each also gets a lock: requests run in the threadpool, and
    a session's statements must run one at a time.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._sessions: Dict[str, Session] = {}
        self._session_locks: Dict[str, Lock] = {}

    def create(self, factory: Callable[[], Session]) -> tuple:
        session = factory()
        session_id = uuid.uuid4().hex
        with self._lock:
            self._sessions[session_id] = session
            self._session_locks[session_id] = Lock()
        logger.info("session_created", session_id=session_id)
        return session_id, session

    def get(self, session_id: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(session_id)

    def lock_for(self, session_id: str) -> Optional[Lock]:
        with self._lock:
            return self._session_locks.get(session_id)

    def remove(self, session_id: str) -> bool:
        with self._lock:
            self._session_locks.pop(session_id, None)
            return self._sessions.pop(session_id, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()
            self._session_locks.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# -----------------------------------------------------------------------------
# Registry singleton
# -----------------------------------------------------------------------------
_registry = SessionRegistry()


def get_session_registry() -> SessionRegistry:
    return _registry


def get_session(session_id: str) -> Session:
    """Path dependency: the session named in the URL, or 404."""
    session = _registry.get(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No session with id '{session_id}'",
        )
    return session


def get_session_lock(session_id: str) -> Lock:
    """Path dependency: the lock serialising the named session's work, or 404."""
    lock = _registry.lock_for(session_id)
    if lock is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No session with id '{session_id}'",
        )
    return lock
