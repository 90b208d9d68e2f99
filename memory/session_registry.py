"""In-process registry of per-session orchestrators."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional
from uuid import uuid4

from agents.recommendation_orchestrator import RecommendationOrchestrator


class SessionNotFoundError(KeyError):
    """Raised when a session id is unknown or already closed."""


@dataclass
class StylistSession:
    session_id: str
    owner_id: str
    orchestrator: RecommendationOrchestrator
    created_at: float = field(default_factory=lambda: time.time())
    metadata: Dict[str, Any] | None = None


class SessionRegistry:
    """Owns one :class:`RecommendationOrchestrator` per session id.

    Sessions are not persisted: the gate and cache are process-local state and
    a restart starts every session fresh.
    """

    def __init__(self, orchestrator_factory: Callable[[], RecommendationOrchestrator]) -> None:
        self._factory = orchestrator_factory
        self._sessions: Dict[str, StylistSession] = {}
        self._lock = threading.Lock()

    def create(self, owner_id: str, metadata: Dict[str, Any] | None = None) -> StylistSession:
        session = StylistSession(
            session_id=uuid4().hex,
            owner_id=owner_id,
            orchestrator=self._factory(),
            metadata=metadata,
        )
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> StylistSession:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def close(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.orchestrator.teardown()
        return True

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.orchestrator.teardown()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions


__all__ = ["SessionNotFoundError", "SessionRegistry", "StylistSession"]
