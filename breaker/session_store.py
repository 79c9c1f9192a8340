from __future__ import annotations

import logging
from uuid import UUID

from breaker.session import GameSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """In-process registry of live sessions keyed by session_id.

    Sessions are never persisted: a restart drops every game in progress.
    """

    def __init__(self, *, max_sessions: int = 256) -> None:
        self._by_id: dict[UUID, GameSession] = {}
        self._max_sessions = max_sessions

    def add(self, session: GameSession) -> GameSession:
        if len(self._by_id) >= self._max_sessions:
            # Evict the oldest session to stay bounded.
            oldest = min(self._by_id.values(), key=lambda s: s.created_at)
            logger.info("evicting session id=%s", oldest.session_id)
            self._by_id.pop(oldest.session_id, None)
        self._by_id[session.session_id] = session
        return session

    def get(self, session_id: UUID) -> GameSession | None:
        return self._by_id.get(session_id)

    def require(self, session_id: UUID) -> GameSession:
        session = self.get(session_id)
        if session is None:
            raise KeyError("Session not found")
        return session

    def delete(self, session_id: UUID) -> bool:
        return self._by_id.pop(session_id, None) is not None

    def list_sessions(self) -> list[GameSession]:
        return sorted(self._by_id.values(), key=lambda s: s.created_at, reverse=True)


registry = SessionRegistry()
