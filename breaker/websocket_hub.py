from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Sequence
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import WebSocket

from breaker.core.events import GameEvent

if TYPE_CHECKING:
    from breaker.session import GameSession

logger = logging.getLogger(__name__)


def session_update_payload(session: GameSession, events: Sequence[GameEvent]) -> dict[str, object]:
    """Small summary pushed to observers; clients fetch the full snapshot over HTTP."""

    state = session.state
    return {
        "type": "session_updated",
        "session_id": str(session.session_id),
        "events": [e.type for e in events],
        "seed": session.seed,
        "phase": state.phase.value if state is not None else None,
        "score": state.score if state is not None else 0,
        "info": session.info_line(),
    }


class SessionWebSocketHub:
    """Observers of live sessions, keyed by session id.

    - `subscribe` / `unsubscribe` manage one socket at a time.
    - `broadcast_session` pushes a `session_updated` summary after events.
    - `close_session` tells observers a session was deleted and drops them.
    """

    def __init__(self) -> None:
        self._observers: dict[UUID, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def subscribe(self, session_id: UUID, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._observers[session_id].add(websocket)

    async def unsubscribe(self, session_id: UUID, websocket: WebSocket) -> None:
        async with self._lock:
            observers = self._observers.get(session_id)
            if observers is None:
                return
            observers.discard(websocket)
            if not observers:
                del self._observers[session_id]

    async def _send(self, session_id: UUID, payload: dict[str, object]) -> None:
        async with self._lock:
            targets = list(self._observers.get(session_id, ()))

        for ws in targets:
            try:
                await ws.send_json(payload)
            except Exception:
                # Observer went away mid-send; the next receive in its handler unsubscribes it.
                logger.debug("websocket send failed session=%s", session_id, exc_info=True)
                await self.unsubscribe(session_id, ws)

    async def broadcast_session(self, session: GameSession, events: Sequence[GameEvent]) -> None:
        if not events:
            return
        await self._send(session.session_id, session_update_payload(session, events))

    async def close_session(self, session_id: UUID) -> None:
        await self._send(session_id, {"type": "session_deleted", "session_id": str(session_id)})
        async with self._lock:
            observers = self._observers.pop(session_id, set())

        for ws in observers:
            try:
                await ws.close()
            except Exception:
                logger.debug("websocket close failed session=%s", session_id, exc_info=True)


hub = SessionWebSocketHub()
