from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import cast

import redis

from breaker.core.events import GameEvent

# Observers only need recent outcomes; keep the stream bounded.
EVENTS_MAXLEN = 1_000


@dataclass(frozen=True, slots=True)
class SessionStream:
    session_id: str

    @property
    def key(self) -> str:
        return f"breaker:session:{self.session_id}:events"


def publish_events(*, r: redis.Redis, stream: SessionStream, events: Sequence[GameEvent]) -> list[str]:
    """Append session events to the session's outbox stream."""

    ids: list[str] = []
    for event in events:
        fields = {"session_id": stream.session_id, **event.to_fields()}
        stream_id = r.xadd(stream.key, fields, maxlen=EVENTS_MAXLEN, approximate=True)
        ids.append(cast(str, stream_id))
    return ids
