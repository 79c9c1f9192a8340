from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

EventType = Literal[
    "SESSION_BUILT",
    "SESSION_RETRIED",
    "PHASE_CHANGED",
]


@dataclass(frozen=True, slots=True)
class GameEvent:
    type: EventType
    seed: int
    payload: dict[str, Any]
    ts: datetime

    @staticmethod
    def now(*, type: EventType, seed: int, payload: dict[str, Any]) -> "GameEvent":
        return GameEvent(type=type, seed=seed, payload=payload, ts=datetime.now(timezone.utc))

    def to_fields(self) -> dict[str, str]:
        """Flatten to string fields for a Redis stream entry."""

        fields = {"type": self.type, "seed": str(self.seed), "ts": self.ts.isoformat()}
        fields.update({str(k): str(v) for k, v in self.payload.items()})
        return fields
