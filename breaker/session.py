from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4

from breaker.api.models import ContributionCalendar, GamePhase, SessionSnapshot
from breaker.core.engine import BRICK_W, SimulationState, new_state
from breaker.core.events import GameEvent
from breaker.core.game_loop import FrameScheduler, SchedulerConfig
from breaker.core.grid import BrickGrid, build_brick_grid

logger = logging.getLogger(__name__)

MIN_SPEED = 0.25
MAX_SPEED = 5.0
SPEED_STEP = 0.1

# Terminal chrome around the field: a column of padding on each side, and
# HUD + info line + a trailing blank row.
H_PADDING = 2
V_CHROME = 4
MIN_FIELD_SIZE = 10

FRAME_PLAYING_S = 1 / 60
FRAME_CLEARED_S = 1 / 30
FRAME_IDLE_S = 1 / 15


def _now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(slots=True)
class GameSession:
    """Frame driver for one player: owns the grid, the state, and the scheduler.

    All mutation happens through `resize`, `retry`, `press`, `adjust_speed` and
    `tick`; the state itself is only ever replaced wholesale.
    """

    login: str
    calendar: ContributionCalendar
    seed: int
    speed: float = 1.0
    session_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_now)

    term_w: int = 0
    term_h: int = 0
    grid: BrickGrid | None = None
    state: SimulationState | None = None
    scheduler: FrameScheduler = field(default_factory=FrameScheduler)
    last_tick: float | None = None
    move: int = 0
    ready: bool = False
    no_bricks: bool = False

    def __post_init__(self) -> None:
        if self.speed <= 0:
            self.speed = 1.0

    @classmethod
    def create(
        cls,
        *,
        login: str,
        calendar: ContributionCalendar,
        seed: int,
        speed: float = 1.0,
        width: int,
        height: int,
        config: SchedulerConfig | None = None,
    ) -> tuple["GameSession", GameEvent]:
        """Build a ready session; also returns the SESSION_BUILT event for the first layout."""

        session = cls(login=login, calendar=calendar, seed=seed, speed=speed, scheduler=FrameScheduler(config))
        built = session.resize(width, height)
        return session, built

    def _field_size(self) -> tuple[int, int]:
        return max(self.term_w - H_PADDING, MIN_FIELD_SIZE), max(self.term_h - V_CHROME, MIN_FIELD_SIZE)

    def _replace_state(self) -> None:
        if self.grid is None:
            raise RuntimeError("session has no brick grid; call resize() first")
        field_w, field_h = self._field_size()
        self.state = new_state(self.grid, width=field_w, height=field_h, seed=self.seed)
        self.no_bricks = self.state.bricks_remaining <= 0
        self.last_tick = None
        self.move = 0
        self.scheduler.reset()

    def resize(self, width: int, height: int) -> GameEvent:
        """Rebuild the grid for a new terminal size and start a fresh game."""

        self.term_w = width
        self.term_h = height
        max_cols = max((width - H_PADDING) // BRICK_W, 1)
        self.grid = build_brick_grid(self.calendar, max_cols)
        self._replace_state()
        self.ready = True

        logger.info(
            "session built id=%s login=%s cols=%d bricks=%d seed=%d",
            self.session_id,
            self.login,
            self.grid.cols,
            self.state.bricks_total if self.state else 0,
            self.seed,
        )
        return GameEvent.now(
            type="SESSION_BUILT",
            seed=self.seed,
            payload={
                "login": self.login,
                "width": width,
                "height": height,
                "cols": self.grid.cols,
                "no_bricks": self.no_bricks,
            },
        )

    def retry(self) -> GameEvent | None:
        """Restart on the same grid; the seed changes so retries feel fresh even with a fixed seed."""

        if not self.ready:
            return None
        self.seed += 1
        self._replace_state()
        logger.info("session retried id=%s seed=%d", self.session_id, self.seed)
        return GameEvent.now(type="SESSION_RETRIED", seed=self.seed, payload={})

    def press(self, move: int) -> None:
        if move not in (-1, 0, 1):
            raise ValueError("move must be -1, 0, or 1")
        self.move = move

    def adjust_speed(self, delta: float) -> float:
        self.speed += delta
        if delta > 0 and self.speed > MAX_SPEED:
            self.speed = MAX_SPEED
        elif delta < 0 and self.speed < MIN_SPEED:
            self.speed = MIN_SPEED
        return self.speed

    @property
    def playable(self) -> bool:
        return self.ready and not self.no_bricks and self.state is not None and not self.state.finished

    def tick(self, now: float) -> list[GameEvent]:
        """Handle one frame timestamp; returns phase-change events, if any."""

        if not self.ready or self.state is None:
            return []
        if self.last_tick is None:
            self.last_tick = now
            return []

        raw_dt = now - self.last_tick
        self.last_tick = now
        self.scheduler.accumulate(raw_dt, speed=self.speed)

        if not self.playable:
            return []

        before = self.state.phase
        self.scheduler.drain(self.state, move=self.move)
        # Latched input covers every step of this frame, then goes neutral.
        self.move = 0

        if self.state.phase == before:
            return []

        logger.info(
            "session finished id=%s phase=%s score=%d remaining=%d/%d",
            self.session_id,
            self.state.phase.value,
            self.state.score,
            self.state.bricks_remaining,
            self.state.bricks_total,
        )
        return [
            GameEvent.now(
                type="PHASE_CHANGED",
                seed=self.seed,
                payload={"from": before.value, "to": self.state.phase.value, "score": self.state.score},
            )
        ]

    def frame_interval(self) -> float:
        """Suggested delay before the next tick; idle screens don't need 60fps."""

        if not self.ready or self.state is None:
            return FRAME_PLAYING_S
        if self.no_bricks or self.state.phase == GamePhase.game_over:
            return FRAME_IDLE_S
        if self.state.phase == GamePhase.cleared:
            return FRAME_CLEARED_S
        return FRAME_PLAYING_S

    def info_line(self) -> str:
        if not self.ready or self.state is None:
            return "loading..."
        if self.no_bricks:
            return "no contributions found"
        if self.state.cleared:
            return "CLEAR! all blocks removed."
        if self.state.game_over:
            return "GAME OVER..."
        return "playing"

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            session_id=self.session_id,
            login=self.login,
            created_at=self.created_at,
            seed=self.seed,
            speed=self.speed,
            ready=self.ready,
            no_bricks=self.no_bricks,
            info=self.info_line(),
            state=self.state.to_snapshot() if self.state is not None else None,
        )
