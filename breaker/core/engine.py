from __future__ import annotations

import math
import random
from dataclasses import dataclass, field

from breaker.api.models import BallSnapshot, GamePhase, PaddleSnapshot, StateSnapshot
from breaker.core.fsm import PlayFSM
from breaker.core.grid import BrickGrid

MIN_FIELD_SIZE = 10

# Bricks sit lower than the top edge to shorten ball travel; an invisible
# ceiling one row above them turns the ball around early.
TOP_OFFSET = 7
BRICK_W = 2

PADDLE_SPEED = 70.0
PADDLE_MIN_W = 6.0
PADDLE_HIT_BAND = 0.2
PADDLE_DEFLECT = 12.0
MAX_BALL_VX = 30.0

SERVE_VX = 10.0
SERVE_VX_FALLBACK = 6.0
SERVE_VY = -18.0

POINTS_PER_HP = 10
BOUNCE_EPS = 0.01

_MASK64 = (1 << 64) - 1
_SERVE_SALT = 0x9E3779B97F4A7C15
_RESET_SALT = 0x517CC1B727220A95


def _rng(seed: int, salt: int) -> random.Random:
    s = seed & _MASK64
    return random.Random((s << 64) | (s ^ salt))


def _serve_vx(rng: random.Random) -> float:
    vx = (rng.random() * 2 - 1) * SERVE_VX
    if vx == 0:
        vx = SERVE_VX_FALLBACK
    return vx


@dataclass(frozen=True, slots=True)
class MoveInput:
    move: int = 0  # -1 left, 0 none, +1 right


@dataclass(slots=True)
class SimulationState:
    width: int
    height: int

    top_offset: int
    top_wall_y: int
    brick_w: int

    bricks: list[list[int]]  # [row][col] HP
    brick_max: list[list[int]]  # [row][col] initial HP (for scoring)

    paddle_x: float
    paddle_w: float
    paddle_y: float

    ball_x: float
    ball_y: float
    ball_vx: float
    ball_vy: float

    bricks_remaining: int
    bricks_total: int
    score: int = 0
    phase: GamePhase = field(default=GamePhase.playing)

    @property
    def cleared(self) -> bool:
        return self.phase == GamePhase.cleared

    @property
    def game_over(self) -> bool:
        return self.phase == GamePhase.game_over

    @property
    def finished(self) -> bool:
        return self.phase != GamePhase.playing

    def reset_ball(self, seed: int) -> None:
        """Serve a fresh ball above the paddle; bricks, paddle, and score are untouched."""

        rng = _rng(seed, _RESET_SALT)
        self.ball_x = self.width / 2.0
        self.ball_y = self.paddle_y - 1
        self.ball_vx = _serve_vx(rng)
        self.ball_vy = SERVE_VY

    def step(self, dt: float, move_input: MoveInput) -> None:
        """Advance the simulation by one fixed physics step."""

        if self.finished:
            return

        prev_x = self.ball_x
        prev_y = self.ball_y

        self.paddle_x += move_input.move * PADDLE_SPEED * dt
        if self.paddle_x < 0:
            self.paddle_x = 0.0
        if self.paddle_x + self.paddle_w > self.width:
            self.paddle_x = self.width - self.paddle_w

        self.ball_x += self.ball_vx * dt
        self.ball_y += self.ball_vy * dt

        if self.ball_x < 0:
            self.ball_x = 0.0
            self.ball_vx = abs(self.ball_vx)
        elif self.ball_x > self.width - 1:
            self.ball_x = float(self.width - 1)
            self.ball_vx = -abs(self.ball_vx)

        # One-way ceiling: only stops upward motion.
        if self.ball_y < self.top_wall_y:
            self.ball_y = float(self.top_wall_y)
            self.ball_vy = abs(self.ball_vy)

        self._collide_paddle()
        self._collide_bricks(prev_x=prev_x, prev_y=prev_y)

        # Missed the paddle.
        if self.ball_y > self.height and not self.finished:
            self._finish("lose")

    def _collide_paddle(self) -> None:
        # The ball is a point; the paddle's top edge sits half a row above its centre line.
        paddle_top = self.paddle_y - 0.5
        if not (
            self.ball_vy > 0
            and paddle_top - PADDLE_HIT_BAND <= self.ball_y <= paddle_top + PADDLE_HIT_BAND
            and self.paddle_x <= self.ball_x <= self.paddle_x + self.paddle_w
        ):
            return

        half_w = self.paddle_w / 2.0
        rel = (self.ball_x - (self.paddle_x + half_w)) / half_w  # -1..+1
        self.ball_vy = -abs(self.ball_vy)
        self.ball_vx = min(max(self.ball_vx + rel * PADDLE_DEFLECT, -MAX_BALL_VX), MAX_BALL_VX)

    def _collide_bricks(self, *, prev_x: float, prev_y: float) -> None:
        br = math.floor(self.ball_y) - self.top_offset
        if br < 0 or br >= len(self.bricks):
            return
        bc = math.floor(self.ball_x) // self.brick_w
        if bc < 0 or bc >= len(self.bricks[br]) or self.bricks[br][bc] <= 0:
            return

        # Reward follows the brick's initial toughness, not its remaining HP.
        self.score += POINTS_PER_HP * max(self.brick_max[br][bc], 1)

        self.bricks[br][bc] -= 1
        if self.bricks[br][bc] == 0:
            self.bricks_remaining -= 1
            if self.bricks_remaining <= 0:
                self._finish("clear")

        left = float(bc * self.brick_w)
        right = float((bc + 1) * self.brick_w)
        top = float(self.top_offset + br)
        bottom = top + 1.0

        # Side entries win over top/bottom entries; one bounce per step.
        if prev_x < left <= self.ball_x:
            self.ball_x = left - BOUNCE_EPS
            self.ball_vx = -abs(self.ball_vx)
        elif prev_x >= right > self.ball_x:
            self.ball_x = right + BOUNCE_EPS
            self.ball_vx = abs(self.ball_vx)
        elif prev_y < top <= self.ball_y:
            self.ball_y = top - BOUNCE_EPS
            self.ball_vy = -abs(self.ball_vy)
        elif prev_y >= bottom > self.ball_y:
            self.ball_y = bottom + BOUNCE_EPS
            self.ball_vy = abs(self.ball_vy)
        else:
            # Already inside the cell before the step (corner/tunnelling).
            self.ball_vy = -self.ball_vy

    def _finish(self, event: str) -> None:
        fsm = PlayFSM(self)
        fsm.send(event)
        fsm.sync_phase_to_model()

    def to_snapshot(self) -> StateSnapshot:
        return StateSnapshot(
            width=self.width,
            height=self.height,
            top_offset=self.top_offset,
            brick_w=self.brick_w,
            bricks=[list(row) for row in self.bricks],
            paddle=PaddleSnapshot(x=self.paddle_x, y=self.paddle_y, width=self.paddle_w),
            ball=BallSnapshot(x=self.ball_x, y=self.ball_y, vx=self.ball_vx, vy=self.ball_vy),
            score=self.score,
            bricks_remaining=self.bricks_remaining,
            bricks_total=self.bricks_total,
            phase=self.phase,
            cleared=self.cleared,
            game_over=self.game_over,
        )


def new_state(grid: BrickGrid, *, width: int, height: int, seed: int) -> SimulationState:
    """Build a fresh playing state from a brick grid.

    Degenerate sizes are clamped rather than rejected so every terminal gets a
    playable field.
    """

    width = max(width, MIN_FIELD_SIZE)
    height = max(height, MIN_FIELD_SIZE)

    # Bricks are expected to be compressed to fit already; still guard.
    field_w = min(grid.cols * BRICK_W, width)

    bricks = grid.hp_matrix()
    brick_max = grid.hp_matrix()
    remain = sum(1 for row in bricks for hp in row if hp > 0)

    paddle_w = max(PADDLE_MIN_W, field_w / 5.0)
    paddle_y = float(height - 2)

    rng = _rng(seed, _SERVE_SALT)

    return SimulationState(
        width=field_w,
        height=height,
        top_offset=TOP_OFFSET,
        top_wall_y=max(TOP_OFFSET - 1, 0),
        brick_w=BRICK_W,
        bricks=bricks,
        brick_max=brick_max,
        paddle_x=field_w / 2.0 - paddle_w / 2.0,
        paddle_w=paddle_w,
        paddle_y=paddle_y,
        ball_x=field_w / 2.0,
        ball_y=paddle_y - 1,
        ball_vx=_serve_vx(rng),
        ball_vy=SERVE_VY,
        bricks_remaining=remain,
        bricks_total=remain,
    )
