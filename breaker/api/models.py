from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ContributionDay(BaseModel):
    """Single day from GitHub's contribution calendar (GraphQL camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    date: date
    # 0=Sunday..6=Saturday. Not range-checked here: the grid builder skips bad rows.
    weekday: int
    contribution_count: int = Field(0, ge=0, alias="contributionCount")


class ContributionWeek(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    contribution_days: list[ContributionDay] = Field(default_factory=list, alias="contributionDays")


class ContributionCalendar(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    weeks: list[ContributionWeek] = Field(default_factory=list)

    @property
    def total_contributions(self) -> int:
        return sum(d.contribution_count for w in self.weeks for d in w.contribution_days)


class GamePhase(StrEnum):
    playing = "playing"
    cleared = "cleared"
    game_over = "game_over"


class SessionCreateRequest(BaseModel):
    """Create a play session.

    Either pass `calendar` inline, or let the server fetch one for `login`
    (or the token's viewer when `login` is omitted).
    """

    model_config = ConfigDict(populate_by_name=True)

    calendar: ContributionCalendar | None = None
    login: str | None = Field(None, min_length=1, max_length=39)

    # Date range mode (YYYY-MM-DD). If either is set, `weeks` is ignored.
    from_date: str | None = Field(None, alias="from")
    to_date: str | None = Field(None, alias="to")
    weeks: int = Field(52, ge=1, le=52)

    width: int = Field(80, ge=1, le=1000)
    height: int = Field(24, ge=1, le=1000)
    seed: int | None = Field(None, ge=0)
    speed: float = Field(1.0, gt=0, le=5)

    @model_validator(mode="after")
    def _check_calendar_source(self) -> "SessionCreateRequest":
        if self.calendar is not None and (self.from_date or self.to_date):
            raise ValueError("from/to cannot be combined with an inline calendar")
        return self


class MoveRequest(BaseModel):
    move: Literal[-1, 0, 1]


class TickRequest(BaseModel):
    # Wall-clock seconds (any monotonic origin); only differences matter.
    now: float


class SpeedRequest(BaseModel):
    delta: float = Field(..., ge=-5, le=5)


class ResizeRequest(BaseModel):
    width: int = Field(..., ge=1, le=1000)
    height: int = Field(..., ge=1, le=1000)


class PaddleSnapshot(BaseModel):
    x: float
    y: float
    width: float


class BallSnapshot(BaseModel):
    x: float
    y: float
    vx: float
    vy: float


class StateSnapshot(BaseModel):
    """Read-only view of a simulation state; enough to draw the field."""

    width: int
    height: int
    top_offset: int
    brick_w: int
    bricks: list[list[int]]
    paddle: PaddleSnapshot
    ball: BallSnapshot
    score: int
    bricks_remaining: int
    bricks_total: int
    phase: GamePhase
    cleared: bool
    game_over: bool


class SessionSnapshot(BaseModel):
    session_id: UUID
    login: str
    created_at: datetime
    seed: int
    speed: float
    ready: bool
    no_bricks: bool
    info: str
    state: StateSnapshot | None = None


class SessionListResponse(BaseModel):
    sessions: list[SessionSnapshot]
