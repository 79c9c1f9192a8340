from __future__ import annotations

import math
from dataclasses import dataclass

from breaker.core.engine import MoveInput, SimulationState

# What "1.0x" means in this game. 1.25x felt better in play, so it is baked in as the baseline.
BASE_SPEED_MULTIPLIER = 1.25


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    # Physics quantum; fixed steps give more stable collisions than variable dt.
    fixed_dt: float = 1.0 / 120.0
    # Bound on catch-up work per frame.
    max_steps_per_frame: int = 10
    # Longest wall-clock gap honoured for one frame; avoids a "warp" after a stall.
    max_frame_dt: float = 0.05
    base_speed: float = BASE_SPEED_MULTIPLIER


class FrameScheduler:
    """Accumulates irregular frame deltas and drains them as fixed physics steps.

    Contract:
      - `accumulate(raw_dt, speed=...)` clamps and scales wall-clock time into the accumulator.
      - `drain(state, move=...)` runs at most `max_steps_per_frame` steps with one latched move.
      - if the cap is hit the leftover is dropped (modulo one quantum) instead of being
        carried forward; interactivity wins over exact time accounting.
    """

    def __init__(self, config: SchedulerConfig | None = None) -> None:
        self.config = config or SchedulerConfig()
        self.acc = 0.0

    def reset(self) -> None:
        self.acc = 0.0

    def clamp_frame_dt(self, raw_dt: float) -> float:
        return min(max(raw_dt, 0.0), self.config.max_frame_dt)

    def accumulate(self, raw_dt: float, *, speed: float) -> float:
        self.acc += self.clamp_frame_dt(raw_dt) * speed * self.config.base_speed
        return self.acc

    def drain(self, state: SimulationState, *, move: int) -> int:
        fixed = self.config.fixed_dt
        move_input = MoveInput(move=move)

        steps = 0
        while self.acc >= fixed and steps < self.config.max_steps_per_frame:
            state.step(fixed, move_input)
            self.acc -= fixed
            steps += 1

        # Too far behind: drop the remainder to keep the app responsive.
        if steps >= self.config.max_steps_per_frame:
            self.acc = math.fmod(self.acc, fixed)
        return steps

    def advance(self, state: SimulationState, *, raw_dt: float, speed: float, move: int) -> int:
        """Accumulate one frame and drain it; returns the number of physics steps taken."""

        self.accumulate(raw_dt, speed=speed)
        return self.drain(state, move=move)
