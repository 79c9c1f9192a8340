from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from breaker.api.models import GamePhase
from breaker.core.engine import MoveInput, SimulationState, new_state
from breaker.core.fsm import PlayFSM
from breaker.core.grid import BrickCell, BrickGrid

DT = 1.0 / 120.0
STILL = MoveInput(move=0)


def _grid(hp_rows: dict[int, dict[int, int]], *, cols: int = 20) -> BrickGrid:
    """7-row grid; hp_rows maps row -> {col: hp}."""

    cells = tuple(
        tuple(BrickCell(count=hp_rows.get(r, {}).get(c, 0), hp=hp_rows.get(r, {}).get(c, 0)) for c in range(cols))
        for r in range(7)
    )
    return BrickGrid(rows=7, cols=cols, max_count=4, cells=cells)


def _aim(state: SimulationState, *, x: float, y: float, vx: float, vy: float) -> None:
    state.ball_x, state.ball_y, state.ball_vx, state.ball_vy = x, y, vx, vy


@pytest.fixture()
def state() -> SimulationState:
    # Field 40 wide (20 columns x 2), 30 tall: paddle at y=28, 8 wide, x=16.
    return new_state(_grid({0: {0: 4, 3: 2, 5: 1}}), width=100, height=30, seed=42)


def test_new_state_layout(state: SimulationState) -> None:
    assert state.width == 40
    assert state.height == 30
    assert state.top_offset == 7
    assert state.top_wall_y == 6
    assert state.brick_w == 2
    assert state.paddle_w == 8.0
    assert state.paddle_y == 28.0
    assert state.paddle_x == 16.0
    assert state.ball_x == 20.0
    assert state.ball_y == 27.0
    assert state.ball_vy == -18.0
    assert -10.0 <= state.ball_vx < 10.0
    assert state.ball_vx != 0
    assert state.bricks_total == 3
    assert state.bricks_remaining == 3
    assert state.score == 0
    assert state.phase == GamePhase.playing
    assert not state.cleared and not state.game_over


def test_new_state_clamps_tiny_fields() -> None:
    s = new_state(_grid({}), width=3, height=2, seed=1)

    assert s.height == 10
    assert s.width == 10  # min(20 * 2, clamped width 10)
    assert s.paddle_w == 6.0
    assert s.paddle_y == 8.0
    assert s.paddle_x == 2.0


def test_new_state_copies_grid_matrices() -> None:
    grid = _grid({1: {1: 3}})
    s = new_state(grid, width=100, height=30, seed=1)

    s.bricks[1][1] = 0

    assert s.brick_max[1][1] == 3
    assert grid.cells[1][1].hp == 3


def test_serve_is_seeded() -> None:
    a = new_state(_grid({0: {0: 1}}), width=100, height=30, seed=7)
    b = new_state(_grid({0: {0: 1}}), width=100, height=30, seed=7)
    c = new_state(_grid({0: {0: 1}}), width=100, height=30, seed=8)

    assert a.ball_vx == b.ball_vx
    assert a.ball_vx != c.ball_vx


def test_reset_ball_uses_its_own_stream(state: SimulationState) -> None:
    serve_vx = state.ball_vx
    state.score = 70
    state.paddle_x = 3.0
    _aim(state, x=1.0, y=2.0, vx=0.0, vy=0.0)

    state.reset_ball(42)

    assert state.ball_x == 20.0
    assert state.ball_y == 27.0
    assert state.ball_vy == -18.0
    assert state.ball_vx != 0
    assert state.ball_vx != serve_vx
    assert state.score == 70
    assert state.paddle_x == 3.0


def test_paddle_moves_and_stays_in_field(state: SimulationState) -> None:
    state.step(DT, MoveInput(move=1))
    assert state.paddle_x == pytest.approx(16.0 + 70.0 * DT)

    for _ in range(500):
        state.step(DT, MoveInput(move=1))
        if state.finished:
            break
    assert state.paddle_x <= state.width - state.paddle_w


def test_paddle_clamps_left() -> None:
    s = new_state(_grid({0: {0: 1}}), width=100, height=30, seed=3)
    _aim(s, x=20.0, y=20.0, vx=0.0, vy=0.0)

    for _ in range(240):
        s.step(DT, MoveInput(move=-1))

    assert s.paddle_x == 0.0


def test_walls_reflect_horizontal_velocity(state: SimulationState) -> None:
    _aim(state, x=0.05, y=20.0, vx=-12.0, vy=0.0)
    state.step(DT, STILL)
    assert state.ball_x == 0.0
    assert state.ball_vx == 12.0

    _aim(state, x=38.95, y=20.0, vx=12.0, vy=0.0)
    state.step(DT, STILL)
    assert state.ball_x == 39.0
    assert state.ball_vx == -12.0


def test_ceiling_only_stops_upward_motion(state: SimulationState) -> None:
    _aim(state, x=30.0, y=6.05, vx=0.0, vy=-18.0)
    state.step(DT, STILL)

    assert state.ball_y == 6.0
    assert state.ball_vy == 18.0


def test_paddle_reflects_and_deflects(state: SimulationState) -> None:
    # Paddle spans x 16..24; its top edge sits at y=27.5.
    _aim(state, x=23.9, y=27.4, vx=0.0, vy=12.0)
    state.step(DT, STILL)

    assert state.ball_vy == -12.0
    assert state.ball_vx == pytest.approx(12.0 * (23.9 - 20.0) / 4.0)


def test_paddle_deflection_is_clamped(state: SimulationState) -> None:
    _aim(state, x=23.5, y=27.4, vx=29.0, vy=12.0)
    state.step(DT, STILL)

    assert state.ball_vx == 30.0
    assert state.ball_vy == -12.0


def test_paddle_ignores_rising_ball(state: SimulationState) -> None:
    _aim(state, x=20.0, y=27.6, vx=0.0, vy=-12.0)
    state.step(DT, STILL)

    assert state.ball_vy == -12.0


def test_brick_hits_score_by_initial_hp_and_break_once(state: SimulationState) -> None:
    for hit in range(1, 5):
        # Brick (row 0, col 0) occupies x 0..2, y 7..8; come up from below.
        _aim(state, x=1.0, y=8.05, vx=0.0, vy=-18.0)
        state.step(DT, STILL)

        assert state.score == 40 * hit
        assert state.bricks[0][0] == 4 - hit
        assert state.ball_y == pytest.approx(8.01)
        assert state.ball_vy == 18.0
        assert state.bricks_remaining == (3 if hit < 4 else 2)

    assert state.brick_max[0][0] == 4
    assert state.phase == GamePhase.playing


def test_clearing_last_brick_sets_cleared_and_freezes() -> None:
    s = new_state(_grid({0: {5: 1}}), width=100, height=30, seed=9)
    _aim(s, x=11.0, y=8.05, vx=0.0, vy=-18.0)

    s.step(DT, STILL)

    assert s.bricks_remaining == 0
    assert s.score == 10
    assert s.cleared
    assert s.phase == GamePhase.cleared
    assert not s.game_over

    before = s.to_snapshot()
    s.step(DT, MoveInput(move=1))
    assert s.to_snapshot() == before


def test_side_entry_wins_over_top_entry(state: SimulationState) -> None:
    # Brick (row 0, col 3) spans x 6..8, y 7..8; ball crosses both left and top edges.
    _aim(state, x=5.95, y=6.95, vx=12.0, vy=12.0)
    state.step(DT, STILL)

    assert state.bricks[0][3] == 1
    assert state.ball_x == pytest.approx(5.99)
    assert state.ball_vx == -12.0
    assert state.ball_vy == 12.0


def test_entry_from_right(state: SimulationState) -> None:
    _aim(state, x=8.05, y=7.5, vx=-12.0, vy=0.0)
    state.step(DT, STILL)

    assert state.ball_x == pytest.approx(8.01)
    assert state.ball_vx == 12.0


def test_entry_from_top(state: SimulationState) -> None:
    _aim(state, x=7.0, y=6.95, vx=0.0, vy=12.0)
    state.step(DT, STILL)

    assert state.ball_y == pytest.approx(6.99)
    assert state.ball_vy == -12.0


def test_already_inside_falls_back_to_vertical_flip(state: SimulationState) -> None:
    _aim(state, x=7.0, y=7.5, vx=0.0, vy=6.0)
    state.step(DT, STILL)

    assert state.bricks[0][3] == 1
    assert state.ball_y == pytest.approx(7.55)
    assert state.ball_vy == -6.0


def test_missing_paddle_ends_game_on_that_step(state: SimulationState) -> None:
    _aim(state, x=2.0, y=30.0, vx=0.0, vy=18.0)
    state.step(DT, STILL)

    assert state.game_over
    assert state.phase == GamePhase.game_over
    assert not state.cleared

    before = state.to_snapshot()
    for _ in range(10):
        state.step(DT, MoveInput(move=-1))
    assert state.to_snapshot() == before


def test_clearing_on_the_losing_step_counts_as_cleared() -> None:
    # Field height 10 puts brick row 4 at y=11, below the paddle line.
    s = new_state(_grid({4: {0: 1}}), width=100, height=10, seed=5)
    _aim(s, x=1.0, y=10.95, vx=0.0, vy=12.0)

    s.step(DT, STILL)

    assert s.bricks_remaining == 0
    assert s.phase == GamePhase.cleared
    assert s.cleared
    assert not s.game_over
    assert s.ball_y == pytest.approx(10.99)


def _play(seed: int, steps: int) -> list[tuple[int, int, GamePhase]]:
    grid = _grid({r: {c: (r + c) % 4 + 1 for c in range(20)} for r in range(7)})
    s = new_state(grid, width=100, height=30, seed=seed)
    trajectory = []
    for i in range(steps):
        # Wiggle the paddle so both sides of the hit band get exercised.
        move = (-1, 0, 1)[(i // 40) % 3]
        s.step(DT, MoveInput(move=move))
        trajectory.append((s.score, s.bricks_remaining, s.phase))
    return trajectory


def test_same_seed_and_inputs_are_bit_identical() -> None:
    a = _play(1234, 3000)
    b = _play(1234, 3000)

    assert a == b
    scores = [score for score, _, _ in a]
    remaining = [left for _, left, _ in a]
    assert scores == sorted(scores)
    assert remaining == sorted(remaining, reverse=True)


def test_fsm_terminal_states_are_final(state: SimulationState) -> None:
    fsm = PlayFSM(state)
    fsm.send("clear")
    fsm.sync_phase_to_model()

    assert state.phase == GamePhase.cleared
    with pytest.raises(TransitionNotAllowed):
        PlayFSM(state).send("lose")
