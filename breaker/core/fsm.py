from __future__ import annotations

from typing import TYPE_CHECKING

from statemachine import State, StateMachine

from breaker.api.models import GamePhase

if TYPE_CHECKING:
    from breaker.core.engine import SimulationState


class PlayFSM(StateMachine):
    """FSM wrapper around a SimulationState's phase.

    - phases: playing -> cleared | game_over
    - both outcomes are final; only a brand new state (retry/resize) starts playing again.
    - the engine mutates physics; the FSM only guards the phase transition.
    """

    playing = State(GamePhase.playing.value, value=GamePhase.playing.value, initial=True)
    cleared = State(GamePhase.cleared.value, value=GamePhase.cleared.value, final=True)
    game_over = State(GamePhase.game_over.value, value=GamePhase.game_over.value, final=True)

    clear = playing.to(cleared)
    lose = playing.to(game_over)

    def __init__(self, sim: SimulationState):
        self.sim = sim
        super().__init__(start_value=sim.phase.value)

    def sync_phase_to_model(self) -> None:
        self.sim.phase = GamePhase(str(self.current_state.value))
