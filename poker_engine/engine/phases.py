"""Game phase state machine.

    waiting -> pre_flop -> flop -> turn -> river -> showdown -> finished -> waiting

``waiting`` and ``finished`` mean no hand is in progress. ``finished`` is
transient and is followed by ``waiting`` or a fresh ``pre_flop``. The room
monitor only drives ``waiting -> pre_flop`` and the forced collapse back to
``waiting``; the street progression belongs to the betting logic.
"""

from __future__ import annotations

from enum import Enum


class GamePhase(str, Enum):
    """Phase of the hand in a room.

    ``UNKNOWN`` stands for text in the store that is not a phase name. It is
    never written back and has no edges in the transition table.
    """

    WAITING = "waiting"
    PRE_FLOP = "pre_flop"
    FLOP = "flop"
    TURN = "turn"
    RIVER = "river"
    SHOWDOWN = "showdown"
    FINISHED = "finished"
    UNKNOWN = "unknown"


VALID_TRANSITIONS: dict[GamePhase, frozenset[GamePhase]] = {
    GamePhase.WAITING: frozenset({GamePhase.PRE_FLOP}),
    GamePhase.PRE_FLOP: frozenset({GamePhase.FLOP, GamePhase.SHOWDOWN, GamePhase.FINISHED}),
    GamePhase.FLOP: frozenset({GamePhase.TURN, GamePhase.SHOWDOWN, GamePhase.FINISHED}),
    GamePhase.TURN: frozenset({GamePhase.RIVER, GamePhase.SHOWDOWN, GamePhase.FINISHED}),
    GamePhase.RIVER: frozenset({GamePhase.SHOWDOWN, GamePhase.FINISHED}),
    GamePhase.SHOWDOWN: frozenset({GamePhase.FINISHED, GamePhase.PRE_FLOP}),
    GamePhase.FINISHED: frozenset({GamePhase.WAITING, GamePhase.PRE_FLOP}),
}

NEXT_PHASE: dict[GamePhase, GamePhase] = {
    GamePhase.WAITING: GamePhase.PRE_FLOP,
    GamePhase.PRE_FLOP: GamePhase.FLOP,
    GamePhase.FLOP: GamePhase.TURN,
    GamePhase.TURN: GamePhase.RIVER,
    GamePhase.RIVER: GamePhase.SHOWDOWN,
    GamePhase.SHOWDOWN: GamePhase.FINISHED,
    GamePhase.FINISHED: GamePhase.WAITING,
}

IDLE_PHASES = frozenset({GamePhase.WAITING, GamePhase.FINISHED})


def all_phases() -> list[GamePhase]:
    """The seven real phases in hand order."""
    return [phase for phase in GamePhase if phase is not GamePhase.UNKNOWN]


def is_valid_phase(value: str) -> bool:
    return value in {phase.value for phase in all_phases()}


def parse_phase(value: str | None) -> GamePhase:
    """Map stored text to a phase; unrecognised text becomes ``UNKNOWN``."""
    if value is None or not is_valid_phase(value):
        return GamePhase.UNKNOWN
    return GamePhase(value)


def can_transition(from_phase: GamePhase, to_phase: GamePhase) -> bool:
    return to_phase in VALID_TRANSITIONS.get(from_phase, frozenset())


def next_phase(phase: GamePhase) -> GamePhase:
    """Successor when the hand advances normally; anything unknown collapses to waiting."""
    return NEXT_PHASE.get(phase, GamePhase.WAITING)


def is_hand_in_progress(phase: GamePhase) -> bool:
    return phase not in IDLE_PHASES
