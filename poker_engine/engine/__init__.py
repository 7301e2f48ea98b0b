"""Pure game primitives: cards and the phase state machine."""

from poker_engine.engine.cards import (
    Card,
    Rank,
    Suit,
    create_shuffled_deck,
    default_rng,
    new_deck,
    shuffle,
)
from poker_engine.engine.phases import (
    GamePhase,
    can_transition,
    next_phase,
    parse_phase,
)

__all__ = [
    "Card",
    "Rank",
    "Suit",
    "new_deck",
    "shuffle",
    "create_shuffled_deck",
    "default_rng",
    "GamePhase",
    "can_transition",
    "next_phase",
    "parse_phase",
]
