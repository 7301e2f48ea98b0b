"""Engine services."""

from poker_engine.services.action_log import ActionEvent, ActionLogger
from poker_engine.services.card_dealer import CardDealer
from poker_engine.services.deck import DeckStore
from poker_engine.services.game_state import GameStateRepository
from poker_engine.services.lifecycle import LifecycleController
from poker_engine.services.room_monitor import RoomMonitor

__all__ = [
    "ActionEvent",
    "ActionLogger",
    "CardDealer",
    "DeckStore",
    "GameStateRepository",
    "LifecycleController",
    "RoomMonitor",
]
