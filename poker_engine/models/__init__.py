"""Hash-backed domain models."""

from poker_engine.models.game import Game, SidePot
from poker_engine.models.player import Player, PlayerAction, PlayerStatus
from poker_engine.models.room import Room, RoomStatus

__all__ = [
    "Game",
    "SidePot",
    "Player",
    "PlayerAction",
    "PlayerStatus",
    "Room",
    "RoomStatus",
]
