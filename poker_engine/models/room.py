"""Room model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping

from poker_engine.models.base import RedisHash, encode_fields, parse_int


class RoomStatus(str, Enum):
    """Room lifecycle status.

    waiting <-> ready is driven by seating; waiting <-> gaming by the monitor.
    """

    WAITING = "waiting"
    READY = "ready"
    GAMING = "gaming"
    PAUSED = "paused"
    CLOSED = "closed"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "RoomStatus":
        for status in cls:
            if status is not cls.UNKNOWN and status.value == value:
                return status
        return cls.UNKNOWN


@dataclass
class Room:
    """Descriptive attributes of a room.

    ``current_players``/``current_spectators`` are not stored in the info
    hash; the repository fills them from the membership sets.
    """

    room_id: str
    club_id: str
    key: str = ""
    max_players: int = 0
    small_blind: int = 0
    big_blind: int = 0
    buy_in_min: int = 0
    buy_in_max: int = 0
    currency: str = ""
    status: RoomStatus = RoomStatus.WAITING
    created_at: str = ""
    current_players: int = 0
    current_spectators: int = 0

    @classmethod
    def from_redis(cls, data: Mapping[str, str]) -> "Room":
        return cls(
            room_id=data.get("room_id", ""),
            club_id=data.get("club_id", ""),
            key=data.get("key", ""),
            max_players=parse_int(data.get("max_players")),
            small_blind=parse_int(data.get("small_blind")),
            big_blind=parse_int(data.get("big_blind")),
            buy_in_min=parse_int(data.get("buy_in_min")),
            buy_in_max=parse_int(data.get("buy_in_max")),
            currency=data.get("currency", ""),
            status=RoomStatus.parse(data.get("status")),
            created_at=data.get("created_at", ""),
        )

    def to_redis_hash(self) -> RedisHash:
        return encode_fields({
            "room_id": self.room_id,
            "club_id": self.club_id,
            "key": self.key,
            "max_players": self.max_players,
            "small_blind": self.small_blind,
            "big_blind": self.big_blind,
            "buy_in_min": self.buy_in_min,
            "buy_in_max": self.buy_in_max,
            "currency": self.currency,
            "status": self.status,
            "created_at": self.created_at,
        })

    def is_status_valid(self) -> bool:
        return self.status is not RoomStatus.UNKNOWN

    def can_start_game(self, min_players: int) -> bool:
        return (
            self.status in (RoomStatus.WAITING, RoomStatus.READY)
            and self.current_players >= min_players
        )

    def can_accept_players(self) -> bool:
        return self.status is not RoomStatus.CLOSED and self.current_players < self.max_players

    def is_full(self) -> bool:
        return self.current_players >= self.max_players

    def is_empty(self) -> bool:
        return self.current_players == 0

    def has_minimum_players(self, min_players: int) -> bool:
        return self.current_players >= min_players
