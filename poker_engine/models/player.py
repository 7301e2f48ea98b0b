"""Seated player model."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from poker_engine.models.base import RedisHash, encode_fields, parse_bool, parse_int
from poker_engine.utils.json_utils import loads_string_list


class PlayerStatus(str, Enum):
    WAITING = "waiting"
    ACTIVE = "active"
    FOLDED = "folded"
    ALL_IN = "all_in"
    SIT_OUT = "sit_out"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "PlayerStatus":
        for status in cls:
            if status is not cls.UNKNOWN and status.value == value:
                return status
        return cls.UNKNOWN


class PlayerAction(str, Enum):
    CHECK = "check"
    CALL = "call"
    BET = "bet"
    RAISE = "raise"
    FOLD = "fold"
    ALL_IN = "all_in"
    BLIND = "blind"


# Fields written when a hand is torn down; chips and seat are untouched.
PLAYER_RESET_FIELDS: dict[str, Any] = {
    "status": PlayerStatus.WAITING,
    "bet": 0,
    "cards": [],
    "last_action": "",
    "is_dealer": False,
    "is_small_blind": False,
    "is_big_blind": False,
}


@dataclass
class Player:
    user_id: str
    username: str = ""
    position: int = 0
    chips: int = 0
    bet: int = 0
    cards: list[str] = field(default_factory=list)
    status: PlayerStatus = PlayerStatus.WAITING
    last_action: PlayerAction | None = None
    is_dealer: bool = False
    is_small_blind: bool = False
    is_big_blind: bool = False
    joined_table_at: str = ""
    initial_buy_in: int = 0

    @classmethod
    def from_redis(cls, data: Mapping[str, str], user_id: str = "") -> "Player":
        last_action = None
        raw_action = data.get("last_action", "")
        if raw_action and raw_action != "null":
            try:
                last_action = PlayerAction(raw_action)
            except ValueError:
                last_action = None

        return cls(
            user_id=data.get("user_id") or user_id,
            username=data.get("username", ""),
            position=parse_int(data.get("position")),
            chips=max(0, parse_int(data.get("chips"))),
            bet=max(0, parse_int(data.get("bet"))),
            cards=loads_string_list(data.get("cards")),
            status=PlayerStatus.parse(data.get("status")),
            last_action=last_action,
            is_dealer=parse_bool(data.get("is_dealer")),
            is_small_blind=parse_bool(data.get("is_small_blind")),
            is_big_blind=parse_bool(data.get("is_big_blind")),
            joined_table_at=data.get("joined_table_at", ""),
            initial_buy_in=parse_int(data.get("initial_buy_in")),
        )

    def to_redis_hash(self) -> RedisHash:
        return encode_fields({
            "user_id": self.user_id,
            "username": self.username,
            "position": self.position,
            "chips": self.chips,
            "bet": self.bet,
            "cards": self.cards,
            "status": self.status,
            "last_action": self.last_action,
            "is_dealer": self.is_dealer,
            "is_small_blind": self.is_small_blind,
            "is_big_blind": self.is_big_blind,
            "joined_table_at": self.joined_table_at,
            "initial_buy_in": self.initial_buy_in,
        })

    def has_chips(self) -> bool:
        return self.chips > 0

    def total_chips(self) -> int:
        return self.chips + self.bet

    def is_active(self) -> bool:
        return self.status is PlayerStatus.ACTIVE

    def is_folded(self) -> bool:
        return self.status is PlayerStatus.FOLDED

    def is_all_in(self) -> bool:
        return self.status is PlayerStatus.ALL_IN

    def is_sitting_out(self) -> bool:
        return self.status is PlayerStatus.SIT_OUT
