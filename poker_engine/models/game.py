"""Game (hand) model.

A room with no hand in progress still has a game hash: phase ``waiting``
and an empty ``game_id``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Mapping

from poker_engine.engine.phases import GamePhase, is_hand_in_progress, parse_phase
from poker_engine.models.base import (
    RedisHash,
    encode_fields,
    parse_int,
    parse_optional_int,
)
from poker_engine.utils.json_utils import json_loads, loads_string_list
from poker_engine.utils.time_utils import parse_rfc3339, utc_now


@dataclass
class SidePot:
    amount: int
    eligible_players: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"amount": self.amount, "eligible_players": list(self.eligible_players)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SidePot":
        try:
            amount = max(0, int(data.get("amount", 0)))
        except (TypeError, ValueError):
            amount = 0
        players = data.get("eligible_players") or []
        return cls(amount=amount, eligible_players=[str(p) for p in players])


def parse_side_pots(raw: str | None) -> list[SidePot]:
    """Decode the JSON side-pot list; malformed input gives an empty list."""
    if not raw:
        return []
    try:
        items = json_loads(raw)
    except ValueError:
        return []
    if not isinstance(items, list):
        return []
    return [SidePot.from_dict(item) for item in items if isinstance(item, dict)]


@dataclass
class Game:
    """Phase-scoped state of the hand in one room."""

    club_id: str = ""
    room_id: str = ""
    game_id: str = ""
    phase: GamePhase = GamePhase.WAITING
    pot: int = 0
    current_bet: int = 0
    dealer_position: int = 0
    small_blind_position: int | None = None
    big_blind_position: int | None = None
    current_player_position: int | None = None
    round_number: int = 0
    community_cards: list[str] = field(default_factory=list)
    started_at: datetime | None = None
    side_pots: list[SidePot] = field(default_factory=list)
    # Stored phase text as read, kept when it does not parse
    raw_phase: str = field(default="", compare=False)

    @classmethod
    def from_redis(cls, data: Mapping[str, str], club_id: str = "", room_id: str = "") -> "Game":
        return cls(
            club_id=club_id,
            room_id=room_id,
            game_id=data.get("game_id", ""),
            phase=parse_phase(data.get("phase")),
            raw_phase=data.get("phase", ""),
            pot=max(0, parse_int(data.get("pot"))),
            current_bet=max(0, parse_int(data.get("current_bet"))),
            dealer_position=parse_int(data.get("dealer_position")),
            small_blind_position=parse_optional_int(data.get("small_blind_position")),
            big_blind_position=parse_optional_int(data.get("big_blind_position")),
            current_player_position=parse_optional_int(data.get("current_player_position")),
            round_number=parse_int(data.get("round_number")),
            community_cards=loads_string_list(data.get("community_cards")),
            started_at=parse_rfc3339(data.get("started_at")),
        )

    def to_redis_hash(self) -> RedisHash:
        return encode_fields({
            "game_id": self.game_id,
            "phase": self.phase,
            "pot": self.pot,
            "current_bet": self.current_bet,
            "dealer_position": self.dealer_position,
            "small_blind_position": self.small_blind_position,
            "big_blind_position": self.big_blind_position,
            "current_player_position": self.current_player_position,
            "round_number": self.round_number,
            "community_cards": self.community_cards,
            "started_at": self.started_at,
        })

    def is_active(self) -> bool:
        return is_hand_in_progress(self.phase)

    def is_waiting(self) -> bool:
        return self.phase is GamePhase.WAITING

    def is_finished(self) -> bool:
        return self.phase is GamePhase.FINISHED

    def is_started(self) -> bool:
        return self.started_at is not None

    def total_pot(self) -> int:
        return self.pot + sum(side_pot.amount for side_pot in self.side_pots)

    def community_cards_count(self) -> int:
        return len(self.community_cards)

    def duration(self) -> timedelta:
        if self.started_at is None:
            return timedelta(0)
        return utc_now() - self.started_at
