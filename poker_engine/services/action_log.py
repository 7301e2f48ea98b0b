"""Append-only action log per room.

Every event is one JSON object pushed to the tail of the room's action list:

    {"action": "game_started", "timestamp": 1714564800, "source": "game_engine",
     "data": {"game_id": "...", "phase": "pre_flop", "players_count": 2}}

Appends are best-effort: callers log a warning on failure and carry on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from redis.asyncio import Redis

from poker_engine.storage.keys import KeyBuilder
from poker_engine.utils.json_utils import json_dumps, json_loads
from poker_engine.utils.redis_client import store_errors
from poker_engine.utils.time_utils import unix_timestamp

logger = logging.getLogger(__name__)

ACTION_SOURCE = "game_engine"
DEFAULT_RECENT_COUNT = 100


@dataclass
class ActionEvent:
    action: str
    timestamp: int
    source: str = ACTION_SOURCE
    data: dict[str, Any] | None = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        event: dict[str, Any] = {
            "action": self.action,
            "timestamp": self.timestamp,
            "source": self.source,
        }
        if self.data:
            event["data"] = self.data
        return event

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ActionEvent":
        return cls(
            action=str(data["action"]),
            timestamp=int(data.get("timestamp", 0)),
            source=str(data.get("source", "")),
            data=data.get("data"),
        )


class ActionLogger:
    """Writes and reads the per-room action history."""

    def __init__(self, redis: Redis, keys: KeyBuilder):
        self.redis = redis
        self.keys = keys

    async def append(
        self,
        club_id: str,
        room_id: str,
        action: str,
        data: dict[str, Any] | None = None,
    ) -> ActionEvent:
        """Push one event to the room's list.

        Raises:
            StoreUnavailableError: If the store rejects the write
        """
        event = ActionEvent(action=action, timestamp=unix_timestamp(), data=data)
        async with store_errors("append_action"):
            await self.redis.rpush(
                self.keys.room_actions(club_id, room_id),
                json_dumps(event.to_dict()),
            )
        return event

    async def try_append(
        self,
        club_id: str,
        room_id: str,
        action: str,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Fire-and-forget append; failures are logged as warnings."""
        try:
            await self.append(club_id, room_id, action, data)
        except Exception as e:
            logger.warning(f"Failed to record '{action}' for room {club_id}:{room_id}: {e}")
            return False
        return True

    # =========================================================================
    # Typed events
    # =========================================================================

    async def log_game_started(self, club_id: str, room_id: str, game_id: str, players_count: int) -> bool:
        return await self.try_append(club_id, room_id, "game_started", {
            "game_id": game_id,
            "phase": "pre_flop",
            "players_count": players_count,
        })

    async def log_game_stopped(self, club_id: str, room_id: str, previous_phase: str, reason: str) -> bool:
        return await self.try_append(club_id, room_id, "game_stopped", {
            "previous_phase": previous_phase,
            "reason": reason,
        })

    async def log_phase_changed(self, club_id: str, room_id: str, old_phase: str, new_phase: str) -> bool:
        return await self.try_append(club_id, room_id, "phase_changed", {
            "old_phase": old_phase,
            "new_phase": new_phase,
        })

    async def log_player_joined(self, club_id: str, room_id: str, user_id: str, role: str) -> bool:
        # role: "player" or "spectator"
        return await self.try_append(club_id, room_id, "player_joined", {
            "user_id": user_id,
            "role": role,
        })

    async def log_player_left(self, club_id: str, room_id: str, user_id: str, role: str) -> bool:
        return await self.try_append(club_id, room_id, "player_left", {
            "user_id": user_id,
            "role": role,
        })

    async def log_player_sat_down(
        self, club_id: str, room_id: str, user_id: str, position: int, buy_in: int
    ) -> bool:
        return await self.try_append(club_id, room_id, "player_sat_down", {
            "user_id": user_id,
            "position": position,
            "buy_in": buy_in,
        })

    async def log_player_stood_up(
        self, club_id: str, room_id: str, user_id: str, position: int, chips_left: int
    ) -> bool:
        return await self.try_append(club_id, room_id, "player_stood_up", {
            "user_id": user_id,
            "position": position,
            "chips_left": chips_left,
        })

    async def log_player_action(
        self, club_id: str, room_id: str, user_id: str, action: str, amount: int = 0
    ) -> bool:
        data: dict[str, Any] = {"user_id": user_id, "action": action}
        if amount > 0:
            data["amount"] = amount
        return await self.try_append(club_id, room_id, "player_action", data)

    async def log_dealer_moved(self, club_id: str, room_id: str, old_position: int, new_position: int) -> bool:
        return await self.try_append(club_id, room_id, "dealer_moved", {
            "old_position": old_position,
            "new_position": new_position,
        })

    async def log_blinds_posted(
        self,
        club_id: str,
        room_id: str,
        small_blind_user: str,
        big_blind_user: str,
        small_blind_amount: int,
        big_blind_amount: int,
    ) -> bool:
        return await self.try_append(club_id, room_id, "blinds_posted", {
            "small_blind_user": small_blind_user,
            "big_blind_user": big_blind_user,
            "small_blind_amount": small_blind_amount,
            "big_blind_amount": big_blind_amount,
        })

    async def log_cards_dealt(self, club_id: str, room_id: str, players_count: int) -> bool:
        return await self.try_append(club_id, room_id, "cards_dealt", {"players_count": players_count})

    async def log_community_cards_revealed(
        self, club_id: str, room_id: str, phase: str, cards_count: int
    ) -> bool:
        return await self.try_append(club_id, room_id, "community_cards_revealed", {
            "phase": phase,
            "cards_count": cards_count,
        })

    async def log_pot_awarded(self, club_id: str, room_id: str, winner_user_id: str, amount: int) -> bool:
        return await self.try_append(club_id, room_id, "pot_awarded", {
            "winner_user_id": winner_user_id,
            "amount": amount,
        })

    async def log_round_finished(self, club_id: str, room_id: str, round_number: int, total_pot: int) -> bool:
        return await self.try_append(club_id, room_id, "round_finished", {
            "round_number": round_number,
            "total_pot": total_pot,
        })

    async def log_error(self, club_id: str, room_id: str, error_type: str, error_message: str) -> bool:
        return await self.try_append(club_id, room_id, "error", {
            "error_type": error_type,
            "error_message": error_message,
        })

    # =========================================================================
    # Reads
    # =========================================================================

    async def read_recent(self, club_id: str, room_id: str, count: int = DEFAULT_RECENT_COUNT) -> list[ActionEvent]:
        """Last ``count`` events, oldest first. Unparseable entries are skipped."""
        if count <= 0:
            count = DEFAULT_RECENT_COUNT

        async with store_errors("read_actions"):
            raw_events = await self.redis.lrange(self.keys.room_actions(club_id, room_id), -count, -1)

        events: list[ActionEvent] = []
        for raw in raw_events:
            try:
                events.append(ActionEvent.from_dict(json_loads(raw)))
            except (ValueError, KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed action entry: {e}")
        return events

    async def count(self, club_id: str, room_id: str) -> int:
        async with store_errors("count_actions"):
            return await self.redis.llen(self.keys.room_actions(club_id, room_id))

    async def clear(self, club_id: str, room_id: str) -> None:
        async with store_errors("clear_actions"):
            await self.redis.delete(self.keys.room_actions(club_id, room_id))
        logger.info(f"Action history cleared for room {club_id}:{room_id}")

    async def trim(self, club_id: str, room_id: str, keep_last: int) -> None:
        """Keep only the newest ``keep_last`` events."""
        if keep_last <= 0:
            await self.clear(club_id, room_id)
            return
        async with store_errors("trim_actions"):
            await self.redis.ltrim(self.keys.room_actions(club_id, room_id), -keep_last, -1)

    async def by_type(
        self, club_id: str, room_id: str, action: str, limit: int = DEFAULT_RECENT_COUNT
    ) -> list[ActionEvent]:
        events = await self.read_recent(club_id, room_id, limit)
        return [event for event in events if event.action == action]

    async def by_user(
        self, club_id: str, room_id: str, user_id: str, limit: int = DEFAULT_RECENT_COUNT
    ) -> list[ActionEvent]:
        events = await self.read_recent(club_id, room_id, limit)
        return [
            event for event in events
            if event.data and event.data.get("user_id") == user_id
        ]
