"""Room/game state repository.

Typed reads and grouped writes over the per-room hashes and sets. Missing
records are a normal state (a brand-new room has no game hash yet), so
getters return ``None`` instead of raising. Redis failures surface as
``StoreUnavailableError``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Mapping

from redis.asyncio import Redis

from poker_engine.engine.phases import GamePhase
from poker_engine.models.base import encode_fields, encode_value
from poker_engine.models.game import Game, parse_side_pots
from poker_engine.models.player import Player
from poker_engine.models.room import Room, RoomStatus
from poker_engine.storage.keys import KeyBuilder
from poker_engine.utils.json_utils import loads_string_list
from poker_engine.utils.redis_client import store_errors

logger = logging.getLogger(__name__)

SCAN_BATCH_SIZE = 100


class GameStateRepository:
    """Read/write access to room, game and player records."""

    def __init__(self, redis: Redis, keys: KeyBuilder):
        self.redis = redis
        self.keys = keys

    # =========================================================================
    # Discovery
    # =========================================================================

    async def iter_active_club_keys(self) -> AsyncIterator[str]:
        """Yield every ``club:*:rooms:active`` key (cursor-based SCAN)."""
        pattern = self.keys.club_rooms_active_pattern()
        async with store_errors("scan_active_clubs"):
            async for key in self.redis.scan_iter(match=pattern, count=SCAN_BATCH_SIZE):
                yield key

    async def get_active_room_ids(self, club_rooms_key: str) -> list[str]:
        async with store_errors("get_active_room_ids"):
            return await self.redis.zrange(club_rooms_key, 0, -1)

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_game(self, club_id: str, room_id: str) -> Game | None:
        """Current game record, or ``None`` if the room has no game hash."""
        async with store_errors("get_game"):
            async with self.redis.pipeline(transaction=False) as pipe:
                pipe.hgetall(self.keys.game_state(club_id, room_id))
                pipe.hget(self.keys.room_pots(club_id, room_id), "side_pots")
                data, side_pots = await pipe.execute()

        if not data:
            return None
        game = Game.from_redis(data, club_id=club_id, room_id=room_id)
        game.side_pots = parse_side_pots(side_pots)
        return game

    async def get_room(self, club_id: str, room_id: str) -> Room | None:
        async with store_errors("get_room"):
            async with self.redis.pipeline(transaction=False) as pipe:
                pipe.hgetall(self.keys.room_info(club_id, room_id))
                pipe.scard(self.keys.room_players(club_id, room_id))
                pipe.scard(self.keys.room_spectators(club_id, room_id))
                data, players, spectators = await pipe.execute()

        if not data:
            return None
        room = Room.from_redis(data)
        room.club_id = room.club_id or club_id
        room.room_id = room.room_id or room_id
        room.current_players = players
        room.current_spectators = spectators
        return room

    async def get_players_count(self, club_id: str, room_id: str) -> int:
        async with store_errors("get_players_count"):
            return await self.redis.scard(self.keys.room_players(club_id, room_id))

    async def get_spectators_count(self, club_id: str, room_id: str) -> int:
        async with store_errors("get_spectators_count"):
            return await self.redis.scard(self.keys.room_spectators(club_id, room_id))

    async def get_player_ids(self, club_id: str, room_id: str) -> set[str]:
        async with store_errors("get_player_ids"):
            return set(await self.redis.smembers(self.keys.room_players(club_id, room_id)))

    async def get_player(self, club_id: str, room_id: str, user_id: str) -> Player | None:
        async with store_errors("get_player"):
            data = await self.redis.hgetall(self.keys.player_info(club_id, room_id, user_id))
        if not data:
            return None
        return Player.from_redis(data, user_id=user_id)

    async def get_active_players(self, club_id: str, room_id: str) -> list[Player]:
        """Seated players whose status is ``active``; unreadable records are skipped."""
        active: list[Player] = []
        for user_id in await self.get_player_ids(club_id, room_id):
            try:
                player = await self.get_player(club_id, room_id, user_id)
            except Exception as e:
                logger.warning(f"Failed to read player {user_id}: {e}")
                continue
            if player is not None and player.is_active():
                active.append(player)
        return active

    async def get_community_cards(self, club_id: str, room_id: str) -> list[str]:
        async with store_errors("get_community_cards"):
            raw = await self.redis.hget(self.keys.game_state(club_id, room_id), "community_cards")
        return loads_string_list(raw)

    async def get_player_cards(self, club_id: str, room_id: str, user_id: str) -> list[str]:
        async with store_errors("get_player_cards"):
            raw = await self.redis.hget(self.keys.player_info(club_id, room_id, user_id), "cards")
        return loads_string_list(raw)

    async def room_exists(self, club_id: str, room_id: str) -> bool:
        async with store_errors("room_exists"):
            return await self.redis.exists(self.keys.room_info(club_id, room_id)) > 0

    async def is_player_in_room(self, club_id: str, room_id: str, user_id: str) -> bool:
        async with store_errors("is_player_in_room"):
            return bool(await self.redis.sismember(self.keys.room_players(club_id, room_id), user_id))

    async def is_spectator_in_room(self, club_id: str, room_id: str, user_id: str) -> bool:
        async with store_errors("is_spectator_in_room"):
            return bool(
                await self.redis.sismember(self.keys.room_spectators(club_id, room_id), user_id)
            )

    async def is_game_active(self, club_id: str, room_id: str) -> bool:
        game = await self.get_game(club_id, room_id)
        return game is not None and game.is_active()

    async def is_game_waiting(self, club_id: str, room_id: str) -> bool:
        """A room with no game record counts as waiting."""
        game = await self.get_game(club_id, room_id)
        return game is None or game.is_waiting()

    async def has_minimum_players(self, club_id: str, room_id: str, min_players: int) -> bool:
        return await self.get_players_count(club_id, room_id) >= min_players

    async def can_start_game(self, club_id: str, room_id: str, min_players: int) -> bool:
        if not await self.has_minimum_players(club_id, room_id, min_players):
            return False
        return not await self.is_game_active(club_id, room_id)

    async def get_full_room_state(self, club_id: str, room_id: str) -> dict[str, Any]:
        room = await self.get_room(club_id, room_id)
        game = await self.get_game(club_id, room_id)
        return {
            "room": room,
            "game": game,
            "players_count": room.current_players if room else await self.get_players_count(club_id, room_id),
            "spectators_count": room.current_spectators if room else await self.get_spectators_count(club_id, room_id),
        }

    # =========================================================================
    # Writes
    # =========================================================================

    async def update_game_fields(self, club_id: str, room_id: str, fields: Mapping[str, Any]) -> None:
        """Write several game fields in one HSET."""
        if not fields:
            return
        async with store_errors("update_game_fields"):
            await self.redis.hset(self.keys.game_state(club_id, room_id), mapping=encode_fields(fields))

    async def update_room_fields(self, club_id: str, room_id: str, fields: Mapping[str, Any]) -> None:
        """Write several room fields in one HSET."""
        if not fields:
            return
        async with store_errors("update_room_fields"):
            await self.redis.hset(self.keys.room_info(club_id, room_id), mapping=encode_fields(fields))

    async def update_player_fields(
        self,
        club_id: str,
        room_id: str,
        user_id: str,
        fields: Mapping[str, Any],
    ) -> None:
        if not fields:
            return
        async with store_errors("update_player_fields"):
            await self.redis.hset(
                self.keys.player_info(club_id, room_id, user_id),
                mapping=encode_fields(fields),
            )

    async def update_room_and_game(
        self,
        club_id: str,
        room_id: str,
        room_fields: Mapping[str, Any],
        game_fields: Mapping[str, Any],
    ) -> None:
        """Write room and game fields as one MULTI/EXEC unit.

        Either every field lands or none does; readers never see a half-written
        combination. This is batch atomicity only: other writers may still
        interleave between two separate calls.
        """
        async with store_errors("update_room_and_game"):
            async with self.redis.pipeline(transaction=True) as pipe:
                if room_fields:
                    pipe.hset(self.keys.room_info(club_id, room_id), mapping=encode_fields(room_fields))
                if game_fields:
                    pipe.hset(self.keys.game_state(club_id, room_id), mapping=encode_fields(game_fields))
                await pipe.execute()

    async def update_game_phase(self, club_id: str, room_id: str, phase: GamePhase) -> None:
        async with store_errors("update_game_phase"):
            await self.redis.hset(self.keys.game_state(club_id, room_id), "phase", encode_value(phase))

    async def update_room_status(self, club_id: str, room_id: str, status: RoomStatus) -> None:
        async with store_errors("update_room_status"):
            await self.redis.hset(self.keys.room_info(club_id, room_id), "status", encode_value(status))

    async def set_community_cards(self, club_id: str, room_id: str, cards: list[str]) -> None:
        await self.update_game_fields(club_id, room_id, {"community_cards": cards})

    async def set_player_cards(self, club_id: str, room_id: str, user_id: str, cards: list[str]) -> None:
        await self.update_player_fields(club_id, room_id, user_id, {"cards": cards})

    async def reset_pots(self, club_id: str, room_id: str) -> None:
        async with store_errors("reset_pots"):
            await self.redis.hset(
                self.keys.room_pots(club_id, room_id),
                mapping={"main_pot": "0", "side_pots": "[]"},
            )

    async def cleanup_room(self, club_id: str, room_id: str) -> None:
        """Delete every per-room key."""
        async with store_errors("cleanup_room"):
            await self.redis.delete(*self.keys.room_keys(club_id, room_id))
        logger.info(f"Room data cleared for {club_id}:{room_id}")
