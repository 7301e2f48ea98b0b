"""Deck storage for a room.

The deck is a Redis list; the top of the deck is the tail of the list.
Each draw is a single RPOP, so concurrent drawers against the same room can
never receive the same card.
"""

from __future__ import annotations

import logging
import random
from typing import Sequence

from redis.asyncio import Redis

from poker_engine.engine.cards import create_shuffled_deck, default_rng
from poker_engine.storage.keys import KeyBuilder
from poker_engine.utils.redis_client import store_errors

logger = logging.getLogger(__name__)


class DeckStore:
    """Persists and draws from one ordered deck per room."""

    def __init__(self, redis: Redis, keys: KeyBuilder, rng: random.Random | None = None):
        self.redis = redis
        self.keys = keys
        self.rng = rng or default_rng()

    def create_shuffled_deck(self) -> list[str]:
        """Fresh 52-card deck shuffled with this store's random source."""
        return create_shuffled_deck(self.rng)

    async def save_deck(self, club_id: str, room_id: str, cards: Sequence[str]) -> None:
        """Replace the room's deck with ``cards`` (last element is drawn first)."""
        deck_key = self.keys.room_deck(club_id, room_id)
        async with store_errors("save_deck"):
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(deck_key)
                if cards:
                    pipe.rpush(deck_key, *cards)
                await pipe.execute()
        logger.info(f"Saved deck of {len(cards)} cards for room {club_id}:{room_id}")

    async def draw_one(self, club_id: str, room_id: str) -> str | None:
        """Atomically remove and return the top card.

        Returns:
            The card code, or ``None`` once the deck is empty
        """
        deck_key = self.keys.room_deck(club_id, room_id)
        async with store_errors("draw_one"):
            card = await self.redis.rpop(deck_key)
        if card is None:
            logger.warning(f"Deck is empty for room {club_id}:{room_id}")
        return card

    async def draw_n(self, club_id: str, room_id: str, count: int) -> list[str]:
        """Draw up to ``count`` cards, one atomic pop at a time.

        Stops early (returning fewer cards) if the deck runs out.
        """
        cards: list[str] = []
        for i in range(count):
            card = await self.draw_one(club_id, room_id)
            if card is None:
                logger.warning(f"Deck ran out after {i} of {count} cards")
                break
            cards.append(card)
        return cards

    async def deck_size(self, club_id: str, room_id: str) -> int:
        async with store_errors("deck_size"):
            return await self.redis.llen(self.keys.room_deck(club_id, room_id))

    async def delete_deck(self, club_id: str, room_id: str) -> None:
        async with store_errors("delete_deck"):
            await self.redis.delete(self.keys.room_deck(club_id, room_id))
