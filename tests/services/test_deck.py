"""Tests for per-room deck storage."""

from __future__ import annotations

import random

import pytest

from poker_engine.engine.cards import DECK_SIZE, new_deck
from poker_engine.services.deck import DeckStore
from poker_engine.utils.errors import StoreUnavailableError


class TestSaveDeck:
    @pytest.mark.asyncio
    async def test_last_card_is_drawn_first(self, deck):
        await deck.save_deck("1", "7", ["AH", "KD", "2C"])

        assert await deck.draw_one("1", "7") == "2C"
        assert await deck.draw_one("1", "7") == "KD"
        assert await deck.deck_size("1", "7") == 1

    @pytest.mark.asyncio
    async def test_save_replaces_previous_deck(self, deck):
        await deck.save_deck("1", "7", ["AH", "KD"])
        await deck.save_deck("1", "7", ["2C"])

        assert await deck.deck_size("1", "7") == 1
        assert await deck.draw_one("1", "7") == "2C"

    @pytest.mark.asyncio
    async def test_failed_save_leaves_old_deck(self, deck, redis):
        await deck.save_deck("1", "7", ["AH", "KD"])
        redis.fail_on.add("multi")

        with pytest.raises(StoreUnavailableError):
            await deck.save_deck("1", "7", new_deck())

        redis.fail_on.clear()
        assert await deck.deck_size("1", "7") == 2


class TestDraw:
    @pytest.mark.asyncio
    async def test_full_deck_draws_52_unique_then_none(self, deck):
        await deck.save_deck("1", "7", deck.create_shuffled_deck())

        drawn = [await deck.draw_one("1", "7") for _ in range(DECK_SIZE)]

        assert len(set(drawn)) == DECK_SIZE
        assert sorted(drawn) == sorted(new_deck())
        assert await deck.draw_one("1", "7") is None
        assert await deck.deck_size("1", "7") == 0

    @pytest.mark.asyncio
    async def test_draw_from_missing_deck(self, deck):
        assert await deck.draw_one("1", "404") is None
        assert await deck.draw_n("1", "404", 3) == []

    @pytest.mark.asyncio
    async def test_draw_n_stops_early(self, deck):
        await deck.save_deck("1", "7", ["AH", "KD", "2C"])

        cards = await deck.draw_n("1", "7", 5)

        assert cards == ["2C", "KD", "AH"]
        assert await deck.deck_size("1", "7") == 0

    @pytest.mark.asyncio
    async def test_rooms_have_separate_decks(self, deck):
        await deck.save_deck("1", "7", ["AH"])
        await deck.save_deck("1", "8", ["KD"])

        assert await deck.draw_one("1", "8") == "KD"
        assert await deck.draw_one("1", "7") == "AH"

    @pytest.mark.asyncio
    async def test_store_failure_is_translated(self, deck, redis):
        await deck.save_deck("1", "7", ["AH"])
        redis.fail_on.add("rpop")

        with pytest.raises(StoreUnavailableError) as exc_info:
            await deck.draw_one("1", "7")

        assert exc_info.value.code == "STORE_UNAVAILABLE"
        assert exc_info.value.details["operation"] == "draw_one"


class TestShuffledDeck:
    def test_seeded_store_is_reproducible(self, deck, redis, keys):
        other = DeckStore(redis, keys, rng=random.Random(42))
        assert deck.create_shuffled_deck() == other.create_shuffled_deck()

    def test_shuffled_deck_is_complete(self, deck):
        assert sorted(deck.create_shuffled_deck()) == sorted(new_deck())

    @pytest.mark.asyncio
    async def test_delete_deck(self, deck):
        await deck.save_deck("1", "7", ["AH"])
        await deck.delete_deck("1", "7")
        assert await deck.deck_size("1", "7") == 0
