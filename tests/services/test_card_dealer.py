"""Tests for hole and community card dealing."""

from __future__ import annotations

import pytest

from poker_engine.engine.cards import is_valid_card
from poker_engine.utils.errors import DeckExhaustedError, InvalidBoardError, NoPlayersError


class TestHoleCards:
    @pytest.mark.asyncio
    async def test_three_players_get_six_unique_cards(self, dealer, deck, state, seed, action_log):
        await seed(players=("100", "200", "300"))

        dealt = await dealer.deal_hole_cards("1", "7")

        assert sorted(dealt) == ["100", "200", "300"]
        all_cards = [card for cards in dealt.values() for card in cards]
        assert len(all_cards) == 6
        assert len(set(all_cards)) == 6
        assert all(is_valid_card(card) for card in all_cards)
        assert await deck.deck_size("1", "7") == 46
        for user_id, cards in dealt.items():
            assert await state.get_player_cards("1", "7", user_id) == cards

        [event] = await action_log.read_recent("1", "7")
        assert event.action == "cards_dealt"
        assert event.data == {"players_count": 3}

    @pytest.mark.asyncio
    async def test_no_players(self, dealer, seed):
        await seed(players=())

        with pytest.raises(NoPlayersError):
            await dealer.deal_hole_cards("1", "7")

    @pytest.mark.asyncio
    async def test_every_deal_uses_a_fresh_deck(self, dealer, deck, seed):
        await seed(players=("100", "200"))

        await dealer.deal_hole_cards("1", "7")
        await dealer.deal_hole_cards("1", "7")

        assert await deck.deck_size("1", "7") == 48


class TestCommunityCards:
    @pytest.mark.asyncio
    async def test_cards_come_off_the_top_in_order(self, dealer, deck, state, seed):
        await seed(phase="flop")
        await deck.save_deck("1", "7", ["2C", "3C", "4C", "5C"])

        cards = await dealer.deal_community_cards("1", "7", 3)

        assert cards == ["5C", "4C", "3C"]
        assert await state.get_community_cards("1", "7") == ["5C", "4C", "3C"]
        assert await deck.deck_size("1", "7") == 1

    @pytest.mark.asyncio
    async def test_revealed_event_carries_phase(self, dealer, deck, state, seed, action_log):
        await seed(phase="turn", community_cards='["AH","KD","2D"]')
        await deck.save_deck("1", "7", ["2C"])

        await dealer.deal_community_cards("1", "7", 1)

        assert await state.get_community_cards("1", "7") == ["AH", "KD", "2D", "2C"]
        [event] = await action_log.read_recent("1", "7")
        assert event.data == {"phase": "turn", "cards_count": 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("board,count", [
        ("[]", 2),
        ("[]", 1),
        ('["AH","KD","2D"]', 3),
        ('["AH","KD","2D"]', 2),
        ('["AH","KD","2D","9S"]', 3),
        ('["AH","KD","2D","9S","TD"]', 1),
        ('["AH"]', 2),
    ])
    async def test_board_that_would_not_end_at_three_four_or_five(
        self, dealer, deck, state, seed, action_log, board, count
    ):
        await seed(phase="flop", community_cards=board)
        await deck.save_deck("1", "7", ["2C", "3C", "4C", "5C", "6C"])
        before = await state.get_community_cards("1", "7")

        with pytest.raises(InvalidBoardError) as exc_info:
            await dealer.deal_community_cards("1", "7", count)

        assert exc_info.value.code == "INVALID_BOARD"
        assert exc_info.value.details == {"boardSize": len(before), "count": count}
        assert await deck.deck_size("1", "7") == 5
        assert await state.get_community_cards("1", "7") == before
        assert await action_log.read_recent("1", "7") == []

    @pytest.mark.asyncio
    async def test_second_flop_burns_nothing(self, dealer, deck, state, seed):
        await seed(phase="flop")
        await deck.save_deck("1", "7", ["2C", "3C", "4C", "5C", "6C", "7C", "8C", "9C"])
        await dealer.deal_flop("1", "7")

        with pytest.raises(InvalidBoardError):
            await dealer.deal_flop("1", "7")

        assert await deck.deck_size("1", "7") == 4
        assert await state.get_community_cards("1", "7") == ["8C", "7C", "6C"]

    @pytest.mark.asyncio
    async def test_short_deck(self, dealer, deck, state, seed):
        await seed(phase="flop")
        await deck.save_deck("1", "7", ["2C", "3C"])

        with pytest.raises(DeckExhaustedError) as exc_info:
            await dealer.deal_community_cards("1", "7", 3)

        assert exc_info.value.details == {"requested": 3, "drawn": 2}
        assert await state.get_community_cards("1", "7") == []

    @pytest.mark.asyncio
    async def test_streets_burn_one_card_first(self, dealer, deck, state, seed):
        await seed(phase="flop")
        await deck.save_deck("1", "7", ["2C", "3C", "4C", "5C", "6C", "7C", "8C", "9C"])

        assert await dealer.deal_flop("1", "7") == ["8C", "7C", "6C"]
        assert await dealer.deal_turn("1", "7") == ["4C"]
        assert await dealer.deal_river("1", "7") == ["2C"]
        assert await state.get_community_cards("1", "7") == ["8C", "7C", "6C", "4C", "2C"]
        assert await deck.deck_size("1", "7") == 0

    @pytest.mark.asyncio
    async def test_burn_from_empty_deck(self, dealer):
        with pytest.raises(DeckExhaustedError):
            await dealer.burn_card("1", "7")


class TestClearCards:
    @pytest.mark.asyncio
    async def test_clear_all_cards(self, dealer, deck, state, seed):
        await seed(players=("100", "200"), phase="river", community_cards='["AH","KD","2C"]')
        await dealer.deal_hole_cards("1", "7")

        await dealer.clear_all_cards("1", "7")

        assert await dealer.get_player_cards("1", "7", "100") == []
        assert await dealer.get_player_cards("1", "7", "200") == []
        assert await state.get_community_cards("1", "7") == []
        assert await deck.deck_size("1", "7") == 0

    @pytest.mark.asyncio
    async def test_one_failing_player_does_not_stop_the_rest(self, dealer, state, seed, redis, keys):
        await seed(players=("100", "200"))
        await state.set_player_cards("1", "7", "200", ["AH", "KD"])
        redis.fail_keys.add(keys.player_info("1", "7", "100"))

        await dealer.clear_all_cards("1", "7")

        assert await state.get_player_cards("1", "7", "200") == []
