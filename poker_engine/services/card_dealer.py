"""Card dealing on top of the deck store.

Hole cards come from a freshly shuffled deck; community cards are appended
to the game's list with a read-modify-write, so only one dealer may work a
room at a time. The board only ever holds 0, 3, 4 or 5 cards; a deal that
would break that is rejected before anything is drawn.
"""

from __future__ import annotations

import logging

from poker_engine.engine.cards import format_cards
from poker_engine.services.action_log import ActionLogger
from poker_engine.services.deck import DeckStore
from poker_engine.services.game_state import GameStateRepository
from poker_engine.utils.errors import DeckExhaustedError, InvalidBoardError, NoPlayersError

logger = logging.getLogger(__name__)

HOLE_CARDS_PER_PLAYER = 2

# Community cards revealed per street
FLOP_CARDS = 3
TURN_CARDS = 1
RIVER_CARDS = 1

# (cards on board, cards to add) pairs that keep the board at 0, 3, 4 or 5
BOARD_STEPS = frozenset({(0, FLOP_CARDS), (3, TURN_CARDS), (4, RIVER_CARDS)})


class CardDealer:
    """Deals hole and community cards for a room."""

    def __init__(
        self,
        state: GameStateRepository,
        deck: DeckStore,
        action_log: ActionLogger,
    ):
        self.state = state
        self.deck = deck
        self.action_log = action_log

    async def deal_hole_cards(self, club_id: str, room_id: str) -> dict[str, list[str]]:
        """Shuffle a new deck and give every seated player two cards.

        Returns:
            Cards dealt, keyed by user id

        Raises:
            NoPlayersError: If nobody is seated
            DeckExhaustedError: If a player receives fewer than two cards
        """
        player_ids = sorted(await self.state.get_player_ids(club_id, room_id))
        if not player_ids:
            logger.warning(f"No players to deal to in room {club_id}:{room_id}")
            raise NoPlayersError(club_id, room_id)

        await self.deck.save_deck(club_id, room_id, self.deck.create_shuffled_deck())

        dealt: dict[str, list[str]] = {}
        for user_id in player_ids:
            cards = await self.deck.draw_n(club_id, room_id, HOLE_CARDS_PER_PLAYER)
            if len(cards) != HOLE_CARDS_PER_PLAYER:
                logger.error(f"Not enough cards left for player {user_id}")
                raise DeckExhaustedError(HOLE_CARDS_PER_PLAYER, len(cards))
            await self.state.set_player_cards(club_id, room_id, user_id, cards)
            dealt[user_id] = cards
            logger.debug(f"Player {user_id} received {format_cards(cards)}")

        remaining = await self.deck.deck_size(club_id, room_id)
        logger.info(
            f"Dealt {HOLE_CARDS_PER_PLAYER} cards to {len(player_ids)} players "
            f"in room {club_id}:{room_id}, {remaining} left in deck"
        )
        await self.action_log.log_cards_dealt(club_id, room_id, len(player_ids))
        return dealt

    async def deal_community_cards(self, club_id: str, room_id: str, count: int) -> list[str]:
        """Draw ``count`` cards and append them to the board.

        Returns:
            Only the newly drawn cards, in draw order

        Raises:
            InvalidBoardError: If the board would not end at 3, 4 or 5 cards
            DeckExhaustedError: If fewer than ``count`` cards were left
        """
        return await self._reveal(club_id, room_id, count, burn=False)

    async def deal_flop(self, club_id: str, room_id: str) -> list[str]:
        return await self._reveal(club_id, room_id, FLOP_CARDS, burn=True)

    async def deal_turn(self, club_id: str, room_id: str) -> list[str]:
        return await self._reveal(club_id, room_id, TURN_CARDS, burn=True)

    async def deal_river(self, club_id: str, room_id: str) -> list[str]:
        return await self._reveal(club_id, room_id, RIVER_CARDS, burn=True)

    async def _reveal(self, club_id: str, room_id: str, count: int, burn: bool) -> list[str]:
        # The board is checked before anything leaves the deck
        board = await self.state.get_community_cards(club_id, room_id)
        if (len(board), count) not in BOARD_STEPS:
            logger.warning(
                f"Rejected deal of {count} community cards onto a board of {len(board)} "
                f"in room {club_id}:{room_id}"
            )
            raise InvalidBoardError(len(board), count)

        if burn:
            await self.burn_card(club_id, room_id)

        cards = await self.deck.draw_n(club_id, room_id, count)
        if len(cards) != count:
            logger.error(f"Deck short for community cards: requested {count}, got {len(cards)}")
            raise DeckExhaustedError(count, len(cards))

        board.extend(cards)
        await self.state.set_community_cards(club_id, room_id, board)

        logger.info(f"Community cards added: {format_cards(cards)} ({len(board)} on board)")
        game = await self.state.get_game(club_id, room_id)
        phase = game.phase.value if game else ""
        await self.action_log.log_community_cards_revealed(club_id, room_id, phase, len(cards))
        return cards

    async def burn_card(self, club_id: str, room_id: str) -> None:
        card = await self.deck.draw_one(club_id, room_id)
        if card is None:
            raise DeckExhaustedError(1, 0)
        logger.debug(f"Burned {card}")

    async def get_player_cards(self, club_id: str, room_id: str, user_id: str) -> list[str]:
        return await self.state.get_player_cards(club_id, room_id, user_id)

    async def clear_all_cards(self, club_id: str, room_id: str) -> None:
        """Empty every hand and the board, and drop the deck.

        A failure on one player's hand or on the deck is logged; the board
        reset is required and propagates.
        """
        for user_id in await self.state.get_player_ids(club_id, room_id):
            try:
                await self.state.set_player_cards(club_id, room_id, user_id, [])
            except Exception as e:
                logger.warning(f"Failed to clear cards of player {user_id}: {e}")

        await self.state.set_community_cards(club_id, room_id, [])

        try:
            await self.deck.delete_deck(club_id, room_id)
        except Exception as e:
            logger.warning(f"Failed to delete deck for room {club_id}:{room_id}: {e}")

        logger.info(f"All cards cleared in room {club_id}:{room_id}")
