"""Game start/stop transitions.

Both transitions are a single MULTI/EXEC write over the room and game
hashes, and both are idempotent: starting a room that is not waiting, or
stopping a room that is already waiting, does nothing. A failed write leaves
the room as it was, so the next monitor tick simply retries.

Player resets after a stop and action-log appends are advisory: failures are
logged and never undo the transition.
"""

from __future__ import annotations

import logging
from typing import Any

from poker_engine import metrics
from poker_engine.engine.phases import GamePhase, can_transition
from poker_engine.models.player import PLAYER_RESET_FIELDS
from poker_engine.models.room import RoomStatus
from poker_engine.services.action_log import ActionLogger
from poker_engine.services.card_dealer import CardDealer
from poker_engine.services.deck import DeckStore
from poker_engine.services.game_state import GameStateRepository
from poker_engine.utils.errors import (
    InvalidTransitionError,
    NoActiveHandError,
    NotEnoughPlayersError,
)
from poker_engine.utils.time_utils import iso_now, unix_timestamp

logger = logging.getLogger(__name__)

REASON_INSUFFICIENT_PLAYERS = "insufficient_players"
REASON_UNKNOWN_PHASE = "unknown_phase"


def make_game_id(club_id: str, room_id: str, timestamp: int | None = None) -> str:
    """Unique per (club, room, wall-clock second)."""
    if timestamp is None:
        timestamp = unix_timestamp()
    return f"game_{club_id}_{room_id}_{timestamp}"


class LifecycleController:
    """Drives the waiting -> pre_flop start and the forced stop back to waiting."""

    def __init__(
        self,
        state: GameStateRepository,
        action_log: ActionLogger,
        deck: DeckStore,
        min_players: int = 2,
        dealer: CardDealer | None = None,
    ):
        self.state = state
        self.action_log = action_log
        self.deck = deck
        self.min_players = min_players
        self.dealer = dealer

    # =========================================================================
    # Start
    # =========================================================================

    async def start_game(self, club_id: str, room_id: str, players_count: int) -> str | None:
        """Start a hand in a waiting room.

        Returns:
            The new game id, or ``None`` if the room has no game record or a
            hand is already under way

        Raises:
            StoreUnavailableError: If the grouped write fails (nothing is applied)
        """
        game = await self.state.get_game(club_id, room_id)
        if game is None:
            logger.debug(f"No game record for room {club_id}:{room_id}, nothing to start")
            return None
        if game.phase is not GamePhase.WAITING:
            logger.warning(f"Game in room {club_id}:{room_id} already running ({game.phase.value})")
            return None

        game_id = make_game_id(club_id, room_id)
        await self.state.update_room_and_game(
            club_id,
            room_id,
            room_fields={"status": RoomStatus.GAMING},
            game_fields={
                "phase": GamePhase.PRE_FLOP,
                "game_id": game_id,
                "started_at": iso_now(),
                "pot": 0,
                "current_bet": 0,
            },
        )

        metrics.GAMES_STARTED.inc()
        logger.info(f"Game {game_id} started in room {club_id}:{room_id} with {players_count} players")
        await self.action_log.log_game_started(club_id, room_id, game_id, players_count)

        if self.dealer is not None:
            await self._deal_opening_cards(club_id, room_id, game_id)
        return game_id

    async def _deal_opening_cards(self, club_id: str, room_id: str, game_id: str) -> None:
        # The start is already committed; a failed deal is reported, not rolled back.
        try:
            await self.dealer.clear_all_cards(club_id, room_id)
            await self.dealer.deal_hole_cards(club_id, room_id)
        except Exception as e:
            logger.error(f"Dealing failed for game {game_id} in room {club_id}:{room_id}: {e}")
            await self.action_log.log_error(club_id, room_id, "deal_failed", str(e))

    async def start_with_validation(self, club_id: str, room_id: str) -> str | None:
        """Start counting only players who have chips and are not sitting out.

        Raises:
            NotEnoughPlayersError: If fewer than ``min_players`` are ready
        """
        player_ids = await self.state.get_player_ids(club_id, room_id)
        if len(player_ids) < self.min_players:
            raise NotEnoughPlayersError(len(player_ids), self.min_players)

        ready = 0
        for user_id in player_ids:
            try:
                player = await self.state.get_player(club_id, room_id, user_id)
            except Exception as e:
                logger.warning(f"Failed to read player {user_id}: {e}")
                continue
            if player is not None and player.has_chips() and not player.is_sitting_out():
                ready += 1

        if ready < self.min_players:
            raise NotEnoughPlayersError(ready, self.min_players)
        return await self.start_game(club_id, room_id, ready)

    async def can_start_game(self, club_id: str, room_id: str, min_players: int | None = None) -> bool:
        if min_players is None:
            min_players = self.min_players
        if not await self.state.room_exists(club_id, room_id):
            return False
        game = await self.state.get_game(club_id, room_id)
        if game is None or not game.is_waiting():
            return False
        return await self.state.get_players_count(club_id, room_id) >= min_players

    async def prepare_game_start(self, club_id: str, room_id: str) -> int:
        """Move the dealer button one seat on and return the new position."""
        player_ids = await self.state.get_player_ids(club_id, room_id)
        if len(player_ids) < self.min_players:
            raise NotEnoughPlayersError(len(player_ids), self.min_players)

        game = await self.state.get_game(club_id, room_id)
        old_position = game.dealer_position if game else 0
        new_position = (old_position + 1) % len(player_ids) if game else 0

        await self.state.update_game_fields(club_id, room_id, {"dealer_position": new_position})
        logger.info(f"Dealer set to position {new_position} in room {club_id}:{room_id}")
        await self.action_log.log_dealer_moved(club_id, room_id, old_position, new_position)
        return new_position

    async def get_start_info(self, club_id: str, room_id: str) -> dict[str, Any]:
        room = await self.state.get_room(club_id, room_id)
        players_count = await self.state.get_players_count(club_id, room_id)
        return {
            "club_id": club_id,
            "room_id": room_id,
            "players_count": players_count,
            "max_players": room.max_players if room else 0,
            "can_start": await self.can_start_game(club_id, room_id),
            "small_blind": room.small_blind if room else 0,
            "big_blind": room.big_blind if room else 0,
            "current_status": room.status.value if room else None,
        }

    # =========================================================================
    # Phase changes
    # =========================================================================

    async def transition_phase(self, club_id: str, room_id: str, to_phase: GamePhase) -> GamePhase:
        """Move the hand to ``to_phase`` if the transition table allows it.

        Used by the betting logic for street progression; returns the old phase.

        Raises:
            NoActiveHandError: If the room has no game record
            InvalidTransitionError: If the edge is not in the table
        """
        game = await self.state.get_game(club_id, room_id)
        if game is None:
            raise NoActiveHandError()
        if not can_transition(game.phase, to_phase):
            raise InvalidTransitionError(game.phase.value, to_phase.value)

        await self.state.update_game_phase(club_id, room_id, to_phase)
        await self.action_log.log_phase_changed(club_id, room_id, game.phase.value, to_phase.value)
        return game.phase

    # =========================================================================
    # Stop
    # =========================================================================

    async def stop_game(
        self,
        club_id: str,
        room_id: str,
        previous_phase: str | None = None,
        reason: str = REASON_INSUFFICIENT_PLAYERS,
    ) -> bool:
        """Return the room to waiting and reset the seated players.

        Returns:
            True if a hand was stopped, False if the room was already waiting
            (or has no game record)

        Raises:
            StoreUnavailableError: If the grouped write fails
        """
        game = await self.state.get_game(club_id, room_id)
        if game is None or game.phase is GamePhase.WAITING:
            logger.debug(f"Game in room {club_id}:{room_id} already stopped")
            return False
        if previous_phase is None:
            previous_phase = game.phase.value

        await self.state.update_room_and_game(
            club_id,
            room_id,
            room_fields={"status": RoomStatus.WAITING},
            game_fields={
                "phase": GamePhase.WAITING,
                "game_id": "",
                "started_at": "",
                "pot": 0,
                "current_bet": 0,
                "current_player_position": None,
                "community_cards": [],
            },
        )

        await self._reset_players(club_id, room_id)

        metrics.GAMES_STOPPED.labels(reason=reason.split(":")[0]).inc()
        logger.info(f"Game stopped in room {club_id}:{room_id} (was {previous_phase}, reason: {reason})")
        await self.action_log.log_game_stopped(club_id, room_id, previous_phase, reason)
        return True

    async def _reset_players(self, club_id: str, room_id: str) -> None:
        try:
            player_ids = await self.state.get_player_ids(club_id, room_id)
        except Exception as e:
            logger.warning(f"Could not list players of room {club_id}:{room_id} for reset: {e}")
            return

        for user_id in player_ids:
            try:
                await self.state.update_player_fields(club_id, room_id, user_id, PLAYER_RESET_FIELDS)
            except Exception as e:
                logger.warning(f"Failed to reset player {user_id}: {e}")

    async def stop_with_cleanup(
        self,
        club_id: str,
        room_id: str,
        previous_phase: str | None = None,
        reason: str = REASON_INSUFFICIENT_PLAYERS,
    ) -> bool:
        """Stop, then drop the deck and zero the pots."""
        stopped = await self.stop_game(club_id, room_id, previous_phase, reason)

        try:
            await self.deck.delete_deck(club_id, room_id)
            await self.state.reset_pots(club_id, room_id)
        except Exception as e:
            logger.warning(f"Cleanup after stop failed for room {club_id}:{room_id}: {e}")
        else:
            logger.info(f"Game data cleaned up for room {club_id}:{room_id}")
        return stopped

    async def force_stop(self, club_id: str, room_id: str, reason: str) -> bool:
        game = await self.state.get_game(club_id, room_id)
        previous_phase = game.phase.value if game else GamePhase.WAITING.value
        logger.warning(f"Force stopping game in room {club_id}:{room_id}: {reason}")
        return await self.stop_with_cleanup(club_id, room_id, previous_phase, f"force_stop: {reason}")

    async def can_stop_game(self, club_id: str, room_id: str) -> bool:
        if not await self.state.room_exists(club_id, room_id):
            return False
        game = await self.state.get_game(club_id, room_id)
        return game is not None and game.phase is not GamePhase.WAITING

    async def stop_if_needed(self, club_id: str, room_id: str, min_players: int | None = None) -> bool:
        """Stop the hand if fewer than ``min_players`` remain seated."""
        if min_players is None:
            min_players = self.min_players
        game = await self.state.get_game(club_id, room_id)
        if game is None or game.phase is GamePhase.WAITING:
            return False
        if await self.state.get_players_count(club_id, room_id) >= min_players:
            return False
        return await self.stop_game(club_id, room_id, game.phase.value, REASON_INSUFFICIENT_PLAYERS)

    async def get_stop_info(self, club_id: str, room_id: str) -> dict[str, Any]:
        game = await self.state.get_game(club_id, room_id)
        info: dict[str, Any] = {
            "club_id": club_id,
            "room_id": room_id,
            "players_count": await self.state.get_players_count(club_id, room_id),
            "can_stop": await self.can_stop_game(club_id, room_id),
            "is_active": game is not None and game.is_active(),
        }
        if game is not None:
            info["current_phase"] = game.phase.value
            info["game_id"] = game.game_id
            info["pot"] = game.pot
        return info

    async def save_game_results(self, club_id: str, room_id: str) -> str:
        """Record the end of the current hand.

        Raises:
            NoActiveHandError: If the room has no game id
        """
        game = await self.state.get_game(club_id, room_id)
        if game is None or not game.game_id:
            raise NoActiveHandError()
        await self.action_log.log_round_finished(club_id, room_id, game.round_number, game.total_pot())
        logger.info(f"Results saved for game {game.game_id}")
        return game.game_id
