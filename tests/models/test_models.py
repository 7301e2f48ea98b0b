"""Tests for the hash-backed room, game and player models."""

from __future__ import annotations

import pytest

from poker_engine.engine.phases import GamePhase
from poker_engine.models.base import encode_value, parse_bool, parse_int, parse_optional_int
from poker_engine.models.game import Game, SidePot, parse_side_pots
from poker_engine.models.player import PLAYER_RESET_FIELDS, Player, PlayerAction, PlayerStatus
from poker_engine.models.room import Room, RoomStatus


class TestFieldCodecs:
    @pytest.mark.parametrize("value,expected", [
        ("42", 42),
        ("", 0),
        (None, 0),
        ("4.5", 0),
        ("abc", 0),
    ])
    def test_parse_int(self, value, expected):
        assert parse_int(value) == expected

    def test_parse_optional_int(self):
        assert parse_optional_int("3") == 3
        assert parse_optional_int("") is None
        assert parse_optional_int("null") is None

    def test_parse_bool(self):
        assert parse_bool("true")
        assert parse_bool("1")
        assert not parse_bool("false")
        assert not parse_bool(None)

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        (True, "true"),
        (False, "false"),
        (0, "0"),
        (GamePhase.PRE_FLOP, "pre_flop"),
        (["AH"], '["AH"]'),
        ("text", "text"),
    ])
    def test_encode_value(self, value, expected):
        assert encode_value(value) == expected


class TestRoom:
    def test_from_redis(self):
        room = Room.from_redis({
            "room_id": "7",
            "club_id": "1",
            "max_players": "6",
            "status": "gaming",
        })
        assert room.max_players == 6
        assert room.status is RoomStatus.GAMING

    def test_unknown_status(self):
        room = Room.from_redis({"status": "melting"})
        assert room.status is RoomStatus.UNKNOWN
        assert not room.is_status_valid()

    def test_capacity_helpers(self):
        room = Room(room_id="7", club_id="1", max_players=2, current_players=2)
        assert room.is_full()
        assert not room.can_accept_players()
        assert room.can_start_game(2)
        assert not Room(room_id="7", club_id="1", status=RoomStatus.GAMING, current_players=3).can_start_game(2)

    def test_to_redis_hash(self):
        data = Room(room_id="7", club_id="1", status=RoomStatus.READY).to_redis_hash()
        assert data["status"] == "ready"
        assert data["max_players"] == "0"


class TestGame:
    def test_missing_fields_default(self):
        game = Game.from_redis({"phase": "waiting"})
        assert game.is_waiting()
        assert not game.is_active()
        assert not game.is_started()
        assert game.community_cards == []
        assert game.small_blind_position is None

    def test_round_trip_fields(self):
        game = Game.from_redis({
            "phase": "river",
            "pot": "90",
            "community_cards": '["AH","KD","2C","9S","TD"]',
            "current_player_position": "4",
        })
        data = game.to_redis_hash()
        assert data["phase"] == "river"
        assert data["pot"] == "90"
        assert data["current_player_position"] == "4"
        assert data["small_blind_position"] == ""
        assert game.community_cards_count() == 5

    def test_unknown_phase_keeps_stored_text(self):
        game = Game.from_redis({"phase": "garbage"})
        assert game.phase is GamePhase.UNKNOWN
        assert game.raw_phase == "garbage"
        assert "raw_phase" not in game.to_redis_hash()

    def test_side_pots(self):
        pots = parse_side_pots('[{"amount": 30, "eligible_players": ["1", 2]}, "junk"]')
        assert pots == [SidePot(amount=30, eligible_players=["1", "2"])]
        assert parse_side_pots("{") == []
        assert parse_side_pots(None) == []


class TestPlayer:
    def test_from_redis(self):
        player = Player.from_redis({
            "chips": "500",
            "bet": "20",
            "cards": '["AH","AD"]',
            "status": "all_in",
            "last_action": "raise",
            "is_dealer": "true",
        }, user_id="100")

        assert player.user_id == "100"
        assert player.total_chips() == 520
        assert player.is_all_in()
        assert player.last_action is PlayerAction.RAISE
        assert player.is_dealer

    def test_unknown_values(self):
        player = Player.from_redis({"status": "dancing", "last_action": "shout"}, user_id="1")
        assert player.status is PlayerStatus.UNKNOWN
        assert player.last_action is None

    def test_reset_fields_leave_chips_and_seat(self):
        assert "chips" not in PLAYER_RESET_FIELDS
        assert "position" not in PLAYER_RESET_FIELDS
        assert PLAYER_RESET_FIELDS["status"] is PlayerStatus.WAITING
