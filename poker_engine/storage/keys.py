"""Redis key layout.

    club:{club}:rooms:active                  ZSET  active room ids
    club:{club}:room:{room}:info              HASH  room attributes
    club:{club}:room:{room}:game              HASH  game attributes
    club:{club}:room:{room}:players           SET   seated user ids
    club:{club}:room:{room}:spectators        SET   spectator user ids
    club:{club}:room:{room}:actions           LIST  JSON action events
    club:{club}:room:{room}:turn_order        LIST  turn order
    club:{club}:room:{room}:occupied_seats    SET   taken seat numbers
    club:{club}:room:{room}:deck              LIST  remaining cards
    club:{club}:room:{room}:pots              HASH  main pot / side pots
    club:{club}:room:{room}:timers            HASH  turn timers
    club:{club}:room:{room}:player:{user}     HASH  player attributes
    club:{club}:room:{room}:spectator:{user}  HASH  spectator attributes
    club:{club}:user:{user}:current_room      STR   reverse index
"""

from __future__ import annotations


class KeyBuilder:
    """Builds and parses store keys.

    One instance is created at startup and passed to every service; an
    optional prefix namespaces the whole key space (e.g. per environment).
    """

    CLUB_PREFIX = "club:"
    ROOM_MARKER = ":room:"

    def __init__(self, prefix: str = ""):
        self.prefix = prefix

    def _key(self, *parts: str) -> str:
        return self.prefix + ":".join(parts)

    def _room(self, club_id: str, room_id: str, suffix: str) -> str:
        return self._key("club", club_id, "room", room_id, suffix)

    # Club scope
    def club_rooms_active(self, club_id: str) -> str:
        return self._key("club", club_id, "rooms", "active")

    def club_rooms_active_pattern(self) -> str:
        return self._key("club", "*", "rooms", "active")

    # Room scope
    def room_info(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "info")

    def game_state(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "game")

    def room_players(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "players")

    def room_spectators(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "spectators")

    def room_actions(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "actions")

    def room_turn_order(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "turn_order")

    def room_occupied_seats(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "occupied_seats")

    def room_deck(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "deck")

    def room_pots(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "pots")

    def room_timers(self, club_id: str, room_id: str) -> str:
        return self._room(club_id, room_id, "timers")

    def room_keys(self, club_id: str, room_id: str) -> list[str]:
        """Every per-room key, for cleanup."""
        return [
            self.room_info(club_id, room_id),
            self.game_state(club_id, room_id),
            self.room_players(club_id, room_id),
            self.room_spectators(club_id, room_id),
            self.room_actions(club_id, room_id),
            self.room_turn_order(club_id, room_id),
            self.room_occupied_seats(club_id, room_id),
            self.room_deck(club_id, room_id),
            self.room_pots(club_id, room_id),
            self.room_timers(club_id, room_id),
        ]

    # User scope
    def player_info(self, club_id: str, room_id: str, user_id: str) -> str:
        return self._key("club", club_id, "room", room_id, "player", user_id)

    def spectator_info(self, club_id: str, room_id: str, user_id: str) -> str:
        return self._key("club", club_id, "room", room_id, "spectator", user_id)

    def user_current_room(self, club_id: str, user_id: str) -> str:
        return self._key("club", club_id, "user", user_id, "current_room")

    # Parsing
    def _strip_prefix(self, key: str) -> str:
        if self.prefix and key.startswith(self.prefix):
            return key[len(self.prefix):]
        return key

    def is_room_key(self, key: str) -> bool:
        key = self._strip_prefix(key)
        return len(key) > len(self.CLUB_PREFIX) and key.startswith(self.CLUB_PREFIX)

    def extract_club_id(self, key: str) -> str:
        """``club:42:rooms:active`` -> ``"42"``; ``""`` when the key has no club segment."""
        key = self._strip_prefix(key)
        if not key.startswith(self.CLUB_PREFIX):
            return ""
        rest = key[len(self.CLUB_PREFIX):]
        club_id, sep, _ = rest.partition(":")
        if not club_id or not sep:
            return ""
        return club_id

    def extract_room_id(self, key: str) -> str:
        key = self._strip_prefix(key)
        idx = key.find(self.ROOM_MARKER)
        if idx == -1:
            return ""
        rest = key[idx + len(self.ROOM_MARKER):]
        return rest.partition(":")[0]

    def extract_user_id(self, key: str) -> str:
        """Last segment of a user-scoped key."""
        _, sep, user_id = key.rpartition(":")
        if not sep:
            return ""
        return user_id
