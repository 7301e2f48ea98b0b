"""Shared fixtures: an in-memory Redis stand-in and the engine services on top of it."""

from __future__ import annotations

import fnmatch
import random
from typing import Any

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from poker_engine.services.action_log import ActionLogger
from poker_engine.services.card_dealer import CardDealer
from poker_engine.services.deck import DeckStore
from poker_engine.services.game_state import GameStateRepository
from poker_engine.services.lifecycle import LifecycleController
from poker_engine.storage.keys import KeyBuilder


# =============================================================================
# Mock Redis
# =============================================================================


class MockConnectionPool:
    def __init__(self):
        self.disconnected = False

    async def disconnect(self):
        self.disconnected = True


class MockRedis:
    """In-memory Redis with the commands the engine uses (decoded responses).

    Failure injection:
        fail_on:   command names that raise ConnectionError
                   ("multi" fails every MULTI/EXEC pipeline)
        fail_keys: keys whose commands raise ConnectionError
    """

    def __init__(self):
        self._hashes: dict[str, dict[str, str]] = {}
        self._sets: dict[str, set[str]] = {}
        self._lists: dict[str, list[str]] = {}
        self._sorted_sets: dict[str, dict[str, float]] = {}
        self.fail_on: set[str] = set()
        self.fail_keys: set[str] = set()
        self.connection_pool = MockConnectionPool()
        self.closed = False

    def _check(self, command: str, key: Any = None) -> None:
        if command in self.fail_on or (key is not None and key in self.fail_keys):
            raise RedisConnectionError(f"mock failure on {command}")

    def all_keys(self) -> list[str]:
        return [
            *self._hashes.keys(),
            *self._sets.keys(),
            *self._lists.keys(),
            *self._sorted_sets.keys(),
        ]

    # Connection
    async def ping(self):
        self._check("ping")
        return True

    async def aclose(self):
        self.closed = True

    # Keys
    async def delete(self, *keys):
        self._check("delete", keys[0] if keys else None)
        return self._delete(*keys)

    def _delete(self, *keys):
        count = 0
        for key in keys:
            for store in (self._hashes, self._sets, self._lists, self._sorted_sets):
                if key in store:
                    del store[key]
                    count += 1
        return count

    async def exists(self, *keys):
        self._check("exists", keys[0] if keys else None)
        return sum(1 for key in keys if key in self.all_keys())

    async def scan_iter(self, match=None, count=None):
        self._check("scan")
        for key in list(self.all_keys()):
            if match is None or fnmatch.fnmatchcase(key, match):
                yield key

    # Hashes
    async def hset(self, name, key=None, value=None, mapping=None):
        self._check("hset", name)
        return self._hset(name, key, value, mapping)

    def _hset(self, name, key=None, value=None, mapping=None):
        data = self._hashes.setdefault(name, {})
        before = len(data)
        if key is not None:
            data[key] = str(value)
        if mapping:
            data.update({k: str(v) for k, v in mapping.items()})
        return len(data) - before

    async def hget(self, name, key):
        self._check("hget", name)
        return self._hashes.get(name, {}).get(key)

    async def hgetall(self, name):
        self._check("hgetall", name)
        return dict(self._hashes.get(name, {}))

    # Sets
    async def sadd(self, name, *values):
        self._check("sadd", name)
        members = self._sets.setdefault(name, set())
        before = len(members)
        members.update(str(v) for v in values)
        return len(members) - before

    async def srem(self, name, *values):
        self._check("srem", name)
        members = self._sets.get(name, set())
        removed = len(members & set(values))
        members.difference_update(values)
        if not members:
            self._sets.pop(name, None)
        return removed

    async def smembers(self, name):
        self._check("smembers", name)
        return set(self._sets.get(name, set()))

    async def scard(self, name):
        self._check("scard", name)
        return len(self._sets.get(name, set()))

    async def sismember(self, name, value):
        self._check("sismember", name)
        return value in self._sets.get(name, set())

    # Sorted sets
    async def zadd(self, name, mapping):
        self._check("zadd", name)
        self._sorted_sets.setdefault(name, {}).update(mapping)
        return len(mapping)

    async def zrange(self, name, start, end):
        self._check("zrange", name)
        members = sorted(self._sorted_sets.get(name, {}).items(), key=lambda x: (x[1], x[0]))
        return [m for m, _ in _slice(members, start, end)]

    # Lists
    async def rpush(self, name, *values):
        self._check("rpush", name)
        return self._rpush(name, *values)

    def _rpush(self, name, *values):
        items = self._lists.setdefault(name, [])
        items.extend(str(v) for v in values)
        return len(items)

    async def rpop(self, name):
        self._check("rpop", name)
        items = self._lists.get(name)
        if not items:
            return None
        card = items.pop()
        if not items:
            del self._lists[name]
        return card

    async def lrange(self, name, start, end):
        self._check("lrange", name)
        return _slice(self._lists.get(name, []), start, end)

    async def llen(self, name):
        self._check("llen", name)
        return len(self._lists.get(name, []))

    async def ltrim(self, name, start, end):
        self._check("ltrim", name)
        if name in self._lists:
            self._lists[name] = _slice(self._lists[name], start, end)
        return True

    def pipeline(self, transaction=True):
        return MockPipeline(self, transaction)


def _slice(items: list, start: int, end: int) -> list:
    """Redis inclusive range semantics with negative indexes."""
    size = len(items)
    if start < 0:
        start = max(size + start, 0)
    if end < 0:
        end = size + end
    return list(items[start:end + 1])


class MockPipeline:
    """Queues commands and applies them on execute.

    When any queued command would fail, nothing is applied.
    """

    def __init__(self, redis: MockRedis, transaction: bool):
        self._redis = redis
        self._transaction = transaction
        self._commands: list[tuple[str, tuple, dict]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        self._commands.clear()

    def __getattr__(self, name):
        def queue(*args, **kwargs):
            self._commands.append((name, args, kwargs))
            return self

        return queue

    async def execute(self):
        if self._transaction:
            self._redis._check("multi")
        for name, args, _ in self._commands:
            self._redis._check(name, args[0] if args else None)

        results = []
        for name, args, kwargs in self._commands:
            results.append(await getattr(self._redis, name)(*args, **kwargs))
        self._commands.clear()
        return results


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def redis() -> MockRedis:
    return MockRedis()


@pytest.fixture
def keys() -> KeyBuilder:
    return KeyBuilder()


@pytest.fixture
def state(redis, keys) -> GameStateRepository:
    return GameStateRepository(redis, keys)


@pytest.fixture
def action_log(redis, keys) -> ActionLogger:
    return ActionLogger(redis, keys)


@pytest.fixture
def deck(redis, keys) -> DeckStore:
    return DeckStore(redis, keys, rng=random.Random(42))


@pytest.fixture
def dealer(state, deck, action_log) -> CardDealer:
    return CardDealer(state, deck, action_log)


@pytest.fixture
def controller(state, action_log, deck) -> LifecycleController:
    return LifecycleController(state, action_log, deck, min_players=2)


async def seed_room(
    redis: MockRedis,
    keys: KeyBuilder,
    club_id: str = "1",
    room_id: str = "7",
    players: tuple[str, ...] = ("100", "200"),
    phase: str | None = "waiting",
    status: str = "waiting",
    score: float = 1,
    **game_fields: str,
) -> None:
    """Create an active room with seated players and (optionally) a game hash."""
    await redis.zadd(keys.club_rooms_active(club_id), {room_id: score})
    await redis.hset(keys.room_info(club_id, room_id), mapping={
        "room_id": room_id,
        "club_id": club_id,
        "max_players": "9",
        "small_blind": "10",
        "big_blind": "20",
        "status": status,
    })
    if players:
        await redis.sadd(keys.room_players(club_id, room_id), *players)
    for user_id in players:
        await redis.hset(keys.player_info(club_id, room_id, user_id), mapping={
            "user_id": user_id,
            "chips": "1000",
            "status": "active",
            "cards": "[]",
        })
    if phase is not None:
        await redis.hset(keys.game_state(club_id, room_id), mapping={
            "phase": phase,
            "game_id": "",
            "pot": "0",
            "current_bet": "0",
            "community_cards": "[]",
            **game_fields,
        })


@pytest.fixture
def seed(redis, keys):
    """``await seed(room_id="7", players=("100",), phase="flop")``"""

    async def _seed(**kwargs):
        await seed_room(redis, keys, **kwargs)

    return _seed
