"""Poker engine process entry point.

Wires the services around one Redis client, runs the room monitor until
SIGINT/SIGTERM, then shuts down within ``engine_shutdown_timeout``.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Any

from pydantic import ValidationError
from redis.asyncio import Redis

from poker_engine.config import Settings, get_settings
from poker_engine.logging_config import configure_logging, get_logger
from poker_engine.metrics import start_metrics_server
from poker_engine.services.action_log import ActionLogger
from poker_engine.services.card_dealer import CardDealer
from poker_engine.services.deck import DeckStore
from poker_engine.services.game_state import GameStateRepository
from poker_engine.services.lifecycle import LifecycleController
from poker_engine.services.room_monitor import RoomMonitor
from poker_engine.storage.keys import KeyBuilder
from poker_engine.utils.errors import EngineError, ErrorCode
from poker_engine.utils.redis_client import close_redis, init_redis, ping

logger = get_logger(__name__)


class Application:
    """Owns the Redis client and every service built on it."""

    def __init__(self, settings: Settings, redis: Redis):
        self.settings = settings
        self.redis = redis
        self.keys = KeyBuilder(settings.key_prefix)

        self.state = GameStateRepository(redis, self.keys)
        self.action_log = ActionLogger(redis, self.keys)
        self.deck = DeckStore(redis, self.keys)
        self.dealer = CardDealer(self.state, self.deck, self.action_log)
        self.controller = LifecycleController(
            self.state,
            self.action_log,
            self.deck,
            min_players=settings.engine_min_players,
            dealer=self.dealer,
        )
        self.monitor = RoomMonitor(
            self.state,
            self.controller,
            check_interval=settings.engine_check_interval,
            min_players=settings.engine_min_players,
            shutdown_timeout=settings.engine_shutdown_timeout,
        )
        self._shutdown_event = asyncio.Event()

    @classmethod
    async def create(cls, settings: Settings) -> "Application":
        """Connect to Redis and build the services.

        Raises:
            StoreUnavailableError: If Redis cannot be reached (fatal at startup)
        """
        logger.info(
            "engine_configured",
            check_interval=settings.engine_check_interval,
            min_players=settings.engine_min_players,
            max_players=settings.engine_max_players,
        )
        redis = await init_redis(settings)
        logger.info("redis_connected")
        return cls(settings, redis)

    def request_shutdown(self) -> None:
        self._shutdown_event.set()

    async def run(self) -> None:
        """Run the monitor until shutdown is requested."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request_shutdown)
            except NotImplementedError:
                # add_signal_handler is unavailable on Windows event loops
                pass

        await self.monitor.start()
        logger.info("engine_started")
        await self._shutdown_event.wait()
        await self.shutdown()

    async def shutdown(self) -> None:
        """Stop the monitor and close Redis, bounded by the shutdown timeout."""
        logger.info("engine_shutting_down")
        try:
            await asyncio.wait_for(self._close(), timeout=self.settings.engine_shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning("shutdown_timeout_exceeded", timeout=self.settings.engine_shutdown_timeout)
            return
        logger.info("engine_stopped")

    async def _close(self) -> None:
        await self.monitor.stop()
        try:
            await close_redis(self.redis)
        except Exception as e:
            logger.error("redis_close_failed", error=str(e))

    async def health_check(self) -> None:
        await ping(self.redis)
        await self.monitor.health_check()

    def get_stats(self) -> dict[str, Any]:
        return {
            "monitor_running": self.monitor.is_running,
            "monitor_stats": self.monitor.get_statistics(),
        }


async def main(settings: Settings | None = None) -> int:
    if settings is None:
        try:
            settings = get_settings()
        except ValidationError as e:
            configure_logging()
            logger.error("startup_failed", error=str(e), code=ErrorCode.CONFIG_INVALID.value)
            return 1

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.json_logs,
        app_env=settings.app_env,
    )
    if settings.metrics_port is not None:
        start_metrics_server(settings.metrics_port)

    try:
        app = await Application.create(settings)
    except EngineError as e:
        logger.error("startup_failed", error=e.message, code=e.code)
        return 1

    await app.run()
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
