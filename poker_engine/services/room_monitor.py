"""Room monitor loop.

Every tick the monitor scans ``club:*:rooms:active``, reads each room's
seated-player count and game phase, and applies one rule per room:

- enough players and phase ``waiting``      -> start a hand
- too few players and phase not ``waiting`` -> stop the hand
- phase text that does not parse            -> warn and reset to waiting
- anything else                             -> leave the room alone

The read and the write are not one atomic unit, so a seat can change in
between. The next tick sees the corrected count and reconciles. There is no
debounce: a count that oscillates around the threshold starts and stops on
consecutive ticks.

The monitor keeps no authoritative state between ticks and can be restarted
at any time.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any

from poker_engine import metrics
from poker_engine.engine.phases import GamePhase
from poker_engine.logging_config import room_context
from poker_engine.services.game_state import GameStateRepository
from poker_engine.services.lifecycle import (
    REASON_INSUFFICIENT_PLAYERS,
    REASON_UNKNOWN_PHASE,
    LifecycleController,
)
from poker_engine.utils.errors import (
    EngineError,
    ErrorCode,
    MonitorNotRunningError,
    RoomNotFoundError,
)
from poker_engine.utils.redis_client import ping
from poker_engine.utils.time_utils import utc_now

logger = logging.getLogger(__name__)

ACTION_STARTED = "started"
ACTION_STOPPED = "stopped"


class RoomMonitor:
    """Periodic scan-and-decide loop over all active rooms."""

    def __init__(
        self,
        state: GameStateRepository,
        controller: LifecycleController,
        check_interval: float = 2.0,
        min_players: int = 2,
        shutdown_timeout: float = 10.0,
    ):
        self.state = state
        self.controller = controller
        self.check_interval = check_interval
        self.min_players = min_players
        self.shutdown_timeout = shutdown_timeout

        self._task: asyncio.Task | None = None
        self._stop_event = asyncio.Event()
        self._ticks = 0
        self._last_tick_at: datetime | None = None
        self._last_rooms_checked = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the loop task; a second call while running is a no-op."""
        if self.is_running:
            logger.warning("Room monitor already running")
            return

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run(), name="room-monitor")
        metrics.MONITOR_RUNNING.set(1)
        logger.info(
            f"Room monitor started (interval: {self.check_interval}s, "
            f"min players: {self.min_players})"
        )

    async def stop(self) -> None:
        """Signal the loop and wait for the in-flight tick to finish.

        The current room's transition is allowed to complete; remaining rooms
        in the scan are skipped. If the tick does not settle within
        ``shutdown_timeout`` the task is cancelled.
        """
        if self._task is None:
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=self.shutdown_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Room monitor did not stop within {self.shutdown_timeout}s, cancelled")
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(f"Room monitor exited with error: {e}")
        finally:
            self._task = None
            metrics.MONITOR_RUNNING.set(0)
        logger.info("Room monitor stopped")

    async def _run(self) -> None:
        while not self._stop_event.is_set():
            await self.check_all_rooms()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.check_interval)
            except asyncio.TimeoutError:
                pass

    def _stopping(self) -> bool:
        return self._task is not None and self._stop_event.is_set()

    # =========================================================================
    # Scan
    # =========================================================================

    async def check_all_rooms(self) -> int:
        """Run one tick. Never raises.

        Returns:
            Number of rooms evaluated
        """
        rooms_checked = 0
        with metrics.TICK_DURATION.time():
            try:
                async for club_key in self.state.iter_active_club_keys():
                    if self._stopping():
                        break
                    club_id = self.state.keys.extract_club_id(club_key)
                    if not club_id:
                        continue

                    try:
                        room_ids = await self.state.get_active_room_ids(club_key)
                    except EngineError as e:
                        logger.error(f"Failed to read active rooms of club {club_id}: {e}")
                        continue

                    for room_id in room_ids:
                        if self._stopping():
                            break
                        await self._check_room_safely(club_id, room_id)
                        rooms_checked += 1
            except Exception as e:
                logger.error(f"Room scan aborted: {e}")

        self._ticks += 1
        self._last_tick_at = utc_now()
        self._last_rooms_checked = rooms_checked
        metrics.MONITOR_TICKS.inc()
        if rooms_checked > 0:
            logger.debug(f"Checked {rooms_checked} rooms")
        return rooms_checked

    async def _check_room_safely(self, club_id: str, room_id: str) -> None:
        metrics.ROOMS_CHECKED.inc()
        try:
            with room_context(club_id, room_id):
                await self.check_room(club_id, room_id)
        except EngineError as e:
            metrics.ROOM_CHECK_ERRORS.labels(error_code=e.code).inc()
            logger.error(f"Room {club_id}:{room_id} check failed: {e.message}")
        except Exception as e:
            metrics.ROOM_CHECK_ERRORS.labels(error_code="INTERNAL_ERROR").inc()
            logger.exception(f"Room {club_id}:{room_id} check failed: {e}")

    async def check_room(self, club_id: str, room_id: str) -> str | None:
        """Apply the start/stop rule to one room.

        Returns:
            ``"started"``, ``"stopped"`` or ``None`` when nothing changed
        """
        players_count = await self.state.get_players_count(club_id, room_id)
        game = await self.state.get_game(club_id, room_id)
        if game is None:
            return None

        if game.phase is GamePhase.UNKNOWN:
            # Unparseable phase goes back to waiting; the next tick applies the normal rule
            metrics.ROOM_CHECK_ERRORS.labels(error_code=ErrorCode.UNKNOWN_PHASE.value).inc()
            logger.warning(
                f"Room {club_id}:{room_id} has unrecognised phase '{game.raw_phase}' "
                f"with {players_count} players, resetting to waiting"
            )
            stopped = await self.controller.stop_game(
                club_id, room_id, game.raw_phase, REASON_UNKNOWN_PHASE
            )
            return ACTION_STOPPED if stopped else None

        if players_count >= self.min_players and game.phase is GamePhase.WAITING:
            game_id = await self.controller.start_game(club_id, room_id, players_count)
            return ACTION_STARTED if game_id else None

        if players_count < self.min_players and game.phase is not GamePhase.WAITING:
            stopped = await self.controller.stop_game(
                club_id, room_id, game.phase.value, REASON_INSUFFICIENT_PLAYERS
            )
            return ACTION_STOPPED if stopped else None

        return None

    # =========================================================================
    # On-demand checks
    # =========================================================================

    async def force_check(self) -> int:
        """Run a tick now, outside the timer."""
        return await self.check_all_rooms()

    async def check_specific_room(self, club_id: str, room_id: str) -> str | None:
        """
        Raises:
            RoomNotFoundError: If the room has no info record
        """
        if not await self.state.room_exists(club_id, room_id):
            raise RoomNotFoundError(club_id, room_id)
        return await self.check_room(club_id, room_id)

    def get_statistics(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "check_interval": self.check_interval,
            "min_players": self.min_players,
            "ticks": self._ticks,
            "last_tick_at": self._last_tick_at.isoformat() if self._last_tick_at else None,
            "last_rooms_checked": self._last_rooms_checked,
        }

    async def health_check(self) -> None:
        """
        Raises:
            MonitorNotRunningError: If the loop is stopped
            StoreUnavailableError: If the store does not answer
        """
        if not self.is_running:
            raise MonitorNotRunningError()
        await ping(self.state.redis)
