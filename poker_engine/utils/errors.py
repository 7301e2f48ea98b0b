"""Custom exception classes for engine errors.

Provides structured error handling with error codes. Absent records are not
errors: repository getters return ``None`` for them.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes for engine errors."""

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    CONFIG_INVALID = "CONFIG_INVALID"

    # Store errors
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"

    # Room errors
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"

    # Game state errors
    NOT_ENOUGH_PLAYERS = "NOT_ENOUGH_PLAYERS"
    NO_PLAYERS = "NO_PLAYERS"
    NO_ACTIVE_HAND = "NO_ACTIVE_HAND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    UNKNOWN_PHASE = "UNKNOWN_PHASE"

    # Deck errors
    DECK_EXHAUSTED = "DECK_EXHAUSTED"
    INVALID_BOARD = "INVALID_BOARD"

    # Monitor errors
    MONITOR_NOT_RUNNING = "MONITOR_NOT_RUNNING"


class EngineError(Exception):
    """Base exception for engine errors.

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable error message
        details: Additional error details
        recoverable: Whether the next monitor tick can recover from it
    """

    def __init__(
        self,
        code: ErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
        recoverable: bool = True,
    ):
        self.code = code.value if isinstance(code, ErrorCode) else code
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "errorCode": self.code,
            "errorMessage": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


class StoreUnavailableError(EngineError):
    """Raised when the key/value store cannot be reached or rejects a command."""

    def __init__(self, operation: str, reason: str = ""):
        message = f"Store unavailable during {operation}"
        if reason:
            message += f": {reason}"
        super().__init__(
            code=ErrorCode.STORE_UNAVAILABLE,
            message=message,
            details={"operation": operation},
            recoverable=True,
        )


class RoomNotFoundError(EngineError):
    """Raised when a room has no descriptive record."""

    def __init__(self, club_id: str, room_id: str):
        super().__init__(
            code=ErrorCode.ROOM_NOT_FOUND,
            message=f"Room not found: {club_id}:{room_id}",
            details={"clubId": club_id, "roomId": room_id},
            recoverable=False,
        )


class NotEnoughPlayersError(EngineError):
    """Raised when there aren't enough ready players to start."""

    def __init__(self, current: int, required: int = 2):
        super().__init__(
            code=ErrorCode.NOT_ENOUGH_PLAYERS,
            message=f"Not enough players: {current}/{required}",
            details={"current": current, "required": required},
            recoverable=True,
        )


class NoPlayersError(EngineError):
    """Raised when cards are dealt to a room with no seated players."""

    def __init__(self, club_id: str, room_id: str):
        super().__init__(
            code=ErrorCode.NO_PLAYERS,
            message=f"No players in room {club_id}:{room_id}",
            details={"clubId": club_id, "roomId": room_id},
            recoverable=True,
        )


class DeckExhaustedError(EngineError):
    """Raised when the deck runs out before a deal completes."""

    def __init__(self, requested: int, drawn: int):
        super().__init__(
            code=ErrorCode.DECK_EXHAUSTED,
            message=f"Deck exhausted: requested {requested}, drawn {drawn}",
            details={"requested": requested, "drawn": drawn},
            recoverable=False,
        )


class InvalidBoardError(EngineError):
    """Raised when a deal would leave the board at other than 0, 3, 4 or 5 cards."""

    def __init__(self, board_size: int, count: int):
        super().__init__(
            code=ErrorCode.INVALID_BOARD,
            message=f"Cannot add {count} community cards to a board of {board_size}",
            details={"boardSize": board_size, "count": count},
            recoverable=False,
        )


class NoActiveHandError(EngineError):
    """Raised when there is no active hand."""

    def __init__(self):
        super().__init__(
            code=ErrorCode.NO_ACTIVE_HAND,
            message="No active hand in progress",
            recoverable=True,
        )


class InvalidTransitionError(EngineError):
    """Raised when a phase change is not in the transition table."""

    def __init__(self, from_phase: str, to_phase: str):
        super().__init__(
            code=ErrorCode.INVALID_TRANSITION,
            message=f"Invalid phase transition: {from_phase} -> {to_phase}",
            details={"from": from_phase, "to": to_phase},
            recoverable=False,
        )


class MonitorNotRunningError(EngineError):
    """Raised by the health check when the monitor loop is stopped."""

    def __init__(self):
        super().__init__(
            code=ErrorCode.MONITOR_NOT_RUNNING,
            message="Room monitor is not running",
            recoverable=True,
        )
