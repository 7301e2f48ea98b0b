"""Prometheus metrics for the room monitor."""

from prometheus_client import Counter, Gauge, Histogram, start_http_server


# =============================================================================
# Monitor metrics
# =============================================================================

MONITOR_RUNNING = Gauge(
    "poker_engine_monitor_running",
    "1 while the room monitor loop is running",
)

MONITOR_TICKS = Counter(
    "poker_engine_monitor_ticks_total",
    "Completed room scans",
)

TICK_DURATION = Histogram(
    "poker_engine_monitor_tick_duration_seconds",
    "Duration of one room scan",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1, 2, 5],
)

ROOMS_CHECKED = Counter(
    "poker_engine_rooms_checked_total",
    "Rooms evaluated by the monitor",
)

ROOM_CHECK_ERRORS = Counter(
    "poker_engine_room_check_errors_total",
    "Room evaluations that failed",
    ["error_code"],
)

# =============================================================================
# Lifecycle metrics
# =============================================================================

GAMES_STARTED = Counter(
    "poker_engine_games_started_total",
    "Hands started by the lifecycle controller",
)

GAMES_STOPPED = Counter(
    "poker_engine_games_stopped_total",
    "Hands stopped by the lifecycle controller",
    ["reason"],
)


def start_metrics_server(port: int) -> None:
    """Expose /metrics on the given port (background thread)."""
    start_http_server(port)
