"""
Utility functions for the adaptive learning engine
"""

import json
import logging
import time
from datetime import datetime
from functools import wraps
from typing import Any
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

SECOND_IN_MILLIS = 1000
HOUR_IN_MILLIS = 60 * 60 * SECOND_IN_MILLIS
DAY_IN_MILLIS = 24 * HOUR_IN_MILLIS


def current_millis() -> int:
    """Current wall-clock time as epoch milliseconds"""
    return int(time.time() * 1000)


def start_of_day_millis(timestamp_ms: int, timezone: str = "UTC") -> int:
    """Truncate an epoch-millis timestamp to local midnight in the given zone"""
    tz = ZoneInfo(timezone)
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz)
    midnight = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return int(midnight.timestamp() * 1000)


def millis_from_datetime(moment: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds"""
    return int(moment.timestamp() * 1000)


def datetime_from_millis(timestamp_ms: int, timezone: str = "UTC") -> datetime:
    """Convert epoch milliseconds to an aware datetime"""
    return datetime.fromtimestamp(timestamp_ms / 1000, ZoneInfo(timezone))


def format_json_safely(data: Any) -> str:
    """Safely format data as JSON string"""
    try:
        return json.dumps(data, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError):
        logger.warning(f"Failed to serialize to JSON: {data}")
        return "{}"


def calculate_success_rate(correct: int, total: int) -> float:
    """Calculate success rate as a fraction, 0 when nothing was answered"""
    if total == 0:
        return 0.0
    return correct / total


def format_percentage(rate: float) -> str:
    """Format a [0, 1] fraction as a truncated whole percentage"""
    return f"{int(rate * 100)}%"


def format_duration(duration_ms: int) -> str:
    """Format duration in human-readable format"""
    seconds = duration_ms // SECOND_IN_MILLIS
    if seconds < 60:
        return f"{seconds}s"
    elif seconds < 3600:
        minutes = seconds // 60
        return f"{minutes}m"
    else:
        hours = seconds // 3600
        minutes = (seconds % 3600) // 60
        return f"{hours}h {minutes}m"


class Timer:
    """Simple timer for measuring duration"""

    def __init__(self):
        self.start_time = None
        self.end_time = None

    def start(self):
        """Start the timer"""
        self.start_time = time.time()
        self.end_time = None

    def stop(self):
        """Stop the timer"""
        if self.start_time is not None:
            self.end_time = time.time()

    def elapsed(self) -> float | None:
        """Get elapsed time in seconds"""
        if self.start_time is None:
            return None

        end = self.end_time or time.time()
        return end - self.start_time

    def elapsed_ms(self) -> int | None:
        """Get elapsed time in milliseconds"""
        elapsed = self.elapsed()
        return int(elapsed * 1000) if elapsed is not None else None


def log_execution_time(func):
    """Decorator to log function execution time"""

    @wraps(func)
    def wrapper(*args, **kwargs):
        timer = Timer()
        timer.start()
        try:
            result = func(*args, **kwargs)
            timer.stop()
            logger.debug(f"{func.__name__} executed in {timer.elapsed():.3f}s")
            return result
        except Exception as e:
            timer.stop()
            logger.error(f"{func.__name__} failed after {timer.elapsed():.3f}s: {e}")
            raise

    return wrapper
