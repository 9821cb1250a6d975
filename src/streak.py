"""
Study time accounting and consecutive-day streaks
"""

import logging

from .progress_store import ACTIVITY_TYPES, ProgressStore
from .utils import DAY_IN_MILLIS, current_millis, start_of_day_millis

logger = logging.getLogger(__name__)

LEARNING_STREAK_KEY = "learning_streak"
LAST_LEARNING_DAY_KEY = "last_learning_day"


def learning_time_key(activity_type: str) -> str:
    return f"{activity_type}_learning_time"


class StreakTracker:
    """Accumulates study time and maintains the daily streak"""

    def __init__(self, store: ProgressStore, timezone: str = "UTC"):
        self.store = store
        self.timezone = timezone

    def record_activity(self, activity_type: str, duration_ms: int, now: int | None = None) -> int:
        """
        Add study time for an activity type and update the streak

        Args:
            activity_type: "word", "grammar" or "quiz"
            duration_ms: Time spent, in milliseconds
            now: Epoch millis of the activity (defaults to the current time)

        Returns:
            The streak after the update
        """
        if activity_type not in ACTIVITY_TYPES:
            raise ValueError(f"Unknown activity type: {activity_type!r}")
        if duration_ms < 0:
            raise ValueError(f"Duration must not be negative, got {duration_ms}")

        with self.store.locked("record_activity"):
            key = learning_time_key(activity_type)
            self.store.set_long(key, self.store.get_long(key) + duration_ms)
            return self.update_streak(now)

    def update_streak(self, now: int | None = None) -> int:
        """
        Move the streak forward for the day containing now

        A gap of more than one day since the last study day restarts the
        streak at 1; a later day within that gap extends it; the same day
        leaves it unchanged. The last study day is always set to today.
        """
        if now is None:
            now = current_millis()
        today = start_of_day_millis(now, self.timezone)

        with self.store.locked("update_streak"):
            last_day = self.store.get_long(LAST_LEARNING_DAY_KEY)
            streak = self.store.get_int(LEARNING_STREAK_KEY)

            if today - last_day > DAY_IN_MILLIS:
                if streak > 1:
                    logger.info(f"Streak of {streak} days broken, restarting")
                streak = 1
                self.store.set_int(LEARNING_STREAK_KEY, streak)
            elif today > last_day:
                streak += 1
                self.store.set_int(LEARNING_STREAK_KEY, streak)
            self.store.set_long(LAST_LEARNING_DAY_KEY, today)

        return streak

    def learning_streak(self) -> int:
        return self.store.get_int(LEARNING_STREAK_KEY)

    def last_learning_day(self) -> int | None:
        """Midnight of the last study day, None before any activity"""
        if not self.store.contains(LAST_LEARNING_DAY_KEY):
            return None
        return self.store.get_long(LAST_LEARNING_DAY_KEY)

    def learning_time(self, activity_type: str) -> int:
        return self.store.get_long(learning_time_key(activity_type))

    def total_learning_time(self, activity_types: tuple[str, ...] = ACTIVITY_TYPES) -> int:
        return sum(self.learning_time(activity_type) for activity_type in activity_types)
