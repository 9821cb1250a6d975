"""
Tests for study time accounting and daily streaks
"""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.database.database_manager import DatabaseManager
from src.progress_store import ProgressStore
from src.streak import StreakTracker
from src.utils import DAY_IN_MILLIS, millis_from_datetime

DAY_D = datetime(2024, 5, 10, tzinfo=timezone.utc)


def at(day_offset: int, hour: int = 10) -> int:
    """Epoch millis on day D + offset at the given UTC hour"""
    return millis_from_datetime(DAY_D + timedelta(days=day_offset, hours=hour))


class TestStreakTracker:
    """Test StreakTracker over an in-memory store"""

    @pytest.fixture
    def store(self):
        db_mgr = DatabaseManager(":memory:")
        db_mgr.init_database()
        db_mgr.set_current_user("alice")
        yield ProgressStore(db_mgr)
        db_mgr.close()

    @pytest.fixture
    def tracker(self, store):
        return StreakTracker(store)

    def test_first_activity_starts_streak(self, tracker):
        """Test the first study day gives a streak of 1"""
        assert tracker.last_learning_day() is None
        assert tracker.record_activity("word", 1000, now=at(0)) == 1
        assert tracker.learning_streak() == 1
        assert tracker.last_learning_day() == millis_from_datetime(DAY_D)

    def test_next_day_increments(self, tracker):
        tracker.record_activity("word", 1000, now=at(0))
        assert tracker.record_activity("word", 1000, now=at(1)) == 2
        assert tracker.record_activity("grammar", 1000, now=at(2, hour=23)) == 3

    def test_same_day_unchanged(self, tracker):
        tracker.record_activity("word", 1000, now=at(0, hour=1))
        tracker.record_activity("word", 1000, now=at(1))
        assert tracker.record_activity("word", 1000, now=at(1, hour=22)) == 2

    def test_gap_resets_to_one(self, tracker):
        """Test skipping a day restarts the streak"""
        for day in range(4):
            tracker.record_activity("word", 1000, now=at(day))
        assert tracker.learning_streak() == 4

        assert tracker.record_activity("word", 1000, now=at(5)) == 1

    def test_last_day_always_updated(self, tracker, store):
        """Test the last study day moves on every call"""
        tracker.record_activity("word", 1000, now=at(0))
        tracker.record_activity("word", 1000, now=at(3))

        assert store.get_long("last_learning_day") == millis_from_datetime(DAY_D) + 3 * DAY_IN_MILLIS

    def test_streak_from_stored_day(self, tracker, store):
        """Test transitions from a given last day D"""
        last_day = millis_from_datetime(DAY_D)
        store.set_long("last_learning_day", last_day)
        store.set_int("learning_streak", 6)

        assert tracker.update_streak(now=at(0)) == 6
        assert tracker.update_streak(now=at(1)) == 7
        assert tracker.update_streak(now=at(3)) == 1

    def test_learning_time_accumulates(self, tracker):
        """Test durations add up per activity type"""
        tracker.record_activity("word", 60000, now=at(0))
        tracker.record_activity("word", 30000, now=at(0))
        tracker.record_activity("quiz", 5000, now=at(0))

        assert tracker.learning_time("word") == 90000
        assert tracker.learning_time("grammar") == 0
        assert tracker.learning_time("quiz") == 5000
        assert tracker.total_learning_time() == 95000
        assert tracker.total_learning_time(("word", "grammar")) == 90000

    def test_invalid_arguments(self, tracker):
        with pytest.raises(ValueError):
            tracker.record_activity("word", -1, now=at(0))
        with pytest.raises(ValueError):
            tracker.record_activity("reading", 10, now=at(0))

    def test_local_day_boundary(self, store):
        """Test days are cut at local midnight of the configured zone"""
        tracker = StreakTracker(store, timezone="Asia/Tokyo")
        # 2024-05-10 14:00 UTC is 23:00 in Tokyo, 16:00 UTC is 01:00 next day
        tracker.record_activity("word", 1000, now=at(0, hour=14))
        assert tracker.record_activity("word", 1000, now=at(0, hour=16)) == 2
