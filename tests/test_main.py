"""
Tests for the progress overview output
"""

from datetime import datetime, timezone

import pytest

from main import format_badge_status
from src.badges import BadgeEvaluator, BadgeId, ProgressSnapshot
from src.core.database.database_manager import DatabaseManager
from src.progress_store import ProgressStore
from src.utils import millis_from_datetime


class TestBadgeStatusLines:
    """Test badge lines in the overview"""

    @pytest.fixture
    def store(self):
        db_mgr = DatabaseManager(":memory:")
        db_mgr.init_database()
        db_mgr.set_current_user("alice")
        yield ProgressStore(db_mgr)
        db_mgr.close()

    @pytest.fixture
    def evaluator(self, store):
        return BadgeEvaluator(store, ProgressSnapshot)

    def statuses(self, evaluator):
        return {s["id"]: s for s in evaluator.statuses()}

    def test_not_achieved(self, evaluator):
        line = format_badge_status(self.statuses(evaluator)["streak_7"], "UTC")
        assert line == "[ ] 7-day streak"

    def test_achieved_with_time(self, evaluator):
        awarded = millis_from_datetime(datetime(2024, 5, 10, 9, 30, tzinfo=timezone.utc))
        evaluator.award(BadgeId.STREAK_7, now=awarded)

        line = format_badge_status(self.statuses(evaluator)["streak_7"], "Asia/Tokyo")

        assert line == "[x] 7-day streak (acquired 2024/05/10 18:30)"

    def test_flag_without_award_time(self, evaluator, store):
        """Test a badge stored without its award time still lists as achieved"""
        store.set_bool("badge_streak_7", True)

        status = self.statuses(evaluator)["streak_7"]

        assert status["awarded_at"] is None
        assert format_badge_status(status, "UTC") == "[x] 7-day streak"
