"""
Achievement badges: a fixed catalog of rules over a progress snapshot
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Callable, Mapping

from .core.database.models import BadgeStatus
from .progress_store import ProgressStore
from .utils import HOUR_IN_MILLIS, current_millis

logger = logging.getLogger(__name__)


class BadgeId(str, Enum):
    """Badge identifiers, also used in the persisted keys"""
    STREAK_7 = "streak_7"
    STREAK_30 = "streak_30"
    TOTAL_TIME_10H = "total_time_10h"
    QUIZ_MASTER_EASY = "quiz_master_easy"
    QUIZ_MASTER_HARD = "quiz_master_hard"
    PERFECT_QUIZ_EASY = "perfect_quiz_easy"
    PERFECT_QUIZ_HARD = "perfect_quiz_hard"


@dataclass(frozen=True)
class ProgressSnapshot:
    """Read-only view of the state badge rules look at"""

    learning_streak: int = 0
    word_learning_time: int = 0
    grammar_learning_time: int = 0
    word_correct_rate: float = 0.0
    grammar_correct_rate: float = 0.0
    high_scores: Mapping[str, int] = field(default_factory=dict)
    perfect_scores: Mapping[str, int] = field(default_factory=dict)

    @property
    def study_hours(self) -> int:
        """Whole hours of word and grammar study"""
        return (self.word_learning_time + self.grammar_learning_time) // HOUR_IN_MILLIS

    def is_perfect(self, difficulty: str) -> bool:
        perfect = self.perfect_scores.get(difficulty)
        return perfect is not None and self.high_scores.get(difficulty, 0) == perfect


@dataclass(frozen=True)
class BadgeRule:
    """Catalog entry pairing a badge with its predicate"""

    id: BadgeId
    name: str
    description: str
    predicate: Callable[[ProgressSnapshot], bool]


BADGE_CATALOG: tuple[BadgeRule, ...] = (
    BadgeRule(
        BadgeId.STREAK_7,
        "7-day streak",
        "7 consecutive days of study",
        lambda s: s.learning_streak >= 7,
    ),
    BadgeRule(
        BadgeId.STREAK_30,
        "30-day streak",
        "30 consecutive days of study",
        lambda s: s.learning_streak >= 30,
    ),
    BadgeRule(
        BadgeId.TOTAL_TIME_10H,
        "10 hours of study time",
        "Total study time exceeds 10 hours",
        lambda s: s.study_hours >= 10,
    ),
    BadgeRule(
        BadgeId.QUIZ_MASTER_EASY,
        "Quiz Master (word)",
        "Achieve 90% or more correct answers on word quizzes",
        lambda s: s.word_correct_rate >= 0.9,
    ),
    BadgeRule(
        BadgeId.QUIZ_MASTER_HARD,
        "Quiz Master (grammar)",
        "Achieve 90% or more correct answers on grammar quizzes",
        lambda s: s.grammar_correct_rate >= 0.9,
    ),
    BadgeRule(
        BadgeId.PERFECT_QUIZ_EASY,
        "Perfect score (Word)",
        "Get a perfect score on all word quiz questions",
        lambda s: s.is_perfect("easy"),
    ),
    BadgeRule(
        BadgeId.PERFECT_QUIZ_HARD,
        "Perfect score (Grammar)",
        "Get a perfect score on all grammar quiz questions",
        lambda s: s.is_perfect("hard"),
    ),
)


def badge_key(badge_id: BadgeId) -> str:
    return f"badge_{badge_id.value}"


def badge_awarded_at_key(badge_id: BadgeId) -> str:
    return f"badge_{badge_id.value}_awarded_at"


class BadgeEvaluator:
    """Awards catalog badges whose rule holds; awards are never revoked"""

    def __init__(
        self,
        store: ProgressStore,
        snapshot_provider: Callable[[], ProgressSnapshot],
        catalog: tuple[BadgeRule, ...] = BADGE_CATALOG,
    ):
        self.store = store
        self.snapshot_provider = snapshot_provider
        self.catalog = catalog

    def evaluate_all(self, now: int | None = None) -> list[BadgeId]:
        """
        Award every not-yet-achieved badge whose rule now holds

        Returns:
            Badges awarded by this call, in catalog order
        """
        if now is None:
            now = current_millis()

        awarded = []
        with self.store.locked("evaluate_badges"):
            snapshot = self.snapshot_provider()
            for rule in self.catalog:
                if self.is_achieved(rule.id):
                    continue
                if rule.predicate(snapshot):
                    self._write_award(rule.id, now)
                    awarded.append(rule.id)
        return awarded

    def award(self, badge_id: BadgeId, now: int | None = None) -> bool:
        """Award a badge directly; False when it was already achieved"""
        if now is None:
            now = current_millis()
        with self.store.locked("award_badge"):
            if self.is_achieved(badge_id):
                return False
            self._write_award(badge_id, now)
        return True

    def _write_award(self, badge_id: BadgeId, now: int) -> None:
        self.store.set_bool(badge_key(badge_id), True)
        self.store.set_long(badge_awarded_at_key(badge_id), now)
        logger.info(f"Badge awarded: {badge_id.value}")

    def is_achieved(self, badge_id: BadgeId) -> bool:
        return self.store.get_bool(badge_key(badge_id))

    def awarded_at(self, badge_id: BadgeId) -> int | None:
        """Award time in epoch millis, None when never awarded"""
        key = badge_awarded_at_key(badge_id)
        if not self.store.contains(key):
            return None
        return self.store.get_long(key)

    def statuses(self) -> list[BadgeStatus]:
        return [
            BadgeStatus(
                id=rule.id.value,
                name=rule.name,
                description=rule.description,
                achieved=self.is_achieved(rule.id),
                awarded_at=self.awarded_at(rule.id),
            )
            for rule in self.catalog
        ]


def freeze_scores(scores: Mapping[str, int]) -> Mapping[str, int]:
    """Read-only copy of a difficulty -> score mapping"""
    return MappingProxyType(dict(scores))
