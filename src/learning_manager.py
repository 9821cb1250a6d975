"""
Adaptive learning manager: the single entry point the UI layer talks to
"""

import logging
from pathlib import Path

from .badges import BadgeEvaluator, BadgeId, ProgressSnapshot, freeze_scores
from .config import Settings, get_settings
from .content_loader import (
    GrammarEntry,
    QuizQuestion,
    WordEntry,
    count_by_difficulty,
    load_grammars,
    load_quiz_questions,
    load_words,
)
from .core.database.database_manager import DatabaseManager
from .core.database.models import AnalysisSummary, BadgeStatus
from .core.locks.user_lock_manager import UserLockManager
from .mastery import CorrectRate, MasteryTracker
from .progress_store import (
    DIFFICULTY_STUDY_TYPES,
    ProgressStore,
    require_difficulty,
    require_study_type,
)
from .recommendations import RecommendationEngine, learning_progress_key
from .spaced_repetition import ReviewResult, ReviewScheduler
from .streak import StreakTracker

logger = logging.getLogger(__name__)

CURRENT_WORD_KEY = "current_word"


def study_progress_key(item_type: str) -> str:
    return f"{item_type}_progress"


def high_score_key(difficulty: str) -> str:
    return f"high_score_{difficulty}"


def quiz_attempt_count_key(difficulty: str) -> str:
    return f"quiz_attempt_count_{difficulty}"


class AdaptiveLearningManager:
    """Coordinates the progress store and the trackers built on it"""

    def __init__(
        self,
        db_manager: DatabaseManager,
        settings: Settings | None = None,
        words: list[WordEntry] | None = None,
        grammars: list[GrammarEntry] | None = None,
        quiz_questions: list[QuizQuestion] | None = None,
        lock_manager: UserLockManager | None = None,
    ):
        self.settings = settings or get_settings()
        self.db_manager = db_manager
        self.store = ProgressStore(db_manager, lock_manager or UserLockManager())

        self.words = words or []
        self.grammars = grammars or []
        self.quiz_questions = quiz_questions or []

        self.mastery = MasteryTracker(self.store, self.settings.weak_items_limit)
        self.scheduler = ReviewScheduler(
            self.store,
            max_interval_days=self.settings.max_interval_days,
            mistake_threshold=self.settings.mistake_review_threshold,
        )
        self.streaks = StreakTracker(self.store, self.settings.timezone)
        self.recommender = RecommendationEngine(
            self.store,
            self.mastery,
            progress_threshold=self.settings.progress_recommendation_threshold,
            weak_items_shown=self.settings.recommendation_weak_items,
        )
        self.badges = BadgeEvaluator(self.store, self.snapshot)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "AdaptiveLearningManager":
        """Build a manager with the database and content catalogs from settings"""
        settings = settings or get_settings()
        db_manager = DatabaseManager(settings.database_url)
        db_manager.init_database()

        content_dir = Path(settings.content_dir)
        return cls(
            db_manager,
            settings=settings,
            words=load_words(content_dir / settings.words_file),
            grammars=load_grammars(content_dir / settings.grammar_file),
            quiz_questions=load_quiz_questions(content_dir / settings.quiz_file),
        )

    # Users
    @property
    def current_user(self) -> str:
        return self.store.user_id

    def switch_user(self, user_id: str) -> None:
        """Make another user's state visible"""
        self.db_manager.set_current_user(user_id)

    # Current word
    def set_current_word(self, word: str) -> None:
        self.store.set_string(CURRENT_WORD_KEY, word)

    def get_current_word(self) -> str | None:
        return self.store.get_string(CURRENT_WORD_KEY)

    # Favorites
    def toggle_favorite(self, item: str, item_type: str) -> None:
        self.mastery.toggle_favorite(item, item_type)

    def is_favorite(self, item: str, item_type: str) -> bool:
        return self.mastery.is_favorite(item, item_type)

    def get_favorites(self, item_type: str) -> set[str]:
        return self.mastery.favorites(item_type)

    def get_favorite_words(self) -> list[str]:
        return sorted(self.mastery.favorites("word"))

    def get_favorite_grammars(self) -> list[str]:
        return sorted(self.mastery.favorites("grammar"))

    # Catalog lookups
    def item_count(self, item_type: str) -> int:
        require_study_type(item_type)
        return len(self.words) if item_type == "word" else len(self.grammars)

    def word_index(self, word: str) -> int:
        """Position of a word in the catalog, -1 when unknown"""
        return next((i for i, entry in enumerate(self.words) if entry.word == word), -1)

    def grammar_index(self, grammar: str) -> int:
        """Position of a grammar point in the catalog, -1 when unknown"""
        return next(
            (i for i, entry in enumerate(self.grammars) if entry.grammar == grammar), -1
        )

    # Study cursor and learning progress
    def current_study_index(self, item_type: str) -> int:
        require_study_type(item_type)
        return self.store.get_int(study_progress_key(item_type))

    def save_study_index(self, item_type: str, index: int) -> None:
        """
        Store the study cursor for a type

        An index equal to the catalog size means every item was studied.

        Raises:
            ValueError: index outside [0, item count]
        """
        item_count = self.item_count(item_type)
        if not 0 <= index <= item_count:
            raise ValueError(
                f"Study index {index} out of range for {item_count} {item_type} items"
            )
        self.store.set_int(study_progress_key(item_type), index)

    def advance_study(self, item_type: str) -> int:
        """Move the study cursor one item forward and update learning progress"""
        item_count = self.item_count(item_type)
        with self.store.locked("advance_study"):
            index = min(self.current_study_index(item_type) + 1, item_count)
            self.save_study_index(item_type, index)
            if item_count:
                self.update_learning_progress(item_type, index / item_count)
        return index

    def is_study_complete(self, item_type: str) -> bool:
        return self.current_study_index(item_type) >= self.item_count(item_type)

    def update_learning_progress(self, item_type: str, progress: float) -> None:
        require_study_type(item_type)
        if not 0.0 <= progress <= 1.0:
            raise ValueError(f"Learning progress must be within [0, 1], got {progress}")
        self.store.set_float(learning_progress_key(item_type), progress)

    def learning_progress(self, item_type: str) -> float:
        return self.store.get_float(learning_progress_key(item_type))

    # Mastery
    def record_outcome(
        self, item: str, item_type: str, is_correct: bool, now: int | None = None
    ) -> tuple[CorrectRate, ReviewResult]:
        """Grade a study item and reschedule its review"""
        with self.store.locked("record_outcome"):
            record = self.mastery.record_outcome(item, item_type, is_correct)
            review = self.scheduler.schedule_review(item, item_type, is_correct, now)
        return record, review

    def correct_rate(self, item_type: str) -> float:
        return self.mastery.correct_rate(item_type)

    def weak_items(self, item_type: str) -> list[tuple[str, float]]:
        return self.mastery.weak_items(item_type)

    def sorted_words(self) -> list[WordEntry]:
        """Vocabulary catalog in study order"""
        return self.mastery.sort_by_weakness_then_favorite(
            self.words, "word", key=lambda entry: entry.word
        )

    def sorted_grammars(self) -> list[GrammarEntry]:
        """Grammar catalog in study order"""
        return self.mastery.sort_by_weakness_then_favorite(
            self.grammars, "grammar", key=lambda entry: entry.grammar
        )

    # Review scheduling
    def schedule_review(
        self, item: str, item_type: str, is_correct: bool, now: int | None = None
    ) -> ReviewResult:
        return self.scheduler.schedule_review(item, item_type, is_correct, now)

    def items_due_for_review(self, item_type: str, now: int | None = None) -> list[str]:
        return self.scheduler.due_items(item_type, now)

    def record_mistake(self, question_id: str) -> int:
        return self.scheduler.record_mistake(question_id)

    def get_review_list(self) -> set[str]:
        return self.scheduler.review_list()

    def remove_from_review_list(self, question_id: str) -> bool:
        return self.scheduler.remove_from_review_list(question_id)

    # Quiz records
    def record_quiz_answer(self, difficulty: str, question_id: str, is_correct: bool) -> None:
        """Count a quiz answer in the type's correct rate, and a mistake when wrong"""
        require_difficulty(difficulty)
        self.mastery.record_quiz_answer(DIFFICULTY_STUDY_TYPES[difficulty], is_correct)
        if not is_correct:
            self.scheduler.record_mistake(question_id)

    def update_high_score(self, difficulty: str, score: int) -> bool:
        """Keep the higher of the stored and new score; True when it improved"""
        require_difficulty(difficulty)
        key = high_score_key(difficulty)
        with self.store.locked("update_high_score"):
            if score <= self.store.get_int(key):
                return False
            self.store.set_int(key, score)
        logger.info(f"New {difficulty} high score: {score}")
        return True

    def high_score(self, difficulty: str) -> int:
        return self.store.get_int(high_score_key(difficulty))

    def increment_quiz_attempt_count(self, difficulty: str) -> int:
        require_difficulty(difficulty)
        key = quiz_attempt_count_key(difficulty)
        with self.store.locked("increment_quiz_attempt_count"):
            count = self.store.get_int(key) + 1
            self.store.set_int(key, count)
        return count

    def quiz_attempt_count(self, difficulty: str) -> int:
        return self.store.get_int(quiz_attempt_count_key(difficulty))

    # Time and streaks
    def record_activity(self, activity_type: str, duration_ms: int, now: int | None = None) -> int:
        return self.streaks.record_activity(activity_type, duration_ms, now)

    def learning_streak(self) -> int:
        return self.streaks.learning_streak()

    def learning_time(self, activity_type: str) -> int:
        return self.streaks.learning_time(activity_type)

    # Recommendations
    def recommendations(self) -> list[str]:
        return self.recommender.build()

    # Badges
    def perfect_scores(self) -> dict[str, int]:
        """Perfect score per difficulty: catalog size, else the configured value"""
        scores = dict(self.settings.perfect_scores)
        scores.update(count_by_difficulty(self.quiz_questions))
        return scores

    def snapshot(self) -> ProgressSnapshot:
        """Read-only view of the state the badge rules evaluate"""
        return ProgressSnapshot(
            learning_streak=self.learning_streak(),
            word_learning_time=self.learning_time("word"),
            grammar_learning_time=self.learning_time("grammar"),
            word_correct_rate=self.correct_rate("word"),
            grammar_correct_rate=self.correct_rate("grammar"),
            high_scores=freeze_scores(
                {difficulty: self.high_score(difficulty) for difficulty in DIFFICULTY_STUDY_TYPES}
            ),
            perfect_scores=freeze_scores(self.perfect_scores()),
        )

    def check_and_award_badges(self, now: int | None = None) -> list[BadgeId]:
        return self.badges.evaluate_all(now)

    def is_badge_achieved(self, badge_id: BadgeId) -> bool:
        return self.badges.is_achieved(badge_id)

    def badge_awarded_time(self, badge_id: BadgeId) -> int | None:
        return self.badges.awarded_at(badge_id)

    def badge_statuses(self) -> list[BadgeStatus]:
        return self.badges.statuses()

    # Analysis
    def analysis(self) -> AnalysisSummary:
        """Aggregated statistics for the analysis view"""
        return AnalysisSummary(
            word_learning_time=self.learning_time("word"),
            grammar_learning_time=self.learning_time("grammar"),
            quiz_learning_time=self.learning_time("quiz"),
            learning_streak=self.learning_streak(),
            easy_quiz_attempts=self.quiz_attempt_count("easy"),
            hard_quiz_attempts=self.quiz_attempt_count("hard"),
            word_correct_rate=self.correct_rate("word"),
            grammar_correct_rate=self.correct_rate("grammar"),
            easy_high_score=self.high_score("easy"),
            hard_high_score=self.high_score("hard"),
            word_progress=self.learning_progress("word"),
            grammar_progress=self.learning_progress("grammar"),
        )
