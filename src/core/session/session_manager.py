"""
Session management for timed study, quiz and review interactions
"""

import logging
import random
from datetime import datetime

from ...badges import BadgeId
from ...config import QUIZ_QUESTION_COUNTS
from ...content_loader import QuizQuestion, questions_by_difficulty
from ...learning_manager import AdaptiveLearningManager
from ...progress_store import DIFFICULTY_STUDY_TYPES, require_difficulty, require_study_type
from ...utils import Timer

logger = logging.getLogger(__name__)


class StudySession:
    """Timed flashcard study of one item type"""

    def __init__(self, manager: AdaptiveLearningManager, item_type: str):
        self.manager = manager
        self.item_type = require_study_type(item_type)
        self.timer = Timer()
        self.created_at = datetime.now()
        self.finished = False

    def start(self):
        self.timer.start()

    def get_current_item(self):
        """Catalog entry under the study cursor, None when all are studied"""
        catalog = self.manager.words if self.item_type == "word" else self.manager.grammars
        index = self.manager.current_study_index(self.item_type)
        return catalog[index] if index < len(catalog) else None

    def advance(self) -> int:
        return self.manager.advance_study(self.item_type)

    def finish(self, now: int | None = None) -> int:
        """Stop the timer and record the study time; returns elapsed millis"""
        if self.finished:
            return 0
        self.timer.stop()
        elapsed = self.timer.elapsed_ms() or 0
        self.manager.record_activity(self.item_type, elapsed, now)
        self.finished = True
        logger.info(f"Study session ({self.item_type}) finished after {elapsed} ms")
        return elapsed


class QuizSession:
    """One run through a set of quiz questions of a single difficulty"""

    def __init__(
        self,
        manager: AdaptiveLearningManager,
        difficulty: str,
        question_count: int = 0,
        rng: random.Random | None = None,
    ):
        """
        Args:
            manager: Learning manager of the current user
            difficulty: "easy" (word quiz) or "hard" (grammar quiz)
            question_count: 10 or 30 for a partial run, 0 for every question
            rng: Random source for question order
        """
        self.manager = manager
        self.difficulty = require_difficulty(difficulty)
        if question_count not in QUIZ_QUESTION_COUNTS:
            raise ValueError(f"Unsupported question count: {question_count}")

        available = questions_by_difficulty(manager.quiz_questions, difficulty, rng)
        self.total_available = len(available)
        self.question_count = question_count
        self.questions: list[QuizQuestion] = (
            available[:question_count] if question_count else available
        )
        self.current_index = 0
        self.score = 0
        self.timer = Timer()
        self.finished = False
        self.is_new_high_score = False

    def start(self, initial_question_id: str | None = None):
        """Count the attempt and start timing, optionally jumping to a question"""
        self.manager.increment_quiz_attempt_count(self.difficulty)
        if initial_question_id is not None:
            self.current_index = next(
                (i for i, q in enumerate(self.questions) if q.id == initial_question_id), 0
            )
        self.timer.start()

    def get_current_question(self) -> QuizQuestion | None:
        if self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    def is_finished(self) -> bool:
        return self.current_index >= len(self.questions)

    def answer(self, answer_index: int) -> bool:
        """Grade the current question and move on; returns correctness"""
        question = self.get_current_question()
        if question is None:
            raise ValueError("Quiz has no remaining questions")

        is_correct = question.is_correct(answer_index)
        if is_correct:
            self.score += 1
        self.manager.record_quiz_answer(self.difficulty, question.id, is_correct)
        self.current_index += 1
        return is_correct

    @property
    def is_full_run(self) -> bool:
        return self.question_count == 0

    def finish(self, now: int | None = None) -> list[BadgeId]:
        """
        Close the quiz: store the high score, award badges, record quiz time

        Returns:
            Badges awarded by this quiz
        """
        if self.finished:
            return []
        self.finished = True
        self.timer.stop()

        self.is_new_high_score = self.manager.update_high_score(self.difficulty, self.score)

        awarded = []
        if self.is_full_run and self.questions and self.score == self.total_available:
            perfect_badge = (
                BadgeId.PERFECT_QUIZ_EASY if self.difficulty == "easy" else BadgeId.PERFECT_QUIZ_HARD
            )
            if self.manager.badges.award(perfect_badge, now):
                awarded.append(perfect_badge)
        awarded.extend(self.manager.check_and_award_badges(now))

        self.manager.record_activity("quiz", self.timer.elapsed_ms() or 0, now)
        logger.info(
            f"Quiz ({self.difficulty}) finished: {self.score}/{len(self.questions)}, "
            f"study type {DIFFICULTY_STUDY_TYPES[self.difficulty]}"
        )
        return awarded


class ReviewSession:
    """Walk through due study items and the mistake review list"""

    def __init__(
        self,
        manager: AdaptiveLearningManager,
        now: int | None = None,
        rng: random.Random | None = None,
    ):
        self.manager = manager
        rng = rng or random.Random()
        queue = (
            [("word", item) for item in manager.items_due_for_review("word", now)]
            + [("grammar", item) for item in manager.items_due_for_review("grammar", now)]
            + [("mistake", question_id) for question_id in sorted(manager.get_review_list())]
        )
        rng.shuffle(queue)
        self.queue: list[tuple[str, str]] = queue
        self.current_index = 0

    def get_current_item(self) -> tuple[str, str] | None:
        """(kind, key) under review; kind is "word", "grammar" or "mistake" """
        if self.current_index < len(self.queue):
            return self.queue[self.current_index]
        return None

    def question_for(self, question_id: str) -> QuizQuestion | None:
        return next((q for q in self.manager.quiz_questions if q.id == question_id), None)

    def is_finished(self) -> bool:
        return self.current_index >= len(self.queue)

    def complete_current(self, now: int | None = None) -> tuple[str, str]:
        """Mark the current item reviewed and move on"""
        current = self.get_current_item()
        if current is None:
            raise ValueError("Review queue is empty")

        kind, key = current
        if kind == "mistake":
            self.manager.remove_from_review_list(key)
        else:
            self.manager.schedule_review(key, kind, True, now)
        self.current_index += 1
        return current


class SessionManager:
    """Keeps at most one active session per user"""

    def __init__(self, manager: AdaptiveLearningManager):
        self.manager = manager
        self.user_sessions: dict[str, StudySession | QuizSession | ReviewSession] = {}

    def _replace(self, session):
        user_id = self.manager.current_user
        previous = self.user_sessions.get(user_id)
        if previous is not None:
            logger.info(f"Replacing active session for user '{user_id}'")
            self.end_session()
        self.user_sessions[user_id] = session
        return session

    def start_study_session(self, item_type: str) -> StudySession:
        session = self._replace(StudySession(self.manager, item_type))
        session.start()
        return session

    def start_quiz_session(
        self,
        difficulty: str,
        question_count: int | None = None,
        initial_question_id: str | None = None,
        rng: random.Random | None = None,
    ) -> QuizSession:
        """Start a quiz; question_count defaults to the configured run length"""
        if question_count is None:
            question_count = self.manager.settings.default_quiz_question_count
        session = self._replace(QuizSession(self.manager, difficulty, question_count, rng))
        session.start(initial_question_id)
        return session

    def start_review_session(self, now: int | None = None, rng: random.Random | None = None) -> ReviewSession:
        return self._replace(ReviewSession(self.manager, now, rng))

    def get_session(self):
        return self.user_sessions.get(self.manager.current_user)

    def end_session(self, now: int | None = None):
        """Finish and forget the current user's session"""
        session = self.user_sessions.pop(self.manager.current_user, None)
        if isinstance(session, (StudySession, QuizSession)):
            session.finish(now)
        return session
