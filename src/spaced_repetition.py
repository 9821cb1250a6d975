"""
Spaced repetition scheduling with exponential backoff, plus the mistake review list
"""

import logging
from dataclasses import dataclass

from .progress_store import ProgressStore, require_study_type
from .utils import DAY_IN_MILLIS, current_millis

logger = logging.getLogger(__name__)

DEFAULT_MAX_INTERVAL_DAYS = 30
MAX_INTERVAL_MILLIS = DEFAULT_MAX_INTERVAL_DAYS * DAY_IN_MILLIS
DEFAULT_MISTAKE_THRESHOLD = 3
REVIEW_LIST_KEY = "review_list"


@dataclass
class ReviewResult:
    """Result of scheduling one review"""

    next_due_at: int
    interval_ms: int  # Stored interval after this review
    is_correct: bool

    @property
    def interval_days(self) -> float:
        return self.interval_ms / DAY_IN_MILLIS


def review_schedule_key(item_type: str, item: str) -> str:
    return f"{item_type}_review_schedule_{item}"


def review_interval_key(item_type: str, item: str) -> str:
    return f"{item_type}_review_interval_{item}"


def mistake_count_key(question_id: str) -> str:
    return f"mistake_count_{question_id}"


def calculate_next_interval(previous_interval_ms: int, max_interval_ms: int = MAX_INTERVAL_MILLIS) -> int:
    """Double the previous interval, capped at the maximum"""
    return min(previous_interval_ms * 2, max_interval_ms)


class ReviewScheduler:
    """Exponential-backoff review scheduling for study items"""

    def __init__(
        self,
        store: ProgressStore,
        max_interval_days: int = DEFAULT_MAX_INTERVAL_DAYS,
        mistake_threshold: int = DEFAULT_MISTAKE_THRESHOLD,
    ):
        self.store = store
        self.max_interval_ms = max_interval_days * DAY_IN_MILLIS
        self.mistake_threshold = mistake_threshold

    def schedule_review(
        self, item: str, item_type: str, is_correct: bool, now: int | None = None
    ) -> ReviewResult:
        """
        Push an item's next due time after a review

        A correct answer doubles the stored interval (one day when absent),
        capped at the maximum, and the item is due after the new interval.
        An incorrect answer makes the item due in exactly one day and leaves
        the stored interval alone, so the next correct answer doubles from
        wherever it last was.

        Args:
            item: Item text key
            item_type: "word" or "grammar"
            is_correct: Whether the review was answered correctly
            now: Epoch millis of the review (defaults to the current time)

        Returns:
            ReviewResult with the new due time and stored interval
        """
        require_study_type(item_type)
        if now is None:
            now = current_millis()

        interval_key = review_interval_key(item_type, item)
        with self.store.locked("schedule_review"):
            previous_interval = self.store.get_long(interval_key, DAY_IN_MILLIS)
            if is_correct:
                interval = calculate_next_interval(previous_interval, self.max_interval_ms)
                self.store.set_long(interval_key, interval)
                next_due_at = now + interval
            else:
                interval = previous_interval
                next_due_at = now + DAY_IN_MILLIS
            self.store.set_long(review_schedule_key(item_type, item), next_due_at)

        result = ReviewResult(next_due_at=next_due_at, interval_ms=interval, is_correct=is_correct)
        logger.info(
            f"Scheduled {item_type} '{item}': correct={is_correct}, "
            f"interval={result.interval_days:g}d, next={next_due_at}"
        )
        return result

    def next_due_at(self, item: str, item_type: str) -> int | None:
        """Next due time of an item, None when never scheduled"""
        key = review_schedule_key(item_type, item)
        if not self.store.contains(key):
            return None
        return self.store.get_long(key)

    def current_interval(self, item: str, item_type: str) -> int:
        """Stored interval of an item, one day when absent"""
        return self.store.get_long(review_interval_key(item_type, item), DAY_IN_MILLIS)

    def due_items(self, item_type: str, now: int | None = None) -> list[str]:
        """Every scheduled item of a type whose due time has passed"""
        if now is None:
            now = current_millis()
        schedules = self.store.items_with_prefix(review_schedule_key(item_type, ""))
        return [item for item, due_at in schedules.items() if due_at <= now]

    # Mistake review list
    def record_mistake(self, question_id: str) -> int:
        """
        Count a wrong quiz answer

        Once the count reaches the threshold the question joins the review
        list. Returns the new mistake count.
        """
        with self.store.locked("record_mistake"):
            key = mistake_count_key(question_id)
            count = self.store.get_int(key) + 1
            self.store.set_int(key, count)

            if count >= self.mistake_threshold:
                self._add_to_review_list(question_id)

        logger.info(f"Recorded mistake for question {question_id}: count={count}")
        return count

    def mistake_count(self, question_id: str) -> int:
        return self.store.get_int(mistake_count_key(question_id))

    def _add_to_review_list(self, question_id: str) -> None:
        review_list = self.store.get_string_set(REVIEW_LIST_KEY)
        if question_id in review_list:
            return
        review_list.add(question_id)
        self.store.set_string_set(REVIEW_LIST_KEY, review_list)
        logger.info(f"Question {question_id} added to review list")

    def review_list(self) -> set[str]:
        return self.store.get_string_set(REVIEW_LIST_KEY)

    def remove_from_review_list(self, question_id: str) -> bool:
        """Remove a question from the review list, True if it was present"""
        with self.store.locked("remove_from_review_list"):
            review_list = self.store.get_string_set(REVIEW_LIST_KEY)
            if question_id not in review_list:
                return False
            review_list.remove(question_id)
            self.store.set_string_set(REVIEW_LIST_KEY, review_list)

        logger.info(f"Question {question_id} removed from review list")
        return True
