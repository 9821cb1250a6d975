"""
Mastery tracking: correct/total counters, favorites and weak-item ranking
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, TypeVar

from .progress_store import ProgressStore, require_study_type
from .utils import calculate_success_rate, format_json_safely

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CorruptRecordError(ValueError):
    """Stored correct-rate data could not be parsed"""


@dataclass(frozen=True)
class CorrectRate:
    """Correct/total counter pair for one study item or one item type"""

    correct: int = 0
    total: int = 0

    @property
    def rate(self) -> float:
        return calculate_success_rate(self.correct, self.total)

    def record(self, is_correct: bool) -> "CorrectRate":
        """Counter pair after one more graded answer"""
        return CorrectRate(
            correct=self.correct + (1 if is_correct else 0),
            total=self.total + 1,
        )

    def to_json(self) -> str:
        return format_json_safely({"correct": self.correct, "total": self.total})

    @classmethod
    def from_json(cls, raw: Any) -> "CorrectRate":
        """Parse a stored record, raising CorruptRecordError on bad data"""
        try:
            data = json.loads(raw)
            correct = data["correct"]
            total = data["total"]
        except (json.JSONDecodeError, TypeError, KeyError) as e:
            raise CorruptRecordError(f"Unparsable correct-rate record: {raw!r}") from e

        if (
            not isinstance(correct, int)
            or not isinstance(total, int)
            or isinstance(correct, bool)
            or isinstance(total, bool)
            or not 0 <= correct <= total
        ):
            raise CorruptRecordError(f"Inconsistent correct-rate record: {raw!r}")
        return cls(correct=correct, total=total)


def correct_rate_key(item_type: str, item: str | None = None) -> str:
    """Key of the per-item record, or of the per-type aggregate when item is None"""
    if item is None:
        return f"{item_type}_correct_rate"
    return f"{item_type}_correct_rate_{item}"


def favorites_key(item_type: str) -> str:
    return f"{item_type}_favorites"


class MasteryTracker:
    """Maintains correct-rate records and favorites for study items"""

    def __init__(self, store: ProgressStore, weak_items_limit: int = 5):
        self.store = store
        self.weak_items_limit = weak_items_limit

    def _load(self, key: str) -> CorrectRate:
        raw = self.store.get(key)
        if raw is None:
            return CorrectRate()
        try:
            return CorrectRate.from_json(raw)
        except CorruptRecordError:
            return self._reset_corrupt(key)

    def _reset_corrupt(self, key: str) -> CorrectRate:
        """Replace a corrupt record with 0/0 unless a locked writer repaired it first"""
        with self.store.locked("reset_corrupt_record"):
            raw = self.store.get(key)
            if raw is None:
                return CorrectRate()
            try:
                return CorrectRate.from_json(raw)
            except CorruptRecordError as e:
                logger.warning(f"Resetting corrupt record {key}: {e}")
                reset = CorrectRate()
                self.store.set_string(key, reset.to_json())
                return reset

    def _increment(self, key: str, is_correct: bool) -> CorrectRate:
        updated = self._load(key).record(is_correct)
        self.store.set_string(key, updated.to_json())
        return updated

    def record_outcome(self, item: str, item_type: str, is_correct: bool) -> CorrectRate:
        """
        Record one graded answer for a study item

        Updates the item's counter pair and the per-type aggregate.

        Args:
            item: Item text key, e.g. the word itself
            item_type: "word" or "grammar"
            is_correct: Whether the answer was correct

        Returns:
            The item's updated counter pair
        """
        require_study_type(item_type)
        with self.store.locked("record_outcome"):
            updated = self._increment(correct_rate_key(item_type, item), is_correct)
            self._increment(correct_rate_key(item_type), is_correct)

        logger.info(
            f"Recorded {'correct' if is_correct else 'incorrect'} outcome for "
            f"{item_type} '{item}': {updated.correct}/{updated.total}"
        )
        return updated

    def record_quiz_answer(self, item_type: str, is_correct: bool) -> CorrectRate:
        """Record a quiz answer against the per-type aggregate only"""
        require_study_type(item_type)
        with self.store.locked("record_quiz_answer"):
            return self._increment(correct_rate_key(item_type), is_correct)

    def get_record(self, item: str, item_type: str) -> CorrectRate:
        return self._load(correct_rate_key(item_type, item))

    def item_correct_rate(self, item: str, item_type: str) -> float:
        return self.get_record(item, item_type).rate

    def correct_rate(self, item_type: str) -> float:
        """Overall correct rate across every graded answer of a type"""
        return self._load(correct_rate_key(item_type)).rate

    def overall_record(self, item_type: str) -> CorrectRate:
        return self._load(correct_rate_key(item_type))

    # Favorites
    def favorites(self, item_type: str) -> set[str]:
        return self.store.get_string_set(favorites_key(item_type))

    def is_favorite(self, item: str, item_type: str) -> bool:
        return item in self.favorites(item_type)

    def toggle_favorite(self, item: str, item_type: str) -> None:
        """Add the item to favorites, or remove it when already there"""
        require_study_type(item_type)
        with self.store.locked("toggle_favorite"):
            favorites = self.favorites(item_type)
            if item in favorites:
                favorites.remove(item)
            else:
                favorites.add(item)
            self.store.set_string_set(favorites_key(item_type), favorites)

    # Weak items
    def weak_items(self, item_type: str, limit: int | None = None) -> list[tuple[str, float]]:
        """
        Lowest-rate items of a type, ascending by rate

        Only items with a stored record take part. Ties keep key order.
        """
        limit = self.weak_items_limit if limit is None else limit
        prefix = correct_rate_key(item_type, "")
        rated = []
        for item, raw in self.store.items_with_prefix(prefix).items():
            try:
                record = CorrectRate.from_json(raw)
            except CorruptRecordError:
                record = self._reset_corrupt(prefix + item)
            rated.append((item, record.rate))

        rated.sort(key=lambda pair: pair[1])
        return rated[:limit]

    def sort_by_weakness_then_favorite(
        self,
        items: Iterable[T],
        item_type: str,
        key: Callable[[T], str] = str,
    ) -> list[T]:
        """
        Display order for a study sequence

        Weak items come first in weak-list rank, the rest follow; within the
        same rank favorites come before non-favorites. The sort is stable.
        """
        weak_rank = {item: rank for rank, (item, _rate) in enumerate(self.weak_items(item_type))}
        favorites = self.favorites(item_type)
        unranked = len(weak_rank)

        def sort_key(entry: T) -> tuple[int, bool]:
            item_key = key(entry)
            return weak_rank.get(item_key, unranked), item_key not in favorites

        return sorted(items, key=sort_key)
