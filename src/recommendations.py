"""
Study recommendations built from learning progress and weak items
"""

import logging

from .mastery import MasteryTracker
from .progress_store import ProgressStore
from .utils import format_percentage

logger = logging.getLogger(__name__)

PLURAL_LABELS = {"word": "words", "grammar": "grammars"}


def learning_progress_key(item_type: str) -> str:
    return f"{item_type}_learning_progress"


class RecommendationEngine:
    """Read-only aggregation of progress signals into suggestions"""

    def __init__(
        self,
        store: ProgressStore,
        mastery: MasteryTracker,
        progress_threshold: float = 0.5,
        weak_items_shown: int = 3,
    ):
        self.store = store
        self.mastery = mastery
        self.progress_threshold = progress_threshold
        self.weak_items_shown = weak_items_shown

    def build(self) -> list[str]:
        """Ordered suggestions; entries whose condition fails are left out"""
        recommendations = []

        for item_type in ("word", "grammar"):
            progress = self.store.get_float(learning_progress_key(item_type))
            if progress < self.progress_threshold:
                recommendations.append(
                    f"Keep learning {PLURAL_LABELS[item_type]}. "
                    f"Current Progress: {format_percentage(progress)}"
                )

        for item_type in ("word", "grammar"):
            weak = self.mastery.weak_items(item_type, limit=self.weak_items_shown)
            if weak:
                names = ", ".join(item for item, _rate in weak)
                recommendations.append(
                    f"Review the following {PLURAL_LABELS[item_type]}: {names}"
                )

        logger.debug(f"Built {len(recommendations)} recommendations")
        return recommendations
