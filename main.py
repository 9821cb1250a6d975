#!/usr/bin/env python3
"""
Adaptive Learning Engine
Prints the progress overview of a user
"""

import logging
import sys

from src.config import get_settings
from src.content_loader import ContentError
from src.core.database.models import BadgeStatus
from src.learning_manager import AdaptiveLearningManager
from src.utils import datetime_from_millis, format_duration, format_percentage


def format_badge_status(status: BadgeStatus, timezone: str) -> str:
    """One badge list line; the award time is left out when it was never stored"""
    if not status["achieved"]:
        return f"[ ] {status['name']}"
    if status["awarded_at"] is None:
        return f"[x] {status['name']}"
    awarded = datetime_from_millis(status["awarded_at"], timezone)
    return f"[x] {status['name']} (acquired {awarded:%Y/%m/%d %H:%M})"


def main():
    """Main application entry point"""
    # Load configuration
    settings = get_settings()

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else getattr(logging, settings.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    logger = logging.getLogger(__name__)
    logger.info("Starting Adaptive Learning Engine...")

    try:
        manager = AdaptiveLearningManager.from_settings(settings)
    except ContentError as e:
        logger.error(f"Content configuration error: {e}")
        sys.exit(1)

    if len(sys.argv) > 1:
        manager.switch_user(sys.argv[1])

    manager.check_and_award_badges()
    summary = manager.analysis()

    print(f"User: {manager.current_user or '(none)'}")
    print(f"Streak: {summary['learning_streak']} days")
    print(f"Word study time: {format_duration(summary['word_learning_time'])}")
    print(f"Grammar study time: {format_duration(summary['grammar_learning_time'])}")
    print(f"Total study time: {format_duration(manager.streaks.total_learning_time())}")
    print(f"Word correct rate: {format_percentage(summary['word_correct_rate'])}")
    print(f"Grammar correct rate: {format_percentage(summary['grammar_correct_rate'])}")
    print(f"Due words: {len(manager.items_due_for_review('word'))}")
    print(f"Due grammars: {len(manager.items_due_for_review('grammar'))}")
    print(f"Mistakes to review: {len(manager.get_review_list())}")

    print("\nRecommendations:")
    for recommendation in manager.recommendations():
        print(f"  - {recommendation}")

    print("\nBadges:")
    for status in manager.badge_statuses():
        print(f"  {format_badge_status(status, settings.timezone)}")

    manager.db_manager.close()


if __name__ == "__main__":
    main()
