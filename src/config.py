"""
Configuration management for the adaptive learning engine
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

QUIZ_QUESTION_COUNTS = (0, 10, 30)


class Settings(BaseSettings):
    """Application settings with environment variable support"""

    # Database Configuration
    database_url: str = Field(default="sqlite:///data/progress.db")

    # Application Configuration
    log_level: str = Field(default="INFO")
    debug: bool = Field(default=False)
    timezone: str = Field(default="UTC")

    # Content Configuration
    content_dir: str = Field(default="assets")
    words_file: str = Field(default="words.json")
    grammar_file: str = Field(default="grammar.json")
    quiz_file: str = Field(default="quiz_questions.json")

    # Spaced Repetition Configuration
    max_interval_days: int = Field(default=30, ge=1)
    mistake_review_threshold: int = Field(default=3, ge=1)

    # Recommendations
    weak_items_limit: int = Field(default=5, ge=1)
    recommendation_weak_items: int = Field(default=3, ge=1)
    progress_recommendation_threshold: float = Field(default=0.5, ge=0.0, le=1.0)

    # Badges: perfect score equals the quiz catalog size per difficulty
    perfect_score_easy: int = Field(default=98, ge=1)
    perfect_score_hard: int = Field(default=96, ge=1)

    # Quiz
    # 0 runs every question of the difficulty
    default_quiz_question_count: int = Field(default=10)

    @field_validator("default_quiz_question_count")
    @classmethod
    def check_quiz_question_count(cls, value: int) -> int:
        if value not in QUIZ_QUESTION_COUNTS:
            raise ValueError(f"Quiz question count must be one of {QUIZ_QUESTION_COUNTS}, got {value}")
        return value

    @property
    def perfect_scores(self) -> dict[str, int]:
        """Perfect quiz scores keyed by difficulty"""
        return {"easy": self.perfect_score_easy, "hard": self.perfect_score_hard}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


def get_database_path(database_url: str | None = None) -> str:
    """Get the database file path from URL"""
    url = database_url or get_settings().database_url
    if url.startswith("sqlite:///"):
        return url.replace("sqlite:///", "")
    return "data/progress.db"
