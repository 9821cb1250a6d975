"""
Database models for the progress store
"""

from enum import Enum
from typing import NamedTuple, TypedDict


class ValueKind(str, Enum):
    """Kinds of values the key-value store can hold"""
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    LONG = "long"
    BOOL = "bool"
    STRING_SET = "string_set"


class PreferenceKey(NamedTuple):
    """Composite key addressing one stored value"""
    user_id: str
    key: str


class BadgeStatus(TypedDict):
    """Badge state as shown in the badge list"""
    id: str
    name: str
    description: str
    achieved: bool
    awarded_at: int | None


class AnalysisSummary(TypedDict):
    """Aggregated learning statistics for the analysis view"""
    word_learning_time: int
    grammar_learning_time: int
    quiz_learning_time: int
    learning_streak: int
    easy_quiz_attempts: int
    hard_quiz_attempts: int
    word_correct_rate: float
    grammar_correct_rate: float
    easy_high_score: int
    hard_high_score: int
    word_progress: float
    grammar_progress: float
