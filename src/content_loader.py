"""
Loading of the static word, grammar and quiz catalogs
"""

import json
import logging
import random
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from .utils import log_execution_time

logger = logging.getLogger(__name__)


class ContentError(Exception):
    """Base class for content loading failures"""


class ContentReadError(ContentError):
    """The content source could not be read or parsed"""


class ContentMissingError(ContentError):
    """The content source was read but holds no items"""


class WordEntry(BaseModel):
    """Vocabulary flashcard"""

    word: str
    reading: str
    meaning: str


class GrammarEntry(BaseModel):
    """Grammar point flashcard"""

    grammar: str
    example: str


class QuizQuestion(BaseModel):
    """Multiple-choice quiz question"""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    question_text: str = Field(alias="questionText")
    options: list[str] = Field(min_length=1)
    correct_answer_index: int = Field(alias="correctAnswerIndex", ge=0)
    difficulty: str

    @model_validator(mode="after")
    def check_answer_index(self) -> "QuizQuestion":
        if self.correct_answer_index >= len(self.options):
            raise ValueError(
                f"correctAnswerIndex {self.correct_answer_index} out of range "
                f"for {len(self.options)} options"
            )
        return self

    def is_correct(self, answer_index: int) -> bool:
        return answer_index == self.correct_answer_index


def _read_json_array(path: Path) -> list[Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ContentReadError(f"Failed to read JSON file {path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ContentReadError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, list):
        raise ContentReadError(f"Expected a JSON array in {path}")
    return data


def _parse_entries(model: type[BaseModel], raw_items: list[Any], path: Path) -> list:
    try:
        return [model.model_validate(item) for item in raw_items]
    except ValidationError as e:
        raise ContentReadError(f"Invalid {model.__name__} in {path}: {e}") from e


def _load_optional_catalog(model: type[BaseModel], path: Path) -> list:
    try:
        raw_items = _read_json_array(path)
    except ContentReadError as e:
        # Study content is not critical: an unreadable file leaves the catalog empty
        logger.error(f"Could not load {model.__name__} catalog: {e}")
        return []

    entries = _parse_entries(model, raw_items, path)
    if not entries:
        raise ContentMissingError(f"No {model.__name__} items in {path}")
    logger.info(f"Loaded {len(entries)} {model.__name__} items from {path}")
    return entries


@log_execution_time
def load_words(path: str | Path) -> list[WordEntry]:
    """Load the vocabulary catalog; an unreadable file yields an empty list"""
    return _load_optional_catalog(WordEntry, Path(path))


@log_execution_time
def load_grammars(path: str | Path) -> list[GrammarEntry]:
    """Load the grammar catalog; an unreadable file yields an empty list"""
    return _load_optional_catalog(GrammarEntry, Path(path))


@log_execution_time
def load_quiz_questions(path: str | Path) -> list[QuizQuestion]:
    """
    Load the quiz catalog

    Questions without an id get "{difficulty}_{n}" with n counted from 1
    over the whole file.

    Raises:
        ContentReadError: the file is unreadable or malformed
        ContentMissingError: the file holds no questions
    """
    path = Path(path)
    raw_items = _read_json_array(path)

    prepared = []
    for position, item in enumerate(raw_items, start=1):
        if isinstance(item, dict) and "id" not in item:
            item = {**item, "id": f"{item.get('difficulty', 'unknown')}_{position}"}
        prepared.append(item)

    questions = _parse_entries(QuizQuestion, prepared, path)
    if not questions:
        raise ContentMissingError(f"No quiz questions in {path}")
    logger.info(f"Loaded {len(questions)} quiz questions from {path}")
    return questions


def questions_by_difficulty(
    questions: list[QuizQuestion], difficulty: str, rng: random.Random | None = None
) -> list[QuizQuestion]:
    """Questions of one difficulty in random order"""
    rng = rng or random.Random()
    selected = [q for q in questions if q.difficulty == difficulty]
    rng.shuffle(selected)
    return selected


def count_by_difficulty(questions: list[QuizQuestion]) -> dict[str, int]:
    """Number of questions per difficulty"""
    counts: dict[str, int] = {}
    for question in questions:
        counts[question.difficulty] = counts.get(question.difficulty, 0) + 1
    return counts
