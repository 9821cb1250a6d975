"""
Tests for loading the word, grammar and quiz catalogs
"""

import json
import random

import pytest

from src.content_loader import (
    ContentMissingError,
    ContentReadError,
    GrammarEntry,
    QuizQuestion,
    WordEntry,
    count_by_difficulty,
    load_grammars,
    load_quiz_questions,
    load_words,
    questions_by_difficulty,
)


def write_json(path, data):
    path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return path


class TestStudyContent:
    """Test word and grammar catalogs"""

    def test_load_words(self, tmp_path):
        path = write_json(
            tmp_path / "words.json",
            [{"word": "猫", "reading": "ねこ", "meaning": "cat"}],
        )

        assert load_words(path) == [WordEntry(word="猫", reading="ねこ", meaning="cat")]

    def test_load_grammars(self, tmp_path):
        path = write_json(
            tmp_path / "grammar.json",
            [{"grammar": "〜ている", "example": "本を読んでいる"}],
        )

        assert load_grammars(path) == [GrammarEntry(grammar="〜ている", example="本を読んでいる")]

    def test_missing_file_yields_empty_catalog(self, tmp_path):
        """Test unreadable study content is a recoverable empty result"""
        assert load_words(tmp_path / "absent.json") == []
        assert load_grammars(tmp_path / "absent.json") == []

    def test_empty_catalog_is_configuration_error(self, tmp_path):
        path = write_json(tmp_path / "words.json", [])
        with pytest.raises(ContentMissingError):
            load_words(path)

    def test_invalid_entry(self, tmp_path):
        path = write_json(tmp_path / "words.json", [{"word": "猫"}])
        with pytest.raises(ContentReadError):
            load_words(path)


class TestQuizContent:
    """Test the quiz catalog"""

    @pytest.fixture
    def quiz_data(self):
        return [
            {"questionText": "ねこ?", "options": ["cat", "dog"], "correctAnswerIndex": 0, "difficulty": "easy"},
            {"questionText": "いぬ?", "options": ["cat", "dog"], "correctAnswerIndex": 1, "difficulty": "easy"},
            {"questionText": "〜ている?", "options": ["-ing", "past"], "correctAnswerIndex": 0, "difficulty": "hard"},
        ]

    def test_ids_generated_from_position(self, tmp_path, quiz_data):
        """Test generated ids are difficulty plus 1-based file position"""
        questions = load_quiz_questions(write_json(tmp_path / "quiz.json", quiz_data))

        assert [q.id for q in questions] == ["easy_1", "easy_2", "hard_3"]
        assert questions[0].question_text == "ねこ?"
        assert questions[1].correct_answer_index == 1
        assert questions[1].is_correct(1)
        assert not questions[1].is_correct(0)

    def test_explicit_ids_kept(self, tmp_path, quiz_data):
        quiz_data[0]["id"] = "custom"
        questions = load_quiz_questions(write_json(tmp_path / "quiz.json", quiz_data))
        assert questions[0].id == "custom"

    def test_missing_quiz_file_fails_loudly(self, tmp_path):
        """Test quiz content never degrades to an empty list"""
        with pytest.raises(ContentReadError):
            load_quiz_questions(tmp_path / "absent.json")

    def test_empty_quiz_is_configuration_error(self, tmp_path):
        with pytest.raises(ContentMissingError):
            load_quiz_questions(write_json(tmp_path / "quiz.json", []))

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "quiz.json"
        path.write_text("[{", encoding="utf-8")
        with pytest.raises(ContentReadError):
            load_quiz_questions(path)

    def test_answer_index_out_of_range(self, tmp_path, quiz_data):
        quiz_data[0]["correctAnswerIndex"] = 5
        with pytest.raises(ContentReadError):
            load_quiz_questions(write_json(tmp_path / "quiz.json", quiz_data))

    def test_questions_by_difficulty(self):
        questions = [
            QuizQuestion(id=f"easy_{i}", question_text="q", options=["a"], correct_answer_index=0, difficulty="easy")
            for i in range(5)
        ] + [QuizQuestion(id="hard_6", question_text="q", options=["a"], correct_answer_index=0, difficulty="hard")]

        easy = questions_by_difficulty(questions, "easy", random.Random(1))

        assert sorted(q.id for q in easy) == [f"easy_{i}" for i in range(5)]
        assert count_by_difficulty(questions) == {"easy": 5, "hard": 1}
