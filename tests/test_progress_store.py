"""
Tests for the per-user progress store and its SQLite backend
"""

import os
import tempfile
import threading

import pytest

from src.core.database.database_manager import DatabaseManager
from src.core.database.models import PreferenceKey, ValueKind
from src.core.database.repositories.preference_repository import (
    decode_value,
    encode_value,
    infer_kind,
)
from src.core.locks.user_lock_manager import UserLockManager
from src.progress_store import ProgressStore, require_difficulty, require_study_type
from src.spaced_repetition import ReviewScheduler


class TestValueEncoding:
    """Test kind inference and text encoding of stored values"""

    def test_infer_kind(self):
        """Test that bool is not mistaken for int"""
        assert infer_kind(True) == ValueKind.BOOL
        assert infer_kind(3) == ValueKind.INT
        assert infer_kind(0.5) == ValueKind.FLOAT
        assert infer_kind("猫") == ValueKind.STRING
        assert infer_kind({"a"}) == ValueKind.STRING_SET

    def test_infer_kind_rejects_unsupported(self):
        """Test unsupported values raise TypeError"""
        with pytest.raises(TypeError):
            infer_kind([1, 2])

    def test_string_set_encoding_is_sorted(self):
        """Test sets encode deterministically"""
        assert encode_value(ValueKind.STRING_SET, {"b", "a"}) == '["a", "b"]'
        assert decode_value("string_set", '["a", "b"]') == {"a", "b"}

    def test_long_and_bool_decoding(self):
        """Test long and bool values decode to Python types"""
        assert decode_value("long", encode_value(ValueKind.LONG, 2592000000)) == 2592000000
        assert decode_value("bool", encode_value(ValueKind.BOOL, False)) is False


class TestProgressStore:
    """Test the user-scoped key-value store"""

    @pytest.fixture
    def db_manager(self):
        """Database manager on a private in-memory database"""
        db_mgr = DatabaseManager(":memory:")
        db_mgr.init_database()
        db_mgr.set_current_user("alice")
        yield db_mgr
        db_mgr.close()

    @pytest.fixture
    def store(self, db_manager):
        return ProgressStore(db_manager)

    def test_missing_keys_resolve_to_defaults(self, store):
        """Test absence is never an error"""
        assert store.get("nothing") is None
        assert store.get("nothing", 7) == 7
        assert store.get_int("word_progress") == 0
        assert store.get_long("word_learning_time") == 0
        assert store.get_float("word_learning_progress") == 0.0
        assert store.get_bool("badge_streak_7") is False
        assert store.get_string_set("review_list") == set()
        assert store.get_string("current_word") is None

    def test_typed_round_trip(self, store):
        """Test every supported kind survives a write"""
        store.set_string("current_word", "猫")
        store.set_int("word_progress", 4)
        store.set_long("last_learning_day", 1715299200000)
        store.set_float("word_learning_progress", 0.25)
        store.set_bool("badge_streak_7", True)
        store.set_string_set("word_favorites", {"猫", "犬"})

        assert store.get_string("current_word") == "猫"
        assert store.get_int("word_progress") == 4
        assert store.get_long("last_learning_day") == 1715299200000
        assert store.get_float("word_learning_progress") == 0.25
        assert store.get_bool("badge_streak_7") is True
        assert store.get_string_set("word_favorites") == {"猫", "犬"}

    def test_set_overwrites(self, store):
        """Test a second write replaces the first"""
        store.set("word_progress", 1)
        store.set("word_progress", 2)
        assert store.get("word_progress") == 2

    def test_get_all(self, store):
        """Test get_all returns logical keys without user prefix"""
        store.set_int("word_progress", 3)
        store.set_bool("badge_streak_7", True)

        assert store.get_all() == {"badge_streak_7": True, "word_progress": 3}

    def test_items_with_prefix(self, store):
        """Test prefix scan strips the prefix"""
        store.set_long("word_review_schedule_猫", 10)
        store.set_long("word_review_schedule_犬", 20)
        store.set_long("word_review_interval_猫", 30)
        store.set_long("grammar_review_schedule_は", 40)

        assert store.items_with_prefix("word_review_schedule_") == {"猫": 10, "犬": 20}

    def test_prefix_scan_treats_wildcards_literally(self, store):
        """Test % and _ in keys are not pattern characters"""
        store.set_int("word_correct_rate_a%b", 1)
        store.set_int("wordXcorrect_rate_zz", 2)

        assert store.items_with_prefix("word_correct_rate_") == {"a%b": 1}

    def test_remove_and_contains(self, store):
        """Test removing a key"""
        store.set_int("mistake_count_q1", 2)
        assert store.contains("mistake_count_q1")
        assert store.remove("mistake_count_q1") is True
        assert not store.contains("mistake_count_q1")
        assert store.remove("mistake_count_q1") is False

    def test_wrong_kind_reads_default(self, store):
        """Test typed getters fall back to defaults on kind mismatch"""
        store.set_string("word_progress", "not a number")
        assert store.get_int("word_progress", 5) == 5
        store.set_bool("flag", True)
        assert store.get_int("flag") == 0

    def test_users_are_isolated(self, store, db_manager):
        """Test switching users switches all visible state"""
        store.set_int("learning_streak", 5)
        store.set_string_set("review_list", {"easy_1"})

        db_manager.set_current_user("bob")
        assert store.user_id == "bob"
        assert store.get_int("learning_streak") == 0
        assert store.get_string_set("review_list") == set()
        store.set_int("learning_streak", 1)

        db_manager.set_current_user("alice")
        assert store.get_int("learning_streak") == 5
        assert store.get_string_set("review_list") == {"easy_1"}

    def test_composite_key_has_no_prefix_collisions(self, db_manager):
        """Test users whose ids share a prefix never see each other's keys"""
        db_manager.put_preference("a", "b_word_progress", 1)
        db_manager.put_preference("a_b", "word_progress", 2)

        assert db_manager.get_all_preferences("a") == {"b_word_progress": 1}
        assert db_manager.get_all_preferences("a_b") == {"word_progress": 2}
        assert db_manager.preference_repo.get(PreferenceKey("a_b", "word_progress")) == (
            "int",
            2,
        )

    def test_explicit_user_resolver(self, db_manager):
        """Test a store can be bound to a synthetic user"""
        carol = ProgressStore(db_manager, user_resolver=lambda: "carol")
        carol.set_int("learning_streak", 9)

        assert db_manager.get_all_preferences("carol") == {"learning_streak": 9}
        assert db_manager.get_all_preferences("alice") == {}

    def test_default_user_is_empty(self):
        """Test the current user is empty before anyone signs in"""
        db_mgr = DatabaseManager(":memory:")
        db_mgr.init_database()
        assert ProgressStore(db_mgr).user_id == ""
        db_mgr.close()


class TestFileBackedStore:
    """Test persistence on a database file"""

    @pytest.fixture
    def db_path(self):
        temp_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
        temp_file.close()
        yield temp_file.name
        for suffix in ("", "-wal", "-shm"):
            if os.path.exists(temp_file.name + suffix):
                os.unlink(temp_file.name + suffix)

    def test_values_survive_reopen(self, db_path):
        """Test writes are durable across manager instances"""
        first = DatabaseManager(db_path)
        first.init_database()
        first.set_current_user("alice")
        ProgressStore(first).set_long("word_learning_time", 60000)

        second = DatabaseManager(db_path)
        second.init_database()
        assert second.get_current_user() == "alice"
        assert ProgressStore(second).get_long("word_learning_time") == 60000

    def test_sqlite_url_is_accepted(self, db_path):
        """Test sqlite:/// URLs resolve to the file path"""
        db_mgr = DatabaseManager(f"sqlite:///{db_path}")
        assert db_mgr.db_connection.db_path == db_path


class TestTypeValidation:
    """Test study type and difficulty validation"""

    def test_study_types(self):
        assert require_study_type("word") == "word"
        assert require_study_type("grammar") == "grammar"
        with pytest.raises(ValueError):
            require_study_type("quiz")

    def test_difficulties(self):
        assert require_difficulty("easy") == "easy"
        with pytest.raises(ValueError):
            require_difficulty("medium")


class TestLockedUserPinning:
    """Test a locked block stays on the user it locked"""

    @pytest.fixture
    def db_manager(self):
        db_mgr = DatabaseManager(":memory:")
        db_mgr.init_database()
        db_mgr.set_current_user("alice")
        yield db_mgr
        db_mgr.close()

    def test_user_switch_inside_block(self, db_manager):
        """Test writes after a mid-block user switch land on the locked user"""
        store = ProgressStore(db_manager)

        with store.locked("record_outcome") as user_id:
            db_manager.set_current_user("bob")
            store.set_int("learning_streak", store.get_int("learning_streak") + 1)
            with store.locked("nested"):
                store.set_int("word_progress", 2)
            assert store.user_id == "alice"

        assert user_id == "alice"
        assert db_manager.get_all_preferences("alice") == {"learning_streak": 1, "word_progress": 2}
        assert db_manager.get_all_preferences("bob") == {}
        assert store.user_id == "bob"

    def test_other_users_lock_not_bypassed(self, db_manager):
        """Test a sequence never writes to a user whose lock another thread holds"""
        lock_manager = UserLockManager()
        names = iter(["alice"])
        store = ProgressStore(db_manager, lock_manager, user_resolver=lambda: next(names, "bob"))
        scheduler = ReviewScheduler(store)
        held = threading.Event()
        release = threading.Event()

        def hold_bob():
            with lock_manager.hold("bob", "holder"):
                held.set()
                release.wait(5)

        holder = threading.Thread(target=hold_bob)
        holder.start()
        held.wait(5)
        try:
            assert scheduler.record_mistake("easy_1") == 1
        finally:
            release.set()
            holder.join()

        assert db_manager.get_preference("alice", "mistake_count_easy_1") == ("int", 1)
        assert db_manager.get_preference("bob", "mistake_count_easy_1") is None

    def test_pinning_is_per_thread(self, db_manager):
        store = ProgressStore(db_manager)
        seen = []

        with store.locked("op"):
            db_manager.set_current_user("bob")
            worker = threading.Thread(target=lambda: seen.append(store.user_id))
            worker.start()
            worker.join()

        assert seen == ["bob"]
