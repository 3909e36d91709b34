"""Tests for the quiz session orchestrator."""

import math
from datetime import timedelta
from unittest.mock import patch

import pytest
import yaml

from vocabdrill.config.app_config import CONFIG_FILE, clear_config_cache
from vocabdrill.core.errors import EmptyQuizPoolError, NotFoundError, QuizValidationError
from vocabdrill.core.quiz_session import QuizAnswer, begin_quiz, submit_quiz
from vocabdrill.core.scheduler import apply_result as real_apply_result
from vocabdrill.db.progress_repository import get_progress
from vocabdrill.db.session_repository import get_session, list_answer_records, list_sessions


def _write_config(data):
    """Write a config file into the (chdir'ed) test directory."""
    CONFIG_FILE.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(yaml.safe_dump(data), encoding="utf-8")
    clear_config_cache()


class TestBeginQuiz:
    """Tests for begin_quiz."""

    def test_returns_due_items(self, user, make_item, now):
        """The question set is the scheduler's due selection."""
        make_item("apple")
        make_item("pear")

        items = begin_quiz(user.user_id, now=now)

        assert {i.word for i in items} == {"apple", "pear"}

    def test_default_limit_is_ten(self, user, make_item, now):
        """Without a limit, at most 10 questions are served."""
        for i in range(15):
            make_item(f"w{i}")

        assert len(begin_quiz(user.user_id, now=now)) == 10

    def test_limit_from_config(self, user, make_item, now):
        """quiz.question_limit changes the default size."""
        _write_config({"quiz": {"question_limit": 3}})
        for i in range(5):
            make_item(f"w{i}")

        assert len(begin_quiz(user.user_id, now=now)) == 3

    def test_empty_pool(self, user, now):
        """No vocabulary raises the recoverable EmptyQuizPoolError."""
        with pytest.raises(EmptyQuizPoolError) as exc_info:
            begin_quiz(user.user_id, now=now)

        assert "add vocabulary" in str(exc_info.value).lower()

    def test_unknown_user(self, db_path):
        """A missing user is NotFound, not an empty pool."""
        with pytest.raises(NotFoundError):
            begin_quiz("ghost")


class TestSubmitQuiz:
    """Tests for submit_quiz."""

    def test_first_quiz_scenario(self, user, make_item, now):
        """One correct answer on a new item creates level 2, 1/1, +1 day."""
        item = make_item("apple")

        session_id = submit_quiz(
            user.user_id,
            [QuizAnswer(item.item_id, "  Apple ", 4)],
            total_time_spent=4,
            now=now,
        )

        session = get_session(session_id)
        assert session.score == 1
        assert session.total_questions == 1
        assert session.time_spent == 4
        assert session.completed_at == now

        record = get_progress(user.user_id, item.item_id)
        assert record.level == 2
        assert record.correct_count == 1
        assert record.total_count == 1
        assert record.next_review == now + timedelta(days=1)

    def test_grades_server_side(self, user, make_item, now):
        """Score and answer records come from the grader, not the client."""
        apple = make_item("apple")
        pear = make_item("pear")

        session_id = submit_quiz(
            user.user_id,
            [
                QuizAnswer(apple.item_id, "APPLE", 3),
                QuizAnswer(pear.item_id, "Pear!", 5),
            ],
            total_time_spent=9,
            now=now,
        )

        records = list_answer_records(session_id)
        assert [r.correct for r in records] == [True, False]
        assert [r.submitted_text for r in records] == ["APPLE", "Pear!"]
        assert get_session(session_id).score == 1
        assert get_progress(user.user_id, pear.item_id).level == 1

    def test_returns_session_id(self, user, make_item, now):
        """The returned id is the stored session."""
        item = make_item("apple")

        session_id = submit_quiz(user.user_id, [QuizAnswer(item.item_id, "x")], 1, now=now)

        assert [s.session_id for s in list_sessions(user.user_id)] == [session_id]

    def test_fractional_times_rounded(self, user, make_item, now):
        """Durations are stored in whole seconds."""
        item = make_item("apple")

        session_id = submit_quiz(
            user.user_id, [QuizAnswer(item.item_id, "apple", 2.6)], 7.4, now=now
        )

        assert get_session(session_id).time_spent == 7
        assert list_answer_records(session_id)[0].time_taken == 3

    def test_duplicate_items_compound(self, user, make_item, now):
        """The same item twice gets two sequential transitions."""
        item = make_item("apple")

        submit_quiz(
            user.user_id,
            [QuizAnswer(item.item_id, "apple"), QuizAnswer(item.item_id, "apple")],
            10,
            now=now,
        )

        record = get_progress(user.user_id, item.item_id)
        assert record.level == 3
        assert record.correct_count == 2
        assert record.total_count == 2
        assert record.next_review == now + timedelta(days=7)

    def test_duplicate_items_rejected_when_configured(self, user, make_item, now):
        """reject_duplicate_items turns repeats into a validation error."""
        _write_config({"quiz": {"reject_duplicate_items": True}})
        item = make_item("apple")

        with pytest.raises(QuizValidationError):
            submit_quiz(
                user.user_id,
                [QuizAnswer(item.item_id, "apple"), QuizAnswer(item.item_id, "apple")],
                10,
                now=now,
            )

        assert list_sessions(user.user_id) == []
        assert get_progress(user.user_id, item.item_id) is None


class TestSubmitValidation:
    """Tests for rejected submissions: nothing is written."""

    def _assert_untouched(self, user, item):
        assert list_sessions(user.user_id) == []
        assert get_progress(user.user_id, item.item_id) is None

    def test_empty_answers(self, user, make_item):
        """At least one answer is required."""
        item = make_item("apple")
        with pytest.raises(QuizValidationError):
            submit_quiz(user.user_id, [], 0)
        self._assert_untouched(user, item)

    def test_negative_total_time(self, user, make_item):
        """Negative quiz duration is rejected."""
        item = make_item("apple")
        with pytest.raises(QuizValidationError) as exc_info:
            submit_quiz(user.user_id, [QuizAnswer(item.item_id, "apple")], -1)
        assert exc_info.value.field == "total_time_spent"
        self._assert_untouched(user, item)

    def test_negative_answer_time(self, user, make_item):
        """Negative per-question time is rejected."""
        item = make_item("apple")
        with pytest.raises(QuizValidationError) as exc_info:
            submit_quiz(user.user_id, [QuizAnswer(item.item_id, "apple", -3)], 5)
        assert exc_info.value.field == "time_taken"
        self._assert_untouched(user, item)

    @pytest.mark.parametrize("bad_seconds", [math.nan, math.inf, -math.inf])
    @pytest.mark.parametrize("field", ["total_time_spent", "time_taken"])
    def test_non_finite_time(self, user, make_item, field, bad_seconds):
        """NaN and infinite durations are rejected as validation errors."""
        item = make_item("apple")
        if field == "total_time_spent":
            answers, total = [QuizAnswer(item.item_id, "apple", 1)], bad_seconds
        else:
            answers, total = [QuizAnswer(item.item_id, "apple", bad_seconds)], 5

        with pytest.raises(QuizValidationError) as exc_info:
            submit_quiz(user.user_id, answers, total)

        assert exc_info.value.field == field
        self._assert_untouched(user, item)

    def test_answer_count_mismatch(self, user, make_item):
        """expected_questions must match the number of answers."""
        item = make_item("apple")
        with pytest.raises(QuizValidationError):
            submit_quiz(
                user.user_id, [QuizAnswer(item.item_id, "apple")], 5, expected_questions=2
            )
        self._assert_untouched(user, item)

    def test_unknown_item_rejects_whole_batch(self, user, make_item):
        """One unknown id aborts the submission before any write."""
        item = make_item("apple")
        with pytest.raises(QuizValidationError):
            submit_quiz(
                user.user_id,
                [QuizAnswer(item.item_id, "apple"), QuizAnswer("missing", "x")],
                5,
            )
        self._assert_untouched(user, item)

    def test_foreign_item_rejected(self, user, other_user, make_item):
        """Items owned by another user are treated as unknown."""
        item = make_item("apple")
        with pytest.raises(QuizValidationError):
            submit_quiz(other_user.user_id, [QuizAnswer(item.item_id, "apple")], 5)
        assert list_sessions(other_user.user_id) == []

    def test_unknown_user(self, db_path):
        """A missing user is NotFound."""
        with pytest.raises(NotFoundError):
            submit_quiz("ghost", [QuizAnswer("x", "y")], 1)


class TestSubmitAtomicity:
    """A failure part-way leaves no session and no progress behind."""

    def test_progress_failure_rolls_back_session(self, user, make_item, now):
        """If a progress update fails, the session and answers are discarded."""
        apple = make_item("apple")
        pear = make_item("pear")

        calls = {"count": 0}

        def failing_apply(*args, **kwargs):
            calls["count"] += 1
            if calls["count"] == 2:
                raise RuntimeError("disk full")
            return real_apply_result(*args, **kwargs)

        with patch("vocabdrill.core.quiz_session.apply_result", side_effect=failing_apply):
            with pytest.raises(RuntimeError):
                submit_quiz(
                    user.user_id,
                    [QuizAnswer(apple.item_id, "apple"), QuizAnswer(pear.item_id, "pear")],
                    10,
                    now=now,
                )

        assert list_sessions(user.user_id) == []
        assert get_progress(user.user_id, apple.item_id) is None
        assert get_progress(user.user_id, pear.item_id) is None

    def test_session_failure_leaves_progress_untouched(self, user, make_item, now):
        """If recording answers fails, no progress is applied."""
        item = make_item("apple")

        with patch(
            "vocabdrill.core.quiz_session.create_answer_records",
            side_effect=RuntimeError("boom"),
        ):
            with pytest.raises(RuntimeError):
                submit_quiz(user.user_id, [QuizAnswer(item.item_id, "apple")], 3, now=now)

        assert list_sessions(user.user_id) == []
        assert get_progress(user.user_id, item.item_id) is None


class TestQuizCycle:
    """End-to-end begin/submit cycles."""

    def test_answered_items_leave_the_pool(self, user, make_item, now):
        """After a quiz, answered items are not due until their next review."""
        apple = make_item("apple")
        make_item("pear")

        submit_quiz(user.user_id, [QuizAnswer(apple.item_id, "apple")], 3, now=now)

        assert [i.word for i in begin_quiz(user.user_id, now=now)] == ["pear"]
        later = now + timedelta(days=1)
        assert {i.word for i in begin_quiz(user.user_id, now=later)} == {"apple", "pear"}

    def test_everything_scheduled_means_empty_pool(self, user, make_item, now):
        """Once every item is scheduled in the future, the pool is empty."""
        apple = make_item("apple")
        submit_quiz(user.user_id, [QuizAnswer(apple.item_id, "wrong")], 3, now=now)

        with pytest.raises(EmptyQuizPoolError):
            begin_quiz(user.user_id, now=now + timedelta(hours=1))
