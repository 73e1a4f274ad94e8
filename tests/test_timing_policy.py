from __future__ import annotations

from conftest import mcq, open_question
from timed_exam.models.question_model import QuestionType
from timed_exam.services import timing_policy


def test_base_time_by_type():
    assert timing_policy.base_time(QuestionType.MULTIPLE_CHOICE) == 30
    for qtype in (QuestionType.FILL_IN_BLANK, QuestionType.TRUE_FALSE,
                  QuestionType.SHORT_ANSWER, QuestionType.DESCRIPTIVE):
        assert timing_policy.base_time(qtype) == 10


def test_reduction_never_applies_to_multiple_choice():
    assert timing_policy.allowance(mcq("q1"), 5) == 30


def test_reduction_shortens_open_questions_with_floor():
    q = open_question("q1")
    assert timing_policy.allowance(q, 0) == 10
    assert timing_policy.allowance(q, 3) == 7
    assert timing_policy.allowance(q, 5) == 5
    assert timing_policy.allowance(q, 9) == 5


def test_custom_time_wins_over_reduction():
    assert timing_policy.allowance(open_question("q1", time=45), 5) == 45
    assert timing_policy.allowance(mcq("q2", time=12), 0) == 12


def test_total_allowance_sums_questions():
    questions = [mcq("q1"), mcq("q2"), mcq("q3")]
    assert timing_policy.total_allowance(questions, 60) == 90


def test_total_allowance_falls_back_to_duration_without_questions():
    assert timing_policy.total_allowance([], 15) == 900


def test_next_reduction_rules():
    fib = open_question("q1")
    assert timing_policy.next_reduction(0, fib, answered=False) == 1
    assert timing_policy.next_reduction(0, fib, answered=True) == 0
    assert timing_policy.next_reduction(0, mcq("q2"), answered=False) == 0
    assert timing_policy.next_reduction(5, fib, answered=False) == 5
