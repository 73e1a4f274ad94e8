from __future__ import annotations

from conftest import NOW, mcq, open_question
from timed_exam.models.attempt_model import QuestionTiming, Rating, SubmitTrigger
from timed_exam.models.question_model import Question, QuestionType
from timed_exam.models.session_state import TimePressure
from timed_exam.services import exam_service


def test_is_correct_per_type():
    assert exam_service.is_correct(mcq("q", answer="B"), "B")
    assert not exam_service.is_correct(mcq("q", answer="B"), "b")
    multi = Question(id="m", text="t", options=["A", "B", "C"], correct_answer=["A", "C"])
    assert exam_service.is_correct(multi, "C")
    assert exam_service.is_correct(open_question("f", answer="H2O"), "h2o")
    assert exam_service.is_correct(open_question("s", QuestionType.SHORT_ANSWER, answer="Seoul"), "SEOUL")
    assert not exam_service.is_correct(open_question("t", QuestionType.TRUE_FALSE, answer="true"), "True")
    assert not exam_service.is_correct(open_question("d", QuestionType.DESCRIPTIVE, answer="essay"), "essay")
    assert not exam_service.is_correct(mcq("q"), None)


def test_calculate_score_uses_points_over_all_questions():
    questions = [mcq("q1"), mcq("q2"), open_question("q3", points=20)]
    summary = exam_service.calculate_score(questions, {0: "A", 2: "X"})

    assert summary.score == 30
    assert summary.total_points == 40
    assert summary.percentage == 75
    assert summary.rating == Rating.GOOD
    assert summary.correct_count == 2
    assert summary.answered_count == 2
    assert summary.unanswered_count == 1


def test_calculate_score_with_zero_points():
    summary = exam_service.calculate_score([mcq("q1", points=0)], {0: "A"})
    assert summary.percentage == 0
    assert summary.rating == Rating.NEEDS_IMPROVEMENT


def test_rating_thresholds():
    assert exam_service.rate(90) == Rating.EXCELLENT
    assert exam_service.rate(89) == Rating.GOOD
    assert exam_service.rate(75) == Rating.GOOD
    assert exam_service.rate(60) == Rating.SATISFACTORY
    assert exam_service.rate(59) == Rating.NEEDS_IMPROVEMENT


def test_incorrect_questions_skip_descriptive():
    questions = [mcq("q1"), open_question("q2", QuestionType.DESCRIPTIVE), mcq("q3")]
    assert exam_service.get_incorrect_questions(questions, {0: "A"}) == [2]


def test_type_scores_bucket_by_type():
    questions = [mcq("q1"), mcq("q2"), open_question("q3")]
    rows = exam_service.calculate_type_scores(questions, {0: "A", 1: "B"})

    assert rows == [
        {"type": "fill-in-blank", "total": 1, "correct": 0, "incorrect": 0, "unanswered": 1, "percentage": 0.0},
        {"type": "multiple-choice", "total": 2, "correct": 1, "incorrect": 1, "unanswered": 0, "percentage": 50.0},
    ]


def test_time_spent_is_clamped():
    assert exam_service.calculate_time_spent(90, 30) == 60
    assert exam_service.calculate_time_spent(90, 120) == 0
    assert exam_service.calculate_time_spent(90, 0) == 90


def test_build_payload_keeps_answers_as_recorded():
    questions = [mcq("q1"), open_question("q2"), mcq("q3")]
    timings = [QuestionTiming(question_id="q1", index=0, started_at_tick=0, ended_at_tick=4, time_spent_seconds=4)]
    payload = exam_service.build_payload(
        exam_id="exam-1",
        student_id="s1",
        attempt_number=2,
        questions=questions,
        answers={0: "A", 2: "D"},
        total_allowance=70,
        total_time_left=50,
        question_timings=timings,
        trigger=SubmitTrigger.USER,
        submitted_at=NOW,
    )

    assert payload.submission_key == "exam-1:s1:2"
    assert payload.answers == {0: "A", 2: "D"}
    assert 1 not in payload.answers
    assert [g.index for g in payload.graded_answers] == [0, 2]
    assert payload.time_spent_seconds == 20
    assert payload.score.percentage == 33
    assert payload.question_timings[0].time_spent_seconds == 4


def test_format_clock_and_pressure():
    assert exam_service.format_clock(75) == "01:15"
    assert exam_service.format_clock(-3) == "00:00"
    assert exam_service.time_pressure(60, 100) == TimePressure.NORMAL
    assert exam_service.time_pressure(50, 100) == TimePressure.WARNING
    assert exam_service.time_pressure(25, 100) == TimePressure.CRITICAL
    assert exam_service.time_pressure(0, 0) == TimePressure.NORMAL
