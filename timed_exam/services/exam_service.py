"""
services/exam_service.py

채점 및 제출 페이로드 구성 비즈니스 로직.
순수 Python 함수로 구성 — 세션 상태 변경 없음.
여기서 계산하는 점수는 즉시 피드백용 참고값이며, 최종 결과는 제출 저장소가 정한다.
"""

from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from timed_exam.models.attempt_model import (
    GradedAnswer, QuestionTiming, Rating, ScoreSummary, SubmissionPayload, SubmitTrigger,
)
from timed_exam.models.question_model import Question, QuestionType
from timed_exam.models.session_state import TimePressure

_RATING_THRESHOLDS = (
    (90, Rating.EXCELLENT),
    (75, Rating.GOOD),
    (60, Rating.SATISFACTORY),
)


def is_correct(question: Question, answer: Optional[str]) -> bool:
    """
    유형별 정답 판정.

    - 객관식: 정답과 일치 (정답이 리스트면 포함 여부)
    - 참/거짓: 정확히 일치
    - 단답형/빈칸 채우기: 대소문자 무시 비교
    - 서술형: 자동 채점하지 않음 (항상 False)
    """
    if answer is None:
        return False
    expected = question.correct_answer

    if question.type == QuestionType.MULTIPLE_CHOICE:
        if isinstance(expected, list):
            return answer in expected
        return answer == expected
    if question.type == QuestionType.TRUE_FALSE:
        return answer == expected
    if question.type in (QuestionType.SHORT_ANSWER, QuestionType.FILL_IN_BLANK):
        return str(expected).lower() == str(answer).lower()
    return False


def grade_answers(
    questions: List[Question],
    answers: Dict[int, str],
) -> List[GradedAnswer]:
    """답한 문제만 채점 결과로 변환한다. 인덱스 순서 유지."""
    graded: List[GradedAnswer] = []
    for index in sorted(answers):
        if not (0 <= index < len(questions)):
            continue
        q = questions[index]
        correct = is_correct(q, answers[index])
        graded.append(GradedAnswer(
            question_id=q.id,
            index=index,
            answer=answers[index],
            is_correct=correct,
            points=q.points if correct else 0,
        ))
    return graded


def rate(percentage: float) -> Rating:
    for threshold, rating in _RATING_THRESHOLDS:
        if percentage >= threshold:
            return rating
    return Rating.NEEDS_IMPROVEMENT


def calculate_score(
    questions: List[Question],
    answers: Dict[int, str],
) -> ScoreSummary:
    """
    사용자 답안을 채점하여 참고 점수를 반환한다.

    percentage는 전체 배점 대비 획득 점수 비율 (반올림 정수).
    응답하지 않은 문제는 0점. 전체 배점이 0이면 0%.
    """
    graded = grade_answers(questions, answers)
    score = sum(g.points for g in graded)
    total_points = sum(q.points for q in questions)
    percentage = round(score / total_points * 100) if total_points else 0

    return ScoreSummary(
        score=score,
        total_points=total_points,
        percentage=percentage,
        rating=rate(percentage),
        correct_count=sum(1 for g in graded if g.is_correct),
        answered_count=len(graded),
        unanswered_count=len(questions) - len(graded),
    )


def get_incorrect_questions(
    questions: List[Question],
    answers: Dict[int, str],
) -> List[int]:
    """
    오답 문제 인덱스 리스트를 반환한다 (오답 노트용).
    미응답 포함, 서술형은 자동 채점 대상이 아니므로 제외.
    """
    return [
        i for i, q in enumerate(questions)
        if q.type != QuestionType.DESCRIPTIVE and not is_correct(q, answers.get(i))
    ]


def calculate_type_scores(
    questions: List[Question],
    answers: Dict[int, str],
) -> List[Dict[str, object]]:
    """
    문제 유형별 점수를 계산하여 반환한다.

    Returns:
        [{"type": str, "total": int, "correct": int,
          "incorrect": int, "unanswered": int, "percentage": float}, ...]
        유형명 기준 정렬.
    """
    buckets: Dict[str, Dict[str, int]] = defaultdict(
        lambda: {"total": 0, "correct": 0, "incorrect": 0, "unanswered": 0}
    )

    for i, q in enumerate(questions):
        b = buckets[q.type.value]
        b["total"] += 1
        user_ans = answers.get(i)
        if user_ans is None:
            b["unanswered"] += 1
        elif is_correct(q, user_ans):
            b["correct"] += 1
        else:
            b["incorrect"] += 1

    result = []
    for qtype in sorted(buckets):
        b = buckets[qtype]
        percentage = round(b["correct"] / b["total"] * 100, 1) if b["total"] else 0.0
        result.append({"type": qtype, **b, "percentage": percentage})
    return result


def calculate_time_spent(total_allowance: int, total_time_left: int) -> int:
    """사용 시간 = 전체 제한 시간 − 남은 시간. 0 ~ total_allowance 범위로 보정."""
    return max(0, min(total_allowance, total_allowance - total_time_left))


def build_payload(
    *,
    exam_id: str,
    student_id: str,
    attempt_number: int,
    questions: List[Question],
    answers: Dict[int, str],
    total_allowance: int,
    total_time_left: int,
    question_timings: List[QuestionTiming],
    trigger: SubmitTrigger,
    submitted_at: datetime,
) -> SubmissionPayload:
    """
    제출 페이로드를 구성한다.
    answers는 기록된 그대로 담는다 (건너뛴 문제는 키 없음).
    """
    return SubmissionPayload(
        exam_id=exam_id,
        student_id=student_id,
        attempt_number=attempt_number,
        submission_key=f"{exam_id}:{student_id}:{attempt_number}",
        answers=dict(answers),
        graded_answers=grade_answers(questions, answers),
        time_spent_seconds=calculate_time_spent(total_allowance, total_time_left),
        question_timings=[t.model_copy() for t in question_timings],
        score=calculate_score(questions, answers),
        trigger=trigger,
        submitted_at=submitted_at,
    )


# ── 화면 표시용 헬퍼 ─────────────────────────────────────────────────────────

def format_clock(seconds: int) -> str:
    """남은 초를 MM:SS 문자열로."""
    seconds = max(0, seconds)
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def time_pressure(left: int, total: int) -> TimePressure:
    """남은 비율 50% 초과 normal, 25% 초과 warning, 그 이하 critical."""
    if total <= 0:
        return TimePressure.NORMAL
    percent_left = left / total * 100
    if percent_left > 50:
        return TimePressure.NORMAL
    if percent_left > 25:
        return TimePressure.WARNING
    return TimePressure.CRITICAL
