"""
services/timing_policy.py

문제별 제한 시간 계산 (적응형 타이밍 정책).
순수 함수로 구성 — 세션 상태를 직접 바꾸지 않는다.
"""

from typing import List

from config import (
    DEFAULT_EXAM_MINUTES, MAX_ADAPTIVE_REDUCTION, MCQ_BASE_SECONDS,
    MIN_QUESTION_SECONDS, OPEN_BASE_SECONDS,
)
from timed_exam.models.question_model import Question, QuestionType


def base_time(question_type: QuestionType) -> int:
    """유형별 기본 시간: 객관식 30초, 그 외 10초."""
    if question_type == QuestionType.MULTIPLE_CHOICE:
        return MCQ_BASE_SECONDS
    return OPEN_BASE_SECONDS


def allowance(question: Question, reduction_seconds: int = 0) -> int:
    """
    문제에 주어지는 시간 (초).

    문제에 지정 시간(question.time)이 있으면 그대로 쓴다.
    없으면 유형별 기본 시간에서, 비객관식 문제에 한해 적응형 감소량을 뺀다 (최소 5초).
    """
    if question.time:
        return question.time
    reduction = 0 if question.is_multiple_choice else reduction_seconds
    return max(MIN_QUESTION_SECONDS, base_time(question.type) - reduction)


def total_allowance(questions: List[Question], duration_minutes: int = DEFAULT_EXAM_MINUTES) -> int:
    """
    시험 전체 제한 시간 (초).
    문제가 있으면 감소량 0 기준 문제별 시간의 합, 없으면 시험 시간(분) × 60.
    """
    if not questions:
        return duration_minutes * 60
    return sum(allowance(q, 0) for q in questions)


def next_reduction(current: int, question: Question, answered: bool) -> int:
    """
    문제를 떠날 때의 새 감소량.
    답하지 않은 비객관식 문제를 떠나면 1 증가 (상한 5), 그 외에는 그대로.
    """
    if question.is_multiple_choice or answered:
        return current
    return min(MAX_ADAPTIVE_REDUCTION, current + 1)
