"""
models/attempt_model.py

제출 페이로드와 제출 완료된 응시(Attempt) 모델.
제출 시점에 한 번 만들어지고 이후 변경되지 않는다.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class Rating(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    SATISFACTORY = "Satisfactory"
    NEEDS_IMPROVEMENT = "Needs Improvement"


class SubmitTrigger(str, Enum):
    """제출을 일으킨 원인."""
    USER = "user"
    LAST_QUESTION = "last_question"
    QUESTION_TIMER = "question_timer"
    EXAM_TIMER = "exam_timer"


class QuestionTiming(BaseModel):
    """문제별 체류 시간 기록. tick 값은 시험 시작 이후 경과 초."""
    question_id: str
    index: int = Field(ge=0)
    started_at_tick: int = Field(ge=0)
    ended_at_tick: Optional[int] = None
    time_spent_seconds: int = Field(default=0, ge=0)


class GradedAnswer(BaseModel):
    question_id: str
    index: int = Field(ge=0)
    answer: str
    is_correct: bool
    points: int = Field(default=0, ge=0, description="획득 점수")


class ScoreSummary(BaseModel):
    """
    즉시 피드백용 참고 점수.
    최종 결과는 외부 제출 저장소가 결정한다.
    """
    score: int = Field(default=0, ge=0, description="획득 점수 합계")
    total_points: int = Field(default=0, ge=0)
    percentage: int = Field(default=0, ge=0, le=100)
    rating: Rating = Rating.NEEDS_IMPROVEMENT
    correct_count: int = 0
    answered_count: int = 0
    unanswered_count: int = 0

    model_config = {"frozen": True}


class SubmissionPayload(BaseModel):
    """
    제출 저장소로 넘기는 페이로드.
    재시도 시에도 처음 만든 것을 그대로 재사용한다 (frozen).
    """
    exam_id: str
    student_id: str
    attempt_number: int = Field(ge=1)
    submission_key: str = Field(..., description="exam_id:student_id:attempt_number 멱등성 키")
    answers: Dict[int, str] = Field(default_factory=dict, description="문제 인덱스 → 답안. 건너뛴 문제는 키 없음")
    graded_answers: List[GradedAnswer] = Field(default_factory=list)
    time_spent_seconds: int = Field(ge=0)
    question_timings: List[QuestionTiming] = Field(default_factory=list)
    score: ScoreSummary
    trigger: SubmitTrigger
    submitted_at: datetime

    model_config = {"frozen": True}


class Attempt(BaseModel):
    """제출 성공 후 생성되는 응시 결과."""
    attempt_id: str
    exam_id: str
    answers: Dict[int, str] = Field(default_factory=dict)
    time_spent_seconds: int = Field(ge=0)
    submitted_at: datetime
    score: ScoreSummary

    model_config = {"frozen": True}

    @classmethod
    def from_payload(cls, attempt_id: str, payload: SubmissionPayload) -> "Attempt":
        return cls(
            attempt_id=attempt_id,
            exam_id=payload.exam_id,
            answers=dict(payload.answers),
            time_spent_seconds=payload.time_spent_seconds,
            submitted_at=payload.submitted_at,
            score=payload.score,
        )
