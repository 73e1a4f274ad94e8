"""
api/sample_exams.py — 기본 제공 샘플 시험

서버 기동 시점 기준으로 응시 가능 기간을 잡아 바로 응시할 수 있게 한다.
"""

from datetime import datetime, timedelta, timezone

from timed_exam.models.exam_model import (
    AttemptQuota, AvailabilityWindow, ExamDefinition, ExamStatus,
)
from timed_exam.models.question_model import Question, QuestionType
from timed_exam.services.gateways import InMemoryExamCatalog

SAMPLE_QUESTIONS = [
    Question(
        id="q-geo-1",
        text="대한민국의 수도는?",
        type=QuestionType.MULTIPLE_CHOICE,
        options=["부산", "서울", "대전", "광주"],
        correct_answer="서울",
    ),
    Question(
        id="q-sci-1",
        text="물의 화학식을 쓰시오.",
        type=QuestionType.FILL_IN_BLANK,
        correct_answer="H2O",
    ),
    Question(
        id="q-sci-2",
        text="빛은 진공에서 소리보다 빠르다.",
        type=QuestionType.TRUE_FALSE,
        correct_answer="true",
    ),
    Question(
        id="q-math-1",
        text="7 × 8 = ?",
        type=QuestionType.SHORT_ANSWER,
        correct_answer="56",
    ),
    Question(
        id="q-lit-1",
        text="가장 좋아하는 책과 그 이유를 서술하시오.",
        type=QuestionType.DESCRIPTIVE,
        points=20,
    ),
]


def build_sample_catalog(now: datetime | None = None) -> InMemoryExamCatalog:
    now = now or datetime.now(timezone.utc)
    return InMemoryExamCatalog([
        ExamDefinition(
            id="sample",
            title="샘플 종합 평가",
            subject="종합",
            class_name="공통",
            questions=SAMPLE_QUESTIONS,
            duration=10,
            attempts=AttemptQuota(current=0, max=3),
            availability=AvailabilityWindow(start=now - timedelta(days=1), end=now + timedelta(days=30)),
            status=ExamStatus.ACTIVE,
        ),
    ])
