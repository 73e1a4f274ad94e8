"""
services/exam_loader.py

시험 정의를 불러오고 응시 가능 여부(상태, 기간, 응시 횟수)를 확인한다.
여기서 나는 오류는 세션 시작 전에 확정되며 자동 재시도하지 않는다.
"""

import logging
from datetime import datetime

from timed_exam.errors import ExamUnavailable, MaxAttemptsReached
from timed_exam.models.exam_model import ExamDefinition
from timed_exam.services.gateways import ContentService

logger = logging.getLogger(__name__)


def check_available(exam: ExamDefinition, now: datetime) -> None:
    """
    응시 가능 여부 확인.

    Raises:
        ExamUnavailable:    status가 active가 아니거나 now가 응시 기간 밖일 때.
        MaxAttemptsReached: 응시 횟수를 모두 사용했을 때.
    """
    if not exam.is_open_at(now):
        raise ExamUnavailable(
            f"현재 응시할 수 없는 시험입니다: {exam.id} "
            f"(status={exam.status.value}, 기간={exam.availability.start.isoformat()}~"
            f"{exam.availability.end.isoformat()})"
        )
    if exam.attempts.exhausted:
        raise MaxAttemptsReached(exam.id, exam.attempts.max)


def load_exam(content: ContentService, exam_id: str, now: datetime) -> ExamDefinition:
    """콘텐츠 서비스에서 시험을 가져와 응시 가능 여부까지 확인한다."""
    exam = content.get_exam(exam_id)
    try:
        check_available(exam, now)
    except ExamUnavailable as e:
        logger.warning(f"시험 로드 거부: {e}")
        raise
    logger.info(f"시험 로드 완료: {exam.id} '{exam.title}' ({exam.total_questions}문항)")
    return exam
