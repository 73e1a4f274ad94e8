"""
services/gateways.py

세션 엔진이 호출하는 외부 협력자 인터페이스와 인메모리 구현.

  - ContentService : 시험 정의 조회, 응시 횟수 증가
  - SubmissionSink : 완료된 응시 저장 → attempt_id 반환
"""

import logging
import threading
import uuid
from typing import Dict, Iterable, List, Protocol

from timed_exam.errors import ExamNotFound
from timed_exam.models.attempt_model import SubmissionPayload
from timed_exam.models.exam_model import ExamDefinition

logger = logging.getLogger(__name__)


class ContentService(Protocol):
    def get_exam(self, exam_id: str) -> ExamDefinition: ...

    def increment_attempts(self, exam_id: str) -> None: ...


class SubmissionSink(Protocol):
    def submit_attempt(self, payload: SubmissionPayload) -> str: ...


class InMemoryExamCatalog:
    """딕셔너리 기반 시험 저장소."""

    def __init__(self, exams: Iterable[ExamDefinition] = ()):
        self._lock = threading.Lock()
        self._exams: Dict[str, ExamDefinition] = {e.id: e for e in exams}

    def add(self, exam: ExamDefinition) -> None:
        with self._lock:
            self._exams[exam.id] = exam

    def list_exams(self) -> List[ExamDefinition]:
        with self._lock:
            return list(self._exams.values())

    def get_exam(self, exam_id: str) -> ExamDefinition:
        with self._lock:
            exam = self._exams.get(exam_id)
        if exam is None:
            raise ExamNotFound(exam_id)
        return exam

    def increment_attempts(self, exam_id: str) -> None:
        with self._lock:
            exam = self._exams.get(exam_id)
            if exam is None:
                raise ExamNotFound(exam_id)
            quota = exam.attempts.model_copy(update={"current": exam.attempts.current + 1})
            self._exams[exam_id] = exam.model_copy(update={"attempts": quota})
        logger.info(f"응시 횟수 증가: {exam_id} → {quota.current}/{quota.max}")


class InMemorySubmissionSink:
    """
    제출 결과 저장소.
    같은 submission_key로 다시 제출하면 새 결과를 만들지 않고 기존 attempt_id를 돌려준다.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._by_key: Dict[str, str] = {}
        self.payloads: Dict[str, SubmissionPayload] = {}

    def submit_attempt(self, payload: SubmissionPayload) -> str:
        with self._lock:
            existing = self._by_key.get(payload.submission_key)
            if existing:
                logger.info(f"중복 제출 무시: {payload.submission_key} → {existing}")
                return existing
            attempt_id = uuid.uuid4().hex
            self._by_key[payload.submission_key] = attempt_id
            self.payloads[attempt_id] = payload
        return attempt_id

