"""
errors.py

시험 세션 예외 계층.

- 사전조건 오류 (ExamNotFound, ExamUnavailable, MaxAttemptsReached): 세션 시작 전에 발생, 재시도 없음.
- 이동 오류 (InvalidNavigation): 명령만 거부되고 상태는 그대로.
- 단계 오류 (InvalidPhase): 현재 단계에서 받을 수 없는 명령.
- 제출 실패 (SubmissionFailed): 세션은 SUBMITTING에 머물고 같은 페이로드로 재시도 가능.
"""

from typing import Optional


class ExamSessionError(Exception):
    """시험 세션 관련 예외의 기반 클래스."""


class ExamNotFound(ExamSessionError):
    def __init__(self, exam_id: str):
        super().__init__(f"시험을 찾을 수 없습니다: {exam_id}")
        self.exam_id = exam_id


class ExamUnavailable(ExamSessionError):
    """시험 상태나 응시 가능 기간 때문에 응시할 수 없음."""


class MaxAttemptsReached(ExamUnavailable):
    def __init__(self, exam_id: str, max_attempts: int):
        super().__init__(f"최대 응시 횟수({max_attempts}회)를 모두 사용했습니다: {exam_id}")
        self.exam_id = exam_id
        self.max_attempts = max_attempts


class InvalidNavigation(ExamSessionError):
    def __init__(self, requested: int, current: int):
        super().__init__(f"현재 문제({current})가 아닌 문제({requested})에는 접근할 수 없습니다.")
        self.requested = requested
        self.current = current


class InvalidPhase(ExamSessionError):
    def __init__(self, command: str, phase: str):
        super().__init__(f"'{phase}' 단계에서는 '{command}' 명령을 처리할 수 없습니다.")
        self.command = command
        self.phase = phase


class SubmissionFailed(ExamSessionError):
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause
