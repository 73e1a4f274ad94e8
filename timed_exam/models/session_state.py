"""
models/session_state.py

시험 진행 상태를 담는 OMR 카드 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
상태 변경은 ExamSession(상태 머신)만 수행하고, 화면은 SessionSnapshot으로 읽기만 한다.
"""

from enum import Enum
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from config import MAX_ADAPTIVE_REDUCTION
from timed_exam.models.attempt_model import Attempt, QuestionTiming, SubmissionPayload


class Phase(str, Enum):
    IDLE = "idle"
    INSTRUCTIONS = "instructions"
    IN_PROGRESS = "in_progress"
    SUBMITTING = "submitting"
    TERMINATED = "terminated"


class Outcome(str, Enum):
    SUCCESS = "success"
    ABANDONED = "abandoned"


class NavState(str, Enum):
    LOCKED = "locked"
    CURRENT = "current"
    UNREACHABLE = "unreachable"


class TimePressure(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"


class SessionState(BaseModel):
    """
    응시 1회분의 세션 상태.

    Attributes:
        current_question_index:     현재 풀고 있는 문제의 인덱스 (0-based).
        answers:                    답안지. {문제 인덱스: 답안 문자열}
        visited:                    방문한 문제 인덱스 집합. 줄어들지 않는다.
        adaptive_reduction_seconds: 비객관식 문제 제한 시간 감소량 (0~5, 감소하지 않음).
        question_allowance:         현재 문제에 주어진 시간 (초).
        question_time_left:         현재 문제 남은 시간 (초).
        total_allowance:            시험 전체 제한 시간 (초). 시작 시 한 번 계산.
        total_time_left:            시험 전체 남은 시간 (초).
        elapsed_ticks:              시작 이후 전체 타이머가 흐른 초.
        phase:                      진행 단계.
        outcome:                    종료 결과. TERMINATED일 때만 값이 있다.
        question_timings:           문제별 체류 시간 기록.
        pending_payload:            제출 중인 페이로드. 재시도 시 그대로 재사용.
        attempt:                    제출 성공 시 생성된 응시 결과.
        last_error:                 마지막 제출 실패 메시지.
    """

    current_question_index: int = Field(default=0, ge=0)
    answers: Dict[int, str] = Field(default_factory=dict)
    visited: Set[int] = Field(default_factory=set)
    adaptive_reduction_seconds: int = Field(default=0, ge=0, le=MAX_ADAPTIVE_REDUCTION)
    question_allowance: int = Field(default=0, ge=0)
    question_time_left: int = Field(default=0, ge=0)
    total_allowance: int = Field(default=0, ge=0)
    total_time_left: int = Field(default=0, ge=0)
    elapsed_ticks: int = Field(default=0, ge=0)
    phase: Phase = Phase.IDLE
    outcome: Optional[Outcome] = None
    question_timings: List[QuestionTiming] = Field(default_factory=list)
    pending_payload: Optional[SubmissionPayload] = None
    attempt: Optional[Attempt] = None
    last_error: Optional[str] = None

    model_config = {"validate_assignment": True}

    @property
    def is_terminated(self) -> bool:
        return self.phase == Phase.TERMINATED


class SessionSnapshot(BaseModel):
    """화면(호스트 UI)에 노출하는 읽기 전용 투영."""

    phase: Phase
    outcome: Optional[Outcome] = None
    exam_id: Optional[str] = None
    exam_title: Optional[str] = None
    current_question_index: int = 0
    total_questions: int = 0
    navigation: List[NavState] = Field(default_factory=list)
    answered_indices: List[int] = Field(default_factory=list)
    answers: Dict[int, str] = Field(default_factory=dict)
    adaptive_reduction_seconds: int = 0
    question_allowance: int = 0
    question_time_left: int = 0
    question_time_display: str = "00:00"
    question_pressure: TimePressure = TimePressure.NORMAL
    total_allowance: int = 0
    total_time_left: int = 0
    total_time_display: str = "00:00"
    total_pressure: TimePressure = TimePressure.NORMAL
    attempt_id: Optional[str] = None
    last_error: Optional[str] = None

    model_config = {"frozen": True}
