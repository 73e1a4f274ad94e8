from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from timed_exam.models.attempt_model import Attempt, SubmitTrigger


class CommandKind(str, Enum):
    LOAD = "load"
    START = "start"
    ANSWER = "answer"
    ADVANCE = "advance"
    SUBMIT = "submit"
    ABANDON = "abandon"


class Command(BaseModel):
    """ExamSession.dispatch()로 들어가는 단일 명령. 사용자 입력과 타이머 만료 모두 이 형태."""
    kind: CommandKind
    exam_id: Optional[str] = None
    value: Optional[str] = None
    index: Optional[int] = None
    force: bool = False
    trigger: SubmitTrigger = SubmitTrigger.USER

    model_config = {"frozen": True}


class SubmitStatus(str, Enum):
    SUBMITTED = "submitted"
    INCOMPLETE = "incomplete"
    ALREADY_TERMINATED = "already_terminated"


class SubmitResult(BaseModel):
    status: SubmitStatus
    attempt: Optional[Attempt] = None
    unanswered: List[int] = Field(default_factory=list, description="미응답 문제 인덱스 (INCOMPLETE일 때)")

    model_config = {"frozen": True}
