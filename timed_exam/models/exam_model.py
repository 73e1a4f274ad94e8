"""
models/exam_model.py

콘텐츠 서비스가 제공하는 시험 정의 모델.
로드된 이후에는 변경하지 않는다 (frozen). 응시 횟수 증가 등은 새 인스턴스로 교체한다.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from config import DEFAULT_EXAM_MINUTES
from timed_exam.models.question_model import Question


class ExamStatus(str, Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class AttemptQuota(BaseModel):
    current: int = Field(default=0, ge=0, description="지금까지 사용한 응시 횟수")
    max: int = Field(default=1, ge=1, description="최대 응시 횟수")

    model_config = {"frozen": True}

    @property
    def exhausted(self) -> bool:
        return self.current >= self.max


class AvailabilityWindow(BaseModel):
    start: datetime = Field(..., description="응시 가능 시작 시각")
    end: datetime = Field(..., description="응시 가능 종료 시각")

    model_config = {"frozen": True}

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        # 시간대 정보가 없으면 UTC로 간주
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    @model_validator(mode="after")
    def validate_order(self) -> "AvailabilityWindow":
        if self.end <= self.start:
            raise ValueError("종료 시각은 시작 시각 이후여야 합니다.")
        return self

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class ExamDefinition(BaseModel):
    """
    시험 정의.

    Attributes:
        id:           시험 식별자.
        title:        시험 제목.
        subject:      과목명.
        class_name:   대상 학급 (직렬화 시 "class").
        questions:    출제 순서대로 정렬된 문제 리스트.
        duration:     전체 시험 시간 (분). 문제가 없을 때만 총 제한 시간으로 쓰인다.
        attempts:     응시 횟수 {current, max}.
        availability: 응시 가능 기간 {start, end}.
        status:       시험 상태. active일 때만 응시 가능.
    """

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    subject: str = Field(default="")
    class_name: str = Field(default="", alias="class")
    chapter: Optional[str] = None
    questions: List[Question] = Field(default_factory=list)
    duration: int = Field(default=DEFAULT_EXAM_MINUTES, ge=1, description="시험 시간 (분)")
    attempts: AttemptQuota = Field(default_factory=AttemptQuota)
    availability: AvailabilityWindow
    status: ExamStatus = ExamStatus.DRAFT

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def is_open_at(self, moment: datetime) -> bool:
        """status와 응시 가능 기간을 함께 확인."""
        return self.status == ExamStatus.ACTIVE and self.availability.contains(moment)
