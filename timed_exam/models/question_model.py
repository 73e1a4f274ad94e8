from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from config import DEFAULT_QUESTION_POINTS


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    FILL_IN_BLANK = "fill-in-blank"
    TRUE_FALSE = "true-false"
    SHORT_ANSWER = "short-answer"
    DESCRIPTIVE = "descriptive"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Question(BaseModel):
    """
    시험 문제 모델.
    세션 진행 중에는 변경되지 않는다 (frozen).
    """
    id: str = Field(
        ...,
        min_length=1,
        description="문제 고유 식별자"
    )
    text: str = Field(
        ...,
        min_length=1,
        description="발문/문제 내용"
    )
    type: QuestionType = Field(
        QuestionType.MULTIPLE_CHOICE,
        description="문제 유형"
    )
    options: List[str] = Field(
        default_factory=list,
        description="보기 리스트 (객관식에만 사용)"
    )
    correct_answer: Union[str, List[str]] = Field(
        "",
        description="정답. 객관식은 복수 정답을 리스트로 줄 수 있다."
    )
    points: int = Field(
        DEFAULT_QUESTION_POINTS,
        ge=0,
        description="배점"
    )
    time: Optional[int] = Field(
        None,
        gt=0,
        description="문제별 지정 제한 시간 (초). None이면 유형별 기본값 + 적응형 감소 적용"
    )
    difficulty: Difficulty = Field(
        Difficulty.MEDIUM,
        description="난이도"
    )

    model_config = {"frozen": True}

    @property
    def is_multiple_choice(self) -> bool:
        return self.type == QuestionType.MULTIPLE_CHOICE

    @field_validator("options")
    @classmethod
    def strip_options(cls, v: List[str]) -> List[str]:
        return [opt.strip() for opt in v if opt and opt.strip()]

    @model_validator(mode="after")
    def validate_options_for_type(self) -> "Question":
        """
        검증 로직: 객관식 문제는 보기가 최소 2개 이상이어야 한다.
        """
        if self.is_multiple_choice and len(self.options) < 2:
            raise ValueError("객관식 문제의 보기(options)는 최소 2개 이상이어야 합니다.")
        return self
