from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from timed_exam.errors import SubmissionFailed  # noqa: E402
from timed_exam.models.exam_model import (  # noqa: E402
    AttemptQuota, AvailabilityWindow, ExamDefinition, ExamStatus,
)
from timed_exam.models.question_model import Question, QuestionType  # noqa: E402
from timed_exam.services.clock import ManualClock  # noqa: E402
from timed_exam.services.exam_session import ExamSession  # noqa: E402
from timed_exam.services.gateways import InMemoryExamCatalog, InMemorySubmissionSink  # noqa: E402

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def mcq(qid: str, answer: str = "A", **kwargs) -> Question:
    return Question(
        id=qid, text=f"question {qid}", type=QuestionType.MULTIPLE_CHOICE,
        options=["A", "B", "C", "D"], correct_answer=answer, **kwargs,
    )


def open_question(qid: str, qtype: QuestionType = QuestionType.FILL_IN_BLANK, answer: str = "x", **kwargs) -> Question:
    return Question(id=qid, text=f"question {qid}", type=qtype, correct_answer=answer, **kwargs)


def make_exam(questions, exam_id: str = "exam-1", **overrides) -> ExamDefinition:
    fields = dict(
        id=exam_id,
        title="Unit exam",
        subject="Science",
        class_name="10-A",
        questions=questions,
        duration=30,
        attempts=AttemptQuota(current=0, max=2),
        availability=AvailabilityWindow(start=NOW - timedelta(days=1), end=NOW + timedelta(days=1)),
        status=ExamStatus.ACTIVE,
    )
    fields.update(overrides)
    return ExamDefinition(**fields)


class FlakySink:
    """처음 fail_times번은 실패하고 이후 성공하는 제출 저장소."""

    def __init__(self, fail_times: int = 1):
        self.fail_times = fail_times
        self.calls = []
        self._inner = InMemorySubmissionSink()

    def submit_attempt(self, payload):
        self.calls.append(payload)
        if len(self.calls) <= self.fail_times:
            raise ConnectionError("sink offline")
        return self._inner.submit_attempt(payload)


class RecordingSink(InMemorySubmissionSink):
    def __init__(self):
        super().__init__()
        self.calls = []

    def submit_attempt(self, payload):
        self.calls.append(payload)
        return super().submit_attempt(payload)


class RejectingSink:
    def submit_attempt(self, payload):
        raise SubmissionFailed("rejected by sink")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=NOW)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_session(clock, sink):
    def _make(exam: ExamDefinition, *, sink_override=None, start: bool = True, catalog=None) -> ExamSession:
        catalog = catalog or InMemoryExamCatalog([exam])
        s = ExamSession(catalog, sink_override or sink, clock, student_id="student-1")
        s.load(exam.id)
        if start:
            s.start()
        return s
    return _make
