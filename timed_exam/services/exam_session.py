"""
services/exam_session.py

시험 세션 상태 머신.

  IDLE ─load→ INSTRUCTIONS ─start→ IN_PROGRESS ─submit→ SUBMITTING ─성공→ TERMINATED(success)
                                     │  ↺ answer / advance        │ 실패 → SUBMITTING 유지 (재시도)
                                     └──────── abandon ───────────┴──────→ TERMINATED(abandoned)

모든 명령(사용자 입력, 타이머 만료)은 dispatch() 하나로 들어오며 세션 락으로 직렬화된다.
문제 타이머와 시험 타이머는 같은 시계를 구독하고, 시험 타이머를 먼저 구독하므로
같은 tick에서 둘 다 만료되면 시험 타이머가 이긴다.
"""

import logging
import threading
from typing import Callable, Dict, Optional, Tuple, Union

from timed_exam.errors import InvalidPhase, SubmissionFailed
from timed_exam.models.attempt_model import Attempt, QuestionTiming, SubmitTrigger
from timed_exam.models.command_model import (
    Command, CommandKind, SubmitResult, SubmitStatus,
)
from timed_exam.models.exam_model import ExamDefinition
from timed_exam.models.question_model import Question
from timed_exam.models.session_state import (
    Outcome, Phase, SessionSnapshot, SessionState,
)
from timed_exam.services import exam_service, timing_policy
from timed_exam.services.clock import Clock
from timed_exam.services.exam_loader import load_exam
from timed_exam.services.gateways import ContentService, SubmissionSink
from timed_exam.services.navigation import NavigationGuard
from timed_exam.services.timers import CountdownTimer

logger = logging.getLogger(__name__)

CommandOutcome = Union[SessionSnapshot, SubmitResult]


class ExamSession:
    """
    응시 1회분을 관리하는 상태 머신.

    Args:
        content:    시험 정의를 제공하는 콘텐츠 서비스.
        sink:       완료된 응시를 저장하는 제출 저장소.
        clock:      두 타이머가 구독할 시계.
        student_id: 제출 멱등성 키에 들어가는 응시자 식별자.
    """

    def __init__(
        self,
        content: ContentService,
        sink: SubmissionSink,
        clock: Clock,
        student_id: str = "anonymous",
    ):
        self._content = content
        self._sink = sink
        self._clock = clock
        self.student_id = student_id
        self._lock = threading.RLock()

        self.state = SessionState()
        self.exam: Optional[ExamDefinition] = None
        self._attempt_number = 1
        self._nav = NavigationGuard(self.state, 0)

        self._exam_timer = CountdownTimer(
            "exam", clock, self._on_exam_tick, self._on_exam_expire, lock=self._lock,
        )
        self._question_timer = CountdownTimer(
            "question", clock, self._on_question_tick, self._on_question_expire, lock=self._lock,
        )

        self._handlers: Dict[CommandKind, Callable[[Command], CommandOutcome]] = {
            CommandKind.LOAD: self._handle_load,
            CommandKind.START: self._handle_start,
            CommandKind.ANSWER: self._handle_answer,
            CommandKind.ADVANCE: self._handle_advance,
            CommandKind.SUBMIT: self._handle_submit,
            CommandKind.ABANDON: self._handle_abandon,
        }

    # ── 공개 명령 ───────────────────────────────────────────────────────────

    def load(self, exam_id: str) -> SessionSnapshot:
        return self.dispatch(Command(kind=CommandKind.LOAD, exam_id=exam_id))

    def start(self) -> SessionSnapshot:
        return self.dispatch(Command(kind=CommandKind.START))

    def answer(self, value: str, index: Optional[int] = None) -> SessionSnapshot:
        return self.dispatch(Command(kind=CommandKind.ANSWER, value=value, index=index))

    def advance(self, index: Optional[int] = None) -> SessionSnapshot:
        return self.dispatch(Command(kind=CommandKind.ADVANCE, index=index))

    def submit(self, force: bool = False) -> SubmitResult:
        return self.dispatch(Command(kind=CommandKind.SUBMIT, force=force))

    def abandon(self) -> SessionSnapshot:
        return self.dispatch(Command(kind=CommandKind.ABANDON))

    def dispatch(self, command: Command) -> CommandOutcome:
        """명령 처리 단일 진입점. 종료된 세션에서는 아무 것도 하지 않는다."""
        with self._lock:
            if self.state.is_terminated:
                logger.debug(f"종료된 세션 — '{command.kind.value}' 명령 무시")
                if command.kind == CommandKind.SUBMIT:
                    return SubmitResult(
                        status=SubmitStatus.ALREADY_TERMINATED, attempt=self.state.attempt,
                    )
                return self._snapshot()
            return self._handlers[command.kind](command)

    # ── 읽기 전용 투영 ──────────────────────────────────────────────────────

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def current_question(self) -> Optional[Question]:
        with self._lock:
            if self.exam is None or self.state.phase != Phase.IN_PROGRESS:
                return None
            return self._question_at(self.state.current_question_index)

    def question_view(self) -> Tuple[Optional[Question], SessionSnapshot]:
        """현재 문제와 스냅샷을 같은 잠금 안에서 읽는다. 응시 중이 아니면 문제는 None."""
        with self._lock:
            return self.current_question, self._snapshot()

    @property
    def timers_running(self) -> bool:
        return self._exam_timer.running or self._question_timer.running

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return self._snapshot()

    def _snapshot(self) -> SessionSnapshot:
        s = self.state
        return SessionSnapshot(
            phase=s.phase,
            outcome=s.outcome,
            exam_id=self.exam.id if self.exam else None,
            exam_title=self.exam.title if self.exam else None,
            current_question_index=s.current_question_index,
            total_questions=self._nav.total,
            navigation=self._nav.states(),
            answered_indices=self._nav.answered(),
            answers=dict(s.answers),
            adaptive_reduction_seconds=s.adaptive_reduction_seconds,
            question_allowance=s.question_allowance,
            question_time_left=s.question_time_left,
            question_time_display=exam_service.format_clock(s.question_time_left),
            question_pressure=exam_service.time_pressure(s.question_time_left, s.question_allowance),
            total_allowance=s.total_allowance,
            total_time_left=s.total_time_left,
            total_time_display=exam_service.format_clock(s.total_time_left),
            total_pressure=exam_service.time_pressure(s.total_time_left, s.total_allowance),
            attempt_id=s.attempt.attempt_id if s.attempt else None,
            last_error=s.last_error,
        )

    # ── 명령 처리 ───────────────────────────────────────────────────────────

    def _require(self, command: Command, *phases: Phase) -> None:
        if self.state.phase not in phases:
            logger.warning(f"명령 거부: {command.kind.value} (phase={self.state.phase.value})")
            raise InvalidPhase(command.kind.value, self.state.phase.value)

    def _handle_load(self, command: Command) -> SessionSnapshot:
        self._require(command, Phase.IDLE)
        exam = load_exam(self._content, command.exam_id, self._clock.now())
        self.exam = exam
        self._attempt_number = exam.attempts.current + 1
        self._nav = NavigationGuard(self.state, exam.total_questions)
        self.state.phase = Phase.INSTRUCTIONS
        return self._snapshot()

    def _handle_start(self, command: Command) -> SessionSnapshot:
        self._require(command, Phase.INSTRUCTIONS)
        total = timing_policy.total_allowance(self.exam.questions, self.exam.duration)
        self.state.total_allowance = total
        self.state.total_time_left = total
        self.state.phase = Phase.IN_PROGRESS

        # 시험 타이머를 먼저 구독해야 같은 tick에서 문제 타이머보다 먼저 처리된다
        self._exam_timer.start(total)
        if self.exam.questions:
            self._enter_question(0)
        logger.info(f"시험 시작: {self.exam.id} (전체 {total}초, {self._nav.total}문항)")
        return self._snapshot()

    def _handle_answer(self, command: Command) -> SessionSnapshot:
        self._require(command, Phase.IN_PROGRESS)
        index = self._nav.check(command.index)
        value = command.value or ""
        if value.strip():
            self.state.answers[index] = value
        else:
            logger.debug(f"빈 답안 무시: 문제 {index}")
        return self._snapshot()

    def _handle_advance(self, command: Command) -> SessionSnapshot:
        self._require(command, Phase.IN_PROGRESS)
        index = self._nav.check(command.index)

        if self._nav.is_last:
            trigger = (
                SubmitTrigger.LAST_QUESTION
                if command.trigger == SubmitTrigger.USER else command.trigger
            )
            self._begin_submission(trigger)
            return self._snapshot()

        self._leave_question(index)
        self.state.current_question_index = index + 1
        self._enter_question(index + 1)
        return self._snapshot()

    def _handle_submit(self, command: Command) -> SubmitResult:
        self._require(command, Phase.IN_PROGRESS, Phase.SUBMITTING)

        if self.state.phase == Phase.SUBMITTING:
            # 이전 제출 실패 → 같은 페이로드로 재시도
            logger.info(f"제출 재시도: {self.state.pending_payload.submission_key}")
            return self._deliver()

        unanswered = self._nav.unanswered()
        if unanswered and not command.force and command.trigger == SubmitTrigger.USER:
            logger.info(f"미응답 {len(unanswered)}문항 — 제출 확인 필요")
            return SubmitResult(status=SubmitStatus.INCOMPLETE, unanswered=unanswered)

        return self._begin_submission(command.trigger)

    def _handle_abandon(self, command: Command) -> SessionSnapshot:
        self._stop_timers()
        self.state.pending_payload = None
        self.state.phase = Phase.TERMINATED
        self.state.outcome = Outcome.ABANDONED
        logger.info(f"세션 포기: {self.exam.id if self.exam else '-'}")
        return self._snapshot()

    # ── 문제 이동 ───────────────────────────────────────────────────────────

    def _question_at(self, index: int) -> Question:
        return self.exam.questions[index]

    def _enter_question(self, index: int) -> None:
        question = self._question_at(index)
        seconds = timing_policy.allowance(question, self.state.adaptive_reduction_seconds)
        self.state.visited.add(index)
        self.state.question_allowance = seconds
        self.state.question_time_left = seconds
        self.state.question_timings.append(QuestionTiming(
            question_id=question.id,
            index=index,
            started_at_tick=self.state.elapsed_ticks,
        ))
        self._question_timer.start(seconds)

    def _leave_question(self, index: int) -> None:
        question = self._question_at(index)
        self._close_timing()
        self.state.adaptive_reduction_seconds = timing_policy.next_reduction(
            self.state.adaptive_reduction_seconds,
            question,
            answered=index in self.state.answers,
        )

    def _close_timing(self) -> None:
        if not self.state.question_timings:
            return
        timing = self.state.question_timings[-1]
        if timing.ended_at_tick is None:
            timing.ended_at_tick = self.state.elapsed_ticks
            timing.time_spent_seconds = timing.ended_at_tick - timing.started_at_tick

    def _stop_timers(self) -> None:
        self._exam_timer.cancel()
        self._question_timer.cancel()

    # ── 제출 ────────────────────────────────────────────────────────────────

    def _begin_submission(self, trigger: SubmitTrigger) -> SubmitResult:
        self._stop_timers()
        self._close_timing()
        self.state.phase = Phase.SUBMITTING
        self.state.pending_payload = exam_service.build_payload(
            exam_id=self.exam.id,
            student_id=self.student_id,
            attempt_number=self._attempt_number,
            questions=self.exam.questions,
            answers=self.state.answers,
            total_allowance=self.state.total_allowance,
            total_time_left=self.state.total_time_left,
            question_timings=self.state.question_timings,
            trigger=trigger,
            submitted_at=self._clock.now(),
        )
        logger.info(
            f"제출 시작: {self.exam.id} (원인={trigger.value}, "
            f"응답 {len(self.state.answers)}/{self._nav.total}, "
            f"사용 {self.state.pending_payload.time_spent_seconds}초)"
        )
        return self._deliver()

    def _deliver(self) -> SubmitResult:
        payload = self.state.pending_payload
        try:
            attempt_id = self._sink.submit_attempt(payload)
        except Exception as e:
            self.state.last_error = str(e)
            logger.error(f"제출 실패: {payload.submission_key} — {e}")
            if isinstance(e, SubmissionFailed):
                raise
            raise SubmissionFailed(f"제출에 실패했습니다: {e}", cause=e) from e

        attempt = Attempt.from_payload(attempt_id, payload)
        self.state.attempt = attempt
        self.state.pending_payload = None
        self.state.last_error = None
        self.state.answers = {}
        self.state.phase = Phase.TERMINATED
        self.state.outcome = Outcome.SUCCESS
        logger.info(
            f"제출 완료: {attempt.attempt_id} "
            f"({attempt.score.percentage}%, {attempt.score.rating.value})"
        )
        self._increment_attempts()
        return SubmitResult(status=SubmitStatus.SUBMITTED, attempt=attempt)

    def _increment_attempts(self) -> None:
        # 실패해도 이미 끝난 제출은 되돌리지 않는다
        try:
            self._content.increment_attempts(self.exam.id)
        except Exception as e:
            logger.warning(f"응시 횟수 증가 실패 (무시): {self.exam.id} — {e}")

    # ── 타이머 콜백 (CountdownTimer가 세션 락을 잡은 상태로 호출) ─────────────

    def _on_exam_tick(self, remaining: int) -> None:
        if self.state.phase != Phase.IN_PROGRESS:
            return
        self.state.elapsed_ticks += 1
        self.state.total_time_left = remaining

    def _on_question_tick(self, remaining: int) -> None:
        if self.state.phase != Phase.IN_PROGRESS:
            return
        self.state.question_time_left = remaining

    def _on_exam_expire(self) -> None:
        if self.state.phase != Phase.IN_PROGRESS:
            return
        logger.info("시험 시간 종료 — 자동 제출")
        self._auto_submit(SubmitTrigger.EXAM_TIMER)

    def _on_question_expire(self) -> None:
        if self.state.phase != Phase.IN_PROGRESS:
            return
        if self._nav.is_last:
            logger.info("마지막 문제 시간 종료 — 자동 제출")
            self._auto_submit(SubmitTrigger.QUESTION_TIMER)
        else:
            logger.info(f"문제 {self.state.current_question_index} 시간 종료 — 다음 문제로")
            self.dispatch(Command(kind=CommandKind.ADVANCE, trigger=SubmitTrigger.QUESTION_TIMER))

    def _auto_submit(self, trigger: SubmitTrigger) -> None:
        try:
            self.dispatch(Command(kind=CommandKind.SUBMIT, force=True, trigger=trigger))
        except SubmissionFailed:
            # 세션은 SUBMITTING에 남고 last_error가 기록됨 → 호출자가 submit()으로 재시도
            logger.error(f"자동 제출 실패 (원인={trigger.value}) — 재시도 대기")
