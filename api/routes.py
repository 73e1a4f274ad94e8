"""
api/routes.py — FastAPI 엔드포인트

시험 세션 명령(load/start/answer/advance/submit/abandon)을 HTTP로 노출한다.
상태 변경은 모두 ExamSession을 거치고, 여기서는 예외를 HTTP 응답으로 바꾸기만 한다.
"""

import asyncio

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel

import api.session as session
from timed_exam.errors import (
    ExamNotFound, ExamSessionError, ExamUnavailable, InvalidNavigation, InvalidPhase,
    MaxAttemptsReached, SubmissionFailed,
)
from timed_exam.models.command_model import SubmitStatus
from timed_exam.models.question_model import Question
from timed_exam.services.exam_service import calculate_type_scores, get_incorrect_questions
from timed_exam.services.exam_session import ExamSession

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class AnswerBody(BaseModel):
    value: str
    index: int | None = None

class AdvanceBody(BaseModel):
    index: int | None = None

class SubmitBody(BaseModel):
    force: bool = False


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _question_to_dict(q: Question) -> dict:
    # 정답은 응시 중에 내려보내지 않는다
    return {
        "id": q.id,
        "text": q.text,
        "type": q.type.value,
        "options": q.options,
        "points": q.points,
        "difficulty": q.difficulty.value,
    }


def _sid(request: Request) -> str:
    return request.state.session_id


def _exam_session(request: Request) -> ExamSession:
    exam_session: ExamSession | None = session.get(_sid(request), "exam_session")
    if exam_session is None:
        raise HTTPException(status_code=404, detail="시험 세션이 없습니다.")
    return exam_session


def _command_error(e: ExamSessionError) -> HTTPException:
    if isinstance(e, SubmissionFailed):
        return HTTPException(status_code=502, detail="제출에 실패했습니다. 잠시 후 다시 시도해 주세요.")
    return HTTPException(status_code=409, detail=str(e))


# ── 엔드포인트 ───────────────────────────────────────────────────────────────

@router.get("/api/exams")
async def list_exams(request: Request):
    catalog = request.app.state.catalog
    return [
        {
            "id": e.id,
            "title": e.title,
            "subject": e.subject,
            "class": e.class_name,
            "status": e.status.value,
            "total_questions": e.total_questions,
            "attempts": e.attempts.model_dump(),
        }
        for e in catalog.list_exams()
    ]


@router.post("/api/exams/{exam_id}/load")
async def load_exam(exam_id: str, request: Request):
    sid = _sid(request)
    previous: ExamSession | None = session.get(sid, "exam_session")
    if previous is not None and not previous.state.is_terminated:
        raise HTTPException(status_code=409, detail="이미 진행 중인 시험이 있습니다.")

    state = request.app.state
    exam_session = ExamSession(state.catalog, state.sink, state.clock, student_id=sid)
    try:
        snapshot = await asyncio.to_thread(exam_session.load, exam_id)
    except ExamNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except MaxAttemptsReached as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ExamUnavailable:
        raise HTTPException(status_code=403, detail="현재 응시할 수 없는 시험입니다.")

    session.put(sid, "exam_session", exam_session)
    return snapshot.model_dump(mode="json")


@router.post("/api/start")
async def start_exam(request: Request):
    exam_session = _exam_session(request)
    try:
        snapshot = await asyncio.to_thread(exam_session.start)
    except InvalidPhase as e:
        raise _command_error(e)
    return snapshot.model_dump(mode="json")


@router.get("/api/question")
async def get_question(request: Request):
    exam_session = _exam_session(request)
    # 문제와 인덱스/남은 시간은 한 번의 잠금 안에서 함께 읽어야 한다
    q, snapshot = await asyncio.to_thread(exam_session.question_view)
    if q is None:
        raise HTTPException(status_code=404, detail="진행 중인 문제가 없습니다.")

    d = _question_to_dict(q)
    d.update({
        "index": snapshot.current_question_index,
        "total": snapshot.total_questions,
        "saved_answer": snapshot.answers.get(snapshot.current_question_index, ""),
        "time_left": snapshot.question_time_left,
    })
    return d


@router.post("/api/answer")
async def save_answer(body: AnswerBody, request: Request):
    exam_session = _exam_session(request)
    try:
        snapshot = await asyncio.to_thread(exam_session.answer, body.value, index=body.index)
    except (InvalidNavigation, InvalidPhase) as e:
        raise _command_error(e)
    return {"ok": True, "answered_count": len(snapshot.answered_indices)}


@router.post("/api/advance")
async def advance(body: AdvanceBody, request: Request):
    exam_session = _exam_session(request)
    try:
        snapshot = await asyncio.to_thread(exam_session.advance, index=body.index)
    except (InvalidNavigation, InvalidPhase, SubmissionFailed) as e:
        raise _command_error(e)
    return snapshot.model_dump(mode="json")


@router.post("/api/submit")
async def submit_exam(body: SubmitBody, request: Request):
    exam_session = _exam_session(request)
    try:
        # 제출 저장소 호출은 블로킹일 수 있으므로 스레드에서 실행
        result = await asyncio.to_thread(exam_session.submit, force=body.force)
    except (InvalidPhase, SubmissionFailed) as e:
        raise _command_error(e)

    if result.status == SubmitStatus.INCOMPLETE:
        raise HTTPException(
            status_code=409,
            detail={
                "message": f"미응답 문제 {len(result.unanswered)}개가 있습니다. 그래도 제출하시겠습니까?",
                "unanswered": result.unanswered,
            },
        )
    return result.model_dump(mode="json")


@router.post("/api/abandon")
async def abandon_exam(request: Request):
    snapshot = await asyncio.to_thread(_exam_session(request).abandon)
    return snapshot.model_dump(mode="json")


@router.get("/api/exam-state")
async def get_exam_state(request: Request):
    snapshot = await asyncio.to_thread(_exam_session(request).snapshot)
    return snapshot.model_dump(mode="json")


@router.get("/api/results")
async def get_results(request: Request):
    exam_session = _exam_session(request)
    attempt = exam_session.state.attempt
    if attempt is None:
        raise HTTPException(status_code=400, detail="시험이 아직 제출되지 않았습니다.")

    questions = exam_session.exam.questions
    incorrect = get_incorrect_questions(questions, attempt.answers)
    return {
        "attempt_id": attempt.attempt_id,
        "exam_id": attempt.exam_id,
        "submitted_at": attempt.submitted_at.isoformat(),
        "time_spent_seconds": attempt.time_spent_seconds,
        "score": attempt.score.model_dump(mode="json"),
        "type_scores": calculate_type_scores(questions, attempt.answers),
        "incorrect_questions": [
            {**_question_to_dict(questions[i]), "index": i, "user_answer": attempt.answers.get(i, "")}
            for i in incorrect
        ],
    }


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(_sid(request))
    return {"ok": True}
