"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어 + 공유 시계
"""

import logging
import threading
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import SESSION_CLEANUP_INTERVAL
from api.routes import router
from api.sample_exams import build_sample_catalog
import api.session as session
from timed_exam.services.clock import Clock, ThreadingClock
from timed_exam.services.gateways import ContentService, InMemorySubmissionSink, SubmissionSink

SESSION_COOKIE = "cbt_session"

logger = logging.getLogger(__name__)


def create_app(
    clock: Clock | None = None,
    catalog: ContentService | None = None,
    sink: SubmissionSink | None = None,
    cleanup: bool = True,
) -> FastAPI:
    """
    Args:
        clock:   모든 시험 세션이 공유하는 시계. 없으면 ThreadingClock을 만들어 시작한다.
        catalog: 시험 정의 제공자. 없으면 샘플 시험 카탈로그.
        sink:    제출 저장소. 없으면 인메모리 저장소.
        cleanup: 만료 세션 정리 스레드 실행 여부.
    """
    owned_clock: ThreadingClock | None = None
    if clock is None:
        clock = owned_clock = ThreadingClock()
        clock.start()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        # 앱이 직접 만든 시계만 종료한다
        if owned_clock is not None:
            owned_clock.stop()
            logger.info("시계 종료")

    app = FastAPI(title="Timed Exam CBT", docs_url=None, redoc_url=None, lifespan=lifespan)

    app.state.clock = clock
    app.state.catalog = catalog or build_sample_catalog(clock.now())
    app.state.sink = sink or InMemorySubmissionSink()

    # CORS (모바일 브라우저 등 다양한 출처 허용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=session.SESSION_TTL,
        )
        return response

    app.include_router(router)

    @app.get("/health")
    async def health():
        return {"ok": True}

    # 만료 세션 주기적 정리 (5분마다)
    def _cleanup_loop():
        while True:
            time.sleep(SESSION_CLEANUP_INTERVAL)
            removed = session.cleanup_expired()
            if removed:
                logger.info(f"만료 세션 {removed}개 정리")

    if cleanup:
        t = threading.Thread(target=_cleanup_loop, daemon=True)
        t.start()

    return app
