"""
services/clock.py

1초 단위 tick을 만들어 내는 시계(Clock Source).
문제 타이머와 시험 타이머는 같은 시계를 구독한다.

Public API:
  - Clock.subscribe(callback) -> Subscription : tick 콜백 등록 (등록 순서대로 호출)
  - Subscription.cancel()                     : 구독 해지. 해지된 구독은 다시 호출되지 않는다.
  - ManualClock.tick(n)                       : 테스트/임베딩용 수동 시계
  - ThreadingClock.start() / stop()           : 데몬 스레드가 CLOCK_TICK_SECONDS마다 tick
"""

import logging
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from config import CLOCK_TICK_SECONDS

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class Subscription:
    """시계 구독 핸들."""

    def __init__(self, clock: "Clock", callback: TickCallback):
        self._clock = clock
        self._callback = callback
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._clock._remove(self)

    def fire(self) -> None:
        if self.active:
            self._callback()


class Clock:
    """구독자 목록을 관리하는 시계 기반 클래스."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscriptions: List[Subscription] = []

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def subscribe(self, callback: TickCallback) -> Subscription:
        sub = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(sub)
        return sub

    def _remove(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subscriptions:
                self._subscriptions.remove(sub)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def _emit(self) -> None:
        """
        구독자들에게 tick 1회를 전달한다.

        목록을 복사해 순회하되, 같은 tick 안에서 앞선 콜백이 해지한 구독은
        Subscription.fire()에서 걸러진다.
        """
        with self._lock:
            targets = list(self._subscriptions)
        for sub in targets:
            sub.fire()


class ManualClock(Clock):
    """직접 tick()을 호출해 시간을 흘리는 시계. tick 1회에 now()가 1초씩 흐른다. 테스트에서 사용."""

    def __init__(self, start: Optional[datetime] = None):
        super().__init__()
        self._now = start or datetime.now(timezone.utc)

    def now(self) -> datetime:
        return self._now

    def tick(self, count: int = 1) -> None:
        for _ in range(count):
            self._now += timedelta(seconds=1)
            self._emit()


class ThreadingClock(Clock):
    """데몬 스레드로 매 interval초마다 tick을 발생시키는 실시간 시계."""

    def __init__(self, interval: float = CLOCK_TICK_SECONDS):
        super().__init__()
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="exam-clock", daemon=True)
        self._thread.start()
        logger.info(f"시계 시작 (간격 {self.interval}초)")

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=max(1.0, self.interval * 2))
        self._thread = None

    def _run(self) -> None:
        next_at = time.monotonic() + self.interval
        while not self._stop.wait(max(0.0, next_at - time.monotonic())):
            next_at += self.interval
            try:
                self._emit()
            except Exception:
                # 콜백 하나의 실패가 시계 스레드를 멈추지 않도록 기록만 한다
                logger.exception("tick 콜백 처리 중 오류 발생")
