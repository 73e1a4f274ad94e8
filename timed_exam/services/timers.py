"""
services/timers.py

시계를 구독하는 1초 단위 카운트다운.
문제 타이머와 시험 타이머 모두 CountdownTimer 인스턴스이며, 소유자(ExamSession)가
만료 시 할 일을 콜백으로 넘긴다. 만료되거나 cancel()된 타이머는 더 이상 tick을 받지 않는다.
"""

import logging
import threading
from typing import Callable, Optional

from timed_exam.services.clock import Clock, Subscription

logger = logging.getLogger(__name__)


class CountdownTimer:
    def __init__(
        self,
        name: str,
        clock: Clock,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
        lock: Optional[threading.RLock] = None,
    ):
        """
        Args:
            name:      로그용 이름 ("question", "exam").
            clock:     구독할 시계.
            on_tick:   tick마다 남은 초를 받는 콜백.
            on_expire: 남은 시간이 0이 되면 한 번 호출되는 콜백.
            lock:      tick 처리 중 잡을 락. 소유자의 명령 처리와 같은 락을 넘긴다.
        """
        self.name = name
        self._clock = clock
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._lock = lock or threading.RLock()
        self._subscription: Optional[Subscription] = None
        self._generation = 0
        self.remaining = 0

    @property
    def running(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self, seconds: int) -> None:
        """기존 구독을 해지하고 seconds초부터 다시 센다."""
        with self._lock:
            self.cancel()
            self._generation += 1
            generation = self._generation
            self.remaining = max(0, seconds)
            self._subscription = self._clock.subscribe(lambda: self._tick(generation))
            logger.debug(f"{self.name} 타이머 시작: {self.remaining}초")

    def cancel(self) -> None:
        with self._lock:
            if self._subscription is not None:
                self._subscription.cancel()
                self._subscription = None

    def _tick(self, generation: int) -> None:
        with self._lock:
            # 재시작/해지 이전 구독에서 늦게 도착한 tick은 버린다
            if generation != self._generation or not self.running:
                return
            self.remaining = max(0, self.remaining - 1)
            self._on_tick(self.remaining)
            if self.remaining == 0 and self.running:
                self.cancel()
                logger.info(f"{self.name} 타이머 만료")
                self._on_expire()
