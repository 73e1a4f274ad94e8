from __future__ import annotations

from datetime import datetime, timedelta, timezone

from timed_exam.services.clock import ManualClock
from timed_exam.services.timers import CountdownTimer


def _timer(clock, events, name="t"):
    return CountdownTimer(
        name, clock,
        on_tick=lambda left: events.append((name, "tick", left)),
        on_expire=lambda: events.append((name, "expire")),
    )


def test_countdown_expires_once_and_unsubscribes():
    clock = ManualClock()
    events = []
    timer = _timer(clock, events)
    timer.start(3)

    clock.tick(5)

    assert events == [("t", "tick", 2), ("t", "tick", 1), ("t", "tick", 0), ("t", "expire")]
    assert not timer.running
    assert clock.subscriber_count == 0


def test_restart_resets_remaining_and_drops_old_subscription():
    clock = ManualClock()
    events = []
    timer = _timer(clock, events)
    timer.start(3)
    clock.tick(2)
    timer.start(3)

    assert clock.subscriber_count == 1
    clock.tick(1)
    assert timer.remaining == 2


def test_cancelled_timer_never_fires():
    clock = ManualClock()
    events = []
    timer = _timer(clock, events)
    timer.start(2)
    timer.cancel()

    clock.tick(5)

    assert events == []
    assert clock.subscriber_count == 0


def test_cancel_within_same_tick_suppresses_later_subscriber():
    clock = ManualClock()
    events = []
    second = _timer(clock, events, name="second")
    first = CountdownTimer(
        "first", clock,
        on_tick=lambda left: None,
        on_expire=second.cancel,
    )
    first.start(1)
    second.start(1)

    clock.tick()

    assert events == []
    assert not second.running


def test_subscribers_fire_in_registration_order():
    clock = ManualClock()
    order = []
    clock.subscribe(lambda: order.append("a"))
    clock.subscribe(lambda: order.append("b"))

    clock.tick(2)

    assert order == ["a", "b", "a", "b"]


def test_manual_clock_advances_one_second_per_tick():
    start = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    clock = ManualClock(start=start)

    clock.tick(90)

    assert clock.now() == start + timedelta(seconds=90)
