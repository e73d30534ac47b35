from __future__ import annotations

import datetime as dt
import threading

import pytest

from civicwatch.scheduler import NewsScheduler

UTC = dt.timezone.utc


def _fire_times(trigger, start: dt.datetime, end: dt.datetime):
    """Cron fire times in (start, end], walking the trigger with a fixed clock."""
    out = []
    prev = start
    while True:
        nxt = trigger.get_next_fire_time(prev, prev + dt.timedelta(microseconds=1))
        if nxt is None or nxt > end:
            return out
        out.append(nxt)
        prev = nxt


@pytest.mark.parametrize("start_hour,start_minute", [(1, 0), (2, 0), (3, 59), (0, 30)])
def test_exactly_one_cron_fire_in_two_hours(start_hour, start_minute):
    sched = NewsScheduler(timezone="UTC")
    start = dt.datetime(2024, 1, 1, start_hour, start_minute, tzinfo=UTC)

    fires = _fire_times(sched.trigger, start, start + dt.timedelta(hours=2))

    assert len(fires) == 1
    assert fires[0].minute == 0 and fires[0].hour % 2 == 0


def test_cron_fires_on_even_hours_only():
    sched = NewsScheduler(timezone="UTC")
    start = dt.datetime(2024, 1, 1, 0, 0, 30, tzinfo=UTC)

    fires = _fire_times(sched.trigger, start, start + dt.timedelta(days=1))

    assert [f.hour for f in fires] == [2, 4, 6, 8, 10, 12, 14, 16, 18, 20, 22, 0]


def test_start_fires_immediately_and_stop_shuts_down():
    called = threading.Event()
    calls = []

    def callback():
        calls.append(dt.datetime.now(UTC))
        called.set()

    sched = NewsScheduler(timezone="UTC")
    sched.start(callback)
    try:
        assert sched.running
        assert called.wait(5)
    finally:
        sched.stop(wait=True)

    assert not sched.running
    assert len(calls) == 1


def test_no_immediate_fire_when_disabled():
    called = threading.Event()
    sched = NewsScheduler(timezone="UTC", run_on_start=False)
    sched.start(called.set)
    try:
        assert not called.wait(0.5)
    finally:
        sched.stop(wait=True)


def test_failing_callback_does_not_escape_tick():
    sched = NewsScheduler(timezone="UTC")
    attempts = []

    def boom():
        attempts.append(1)
        raise RuntimeError("feed exploded")

    sched._callback = boom
    sched._tick()
    sched._tick()

    assert len(attempts) == 2
