import random
import time

import pytest

from serialio.timer import MillisecondTimer


def test_short_intervals():
    rng = random.Random(0)
    for _ in range(20):
        ms = rng.randrange(20)
        timer = MillisecondTimer(ms)
        time.sleep(ms / 1000)
        r = timer.remaining()
        assert -10 <= r <= 0


def test_overlapping_long_intervals():
    timers = []
    for _ in range(10):
        timers.append(MillisecondTimer(1000))
        time.sleep(0.001)

    time.sleep(0.5)
    first = [t.remaining() for t in timers]
    assert all(400 <= r <= 500 for r in first)
    assert first == sorted(first)

    time.sleep(0.5)
    second = [t.remaining() for t in timers]
    assert all(-100 <= r <= 0 for r in second)
    assert second == sorted(second)


def test_fresh_timer_reports_nearly_full_time():
    timer = MillisecondTimer(5000)
    r = timer.remaining()
    assert 4900 <= r <= 5000


def test_zero_timer_is_expired():
    timer = MillisecondTimer(0)
    assert timer.remaining() <= 0


def test_negative_millis_rejected():
    with pytest.raises(ValueError):
        MillisecondTimer(-1)