"""Tests for scheduler timers."""

import threading

from openweather_provider.timers import RepeatingTimer, make_timer


def test_repeating_timer_fires_until_cancelled():
    """Test the callback runs repeatedly and stops after cancel."""
    calls = []
    done = threading.Event()

    def callback():
        calls.append(1)
        if len(calls) >= 3:
            done.set()

    timer = RepeatingTimer(0.01, callback)
    timer.start()
    assert done.wait(5)
    timer.cancel()
    timer.join(5)

    assert not timer.is_alive()
    assert len(calls) >= 3


def test_repeating_timer_survives_callback_errors():
    """Test a failing callback does not kill the timer."""
    calls = []
    done = threading.Event()

    def callback():
        calls.append(1)
        if len(calls) >= 2:
            done.set()
        raise RuntimeError("boom")

    timer = RepeatingTimer(0.01, callback)
    timer.start()
    assert done.wait(5)
    timer.cancel()
    timer.join(5)

    assert len(calls) >= 2


def test_cancel_before_first_tick():
    """Test a cancelled timer never calls back."""
    calls = []
    timer = RepeatingTimer(10, lambda: calls.append(1))
    timer.start()
    timer.cancel()
    timer.join(5)

    assert calls == []


def test_make_timer_types():
    """Test the factory returns unstarted daemon timers."""
    one_shot = make_timer(1, lambda: None)
    repeating = make_timer(1, lambda: None, repeat=True)

    assert isinstance(one_shot, threading.Timer)
    assert one_shot.daemon
    assert isinstance(repeating, RepeatingTimer)
    assert repeating.daemon
    assert not one_shot.is_alive()
    assert not repeating.is_alive()


def test_one_shot_timer_fires_once():
    """Test a one-shot timer runs its callback."""
    done = threading.Event()
    timer = make_timer(0, done.set)
    timer.start()
    assert done.wait(5)
