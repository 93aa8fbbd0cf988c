"""Cancellable timers driving the polling scheduler."""

import logging
import threading
from typing import Callable, Union

logger = logging.getLogger(__name__)


class RepeatingTimer(threading.Thread):
    """
    Daemon thread calling a function every ``interval`` seconds until cancelled.

    Exceptions raised by the function are logged and do not stop the timer.
    """

    def __init__(self, interval: float, function: Callable[[], None]):
        super().__init__(daemon=True)
        self.interval = interval
        self.function = function
        self.finished = threading.Event()

    def cancel(self):
        """Stop the timer; a tick already running completes."""
        self.finished.set()

    def run(self):
        while not self.finished.wait(self.interval):
            try:
                self.function()
            except Exception as e:
                logger.error(f"Error in timer callback: {e}")


def make_timer(
    interval: float,
    function: Callable[[], None],
    repeat: bool = False,
) -> Union[threading.Timer, RepeatingTimer]:
    """Create an unstarted one-shot or repeating daemon timer."""
    if repeat:
        return RepeatingTimer(interval, function)
    timer = threading.Timer(interval, function)
    timer.daemon = True
    return timer
