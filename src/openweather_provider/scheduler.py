"""Autonomous weather polling at the vessel's position."""

import time
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Optional, Dict

from .config import (
    FETCH_MAX_RETRIES,
    FETCH_RETRY_INTERVAL_SECONDS,
    NO_POSITION_MAX_RETRIES,
    NO_POSITION_RETRY_INTERVAL_SECONDS,
    WAKE_INTERVAL_SECONDS,
    watchdog_threshold,
)
from .deltas import build_observation_deltas
from .errors import (
    FetchFailure,
    NoPositionAvailable,
    RetryBudgetExhausted,
    WatchdogTrip,
    WeatherProviderError,
)
from .gateway import FetchGateway
from .models import Position
from .openweather import TRANSLATION_ERRORS, parse_observations
from .timers import make_timer

logger = logging.getLogger(__name__)


class SchedulerStatus(Enum):
    IDLE = "idle"
    AWAITING_POSITION = "awaiting_position"
    FETCHING = "fetching"
    SLEEPING = "sleeping"
    STOPPED = "stopped"


@dataclass
class SchedulerState:
    """Timestamps (scheduler clock) and retry counters of one scheduler run."""
    last_wake_time: Optional[float] = None
    last_fetch_time: Optional[float] = None
    consecutive_fetch_errors: int = 0
    consecutive_no_position_retries: int = 0


class PollingScheduler:
    """
    Timer-driven poller fetching weather at the vessel's current position.

    A periodic wake timer re-evaluates every ``wake_interval`` seconds whether
    ``fetch_interval`` has elapsed since the last successful fetch. Missing
    positions and failed fetches each get their own bounded one-shot retry
    loop; when a loop gives up, the scheduler waits for the next wake.

    Each wake tick first runs a watchdog: a tick arriving much sooner than
    ``wake_interval`` after the previous one means a runaway timer, and the
    scheduler stops itself and reports a fatal error.

    Attributes:
        state: Timestamps and retry counters
        status: Current SchedulerStatus
        last_error: Last error recorded by the control loop

    Note:
        Fetches run on timer threads, never on the caller's thread. At most
        one scheduler fetch is in flight; wakes arriving meanwhile are
        skipped. After stop(), results of a fetch still in flight are
        discarded.
    """

    def __init__(
        self,
        gateway: FetchGateway,
        position_source: Callable[[], Optional[Position]],
        delta_sink: Callable[[List[Dict[str, Any]]], None],
        fetch_interval: float,
        report_status: Optional[Callable[[str], None]] = None,
        report_error: Optional[Callable[[str], None]] = None,
        wake_interval: float = WAKE_INTERVAL_SECONDS,
        fetch_retry_interval: float = FETCH_RETRY_INTERVAL_SECONDS,
        fetch_max_retries: int = FETCH_MAX_RETRIES,
        no_position_retry_interval: float = NO_POSITION_RETRY_INTERVAL_SECONDS,
        no_position_max_retries: int = NO_POSITION_MAX_RETRIES,
        watchdog_min_elapsed: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: Callable[..., Any] = make_timer,
    ):
        self.gateway = gateway
        self.position_source = position_source
        self.delta_sink = delta_sink
        self.fetch_interval = fetch_interval
        self.report_status = report_status
        self.report_error = report_error
        self.wake_interval = wake_interval
        self.fetch_retry_interval = fetch_retry_interval
        self.fetch_max_retries = fetch_max_retries
        self.no_position_retry_interval = no_position_retry_interval
        self.no_position_max_retries = no_position_max_retries
        if watchdog_min_elapsed is None:
            watchdog_min_elapsed = watchdog_threshold(wake_interval)
        self.watchdog_min_elapsed = watchdog_min_elapsed
        self._clock = clock
        self._timer_factory = timer_factory

        self.state = SchedulerState()
        self.status = SchedulerStatus.IDLE
        self.last_error: Optional[WeatherProviderError] = None

        self._lock = threading.RLock()
        self._generation = 0
        self._in_flight = False
        self._wake_timer = None
        self._retry_timer = None
        self._error_reported = False

    @property
    def running(self) -> bool:
        return self.status not in (SchedulerStatus.IDLE, SchedulerStatus.STOPPED)

    @property
    def wake_timer_armed(self) -> bool:
        return self._wake_timer is not None

    @property
    def retry_pending(self) -> bool:
        return self._retry_timer is not None

    def start(self):
        """Start polling. The first poll runs immediately on a timer thread."""
        with self._lock:
            if self.running:
                logger.warning("Weather poller already running")
                return
            self._generation += 1
            self.state = SchedulerState(last_wake_time=self._clock())
            self.last_error = None
            self._error_reported = False
            self.status = SchedulerStatus.AWAITING_POSITION
            self._ensure_wake_timer()
            self._schedule_retry(0)
            logger.info(
                f"Weather poller started (fetch every {self.fetch_interval / 60:g} min, "
                f"wake every {self.wake_interval:g} s)"
            )

    def stop(self):
        """Stop polling and cancel every timer. Safe to call in any state."""
        with self._lock:
            self._generation += 1
            self._cancel_timers()
            self.state.last_wake_time = None
            self.state.last_fetch_time = None
            if self.status != SchedulerStatus.STOPPED:
                logger.info("Weather poller stopped")
            self.status = SchedulerStatus.STOPPED

    def wake(self):
        """
        External wake: poll now without the watchdog check.

        Ignored when the scheduler is not running.
        """
        with self._lock:
            if not self.running:
                return
            generation = self._generation
        self._poll(generation)

    def _on_wake_tick(self, generation: int):
        with self._lock:
            if generation != self._generation or not self.running:
                return
            now = self._clock()
            last_wake = self.state.last_wake_time
            if last_wake is not None:
                elapsed = now - last_wake
                if elapsed < self.watchdog_min_elapsed:
                    logger.error(
                        f"Wake timer watchdog -> NOT OK ({elapsed:.1f} s since last wake, "
                        f"expected >= {self.watchdog_min_elapsed:g} s). Stopping poller!"
                    )
                    self._halt(WatchdogTrip("Weather watch timer error!"))
                    return
            logger.debug("Wake timer watchdog -> OK")
            self.state.last_wake_time = now
        self._poll(generation)

    def _poll(self, generation: int):
        with self._lock:
            if generation != self._generation or not self.running:
                return
            if self._in_flight:
                logger.debug("Weather fetch already in progress, skipping wake")
                return

            position = self.position_source()
            if position is None:
                self._handle_no_position()
                return

            logger.debug(f"Vessel position: ({position.latitude}, {position.longitude})")
            self.state.consecutive_no_position_retries = 0
            self._cancel_retry_timer()
            self.status = SchedulerStatus.FETCHING

            now = self._clock()
            if self.state.last_fetch_time is not None:
                elapsed = now - self.state.last_fetch_time
                if elapsed < self.fetch_interval:
                    logger.debug(
                        f"Next poll due in {round((self.fetch_interval - elapsed) / 60)} min(s)... "
                        f"sleep for {self.wake_interval:g} secs"
                    )
                    self.status = SchedulerStatus.SLEEPING
                    return

            if self.state.consecutive_fetch_errors >= self.fetch_max_retries:
                self._give_up_fetching()
                return

            self.state.consecutive_fetch_errors += 1
            self._in_flight = True
            logger.debug(
                f"Calling weather service (attempt: {self.state.consecutive_fetch_errors})"
            )

        try:
            payload = self.gateway.resolve(position, bypass_cache=True)
            try:
                observations = parse_observations(payload)
            except TRANSLATION_ERRORS as e:
                logger.error(f"Unreadable weather data: {e}")
                raise FetchFailure("Error fetching weather data from provider!") from e
        except FetchFailure as e:
            self._handle_fetch_failure(generation, e)
            return
        except Exception as e:
            logger.exception("Unexpected error while polling weather provider")
            with self._lock:
                self._in_flight = False
                if generation == self._generation:
                    self._halt(WeatherProviderError(f"Weather poller error: {e}"))
            return

        with self._lock:
            self._in_flight = False
            if generation != self._generation or not self.running:
                logger.debug("Discarding weather data received after stop")
                return
            logger.debug("Weather data received")
            now = self._clock()
            self.state.consecutive_fetch_errors = 0
            self.state.last_fetch_time = now
            if self._wake_timer is None:
                self.state.last_wake_time = now
                self._ensure_wake_timer()
            self.status = SchedulerStatus.SLEEPING
            recovered = self._error_reported
            self._error_reported = False

        if recovered and self.report_status:
            self.report_status("Started")
        if not observations:
            logger.warning("Weather response contained no current observation")
            return
        self.delta_sink(build_observation_deltas(position, observations[0]))

    def _handle_no_position(self):
        self.status = SchedulerStatus.AWAITING_POSITION
        logger.debug("No vessel position detected!")
        if self.state.consecutive_no_position_retries >= self.no_position_max_retries:
            self.last_error = NoPositionAvailable(
                f"No vessel position after {self.no_position_max_retries} retries"
            )
            logger.debug("Maximum number of retries to detect vessel position!... sleeping.")
            return
        self.state.consecutive_no_position_retries += 1
        logger.debug(
            f"Retry {self.state.consecutive_no_position_retries} / {self.no_position_max_retries} "
            f"in {self.no_position_retry_interval:g} secs after no vessel position detected"
        )
        self._schedule_retry(self.no_position_retry_interval)

    def _handle_fetch_failure(self, generation: int, error: FetchFailure):
        with self._lock:
            self._in_flight = False
            if generation != self._generation or not self.running:
                return
            self.last_error = error
            if self.state.consecutive_fetch_errors >= self.fetch_max_retries:
                self._give_up_fetching()
                return
            logger.debug(
                f"ERROR polling weather provider! (retry in {self.fetch_retry_interval:g} sec): {error}"
            )
            self._schedule_retry(self.fetch_retry_interval)

    def _give_up_fetching(self):
        attempts = self.state.consecutive_fetch_errors
        self.state.consecutive_fetch_errors = 0
        self.status = SchedulerStatus.SLEEPING
        self.last_error = RetryBudgetExhausted(
            f"Failed to fetch weather data after {attempts} attempts"
        )
        logger.warning(f"{self.last_error}. Waiting for next wake.")
        self._error_reported = True
        if self.report_error:
            self.report_error(str(self.last_error))

    def _halt(self, error: WeatherProviderError):
        self.stop()
        self.last_error = error
        if self.report_error:
            self.report_error(str(error))

    def _ensure_wake_timer(self):
        if self._wake_timer is not None:
            return
        generation = self._generation
        self._wake_timer = self._timer_factory(
            self.wake_interval, lambda: self._on_wake_tick(generation), repeat=True
        )
        self._wake_timer.start()

    def _schedule_retry(self, delay: float):
        self._cancel_retry_timer()
        generation = self._generation
        self._retry_timer = self._timer_factory(delay, lambda: self._on_retry(generation))
        self._retry_timer.start()

    def _on_retry(self, generation: int):
        with self._lock:
            if generation != self._generation:
                return
            self._retry_timer = None
        self._poll(generation)

    def _cancel_retry_timer(self):
        if self._retry_timer is not None:
            self._retry_timer.cancel()
            self._retry_timer = None

    def _cancel_timers(self):
        self._cancel_retry_timer()
        if self._wake_timer is not None:
            self._wake_timer.cancel()
            self._wake_timer = None
