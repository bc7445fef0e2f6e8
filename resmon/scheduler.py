"""Periodic sampling and evaluation loop"""

import threading
import time
from enum import Enum
from typing import Optional

from resmon.errors import SamplerError
from resmon.utils.logger import get_logger

# Passes between history cleanups
CLEANUP_EVERY = 100


class SchedulerState(str, Enum):
    IDLE = 'idle'
    SAMPLING = 'sampling'
    EVALUATING = 'evaluating'
    NOTIFYING = 'notifying'


class Scheduler:
    """Drives one sampling and evaluation pass per interval.

    At most one pass runs at a time. A tick that arrives while a pass is
    still running is dropped, never queued, so every key is evaluated in
    the order its samples were taken.
    """

    def __init__(self, sampler, alert_manager, interval: float, exporter=None):
        """
        Initialize scheduler

        Args:
            sampler: Sampler producing one Snapshot per pass
            alert_manager: AlertManager owning the alert registry
            interval: Seconds between ticks
            exporter: Optional PrometheusExporter to update after each pass
        """
        self.sampler = sampler
        self.alert_manager = alert_manager
        self.interval = interval
        self.exporter = exporter
        self.logger = get_logger(self.__class__.__name__)

        self.state = SchedulerState.IDLE
        self.pass_count = 0
        self.failed_passes = 0
        self.dropped_ticks = 0

        self._pass_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._ticker: Optional[threading.Thread] = None

    @property
    def pass_running(self) -> bool:
        return self._pass_lock.locked()

    def run_pass(self, raise_on_sampler_error: bool = False) -> bool:
        """
        Run one sampling and evaluation pass

        Args:
            raise_on_sampler_error: Propagate SamplerError instead of logging it

        Returns:
            True if the pass completed, False if it was dropped or sampling failed

        Raises:
            SamplerError: If sampling failed and raise_on_sampler_error is set
        """
        if not self._pass_lock.acquire(blocking=False):
            self._drop_tick()
            return False

        try:
            return self._run_pass(raise_on_sampler_error)
        finally:
            self.state = SchedulerState.IDLE
            self._pass_lock.release()

    def _run_pass(self, raise_on_sampler_error: bool) -> bool:
        start_time = time.monotonic()

        self.state = SchedulerState.SAMPLING
        try:
            snapshot = self.sampler.sample()
        except SamplerError as e:
            self.failed_passes += 1
            if raise_on_sampler_error:
                raise
            self.logger.error(f"Sampling failed, skipping evaluation for this cycle: {e}")
            return False

        self.state = SchedulerState.EVALUATING
        readings = snapshot.readings()
        events = []
        for reading in readings:
            try:
                event = self.alert_manager.process(reading)
            except Exception as e:
                self.logger.error(f"Error evaluating {reading.key}: {e}", exc_info=True)
                continue
            if event is not None:
                events.append(event)

        self.state = SchedulerState.NOTIFYING
        for event in events:
            try:
                self.alert_manager.dispatch(event)
            except Exception as e:
                self.logger.error(f"Error dispatching notification for {event.metric_key}: {e}", exc_info=True)

            if self.exporter is not None:
                try:
                    self.exporter.record_transition(event)
                except Exception as e:
                    self.logger.error(f"Error exporting transition for {event.metric_key}: {e}", exc_info=True)

        self.pass_count += 1
        duration = time.monotonic() - start_time
        active_alerts = self.alert_manager.get_active_alert_count()

        if self.exporter is not None:
            self.exporter.update_collector_metrics(self.sampler.collectors)
            self.exporter.update_alert_metrics(readings, self.alert_manager.registry)
            self.exporter.pass_duration.set(duration)
            self.exporter.active_alerts.set(active_alerts)

        if self.pass_count % CLEANUP_EVERY == 0:
            self.alert_manager.cleanup_old_events()

        self.logger.debug(
            f"Pass {self.pass_count} evaluated {len(readings)} metrics in {duration:.3f}s, "
            f"{len(events)} transitions, {active_alerts} alerts active"
        )
        return True

    def _drop_tick(self):
        self.dropped_ticks += 1
        if self.exporter is not None:
            self.exporter.dropped_ticks.inc()
        self.logger.warning(
            f"Previous pass still running, dropping tick ({self.dropped_ticks} dropped so far)"
        )

    def _on_tick(self):
        if self.pass_running:
            self._drop_tick()
            return
        threading.Thread(target=self.run_pass, daemon=True, name='scheduler-pass').start()

    def _tick_loop(self):
        next_tick = time.monotonic() + self.interval
        while not self._stop_event.wait(max(0.0, next_tick - time.monotonic())):
            self._on_tick()
            next_tick += self.interval
            # Do not burst to catch up after the process was suspended
            if next_tick < time.monotonic():
                next_tick = time.monotonic() + self.interval

    def start(self):
        """Start the ticker thread; the first tick fires one interval from now"""
        if self._ticker is not None and self._ticker.is_alive():
            return

        self._stop_event.clear()
        self._ticker = threading.Thread(target=self._tick_loop, daemon=True, name='scheduler-ticker')
        self._ticker.start()
        self.logger.info(f"Scheduler started (interval: {self.interval}s)")

    def stop(self, timeout: float = 5.0):
        """
        Cancel the ticker

        An in-flight pass gets up to ``timeout`` seconds to finish and is
        otherwise abandoned.
        """
        self._stop_event.set()
        if self._ticker is not None:
            self._ticker.join(timeout=timeout)
            self._ticker = None

        if self._pass_lock.acquire(timeout=timeout):
            self._pass_lock.release()
        else:
            self.logger.warning("Abandoning in-flight pass on shutdown")

        self.logger.info("Scheduler stopped")

    def reset(self):
        """Forget all alert state, as on a restart"""
        with self._pass_lock:
            self.alert_manager.registry.reset()
