"""Tests for the Scheduler"""

import threading
import time
from unittest import mock

import pytest

from resmon.alerts.alert_evaluator import AlertState
from resmon.alerts.alert_manager import AlertManager
from resmon.alerts.alert_rule import MetricConfig
from resmon.collectors.snapshot import DiskUsage, Snapshot
from resmon.errors import SamplerError
from resmon.scheduler import Scheduler, SchedulerState


class ScriptedSampler:
    """Sampler returning queued snapshots, raising queued errors"""

    def __init__(self, *results):
        self.results = list(results)
        self.collectors = []
        self.calls = 0

    def sample(self):
        self.calls += 1
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class BlockingSampler(ScriptedSampler):
    """Sampler that holds the pass open until released"""

    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def sample(self):
        self.calls += 1
        self.started.set()
        self.release.wait(5)
        return Snapshot(cpu_percent=10.0)


def cpu(value):
    return Snapshot(cpu_percent=value)


@pytest.fixture
def manager():
    return AlertManager({
        'cpu': MetricConfig(metric_type='cpu', threshold=80.0, required_cycles=2),
        'disk': MetricConfig(metric_type='disk', threshold=80.0, required_cycles=1),
    })


class TestRunPass:
    """Test a single pass"""

    def test_pass_raises_alert(self, manager):
        """Test that consecutive breaching passes raise an alert"""
        scheduler = Scheduler(ScriptedSampler(cpu(90), cpu(95)), manager, interval=60)

        assert scheduler.run_pass() is True
        assert manager.registry.alerting_keys() == []
        assert scheduler.run_pass() is True

        assert manager.registry.alerting_keys() == ['cpu']
        assert scheduler.pass_count == 2
        assert scheduler.state == SchedulerState.IDLE

    def test_sampler_failure_leaves_records_untouched(self, manager):
        """Test that a failed snapshot neither advances nor clears alerts"""
        sampler = ScriptedSampler(cpu(90), cpu(95), SamplerError("boom"), cpu(95))
        scheduler = Scheduler(sampler, manager, interval=60)
        scheduler.run_pass()
        scheduler.run_pass()
        before = manager.registry.get('cpu')

        assert scheduler.run_pass() is False

        assert manager.registry.get('cpu') == before
        assert manager.registry.get('cpu').state == AlertState.ALERTING
        assert scheduler.failed_passes == 1
        assert scheduler.state == SchedulerState.IDLE

        scheduler.run_pass()
        assert manager.registry.get('cpu').consecutive_breaches == 3

    def test_sampler_failure_can_propagate(self, manager):
        scheduler = Scheduler(ScriptedSampler(SamplerError("boom")), manager, interval=60)

        with pytest.raises(SamplerError):
            scheduler.run_pass(raise_on_sampler_error=True)
        assert not scheduler.pass_running

    def test_evaluation_error_is_isolated(self, manager):
        """Test that one failing metric does not stop the others"""
        snapshot = Snapshot(
            cpu_percent=99.0,
            disks=[DiskUsage('/dev/sda1', 95, 100)],
        )
        scheduler = Scheduler(ScriptedSampler(snapshot), manager, interval=60)
        original = manager.process

        def flaky(reading):
            if reading.key == 'cpu':
                raise RuntimeError("bad reading")
            return original(reading)

        with mock.patch.object(manager, 'process', side_effect=flaky):
            assert scheduler.run_pass() is True

        assert manager.registry.get('cpu') is None
        assert manager.registry.get('disk:/dev/sda1').state == AlertState.ALERTING

    def test_dispatch_error_is_isolated(self, manager):
        """Test that a notification failure does not roll back state"""
        scheduler = Scheduler(ScriptedSampler(Snapshot(disks=[DiskUsage('/dev/sda1', 95, 100)])),
                              manager, interval=60)

        with mock.patch.object(manager, 'dispatch', side_effect=RuntimeError("smtp down")):
            assert scheduler.run_pass() is True

        assert manager.registry.alerting_keys() == ['disk:/dev/sda1']

    def test_exporter_updated(self, manager):
        exporter = mock.Mock()
        scheduler = Scheduler(ScriptedSampler(Snapshot(disks=[DiskUsage('/dev/sda1', 95, 100)])),
                              manager, interval=60, exporter=exporter)

        scheduler.run_pass()

        exporter.record_transition.assert_called_once()
        exporter.update_alert_metrics.assert_called_once()
        exporter.pass_duration.set.assert_called_once()
        exporter.active_alerts.set.assert_called_once_with(1)

    def test_exporter_error_is_isolated(self, manager):
        """Test that a failing exporter does not stop the other notifications"""
        exporter = mock.Mock()
        exporter.record_transition.side_effect = ValueError("bad label")
        snapshot = Snapshot(disks=[DiskUsage('/dev/sda1', 95, 100), DiskUsage('/dev/sdb1', 95, 100)])
        scheduler = Scheduler(ScriptedSampler(snapshot), manager, interval=60, exporter=exporter)

        with mock.patch.object(manager, 'dispatch') as dispatch:
            assert scheduler.run_pass() is True

        assert dispatch.call_count == 2
        assert exporter.record_transition.call_count == 2

    def test_malformed_entry_is_isolated(self, manager):
        """Test that a bad snapshot entry does not stop the other metrics"""
        snapshot = Snapshot(cpu_percent=99.0, disks=[DiskUsage('', 95, 100)])
        manager.metric_configs['cpu'] = MetricConfig(metric_type='cpu', threshold=80.0, required_cycles=1)
        scheduler = Scheduler(ScriptedSampler(snapshot), manager, interval=60)

        assert scheduler.run_pass() is True

        assert manager.registry.get('cpu').state == AlertState.ALERTING
        assert len(manager.registry) == 1


class TestOverlap:
    """Test that passes never overlap"""

    def test_tick_dropped_while_pass_running(self, manager):
        """Test that a tick during a pass is dropped, not queued"""
        sampler = BlockingSampler()
        scheduler = Scheduler(sampler, manager, interval=60)
        worker = threading.Thread(target=scheduler.run_pass)
        worker.start()
        assert sampler.started.wait(5)

        assert scheduler.pass_running
        assert scheduler.run_pass() is False
        scheduler._on_tick()

        sampler.release.set()
        worker.join(5)

        assert scheduler.dropped_ticks == 2
        assert sampler.calls == 1
        assert scheduler.pass_count == 1
        assert not scheduler.pass_running

    def test_ticker_runs_passes(self, manager):
        """Test that the ticker fires passes on the interval"""
        sampler = ScriptedSampler(*[cpu(10) for _ in range(50)])
        scheduler = Scheduler(sampler, manager, interval=0.05)

        scheduler.start()
        time.sleep(0.3)
        scheduler.stop()

        assert scheduler.pass_count >= 2


class TestReset:

    def test_reset_clears_alert_state(self, manager):
        scheduler = Scheduler(ScriptedSampler(Snapshot(disks=[DiskUsage('/dev/sda1', 95, 100)])),
                              manager, interval=60)
        scheduler.run_pass()

        scheduler.reset()

        assert manager.registry.alerting_keys() == []
        assert len(manager.registry) == 0
