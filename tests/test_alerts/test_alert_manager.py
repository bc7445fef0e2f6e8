"""Tests for AlertManager"""

import os
import tempfile

import pytest

from resmon.alerts.alert_evaluator import AlertState
from resmon.alerts.alert_manager import AlertManager, build_channels
from resmon.alerts.alert_rule import MetricConfig
from resmon.alerts.channels.base_channel import BaseChannel
from resmon.alerts.storage.sqlite_storage import SQLiteStorage
from resmon.collectors.snapshot import MetricReading


class RecordingChannel(BaseChannel):
    """Channel that records every message"""

    name = 'recording'

    def __init__(self, result=True):
        self.result = result
        self.sent = []

    def send(self, subject, body):
        self.sent.append((subject, body))
        return self.result


class ExplodingChannel(BaseChannel):
    """Channel whose transport always raises"""

    name = 'exploding'

    def send(self, subject, body):
        raise ConnectionError("smtp down")


def cpu(value):
    return MetricReading('cpu', 'cpu', value)


def disk(fs_id, value):
    return MetricReading(f'disk:{fs_id}', 'disk', value, instance=fs_id)


@pytest.fixture
def metric_configs():
    return {
        'cpu': MetricConfig(metric_type='cpu', threshold=80.0, required_cycles=2),
        'disk': MetricConfig(metric_type='disk', threshold=90.0, required_cycles=1),
        'container_cpu': MetricConfig(metric_type='container_cpu', threshold=80.0,
                                      required_cycles=1, enabled=False),
    }


class TestProcess:
    """Test reading evaluation"""

    def test_raise_after_required_cycles(self, metric_configs):
        """Test that an event is produced on the raising cycle only"""
        manager = AlertManager(metric_configs, hostname='host1')

        assert manager.process(cpu(95)) is None
        event = manager.process(cpu(96))

        assert event is not None
        assert event.transition == 'raised'
        assert event.metric_key == 'cpu'
        assert event.threshold == 80.0
        assert event.consecutive_breaches == 2
        assert event.body == "CPU usage alert: 96.00%"
        assert event.subject.endswith("(host1)")
        assert manager.registry.get('cpu').state == AlertState.ALERTING

    def test_clear_event(self, metric_configs):
        """Test that recovery produces a cleared event"""
        manager = AlertManager(metric_configs)
        manager.process(cpu(95))
        manager.process(cpu(95))

        event = manager.process(cpu(10))

        assert event.transition == 'cleared'
        assert event.body == "CPU usage recovered: 10.00%"
        assert manager.get_active_alert_count() == 0

    def test_unconfigured_type_is_skipped(self, metric_configs):
        """Test that readings without a threshold are ignored"""
        manager = AlertManager(metric_configs)

        assert manager.process(MetricReading('network:eth0', 'network', 5000.0, instance='eth0')) is None
        assert 'network:eth0' not in manager.registry

    def test_disabled_type_is_skipped(self, metric_configs):
        """Test that disabled metric types are not tracked"""
        manager = AlertManager(metric_configs)

        assert manager.process(MetricReading('container_cpu:web', 'container_cpu', 99.0, instance='web')) is None
        assert len(manager.registry) == 0

    def test_keys_do_not_interact(self, metric_configs):
        """Test that driving one key to alerting leaves others unchanged"""
        manager = AlertManager(metric_configs)
        manager.process(disk('/dev/sdb1', 50))
        manager.process(cpu(85))

        event = manager.process(disk('/dev/sda1', 95))

        assert event.metric_key == 'disk:/dev/sda1'
        assert manager.registry.get('disk:/dev/sdb1').consecutive_breaches == 0
        assert manager.registry.get('cpu').consecutive_breaches == 1
        assert manager.registry.alerting_keys() == ['disk:/dev/sda1']

    def test_active_alert_count(self, metric_configs):
        """Test counting keys that are currently alerting"""
        manager = AlertManager(metric_configs)
        manager.process(disk('/dev/sda1', 95))
        manager.process(disk('/dev/sdb1', 95))

        assert manager.get_active_alert_count() == 2

        manager.process(disk('/dev/sda1', 10))

        assert manager.get_active_alert_count() == 1


class TestDispatch:
    """Test notification dispatch"""

    def test_dispatch_to_all_channels(self, metric_configs):
        """Test that every channel receives the message"""
        first, second = RecordingChannel(), RecordingChannel()
        manager = AlertManager(metric_configs, channels=[first, second])
        event = manager.process(disk('/dev/sda1', 95))

        assert manager.dispatch(event) is True
        assert first.sent == [(event.subject, event.body)]
        assert second.sent == [(event.subject, event.body)]
        assert event.notified is True

    def test_channel_failure_does_not_roll_back(self, metric_configs):
        """Test that a failing channel neither raises nor reverts state"""
        recorder = RecordingChannel()
        manager = AlertManager(metric_configs, channels=[ExplodingChannel(), recorder])
        event = manager.process(disk('/dev/sda1', 95))

        assert manager.dispatch(event) is True
        assert len(recorder.sent) == 1
        assert manager.registry.get('disk:/dev/sda1').state == AlertState.ALERTING

    def test_all_channels_fail(self, metric_configs):
        """Test that dispatch reports failure when nothing was delivered"""
        manager = AlertManager(metric_configs, channels=[RecordingChannel(result=False)])
        event = manager.process(disk('/dev/sda1', 95))

        assert manager.dispatch(event) is False
        assert event.notified is False
        assert manager.registry.get('disk:/dev/sda1').state == AlertState.ALERTING

    def test_dispatch_records_history(self, metric_configs):
        """Test that events are saved to history storage"""
        temp_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        temp_db.close()
        storage = SQLiteStorage({'sqlite_path': temp_db.name})

        try:
            manager = AlertManager(metric_configs, channels=[RecordingChannel()], storage=storage)
            event = manager.process(disk('/dev/sda1', 95))
            manager.dispatch(event)

            rows = storage.conn.execute(
                "SELECT transition, notified FROM alert_events WHERE metric_key = ?",
                ('disk:/dev/sda1',),
            ).fetchall()
            assert [tuple(row) for row in rows] == [('raised', 1)]
        finally:
            storage.close()
            os.unlink(temp_db.name)

    def test_storage_failure_is_logged(self, metric_configs):
        """Test that a closed storage does not break dispatch"""
        temp_db = tempfile.NamedTemporaryFile(delete=False, suffix='.db')
        temp_db.close()
        storage = SQLiteStorage({'sqlite_path': temp_db.name})
        storage.close()

        try:
            manager = AlertManager(metric_configs, channels=[RecordingChannel()], storage=storage)
            event = manager.process(disk('/dev/sda1', 95))

            assert manager.dispatch(event) is True
        finally:
            os.unlink(temp_db.name)


class TestBuildChannels:
    """Test channel construction from config"""

    def test_no_channels(self):
        assert build_channels({'email': {'enabled': False}}) == []

    def test_enabled_channels(self):
        channels = build_channels({
            'email': {
                'enabled': True,
                'smtp_host': 'smtp.example.com',
                'from_address': 'monitor@example.com',
                'to_addresses': ['ops@example.com'],
            },
            'webhook': {'enabled': True, 'url': 'http://hooks.example.com/alert'},
        })

        assert [c.name for c in channels] == ['email', 'webhook']
