"""Tests for the Sampler"""

import threading

import pytest

from resmon.collectors.base import BaseCollector
from resmon.collectors.sampler import Sampler, build_collectors
from resmon.collectors.snapshot import MemoryUsage
from resmon.errors import SamplerError, SamplerInitError


class StaticCollector(BaseCollector):
    """Collector returning a fixed value"""

    def __init__(self, field_name, value):
        super().__init__({})
        self.field_name = field_name
        self.value = value

    def collect(self):
        return self.value

    def get_name(self):
        return self.field_name


class FailingCollector(StaticCollector):
    """Collector whose query always raises"""

    def __init__(self, field_name):
        super().__init__(field_name, None)

    def collect(self):
        raise OSError("query failed")


class BlockingCollector(StaticCollector):
    """Collector that waits until released"""

    def __init__(self, field_name, value):
        super().__init__(field_name, value)
        self.release = threading.Event()

    def collect(self):
        self.release.wait(5)
        return self.value


class BrokenInitCollector(StaticCollector):

    def initialize(self):
        raise RuntimeError("no permissions")


class TestSampler:
    """Test snapshot assembly"""

    def test_sample_all_fields(self):
        sampler = Sampler([
            StaticCollector('cpu_percent', 12.0),
            StaticCollector('memory', MemoryUsage(1, 2)),
            StaticCollector('disks', []),
        ])

        snapshot = sampler.sample()
        sampler.shutdown()

        assert snapshot.cpu_percent == 12.0
        assert snapshot.memory == MemoryUsage(1, 2)
        assert snapshot.disks == []
        assert snapshot.network is None

    def test_partial_failure(self):
        """Test that a failed sub-query leaves only its field absent"""
        failing = FailingCollector('memory')
        sampler = Sampler([StaticCollector('cpu_percent', 50.0), failing])

        snapshot = sampler.sample()
        sampler.shutdown()

        assert snapshot.cpu_percent == 50.0
        assert snapshot.memory is None
        assert failing.error_count == 1

    def test_all_collectors_fail(self):
        """Test that an empty snapshot is a sampler error"""
        sampler = Sampler([FailingCollector('cpu_percent'), FailingCollector('memory')])

        with pytest.raises(SamplerError):
            sampler.sample()
        sampler.shutdown()

    def test_slow_collector_times_out(self):
        """Test that a straggler is left out and skipped on the next cycle"""
        slow = BlockingCollector('memory', MemoryUsage(1, 2))
        sampler = Sampler([StaticCollector('cpu_percent', 5.0), slow], timeout=0.1)

        first = sampler.sample()
        second = sampler.sample()
        slow.release.set()
        sampler.shutdown()

        assert first.memory is None
        assert second.memory is None
        assert second.cpu_percent == 5.0

    def test_no_collectors(self):
        with pytest.raises(SamplerInitError):
            Sampler([])

    def test_initialize_failure(self):
        """Test that collector startup errors are wrapped"""
        sampler = Sampler([BrokenInitCollector('cpu_percent', 1.0)])

        with pytest.raises(SamplerInitError, match="no permissions"):
            sampler.initialize()
        sampler.shutdown()


class TestBuildCollectors:
    """Test collector construction from config"""

    def test_only_enabled(self):
        collectors = build_collectors({
            'cpu': {'enabled': True},
            'memory': {'enabled': False},
            'containers': {'enabled': True, 'runtime': 'podman'},
        })

        assert [c.field_name for c in collectors] == ['cpu_percent', 'containers']
        assert collectors[1].runtime == 'podman'

    def test_interval_passed_to_collectors(self):
        collectors = build_collectors({'network': {'enabled': True}}, interval=30)

        assert collectors[0].interval == 30
