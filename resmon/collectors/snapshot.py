"""Snapshot of one sampling cycle and its projection to metric readings"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from resmon.alerts.alert_rule import metric_key
from resmon.utils.helpers import bytes_to_gb, bytes_to_mb, is_valid_reading, percent_of

logger = logging.getLogger(__name__)


@dataclass
class MemoryUsage:
    used_bytes: int
    total_bytes: int


@dataclass
class DiskUsage:
    fs_id: str
    used_bytes: int
    size_bytes: int


@dataclass
class NetworkTraffic:
    """Bytes moved on one interface, normalized to one sampling interval"""
    iface_id: str
    tx_bytes: int
    rx_bytes: int


@dataclass
class ContainerUsage:
    name: str
    cpu_percent: float
    mem_used_bytes: int
    mem_limit_bytes: int


@dataclass
class MetricReading:
    """A single value to evaluate, with its key and display context"""
    key: str
    metric_type: str
    value: float
    instance: Optional[str] = None
    used: Optional[float] = None
    total: Optional[float] = None


def _cpu_readings(cpu_percent):
    return [MetricReading(metric_key('cpu'), 'cpu', cpu_percent)]


def _memory_readings(memory):
    percent = percent_of(memory.used_bytes, memory.total_bytes)
    if percent is None:
        return []
    return [MetricReading(
        metric_key('memory'), 'memory', percent,
        used=bytes_to_gb(memory.used_bytes),
        total=bytes_to_gb(memory.total_bytes),
    )]


def _disk_readings(disk):
    percent = percent_of(disk.used_bytes, disk.size_bytes)
    if percent is None:
        logger.debug(f"Skipping zero-sized filesystem {disk.fs_id}")
        return []
    return [MetricReading(
        metric_key('disk', disk.fs_id), 'disk', percent,
        instance=disk.fs_id,
        used=bytes_to_gb(disk.used_bytes),
        total=bytes_to_gb(disk.size_bytes),
    )]


def _network_readings(iface):
    # Larger direction of traffic, in MB per interval
    traffic_mb = bytes_to_mb(max(iface.tx_bytes, iface.rx_bytes))
    return [MetricReading(
        metric_key('network', iface.iface_id), 'network', traffic_mb,
        instance=iface.iface_id,
    )]


def _container_readings(container):
    readings = [MetricReading(
        metric_key('container_cpu', container.name), 'container_cpu', container.cpu_percent,
        instance=container.name,
    )]
    mem_percent = percent_of(container.mem_used_bytes, container.mem_limit_bytes)
    if mem_percent is not None:
        readings.append(MetricReading(
            metric_key('container_memory', container.name), 'container_memory', mem_percent,
            instance=container.name,
            used=bytes_to_mb(container.mem_used_bytes),
            total=bytes_to_mb(container.mem_limit_bytes),
        ))
    return readings


@dataclass
class Snapshot:
    """Readings taken in one cycle; None marks a sub-query that failed"""
    cpu_percent: Optional[float] = None
    memory: Optional[MemoryUsage] = None
    disks: Optional[List[DiskUsage]] = None
    network: Optional[List[NetworkTraffic]] = None
    containers: Optional[List[ContainerUsage]] = None
    taken_at: datetime = field(default_factory=datetime.now)

    def is_empty(self) -> bool:
        return all(
            part is None
            for part in (self.cpu_percent, self.memory, self.disks, self.network, self.containers)
        )

    def _entries(self):
        if self.cpu_percent is not None:
            yield 'cpu', _cpu_readings, self.cpu_percent
        if self.memory is not None:
            yield 'memory', _memory_readings, self.memory
        for disk in self.disks or []:
            yield 'disk', _disk_readings, disk
        for iface in self.network or []:
            yield 'network', _network_readings, iface
        for container in self.containers or []:
            yield 'container', _container_readings, container

    def readings(self) -> List[MetricReading]:
        """
        Project the snapshot to evaluable readings.

        Memory used/total are reported in GB, container memory in MB.
        A malformed entry is logged and skipped without affecting the
        others. Readings that are not finite and non-negative are dropped.
        """
        valid = []
        for source, project, entry in self._entries():
            try:
                projected = project(entry)
            except Exception as e:
                logger.warning(f"Skipping malformed {source} entry {entry!r}: {e}")
                continue

            for reading in projected:
                if is_valid_reading(reading.value):
                    valid.append(reading)
                else:
                    logger.debug(f"Dropping invalid reading for {reading.key}: {reading.value!r}")
        return valid
