"""Network metrics collector"""

import socket
import time
import psutil
from typing import Dict, Iterable, List

from resmon.collectors.base import BaseCollector
from resmon.collectors.snapshot import NetworkTraffic
from resmon.errors import SamplerInitError
from resmon.utils.helpers import counter_delta

ADDRESS_FAMILIES = (socket.AF_INET, socket.AF_INET6)

# Deltas spanning less than this share of an interval are not scaled up
MIN_ELAPSED_FRACTION = 0.5


class NetworkCollector(BaseCollector):
    """Collector for per-interface traffic, normalized to one interval"""

    field_name = 'network'

    def __init__(self, config):
        super().__init__(config)
        self.interval = config.get('interval', 60)
        # Previous cumulative counters and when they were read
        self.prev_net_counters: Dict[str, Dict[str, float]] = {}
        self.interfaces: List[str] = []

    def initialize(self):
        """
        Enumerate monitored interfaces and prime traffic counters

        Raises:
            SamplerInitError: If interfaces cannot be enumerated
        """
        try:
            addresses = psutil.net_if_addrs()
            io_counters = psutil.net_io_counters(pernic=True)
        except (OSError, RuntimeError) as e:
            raise SamplerInitError(f"Cannot enumerate network interfaces: {e}") from e

        self.interfaces = [
            name for name, addrs in addresses.items()
            if self._is_monitored(name) and self._has_address(addrs)
        ]

        now = time.monotonic()
        for interface in self.interfaces:
            if interface in io_counters:
                self._remember(interface, io_counters[interface], now)

        self.logger.info(f"Monitoring network interfaces: {', '.join(self.interfaces) or 'none'}")

    def _is_monitored(self, interface: str) -> bool:
        if interface in self.config.get('exclude_interfaces', []):
            return False
        if not self.config.get('include_internal', False) and interface.startswith('lo'):
            return False
        return True

    @staticmethod
    def _has_address(addrs) -> bool:
        return any(addr.family in ADDRESS_FAMILIES for addr in addrs)

    def _discover(self, candidates: Iterable[str]):
        """Start monitoring interfaces that appeared since startup and have an address"""
        try:
            addresses = psutil.net_if_addrs()
        except (OSError, RuntimeError) as e:
            self.logger.warning(f"Cannot check addresses of new interfaces: {e}")
            return

        for interface in candidates:
            if self._has_address(addresses.get(interface, [])):
                self.interfaces.append(interface)
                self.logger.info(f"Discovered network interface {interface}")

    def _remember(self, interface, counters, now):
        self.prev_net_counters[interface] = {
            'bytes_sent': counters.bytes_sent,
            'bytes_recv': counters.bytes_recv,
            'at': now,
        }

    def collect(self):
        """Collect bytes sent/received per interface, scaled to one interval"""
        net_io = psutil.net_io_counters(pernic=True)
        now = time.monotonic()

        candidates = [
            name for name in net_io
            if name not in self.interfaces and self._is_monitored(name)
        ]
        if candidates:
            self._discover(candidates)

        traffic = []
        for interface in self.interfaces:
            counters = net_io.get(interface)
            if counters is None:
                continue

            prev = self.prev_net_counters.get(interface)
            # First reading only establishes the baseline
            if prev is None:
                self._remember(interface, counters, now)
                continue

            elapsed = now - prev['at']
            if elapsed < self.interval * MIN_ELAPSED_FRACTION:
                self.logger.debug(f"Only {elapsed:.3f}s since last reading of {interface}, skipping")
                continue

            scale = self.interval / elapsed
            traffic.append(NetworkTraffic(
                iface_id=interface,
                tx_bytes=int(counter_delta(counters.bytes_sent, prev['bytes_sent']) * scale),
                rx_bytes=int(counter_delta(counters.bytes_recv, prev['bytes_recv']) * scale),
            ))
            self._remember(interface, counters, now)

        self.logger.debug(f"Collected network traffic for {len(traffic)} interfaces")
        return traffic
