"""Memory metrics collector"""

import psutil
from resmon.collectors.base import BaseCollector
from resmon.collectors.snapshot import MemoryUsage


class MemoryCollector(BaseCollector):
    """Collector for physical memory usage"""

    field_name = 'memory'

    def collect(self):
        """Collect memory usage"""
        vm = psutil.virtual_memory()

        self.logger.debug(f"Collected memory metrics: {vm.used} / {vm.total} bytes used")
        return MemoryUsage(used_bytes=vm.used, total_bytes=vm.total)
