"""CPU metrics collector"""

import psutil
from resmon.collectors.base import BaseCollector


class CPUCollector(BaseCollector):
    """Collector for overall CPU usage"""

    field_name = 'cpu_percent'

    def initialize(self):
        """Prime psutil's CPU accounting so the first reading is meaningful"""
        psutil.cpu_percent(interval=None)

    def collect(self):
        """Collect CPU usage percentage"""
        cpu_percent = psutil.cpu_percent(interval=self.config.get('sample_interval', 0.1))

        self.logger.debug(f"Collected CPU metrics: {cpu_percent:.1f}% used")
        return float(cpu_percent)
