"""Sampler composing the resource collectors into one snapshot per cycle"""

from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Dict, List

from resmon.collectors.base import BaseCollector
from resmon.collectors.container_collector import ContainerCollector
from resmon.collectors.cpu_collector import CPUCollector
from resmon.collectors.disk_collector import DiskCollector
from resmon.collectors.memory_collector import MemoryCollector
from resmon.collectors.network_collector import NetworkCollector
from resmon.collectors.snapshot import Snapshot
from resmon.errors import SamplerError, SamplerInitError
from resmon.utils.logger import get_logger

COLLECTOR_CLASSES = {
    'cpu': CPUCollector,
    'memory': MemoryCollector,
    'disk': DiskCollector,
    'network': NetworkCollector,
    'containers': ContainerCollector,
}


def build_collectors(collectors_config: Dict[str, Any], interval: float = None) -> List[BaseCollector]:
    """
    Instantiate every enabled collector

    Args:
        collectors_config: The ``collectors`` section of the configuration
        interval: Sampling interval in seconds, passed to each collector

    Returns:
        List of collectors, in a stable order
    """
    logger = get_logger('Sampler')
    collectors = []

    for collector_name, collector_class in COLLECTOR_CLASSES.items():
        collector_config = dict(collectors_config.get(collector_name, {}))
        if interval is not None:
            collector_config.setdefault('interval', interval)

        if collector_config.get('enabled', False):
            collectors.append(collector_class(collector_config))
            logger.info(f"Initialized {collector_name} collector")

    return collectors


class Sampler:
    """Fans out one query per collector and joins them into a Snapshot"""

    def __init__(self, collectors: List[BaseCollector], timeout: float = 30):
        """
        Initialize sampler

        Args:
            collectors: Collectors to query each cycle
            timeout: Seconds to wait for all collectors before giving up on stragglers
        """
        if not collectors:
            raise SamplerInitError("No collectors enabled! Check your configuration.")

        self.collectors = collectors
        self.timeout = timeout
        self.logger = get_logger(self.__class__.__name__)
        self._executor = ThreadPoolExecutor(
            max_workers=len(collectors),
            thread_name_prefix='collector',
        )
        self._pending: Dict[str, Future] = {}

    def initialize(self):
        """
        Initialize every collector before the first cycle

        Raises:
            SamplerInitError: If a collector cannot be initialized
        """
        for collector in self.collectors:
            try:
                collector.initialize()
            except SamplerInitError:
                raise
            except Exception as e:
                raise SamplerInitError(f"Failed to initialize {collector.get_name()} collector: {e}") from e

    def sample(self) -> Snapshot:
        """
        Take one snapshot

        Collectors run concurrently; one that fails or exceeds the timeout
        leaves its snapshot field as None.

        Returns:
            Snapshot for this cycle

        Raises:
            SamplerError: If no collector produced a reading
        """
        futures = {}
        for collector in self.collectors:
            name = collector.get_name()
            previous = self._pending.get(name)
            if previous is not None and not previous.done():
                self.logger.warning(f"{name} collector still running from a previous cycle, skipping")
                continue
            futures[name] = (collector, self._executor.submit(collector.run_collection))
            self._pending[name] = futures[name][1]

        wait([future for _, future in futures.values()], timeout=self.timeout)

        snapshot = Snapshot()
        for name, (collector, future) in futures.items():
            if not future.done():
                self.logger.warning(f"{name} collector timed out after {self.timeout}s")
                continue

            result = future.result()
            if result is not None:
                setattr(snapshot, collector.field_name, result)

            if not collector.is_healthy():
                self.logger.warning(
                    f"{name} collector is unhealthy "
                    f"(failed {collector.error_count} consecutive times)"
                )

        if snapshot.is_empty():
            raise SamplerError("All collectors failed; no snapshot for this cycle")

        return snapshot

    def shutdown(self):
        """Stop the worker pool without waiting for stragglers"""
        self._executor.shutdown(wait=False)
