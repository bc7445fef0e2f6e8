"""
Metric threshold configuration and metric key helpers.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple
import logging

from resmon.errors import ConfigError

logger = logging.getLogger(__name__)

METRIC_UNITS = {
    'cpu': '%',
    'memory': '%',
    'disk': '%',
    'network': 'MB',
    'container_cpu': '%',
    'container_memory': '%',
}

# Metric types tracked once per host; the rest carry an instance suffix
FIXED_METRIC_TYPES = ('cpu', 'memory')

KEY_SEPARATOR = ':'


@dataclass
class MetricConfig:
    """Threshold settings shared by every key of one metric type"""
    metric_type: str
    threshold: float
    required_cycles: int
    enabled: bool = True

    def __post_init__(self):
        """Validate metric configuration"""
        if self.metric_type not in METRIC_UNITS:
            raise ConfigError(f"Invalid metric type: {self.metric_type}. Must be one of {list(METRIC_UNITS)}")

        if self.threshold < 0:
            raise ConfigError(f"threshold must be >= 0, got {self.threshold}")

        if isinstance(self.required_cycles, bool) or not isinstance(self.required_cycles, int) \
                or self.required_cycles < 1:
            raise ConfigError(f"required_cycles must be an integer >= 1, got {self.required_cycles}")

    @property
    def unit(self) -> str:
        return METRIC_UNITS[self.metric_type]

    def is_breach(self, value: float) -> bool:
        """Strictly above the threshold; equality is not a breach"""
        return value > self.threshold


def metric_key(metric_type: str, instance: Optional[str] = None) -> str:
    """
    Build the stable identifier for a monitored quantity.

    Args:
        metric_type: One of the known metric types
        instance: Filesystem, interface or container name for dynamic types

    Returns:
        ``cpu``/``memory`` for fixed types, ``<type>:<instance>`` otherwise

    Example:
        >>> metric_key('disk', '/dev/sda1')
        'disk:/dev/sda1'
    """
    if metric_type in FIXED_METRIC_TYPES:
        return metric_type
    if not instance:
        raise ValueError(f"Metric type {metric_type} requires an instance name")
    return f"{metric_type}{KEY_SEPARATOR}{instance}"


def parse_metric_key(key: str) -> Tuple[str, Optional[str]]:
    """Split a metric key into (metric_type, instance)"""
    metric_type, sep, instance = key.partition(KEY_SEPARATOR)
    return metric_type, (instance if sep else None)


def load_metric_configs(config: Dict) -> Dict[str, MetricConfig]:
    """
    Build per-type threshold configuration from the loaded settings.

    Args:
        config: Full configuration dictionary

    Returns:
        Mapping of metric type to MetricConfig

    Raises:
        ConfigError: If a threshold entry is invalid
    """
    default_cycles = config['monitor']['required_cycles']
    thresholds = config.get('thresholds', {})

    metric_configs = {}
    for metric_type, settings in thresholds.items():
        try:
            metric_configs[metric_type] = MetricConfig(
                metric_type=metric_type,
                threshold=float(settings['threshold']),
                required_cycles=settings.get('required_cycles') or default_cycles,
                enabled=settings.get('enabled', True),
            )
        except (KeyError, TypeError) as e:
            raise ConfigError(f"Invalid threshold settings for {metric_type}: {e}")

        logger.debug(
            f"Loaded threshold for {metric_type}: > {metric_configs[metric_type].threshold}"
            f"{metric_configs[metric_type].unit} for {metric_configs[metric_type].required_cycles} cycles"
        )

    logger.info(f"Loaded thresholds for {len(metric_configs)} metric types")
    return metric_configs
