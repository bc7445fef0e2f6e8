"""
Hysteresis evaluation of a metric value against its threshold.

A metric must breach its threshold for ``required_cycles`` consecutive
evaluations before it is raised, but a single non-breaching evaluation
clears it.
"""

import dataclasses
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from resmon.alerts.alert_rule import MetricConfig

logger = logging.getLogger(__name__)


class AlertState(str, Enum):
    """Alert state of a single metric key"""
    NORMAL = 'normal'
    ALERTING = 'alerting'


class Transition(str, Enum):
    """Outcome of one evaluation"""
    NONE = 'none'
    RAISED = 'raised'
    CLEARED = 'cleared'


@dataclass
class AlertRecord:
    """Per-key hysteresis state"""
    consecutive_breaches: int = 0
    state: AlertState = AlertState.NORMAL

    @property
    def is_alerting(self) -> bool:
        return self.state == AlertState.ALERTING


def evaluate(key: str, value: float, config: MetricConfig,
             record: AlertRecord) -> Tuple[AlertRecord, Transition]:
    """
    Evaluate one sampled value for a metric key.

    Args:
        key: Metric key being evaluated (for logging only)
        value: Finite, non-negative sampled value
        config: Threshold settings for the key's metric type
        record: Current state of the key; not modified

    Returns:
        Tuple of (updated record, transition)
    """
    if config.is_breach(value):
        breaches = record.consecutive_breaches + 1

        if breaches == config.required_cycles and record.state == AlertState.NORMAL:
            logger.debug(f"{key}: {value:.2f} > {config.threshold} for {breaches} cycles, raising")
            return AlertRecord(breaches, AlertState.ALERTING), Transition.RAISED

        logger.debug(f"{key}: breach {breaches}/{config.required_cycles} ({value:.2f} > {config.threshold})")
        return dataclasses.replace(record, consecutive_breaches=breaches), Transition.NONE

    if record.state == AlertState.ALERTING:
        logger.debug(f"{key}: {value:.2f} <= {config.threshold}, clearing")
        return AlertRecord(0, AlertState.NORMAL), Transition.CLEARED

    return AlertRecord(0, AlertState.NORMAL), Transition.NONE
