"""
Threshold alerting for the resource monitor.
"""

from resmon.alerts.alert_rule import MetricConfig, load_metric_configs, metric_key
from resmon.alerts.alert_evaluator import AlertRecord, AlertState, Transition, evaluate
from resmon.alerts.alert_registry import AlertRegistry
from resmon.alerts.alert_manager import AlertManager

__all__ = [
    'MetricConfig',
    'load_metric_configs',
    'metric_key',
    'AlertRecord',
    'AlertState',
    'Transition',
    'evaluate',
    'AlertRegistry',
    'AlertManager',
]
