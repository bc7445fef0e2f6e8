"""
Subject/body construction for alert transitions.
"""

from dataclasses import dataclass
from typing import Optional

from resmon.alerts.alert_evaluator import Transition

APP_NAME = 'Resmon'

TITLES = {
    'cpu': 'CPU',
    'memory': 'Memory',
    'disk': 'Disk',
    'network': 'Network',
    'container_cpu': 'Container CPU',
    'container_memory': 'Container Memory',
}

RAISED_MARKER = '🚨'
CLEARED_MARKER = '✅'


@dataclass
class AlertMessage:
    subject: str
    body: str


def build_subject(metric_type: str, transition: Transition, hostname: Optional[str] = None) -> str:
    """Subject line; raised and cleared carry distinct markers"""
    title = TITLES.get(metric_type, metric_type.capitalize())
    if transition == Transition.RAISED:
        subject = f"[{RAISED_MARKER} {APP_NAME} Alert - {title} Usage Exceeded Threshold]"
    else:
        subject = f"[{CLEARED_MARKER} {APP_NAME} Alert - {title} Usage Recovered]"

    if hostname:
        subject = f"{subject} ({hostname})"
    return subject


def build_body(metric_type: str, transition: Transition, value: float,
               instance: Optional[str] = None, used: Optional[float] = None,
               total: Optional[float] = None) -> str:
    """
    Body line for a transition.

    Args:
        metric_type: Metric type of the key
        transition: RAISED or CLEARED
        value: Value that caused the transition
        instance: Filesystem, interface or container name
        used: Used amount (GB for memory, MB for container memory)
        total: Total amount in the same unit as ``used``

    Returns:
        e.g. ``Memory usage alert: 85.00% (6.80 GB / 8.00 GB)``
    """
    word = 'alert' if transition == Transition.RAISED else 'recovered'

    if metric_type == 'cpu':
        return f"CPU usage {word}: {value:.2f}%"
    if metric_type == 'memory':
        return f"Memory usage {word}: {value:.2f}%{_amounts(used, total, 'GB')}"
    if metric_type == 'disk':
        return f"Disk usage {word} ({instance}): {value:.2f}%"
    if metric_type == 'network':
        return f"Network traffic {word} ({instance}): Usage {value:.2f} MB"
    if metric_type == 'container_cpu':
        return f"Container CPU usage {word} ({instance}): {value:.2f}%"
    if metric_type == 'container_memory':
        return f"Container memory usage {word} ({instance}): {value:.2f}%{_amounts(used, total, 'MB')}"
    return f"{metric_type} usage {word}: {value:.2f}%"


def _amounts(used, total, unit):
    if used is None or total is None:
        return ''
    return f" ({used:.2f} {unit} / {total:.2f} {unit})"


def build_message(reading, transition: Transition, hostname: Optional[str] = None) -> AlertMessage:
    """Build the notification for a reading that caused a transition"""
    return AlertMessage(
        subject=build_subject(reading.metric_type, transition, hostname),
        body=build_body(
            reading.metric_type,
            transition,
            reading.value,
            instance=reading.instance,
            used=reading.used,
            total=reading.total,
        ),
    )
