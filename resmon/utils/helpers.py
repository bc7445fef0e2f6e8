"""Utility helper functions"""

import math
import socket
import platform

BYTES_PER_MB = 1024 * 1024
BYTES_PER_GB = 1024 * 1024 * 1024


def get_hostname():
    """Get system hostname"""
    try:
        return socket.gethostname()
    except OSError:
        return platform.node() or "unknown"


def bytes_to_mb(bytes_value):
    """Convert a byte count to megabytes (MiB)"""
    return bytes_value / BYTES_PER_MB


def bytes_to_gb(bytes_value):
    """Convert a byte count to gigabytes (GiB)"""
    return bytes_value / BYTES_PER_GB


def safe_divide(a, b, default=0.0):
    """Safely divide two numbers, returning default if division by zero"""
    try:
        if b == 0:
            return default
        return a / b
    except (TypeError, ZeroDivisionError):
        return default


def percent_of(part, whole):
    """Percentage of part in whole, or None when whole is empty"""
    if not whole:
        return None
    return safe_divide(part, whole) * 100


def counter_delta(current, previous):
    """Difference between two monotonic counter readings.

    A counter that went backwards (interface reset, wrap-around) is treated
    as having restarted from zero.
    """
    if previous is None:
        return 0
    delta = current - previous
    if delta < 0:
        delta = current
    return delta


def is_valid_reading(value):
    """True for finite, non-negative numbers"""
    try:
        return math.isfinite(value) and value >= 0
    except TypeError:
        return False


def resolve_hostname(agent_config):
    """Configured hostname, or the system hostname when set to 'auto'"""
    hostname = agent_config.get('hostname', 'auto')
    if not hostname or hostname == 'auto':
        return get_hostname()
    return hostname
