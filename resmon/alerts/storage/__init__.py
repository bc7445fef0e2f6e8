"""
Storage backends for alert transition history.
"""

from resmon.alerts.storage.base_storage import BaseStorage, AlertEvent

__all__ = ['BaseStorage', 'AlertEvent']
