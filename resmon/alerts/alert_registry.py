"""
In-memory registry of per-metric alert state.
"""

import logging
from typing import Dict, Iterator, List, Optional, Tuple

from resmon.alerts.alert_evaluator import AlertRecord

logger = logging.getLogger(__name__)


class AlertRegistry:
    """Holds exactly one AlertRecord per metric key.

    Records are created lazily on first access and never evicted; a key
    that stops being sampled keeps its last state. The registry is not
    locked: the scheduler guarantees a single writer.
    """

    def __init__(self):
        self._records: Dict[str, AlertRecord] = {}

    def get_or_create(self, key: str) -> AlertRecord:
        """
        Get the record for a key, creating a Normal one on first access.

        Args:
            key: Metric key

        Returns:
            The stored AlertRecord instance
        """
        record = self._records.get(key)
        if record is None:
            record = AlertRecord()
            self._records[key] = record
            logger.debug(f"Tracking new metric key: {key}")
        return record

    def get(self, key: str) -> Optional[AlertRecord]:
        """Get the record for a key without creating it"""
        return self._records.get(key)

    def update(self, key: str, record: AlertRecord) -> None:
        """Commit the new state for a key"""
        self._records[key] = record

    def reset(self) -> None:
        """Forget all alert state"""
        count = len(self._records)
        self._records.clear()
        logger.info(f"Alert registry reset ({count} keys cleared)")

    def alerting_keys(self) -> List[str]:
        """Keys currently in Alerting state, sorted"""
        return sorted(key for key, record in self._records.items() if record.is_alerting)

    def items(self) -> Iterator[Tuple[str, AlertRecord]]:
        return iter(list(self._records.items()))

    def __contains__(self, key: str) -> bool:
        return key in self._records

    def __len__(self) -> int:
        return len(self._records)
