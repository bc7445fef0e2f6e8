"""
Base storage interface for alert transition history.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict

@dataclass
class AlertEvent:
    """A committed Raised or Cleared transition"""
    metric_key: str
    metric_type: str
    transition: str
    value: float
    threshold: float
    consecutive_breaches: int
    subject: str
    body: str
    occurred_at: datetime = field(default_factory=datetime.now)
    notified: bool = False

    def to_dict(self) -> Dict:
        """Convert to dictionary for storage"""
        return {
            'metric_key': self.metric_key,
            'metric_type': self.metric_type,
            'transition': self.transition,
            'value': self.value,
            'threshold': self.threshold,
            'consecutive_breaches': self.consecutive_breaches,
            'subject': self.subject,
            'body': self.body,
            'occurred_at': self.occurred_at.isoformat(),
            'notified': int(self.notified),
        }


class BaseStorage(ABC):
    """Abstract base class for alert history backends"""

    retention_days = 30

    @abstractmethod
    def save_event(self, event: AlertEvent) -> None:
        """
        Append a transition to the history.

        Args:
            event: AlertEvent to save
        """
        pass

    @abstractmethod
    def cleanup_old_events(self, days: int) -> int:
        """
        Delete events older than specified days.

        Args:
            days: Number of days to retain

        Returns:
            Number of events deleted
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection and cleanup resources"""
        pass
