"""
Base notification channel interface.
"""

from abc import ABC, abstractmethod
import logging

logger = logging.getLogger(__name__)


class BaseChannel(ABC):
    """Abstract base class for notification channels"""

    name = 'base'

    @abstractmethod
    def send(self, subject: str, body: str) -> bool:
        """
        Send a notification.

        Args:
            subject: Subject line
            body: Message body

        Returns:
            True if notification sent successfully, False otherwise
        """
        pass

    def notify(self, subject: str, body: str) -> bool:
        """
        Best-effort send; errors are logged and never raised.

        Args:
            subject: Subject line
            body: Message body

        Returns:
            True if notification sent successfully, False otherwise
        """
        try:
            return bool(self.send(subject, body))
        except Exception as e:
            logger.error(f"Error sending notification via {self.name}: {e}", exc_info=True)
            return False
