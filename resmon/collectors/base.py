"""Base collector abstract class"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional
import time
from resmon.utils.logger import get_logger


class BaseCollector(ABC):
    """Abstract base class for resource collectors"""

    # Snapshot field this collector fills
    field_name = None

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize collector

        Args:
            config: Collector configuration
        """
        self.config = config
        self.logger = get_logger(self.__class__.__name__)
        self.error_count = 0
        self.total_errors = 0
        self.last_success = None
        self.last_collection_duration = 0

    @abstractmethod
    def collect(self):
        """
        Take one reading

        This method should be implemented by subclasses

        Returns:
            Value for this collector's snapshot field
        """
        pass

    def initialize(self):
        """
        Prepare the collector before the first cycle

        Subclasses override this when they need startup state
        """
        pass

    def run_collection(self) -> Optional[Any]:
        """
        Run collection with timing and error handling

        Returns:
            The collected value, or None if collection failed
        """
        start_time = time.time()

        try:
            result = self.collect()
            self.last_success = time.time()
            self.last_collection_duration = time.time() - start_time
            self.error_count = 0

            self.logger.debug(
                f"Collection completed in {self.last_collection_duration:.3f}s"
            )
            return result

        except Exception as e:
            self.error_count += 1
            self.total_errors += 1
            self.last_collection_duration = time.time() - start_time
            self.logger.error(
                f"Collection failed (error #{self.error_count}): {e}",
                exc_info=True
            )
            return None

    def is_healthy(self) -> bool:
        """
        Check if collector is healthy

        Returns:
            True if healthy, False otherwise
        """
        # Collector is unhealthy if it has failed 3 consecutive times
        return self.error_count < 3

    def get_name(self) -> str:
        """
        Get collector name

        Returns:
            Collector name
        """
        return self.__class__.__name__.replace('Collector', '').lower()
