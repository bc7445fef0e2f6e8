"""
SQLite storage backend for alert transition history.
"""

import sqlite3
import logging
import threading
from datetime import datetime, timedelta
from typing import Dict
from pathlib import Path

from resmon.alerts.storage.base_storage import BaseStorage, AlertEvent

logger = logging.getLogger(__name__)

class SQLiteStorage(BaseStorage):
    """SQLite implementation of alert history"""

    def __init__(self, config: Dict):
        """
        Initialize SQLite storage.

        Args:
            config: Storage configuration dict with 'sqlite_path' key
        """
        self.db_path = config.get('sqlite_path', './data/alerts.db')
        self.retention_days = config.get('retention_days', 30)
        self._lock = threading.Lock()

        # Ensure directory exists
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        # Initialize database
        self.conn = None
        self._init_db()

        logger.info(f"Initialized SQLite storage at {self.db_path}")

    def _init_db(self):
        """Create database tables and indexes"""
        self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row

        # Enable WAL mode for better concurrency
        self.conn.execute("PRAGMA journal_mode=WAL")

        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS alert_events (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                metric_key VARCHAR(255) NOT NULL,
                metric_type VARCHAR(32) NOT NULL,
                transition VARCHAR(16) NOT NULL,
                value REAL,
                threshold REAL,
                consecutive_breaches INTEGER,
                subject TEXT,
                body TEXT,
                notified INTEGER DEFAULT 0,
                occurred_at TIMESTAMP NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_metric_key ON alert_events(metric_key)"
        )
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_occurred_at ON alert_events(occurred_at)"
        )

        self.conn.commit()

    def save_event(self, event: AlertEvent) -> None:
        """Append a transition"""
        data = event.to_dict()

        with self._lock:
            try:
                self.conn.execute("""
                    INSERT INTO alert_events (
                        metric_key, metric_type, transition, value, threshold,
                        consecutive_breaches, subject, body, notified, occurred_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, (
                    data['metric_key'],
                    data['metric_type'],
                    data['transition'],
                    data['value'],
                    data['threshold'],
                    data['consecutive_breaches'],
                    data['subject'],
                    data['body'],
                    data['notified'],
                    data['occurred_at'],
                ))

                self.conn.commit()
                logger.debug(f"Saved {event.transition} event for {event.metric_key}")

            except sqlite3.Error as e:
                logger.error(f"Failed to save event for {event.metric_key}: {e}")
                self.conn.rollback()
                raise

    def cleanup_old_events(self, days: int) -> int:
        """Delete events older than specified days"""
        cutoff_date = datetime.now() - timedelta(days=days)

        with self._lock:
            try:
                cursor = self.conn.execute("""
                    DELETE FROM alert_events
                    WHERE occurred_at < ?
                """, (cutoff_date.isoformat(),))

                deleted_count = cursor.rowcount
                self.conn.commit()

                if deleted_count > 0:
                    logger.info(f"Cleaned up {deleted_count} old alert events (>{days} days)")

                return deleted_count

            except sqlite3.Error as e:
                logger.error(f"Failed to cleanup old alert events: {e}")
                self.conn.rollback()
                return 0

    def close(self) -> None:
        """Close database connection"""
        if self.conn:
            try:
                self.conn.close()
                logger.debug("Closed SQLite connection")
            except sqlite3.Error as e:
                logger.error(f"Error closing SQLite connection: {e}")
