"""
Custom webhook notification channel.
"""

import logging
from datetime import datetime
from typing import Dict

import requests

from resmon.alerts.channels.base_channel import BaseChannel

logger = logging.getLogger(__name__)


class WebhookChannel(BaseChannel):
    """Custom webhook notification channel"""

    name = 'webhook'

    def __init__(self, config: Dict):
        """
        Initialize webhook channel.

        Args:
            config: Webhook configuration dict with url, method, headers
        """
        self.url = config['url']
        self.method = config.get('method', 'POST').upper()
        self.headers = dict(config.get('headers', {}))
        self.timeout = config.get('timeout', 10)

        # Ensure Content-Type is set
        if 'Content-Type' not in self.headers:
            self.headers['Content-Type'] = 'application/json'

        logger.info(f"Webhook channel initialized (url: {self.url}, method: {self.method})")

    def send(self, subject: str, body: str) -> bool:
        """
        Send webhook notification.

        Args:
            subject: Notification subject
            body: Notification body

        Returns:
            True if sent successfully
        """
        if self.method not in ('POST', 'PUT'):
            logger.error(f"Unsupported HTTP method: {self.method}")
            return False

        payload = {
            "subject": subject,
            "body": body,
            "timestamp": datetime.now().isoformat(),
        }

        try:
            response = requests.request(
                self.method,
                self.url,
                json=payload,
                headers=self.headers,
                timeout=self.timeout
            )
            response.raise_for_status()

            logger.info(f"Webhook notification sent: {subject}")
            return True

        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to send webhook notification '{subject}': {e}")
            return False
