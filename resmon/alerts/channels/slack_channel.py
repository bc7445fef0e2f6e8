"""
Slack notification channel using webhooks.
"""

import logging
from datetime import datetime
from typing import Dict

import requests

from resmon.alerts.channels.base_channel import BaseChannel
from resmon.alerts.alert_message import RAISED_MARKER

logger = logging.getLogger(__name__)

RAISED_COLOR = '#cc0000'
CLEARED_COLOR = '#2eb886'


class SlackChannel(BaseChannel):
    """Slack notification channel via webhooks"""

    name = 'slack'

    def __init__(self, config: Dict):
        """
        Initialize Slack channel.

        Args:
            config: Slack configuration dict with webhook_url
        """
        self.webhook_url = config['webhook_url']
        self.channel = config.get('channel', '#alerts')
        self.username = config.get('username', 'Resmon')
        self.icon_emoji = config.get('icon_emoji', ':rotating_light:')
        self.timeout = config.get('timeout', 10)

        logger.info(f"Slack channel initialized (channel: {self.channel})")

    def send(self, subject: str, body: str) -> bool:
        """
        Send Slack notification.

        Args:
            subject: Attachment title
            body: Attachment text

        Returns:
            True if sent successfully
        """
        payload = self._create_slack_payload(subject, body)

        try:
            response = requests.post(
                self.webhook_url,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout
            )
            response.raise_for_status()

            logger.info(f"Slack notification sent: {subject}")
            return True

        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to send Slack notification '{subject}': {e}")
            return False

    def _create_slack_payload(self, subject: str, body: str) -> Dict:
        """Create Slack webhook payload"""
        raised = RAISED_MARKER in subject

        attachment = {
            "color": RAISED_COLOR if raised else CLEARED_COLOR,
            "title": subject,
            "text": body,
            "footer": "Resmon",
            "ts": int(datetime.now().timestamp()),
        }

        payload = {
            "channel": self.channel,
            "username": self.username,
            "icon_emoji": self.icon_emoji,
            "text": "",
            "attachments": [attachment]
        }

        return payload
