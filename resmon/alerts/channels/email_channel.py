"""
Email notification channel using SMTP.
"""

import logging
import smtplib
from email.message import EmailMessage
from typing import Dict

from resmon.alerts.channels.base_channel import BaseChannel

logger = logging.getLogger(__name__)


class EmailChannel(BaseChannel):
    """Email notification channel"""

    name = 'email'

    def __init__(self, config: Dict):
        """
        Initialize email channel.

        Args:
            config: Email configuration dict with SMTP settings and addresses
        """
        self.smtp_host = config['smtp_host']
        self.smtp_port = config.get('smtp_port', 587)
        self.smtp_user = config.get('smtp_user', '')
        self.smtp_password = config.get('smtp_password', '')
        self.use_tls = config.get('use_tls', True)
        self.use_ssl = config.get('use_ssl', False)
        self.timeout = config.get('timeout', 30)
        self.from_address = config['from_address']
        self.to_addresses = list(config['to_addresses'])

        logger.info(f"Email channel initialized ({self.smtp_host}:{self.smtp_port}, "
                    f"{len(self.to_addresses)} recipients)")

    def _build_message(self, subject: str, body: str) -> EmailMessage:
        msg = EmailMessage()
        msg['Subject'] = subject
        msg['From'] = self.from_address
        msg['To'] = ', '.join(self.to_addresses)
        msg.set_content(body)
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=self.timeout)
        return smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=self.timeout)

    def send(self, subject: str, body: str) -> bool:
        """
        Send email notification.

        Args:
            subject: Email subject
            body: Plain text body

        Returns:
            True if sent successfully
        """
        msg = self._build_message(subject, body)

        try:
            with self._connect() as server:
                if self.use_tls and not self.use_ssl:
                    server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg)

            logger.info(f"Alert email sent: {subject}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send alert email '{subject}': {e}")
            return False
