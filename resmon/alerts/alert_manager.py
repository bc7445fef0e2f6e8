"""
Alert manager for tracking per-metric alert state and sending notifications.
"""

import logging
from typing import Dict, List, Optional

from resmon.alerts.alert_evaluator import Transition, evaluate
from resmon.alerts.alert_message import build_message
from resmon.alerts.alert_registry import AlertRegistry
from resmon.alerts.alert_rule import MetricConfig
from resmon.alerts.channels.base_channel import BaseChannel
from resmon.alerts.storage.base_storage import AlertEvent, BaseStorage

logger = logging.getLogger(__name__)


def build_channels(channel_config: Dict) -> List[BaseChannel]:
    """Initialize notification channels based on config"""
    channels = []

    if channel_config.get('email', {}).get('enabled', False):
        from resmon.alerts.channels.email_channel import EmailChannel
        channels.append(EmailChannel(channel_config['email']))

    if channel_config.get('slack', {}).get('enabled', False):
        from resmon.alerts.channels.slack_channel import SlackChannel
        channels.append(SlackChannel(channel_config['slack']))

    if channel_config.get('webhook', {}).get('enabled', False):
        from resmon.alerts.channels.webhook_channel import WebhookChannel
        channels.append(WebhookChannel(channel_config['webhook']))

    if not channels:
        logger.warning("No notification channels enabled")

    return channels


class AlertManager:
    """Runs readings through the hysteresis evaluator and announces transitions"""

    def __init__(self, metric_configs: Dict[str, MetricConfig],
                 channels: Optional[List[BaseChannel]] = None,
                 storage: Optional[BaseStorage] = None,
                 hostname: Optional[str] = None,
                 registry: Optional[AlertRegistry] = None):
        """
        Initialize alert manager.

        Args:
            metric_configs: Threshold settings keyed by metric type
            channels: Notification channels to dispatch through
            storage: Optional transition history backend
            hostname: Host name appended to notification subjects
            registry: Alert state registry; a new one is created if omitted
        """
        self.metric_configs = metric_configs
        self.channels = channels or []
        self.storage = storage
        self.hostname = hostname
        self.registry = registry if registry is not None else AlertRegistry()

        logger.info(f"Alert manager initialized with {len(self.channels)} channels")

    def process(self, reading) -> Optional[AlertEvent]:
        """
        Evaluate one reading and commit the resulting state.

        Args:
            reading: MetricReading for this cycle

        Returns:
            AlertEvent if the reading raised or cleared the key, else None
        """
        config = self.metric_configs.get(reading.metric_type)
        if config is None or not config.enabled:
            return None

        record = self.registry.get_or_create(reading.key)
        updated, transition = evaluate(reading.key, reading.value, config, record)
        self.registry.update(reading.key, updated)

        if transition == Transition.NONE:
            return None

        message = build_message(reading, transition, self.hostname)

        if transition == Transition.RAISED:
            logger.warning(f"Alert raised: {reading.key} ({message.body})")
        else:
            logger.info(f"Alert cleared: {reading.key} ({message.body})")

        return AlertEvent(
            metric_key=reading.key,
            metric_type=reading.metric_type,
            transition=transition.value,
            value=reading.value,
            threshold=config.threshold,
            consecutive_breaches=updated.consecutive_breaches,
            subject=message.subject,
            body=message.body,
        )

    def dispatch(self, event: AlertEvent) -> bool:
        """
        Send an event through every channel and record it.

        Channel and storage failures are logged; the committed alert
        state is never rolled back.

        Args:
            event: Event returned by process()

        Returns:
            True if at least one channel delivered the notification
        """
        logger.info(f"Sending notifications for {event.metric_key}: {event.subject}")

        for channel in self.channels:
            if channel.notify(event.subject, event.body):
                event.notified = True
                logger.debug(f"Sent notification via {channel.name} for {event.metric_key}")
            else:
                logger.error(f"Failed to send notification via {channel.name} for {event.metric_key}")

        if self.storage is not None:
            try:
                self.storage.save_event(event)
            except Exception as e:
                logger.error(f"Failed to record alert event for {event.metric_key}: {e}")

        return event.notified

    def get_active_alert_count(self) -> int:
        """Get count of keys currently alerting"""
        return len(self.registry.alerting_keys())

    def cleanup_old_events(self) -> None:
        """Cleanup old events from history storage"""
        if self.storage is None:
            return
        try:
            self.storage.cleanup_old_events(self.storage.retention_days)
        except Exception as e:
            logger.error(f"Failed to cleanup old alert events: {e}")

    def shutdown(self) -> None:
        """Shutdown alert manager and cleanup resources"""
        logger.info("Shutting down alert manager")

        if self.storage is not None:
            self.storage.close()
