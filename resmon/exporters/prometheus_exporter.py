"""Prometheus HTTP exporter"""

from prometheus_client import start_http_server, Gauge, Counter
from prometheus_client.core import CollectorRegistry
from resmon.alerts.alert_rule import parse_metric_key
from resmon.utils.logger import get_logger


class PrometheusExporter:
    """Prometheus HTTP server exposing sampled values and alert state"""

    def __init__(self, config):
        """
        Initialize Prometheus exporter

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.logger = get_logger(self.__class__.__name__)

        self.host = config.get('prometheus', {}).get('host', '0.0.0.0')
        self.port = config.get('prometheus', {}).get('port', 9110)

        self.registry = CollectorRegistry()
        self.server = None
        self.server_thread = None
        self.running = False

        self._setup_agent_metrics()
        self._setup_alert_metrics()

    def _setup_agent_metrics(self):
        """Setup agent self-monitoring metrics"""
        self.agent_info = Gauge(
            'resmon_agent_info',
            'Agent information',
            ['version', 'hostname'],
            registry=self.registry
        )

        self.collector_last_success = Gauge(
            'resmon_collector_last_success_timestamp',
            'Last successful collection timestamp',
            ['collector'],
            registry=self.registry
        )

        self.collector_errors = Gauge(
            'resmon_collector_errors',
            'Collection errors since start',
            ['collector'],
            registry=self.registry
        )

        self.collector_duration = Gauge(
            'resmon_collector_duration_seconds',
            'Collection duration in seconds',
            ['collector'],
            registry=self.registry
        )

        self.collector_status = Gauge(
            'resmon_collector_status',
            'Collector status (1=healthy, 0=unhealthy)',
            ['collector'],
            registry=self.registry
        )

        self.pass_duration = Gauge(
            'resmon_pass_duration_seconds',
            'Duration of the last sampling and evaluation pass',
            registry=self.registry
        )

        self.dropped_ticks = Counter(
            'resmon_dropped_ticks',
            'Ticks dropped because the previous pass was still running',
            registry=self.registry
        )

    def _setup_alert_metrics(self):
        """Setup per-key value and alert state metrics"""
        self.metric_value = Gauge(
            'resmon_metric_value',
            'Last sampled value (percent, or MB per interval for network)',
            ['key', 'type'],
            registry=self.registry
        )

        self.alert_state = Gauge(
            'resmon_alert_state',
            'Alert state (1=alerting, 0=normal)',
            ['key', 'type'],
            registry=self.registry
        )

        self.active_alerts = Gauge(
            'resmon_active_alerts',
            'Number of metric keys currently alerting',
            registry=self.registry
        )

        self.alert_breaches = Gauge(
            'resmon_alert_consecutive_breaches',
            'Consecutive threshold breaches',
            ['key'],
            registry=self.registry
        )

        self.alert_transitions = Counter(
            'resmon_alert_transitions',
            'Alert transitions',
            ['type', 'transition'],
            registry=self.registry
        )

    def start(self):
        """Start HTTP server"""
        try:
            self.logger.info(f"Starting Prometheus HTTP server on {self.host}:{self.port}")
            self.server, self.server_thread = start_http_server(
                self.port, addr=self.host, registry=self.registry
            )
            self.running = True
            self.logger.info(f"Metrics available at http://{self.host}:{self.port}/metrics")
        except OSError as e:
            self.logger.error(f"Failed to start Prometheus HTTP server: {e}")
            raise

    def stop(self):
        """Stop HTTP server"""
        if self.server is not None:
            self.server.shutdown()
            self.server = None
        self.running = False
        self.logger.info("Prometheus HTTP server stopped")

    def update_collector_metrics(self, collectors):
        """
        Update collector health metrics

        Args:
            collectors: List of collectors to update metrics for
        """
        for collector in collectors:
            collector_name = collector.get_name()

            if collector.last_success:
                self.collector_last_success.labels(
                    collector=collector_name
                ).set(collector.last_success)

            self.collector_duration.labels(
                collector=collector_name
            ).set(collector.last_collection_duration)

            status = 1 if collector.is_healthy() else 0
            self.collector_status.labels(
                collector=collector_name
            ).set(status)

            self.collector_errors.labels(
                collector=collector_name
            ).set(collector.total_errors)

    def update_alert_metrics(self, readings, alert_registry):
        """
        Update value and state gauges for the keys sampled this pass

        Args:
            readings: MetricReadings evaluated this pass
            alert_registry: AlertRegistry holding the committed state
        """
        for reading in readings:
            self.metric_value.labels(key=reading.key, type=reading.metric_type).set(reading.value)

        for key, record in alert_registry.items():
            metric_type, _ = parse_metric_key(key)
            self.alert_state.labels(key=key, type=metric_type).set(1 if record.is_alerting else 0)
            self.alert_breaches.labels(key=key).set(record.consecutive_breaches)

    def record_transition(self, event):
        """Count a Raised or Cleared transition"""
        self.alert_transitions.labels(type=event.metric_type, transition=event.transition).inc()
