"""Main agent orchestration"""

import platform
import signal
import time
from typing import Dict, Any

from resmon.alerts.alert_manager import AlertManager, build_channels
from resmon.alerts.alert_rule import load_metric_configs
from resmon.collectors.sampler import Sampler, build_collectors
from resmon.errors import SamplerError
from resmon.exporters.prometheus_exporter import PrometheusExporter
from resmon.scheduler import Scheduler
from resmon.utils.helpers import resolve_hostname
from resmon.utils.logger import get_logger

VERSION = '1.0.0'


class Agent:
    """Wires the sampler, alert manager and scheduler together"""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize agent

        Args:
            config: Configuration dictionary
        """
        self.config = config
        self.logger = get_logger(self.__class__.__name__)
        self.running = False

        self.hostname = resolve_hostname(config['agent'])

        self.logger.info(f"Initializing agent for host: {self.hostname}")

        # Sampler
        monitor = config['monitor']
        self.sampler = Sampler(
            build_collectors(config['collectors'], interval=monitor['interval']),
            timeout=monitor.get('sample_timeout', 30),
        )

        # Alerting
        self.alert_manager = self._init_alerting()

        # Prometheus exporter (optional)
        self.exporter = None
        if config['prometheus'].get('enabled', False):
            self.exporter = PrometheusExporter(config)

        self.scheduler = Scheduler(
            self.sampler,
            self.alert_manager,
            interval=monitor['interval'],
            exporter=self.exporter,
        )

    def _init_alerting(self) -> AlertManager:
        """Initialize thresholds, channels and history storage"""
        alerting = self.config['alerting']
        metric_configs = load_metric_configs(self.config)

        storage = None
        if alerting['history'].get('enabled', False):
            from resmon.alerts.storage.sqlite_storage import SQLiteStorage
            storage = SQLiteStorage(alerting['history'])

        return AlertManager(
            metric_configs,
            channels=build_channels(alerting['channels']),
            storage=storage,
            hostname=self.hostname,
        )

    def _setup_signal_handlers(self):
        """Setup signal handlers for shutdown"""
        def signal_handler(signum, frame):
            self.logger.info(f"Received signal {signum}, shutting down...")
            self.running = False

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

    def _log_system_info(self):
        uname = platform.uname()
        self.logger.info(f"System: {uname.system} {uname.release} ({uname.machine})")
        self.logger.info(f"Hostname: {self.hostname}")
        self.logger.info(f"Python: {platform.python_version()}")

    def start(self, once: bool = False):
        """
        Start the agent

        The first snapshot is taken synchronously; failure to initialize the
        sampler or to take that snapshot propagates to the caller.

        Args:
            once: Run a single pass and return
        """
        self.logger.info("Starting agent...")
        self._log_system_info()

        try:
            self.sampler.initialize()
            self.scheduler.run_pass(raise_on_sampler_error=True)
        except SamplerError:
            self.stop()
            raise

        if once:
            self.logger.info("Single pass completed")
            self.stop()
            return

        self.running = True
        self._setup_signal_handlers()

        try:
            if self.exporter is not None:
                self.exporter.start()
                self.exporter.agent_info.labels(
                    version=VERSION,
                    hostname=self.hostname
                ).set(1)

            self.scheduler.start()
            self.logger.info("Agent started successfully")

            # Keep main thread alive
            while self.running:
                time.sleep(1)

        finally:
            self.stop()

    def stop(self):
        """Stop the agent"""
        self.logger.info("Stopping agent...")
        self.running = False

        self.scheduler.stop()
        self.alert_manager.shutdown()
        self.sampler.shutdown()

        if self.exporter is not None and self.exporter.running:
            self.exporter.stop()

        self.logger.info("Agent stopped")
