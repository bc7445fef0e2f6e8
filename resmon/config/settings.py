"""Configuration management"""

import os
import warnings
import yaml
from pathlib import Path
from typing import Dict, Any

from resmon.errors import ConfigError

METRIC_TYPES = ['cpu', 'memory', 'disk', 'network', 'container_cpu', 'container_memory']
COLLECTOR_NAMES = ['cpu', 'memory', 'disk', 'network', 'containers']


def get_default_config() -> Dict[str, Any]:
    """Get default configuration"""
    return {
        'agent': {
            'hostname': 'auto',
            'log_level': 'INFO',
            'log_file': None,
            'log_format': 'text',
        },
        'monitor': {
            'interval': 60,
            'required_cycles': 3,
            'sample_timeout': 30,
        },
        'thresholds': {
            'cpu': {'threshold': 80.0},
            'memory': {'threshold': 80.0},
            'disk': {'threshold': 80.0},
            'network': {'threshold': 1000.0},
            'container_cpu': {'threshold': 80.0},
            'container_memory': {'threshold': 80.0},
        },
        'prometheus': {
            'enabled': True,
            'port': 9110,
            'host': '0.0.0.0',
        },
        'collectors': {
            'cpu': {
                'enabled': True,
                'sample_interval': 0.1,
            },
            'memory': {
                'enabled': True,
            },
            'disk': {
                'enabled': True,
                'exclude_filesystems': ['tmpfs', 'devtmpfs', 'squashfs', 'overlay'],
                'exclude_mount_points': ['/snap'],
            },
            'network': {
                'enabled': True,
                'exclude_interfaces': ['lo'],
                'include_internal': False,
            },
            'containers': {
                'enabled': True,
                'runtime': 'docker',
                'timeout': 10,
            },
        },
        'alerting': {
            'channels': {
                'email': {
                    'enabled': False,
                    'smtp_host': 'smtp.example.com',
                    'smtp_port': 587,
                    'smtp_user': '',
                    'smtp_password': '',
                    # STARTTLS; ignored when use_ssl is set
                    'use_tls': True,
                    'use_ssl': False,
                    'timeout': 30,
                    'from_address': '',
                    'to_addresses': [],
                },
                'slack': {
                    'enabled': False,
                    'webhook_url': '',
                    'channel': '#alerts',
                    'username': 'Resmon',
                    'icon_emoji': ':rotating_light:',
                },
                'webhook': {
                    'enabled': False,
                    'url': '',
                    'method': 'POST',
                    'headers': {},
                    'timeout': 10,
                }
            },
            'history': {
                'enabled': False,
                'sqlite_path': './data/alerts.db',
                'retention_days': 30,
            }
        },
    }


def load_config(config_path: str = None) -> Dict[str, Any]:
    """
    Load configuration from file and environment variables

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        ConfigError: If the file cannot be parsed or a value is invalid
    """
    # Start with defaults
    config = get_default_config()

    # Load from YAML file if provided
    if config_path:
        if not Path(config_path).exists():
            raise ConfigError(f"Configuration file not found: {config_path}")
        try:
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {config_path}: {e}")
        if yaml_config:
            if not isinstance(yaml_config, dict):
                raise ConfigError(f"Config file {config_path} must contain a mapping")
            config = merge_configs(config, yaml_config)

    # Override with environment variables
    config = override_from_env(config)

    # Validate configuration
    validate_config(config)

    return config


def merge_configs(base: Dict, override: Dict) -> Dict:
    """Recursively merge two configuration dictionaries"""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def _env_number(name: str, cast):
    try:
        return cast(os.environ[name])
    except ValueError:
        raise ConfigError(f"Environment variable {name} must be a number, got {os.environ[name]!r}")


def override_from_env(config: Dict) -> Dict:
    """Override configuration from environment variables"""

    # Agent settings
    if 'RESMON_HOSTNAME' in os.environ:
        config['agent']['hostname'] = os.environ['RESMON_HOSTNAME']
    if 'LOG_LEVEL' in os.environ:
        config['agent']['log_level'] = os.environ['LOG_LEVEL'].upper()
    if 'LOG_FILE' in os.environ:
        config['agent']['log_file'] = os.environ['LOG_FILE']
    if 'LOG_FORMAT' in os.environ:
        config['agent']['log_format'] = os.environ['LOG_FORMAT'].lower()

    # Monitor settings
    if 'MONITOR_INTERVAL' in os.environ:
        config['monitor']['interval'] = _env_number('MONITOR_INTERVAL', float)
    if 'REQUIRED_CYCLES' in os.environ:
        config['monitor']['required_cycles'] = _env_number('REQUIRED_CYCLES', int)

    # Thresholds
    for metric_type in METRIC_TYPES:
        threshold_key = f'THRESHOLD_{metric_type.upper()}'
        if threshold_key in os.environ:
            config['thresholds'].setdefault(metric_type, {})
            config['thresholds'][metric_type]['threshold'] = _env_number(threshold_key, float)

    # Prometheus settings
    if 'PROMETHEUS_ENABLED' in os.environ:
        config['prometheus']['enabled'] = os.environ['PROMETHEUS_ENABLED'].lower() == 'true'
    if 'PROMETHEUS_PORT' in os.environ:
        config['prometheus']['port'] = _env_number('PROMETHEUS_PORT', int)
    if 'PROMETHEUS_HOST' in os.environ:
        config['prometheus']['host'] = os.environ['PROMETHEUS_HOST']

    # Collector settings
    for collector in COLLECTOR_NAMES:
        enabled_key = f'COLLECTOR_{collector.upper()}_ENABLED'
        if enabled_key in os.environ:
            config['collectors'][collector]['enabled'] = os.environ[enabled_key].lower() == 'true'

    # Email channel
    email = config['alerting']['channels']['email']
    if 'SMTP_HOST' in os.environ:
        email['smtp_host'] = os.environ['SMTP_HOST']
    if 'SMTP_PORT' in os.environ:
        email['smtp_port'] = _env_number('SMTP_PORT', int)
    if 'SMTP_USER' in os.environ:
        email['smtp_user'] = os.environ['SMTP_USER']
    if 'SMTP_PASSWORD' in os.environ:
        email['smtp_password'] = os.environ['SMTP_PASSWORD']
    if 'SMTP_FROM' in os.environ:
        email['from_address'] = os.environ['SMTP_FROM']
    if 'SMTP_TO' in os.environ:
        email['to_addresses'] = [
            addr.strip() for addr in os.environ['SMTP_TO'].split(',') if addr.strip()
        ]

    return config


def validate_config(config: Dict):
    """
    Validate configuration values

    Raises:
        ConfigError: If configuration is invalid
    """
    # Validate log level
    valid_log_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
    log_level = str(config['agent']['log_level']).upper()
    if log_level not in valid_log_levels:
        raise ConfigError(f"Invalid log level: {log_level}. Must be one of {valid_log_levels}")

    valid_formats = ['text', 'json']
    if config['agent']['log_format'] not in valid_formats:
        raise ConfigError(f"Invalid log format: {config['agent']['log_format']}. Must be one of {valid_formats}")

    # Validate monitor settings
    monitor = config['monitor']
    interval = monitor.get('interval', 0)
    if not isinstance(interval, (int, float)) or interval <= 0:
        raise ConfigError(f"Invalid interval: {interval}. Must be > 0")
    if interval < 1:
        warnings.warn(f"Sampling interval is very aggressive: {interval}s")

    required_cycles = monitor.get('required_cycles')
    if not isinstance(required_cycles, int) or isinstance(required_cycles, bool) or required_cycles < 1:
        raise ConfigError(f"Invalid required_cycles: {required_cycles}. Must be an integer >= 1")

    sample_timeout = monitor.get('sample_timeout', 30)
    if not isinstance(sample_timeout, (int, float)) or sample_timeout <= 0:
        raise ConfigError(f"Invalid sample_timeout: {sample_timeout}. Must be > 0")

    # Validate thresholds
    for metric_type, settings in config['thresholds'].items():
        if metric_type not in METRIC_TYPES:
            raise ConfigError(f"Unknown metric type in thresholds: {metric_type}. Must be one of {METRIC_TYPES}")
        if not isinstance(settings, dict):
            raise ConfigError(f"Threshold settings for {metric_type} must be a mapping")

        threshold = settings.get('threshold')
        if not isinstance(threshold, (int, float)) or isinstance(threshold, bool) or threshold < 0:
            raise ConfigError(f"Invalid threshold for {metric_type}: {threshold}. Must be a number >= 0")

        cycles = settings.get('required_cycles')
        if cycles is not None and (not isinstance(cycles, int) or isinstance(cycles, bool) or cycles < 1):
            raise ConfigError(f"Invalid required_cycles for {metric_type}: {cycles}. Must be an integer >= 1")

    # Validate Prometheus port
    if config['prometheus'].get('enabled', False):
        port = config['prometheus']['port']
        if not (1 <= port <= 65535):
            raise ConfigError(f"Invalid Prometheus port: {port}. Must be between 1 and 65535")

    # Validate collectors
    if not any(c.get('enabled', False) for c in config['collectors'].values()):
        raise ConfigError("No collectors enabled! Check your configuration.")

    # Validate alerting channels
    alerting = config['alerting']
    channels_enabled = any(
        ch.get('enabled', False)
        for ch in alerting['channels'].values()
    )
    if not channels_enabled:
        warnings.warn("No notification channels enabled; transitions will only be logged")

    # Validate email channel
    if alerting['channels']['email'].get('enabled'):
        email = alerting['channels']['email']
        required_email_fields = ['smtp_host', 'from_address', 'to_addresses']
        for field in required_email_fields:
            if not email.get(field):
                raise ConfigError(f"Email channel enabled but {field} not set")
        if not isinstance(email['to_addresses'], list) or len(email['to_addresses']) == 0:
            raise ConfigError("Email channel: to_addresses must be a non-empty list")

    # Validate Slack channel
    if alerting['channels']['slack'].get('enabled'):
        if not alerting['channels']['slack'].get('webhook_url'):
            raise ConfigError("Slack channel enabled but webhook_url not set")

    # Validate webhook channel
    if alerting['channels']['webhook'].get('enabled'):
        webhook = alerting['channels']['webhook']
        if not webhook.get('url'):
            raise ConfigError("Webhook channel enabled but url not set")
        if webhook.get('method', 'POST').upper() not in ('POST', 'PUT'):
            raise ConfigError(f"Unsupported webhook method: {webhook.get('method')}. Must be POST or PUT")

    # Validate history storage
    history = alerting['history']
    if history.get('enabled'):
        retention_days = history.get('retention_days', 30)
        if retention_days < 1:
            raise ConfigError(f"Invalid retention_days: {retention_days}. Must be >= 1")
