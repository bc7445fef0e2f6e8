"""Logging configuration"""

import logging
import sys
from pathlib import Path
from pythonjsonlogger.json import JsonFormatter

TEXT_FORMAT = '%(asctime)s [%(levelname)s] %(name)s - %(message)s'
JSON_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'
JSON_RENAMES = {'levelname': 'level', 'name': 'logger', 'asctime': 'timestamp'}

# HTTP client used by the Slack and webhook channels
NOISY_LOGGERS = ('urllib3',)


def _build_formatter(log_format, hostname=None):
    if log_format == 'json':
        static_fields = {'host': hostname} if hostname else None
        return JsonFormatter(JSON_FORMAT, rename_fields=JSON_RENAMES, static_fields=static_fields)
    return logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%dT%H:%M:%S')


def setup_logger(config, hostname=None):
    """
    Configure the ``resmon`` package logger

    Args:
        config: Configuration dictionary; reads the ``agent`` section
        hostname: Added to every JSON record as ``host`` when given

    Returns:
        The configured package logger
    """
    agent = config.get('agent', {})
    level = getattr(logging, str(agent.get('log_level', 'INFO')).upper(), logging.INFO)
    formatter = _build_formatter(agent.get('log_format', 'text'), hostname)

    logger = logging.getLogger('resmon')
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = agent.get('log_file')
    file_error = None
    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))
        except OSError as e:
            file_error = e

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    if file_error is not None:
        logger.warning(f"Failed to setup file logging to {log_file}: {file_error}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger


def get_logger(name):
    """Get logger instance"""
    return logging.getLogger(f'resmon.{name}')
