"""Main entry point for the resource monitor"""

import sys
import argparse
import traceback

from resmon.agent import Agent, VERSION
from resmon.config.settings import load_config
from resmon.errors import ConfigError, SamplerError
from resmon.utils.helpers import resolve_hostname
from resmon.utils.logger import setup_logger


def parse_args(argv=None):
    """Parse command-line arguments"""
    parser = argparse.ArgumentParser(
        description='Host resource monitor with threshold alerting'
    )

    parser.add_argument(
        '--config',
        '-c',
        type=str,
        default=None,
        help='Path to configuration file (YAML)'
    )

    parser.add_argument(
        '--log-level',
        '-l',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        default=None,
        help='Override log level'
    )

    parser.add_argument(
        '--once',
        action='store_true',
        help='Run a single sampling pass and exit'
    )

    parser.add_argument(
        '--version',
        '-v',
        action='version',
        version=f'Resmon v{VERSION}'
    )

    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    # Override log level from command line
    if args.log_level:
        config['agent']['log_level'] = args.log_level

    logger = setup_logger(config, hostname=resolve_hostname(config['agent']))
    logger.info("=" * 60)
    logger.info(f"Resmon v{VERSION}")
    logger.info("=" * 60)

    if args.config:
        logger.info(f"Loaded configuration from: {args.config}")
    else:
        logger.info("Using default configuration")

    try:
        agent = Agent(config)
        agent.start(once=args.once)
        return 0

    except KeyboardInterrupt:
        logger.info("Shutdown requested by user")
        return 0
    except SamplerError as e:
        logger.critical(f"Cannot sample system resources: {e}")
        return 1
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        traceback.print_exc()
        return 1


if __name__ == '__main__':
    sys.exit(main())
