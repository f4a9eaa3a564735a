# cli.py

"""Command-line interface for the OpenStack metrics collector."""

import argparse
import logging
import sys
import time

from .accumulator import InfluxDBWriter, LineProtocolWriter
from .collector import OpenStackCollector
from .config import DEFAULT_INTERVAL, DEFAULT_MEASUREMENT_PREFIX, INFLUXDB_DEFAULT_DATABASE
from .exceptions import OpenStackError
from .utils import load_config, setup_logging

logger = logging.getLogger(__name__)

def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Collect summary metrics from an OpenStack cloud"
    )
    parser.add_argument("--auth-url", help="Identity endpoint (default: $OS_AUTH_URL)")
    parser.add_argument("--domain", help="Authentication domain (default: $OS_USER_DOMAIN_NAME or 'default')")
    parser.add_argument("--project", help="Project to authenticate as (default: $OS_PROJECT_NAME)")
    parser.add_argument("--username", help="User to authenticate as, needs admin rights (default: $OS_USERNAME)")
    parser.add_argument("--password", help="Password (default: $OS_PASSWORD)")
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip TLS certificate verification"
    )
    parser.add_argument(
        "--interval",
        type=int,
        default=DEFAULT_INTERVAL,
        help=f"Seconds between collections, 0 to collect once (default: {DEFAULT_INTERVAL})"
    )
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Fetch resources concurrently"
    )
    parser.add_argument(
        "--measurement-prefix",
        default=DEFAULT_MEASUREMENT_PREFIX,
        help=f"Prefix for emitted series names (default: {DEFAULT_MEASUREMENT_PREFIX})"
    )
    parser.add_argument(
        "--influxdb-url",
        help="Post metrics to this InfluxDB instead of writing line protocol to stdout"
    )
    parser.add_argument(
        "--influxdb-database",
        default=INFLUXDB_DEFAULT_DATABASE,
        help=f"InfluxDB database (default: {INFLUXDB_DEFAULT_DATABASE})"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    args = parser.parse_args(argv)
    if args.interval < 0:
        parser.error("--interval must not be negative")
    return args

def build_accumulator(args):
    if args.influxdb_url:
        return InfluxDBWriter(
            args.influxdb_url,
            database=args.influxdb_database,
            prefix=args.measurement_prefix
        )
    return LineProtocolWriter(sys.stdout, prefix=args.measurement_prefix)

def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = load_config(
            auth_url=args.auth_url,
            project=args.project,
            username=args.username,
            password=args.password,
            domain=args.domain,
            insecure=args.insecure,
            parallel=args.parallel
        )
        collector = OpenStackCollector(config, build_accumulator(args))

        if args.interval == 0:
            collector.gather()
            return 0

        while True:
            started = time.monotonic()
            try:
                collector.gather()
            except OpenStackError as e:
                logger.error(f"Collection failed: {e}")
            elapsed = time.monotonic() - started
            time.sleep(max(0.0, args.interval - elapsed))

    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
        return 0
    except OpenStackError as e:
        logger.error(f"OpenStack error: {e}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
