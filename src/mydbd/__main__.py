# src/mydbd/__main__.py
import argparse
import datetime
import decimal
import json
import logging
import os
import sys

from . import logger as query_log
from .config import load_config
from .connection import Connection
from .errors import ConnectFailedError, SQLError
from .result import ResultSet
from .types import FetchMode

# Configure basic logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog='mydbd',
        description="Execute an SQL query against a MySQL server.",
        formatter_class=argparse.RawTextHelpFormatter
    )

    # Connection parameters; unset ones fall back to the loaded configuration
    parser.add_argument(
        '--config',
        default=os.getenv('MYDBD_CONFIG_PATH'),
        help='Configuration file (YAML, TOML or JSON, default: MYDBD_CONFIG_PATH environment variable)'
    )
    parser.add_argument('--host', help='Database host (overrides the configuration)')
    parser.add_argument('--port', type=int, help='Database port (overrides the configuration)')
    parser.add_argument('--database', help='Database name (overrides the configuration)')
    parser.add_argument('--user', help='Database user (overrides the configuration)')
    parser.add_argument('--password', help='Database password (overrides the configuration)')
    parser.add_argument('--charset', help='Connection charset (overrides the configuration)')

    parser.add_argument(
        'query',
        help='SQL query to execute. Must be enclosed in quotes.'
    )
    parser.add_argument(
        '-p', '--param',
        action='append',
        default=[],
        help='Value bound to the next ? marker of the query (repeatable)'
    )

    parser.add_argument('--readonly', action='store_true', help='Reject write queries')
    parser.add_argument('--assoc', action='store_true', help='Print rows as objects keyed by column name')
    parser.add_argument('--query-log', action='store_true', help='Print query log statistics after execution')
    parser.add_argument('--log-level', default='INFO', help='Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)')

    return parser.parse_args(argv)


def json_serializer(obj):
    """Handles serialization of types not supported by default JSON encoder."""
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()
    if isinstance(obj, datetime.timedelta):
        return str(obj)
    if isinstance(obj, decimal.Decimal):
        return str(obj)
    if isinstance(obj, (bytes, bytearray)):
        return obj.hex()
    raise TypeError(f"Object of type {obj.__class__.__name__} is not JSON serializable")


def handle_result(result, dbh, assoc=False):
    if isinstance(result, ResultSet):
        logger.info(f"Query returned {result.row_count()} row(s)")
        result.set_fetch_mode(FetchMode.ASSOC if assoc else FetchMode.ORDERED)
        for row in result:
            print(json.dumps(row, ensure_ascii=False, default=json_serializer))
    else:
        logger.info(f"Query executed successfully. Affected rows: {dbh.get_affected_rows()}")


def build_connection(args) -> Connection:
    config = load_config(args.config)

    overrides = {
        'hostname': args.host,
        'port': args.port,
        'database': args.database,
        'username': args.user,
        'password': args.password,
        'charset': args.charset,
    }
    overrides = {key: value for key, value in overrides.items() if value is not None}
    if args.readonly:
        overrides['readonly'] = True
    if args.query_log:
        overrides['query_log'] = True
    overrides['log_level'] = logging.getLogger().level

    return Connection(config, **overrides)


def main(argv=None):
    args = parse_args(argv)

    # Set logging level
    numeric_level = getattr(logging, args.log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {args.log_level}')
    logging.getLogger().setLevel(numeric_level)

    dbh = build_connection(args)
    try:
        dbh.connect()
        logger.info(f"Executing query: {args.query}")
        handle_result(dbh.query(args.query, *args.param), dbh, args.assoc)
        if args.query_log:
            stats = query_log.get_global_stats()
            logger.info(f"Queries: {stats['total_queries']}, total time: {stats['total_time']:.3f}ms, "
                        f"max time: {stats['max_time']:.3f}ms")
            for entry in query_log.get_logs(sort_by_duration=True):
                logger.info(f"{entry.duration:.3f}ms {entry.command}: {entry.query}")
    except ConnectFailedError as e:
        logger.error(f"Database connection error: {e}")
        sys.exit(1)
    except SQLError as e:
        logger.error(f"Database query error: {e}")
        sys.exit(1)
    finally:
        if dbh.disconnect():
            logger.info("Disconnected from database.")


if __name__ == "__main__":
    main()
