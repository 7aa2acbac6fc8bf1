# src/mydbd/__init__.py
"""
MySQL database driver built on mysql-connector-python.

This package provides:
- Connection: lazily connected MySQL connection with immediate queries,
  prepared statements and a prepared statement cache
- ResultSet / StatementResultSet: seekable result cursors with ordered,
  associative, object and single column fetch modes
- Read-only connections rejecting write queries
- Extended query info injected as trailing SQL comments
- A process-wide query log with timing statistics
- A PEAR::DB compatible API for legacy code

Errors are raised, never returned: every error derives from SQLError, and
MySQL error numbers are mapped to named error kinds.
"""

__version__ = "1.0.0"

from .compat import (
    DB_FETCHMODE_ASSOC,
    DB_FETCHMODE_DEFAULT,
    DB_FETCHMODE_OBJECT,
    DB_FETCHMODE_ORDERED,
)
from .config import ConnectionConfig, load_config
from .connection import Connection
from .errors import (
    AccessViolationError,
    AlreadyExistsError,
    CannotCreateError,
    CannotDropError,
    ConnectFailedError,
    ConstraintError,
    DeadlockError,
    DivisionByZeroError,
    FrozenStatementError,
    InvalidArgumentError,
    MismatchError,
    NoDatabaseSelectedError,
    NoSuchDatabaseError,
    NoSuchFieldError,
    NoSuchTableError,
    NotConnectedError,
    NotFoundError,
    NotLockedError,
    NotPreparedError,
    OutOfRangeError,
    ParamMismatchError,
    ReadOnlyError,
    SQLError,
    SQLSyntaxError,
    TruncatedResultError,
    TypeMismatchError,
    ValueCountOnRowError,
)
from .logger import QueryLogEntry, QueryLogger
from .result import ResultSet, StatementResultSet, StoredResult
from .statement import PreparedStatement
from .types import FetchMode, ParamType

__all__ = [
    # Connection
    'Connection',
    'ConnectionConfig',
    'load_config',

    # Statements and results
    'PreparedStatement',
    'ResultSet',
    'StatementResultSet',
    'StoredResult',
    'FetchMode',
    'ParamType',

    # Query log
    'QueryLogger',
    'QueryLogEntry',

    # PEAR::DB fetch modes
    'DB_FETCHMODE_DEFAULT',
    'DB_FETCHMODE_ORDERED',
    'DB_FETCHMODE_ASSOC',
    'DB_FETCHMODE_OBJECT',

    # Errors
    'SQLError',
    'ConnectFailedError',
    'NotConnectedError',
    'ReadOnlyError',
    'FrozenStatementError',
    'MismatchError',
    'ParamMismatchError',
    'TypeMismatchError',
    'NotPreparedError',
    'TruncatedResultError',
    'NoSuchFieldError',
    'OutOfRangeError',
    'InvalidArgumentError',
    'CannotCreateError',
    'AlreadyExistsError',
    'CannotDropError',
    'AccessViolationError',
    'NoDatabaseSelectedError',
    'ConstraintError',
    'NoSuchDatabaseError',
    'NoSuchTableError',
    'SQLSyntaxError',
    'NotFoundError',
    'NotLockedError',
    'DeadlockError',
    'ValueCountOnRowError',
    'DivisionByZeroError',
]
