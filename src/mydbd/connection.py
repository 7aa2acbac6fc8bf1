# src/mydbd/connection.py
import dataclasses
import hashlib
import logging
import time
from typing import Any, Dict, NamedTuple, Optional, Set, Union

import mysql.connector
from mysql.connector.errors import Error as MySQLError

from . import logger as query_log
from .compat import PearCompatConnectionMixin
from .config import ConnectionConfig
from .dialect import build_trace_comment, is_readonly_violation
from .errors import ConnectFailedError, NotConnectedError, ReadOnlyError, SQLError, raise_for_error
from .result import ResultSet, StoredResult
from .statement import PreparedStatement

_UNSET = object()


class _QueryHandle(NamedTuple):
    """Counters left by the last immediate query."""
    affected_rows: int
    insert_id: int

    def get_affected_rows(self) -> int:
        return self.affected_rows

    def get_insert_id(self) -> int:
        return self.insert_id


class Connection(PearCompatConnectionMixin):
    """A lazily connected MySQL connection.

    Creating a connection doesn't open it: any method needing the server
    connects first if the connection isn't established yet or was lost. An
    explicit :meth:`connect` is only needed to surface connection errors
    early.

    Example::

        dbh = Connection(hostname='localhost', username='app', database='shop')
        res = dbh.query('SELECT id, name FROM products WHERE price < ?', 10)

        for row in res:
            print(row[0], row[1])

        sth = dbh.prepare('INSERT INTO products (name, price) VALUES (?, ?)')
        for name, price in catalog:
            sth.execute(name, price)

    Args:
        connection_config: Connection information and options. Individual
            :class:`ConnectionConfig` fields given as keyword arguments
            override it.
        query_logger: Logger receiving commands when the ``query_log``
            option is on; the process-wide logger by default.
    """

    def __init__(self, connection_config: Optional[ConnectionConfig] = None,
                 query_logger: Optional[query_log.QueryLogger] = None, **kwargs):
        if connection_config is None:
            connection_config = ConnectionConfig.from_dict(kwargs)
        elif kwargs:
            merged = connection_config.to_dict()
            merged.update(kwargs)
            connection_config = ConnectionConfig.from_dict(merged)

        # set_read_only() must not leak into other connections sharing the config
        self.config = dataclasses.replace(connection_config)
        self.logger = logging.getLogger(__name__)
        if self.config.log_level is not None:
            self.logger.setLevel(self.config.log_level)

        self._query_logger = query_logger or query_log.default_logger
        self._connection_args = self.config.to_connect_args()
        self._link = None
        self._connected = False
        self._statement_cache: Dict[str, PreparedStatement] = {}
        self._last_query_handle: Union[PreparedStatement, _QueryHandle, None] = None
        self._extended_connection_info: Dict[str, Any] = {}
        self._extended_query_info: Dict[str, Any] = {}
        self._replication_delay: Any = _UNSET
        self._realtime: Optional[bool] = None
        self._engines: Optional[Set[str]] = None
        self._default_fetch_mode = None

    def log(self, level: int, msg: str) -> None:
        self.logger.log(level, msg)

    def connect(self) -> 'Connection':
        """Open the connection to the MySQL server.

        Raises:
            ConnectFailedError: On connection failure.
        """
        if self._link is not None:
            try:
                self._link.close()
            except MySQLError as e:
                self.log(logging.DEBUG, f"Error closing previous connection: {e}")
            self._link = None
            self._connected = False

        try:
            self._link = mysql.connector.connect(**self._connection_args)
        except MySQLError as e:
            errno = e.errno if e.errno is not None and e.errno > 0 else None
            raise ConnectFailedError(e.msg or str(e), errno, e.sqlstate) from e

        # statements prepared on a previous link are gone with it
        self._statement_cache.clear()
        self._connected = True

        if self.config.wait_timeout:
            self._execute_direct(f"SET wait_timeout={int(self.config.wait_timeout)}").close()

        self.log(logging.INFO, f"Connected to MySQL server {self.config.hostname or 'localhost'}")
        return self

    def link(self, autoconnect: bool = True):
        """Get the driver connection, connecting first if needed.

        Args:
            autoconnect: If True and the connection isn't established or was
                lost, connect. Otherwise raise NotConnectedError.

        Raises:
            NotConnectedError: If not connected and ``autoconnect`` is False.
        """
        if not self._connected or not self._link.is_connected():
            if autoconnect:
                if self._connected:
                    self.log(logging.WARNING, "Connection to MySQL server was lost, reconnecting")
                self.connect()
            else:
                raise NotConnectedError("Not connected to the MySQL server.")
        return self._link

    def _execute_direct(self, query: str):
        cursor = self._link.cursor(buffered=True)
        try:
            cursor.execute(query)
        except MySQLError as e:
            cursor.close()
            raise_for_error(e, query)
        return cursor

    def query(self, query: str, *params: Any) -> Union[ResultSet, bool, None]:
        """Perform a query on the database.

        If parameters are given, the query is prepared and executed with them
        bound to its ``?`` markers; their count must match the number of
        markers. For backward compatibility a single list or tuple argument
        is taken as the parameter list::

            dbh.query('SELECT COUNT(*) FROM users')
            dbh.query('INSERT INTO users (name, email) VALUES (?, ?)', name, email)
            dbh.query('INSERT INTO users (name, email) VALUES (?, ?)', [name, email])

        Returns:
            ResultSet for an immediate query yielding rows, True if it
            yields none. With parameters, whatever
            :meth:`PreparedStatement.execute` returns.

        Raises:
            ReadOnlyError: On a write query while the connection is read-only.
            SQLError: On any error reported by the server.
        """
        if len(params) == 1 and isinstance(params[0], (list, tuple)):
            params = tuple(params[0])

        query = self._inject_extended_info(query)

        if self.config.readonly:
            self._check_readonly_query(query)

        if params:
            sth = self.prepare_cached(query) if self.config.query_prepare_cache else self.prepare(query)
            return sth.execute(*params)

        start = time.perf_counter()
        self.link()
        cursor = self._execute_direct(query)
        try:
            result: Union[ResultSet, bool] = True
            if cursor.with_rows:
                result = ResultSet(StoredResult.from_cursor(cursor))
            self._last_query_handle = _QueryHandle(cursor.rowcount, cursor.lastrowid or 0)
        finally:
            cursor.close()

        if self.config.query_log:
            self._query_logger.log('query', query, None, (time.perf_counter() - start) * 1000)

        return result

    def prepare(self, query: str, *type_hints: Any) -> PreparedStatement:
        """Prepare a statement for execution.

        See :meth:`PreparedStatement.prepare` for the arguments.
        """
        sth = PreparedStatement(self.link().cursor(prepared=True), self.config, self._query_logger,
                                on_execute=self._statement_executed)
        sth.prepare(query, *type_hints)
        return sth

    def _statement_executed(self, sth: PreparedStatement) -> None:
        self._last_query_handle = sth

    def prepare_cached(self, query: str, *type_hints: Any) -> PreparedStatement:
        """Same as :meth:`prepare`, but share one frozen statement per query text.

        The returned statement must not be prepared again; executing it with
        different parameters is fine.
        """
        cache_key = hashlib.md5(query.encode('utf-8')).hexdigest()

        if cache_key not in self._statement_cache:
            self._statement_cache[cache_key] = self.prepare(query, *type_hints).freeze()

        return self._statement_cache[cache_key]

    def begin(self) -> bool:
        """Start a transaction, to be finished by commit() or rollback()."""
        try:
            self.link().start_transaction()
        except MySQLError as e:
            raise_for_error(e)
        return True

    def commit(self) -> bool:
        try:
            self.link(autoconnect=False).commit()
        except MySQLError as e:
            raise_for_error(e)
        return True

    def rollback(self) -> bool:
        try:
            self.link(autoconnect=False).rollback()
        except MySQLError as e:
            raise_for_error(e)
        return True

    def kill(self, process_id: int) -> bool:
        """Ask the server to kill a MySQL thread, as returned by :meth:`thread_id`."""
        query = f"KILL {int(process_id)}"
        self.link()
        self._execute_direct(query).close()
        return True

    def thread_id(self) -> int:
        """Thread ID of the current connection.

        A lost connection is re-established with another thread ID by the
        next command, so get it only right before using it.
        """
        return self.link().connection_id

    def ping(self) -> bool:
        try:
            self.link(autoconnect=False)
        except NotConnectedError:
            return False
        return True

    def disconnect(self) -> Optional[bool]:
        """Close the connection.

        Returns:
            True once closed, None if the connection was already closed.
        """
        if not self._connected:
            return None

        try:
            self._link.close()
        except MySQLError as e:
            raise_for_error(e)
        finally:
            self._connected = False
            self._link = None
            self._statement_cache.clear()

        self.log(logging.INFO, "Disconnected from MySQL")
        return True

    def __enter__(self) -> 'Connection':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def get_insert_id(self) -> int:
        """AUTO_INCREMENT value generated by the last query, 0 if none."""
        if self._last_query_handle is None:
            return 0
        return self._last_query_handle.get_insert_id()

    def get_affected_rows(self) -> int:
        """Number of rows affected by the last INSERT, UPDATE or DELETE.

        The count comes from whichever ran last: an immediate query or an
        execution of a prepared statement, cached ones included. Preparing a
        statement alone changes nothing. 0 when nothing ran yet.
        """
        if self._last_query_handle is None:
            return 0
        return self._last_query_handle.get_affected_rows()

    def set_extended_query_info(self, key: str, value: Any) -> 'Connection':
        """Attach info to the next query only, as a trailing SQL comment.

        For example ``TIMEOUT`` => 30 can tell a watchdog to kill the query
        past 30 seconds. A None value removes the key.
        """
        if value is None:
            self._extended_query_info.pop(key, None)
        else:
            self._extended_query_info[key] = value
        return self

    def flush_extended_query_info(self) -> None:
        self._extended_query_info = {}

    def set_extended_connection_info(self, key: str, value: Any = None) -> 'Connection':
        """Attach info to every future query of this connection.

        For example ``URI`` => the current request path helps DBAs find where
        a query comes from. A None value removes the key.
        """
        if value is None:
            self._extended_connection_info.pop(key, None)
        else:
            self._extended_connection_info[key] = value
        return self

    def flush_extended_connection_info(self) -> None:
        self._extended_connection_info = {}

    def _inject_extended_info(self, query: str) -> str:
        info = dict(self._extended_connection_info)
        info.update(self._extended_query_info)
        self._extended_query_info = {}
        return query + build_trace_comment(info)

    def set_read_only(self, readonly: bool) -> 'Connection':
        """Toggle read-only mode.

        In read-only mode every write query, except on temporary tables and
        ``norepli_`` tables, raises ReadOnlyError.
        """
        self.config.readonly = bool(readonly)
        return self

    def is_read_only(self) -> bool:
        return self.config.readonly

    def _check_readonly_query(self, query: str) -> None:
        if is_readonly_violation(query):
            self.log(logging.WARNING, f"Rejected write query on read-only connection: {query}")
            raise ReadOnlyError(f"Can't send write queries on a read-only connection: {query}", query=query)

    def set_auto_disconnect(self, seconds: int) -> 'Connection':
        """Change the seconds of inactivity before the server closes the connection."""
        self.query(f"SET wait_timeout={int(seconds) if seconds else 28800}")
        return self

    def get_replication_delay(self) -> Optional[int]:
        """Replication lag of this server in seconds.

        A connection that isn't read-only is assumed to be on the master and
        reports 0. None means the lag is unknown (replication is down). The
        value is computed once per connection.
        """
        if not self.is_read_only():
            return 0

        if self._replication_delay is _UNSET:
            res = self.query("SHOW SLAVE STATUS")
            info = res.fetch_assoc() if isinstance(res, ResultSet) else None
            delay = None
            if info:
                for key in ('Seconds_Behind_Master', 'Seconds_Behind_Source'):
                    if info.get(key) is not None:
                        delay = int(info[key])
                        break
            self._replication_delay = delay

        return self._replication_delay

    def is_realtime(self) -> bool:
        """Tell whether this server has no replication lag.

        A failing replication status query counts as not real-time.
        """
        if self._realtime is None:
            try:
                delay = self.get_replication_delay()
            except SQLError as e:
                self.log(logging.WARNING,
                         f"Error while checking real-time replica status, assuming it's not real-time: {e}")
                delay = None
            self._realtime = delay is not None and delay == 0

        return self._realtime

    def has_engine(self, engine: str) -> bool:
        """Tell whether the server supports a storage engine (case-insensitive)."""
        if self._engines is None:
            engines = set()
            for row in self.query('SHOW ENGINES'):
                if row[1] in ('YES', 'DEFAULT'):
                    engines.add(str(row[0]).lower())
            self._engines = engines

        return engine.lower() in self._engines

    def __repr__(self) -> str:
        state = 'connected' if self._connected else 'disconnected'
        return f"<Connection {self.config.hostname or 'localhost'} {state}>"
