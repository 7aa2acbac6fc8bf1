# src/mydbd/statement.py
import logging
import time
from typing import Any, Callable, List, Optional, Sequence, Tuple

from mysql.connector.errors import Error as MySQLError

from . import logger as query_log
from .dialect import count_placeholders
from .errors import (
    FrozenStatementError,
    NotPreparedError,
    ParamMismatchError,
    TypeMismatchError,
    raise_for_error,
)
from .result import StatementResultSet, StoredResult
from .types import ParamType, coerce_param, infer_param_type

logger = logging.getLogger(__name__)


class PreparedStatement:
    """A prepared SQL statement, executable several times with different parameters.

    Statements are created by :meth:`Connection.prepare` and
    :meth:`Connection.prepare_cached`; they wrap a prepared cursor of the
    driver. The connection passes ``on_execute``, called after each
    successful execution, to track the statement as its last query. Example::

        sth = dbh.prepare('INSERT INTO users (name, age) VALUES (?, ?)')
        for name, age in people:
            sth.execute(name, age)
    """

    def __init__(self, cursor, options=None, query_logger: Optional[query_log.QueryLogger] = None,
                 on_execute: Optional[Callable[['PreparedStatement'], None]] = None):
        self._cursor = cursor
        self._options = options
        self._query_logger = query_logger or query_log.default_logger
        self._on_execute = on_execute
        self._query: Optional[str] = None
        self._param_count = 0
        self._param_types: Optional[List[ParamType]] = None
        self._frozen = False
        self._result: Optional[StoredResult] = None
        self._result_set: Optional[StatementResultSet] = None

    @property
    def query(self) -> Optional[str]:
        return self._query

    @property
    def param_count(self) -> int:
        return self._param_count

    @property
    def param_types(self) -> Optional[Tuple[ParamType, ...]]:
        return tuple(self._param_types) if self._param_types is not None else None

    @property
    def stored_result(self) -> Optional[StoredResult]:
        """Buffered rows of the last execution, None if it yielded no result set."""
        return self._result

    def _query_log_enabled(self) -> bool:
        return bool(getattr(self._options, 'query_log', False))

    def prepare(self, query: str, *type_hints: Any) -> bool:
        """Prepare an SQL statement for execution.

        The query can hold one or more ``?`` parameter markers. Markers are
        only legal at value positions, e.g. in the VALUES() list of an INSERT
        or compared against a column in a WHERE clause. They can't stand for
        identifiers, nor for both operands of a binary operator. The server
        rejects illegal markers at execution.

        Args:
            query: The SQL query to prepare.
            *type_hints: Optional binding type of each marker: 'string',
                'integer', 'double' or 'blob'. If omitted, types are guessed
                from the parameters of the first :meth:`execute` call.

        Returns:
            bool: True once prepared.

        Raises:
            FrozenStatementError: If the statement was frozen by :meth:`freeze`.
            TypeMismatchError: If the number of type hints differs from the
                number of markers, or a hint is unknown.
        """
        if self._frozen:
            raise FrozenStatementError("Cannot prepare a frozen statement.", query=query)

        start = time.perf_counter()

        param_count = count_placeholders(query)
        if type_hints:
            if len(type_hints) != param_count:
                raise TypeMismatchError(
                    f"Wrong type hint count for prepared statement: "
                    f"{param_count} expected, {len(type_hints)} given.",
                    query=query
                )
            param_types = [ParamType.coerce(hint) for hint in type_hints]
        else:
            param_types = None

        self._query = query
        self._param_count = param_count
        self._param_types = param_types
        # the column layout may differ from the previous query
        self._result = None
        self._result_set = None

        logger.debug(f"Prepared statement with {param_count} marker(s): {query}")
        if self._query_log_enabled():
            self._query_logger.log('prepare', query, None, (time.perf_counter() - start) * 1000)
        return True

    def freeze(self) -> 'PreparedStatement':
        """Forbid any further prepare() so the statement can be shared from a cache."""
        self._frozen = True
        return self

    def is_frozen(self) -> bool:
        return self._frozen

    def _bind_params(self, params: Sequence[Any]) -> Tuple[Any, ...]:
        if len(params) != self._param_count:
            raise ParamMismatchError(
                f"Wrong parameter count for prepared statement: "
                f"{self._param_count} expected, {len(params)} given.",
                query=self._query
            )

        # Types are decided once, on the first execution, then kept.
        if self._param_types is None:
            self._param_types = [infer_param_type(param) for param in params]

        return tuple(coerce_param(value, param_type)
                     for value, param_type in zip(params, self._param_types))

    def execute(self, *params: Any) -> Optional[StatementResultSet]:
        """Execute the prepared query, binding ``params`` to its markers.

        Note: parameter types matter. Unless type hints were given to
        :meth:`prepare`, ``execute('42')`` binds a string where
        ``execute(42)`` binds an integer, and later executions are coerced
        to the types of the first one.

        Returns:
            StatementResultSet: If the query yields a result set. The same
            cursor object is reset and returned on every execution, None
            otherwise.

        Raises:
            NotPreparedError: If no query was prepared.
            ParamMismatchError: If the number of params differs from the
                number of markers.
        """
        if self._query is None:
            raise NotPreparedError("Cannot execute a statement that was not prepared.")

        start = time.perf_counter()
        values = self._bind_params(params)

        try:
            self._cursor.execute(self._query, values)
            if self._cursor.with_rows:
                self._result = StoredResult.from_cursor(self._cursor)
            else:
                self._result = None
        except MySQLError as e:
            raise_for_error(e, self._query)

        if self._on_execute is not None:
            self._on_execute(self)

        if self._query_log_enabled():
            self._query_logger.log('execute', self._query, list(params) if params else None,
                                   (time.perf_counter() - start) * 1000)

        if self._result is None:
            return None

        if self._result_set is None:
            self._result_set = StatementResultSet(self)
        else:
            self._result_set.reset()
        return self._result_set

    def result_metadata(self) -> Tuple[str, ...]:
        """Column names of the result of the last execution."""
        if self._result is None:
            return ()
        return self._result.field_names

    def get_affected_rows(self) -> int:
        """Number of rows changed, deleted or inserted by the last execution.

        Before any execution this is whatever the driver last reported.
        """
        return self._cursor.rowcount

    def affected_rows(self) -> int:
        return self.get_affected_rows()

    def get_insert_id(self) -> int:
        return self._cursor.lastrowid or 0

    def close(self) -> None:
        self._result = None
        self._result_set = None
        self._cursor.close()

    def __repr__(self) -> str:
        return f"<PreparedStatement frozen={self._frozen} query={self._query!r}>"
