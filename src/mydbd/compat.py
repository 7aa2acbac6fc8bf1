# src/mydbd/compat.py
"""PEAR::DB compatibility layer.

These mixins keep code written against PEAR::DB working on top of mydbd
without a rewrite. They are deprecated; new code should use
:meth:`Connection.query` and the :class:`ResultSet` fetch methods directly.
"""

from typing import Any, Dict, List, Optional, Sequence

from mysql.connector.errors import Error as MySQLError

from .errors import NoSuchFieldError, TruncatedResultError, raise_for_error
from .types import FetchMode

# PEAR::DB fetch mode constants
DB_FETCHMODE_DEFAULT = 0
DB_FETCHMODE_ORDERED = int(FetchMode.ORDERED)
DB_FETCHMODE_ASSOC = int(FetchMode.ASSOC)
DB_FETCHMODE_OBJECT = int(FetchMode.OBJECT)


class PearCompatResultMixin:
    """PEAR::DB result methods for :class:`ResultSet`."""

    def fetch_row(self, fetch_mode: Optional[int] = None) -> Any:
        if fetch_mode == DB_FETCHMODE_DEFAULT:
            fetch_mode = None
        return self.next(fetch_mode)

    def num_rows(self) -> int:
        return self.row_count()

    def num_cols(self) -> int:
        return self.field_count()


class PearCompatConnectionMixin:
    """PEAR::DB connection methods for :class:`Connection`.

    The per-connection default fetch mode lives in ``_default_fetch_mode``,
    which the host class initializes to None.
    """

    _default_fetch_mode: Optional[int] = None

    def set_fetch_mode(self, fetch_mode: int) -> None:
        """Set the fetch mode used when a legacy call asks for DB_FETCHMODE_DEFAULT."""
        self._default_fetch_mode = FetchMode.coerce(fetch_mode)

    def _resolve_fetch_mode(self, fetch_mode: int) -> FetchMode:
        if fetch_mode == DB_FETCHMODE_DEFAULT:
            if self._default_fetch_mode is not None:
                return self._default_fetch_mode
            return FetchMode.ORDERED
        return FetchMode.coerce(fetch_mode)

    def is_error(self, value: Any = None) -> bool:
        # Errors are raised, never returned.
        return False

    def auto_commit(self, state: bool) -> None:
        if state:
            try:
                self.link().autocommit = True
            except MySQLError as e:
                raise_for_error(e)
        else:
            self.begin()

    def affected_rows(self) -> int:
        return self.get_affected_rows()

    def execute(self, statement, params: Any = None):
        if params is None:
            params = ()
        elif not isinstance(params, (list, tuple)):
            params = (params,)
        return statement.execute(*params)

    def get_col(self, query: str, col: Any = 0, params: Sequence[Any] = ()) -> List[Any]:
        """Run ``query`` and return one column of every row.

        Raises:
            NoSuchFieldError: If ``col`` isn't a column of the result.
        """
        res = self.query(query, list(params)).set_fetch_mode(FetchMode.COLUMN, col)

        if isinstance(col, str):
            first = res.current(FetchMode.ASSOC)
            present = first is None or col in first
        else:
            first = res.current(FetchMode.ORDERED)
            present = first is None or 0 <= col < len(first)
        if not present:
            raise NoSuchFieldError(f"No such field: {col!r}", query=query)

        return res.fetch_all()

    def get_one(self, query: str, params: Sequence[Any] = ()) -> Any:
        return self.query(query, list(params)).fetch_column(0)

    def get_row(self, query: str, params: Sequence[Any] = (),
                fetch_mode: int = DB_FETCHMODE_DEFAULT) -> Any:
        return self.query(query, list(params)).next(self._resolve_fetch_mode(fetch_mode))

    def get_all(self, query: str, params: Sequence[Any] = (),
                fetch_mode: int = DB_FETCHMODE_DEFAULT) -> List[Any]:
        """Run ``query`` and return every row in the requested fetch mode."""
        return self.query(query, list(params)).set_fetch_mode(self._resolve_fetch_mode(fetch_mode)).fetch_all()

    def get_assoc(self, query: str, force_array: bool = False, params: Sequence[Any] = (),
                  fetch_mode: int = DB_FETCHMODE_DEFAULT, group: bool = False) -> Dict[Any, Any]:
        """Run ``query`` and key the result by its first column.

        With exactly two columns each key maps to the scalar value of the
        second column, unless ``force_array`` is set. Otherwise each key maps
        to the remaining columns, shaped by ``fetch_mode``. With ``group``,
        rows sharing a key are collected in a list instead of the last one
        winning.

        Raises:
            TruncatedResultError: If the result has fewer than two columns.
        """
        res = self.query(query, list(params))

        if res.field_count() < 2:
            raise TruncatedResultError(
                "get_assoc() needs at least two columns in the result", query=query
            )

        results: Dict[Any, Any] = {}

        def store(key, value):
            if group:
                results.setdefault(key, []).append(value)
            else:
                results[key] = value

        if res.field_count() > 2 or force_array:
            mode = self._resolve_fetch_mode(fetch_mode)
            if mode is FetchMode.ASSOC or mode is FetchMode.OBJECT:
                object_class = res.get_fetch_class()
                for row in iter(lambda: res.next(FetchMode.ASSOC), None):
                    first = next(iter(row))
                    key = row.pop(first)
                    store(key, object_class(**row) if mode is FetchMode.OBJECT else row)
            else:
                for row in iter(lambda: res.next(FetchMode.ORDERED), None):
                    # shift the key off so remaining indices start from 0 again
                    store(row.pop(0), row)
        else:
            for row in iter(lambda: res.next(FetchMode.ORDERED), None):
                store(row[0], row[1])

        return results
