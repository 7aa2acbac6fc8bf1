# src/mydbd/result.py
"""Result cursors.

A :class:`ResultSet` wraps the buffered result of one immediate query. A
:class:`StatementResultSet` gives the same interface over the result of a
prepared statement execution, whose rows are copied one by one into a bound
output buffer.

Example::

    res = dbh.query('SELECT id, name FROM users')
    for row in res:
        print(row[0], row[1])

    res.seek(0)
    res.set_fetch_mode(FetchMode.ASSOC)
    for row in res:
        print(row['id'], row['name'])
"""

from types import SimpleNamespace
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .compat import PearCompatResultMixin
from .errors import InvalidArgumentError, OutOfRangeError
from .types import FetchMode

ColumnSelector = Union[int, str]


class StoredResult:
    """Fully buffered rows of one query, as handed over by the driver.

    Holds a physical read offset that :meth:`fetch` advances and
    :meth:`data_seek` moves.
    """

    def __init__(self, field_names: Sequence[str], rows: Sequence[Sequence[Any]]):
        self.field_names: Tuple[str, ...] = tuple(field_names)
        self._rows = list(rows)
        self._offset = 0

    @classmethod
    def from_cursor(cls, cursor) -> 'StoredResult':
        """Take over the rows of an executed ``mysql.connector`` cursor."""
        return cls(cursor.column_names, cursor.fetchall())

    @property
    def field_count(self) -> int:
        return len(self.field_names)

    @property
    def num_rows(self) -> int:
        return len(self._rows)

    def fetch(self) -> Optional[Sequence[Any]]:
        if self._offset >= len(self._rows):
            return None
        row = self._rows[self._offset]
        self._offset += 1
        return row

    def data_seek(self, offset: int) -> None:
        self._offset = offset


def _check_column_selector(col: Any) -> None:
    if isinstance(col, bool) or not isinstance(col, (int, str)):
        raise InvalidArgumentError(f"Column must be an index or a name, got {col!r}")


class ResultSet(PearCompatResultMixin):
    """Forward-seekable cursor over the rows of one query.

    Rows are materialized on demand in the cursor's fetch mode:

    - ``FetchMode.ORDERED``: a list of values in column order (the default).
    - ``FetchMode.ASSOC``: a dict keyed by column name. When several columns
      share a name, the last one wins.
    - ``FetchMode.OBJECT``: an object with one attribute per column, built by
      calling the fetch class with the columns as keyword arguments.
    - ``FetchMode.COLUMN``: the value of a single column.
    """

    def __init__(self, result: StoredResult):
        self._result = result
        self._position = 0
        self._fetch_mode = FetchMode.ORDERED
        self._fetch_class: Callable[..., Any] = SimpleNamespace
        self._fetch_column: ColumnSelector = 0

    def _stored(self) -> StoredResult:
        return self._result

    def _field_names(self) -> Tuple[str, ...]:
        return self._stored().field_names

    def _fetch_raw(self) -> Optional[Sequence[Any]]:
        return self._stored().fetch()

    def _fetch(self) -> Optional[Sequence[Any]]:
        row = self._fetch_raw()
        if row is not None:
            self._position += 1
        return row

    def set_fetch_mode(self, mode: Union[FetchMode, int], arg: Any = None) -> 'ResultSet':
        """Set the fetch mode used by :meth:`next`, :meth:`current` and :meth:`fetch_all`.

        Args:
            mode: One of the :class:`FetchMode` values.
            arg: For ``FetchMode.OBJECT``, the class used to build row objects
                (``types.SimpleNamespace`` by default). For
                ``FetchMode.COLUMN``, the index or name of the column to
                return (0 by default).

        Returns:
            ResultSet: self, for chaining.

        Raises:
            InvalidArgumentError: On an unknown mode or a malformed ``arg``.
        """
        mode = FetchMode.coerce(mode)

        if mode is FetchMode.OBJECT:
            fetch_class = SimpleNamespace if arg is None else arg
            if not callable(fetch_class):
                raise InvalidArgumentError(f"Fetch class must be callable, got {fetch_class!r}")
            self._fetch_class = fetch_class
        elif mode is FetchMode.COLUMN:
            col = 0 if arg is None else arg
            _check_column_selector(col)
            self._fetch_column = col

        self._fetch_mode = mode
        return self

    def get_fetch_mode(self) -> FetchMode:
        return self._fetch_mode

    def get_fetch_class(self) -> Callable[..., Any]:
        return self._fetch_class

    def field_count(self) -> int:
        """Number of columns in the result."""
        return self._stored().field_count

    def row_count(self) -> int:
        """Number of rows in the result."""
        return self._stored().num_rows

    def __len__(self) -> int:
        return self.row_count()

    def key(self) -> int:
        """Index of the row the next fetch will return."""
        return self._position

    def valid(self) -> bool:
        return 0 <= self._position < self.row_count()

    def _assoc(self, row: Sequence[Any]) -> Dict[str, Any]:
        return dict(zip(self._field_names(), row))

    def _extract_column(self, row: Sequence[Any], col: ColumnSelector) -> Any:
        if isinstance(col, str):
            assoc = self._assoc(row)
            if col not in assoc:
                raise OutOfRangeError(f"No such column in row: {col!r}")
            return assoc[col]
        if not 0 <= col < len(row):
            raise OutOfRangeError(f"No such column in row: {col}")
        return row[col]

    def _materialize(self, row: Sequence[Any], mode: FetchMode) -> Any:
        if mode is FetchMode.ORDERED:
            return list(row)
        if mode is FetchMode.ASSOC:
            return self._assoc(row)
        if mode is FetchMode.OBJECT:
            return self._fetch_class(**self._assoc(row))
        return self._extract_column(row, self._fetch_column)

    def next(self, mode: Union[FetchMode, int, None] = None) -> Any:
        """Fetch the next row and advance the cursor.

        Args:
            mode: Fetch mode for this row only; the cursor's mode if omitted.

        Returns:
            The row shaped per the fetch mode, or None past the last row.
        """
        mode = self._fetch_mode if mode is None else FetchMode.coerce(mode)
        row = self._fetch()
        if row is None:
            return None
        return self._materialize(row, mode)

    def current(self, mode: Union[FetchMode, int, None] = None) -> Any:
        """Return the row at the cursor position without consuming it."""
        position = self._position
        row = self.next(mode)
        if self._position > position:
            self.seek(position)
        return row

    def seek(self, position: int) -> None:
        """Move the cursor to an arbitrary row.

        Raises:
            OutOfRangeError: If ``position`` isn't a row of the result.
        """
        if isinstance(position, bool) or not isinstance(position, int) \
                or position < 0 or position > self.row_count() - 1:
            raise OutOfRangeError(f"Invalid seek position: {position!r}")

        self._stored().data_seek(position)
        self._position = position

    def rewind(self) -> None:
        if self.row_count() > 0:
            self.seek(0)

    def fetch_array(self) -> Optional[List[Any]]:
        return self.next(FetchMode.ORDERED)

    def fetch_assoc(self) -> Optional[Dict[str, Any]]:
        return self.next(FetchMode.ASSOC)

    def fetch_object(self) -> Any:
        return self.next(FetchMode.OBJECT)

    def fetch_column(self, col: ColumnSelector = 0) -> Any:
        """Fetch the next row and return a single column of it.

        Args:
            col: Column index, or column name.

        Returns:
            The column value, or None if there is no next row.

        Raises:
            InvalidArgumentError: If ``col`` is neither an int nor a str.
            OutOfRangeError: If the row has no such column.
        """
        _check_column_selector(col)
        row = self._fetch()
        if row is None:
            return None
        return self._extract_column(row, col)

    def __iter__(self) -> Iterator[Any]:
        # Iterate on raw rows so a NULL in COLUMN mode doesn't end the loop.
        while True:
            row = self._fetch()
            if row is None:
                return
            yield self._materialize(row, self._fetch_mode)

    def fetch_all(self) -> List[Any]:
        """Drain the cursor from its position, in the cursor's fetch mode."""
        return list(self)

    def __repr__(self) -> str:
        return (f"<{self.__class__.__name__} rows={self.row_count()} "
                f"fields={self.field_count()} position={self._position} mode={self._fetch_mode.name}>")


class StatementResultSet(ResultSet):
    """Result cursor of a prepared statement execution.

    Each physical fetch overwrites a single bound output buffer in place, and
    the row shapes are projected from that buffer. A statement owns at most
    one such cursor: executing it again resets and reuses the same object,
    so rows from an earlier execution must be consumed before that.

    Note: This class shouldn't be instantiated directly, use
    :meth:`PreparedStatement.execute`.
    """

    def __init__(self, statement):
        super().__init__(statement.stored_result)
        self._statement = statement
        self._names: Optional[Tuple[str, ...]] = None
        self._bound: List[Any] = [None] * statement.stored_result.field_count

    def _stored(self) -> StoredResult:
        return self._statement.stored_result

    def _field_names(self) -> Tuple[str, ...]:
        if self._names is None:
            self._names = tuple(self._statement.result_metadata())
        return self._names

    def _fetch_raw(self) -> Optional[Sequence[Any]]:
        row = self._stored().fetch()
        if row is None:
            return None
        self._bound[:] = row
        return self._bound

    def reset(self) -> 'StatementResultSet':
        """Rewind to the first row and restore the default fetch mode."""
        self._stored().data_seek(0)
        self._position = 0
        self._fetch_mode = FetchMode.ORDERED
        self._fetch_class = SimpleNamespace
        self._fetch_column = 0
        return self
