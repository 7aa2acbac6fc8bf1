# src/mydbd/errors.py
"""Error taxonomy for mydbd.

Every error raised by this package derives from :class:`SQLError`. Errors coming
from the driver are translated by :func:`raise_for_error`, which maps MySQL
error numbers to named error kinds. Codes without a mapping still surface as a
plain :class:`SQLError` carrying the raw code, message and sqlstate.
"""

from typing import Dict, NoReturn, Optional, Type


class SQLError(Exception):
    """Base class of all mydbd errors."""

    def __init__(self, message: Optional[str] = None, code: Optional[int] = None,
                 sqlstate: Optional[str] = None, query: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.sqlstate = sqlstate
        self.query = query

    def __str__(self) -> str:
        text = self.message or self.__class__.__name__
        if self.code is not None:
            text = f"{self.code} ({self.sqlstate or 'HY000'}): {text}"
        return text


class ConnectFailedError(SQLError):
    """Handshake or authentication with the server failed."""


class NotConnectedError(SQLError):
    """No live connection and auto-connect was not requested."""


class ReadOnlyError(SQLError):
    """A write query was sent on a read-only connection."""


class FrozenStatementError(SQLError):
    """prepare() was called on a frozen statement."""


class MismatchError(SQLError):
    pass


class ParamMismatchError(MismatchError):
    """Argument count differs from the number of placeholders."""


class TypeMismatchError(MismatchError):
    """Type hints disagree with the placeholders, or a value can't be coerced."""


class NotPreparedError(SQLError):
    """execute() was called before prepare()."""


class TruncatedResultError(SQLError):
    pass


class NoSuchFieldError(SQLError):
    pass


class OutOfRangeError(SQLError, IndexError):
    pass


class InvalidArgumentError(SQLError, ValueError):
    pass


# Driver-mapped kinds
class CannotCreateError(SQLError):
    pass


class AlreadyExistsError(SQLError):
    pass


class CannotDropError(SQLError):
    pass


class AccessViolationError(SQLError):
    pass


class NoDatabaseSelectedError(SQLError):
    pass


class ConstraintError(SQLError):
    pass


class NoSuchDatabaseError(SQLError):
    pass


class NoSuchTableError(SQLError):
    pass


class SQLSyntaxError(SQLError):
    pass


class NotFoundError(SQLError):
    pass


class NotLockedError(SQLError):
    pass


class DeadlockError(SQLError):
    pass


class ValueCountOnRowError(SQLError):
    pass


class DivisionByZeroError(SQLError):
    pass


ERROR_MAP: Dict[int, Type[SQLError]] = {
    1004: CannotCreateError,
    1005: CannotCreateError,
    1006: CannotCreateError,
    1007: AlreadyExistsError,
    1008: CannotDropError,
    1022: AlreadyExistsError,
    1044: AccessViolationError,
    1046: NoDatabaseSelectedError,
    1048: ConstraintError,
    1049: NoSuchDatabaseError,
    1050: AlreadyExistsError,
    1051: NoSuchTableError,
    1054: NoSuchFieldError,
    1061: AlreadyExistsError,
    1062: AlreadyExistsError,
    1064: SQLSyntaxError,
    1091: NotFoundError,
    1100: NotLockedError,
    1136: ValueCountOnRowError,
    1142: AccessViolationError,
    1146: NoSuchTableError,
    1205: NotLockedError,  # lock wait timeout
    1213: DeadlockError,
    1216: ConstraintError,
    1217: ConstraintError,
    1365: DivisionByZeroError,
    1451: ConstraintError,
    1452: ConstraintError,
    2030: NotPreparedError,
}


def error_class_for(code: Optional[int]) -> Type[SQLError]:
    """Return the error kind mapped to a driver error number."""
    if code is None:
        return SQLError
    return ERROR_MAP.get(code, SQLError)


def raise_for_error(error: Exception, query: Optional[str] = None) -> NoReturn:
    """Translate a driver exception into the matching :class:`SQLError` subclass.

    Args:
        error: Exception raised by ``mysql.connector``.
        query: The SQL text being run, kept on the raised error.

    Raises:
        SQLError: Always; the original driver error is chained as ``__cause__``.
    """
    code = getattr(error, 'errno', None)
    if code is not None and code < 0:
        code = None
    message = getattr(error, 'msg', None) or str(error)
    sqlstate = getattr(error, 'sqlstate', None)
    raise error_class_for(code)(message, code, sqlstate, query) from error
