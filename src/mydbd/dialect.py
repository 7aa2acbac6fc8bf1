# src/mydbd/dialect.py
"""SQL text helpers: placeholder scanning, read-only classification and trace comments.

None of these parse SQL. They only look at the text deeply enough to find
parameter markers and the leading verb; everything else is left to the server.
"""

import datetime
import re
from decimal import Decimal
from typing import Any, Dict, Iterator, Optional, Sequence

WRITE_QUERY_RE = re.compile(r'^\s*(insert|delete|update|replace|create)\s', re.IGNORECASE)
NOREPLI_QUERY_RE = re.compile(
    r'^\s*(insert|delete|update|replace|create)\s+(from|into|table)\s+norepli_\w+',
    re.IGNORECASE
)
TEMPORARY_QUERY_RE = re.compile(r'^\s*create\s+temporary\s+', re.IGNORECASE)


def iter_placeholders(query: str) -> Iterator[int]:
    """Yield the offset of every ``?`` marker in ``query``.

    Question marks inside quoted strings, quoted identifiers and comments are
    not markers. Whether a marker sits at a legal position is for the server
    to decide.
    """
    i = 0
    length = len(query)
    while i < length:
        char = query[i]
        if char in ("'", '"', '`'):
            i += 1
            while i < length:
                if query[i] == '\\' and char != '`':
                    i += 2
                    continue
                if query[i] == char:
                    if i + 1 < length and query[i + 1] == char:
                        i += 2
                        continue
                    break
                i += 1
        elif char == '#' or (char == '-' and query.startswith('-- ', i)) or query.startswith('--\n', i):
            end = query.find('\n', i)
            i = length if end == -1 else end
        elif char == '/' and query.startswith('/*', i):
            end = query.find('*/', i + 2)
            i = length if end == -1 else end + 1
        elif char == '?':
            yield i
        i += 1


def count_placeholders(query: str) -> int:
    return sum(1 for _ in iter_placeholders(query))


def is_readonly_violation(query: str) -> bool:
    """Tell whether ``query`` writes outside what a read-only connection allows.

    Writes into ``norepli_`` tables and ``CREATE TEMPORARY`` statements are
    not replicated and stay allowed.
    """
    if not WRITE_QUERY_RE.match(query):
        return False
    if NOREPLI_QUERY_RE.match(query):
        return False
    if TEMPORARY_QUERY_RE.match(query):
        return False
    return True


def build_trace_comment(info: Dict[str, Any]) -> str:
    """Render extended info as a trailing SQL comment, or '' when there's none.

    The comment terminator is escaped in keys and values so an annotation
    can't close the comment early.
    """
    if not info:
        return ''
    body = ', '.join(f"{key}:{value}" for key, value in info.items())
    return ' /* ' + body.replace('*/', '*\\/') + ' */'


def format_literal(value: Any) -> str:
    """Format a parameter as an SQL literal for display in the query log."""
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "X'" + bytes(value).hex() + "'"
    if isinstance(value, (datetime.date, datetime.time, datetime.timedelta)):
        value = str(value)
    text = str(value).replace('\\', '\\\\').replace("'", "\\'")
    return f"'{text}'"


def interpolate_params(query: str, params: Optional[Sequence[Any]]) -> str:
    """Substitute ``params`` into the ``?`` markers of ``query`` for display only.

    Markers left over when there are fewer params than markers are kept as is.
    """
    if not params:
        return query

    parts = []
    last = 0
    for index, offset in enumerate(iter_placeholders(query)):
        if index >= len(params):
            break
        parts.append(query[last:offset])
        parts.append(format_literal(params[index]))
        last = offset + 1
    parts.append(query[last:])
    return ''.join(parts)
