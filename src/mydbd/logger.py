# src/mydbd/logger.py
"""Process-wide SQL query log.

When the ``query_log`` option of a connection is on, every query, prepare and
execute is recorded here with its duration and the call path that issued it.
Records are also emitted at DEBUG level on this module's logger.
"""

import logging
import os
import threading
import traceback
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .dialect import interpolate_params

logger = logging.getLogger(__name__)

_PACKAGE_DIR = os.path.dirname(os.path.abspath(__file__))


@dataclass(frozen=True)
class QueryLogEntry:
    """One logged command.

    Attributes:
        command: "query", "prepare" or "execute".
        query: SQL text, with markers resolved from the parameters if any.
        duration: Time taken to complete the command, in milliseconds.
        callpath: "file:line" of each caller frame, outermost first.
    """
    command: str
    query: str
    duration: float
    callpath: Tuple[str, ...]


def _call_path() -> Tuple[str, ...]:
    path = []
    for frame in traceback.extract_stack():
        filename = os.path.abspath(frame.filename)
        if os.path.dirname(filename) == _PACKAGE_DIR:
            continue
        path.append(f"{frame.filename}:{frame.lineno}")
    return tuple(path)


class QueryLogger:
    """Append-only log of executed commands with simple aggregate statistics."""

    def __init__(self):
        self._entries: List[QueryLogEntry] = []
        self._lock = threading.Lock()

    def log(self, command: str, query: str, params: Optional[Sequence[Any]] = None,
            duration: float = 0) -> QueryLogEntry:
        """Record a command.

        Args:
            command: The command executed: "query", "prepare" or "execute".
            query: The SQL query executed or prepared.
            params: Values of the query markers. They are substituted into the
                logged text only, never into the query sent to the server.
            duration: Milliseconds taken to complete the command.

        Returns:
            QueryLogEntry: The recorded entry.
        """
        if params is not None:
            query = interpolate_params(query, params)
        entry = QueryLogEntry(command, query, duration, _call_path())
        logger.debug(f"{command} {query} ({duration:.3f}ms)")

        with self._lock:
            self._entries.append(entry)
        return entry

    def get_logs(self, sort_by_duration: bool = False) -> List[QueryLogEntry]:
        """Return logged entries, slowest first if ``sort_by_duration`` is set."""
        with self._lock:
            entries = list(self._entries)
        if sort_by_duration:
            entries.sort(key=lambda entry: entry.duration, reverse=True)
        return entries

    def get_global_stats(self) -> Dict[str, float]:
        """Compute statistics over everything logged so far.

        Returns:
            dict: ``total_time`` spent by all commands, ``total_queries`` run
            (every entry except "prepare") and ``max_time``, the slowest
            single command.
        """
        stats = {'total_time': 0, 'total_queries': 0, 'max_time': 0}
        for entry in self.get_logs():
            if entry.command != 'prepare':
                stats['total_queries'] += 1
            stats['total_time'] += entry.duration
            stats['max_time'] = max(stats['max_time'], entry.duration)
        return stats

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


default_logger = QueryLogger()

log = default_logger.log
get_logs = default_logger.get_logs
get_global_stats = default_logger.get_global_stats
clear = default_logger.clear
