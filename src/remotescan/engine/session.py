# src/remotescan/engine/session.py
"""
ScanSession: one remote connection and one stored result for one scan.

    IDLE --open()--> CONNECTED --next()--> EXECUTING --close()--> CLOSED
                         |                     |  ^
                         |                     |  | rescan() rewinds the cursor
                         +------close()--------+--+

The query runs lazily on the first next() and its full result is stored
client-side. Rescans only move the read cursor back to the first row; the
query is never executed twice in a session, so a rescan replays exactly the
rows (and order) the first pass saw.

close() is idempotent and may be called from any state. A failure while
executing releases the connection at once and leaves the session CLOSED.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple

from remotescan.config.models import RemoteOptions
from remotescan.connectors.mysql import RemoteClient, RemoteResult
from remotescan.engine.encoding import mysql_charset_for
from remotescan.errors import QueryExecutionError, SessionStateError
from remotescan.logging import get_logger

_logger = get_logger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    CONNECTED = "connected"
    EXECUTING = "executing"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RemoteRow:
    """One fetched row: raw field bytes (None = SQL NULL) and their lengths."""

    fields: Tuple[Optional[bytes], ...]
    lengths: Tuple[int, ...]

    def __len__(self) -> int:
        return len(self.fields)


class ScanSession:
    """Owns the remote connection and result set of a single table scan."""

    def __init__(self, client: Optional[RemoteClient] = None, encoding: str = "UTF8"):
        self.client = client or RemoteClient()
        self.encoding = encoding
        self.state = SessionState.IDLE
        self.query: Optional[str] = None
        self.num_fields: Optional[int] = None
        self._conn: Any = None
        self._result: Optional[RemoteResult] = None

    # ------------------------------ Lifecycle ------------------------------

    def open(self, options: RemoteOptions) -> "ScanSession":
        """Connect and resolve the query text. Does not run the query."""
        if self.state is not SessionState.IDLE:
            raise SessionStateError(f"cannot open a session that is {self.state}")

        self._conn = self.client.connect(options, charset=mysql_charset_for(self.encoding))
        self.query = options.effective_query
        self.state = SessionState.CONNECTED
        return self

    def next(self) -> Optional[RemoteRow]:
        """
        Return the next remote row, or None once the result is exhausted.

        The first call runs the query and stores the full result.
        """
        if self.state is SessionState.CONNECTED:
            self._execute()
        elif self.state is not SessionState.EXECUTING:
            raise SessionStateError(f"cannot fetch from a session that is {self.state}")

        fields = self._result.fetch_row()
        if fields is None:
            return None
        return RemoteRow(fields=fields, lengths=self._result.fetch_lengths())

    def rescan(self) -> None:
        """Rewind to the first stored row; a no-op before the first fetch."""
        if self.state is SessionState.CONNECTED:
            return
        if self.state is not SessionState.EXECUTING:
            raise SessionStateError(f"cannot rescan a session that is {self.state}")

        self._result.data_seek(0)

    def close(self) -> None:
        """Release result, connection and query text; safe to repeat."""
        if self._result is not None:
            self._result.free()
            self._result = None

        if self._conn is not None:
            self.client.close(self._conn)
            self._conn = None

        self.query = None
        self.state = SessionState.CLOSED

    # ------------------------------ Helpers ------------------------------

    def _execute(self) -> None:
        try:
            self._result = self.client.query(self._conn, self.query)
        except QueryExecutionError:
            # the client already closed the connection; make sure we don't reuse it
            self._conn = None
            self.close()
            raise

        # the remote schema is assumed stable for the whole session
        self.num_fields = self._result.num_fields
        self.state = SessionState.EXECUTING
        _logger.debug(
            "Executed remote query (%s field(s), %s row(s)): %s",
            self.num_fields, self._result.num_rows, self.query,
        )

    @property
    def is_open(self) -> bool:
        return self.state in (SessionState.CONNECTED, SessionState.EXECUTING)

    def __enter__(self) -> "ScanSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __iter__(self):
        while True:
            row = self.next()
            if row is None:
                return
            yield row
