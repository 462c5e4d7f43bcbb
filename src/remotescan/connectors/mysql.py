# src/remotescan/connectors/mysql.py
"""
MySQL client wrapper used by cost estimation and scan sessions.

A thin, blocking layer over PyMySQL that looks like the classic client API:

    client = RemoteClient()
    conn = client.connect(options, charset="utf8mb4")
    result = client.query(conn, "SELECT * FROM t")   # runs + stores the result
    row = result.fetch_row(); lengths = result.fetch_lengths()
    result.data_seek(0); result.free(); client.close(conn)

Values are fetched as raw bytes (no server-side decoding, no type
converters) so conversion happens against the local schema. Nothing here
retries; each call is attempted once and failures are mapped onto the
remotescan error taxonomy with the server's message kept verbatim.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

import pymysql
import pymysql.err

from remotescan.config.models import RemoteOptions
from remotescan.errors import ClientInitError, ConnectionFailedError, QueryExecutionError
from remotescan.logging import get_logger

_logger = get_logger(__name__)

RawRow = Tuple[Optional[bytes], ...]


def _error_text(exc: BaseException) -> str:
    """Server error text without the (errno, ...) tuple wrapping."""
    args = getattr(exc, "args", ())
    if len(args) >= 2 and isinstance(args[0], int):
        return str(args[1])
    return str(exc)


class RemoteResult:
    """
    A fully stored result set with a movable read cursor.

    Wraps a buffered PyMySQL cursor: every row is already client-side, so
    ``data_seek`` is just a cursor move and never goes back to the server.
    """

    def __init__(self, cursor: Any):
        self._cursor = cursor
        self._current: Optional[RawRow] = None
        self.freed = False

    @property
    def num_fields(self) -> int:
        return len(self._cursor.description or ())

    @property
    def num_rows(self) -> int:
        return int(self._cursor.rowcount or 0)

    @property
    def field_names(self) -> list[str]:
        return [d[0] for d in (self._cursor.description or ())]

    def fetch_row(self) -> Optional[RawRow]:
        """Next row as raw values (None for SQL NULL), or None at the end."""
        row = self._cursor.fetchone()
        self._current = tuple(row) if row is not None else None
        return self._current

    def fetch_lengths(self) -> Tuple[int, ...]:
        """Byte lengths of the fields of the row last returned by fetch_row."""
        if self._current is None:
            return ()
        return tuple(0 if v is None else len(v) for v in self._current)

    def data_seek(self, offset: int = 0) -> None:
        self._current = None
        # an empty result has no row to seek to
        if self.num_rows == 0:
            return
        self._cursor.scroll(offset, mode="absolute")

    def free(self) -> None:
        if self.freed:
            return
        self.freed = True
        self._cursor.close()


class RemoteClient:
    """Blocking MySQL client. ``driver`` defaults to the pymysql module."""

    def __init__(self, driver: Any = None):
        self._driver = driver or pymysql
        self.last_error: Optional[str] = None

    def _connection_kwargs(self, options: RemoteOptions, charset: str) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "host": options.address,
            "port": options.port,
            "user": options.username,
            "password": options.password or "",
            "database": options.database,
            "charset": charset,
            # keep values as bytes; the local schema does the conversion
            "use_unicode": False,
            "conv": {},
            "defer_connect": True,
        }
        return kwargs

    def connect(self, options: RemoteOptions, charset: str) -> Any:
        """
        Open a connection with the given charset forced on the session.

        Raises:
            ClientInitError: the client object could not be created.
            ConnectionFailedError: the server could not be reached or refused us.
        """
        try:
            conn = self._driver.connect(**self._connection_kwargs(options, charset))
        except MemoryError as exc:
            self.last_error = str(exc) or "out of memory"
            raise ClientInitError(self.last_error) from exc
        except (LookupError, ValueError, TypeError, AttributeError) as exc:
            # bad charset or parameter, rejected before any I/O
            self.last_error = str(exc)
            raise ClientInitError(self.last_error) from exc

        try:
            conn.connect()
        except pymysql.err.MySQLError as exc:
            self.last_error = _error_text(exc)
            self._close_quietly(conn)
            raise ConnectionFailedError(self.last_error) from exc
        except (OSError, LookupError, ValueError, TypeError) as exc:
            # socket errors, or credentials the charset cannot encode
            self.last_error = str(exc)
            self._close_quietly(conn)
            raise ConnectionFailedError(self.last_error) from exc

        _logger.debug(
            "Connected to MySQL at %s:%s (database=%s, charset=%s)",
            options.address, options.port, options.database, charset,
        )
        return conn

    def query(self, conn: Any, sql: str) -> RemoteResult:
        """
        Run ``sql`` and store its full result client-side.

        On failure the connection is closed before the error propagates.
        """
        cursor = None
        try:
            cursor = conn.cursor()
            cursor.execute(sql)
        except (pymysql.err.MySQLError, OSError, LookupError, ValueError, TypeError) as exc:
            # the SQL text may not encode in the connection charset
            self.last_error = _error_text(exc)
            if cursor is not None:
                cursor.close()
            self.close(conn)
            raise QueryExecutionError(self.last_error, query=sql) from exc

        if cursor.description is None:
            # statement ran but produced no result set (not a SELECT)
            self.last_error = "query did not return a result set"
            cursor.close()
            self.close(conn)
            raise QueryExecutionError(self.last_error, query=sql)

        _logger.debug("Stored %s row(s) for query: %s", cursor.rowcount, sql)
        return RemoteResult(cursor)

    def close(self, conn: Any) -> None:
        self._close_quietly(conn)

    def _close_quietly(self, conn: Any) -> None:
        if not getattr(conn, "open", True):
            return
        try:
            conn.close()
        except pymysql.err.Error as exc:
            # already closed by the server side; nothing left to release
            _logger.debug("Ignoring error while closing connection: %s", exc)
