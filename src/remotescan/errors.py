# src/remotescan/errors.py
"""
Error taxonomy for remote scans.

Every fatal condition raised by this package derives from RemoteScanError.
Remote-side failures keep the remote source's own error text verbatim in
``remote_message`` so callers can report it without parsing our wording.

    RemoteScanError
    ├── ConfigurationError          bad/missing options, unknown types/encodings
    │   └── InvalidOptionError      option not valid in its context
    ├── ClientInitError             client object could not be created
    ├── ConnectionFailedError       connection could not be established
    ├── QueryExecutionError         remote query or result retrieval failed
    ├── SessionStateError           lifecycle call in the wrong state
    ├── SchemaMismatchError         remote row shape vs local schema
    ├── ConversionError             input function rejected a value
    └── EncodingError               invalid bytes (strict mode only)
"""

from __future__ import annotations

from typing import Optional


class RemoteScanError(RuntimeError):
    """Base error for remote scan failures."""


class ConfigurationError(RemoteScanError):
    """Raised when options or configuration cannot be used."""


class InvalidOptionError(ConfigurationError):
    """Raised for an option name that is not valid in its context."""

    def __init__(self, option: str, context: str, valid: list[str]):
        self.option = option
        self.context = context
        self.valid = list(valid)
        hint = ", ".join(self.valid) if self.valid else "<none>"
        super().__init__(
            f'invalid option "{option}"\n'
            f"Hint: Valid options in this context are: {hint}"
        )


class _RemoteFailure(RemoteScanError):
    """Failure that carries the remote source's error text."""

    prefix = "remote operation failed"

    def __init__(self, remote_message: str, *, query: Optional[str] = None):
        self.remote_message = remote_message
        self.query = query
        super().__init__(f"{self.prefix}: {remote_message}")


class ClientInitError(_RemoteFailure):
    """Raised when the client connection object cannot be initialised."""

    prefix = "failed to initialise the MySQL connection object"


class ConnectionFailedError(_RemoteFailure):
    """Raised when the connection to the remote source fails."""

    prefix = "failed to connect to MySQL"


class QueryExecutionError(_RemoteFailure):
    """Raised when the remote query or its result retrieval fails."""

    prefix = "failed to execute the MySQL query"


class SessionStateError(RemoteScanError):
    """Raised when a session lifecycle call is made in the wrong state."""


class SchemaMismatchError(RemoteScanError):
    """Raised when a remote row does not line up with the local schema."""


class ConversionError(RemoteScanError):
    """Raised when an attribute's input function rejects a value."""

    def __init__(self, attribute: str, type_name: str, raw: bytes, cause: BaseException):
        self.attribute = attribute
        self.type_name = type_name
        self.raw = raw
        preview = raw[:32].decode("utf-8", errors="replace")
        if len(raw) > 32:
            preview += "…"
        super().__init__(
            f'invalid input syntax for type {type_name}: "{preview}" '
            f"(column {attribute}): {cause}"
        )


class EncodingError(RemoteScanError):
    """Raised for an invalid byte sequence when leniency is turned off."""


def format_error_for_cli(exc: BaseException) -> str:
    """Render an exception as a short, single-paragraph CLI message."""
    if isinstance(exc, ConnectionFailedError):
        return f"Connection failed: {exc.remote_message}"
    if isinstance(exc, QueryExecutionError):
        msg = f"Remote query failed: {exc.remote_message}"
        if exc.query:
            msg += f"\n  Query: {exc.query}"
        return msg
    if isinstance(exc, ClientInitError):
        return f"Client initialisation failed: {exc.remote_message}"
    if isinstance(exc, RemoteScanError):
        return str(exc)
    if isinstance(exc, FileNotFoundError):
        return f"File not found: {exc.filename or exc}"
    return f"{type(exc).__name__}: {exc}"
