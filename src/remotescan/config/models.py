# src/remotescan/config/models.py
"""
Connection/query options for a foreign table and the rules that validate them.

Options come from three places, each with its own allowed names:

    server         address, port
    user mapping   username, password
    foreign table  database, query, table

`validate_options` checks one context at a time (what the host does when an
object is created or altered). `RemoteOptions.from_pairs` folds the options of
all three contexts into one typed object with defaults applied.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from remotescan.errors import ConfigurationError, InvalidOptionError

DEFAULT_ADDRESS = "127.0.0.1"
DEFAULT_PORT = 3306
LOCAL_ADDRESSES = ("127.0.0.1", "localhost")


class OptionContext(str, Enum):
    """Catalog object an option may be attached to."""

    SERVER = "server"
    USER_MAPPING = "user_mapping"
    FOREIGN_TABLE = "foreign_table"

    def __str__(self) -> str:
        return self.value


VALID_OPTIONS: Tuple[Tuple[str, OptionContext], ...] = (
    # Connection options
    ("address", OptionContext.SERVER),
    ("port", OptionContext.SERVER),
    ("username", OptionContext.USER_MAPPING),
    ("password", OptionContext.USER_MAPPING),
    ("database", OptionContext.FOREIGN_TABLE),
    ("query", OptionContext.FOREIGN_TABLE),
    ("table", OptionContext.FOREIGN_TABLE),
)


def is_valid_option(name: str, context: OptionContext) -> bool:
    return any(n == name and c == context for n, c in VALID_OPTIONS)


def valid_options_for(context: OptionContext) -> List[str]:
    return [n for n, c in VALID_OPTIONS if c == context]


def validate_options(pairs: Iterable[Tuple[str, Any]], context: OptionContext) -> None:
    """
    Validate the options given to one catalog object.

    Raises:
        InvalidOptionError: an option name is not allowed in this context.
        ConfigurationError: an option repeats, or query and table are combined.
    """
    seen: dict[str, Any] = {}
    for name, value in pairs:
        if not is_valid_option(name, context):
            raise InvalidOptionError(name, str(context), valid_options_for(context))

        if name == "query" and "table" in seen:
            raise ConfigurationError("conflicting options: query cannot be used with table")
        if name == "table" and "query" in seen:
            raise ConfigurationError("conflicting options: table cannot be used with query")

        if name in seen:
            # never echo a password back
            if name == "password":
                raise ConfigurationError("conflicting or redundant options: password")
            raise ConfigurationError(f"conflicting or redundant options: {name} ({value})")
        seen[name] = value


class RemoteOptions(BaseModel):
    """Resolved options for one foreign table scan."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    address: str = Field(default=DEFAULT_ADDRESS, description="Remote host name or IP.")
    port: int = Field(default=DEFAULT_PORT, description="Remote TCP port.")
    username: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    table: Optional[str] = Field(default=None, description="Remote table to read in full.")
    query: Optional[str] = Field(default=None, description="Literal remote SQL to run.")

    @field_validator("address", mode="before")
    @classmethod
    def _default_address(cls, v: Any) -> Any:
        return v or DEFAULT_ADDRESS

    @field_validator("port", mode="before")
    @classmethod
    def _default_port(cls, v: Any) -> Any:
        # "0" or a missing value falls back to the default port
        if v is None or v == "":
            return DEFAULT_PORT
        try:
            port = int(v)
        except (TypeError, ValueError):
            raise ValueError(f"port must be an integer, got {v!r}")
        return port or DEFAULT_PORT

    @model_validator(mode="after")
    def _table_or_query(self) -> "RemoteOptions":
        if self.table and self.query:
            raise ConfigurationError("conflicting options: query cannot be used with table")
        if not self.table and not self.query:
            raise ConfigurationError("either a table or a query must be specified")
        return self

    # ------------------------------ Constructors ------------------------------

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, Any]]) -> "RemoteOptions":
        """
        Fold ``(name, value)`` pairs into options; later pairs win.

        Names this model does not know are ignored here, validation of names
        happens per context in `validate_options`.
        """
        values: dict[str, Any] = {}
        for name, value in pairs:
            if name in cls.model_fields:
                values[name] = value
        return cls(**values)

    # ------------------------------ Derived values ------------------------------

    @property
    def effective_query(self) -> str:
        """The SQL actually sent to the remote source for a scan."""
        if self.query:
            return self.query
        return f"SELECT * FROM {self.table}"

    @property
    def explain_query(self) -> str:
        """Introspective form used for cost estimation."""
        return f"EXPLAIN {self.effective_query}"

    @property
    def is_local(self) -> bool:
        """Literal loopback check; no other latency signal is used."""
        return self.address in LOCAL_ADDRESSES

    def redacted(self) -> dict[str, Any]:
        """Options as a dict with the password masked (for diagnostics)."""
        data = self.model_dump()
        if data.get("password"):
            data["password"] = "***"
        return data
