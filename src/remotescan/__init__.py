# src/remotescan/__init__.py
"""
remotescan - read a remote MySQL table as if it were a local relation

Usage:
    # CLI
    $ remotescan explain orders --config remotescan.yml
    $ remotescan scan orders --limit 20

    # Python API - configured foreign table
    import remotescan
    config = remotescan.load_config("remotescan.yml")
    est = remotescan.estimate(config, "orders")
    print(est.rows, est.startup_cost)

    for row in remotescan.scan(config, "orders"):
        print(row)

    df = remotescan.to_polars(config, "orders", limit=1000)

    # Python API - building blocks
    from remotescan import RemoteOptions, LocalSchema, ForeignScan
    options = RemoteOptions(address="db.internal", table="orders")
    schema = LocalSchema.from_columns([{"name": "id", "type": "int8"}])
    with ForeignScan(options, schema) as fs:
        for tup in fs:
            ...
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, Optional

import polars as pl

from remotescan.version import VERSION as __version__

from remotescan.config.models import OptionContext, RemoteOptions, validate_options
from remotescan.config.settings import RemoteScanConfig, load_config, resolve_foreign_table
from remotescan.connectors.mysql import RemoteClient
from remotescan.engine.cost import CostEstimate, CostEstimator
from remotescan.engine.encoding import EncodingGuard
from remotescan.engine.frame import to_polars as _frame_to_polars
from remotescan.engine.materializer import OutputTuple, RowMaterializer
from remotescan.engine.scan import ForeignScan, ScanPlan
from remotescan.engine.schema import LocalSchema, TypeCategory
from remotescan.engine.session import RemoteRow, ScanSession, SessionState
from remotescan.errors import (
    ClientInitError,
    ConfigurationError,
    ConnectionFailedError,
    ConversionError,
    EncodingError,
    InvalidOptionError,
    QueryExecutionError,
    RemoteScanError,
    SchemaMismatchError,
    SessionStateError,
)
from remotescan.logging import get_logger

_logger = get_logger(__name__)


def open_scan(
    config: RemoteScanConfig,
    table: str,
    *,
    client: Optional[RemoteClient] = None,
) -> ForeignScan:
    """Build (but don't begin) a ForeignScan for a configured foreign table."""
    options, schema = resolve_foreign_table(config, table)
    return ForeignScan(
        options,
        schema,
        client=client,
        on_encoding_error=config.encoding_errors,
    )


def estimate(
    config: RemoteScanConfig,
    table: str,
    *,
    client: Optional[RemoteClient] = None,
) -> CostEstimate:
    """Estimate rows and startup cost for a configured foreign table."""
    options, _ = resolve_foreign_table(config, table)
    return CostEstimator(client).estimate(options, config.encoding)


def scan(
    config: RemoteScanConfig,
    table: str,
    *,
    client: Optional[RemoteClient] = None,
) -> Iterator[Dict[str, Any]]:
    """
    Yield the rows of a configured foreign table as ``{column: value}`` dicts.

    The remote connection is closed when the generator is exhausted or closed.
    """
    fs = open_scan(config, table, client=client)
    with fs:
        for tup in fs:
            yield tup.as_dict(fs.schema)


def to_polars(
    config: RemoteScanConfig,
    table: str,
    *,
    limit: Optional[int] = None,
    client: Optional[RemoteClient] = None,
) -> pl.DataFrame:
    """Read a configured foreign table into a Polars DataFrame."""
    fs = open_scan(config, table, client=client)
    with fs:
        return _frame_to_polars(fs, fs.schema, limit=limit)


__all__ = [
    "__version__",
    # API
    "load_config",
    "open_scan",
    "estimate",
    "scan",
    "to_polars",
    # Types
    "RemoteScanConfig",
    "RemoteOptions",
    "OptionContext",
    "validate_options",
    "RemoteClient",
    "CostEstimate",
    "CostEstimator",
    "EncodingGuard",
    "ForeignScan",
    "ScanPlan",
    "LocalSchema",
    "TypeCategory",
    "OutputTuple",
    "RowMaterializer",
    "RemoteRow",
    "ScanSession",
    "SessionState",
    # Errors
    "RemoteScanError",
    "ConfigurationError",
    "InvalidOptionError",
    "ClientInitError",
    "ConnectionFailedError",
    "QueryExecutionError",
    "SessionStateError",
    "SchemaMismatchError",
    "ConversionError",
    "EncodingError",
]
