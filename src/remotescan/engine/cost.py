# src/remotescan/engine/cost.py
"""
Cost estimation for a foreign table scan.

MySQL's EXPLAIN output only gives a row estimate per relation in the
statement, so the estimate is the sum of those estimates over all EXPLAIN
rows. It is a heuristic, not a selectivity model: fine for a single table,
poor for joins. The same number is used as the row count and, added to a
startup constant, as the total cost.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from remotescan.config.models import RemoteOptions
from remotescan.connectors.mysql import RemoteClient
from remotescan.engine.encoding import mysql_charset_for
from remotescan.logging import get_logger

_logger = get_logger(__name__)

# Position of the "rows" column in a MySQL EXPLAIN row (id, select_type,
# table, [partitions,] type, possible_keys, key, key_len, ref, rows, ...).
# This is an assumption about the remote EXPLAIN shape and varies with the
# server version; it is not a guaranteed contract.
EXPLAIN_ROWS_COLUMN = 8

LOCAL_STARTUP_COST = 10
REMOTE_STARTUP_COST = 25


@dataclass(frozen=True)
class CostEstimate:
    rows: float
    startup_cost: int
    query: str

    def __iter__(self):
        # rows, startup = estimate(...)
        return iter((self.rows, self.startup_cost))

    @property
    def total_cost(self) -> float:
        return self.rows + self.startup_cost

    @property
    def tier(self) -> str:
        return "local" if self.startup_cost == LOCAL_STARTUP_COST else "remote"

    def to_dict(self) -> dict:
        return {
            "rows": self.rows,
            "startup_cost": self.startup_cost,
            "total_cost": self.total_cost,
            "tier": self.tier,
            "query": self.query,
        }


def startup_cost_for(options: RemoteOptions) -> int:
    """Local databases are probably faster."""
    return LOCAL_STARTUP_COST if options.is_local else REMOTE_STARTUP_COST


def _parse_estimate(raw: Optional[bytes]) -> float:
    # same leniency as atof(): NULL or garbage counts as zero
    if raw is None:
        return 0.0
    try:
        return float(raw)
    except ValueError:
        _logger.debug("Non-numeric EXPLAIN row estimate %r counted as 0", raw)
        return 0.0


class CostEstimator:
    """Asks the remote source to EXPLAIN the scan query and sums its row estimates."""

    def __init__(self, client: Optional[RemoteClient] = None):
        self.client = client or RemoteClient()

    def estimate(self, options: RemoteOptions, encoding: str = "UTF8") -> CostEstimate:
        """
        Estimate rows and startup cost for scanning ``options``' table/query.

        Opens a short-lived connection, always closed before returning.
        Connection and query failures propagate; there is no fallback value.
        """
        startup = startup_cost_for(options)
        query = options.explain_query

        conn = self.client.connect(options, charset=mysql_charset_for(encoding))
        try:
            # a failing query closes the connection itself before raising
            result = self.client.query(conn, query)
            try:
                rows = 0.0
                while True:
                    row = result.fetch_row()
                    if row is None:
                        break
                    if len(row) > EXPLAIN_ROWS_COLUMN:
                        rows += _parse_estimate(row[EXPLAIN_ROWS_COLUMN])
            finally:
                result.free()
        finally:
            self.client.close(conn)

        _logger.debug("Estimated %s row(s), startup cost %s for: %s", rows, startup, query)
        return CostEstimate(rows=rows, startup_cost=startup, query=query)


def estimate(
    options: RemoteOptions,
    encoding: str = "UTF8",
    client: Optional[RemoteClient] = None,
) -> CostEstimate:
    """Module-level shortcut for ``CostEstimator(client).estimate(...)``."""
    return CostEstimator(client).estimate(options, encoding)
