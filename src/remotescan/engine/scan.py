# src/remotescan/engine/scan.py
"""
ForeignScan: drives one foreign table through the host's scan callbacks.

The host calls, in order:

    plan()      cost estimate (own short-lived connection)
    explain()   optional diagnostics
    begin()     open a ScanSession
    iterate()   one OutputTuple per call, None at the end
    rescan()    replay from the first row (any number of times)
    end()       release everything

Each callback maps onto ScanSession / RowMaterializer / CostEstimator; this
class only holds them together and checks that calls arrive in order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Union

from remotescan.config.models import RemoteOptions
from remotescan.connectors.mysql import RemoteClient
from remotescan.engine.cost import CostEstimate, CostEstimator, startup_cost_for
from remotescan.engine.materializer import EncodingErrorPolicy, OutputTuple, RowMaterializer
from remotescan.engine.schema import LocalSchema
from remotescan.engine.session import ScanSession, SessionState
from remotescan.errors import SessionStateError


@dataclass(frozen=True)
class ScanPlan:
    rows: float
    startup_cost: int
    total_cost: float

    @classmethod
    def from_estimate(cls, est: CostEstimate) -> "ScanPlan":
        return cls(rows=est.rows, startup_cost=est.startup_cost, total_cost=est.total_cost)


class ForeignScan:
    """A scan of one foreign table, from planning to scan end."""

    def __init__(
        self,
        options: RemoteOptions,
        schema: LocalSchema,
        *,
        client: Optional[RemoteClient] = None,
        on_encoding_error: EncodingErrorPolicy = "null",
    ):
        self.options = options
        self.schema = schema
        self.client = client or RemoteClient()
        self.materializer = RowMaterializer(
            schema, schema.encoding, on_encoding_error=on_encoding_error
        )
        self.session: Optional[ScanSession] = None
        self.plan_result: Optional[ScanPlan] = None

    # ------------------------------ Planning ------------------------------

    def plan(self) -> ScanPlan:
        est = CostEstimator(self.client).estimate(self.options, self.schema.encoding)
        self.plan_result = ScanPlan.from_estimate(est)
        return self.plan_result

    def explain(self, costs: bool = True) -> Dict[str, Union[int, str]]:
        """Extra EXPLAIN properties: startup-cost tier and the remote query."""
        props: Dict[str, Union[int, str]] = {}
        if not costs:
            return props

        startup = startup_cost_for(self.options)
        if self.options.is_local:
            props["Local server startup cost"] = startup
        else:
            props["Remote server startup cost"] = startup
        query = self.session.query if self.session and self.session.query else None
        props["MySQL query"] = query or self.options.effective_query
        return props

    # ------------------------------ Execution ------------------------------

    def begin(self) -> None:
        if self.session is not None and self.session.state is not SessionState.CLOSED:
            raise SessionStateError("scan already started")
        self.session = ScanSession(self.client, encoding=self.schema.encoding)
        self.session.open(self.options)

    def iterate(self) -> Optional[OutputTuple]:
        session = self._require_session()
        row = session.next()
        if row is None:
            return None
        return self.materializer.materialize(row, session.num_fields)

    def rescan(self) -> None:
        self._require_session().rescan()

    def end(self) -> None:
        if self.session is not None:
            self.session.close()

    def _require_session(self) -> ScanSession:
        if self.session is None:
            raise SessionStateError("scan has not been started")
        return self.session

    # ------------------------------ Conveniences ------------------------------

    def __iter__(self) -> Iterator[OutputTuple]:
        while True:
            tup = self.iterate()
            if tup is None:
                return
            yield tup

    def __enter__(self) -> "ForeignScan":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end()
