from .cost import CostEstimate, CostEstimator, estimate
from .encoding import EncodingGuard
from .materializer import OutputTuple, RowMaterializer, materialize
from .scan import ForeignScan, ScanPlan
from .schema import Attribute, LocalSchema, TypeCategory
from .session import RemoteRow, ScanSession, SessionState

__all__ = [
    "Attribute",
    "CostEstimate",
    "CostEstimator",
    "EncodingGuard",
    "ForeignScan",
    "LocalSchema",
    "OutputTuple",
    "RemoteRow",
    "RowMaterializer",
    "ScanPlan",
    "ScanSession",
    "SessionState",
    "TypeCategory",
    "estimate",
    "materialize",
]
