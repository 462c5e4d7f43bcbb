# src/remotescan/engine/frame.py
"""
Collect scan output into a Polars DataFrame.

Only live attributes become columns. Types with an obvious Polars dtype get
it explicitly so an all-NULL column still has the right type; the rest
(numeric, json) are left to Polars inference.
"""

from __future__ import annotations

from itertools import islice
from typing import Dict, Iterable, Optional

import polars as pl

from remotescan.engine.materializer import OutputTuple
from remotescan.engine.schema import LocalSchema

_DTYPES: Dict[str, pl.DataType] = {
    "int2": pl.Int16, "smallint": pl.Int16,
    "int4": pl.Int32, "int": pl.Int32, "integer": pl.Int32,
    "int8": pl.Int64, "bigint": pl.Int64,
    "float4": pl.Float32, "real": pl.Float32,
    "float8": pl.Float64, "double precision": pl.Float64, "float": pl.Float64,
    "bool": pl.Boolean, "boolean": pl.Boolean,
    "text": pl.Utf8, "varchar": pl.Utf8, "character varying": pl.Utf8,
    "char": pl.Utf8, "character": pl.Utf8, "bpchar": pl.Utf8, "name": pl.Utf8,
    "date": pl.Date,
    "timestamp": pl.Datetime, "timestamp without time zone": pl.Datetime,
    "time": pl.Time,
    "bytea": pl.Binary,
}


def polars_dtype_for(type_name: str) -> Optional[pl.DataType]:
    key = " ".join(type_name.lower().split()).split("(", 1)[0].strip()
    return _DTYPES.get(key)


def to_polars(
    tuples: Iterable[OutputTuple],
    schema: LocalSchema,
    limit: Optional[int] = None,
) -> pl.DataFrame:
    """
    Build a DataFrame from output tuples (e.g. a ForeignScan being iterated).

    Args:
        tuples: OutputTuple iterable; consumed up to ``limit`` tuples.
        schema: the schema the tuples were materialized against.
        limit: optional maximum number of rows to collect.
    """
    live = [(i, a) for i, a in enumerate(schema) if not a.dropped]
    columns: Dict[str, list] = {a.name: [] for _, a in live}

    # islice stops before pulling (and materializing) row limit + 1
    for tup in islice(tuples, limit):
        for i, attr in live:
            columns[attr.name].append(None if tup.nulls[i] else tup.values[i])

    series = []
    for _, attr in live:
        dtype = polars_dtype_for(attr.type_name)
        values = columns[attr.name]
        if dtype is not None:
            series.append(pl.Series(attr.name, values, dtype=dtype))
        elif values and any(v is not None for v in values):
            series.append(pl.Series(attr.name, values, strict=False))
        else:
            series.append(pl.Series(attr.name, values, dtype=pl.Null))
    return pl.DataFrame(series)
