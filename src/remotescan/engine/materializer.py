# src/remotescan/engine/materializer.py
"""
RowMaterializer: converts one remote row into a local OutputTuple.

Remote fields and local attributes are walked in lockstep, except that a
dropped attribute produces a NULL slot without consuming a remote field.

Per consumed field:
  - SQL NULL               -> NULL
  - zero length            -> input function applied to b"" (not NULL)
  - text with bad encoding -> NULL + warning (scan continues)
  - anything else          -> input function applied to the raw bytes

An input function that rejects its value is fatal: that is a type mismatch
between the local and remote columns, not a byte-level defect of the data.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional

from remotescan.engine.encoding import EncodingGuard
from remotescan.engine.schema import Attribute, LocalSchema, TypeCategory
from remotescan.engine.session import RemoteRow
from remotescan.errors import ConversionError, EncodingError, SchemaMismatchError
from remotescan.logging import get_logger

_logger = get_logger(__name__)

EncodingErrorPolicy = Literal["null", "error"]


@dataclass
class OutputTuple:
    """Typed values plus null flags, one slot per schema attribute."""

    values: List[Any] = field(default_factory=list)
    nulls: List[bool] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    def is_null(self, index: int) -> bool:
        return self.nulls[index]

    def as_dict(self, schema: LocalSchema) -> Dict[str, Any]:
        """Live attribute name -> value (dropped attributes are left out)."""
        return {
            attr.name: (None if self.nulls[i] else self.values[i])
            for i, attr in enumerate(schema)
            if not attr.dropped
        }


class RowMaterializer:
    """Materializes remote rows against a fixed local schema."""

    def __init__(
        self,
        schema: LocalSchema,
        encoding: Optional[str] = None,
        on_encoding_error: EncodingErrorPolicy = "null",
    ):
        if on_encoding_error not in ("null", "error"):
            raise ValueError(f"on_encoding_error must be 'null' or 'error', got {on_encoding_error!r}")
        self.schema = schema
        self.guard = EncodingGuard(encoding or schema.encoding)
        self.on_encoding_error = on_encoding_error
        self.encoding_failures = 0

    def materialize(self, row: RemoteRow, num_fields: Optional[int] = None) -> OutputTuple:
        """
        Convert one remote row.

        ``num_fields`` is the field count the session cached when the query
        ran; a row that disagrees with it is malformed.
        """
        attrs = self.schema.attributes
        natts = len(attrs)
        nfields = len(row.fields)
        if num_fields is not None and nfields != num_fields:
            raise SchemaMismatchError(
                f"remote row has {nfields} field(s) but the result set has {num_fields}"
            )
        if len(row.lengths) != nfields:
            raise SchemaMismatchError(
                f"remote row has {nfields} field(s) but {len(row.lengths)} length(s)"
            )
        out = OutputTuple(values=[None] * natts, nulls=[True] * natts)

        y = 0
        for x in range(nfields):
            y = self._skip_dropped(y)
            if y >= natts:
                raise SchemaMismatchError(
                    f"remote row has {nfields} field(s) but the local schema "
                    f"only has {self.schema.live_count} live attribute(s)"
                )
            self._fill(out, y, attrs[y], row.fields[x], row.lengths[x])
            y += 1

        # trailing dropped attributes still get their (NULL) slot
        y = self._skip_dropped(y)
        if y != natts:
            raise SchemaMismatchError(
                f"remote row has {nfields} field(s) but the local schema "
                f"has {self.schema.live_count} live attribute(s)"
            )
        return out

    # ------------------------------ Helpers ------------------------------

    def _skip_dropped(self, y: int) -> int:
        attrs = self.schema.attributes
        while y < len(attrs) and attrs[y].dropped:
            _logger.debug("attribute %d (%s) is dropped, emitting NULL", y, attrs[y].name)
            y += 1
        return y

    def _fill(
        self,
        out: OutputTuple,
        y: int,
        attr: Attribute,
        raw: Optional[bytes],
        length: int,
    ) -> None:
        if raw is None:
            return

        if length == 0:
            out.values[y] = self._convert(attr, b"")
            out.nulls[y] = False
            return

        if attr.category is TypeCategory.STRING:
            failure = self.guard.check(raw, length)
            if failure is not None:
                self.encoding_failures += 1
                if self.on_encoding_error == "error":
                    raise EncodingError(f"{failure.message()} (column {attr.name})")
                _logger.warning("%s (column %s set to NULL)", failure.message(), attr.name)
                return

        out.values[y] = self._convert(attr, raw[:length])
        out.nulls[y] = False

    @staticmethod
    def _convert(attr: Attribute, raw: bytes) -> Any:
        try:
            return attr.convert(raw)
        except (ValueError, TypeError, ArithmeticError) as exc:
            raise ConversionError(attr.name, attr.type_name, raw, exc) from exc


def materialize(row: RemoteRow, schema: LocalSchema) -> OutputTuple:
    """One-off conversion with the default (lenient) encoding policy."""
    return RowMaterializer(schema).materialize(row)
