# src/remotescan/engine/schema.py
"""
Local schema: the ordered attributes a remote row is converted into.

Each attribute carries an input function (raw bytes -> typed value). Input
functions are strict: they raise on malformed input instead of guessing,
because a rejected value means the local and remote types disagree.
"""

from __future__ import annotations

import datetime as dt
import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Tuple

from remotescan.engine.encoding import decode_text, normalize_encoding_name
from remotescan.errors import ConfigurationError

InputFunction = Callable[[bytes], Any]


class TypeCategory(str, Enum):
    """Coarse type grouping; only STRING values get an encoding check."""

    STRING = "string"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    BINARY = "binary"
    USER = "user"

    def __str__(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Input functions
# ---------------------------------------------------------------------------

_TRUE = {"t", "true", "y", "yes", "on", "1"}
_FALSE = {"f", "false", "n", "no", "off", "0"}


def _ascii(raw: bytes) -> str:
    return raw.decode("ascii").strip()


def int_in(raw: bytes) -> int:
    return int(_ascii(raw))


def float_in(raw: bytes) -> float:
    return float(_ascii(raw))


def numeric_in(raw: bytes) -> Decimal:
    try:
        return Decimal(_ascii(raw))
    except InvalidOperation:
        raise ValueError("not a valid numeric literal")


def bool_in(raw: bytes) -> bool:
    text = _ascii(raw).lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ValueError("not a valid boolean literal")


def date_in(raw: bytes) -> dt.date:
    return dt.date.fromisoformat(_ascii(raw))


def timestamp_in(raw: bytes) -> dt.datetime:
    return dt.datetime.fromisoformat(_ascii(raw))


def time_in(raw: bytes) -> dt.time:
    return dt.time.fromisoformat(_ascii(raw))


def bytea_in(raw: bytes) -> bytes:
    return bytes(raw)


def text_in_factory(encoding: str) -> InputFunction:
    """Text input for a local encoding (see `decode_text`)."""

    def text_in(raw: bytes) -> str:
        return decode_text(raw, encoding)

    return text_in


def json_in_factory(encoding: str) -> InputFunction:
    def json_in(raw: bytes) -> Any:
        return json.loads(decode_text(raw, encoding))

    return json_in


# type name -> (category, input function or factory taking the codec)
_NUMERIC = {
    "int2": int_in, "smallint": int_in,
    "int4": int_in, "int": int_in, "integer": int_in,
    "int8": int_in, "bigint": int_in,
    "float4": float_in, "real": float_in,
    "float8": float_in, "double precision": float_in, "float": float_in,
    "numeric": numeric_in, "decimal": numeric_in,
}
_TEXT = ("text", "varchar", "character varying", "char", "character", "bpchar", "name")
_DATETIME = {
    "date": date_in,
    "timestamp": timestamp_in,
    "timestamptz": timestamp_in,
    "timestamp without time zone": timestamp_in,
    "timestamp with time zone": timestamp_in,
    "time": time_in,
}


def resolve_type(type_name: str, encoding: str = "UTF8") -> Tuple[TypeCategory, InputFunction]:
    """
    Resolve a local type name into its category and input function.

    Raises:
        ConfigurationError: if the type name is not known.
    """
    key = " ".join(type_name.lower().split())
    # varchar(32), numeric(10,2): modifiers don't change the input function
    if "(" in key:
        key = key.split("(", 1)[0].strip()

    if key in _NUMERIC:
        return TypeCategory.NUMERIC, _NUMERIC[key]
    if key in _DATETIME:
        return TypeCategory.DATETIME, _DATETIME[key]
    if key in ("bool", "boolean"):
        return TypeCategory.BOOLEAN, bool_in
    if key == "bytea":
        return TypeCategory.BINARY, bytea_in

    encoding = normalize_encoding_name(encoding)
    if key in _TEXT:
        return TypeCategory.STRING, text_in_factory(encoding)
    if key in ("json", "jsonb"):
        return TypeCategory.USER, json_in_factory(encoding)

    raise ConfigurationError(f'type "{type_name}" does not exist')


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Attribute:
    position: int
    name: str
    type_name: str
    category: TypeCategory
    input_fn: InputFunction = field(repr=False, compare=False)
    dropped: bool = False

    def convert(self, raw: bytes) -> Any:
        return self.input_fn(raw)


@dataclass(frozen=True)
class LocalSchema:
    """Ordered attribute list; dropped attributes keep their slot."""

    attributes: Tuple[Attribute, ...]
    encoding: str = "UTF8"

    def __len__(self) -> int:
        return len(self.attributes)

    def __iter__(self) -> Iterator[Attribute]:
        return iter(self.attributes)

    def __getitem__(self, index: int) -> Attribute:
        return self.attributes[index]

    @property
    def live(self) -> List[Attribute]:
        return [a for a in self.attributes if not a.dropped]

    @property
    def live_count(self) -> int:
        return len(self.live)

    @property
    def dropped_count(self) -> int:
        return len(self.attributes) - self.live_count

    @property
    def column_names(self) -> List[str]:
        return [a.name for a in self.live]

    @classmethod
    def from_columns(
        cls,
        columns: Iterable[Mapping[str, Any]],
        encoding: str = "UTF8",
    ) -> "LocalSchema":
        """
        Build a schema from column dicts: ``{"name", "type", "dropped"?}``.

        Dropped columns may omit ``type``; they never consume a remote field.
        """
        encoding = normalize_encoding_name(encoding)
        attrs: List[Attribute] = []
        for pos, col in enumerate(columns):
            name = col.get("name") or f"col{pos + 1}"
            dropped = bool(col.get("dropped", False))
            type_name = col.get("type") or ("text" if dropped else None)
            if not type_name:
                raise ConfigurationError(f"column {name!r} has no type")
            category, input_fn = resolve_type(type_name, encoding)
            attrs.append(
                Attribute(
                    position=pos,
                    name=name,
                    type_name=type_name,
                    category=category,
                    input_fn=input_fn,
                    dropped=dropped,
                )
            )
        return cls(attributes=tuple(attrs), encoding=encoding)

    def with_input_functions(self, overrides: Dict[str, InputFunction]) -> "LocalSchema":
        """Copy of the schema with some attributes' input functions replaced."""
        attrs = tuple(
            Attribute(
                position=a.position,
                name=a.name,
                type_name=a.type_name,
                category=a.category,
                input_fn=overrides.get(a.name, a.input_fn),
                dropped=a.dropped,
            )
            for a in self.attributes
        )
        return LocalSchema(attributes=attrs, encoding=self.encoding)
