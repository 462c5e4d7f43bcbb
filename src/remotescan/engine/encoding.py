# src/remotescan/engine/encoding.py
"""
EncodingGuard: check that textual bytes are well formed in the local encoding.

MySQL and the local database don't necessarily agree on what an encoding name
means (it also varies with the MySQL server version), so text is re-checked
here before it is handed to an input function.

Rules follow the local database:
  - an embedded NUL byte is never valid in text
  - SQL_ASCII and single-byte encodings accept any other byte
  - multi-byte encodings must decode strictly with their Python codec

Python leaves a few byte values undefined in some single-byte codecs
(0x81 in cp1252, 0xae in iso8859-7). The local database accepts them, so
`decode_text` maps each such byte to the code point of the same value
instead of failing.
"""

from __future__ import annotations

import codecs
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from remotescan.errors import ConfigurationError
from remotescan.logging import get_logger

_logger = get_logger(__name__)

# Longest byte sequence shown in an encoding warning.
MAX_PREVIEW_BYTES = 8

# local encoding name -> (python codec, mysql charset)
# A codec of None means "no validation beyond NUL bytes".
_ENCODINGS: Dict[str, Tuple[Optional[str], str]] = {
    "UTF8": ("utf-8", "utf8mb4"),
    # latin1 maps every byte, so any SQL_ASCII text can cross the wire
    "SQL_ASCII": (None, "latin1"),
    "LATIN1": ("latin-1", "latin1"),
    "LATIN2": ("iso8859-2", "latin2"),
    "LATIN5": ("iso8859-9", "latin5"),
    "LATIN7": ("iso8859-13", "latin7"),
    "LATIN9": ("iso8859-15", "latin1"),
    "WIN1250": ("cp1250", "cp1250"),
    "WIN1251": ("cp1251", "cp1251"),
    "WIN1252": ("cp1252", "latin1"),
    "WIN1256": ("cp1256", "cp1256"),
    "WIN1257": ("cp1257", "cp1257"),
    "KOI8R": ("koi8-r", "koi8r"),
    "KOI8U": ("koi8-u", "koi8u"),
    "ISO_8859_7": ("iso8859-7", "greek"),
    "ISO_8859_8": ("iso8859-8", "hebrew"),
    "EUC_JP": ("euc-jp", "ujis"),
    "EUC_KR": ("euc-kr", "euckr"),
    "SJIS": ("shift_jis", "sjis"),
    "GBK": ("gbk", "gbk"),
    "BIG5": ("big5", "big5"),
}

SUPPORTED_ENCODINGS = tuple(sorted(_ENCODINGS))

_MULTI_BYTE = frozenset({"UTF8", "EUC_JP", "EUC_KR", "SJIS", "GBK", "BIG5"})
_SINGLE_BYTE = frozenset(
    name for name, (codec, _) in _ENCODINGS.items()
    if codec is not None and name not in _MULTI_BYTE
)

_UNDEFINED_BYTE_HANDLER = "remotescan.undefined-byte"


def _undefined_byte_as_code_point(exc: UnicodeError):
    if not isinstance(exc, UnicodeDecodeError):
        raise exc
    return "".join(chr(b) for b in exc.object[exc.start:exc.end]), exc.end


codecs.register_error(_UNDEFINED_BYTE_HANDLER, _undefined_byte_as_code_point)

_ALIASES = {
    "UTF-8": "UTF8",
    "UNICODE": "UTF8",
    "ISO88591": "LATIN1",
    "ISO_8859_1": "LATIN1",
    "WIN": "WIN1251",
    "SHIFT_JIS": "SJIS",
}


def normalize_encoding_name(name: str) -> str:
    """Canonical local encoding name (``utf-8`` -> ``UTF8``)."""
    key = (name or "").strip().upper().replace("-", "_")
    key = _ALIASES.get(key, _ALIASES.get(key.replace("_", ""), key))
    if key == "UTF_8":
        key = "UTF8"
    if key not in _ENCODINGS:
        raise ConfigurationError(
            f'unsupported database encoding "{name}". '
            f"Supported: {', '.join(sorted(_ENCODINGS))}"
        )
    return key


def mysql_charset_for(encoding: str) -> str:
    """MySQL charset name to force on the connection for a local encoding."""
    return _ENCODINGS[normalize_encoding_name(encoding)][1]


def python_codec_for(encoding: str) -> Optional[str]:
    return _ENCODINGS[normalize_encoding_name(encoding)][0]


def is_single_byte(encoding: str) -> bool:
    return normalize_encoding_name(encoding) in _SINGLE_BYTE


def decode_text(data: bytes, encoding: str) -> str:
    """
    Decode text bytes the way the local database reads them.

    SQL_ASCII passes bytes through as latin-1. Single-byte encodings never
    fail: bytes their Python codec leaves undefined keep their value as a
    code point. Multi-byte encodings decode strictly.
    """
    encoding = normalize_encoding_name(encoding)
    codec = python_codec_for(encoding)
    if codec is None:
        return data.decode("latin-1")
    if encoding in _SINGLE_BYTE:
        return data.decode(codec, errors=_UNDEFINED_BYTE_HANDLER)
    return data.decode(codec)


def _utf8_char_len(lead: int) -> int:
    if lead < 0x80:
        return 1
    if lead & 0xE0 == 0xC0:
        return 2
    if lead & 0xF0 == 0xE0:
        return 3
    if lead & 0xF8 == 0xF0:
        return 4
    return 1


@dataclass(frozen=True)
class EncodingFailure:
    """Where and why a byte string failed validation."""

    encoding: str
    offset: int
    sequence: bytes

    @property
    def preview(self) -> str:
        return " ".join(f"0x{b:02x}" for b in self.sequence)

    def message(self) -> str:
        return f'invalid byte sequence for encoding "{self.encoding}": {self.preview}'


class EncodingGuard:
    """Validates raw text bytes against the local database encoding."""

    def __init__(self, encoding: str = "UTF8"):
        self.encoding = normalize_encoding_name(encoding)
        self.codec = python_codec_for(self.encoding)

    def check(self, data: bytes, length: Optional[int] = None) -> Optional[EncodingFailure]:
        """
        Return None if ``data[:length]`` is valid, else an EncodingFailure.

        ``length`` is the declared field length from the remote result. It is
        used as-is; text may legitimately contain bytes that would fool a
        terminator-based length.
        """
        if length is not None:
            data = data[:length]

        nul = data.find(b"\x00")
        if self.codec is None or self.encoding in _SINGLE_BYTE:
            if nul < 0:
                return None
            return self._failure(data, nul, 1)

        try:
            data.decode(self.codec, errors="strict")
        except UnicodeDecodeError as exc:
            start = exc.start
            if 0 <= nul < start:
                return self._failure(data, nul, 1)
            width = max(exc.end - exc.start, 1)
            if self.encoding == "UTF8":
                width = max(width, _utf8_char_len(data[start]))
            return self._failure(data, start, width)

        if nul >= 0:
            return self._failure(data, nul, 1)
        return None

    def verify(self, data: bytes, length: Optional[int] = None) -> bool:
        """True if the bytes are valid; a failure is logged as a warning."""
        failure = self.check(data, length)
        if failure is None:
            return True
        _logger.warning(failure.message())
        return False

    def _failure(self, data: bytes, offset: int, width: int) -> EncodingFailure:
        end = min(offset + width, len(data), offset + MAX_PREVIEW_BYTES)
        return EncodingFailure(
            encoding=self.encoding,
            offset=offset,
            sequence=bytes(data[offset:end]),
        )
