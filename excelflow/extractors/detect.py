"""Spreadsheet format detection from raw bytes.

Uploads cannot be trusted to carry an accurate extension or media type, so
the reader decides how to decode a buffer by looking at its leading bytes:

* ZIP container (``PK\\x03\\x04``) → Office Open XML workbook (``xlsx``)
* OLE2 compound document → legacy binary workbook (``xls``)
* anything else that decodes as text (UTF-8, UTF-16 with a byte order mark,
  or the Windows-1252 code page) → comma separated values (``csv``)

Binary data that is neither container is reported as ``unknown`` so that the
caller can flag the file as corrupt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ZIP_MAGIC = b"PK\x03\x04"
OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
UTF8_BOM = b"\xef\xbb\xbf"
UTF16_BOMS = (b"\xff\xfe", b"\xfe\xff")
CONTROL_CHARS = frozenset(chr(code) for code in range(32)) - {"\t", "\n", "\r"}

SheetFormat = Literal["xlsx", "xls", "csv", "unknown"]

PANDAS_ENGINES: dict[str, str] = {
    "xlsx": "openpyxl",
    "xls": "xlrd",
}


@dataclass
class DetectedFormat:
    format: SheetFormat
    text: str | None = None

    @property
    def engine(self) -> str | None:
        return PANDAS_ENGINES.get(self.format)


def _decode_text(content: bytes) -> str | None:
    if content.startswith(UTF16_BOMS):
        encodings: tuple[str, ...] = ("utf-16",)
    elif content.startswith(UTF8_BOM):
        content = content[len(UTF8_BOM):]
        encodings = ("utf-8",)
    else:
        # Excel's "CSV" export on Windows writes the ANSI code page
        encodings = ("utf-8", "cp1252")
    for encoding in encodings:
        try:
            text = content.decode(encoding)
        except UnicodeDecodeError:
            continue
        # control characters never appear in a legitimate CSV export
        if any(char in CONTROL_CHARS for char in text):
            return None
        return text
    return None


def detect(content: bytes) -> DetectedFormat:
    if content.startswith(ZIP_MAGIC):
        return DetectedFormat(format="xlsx")
    if content.startswith(OLE2_MAGIC):
        return DetectedFormat(format="xls")
    text = _decode_text(content)
    if text is None:
        return DetectedFormat(format="unknown")
    return DetectedFormat(format="csv", text=text)
