"""
import_engine.csv_parser - Low-level CSV reading and cleaning.

Responsibilities:
  • BOM removal (UTF-8 / UTF-8-SIG)
  • Delimiter detection (';' vs ',') from the first line
  • Header normalisation (trimmed, lower-cased) and required-column check
  • Yielding one ImportRow per data line, short rows right-padded
"""

from __future__ import annotations

import csv
import io
from typing import Iterator

import config
from import_engine.errors import ImportFileError, MissingRequiredColumn
from import_engine.field_map import REQUIRED_COLUMNS
from import_engine.plan import ImportRow


def detect_delimiter(first_line: str) -> str:
    """';' when it appears strictly more often than ',' in the first line."""
    if first_line.count(";") > first_line.count(","):
        return ";"
    return ","


class _LineSource:
    """Line iterator for csv.reader that flags physical lines over the limit."""

    def __init__(self, text: str, max_length: int):
        self._lines = iter(io.StringIO(text, newline=""))
        self._max = max_length
        self.too_long = False

    def __iter__(self):
        return self

    def __next__(self) -> str:
        line = next(self._lines)
        if len(line.rstrip("\r\n")) > self._max:
            self.too_long = True
        return line


class CsvParser:
    """
    Parse a CSV upload into ImportRows.

    The header is read and checked on construction, so a missing required
    column fails before any row is produced.  Iteration is lazy and
    single-pass.
    """

    def __init__(self, raw: str | bytes,
                 max_line_length: int = config.IMPORT_MAX_LINE_LENGTH):
        text = _decode(raw)
        if not text or not text.strip():
            raise ImportFileError("The CSV file is empty")

        self.delimiter = detect_delimiter(text.splitlines()[0])
        self._source = _LineSource(text, max_line_length)
        self._max_line_length = max_line_length
        self._reader = csv.reader(self._source, delimiter=self.delimiter)

        header = self._next_record()
        self.headers: list[str] = [h.strip().lower() for h in (header or [])]
        if not any(self.headers):
            raise ImportFileError("The CSV file has no header row")
        for column in REQUIRED_COLUMNS:
            if column not in self.headers:
                raise MissingRequiredColumn(column)

    def __iter__(self) -> Iterator[ImportRow]:
        width = len(self.headers)
        while True:
            line = self._reader.line_num          # header is physical line 1
            self._source.too_long = False
            values = self._next_record()
            if values is None:
                return

            values = [v.strip() for v in values]
            if not any(values):
                continue

            problem = None
            if self._source.too_long:
                problem = f"line is longer than {self._max_line_length} characters"
            if len(values) > width:
                extra = values[width:]
                if any(extra):
                    problem = (f"row has {len(values)} values but the header "
                               f"has {width} columns")
                values = values[:width]
            elif len(values) < width:
                values += [""] * (width - len(values))

            yield ImportRow(line=line, raw=dict(zip(self.headers, values)),
                            problem=problem)

    def _next_record(self) -> list[str] | None:
        """Next parsed record; malformed CSV (huge field, runaway quote) aborts the file."""
        line = self._reader.line_num
        try:
            return next(self._reader, None)
        except csv.Error as exc:
            where = f"Line {line}" if line else "Header row"
            raise ImportFileError(f"{where}: {exc}") from exc


def _decode(raw: str | bytes) -> str:
    if isinstance(raw, bytes):
        # Strip UTF-8 BOM
        if raw.startswith(b"\xef\xbb\xbf"):
            raw = raw[3:]
        return raw.decode("utf-8", errors="replace")
    if raw.startswith("\ufeff"):
        return raw[1:]
    return raw
