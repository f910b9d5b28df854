"""Line-oriented tokenizer for hgrid text.

The reader walks the source exactly once. Blank lines are skipped, runs of
whitespace collapse, and every record keeps the physical line number it came
from so that errors can point at it. Fields beyond the ones a section needs
are ignored (trailing ``! comment`` text is common in SCHISM files).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, TextIO

import numpy as np

from ..errors import MalformedLine

__all__ = ["Record", "LineReader", "is_int_token", "is_number_token"]


_INT64 = np.iinfo(np.int64)


def is_int_token(tok: str) -> bool:
    if not tok.lstrip("+-").isdecimal():
        return False
    try:
        int(tok)
    except ValueError:
        return False
    return True


def is_number_token(tok: str) -> bool:
    try:
        _to_float(tok)
    except ValueError:
        return False
    return True


def _to_float(tok: str) -> float:
    # Fortran writers may emit 1.0D+02
    return float(tok.replace("D", "E").replace("d", "e"))


@dataclass(frozen=True, slots=True)
class Record:
    """One non-blank source line split into whitespace-delimited fields."""

    lineno: int
    fields: tuple[str, ...]

    def __len__(self) -> int:
        return len(self.fields)


class LineReader:
    """Single-pass, non-restartable record stream over a text source."""

    def __init__(self, stream: TextIO, *, source: str = "<stream>") -> None:
        self.source = source
        self.section = "description"
        self._lines: Iterator[tuple[int, str]] = enumerate(stream, start=1)
        self._peeked: Record | None = None
        self._exhausted = False
        self._last_lineno = 0

    # ------------------------------------------------------------------
    # Raw access
    # ------------------------------------------------------------------
    def read_text_line(self) -> str | None:
        """Return the next physical line verbatim (without EOL), or None."""
        if self._peeked is not None:
            raise RuntimeError("read_text_line() after peek()")
        item = next(self._lines, None)
        if item is None:
            self._exhausted = True
            return None
        self._last_lineno, raw = item
        return raw.rstrip("\r\n")

    def peek(self) -> Record | None:
        """Return the next non-blank record without consuming it."""
        if self._peeked is None and not self._exhausted:
            self._peeked = self._advance()
        return self._peeked

    def next_record(self) -> Record | None:
        rec = self.peek()
        self._peeked = None
        return rec

    def at_end(self) -> bool:
        return self.peek() is None

    @property
    def lineno(self) -> int:
        """Line number of the most recently read physical line."""
        return self._last_lineno

    def _advance(self) -> Record | None:
        for lineno, raw in self._lines:
            self._last_lineno = lineno
            fields = raw.split()
            if fields:
                return Record(lineno, tuple(fields))
        self._exhausted = True
        return None

    # ------------------------------------------------------------------
    # Typed field access
    # ------------------------------------------------------------------
    def enter(self, section: str) -> None:
        self.section = section

    def malformed(self, message: str, lineno: int | None) -> MalformedLine:
        return MalformedLine(
            message, line=lineno, section=self.section, source=self.source
        )

    def require(self, rec: Record | None, count: int, what: str) -> Record:
        """Check that *rec* exists and carries at least *count* fields."""
        if rec is None:
            raise self.malformed(f"expected {what} but input ended", None)
        if len(rec) < count:
            raise self.malformed(
                f"expected {count} fields ({what}) but found {len(rec)}: "
                f"{' '.join(rec.fields)!r}",
                rec.lineno,
            )
        return rec

    def int_field(self, rec: Record, idx: int, what: str) -> int:
        tok = rec.fields[idx]
        if not is_int_token(tok):
            raise self.malformed(f"{what} must be an integer, got {tok!r}", rec.lineno)
        value = int(tok)
        if not _INT64.min <= value <= _INT64.max:
            raise self.malformed(f"{what} {tok} is out of the 64-bit range", rec.lineno)
        return value

    def count_field(self, rec: Record, idx: int, what: str) -> int:
        value = self.int_field(rec, idx, what)
        if value < 0:
            raise self.malformed(f"{what} must be >= 0, got {value}", rec.lineno)
        return value

    def id_field(self, rec: Record, idx: int, what: str) -> int:
        value = self.int_field(rec, idx, what)
        if value <= 0:
            raise self.malformed(f"{what} must be positive, got {value}", rec.lineno)
        return value

    def float_field(self, rec: Record, idx: int, what: str) -> float:
        tok = rec.fields[idx]
        try:
            return _to_float(tok)
        except ValueError:
            raise self.malformed(
                f"{what} must be a number, got {tok!r}", rec.lineno
            ) from None
