"""Output sinks receiving the header and rows produced by the extractor.

The extractor talks only to the ``Sink`` protocol so it never touches
storage directly. ``CsvFileSink`` is the concrete UTF-8 file writer used by
the transfer pipeline; ``MemorySink`` keeps everything in memory for
previews and tests.

Cell values arrive already escaped by the extractor, so sinks join fields
with a comma without further quoting. Header names are sanitized
identifiers and need no escaping.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Protocol, runtime_checkable

from src.exceptions import SinkIOError

logger = logging.getLogger(__name__)

FIELD_SEPARATOR: str = ","
LINE_TERMINATOR: str = "\n"


@dataclass(frozen=True)
class ColumnHeader:
    """Name and inferred destination type of one output column."""

    name: str
    type: str


@runtime_checkable
class Sink(Protocol):
    """Capability interface for receiving extracted rows."""

    def open(self, headers: Sequence[ColumnHeader]) -> None:
        """Commit the header row. Called exactly once per document."""

    def append_row(self, row: Sequence[str]) -> None:
        """Append one data row of already escaped cell values."""

    def finish(self) -> None:
        """Flush and release the underlying resource."""

    def abort(self) -> None:
        """Best-effort release after a fatal error; must not raise."""


def format_line(fields: Sequence[str]) -> str:
    """Join already escaped fields into one CSV line including its terminator."""
    return FIELD_SEPARATOR.join(fields) + LINE_TERMINATOR


class CsvFileSink:
    """Write the extracted table to a UTF-8 CSV file.

    Parameters
    ----------
    path : Path
        Destination file. It is created (or truncated) on ``open``.

    Examples
    --------
    >>> from pathlib import Path
    >>> sink = CsvFileSink(Path("out.csv"))
    >>> sink.open([ColumnHeader("clicks", "INTEGER")])  # doctest: +SKIP
    >>> sink.append_row(["1"])  # doctest: +SKIP
    >>> sink.finish()  # doctest: +SKIP
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._handle: IO[str] | None = None
        self.rows_written = 0

    def open(self, headers: Sequence[ColumnHeader]) -> None:
        try:
            self._handle = self.path.open("w", encoding="utf-8", newline="")
            self._handle.write(format_line([header.name for header in headers]))
        except OSError as error:
            raise SinkIOError(
                "open",
                f"error creating output file {self.path}",
                context={"path": str(self.path)},
            ) from error

    def append_row(self, row: Sequence[str]) -> None:
        if self._handle is None:
            raise SinkIOError(
                "append",
                "row appended before the header was written",
                context={"path": str(self.path)},
            )
        try:
            self._handle.write(format_line(row))
        except OSError as error:
            raise SinkIOError(
                "append",
                f"error writing row {list(row)!r}",
                context={"path": str(self.path), "row_index": self.rows_written},
            ) from error
        self.rows_written += 1

    def finish(self) -> None:
        if self._handle is None:
            raise SinkIOError(
                "finish",
                "output file was never opened",
                context={"path": str(self.path)},
            )
        handle, self._handle = self._handle, None
        try:
            handle.flush()
            handle.close()
        except OSError as error:
            raise SinkIOError(
                "finish",
                f"error closing output file {self.path}",
                context={"path": str(self.path)},
            ) from error

    def abort(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            handle.close()
        except OSError as error:
            logger.warning("error closing output file %s: %s", self.path, error)


class MemorySink:
    """Collect the header and rows in memory."""

    def __init__(self) -> None:
        self.headers: list[ColumnHeader] | None = None
        self.rows: list[list[str]] = []
        self.finished = False
        self.aborted = False

    def open(self, headers: Sequence[ColumnHeader]) -> None:
        self.headers = list(headers)

    def append_row(self, row: Sequence[str]) -> None:
        self.rows.append(list(row))

    def finish(self) -> None:
        self.finished = True

    def abort(self) -> None:
        self.aborted = True

    def to_csv(self) -> str:
        """Render the collected table as CSV text."""
        if self.headers is None:
            return ""
        lines = [format_line([header.name for header in self.headers])]
        lines.extend(format_line(row) for row in self.rows)
        return "".join(lines)


__all__ = [
    "ColumnHeader",
    "CsvFileSink",
    "FIELD_SEPARATOR",
    "LINE_TERMINATOR",
    "MemorySink",
    "Sink",
    "format_line",
]
