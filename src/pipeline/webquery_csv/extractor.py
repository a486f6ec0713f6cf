"""Streaming table extraction state machine.

``TableExtractor`` consumes the structural events of one WebQuery document,
in document order, and emits a header row followed by one row per body
table row to a ``Sink``. It never materializes the document: only the
pending header metadata, the current cell text and the current row are
held at any time.

The document is processed in three fixed sections:

- the column group, whose ``col`` elements carry an optional ``class``
  attribute mapped to a destination column type;
- the header, whose ``th`` cells give the column names (sanitized);
- the body, whose ``tr``/``td`` elements give the data rows (CSV-escaped).

A synthetic partition column (``reporting_date`` / ``TIMESTAMP``) is
appended to the header, and the processing timestamp captured when the
extractor was created is appended to every row, so every emitted row has
exactly as many fields as the header.

Examples
--------
>>> from src.pipeline.webquery_csv.sink import MemorySink
>>> from src.pipeline.webquery_csv.tokenizer import iter_events
>>> sink = MemorySink()
>>> html = (
...     "<table><colgroup><col class='integral'></colgroup>"
...     "<thead><tr><th>Clicks</th></tr></thead>"
...     "<tbody><tr><td>7</td></tr></tbody></table>"
... )
>>> result = extract(iter_events(html), sink, processing_timestamp="2024-01-01 00:00:00")
>>> sink.to_csv()
'clicks,reporting_date\\n7,2024-01-01 00:00:00\\n'
>>> result.row_count
1
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from src.config import PROCESSING_TIMESTAMP_FORMAT, REPORT_PULL_TIMESTAMP_COLUMN_NAME
from src.exceptions import StructuralInputError

from .csv_escaper import escape_csv_cell
from .events import EventKind, StructuralEvent
from .header_sanitizer import sanitize_header
from .sink import ColumnHeader, Sink
from .type_mapper import DEFAULT_TYPE, TIMESTAMP, map_webquery_type

logger = logging.getLogger(__name__)

COLUMN_GROUP = "colgroup"
COLUMN_DEFINITION = "col"
HEADER_SECTION = "thead"
HEADER_CELL = "th"
BODY_SECTION = "tbody"
ROW = "tr"
DATA_CELL = "td"
CLASS_ATTRIBUTE = "class"


class ExtractorState(enum.Enum):
    """Named states of the extraction state machine."""

    AWAITING_COLUMNS = "awaiting_columns"
    COLLECTING_HEADER_TYPES = "collecting_header_types"
    COLLECTING_HEADER_NAMES = "collecting_header_names"
    AWAITING_BODY = "awaiting_body"
    IN_ROW = "in_row"
    DONE = "done"
    ABORTED = "aborted"


_TERMINAL_STATES = frozenset({ExtractorState.DONE, ExtractorState.ABORTED})
_HEADER_STATES = frozenset(
    {
        ExtractorState.AWAITING_COLUMNS,
        ExtractorState.COLLECTING_HEADER_TYPES,
        ExtractorState.COLLECTING_HEADER_NAMES,
    }
)


@dataclass(frozen=True)
class ExtractionResult:
    """Diagnostics of a completed extraction.

    Attributes
    ----------
    headers : tuple[ColumnHeader, ...]
        The committed header sequence, including the partition column.
    row_count : int
        Number of data rows handed to the sink.
    processing_timestamp : str
        The timestamp value shared by every row of the document.
    """

    headers: tuple[ColumnHeader, ...]
    row_count: int
    processing_timestamp: str


def capture_processing_timestamp(now: datetime | None = None) -> str:
    """Format the ingestion instant shared by all rows of one document."""
    return (now or datetime.now()).strftime(PROCESSING_TIMESTAMP_FORMAT)


class TableExtractor:
    """Explicit state machine turning structural events into CSV rows.

    Parameters
    ----------
    sink : Sink
        Receives the header once and then one row per body row.
    processing_timestamp : str | None, optional
        Value appended to every row. Captured from the clock at construction
        when not supplied.
    report_id : str | None, optional
        Identifier used only to prefix diagnostic log lines.

    Notes
    -----
    One instance handles exactly one document. All accumulators are owned
    by the instance and reset explicitly; nothing is shared across
    instances, so many extractors may run concurrently.
    """

    def __init__(
        self,
        sink: Sink,
        processing_timestamp: str | None = None,
        report_id: str | None = None,
    ) -> None:
        self.sink = sink
        self.processing_timestamp = (
            processing_timestamp
            if processing_timestamp is not None
            else capture_processing_timestamp()
        )
        self.report_id = report_id
        self.state = ExtractorState.AWAITING_COLUMNS
        self.headers: tuple[ColumnHeader, ...] | None = None
        self.row_count = 0
        self._column_types: list[str] = []
        self._column_names: list[str] = []
        self._text: list[str] | None = None
        self._row: list[str] | None = None
        self._body_started = False
        self._dispatch = {
            EventKind.START_ELEMENT: self._on_start_element,
            EventKind.END_ELEMENT: self._on_end_element,
            EventKind.TEXT: self._on_text,
            EventKind.END_DOCUMENT: self._on_end_document,
        }

    def handle(self, event: StructuralEvent) -> None:
        """Advance the machine by one structural event.

        Any failure (structural or sink I/O) aborts the sink and is
        re-raised unchanged; the machine does not attempt to recover.
        """
        if self.state in _TERMINAL_STATES:
            raise StructuralInputError(
                f"event {event.kind.value} received after extraction ended",
                context={"state": self.state.value, "report_id": self.report_id},
            )
        try:
            self._dispatch[event.kind](event)
        except Exception:
            self.abort()
            raise

    def abort(self) -> None:
        """Abort the document and release the sink on a best-effort basis."""
        if self.state in _TERMINAL_STATES:
            return
        self.state = ExtractorState.ABORTED
        self._text = None
        self._row = None
        try:
            self.sink.abort()
        except Exception as error:
            logger.warning(
                "[Report %s] error releasing output during abort: %s",
                self.report_id,
                error,
            )

    def result(self) -> ExtractionResult:
        """Return the diagnostics of a completed extraction."""
        if self.state is not ExtractorState.DONE or self.headers is None:
            raise StructuralInputError(
                "extraction has not completed",
                context={"state": self.state.value, "report_id": self.report_id},
            )
        return ExtractionResult(self.headers, self.row_count, self.processing_timestamp)

    # Event handlers

    def _on_start_element(self, event) -> None:
        name = event.name
        if name == COLUMN_DEFINITION and self.state in _HEADER_STATES:
            self._column_types.append(
                map_webquery_type(event.attrs.get(CLASS_ATTRIBUTE))
            )
            self.state = ExtractorState.COLLECTING_HEADER_TYPES
        elif name == HEADER_SECTION and self.state in _HEADER_STATES:
            self.state = ExtractorState.COLLECTING_HEADER_NAMES
        elif name in (HEADER_CELL, DATA_CELL):
            self._text = []
        elif name == BODY_SECTION:
            self._body_started = True
        elif name == ROW and self._body_started:
            self._row = []
            self.state = ExtractorState.IN_ROW

    def _on_end_element(self, event) -> None:
        name = event.name
        if name == COLUMN_GROUP and self.state in _HEADER_STATES:
            self._column_types.append(TIMESTAMP)
            self.state = ExtractorState.COLLECTING_HEADER_NAMES
        elif name == HEADER_CELL:
            self._close_header_cell()
        elif name == HEADER_SECTION:
            self._commit_headers()
        elif name == DATA_CELL:
            self._close_data_cell()
        elif name == ROW and self._body_started:
            self._emit_row()

    def _on_text(self, event) -> None:
        if self._text is not None:
            self._text.append(event.data)

    def _on_end_document(self, event) -> None:
        if self.headers is None:
            raise StructuralInputError(
                "document ended before the header section was complete",
                context={"state": self.state.value, "report_id": self.report_id},
            )
        self.sink.finish()
        self.state = ExtractorState.DONE
        logger.debug("[Report %s] headers: %s", self.report_id, list(self.headers))
        logger.info("[Report %s] parsed rows: %d", self.report_id, self.row_count)

    # Transitions

    def _take_text(self, cell: str) -> str:
        if self._text is None:
            raise StructuralInputError(
                f"<{cell}> closed without being opened",
                context={"state": self.state.value, "report_id": self.report_id},
            )
        text, self._text = "".join(self._text), None
        return text

    def _close_header_cell(self) -> None:
        text = self._take_text(HEADER_CELL)
        if self.headers is not None:
            logger.debug(
                "[Report %s] ignoring header cell after header commit: %r",
                self.report_id,
                text,
            )
            return
        self._column_names.append(sanitize_header(text))
        self.state = ExtractorState.COLLECTING_HEADER_NAMES

    def _commit_headers(self) -> None:
        if self.headers is not None:
            raise StructuralInputError(
                "header section closed more than once",
                context={"report_id": self.report_id},
            )
        names = [*self._column_names, REPORT_PULL_TIMESTAMP_COLUMN_NAME]
        types = list(self._column_types)
        if len(types) != len(names):
            logger.warning(
                "[Report %s] %d column types for %d columns; unmatched columns default to %s",
                self.report_id,
                len(types),
                len(names),
                DEFAULT_TYPE,
            )
            types = (types + [DEFAULT_TYPE] * len(names))[: len(names)]
        self.headers = tuple(
            ColumnHeader(name, column_type) for name, column_type in zip(names, types)
        )
        self._column_names = []
        self._column_types = []
        self.sink.open(self.headers)
        self.state = ExtractorState.AWAITING_BODY

    def _close_data_cell(self) -> None:
        text = self._take_text(DATA_CELL)
        if self._row is None:
            raise StructuralInputError(
                "data cell outside of a body row",
                context={"state": self.state.value, "report_id": self.report_id},
            )
        self._row.append(escape_csv_cell(text))

    def _emit_row(self) -> None:
        if self.headers is None:
            raise StructuralInputError(
                "body row closed before the header section was complete",
                context={"report_id": self.report_id},
            )
        if self._row is None:
            raise StructuralInputError(
                "row closed without being opened",
                context={"report_id": self.report_id, "row_count": self.row_count},
            )
        row, self._row = self._row, None
        row.append(self.processing_timestamp)
        if len(row) != len(self.headers):
            raise StructuralInputError(
                f"body row has {len(row) - 1} cells for {len(self.headers) - 1} columns",
                context={
                    "report_id": self.report_id,
                    "row_index": self.row_count,
                    "expected": len(self.headers),
                    "actual": len(row),
                },
            )
        self.sink.append_row(row)
        self.row_count += 1
        self.state = ExtractorState.AWAITING_BODY


def extract(
    events: Iterable[StructuralEvent],
    sink: Sink,
    processing_timestamp: str | None = None,
    report_id: str | None = None,
) -> ExtractionResult:
    """Drive a fresh extractor through an event iterable.

    The iterable must end with an ``EndDocument`` event.

    Returns
    -------
    ExtractionResult
        Header metadata and row count of the completed document.

    Raises
    ------
    StructuralInputError
        If the event sequence is malformed or ends without ``EndDocument``.
    SinkIOError
        If the sink cannot open, write or close its resource.
    """
    extractor = TableExtractor(sink, processing_timestamp, report_id)
    for event in events:
        extractor.handle(event)
    if extractor.state is not ExtractorState.DONE:
        extractor.abort()
        raise StructuralInputError(
            "event stream ended without an end-of-document event",
            context={"report_id": report_id},
        )
    return extractor.result()


__all__ = [
    "ExtractionResult",
    "ExtractorState",
    "TableExtractor",
    "capture_processing_timestamp",
    "extract",
]
