"""The webquery_csv package is the streaming WebQuery-to-CSV extraction engine.

It consumes a WebQuery document as an ordered stream of structural events
(element start, element end, text) and writes a correctly escaped CSV whose
header carries sanitized column names plus a synthetic partition-timestamp
column. The engine performs no network access and never materializes the
whole document.

Modules exported
----------------
TableExtractor, extract
    The table-structure state machine and its convenience driver.
WebQueryTokenizer, iter_events
    Adapter turning fed HTML markup into structural events.
CsvFileSink, MemorySink, Sink, ColumnHeader
    Output sinks and the header record.
map_webquery_type, sanitize_header, escape_csv_cell
    The pure leaf functions used by the extractor.

Examples
--------
>>> from pathlib import Path
>>> from src.pipeline.webquery_csv import CsvFileSink, extract, iter_events
>>> html = Path("report.html").read_text(encoding="utf-8")  # doctest: +SKIP
>>> result = extract(iter_events(html), CsvFileSink(Path("report.csv")))  # doctest: +SKIP
"""

from __future__ import annotations

from .csv_escaper import escape_csv_cell
from .events import EndDocument, EndElement, EventKind, StartElement, Text
from .extractor import ExtractionResult, ExtractorState, TableExtractor, extract
from .header_sanitizer import sanitize_header
from .sink import ColumnHeader, CsvFileSink, MemorySink, Sink
from .tokenizer import WebQueryTokenizer, iter_events
from .type_mapper import DEFAULT_TYPE, TIMESTAMP, map_webquery_type

__all__ = [
    "ColumnHeader",
    "CsvFileSink",
    "DEFAULT_TYPE",
    "EndDocument",
    "EndElement",
    "EventKind",
    "ExtractionResult",
    "ExtractorState",
    "MemorySink",
    "Sink",
    "StartElement",
    "TIMESTAMP",
    "TableExtractor",
    "Text",
    "WebQueryTokenizer",
    "escape_csv_cell",
    "extract",
    "iter_events",
    "map_webquery_type",
    "sanitize_header",
]
