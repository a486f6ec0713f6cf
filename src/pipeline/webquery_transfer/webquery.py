"""WebQuery locator model.

A ``WebQuery`` wraps the access URL of one tabular report. The numeric
report id embedded in the URL (``rid=<digits>``) is optional: when it is
absent the id is ``None`` and is used only in diagnostic logging.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from src.config import DEFAULT_READ_CHUNK_SIZE
from src.pipeline.webquery_csv import CsvFileSink, ExtractionResult, extract, iter_events

_REPORT_ID_PATTERN = re.compile(r"rid=(\d+)")


def extract_report_id(query_url: str) -> str | None:
    """Return the numeric report id of a WebQuery URL, if present.

    Examples
    --------
    >>> extract_report_id("https://example.test/webquery?ay=1&rid=12345")
    '12345'
    >>> extract_report_id("https://example.test/webquery") is None
    True
    """
    match = _REPORT_ID_PATTERN.search(query_url)
    return match.group(1) if match else None


@dataclass(frozen=True)
class WebQuery:
    """A tabular HTML report reachable at ``query_url``."""

    query_url: str
    report_id: str | None = field(init=False)

    def __post_init__(self) -> None:
        if not self.query_url:
            raise ValueError("WebQuery URL must not be empty")
        object.__setattr__(self, "report_id", extract_report_id(self.query_url))


def convert_markup_to_csv(
    markup: str, output_path: Path, report_id: str | None = None
) -> ExtractionResult:
    """Convert an already downloaded WebQuery document into a CSV file.

    Parameters
    ----------
    markup : str
        The WebQuery HTML.
    output_path : Path
        Destination CSV file.
    report_id : str | None, optional
        Identifier used in diagnostic logs.

    Returns
    -------
    ExtractionResult
        Header metadata and row count.
    """
    return extract(iter_events(markup), CsvFileSink(output_path), report_id=report_id)


def convert_file_to_csv(
    html_path: Path,
    output_path: Path,
    report_id: str | None = None,
    chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
) -> ExtractionResult:
    """Stream a WebQuery HTML file into a CSV file.

    The file is read ``chunk_size`` characters at a time and each chunk is
    tokenized before the next one is read, so neither the markup nor its
    events are held in memory as a whole. Undecodable bytes are replaced.

    Parameters
    ----------
    html_path : Path
        Local WebQuery HTML file.
    output_path : Path
        Destination CSV file.
    report_id : str | None, optional
        Identifier used in diagnostic logs.
    chunk_size : int, optional
        Number of characters read per step.

    Returns
    -------
    ExtractionResult
        Header metadata and row count.
    """
    with Path(html_path).open(encoding="utf-8", errors="replace") as handle:
        chunks = iter(lambda: handle.read(chunk_size), "")
        return extract(
            iter_events(chunks), CsvFileSink(output_path), report_id=report_id
        )
