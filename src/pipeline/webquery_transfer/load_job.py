"""Downstream collaborators: object-store upload and warehouse load jobs.

Uploading the produced CSV and submitting the load job are calls into
managed cloud services and are represented here only by protocols. This
module owns the parts with observable contract: the ``gs://`` URI format
and the load-job request (destination table ``<table>_<YYYYMMDD>`` in UTC,
automatic schema detection, first line skipped as header).

The column types inferred by the extraction engine are deliberately not
part of the request; the warehouse detects the schema itself.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Protocol

from src.config import (
    LOAD_JOB_SKIP_LEADING_ROWS,
    LOAD_JOB_SOURCE_FORMAT,
    LOAD_JOB_WRITE_DISPOSITION,
)

from .file_handler import BigQueryConfig


@dataclass(frozen=True)
class LoadJobRequest:
    """A load job registering uploaded CSV files as a table's source."""

    project_id: str
    dataset_id: str
    table_id: str
    source_uris: tuple[str, ...]
    source_format: str = LOAD_JOB_SOURCE_FORMAT
    autodetect: bool = True
    skip_leading_rows: int = LOAD_JOB_SKIP_LEADING_ROWS
    write_disposition: str = LOAD_JOB_WRITE_DISPOSITION


class ObjectStore(Protocol):
    """Uploads a local file to an object URI built with ``gcs_uri``."""

    def upload_file(self, path: Path, destination_uri: str) -> None: ...


class LoadJobSubmitter(Protocol):
    """Submits a load job and returns its job id."""

    def submit(self, request: LoadJobRequest) -> str: ...


def gcs_uri(bucket_name: str, folder: str, file_name: str) -> str:
    """Format the object URI of an uploaded file.

    Examples
    --------
    >>> gcs_uri("bucket", "tmp", "dswq_1.csv")
    'gs://bucket/tmp/dswq_1.csv'
    """
    if not bucket_name:
        raise ValueError("Bucket name must not be empty")
    return f"gs://{bucket_name}/{folder}/{file_name}"


def table_date_suffix(today: date | None = None) -> str:
    """Return the table-name suffix for ``today`` (UTC by default) as ``YYYYMMDD``."""
    if today is None:
        today = datetime.now(timezone.utc).date()
    return today.strftime("%Y%m%d")


def build_load_job_request(
    bigquery_config: BigQueryConfig,
    source_uris: Sequence[str],
    today: date | None = None,
) -> LoadJobRequest:
    """Build the load job for uploaded CSV files.

    Parameters
    ----------
    bigquery_config : BigQueryConfig
        Destination project, dataset and base table name.
    source_uris : Sequence[str]
        Uploaded files; the first one carries the header line.
    today : date | None, optional
        Date used for the table suffix; defaults to the current UTC date.

    Returns
    -------
    LoadJobRequest
        Request for table ``<table_id>_<YYYYMMDD>``.

    Examples
    --------
    >>> cfg = BigQueryConfig("p", "d", "report")
    >>> build_load_job_request(cfg, ["gs://b/tmp/x.csv"], date(2024, 3, 5)).table_id
    'report_20240305'
    """
    if not source_uris:
        raise ValueError("At least one source URI is required")
    return LoadJobRequest(
        project_id=bigquery_config.project_id,
        dataset_id=bigquery_config.dataset_id,
        table_id=f"{bigquery_config.table_id}_{table_date_suffix(today)}",
        source_uris=tuple(source_uris),
    )
