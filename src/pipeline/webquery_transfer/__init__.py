"""The webquery_transfer package orchestrates WebQuery-to-warehouse transfers.

This package wraps the extraction engine with everything a transfer run
needs: environment settings, the transfer configuration list, the
asynchronous WebQuery client (authentication header, streaming, retries and
backoff), load-job request building and a processor that runs many reports
concurrently with bounded fan-out and rate limiting.

Object-store upload and load-job submission are external collaborators and
are represented by the ``ObjectStore`` and ``LoadJobSubmitter`` protocols.

Modules exported
----------------
TransferSettings, StaticTokenProvider
    Runtime configuration loaded from the environment and ``.env``.
TransferConfig, BigQueryConfig, load_transfer_configs
    The transfer configuration list.
WebQuery, WebQueryClient
    Report locator and streaming HTTP client.
LoadJobRequest, build_load_job_request
    Downstream load-job contract.
TransferProcessor, TransferOutcome
    Concurrent orchestration of many transfers.
"""

from __future__ import annotations

from .client import WebQueryClient
from .config import StaticTokenProvider, TokenProvider, TransferSettings
from .file_handler import (
    BigQueryConfig,
    TransferConfig,
    create_output_csv_path,
    load_transfer_configs,
)
from .load_job import (
    LoadJobRequest,
    LoadJobSubmitter,
    ObjectStore,
    build_load_job_request,
    gcs_uri,
    table_date_suffix,
)
from .processor import TransferOutcome, TransferProcessor
from .webquery import (
    WebQuery,
    convert_file_to_csv,
    convert_markup_to_csv,
    extract_report_id,
)

__all__ = [
    "BigQueryConfig",
    "LoadJobRequest",
    "LoadJobSubmitter",
    "ObjectStore",
    "StaticTokenProvider",
    "TokenProvider",
    "TransferConfig",
    "TransferOutcome",
    "TransferProcessor",
    "TransferSettings",
    "WebQuery",
    "WebQueryClient",
    "build_load_job_request",
    "convert_file_to_csv",
    "convert_markup_to_csv",
    "create_output_csv_path",
    "extract_report_id",
    "gcs_uri",
    "load_transfer_configs",
    "table_date_suffix",
]
