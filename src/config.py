"""Global configuration constants for the project.

Defines paths, filenames and fixed values used across the extraction engine
and the transfer pipeline.
"""

from __future__ import annotations

from pathlib import Path

# Project directories
PROJECT_ROOT: Path = Path(__file__).resolve().parents[1]
LOG_DIR: Path = PROJECT_ROOT / "logs"

APPLICATION_NAME: str = "WebQueryToBigQueryv1"

# CSV output
CSV_FILE_PREFIX: str = "dswq_"
CSV_FILE_SUFFIX: str = ".csv"
UNKNOWN_REPORT_ID: str = "unknown"

# Partition column appended to every header and row
REPORT_PULL_TIMESTAMP_COLUMN_NAME: str = "reporting_date"
PROCESSING_TIMESTAMP_FORMAT: str = "%Y-%m-%d %H:%M:%S"

# Transfer defaults (overridable through the environment)
DEFAULT_MAX_THREADS: int = 10
DEFAULT_TARGET_RPM: int = 60
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_BACKOFF_FACTOR: float = 2.0
DEFAULT_RETRY_SLEEP_ON_429: int = 60
DEFAULT_REQUEST_TIMEOUT: int = 300
DEFAULT_READ_CHUNK_SIZE: int = 64 * 1024
DEFAULT_GCS_FOLDER: str = "tmp"

# Transfer configuration CSV columns
TRANSFER_CONFIG_COLUMNS: tuple[str, ...] = (
    "projectId",
    "datasetId",
    "tableId",
    "webQueryUrl",
    "gcsBucketName",
)

# Load job defaults
LOAD_JOB_SOURCE_FORMAT: str = "CSV"
LOAD_JOB_WRITE_DISPOSITION: str = "WRITE_TRUNCATE"
LOAD_JOB_SKIP_LEADING_ROWS: int = 1

# CLI defaults and logging
LOG_FILENAME_TRANSFER: str = "webquery_transfer.log"
LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
