"""File handling utilities for WebQuery transfers.

This module knows how to read the transfer configuration list and where to
put the CSV produced for each report. It performs only local file I/O and
does not contact external services.
"""

from __future__ import annotations

import logging
import tempfile
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from src.config import (
    CSV_FILE_PREFIX,
    CSV_FILE_SUFFIX,
    TRANSFER_CONFIG_COLUMNS,
    UNKNOWN_REPORT_ID,
)
from src.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BigQueryConfig:
    """Destination table coordinates of one transfer."""

    project_id: str
    dataset_id: str
    table_id: str


@dataclass(frozen=True)
class TransferConfig:
    """One WebQuery to warehouse transfer."""

    bigquery_config: BigQueryConfig
    gcs_bucket_name: str
    webquery_url: str


def load_transfer_configs(config_path: Path) -> list[TransferConfig]:
    """Read transfer configurations from a header-first CSV file.

    Parameters
    ----------
    config_path : Path
        CSV file with the columns ``projectId``, ``datasetId``, ``tableId``,
        ``webQueryUrl`` and ``gcsBucketName``. Extra columns are ignored.

    Returns
    -------
    list[TransferConfig]
        One entry per non-blank row, in file order.

    Raises
    ------
    ConfigurationError
        If the file cannot be read, is empty, or lacks a required column.

    Examples
    --------
    >>> configs = load_transfer_configs(Path("transfers.csv"))  # doctest: +SKIP
    >>> configs[0].bigquery_config.table_id  # doctest: +SKIP
    'campaign_report'
    """
    config_path = Path(config_path)
    try:
        frame = pd.read_csv(
            config_path, dtype=str, keep_default_na=False, skip_blank_lines=True
        )
    except FileNotFoundError as error:
        raise ConfigurationError(
            f"Transfer configuration not found: {config_path}",
            context={"path": str(config_path)},
        ) from error
    except pd.errors.EmptyDataError as error:
        raise ConfigurationError(
            f"Transfer configuration is empty: {config_path}",
            context={"path": str(config_path)},
        ) from error

    frame.columns = [str(column).strip() for column in frame.columns]
    missing = [column for column in TRANSFER_CONFIG_COLUMNS if column not in frame.columns]
    if missing:
        raise ConfigurationError(
            f"Transfer configuration is missing columns: {', '.join(missing)}",
            context={"path": str(config_path), "missing": missing},
        )

    configs: list[TransferConfig] = []
    for record in frame[list(TRANSFER_CONFIG_COLUMNS)].to_dict(orient="records"):
        values = {key: str(value).strip() for key, value in record.items()}
        if not any(values.values()):
            continue
        configs.append(
            TransferConfig(
                bigquery_config=BigQueryConfig(
                    project_id=values["projectId"],
                    dataset_id=values["datasetId"],
                    table_id=values["tableId"],
                ),
                gcs_bucket_name=values["gcsBucketName"],
                webquery_url=values["webQueryUrl"],
            )
        )
    logger.debug("Loaded %d transfer configurations from %s", len(configs), config_path)
    return configs


def create_output_csv_path(output_dir: Path, report_id: str | None) -> Path:
    """Create a fresh, uniquely named CSV file for one report.

    Parameters
    ----------
    output_dir : Path
        Existing directory receiving the CSV files.
    report_id : str | None
        Report identifier embedded in the file name; ``None`` becomes
        ``unknown``.

    Returns
    -------
    Path
        Path of the created (empty) file.
    """
    prefix = f"{CSV_FILE_PREFIX}{report_id or UNKNOWN_REPORT_ID}_"
    with tempfile.NamedTemporaryFile(
        prefix=prefix, suffix=CSV_FILE_SUFFIX, dir=output_dir, delete=False
    ) as handle:
        return Path(handle.name)
