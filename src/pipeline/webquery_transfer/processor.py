"""TransferProcessor: concurrent WebQuery transfer orchestration.

This module runs every configured transfer end to end: it resolves the
report id, creates a local CSV file, streams the WebQuery into it through
``WebQueryClient`` and, when the corresponding collaborators are supplied,
uploads the file to the object store and submits a warehouse load job.

Many documents run concurrently, bounded by an ``asyncio.Semaphore`` and an
``aiolimiter.AsyncLimiter``. Each transfer owns its own extractor, sink and
file; failures are caught, logged and reported per transfer and never
affect siblings. Documents may complete in any order.

Examples
--------
>>> from pathlib import Path
>>> from src.pipeline.webquery_transfer import TransferProcessor, TransferSettings
>>> processor = TransferProcessor(TransferSettings(), Path("out"))  # doctest: +SKIP
>>> # stats = asyncio.run(processor.process_all(configs))
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import aiohttp
from aiolimiter import AsyncLimiter

from src.config import DEFAULT_GCS_FOLDER, DEFAULT_MAX_THREADS, DEFAULT_TARGET_RPM

from .client import WebQueryClient
from .file_handler import TransferConfig, create_output_csv_path
from .load_job import LoadJobSubmitter, ObjectStore, build_load_job_request, gcs_uri
from .webquery import WebQuery

logger = logging.getLogger(__name__)


@dataclass
class TransferOutcome:
    """Result of one transfer, successful or not."""

    transfer_config: TransferConfig
    report_id: str | None = None
    success: bool = False
    output_path: Path | None = None
    row_count: int = 0
    source_uri: str | None = None
    job_id: str | None = None
    error: str | None = None


class TransferProcessor:
    """Run WebQuery transfers with bounded concurrency.

    Parameters
    ----------
    config : Any
        Settings object (e.g. ``TransferSettings``) providing concurrency,
        rate-limit, retry and folder values.
    output_dir : Path
        Existing directory receiving the CSV files.
    client : WebQueryClient | None, optional
        Client used to fetch and convert documents; built from ``config``
        when omitted.
    object_store : ObjectStore | None, optional
        Upload collaborator. When omitted the CSV stays local.
    load_job_submitter : LoadJobSubmitter | None, optional
        Load-job collaborator. Used only when a file was uploaded.
    """

    def __init__(
        self,
        config: Any,
        output_dir: Path,
        client: WebQueryClient | None = None,
        object_store: ObjectStore | None = None,
        load_job_submitter: LoadJobSubmitter | None = None,
    ) -> None:
        self.config = config
        self.output_dir = Path(output_dir)
        self.client = client or WebQueryClient(config)
        self.object_store = object_store
        self.load_job_submitter = load_job_submitter
        self.outcomes: list[TransferOutcome] = []

    async def process_transfer(
        self,
        session: aiohttp.ClientSession,
        transfer_config: TransferConfig,
        rate_limiter: AsyncLimiter,
        semaphore: asyncio.Semaphore,
    ) -> TransferOutcome:
        """Process a single transfer, returning its outcome.

        Returns
        -------
        TransferOutcome
            ``success`` is True only if every configured step completed.
            Any exception is logged and captured in ``error``.
        """
        outcome = TransferOutcome(transfer_config=transfer_config)
        async with semaphore:
            try:
                webquery = WebQuery(transfer_config.webquery_url)
                outcome.report_id = webquery.report_id
                logger.info(
                    "[Report %s] starting: url: %s",
                    webquery.report_id,
                    webquery.query_url,
                )
                output_path = create_output_csv_path(self.output_dir, webquery.report_id)
                outcome.output_path = output_path
                logger.info("[Report %s] localFile: %s", webquery.report_id, output_path)

                async with rate_limiter:
                    result = await self.client.write_as_csv(
                        session, webquery, output_path
                    )
                outcome.row_count = result.row_count
                logger.debug(
                    "[Report %s] column types: %s",
                    webquery.report_id,
                    {header.name: header.type for header in result.headers},
                )

                if self.object_store is not None:
                    destination_uri = gcs_uri(
                        transfer_config.gcs_bucket_name,
                        getattr(self.config, "gcs_folder", DEFAULT_GCS_FOLDER),
                        output_path.name,
                    )
                    await asyncio.to_thread(
                        self.object_store.upload_file, output_path, destination_uri
                    )
                    outcome.source_uri = destination_uri
                    logger.info(
                        "[Report %s] uploaded: %s", webquery.report_id, outcome.source_uri
                    )
                    if self.load_job_submitter is not None:
                        request = build_load_job_request(
                            transfer_config.bigquery_config, [outcome.source_uri]
                        )
                        outcome.job_id = await asyncio.to_thread(
                            self.load_job_submitter.submit, request
                        )
                        logger.info(
                            "[Report %s] load job id: %s", webquery.report_id, outcome.job_id
                        )

                outcome.success = True
                logger.info("[Report %s] finished", outcome.report_id)
            except Exception as error:
                outcome.error = str(error)
                logger.error(
                    "[Report %s] error processing %s: %s",
                    outcome.report_id,
                    transfer_config.webquery_url,
                    error,
                    exc_info=True,
                )
        return outcome

    async def process_all(self, transfer_configs: list[TransferConfig]) -> dict[str, int]:
        """Process every transfer concurrently.

        Parameters
        ----------
        transfer_configs : list[TransferConfig]
            Transfers to run.

        Returns
        -------
        dict[str, int]
            Statistics about the run.
        """
        self.outcomes = []
        if not transfer_configs:
            logger.warning("No transfer configurations to process")
            return self._build_stats_dict()

        max_concurrent = getattr(self.config, "max_concurrent_transfers", DEFAULT_MAX_THREADS)
        rate_limiter = AsyncLimiter(getattr(self.config, "target_rpm", DEFAULT_TARGET_RPM), 60)
        semaphore = asyncio.Semaphore(max_concurrent)
        connector = aiohttp.TCPConnector(limit=max_concurrent)
        async with aiohttp.ClientSession(connector=connector) as session:
            tasks = [
                self.process_transfer(session, transfer_config, rate_limiter, semaphore)
                for transfer_config in transfer_configs
            ]
            self.outcomes = list(await asyncio.gather(*tasks))
        return self._build_stats_dict()

    def _build_stats_dict(self) -> dict[str, int]:
        successful = sum(1 for outcome in self.outcomes if outcome.success)
        return {
            "total_configs": len(self.outcomes),
            "successful_transfers": successful,
            "failed_transfers": len(self.outcomes) - successful,
            "rows_written": sum(
                outcome.row_count for outcome in self.outcomes if outcome.success
            ),
        }
