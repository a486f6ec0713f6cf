"""webquery_transfer.client module.

This module defines ``WebQueryClient``, the asynchronous networking boundary
that retrieves WebQuery documents. It sends an authenticated ``GET``
request, streams the response body in chunks through an incremental UTF-8
decoder into the HTML tokenizer, and lets the extraction engine write the
CSV as the document arrives. The whole document is never held in memory.

Timeouts, retries and backoff for the upstream fetch live here, outside the
extraction engine. A retry always restarts the document from scratch with a
fresh extractor; structural errors in the document and output I/O errors
are deterministic and are never retried.

Examples
--------
>>> import aiohttp
>>> from pathlib import Path
>>> from src.pipeline.webquery_transfer.client import WebQueryClient
>>> from src.pipeline.webquery_transfer.webquery import WebQuery
>>> class DummyConfig:
...     access_token = "secret"
...     max_retries = 1
...     backoff_factor = 0.1
...     request_timeout = 3
...     read_chunk_size = 4096
>>> client = WebQueryClient(DummyConfig())
>>> async def main():
...     async with aiohttp.ClientSession() as session:
...         return await client.write_as_csv(
...             session, WebQuery("https://example.test/wq?rid=1"), Path("out.csv")
...         )
>>> # To actually run:
>>> # import asyncio; asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from pathlib import Path
from typing import Any

import aiohttp

from src.config import APPLICATION_NAME
from src.exceptions import ExternalServiceError, RetryExhaustedError
from src.pipeline.webquery_csv import (
    CsvFileSink,
    ExtractionResult,
    TableExtractor,
    WebQueryTokenizer,
)

from .config import StaticTokenProvider, TokenProvider
from .webquery import WebQuery

logger = logging.getLogger(__name__)

_ERROR_BODY_LIMIT = 500


class WebQueryClient:
    r"""Asynchronous client streaming WebQuery documents into CSV files.

    Attributes
    ----------
    config : Any
        Settings object (e.g. ``TransferSettings``) providing
        ``access_token``, ``max_retries``, ``backoff_factor``,
        ``retry_sleep_on_429``, ``request_timeout`` and ``read_chunk_size``.
        Optional attributes are read with defaults.
    token_provider : TokenProvider
        Source of the bearer token. Defaults to ``config.token_provider()``
        when the settings offer one, else to the static ``access_token``.

    See Also
    --------
    src.pipeline.webquery_transfer.processor.TransferProcessor : Runs many
        documents concurrently through this client.
    """

    def __init__(self, config: Any, token_provider: TokenProvider | None = None) -> None:
        self.config = config
        if token_provider is None:
            factory = getattr(config, "token_provider", None)
            token_provider = (
                factory()
                if callable(factory)
                else StaticTokenProvider(str(getattr(config, "access_token", "")))
            )
        self.token_provider = token_provider

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token_provider.access_token()}",
            "User-Agent": APPLICATION_NAME,
        }

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep(getattr(self.config, "backoff_factor", 2.0) ** attempt)

    async def write_as_csv(
        self,
        session: aiohttp.ClientSession,
        webquery: WebQuery,
        output_path: Path,
    ) -> ExtractionResult:
        r"""Fetch ``webquery`` and write it to ``output_path`` as CSV.

        Handles:
          * Network issues (retries on ``aiohttp.ClientError`` and
            ``asyncio.TimeoutError`` up to ``config.max_retries``)
          * HTTP 429 with sleep-and-retry
          * HTTP 5xx with exponential backoff
          * Other HTTP errors (fail immediately)

        Parameters
        ----------
        session : aiohttp.ClientSession
            Session used for the request. Not closed by this method.
        webquery : WebQuery
            The report to retrieve.
        output_path : Path
            Destination CSV file; overwritten on every attempt.

        Returns
        -------
        ExtractionResult
            Header metadata and row count of the written CSV.

        Raises
        ------
        ExternalServiceError
            On a non-retryable HTTP status or when network errors persist.
        RetryExhaustedError
            When every attempt was answered with HTTP 429 or 5xx.
        StructuralInputError
            If the document structure is malformed (not retried).
        SinkIOError
            If the CSV file cannot be written (not retried).
        """
        max_retries = getattr(self.config, "max_retries", 3)
        last_status: int | None = None

        for attempt in range(max_retries + 1):
            try:
                async with session.get(
                    webquery.query_url,
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(
                        total=getattr(self.config, "request_timeout", 300)
                    ),
                ) as response:
                    status = response.status
                    if status == 200:
                        return await self._stream_to_csv(response, webquery, output_path)

                    last_status = status
                    body = await response.text()
                    if status == 429:
                        logger.warning(
                            "[Report %s] rate limited (attempt %d)",
                            webquery.report_id,
                            attempt + 1,
                        )
                        if attempt < max_retries:
                            await asyncio.sleep(
                                getattr(self.config, "retry_sleep_on_429", 60)
                                * (attempt + 1)
                            )
                        continue
                    if status >= 500:
                        logger.warning(
                            "[Report %s] HTTP %d from WebQuery (attempt %d)",
                            webquery.report_id,
                            status,
                            attempt + 1,
                        )
                        if attempt < max_retries:
                            await self._backoff(attempt)
                        continue
                    raise ExternalServiceError(
                        f"WebQuery request failed with HTTP {status}",
                        context={
                            "report_id": webquery.report_id,
                            "status_code": status,
                            "error_body": body[:_ERROR_BODY_LIMIT],
                        },
                        transient=False,
                    )
            except (aiohttp.ClientError, asyncio.TimeoutError, TimeoutError) as error:
                logger.warning(
                    "[Report %s] %s while reading WebQuery (attempt %d): %s",
                    webquery.report_id,
                    type(error).__name__,
                    attempt + 1,
                    error,
                )
                if attempt < max_retries:
                    await self._backoff(attempt)
                    continue
                raise ExternalServiceError(
                    f"WebQuery request failed: {type(error).__name__}",
                    context={"report_id": webquery.report_id, "message": str(error)},
                ) from error

        raise RetryExhaustedError(
            f"WebQuery request still failing after {max_retries + 1} attempts",
            context={"report_id": webquery.report_id, "status_code": last_status},
        )

    async def _stream_to_csv(
        self, response: Any, webquery: WebQuery, output_path: Path
    ) -> ExtractionResult:
        """Feed the response body chunk by chunk through a fresh extractor."""
        extractor = TableExtractor(CsvFileSink(output_path), report_id=webquery.report_id)
        tokenizer = WebQueryTokenizer(extractor.handle)
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        chunk_size = getattr(self.config, "read_chunk_size", 64 * 1024)
        try:
            async for chunk in response.content.iter_chunked(chunk_size):
                tokenizer.feed(decoder.decode(chunk))
            tokenizer.feed(decoder.decode(b"", final=True))
            tokenizer.close()
        except BaseException:
            extractor.abort()
            raise
        return extractor.result()
