"""Processor tests for the WebQuery transfer pipeline.

A fake client writes canned CSV output so the orchestration (report id
resolution, upload, load-job submission, failure isolation and stats) can
be checked without network access.
"""

import asyncio
import re
from pathlib import Path
from types import SimpleNamespace

import pytest

from src.exceptions import ExternalServiceError
from src.pipeline.webquery_csv import ColumnHeader, ExtractionResult
from src.pipeline.webquery_transfer.file_handler import BigQueryConfig, TransferConfig
from src.pipeline.webquery_transfer.processor import TransferOutcome, TransferProcessor


class FakeLimiter:
    def __init__(self):
        self.entered = 0

    async def __aenter__(self):
        """Enter async context (test stub)."""
        self.entered += 1
        return None

    async def __aexit__(self, exc_type, exc, tb):
        """Exit async context (test stub)."""
        return False


class FakeClient:
    """Writes a one-row CSV unless the URL is listed as failing."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.seen = []

    async def write_as_csv(self, session, webquery, output_path):
        self.seen.append(webquery.query_url)
        await asyncio.sleep(0)
        if webquery.query_url in self.failing:
            raise ExternalServiceError("boom", context={"status_code": 500})
        Path(output_path).write_text("clicks,reporting_date\n1,ts\n", encoding="utf-8")
        headers = (
            ColumnHeader("clicks", "INTEGER"),
            ColumnHeader("reporting_date", "TIMESTAMP"),
        )
        return ExtractionResult(headers, 1, "ts")


class FakeObjectStore:
    def __init__(self):
        self.uploads = []

    def upload_file(self, path, destination_uri):
        self.uploads.append((Path(path).name, destination_uri))


class FakeSubmitter:
    def __init__(self):
        self.requests = []

    def submit(self, request):
        self.requests.append(request)
        return f"job-{len(self.requests)}"


def make_config(**overrides):
    cfg = SimpleNamespace(
        max_concurrent_transfers=2,
        target_rpm=600,
        gcs_folder="tmp",
    )
    for key, value in overrides.items():
        setattr(cfg, key, value)
    return cfg


def make_transfer(url: str, table: str = "report") -> TransferConfig:
    return TransferConfig(BigQueryConfig("proj", "ds", table), "bucket", url)


@pytest.mark.asyncio
async def test_process_transfer_local_only(tmp_path: Path) -> None:
    client = FakeClient()
    proc = TransferProcessor(make_config(), tmp_path, client=client)
    limiter = FakeLimiter()

    outcome = await proc.process_transfer(
        None, make_transfer("https://wq.example/q?rid=11"), limiter, asyncio.Semaphore(1)
    )

    assert outcome.success is True
    assert outcome.report_id == "11"
    assert outcome.row_count == 1
    assert outcome.output_path.parent == tmp_path
    assert outcome.output_path.name.startswith("dswq_11_")
    assert outcome.output_path.suffix == ".csv"
    assert outcome.source_uri is None and outcome.job_id is None
    assert limiter.entered == 1


@pytest.mark.asyncio
async def test_process_transfer_uploads_and_submits_load_job(tmp_path: Path) -> None:
    store, submitter = FakeObjectStore(), FakeSubmitter()
    proc = TransferProcessor(
        make_config(gcs_folder="staging"),
        tmp_path,
        client=FakeClient(),
        object_store=store,
        load_job_submitter=submitter,
    )

    outcome = await proc.process_transfer(
        None,
        make_transfer("https://wq.example/q?rid=12", table="campaigns"),
        FakeLimiter(),
        asyncio.Semaphore(1),
    )

    assert outcome.success is True
    name = outcome.output_path.name
    assert store.uploads == [(name, f"gs://bucket/staging/{name}")]
    assert outcome.source_uri == f"gs://bucket/staging/{name}"
    assert outcome.job_id == "job-1"
    request = submitter.requests[0]
    assert (request.project_id, request.dataset_id) == ("proj", "ds")
    assert re.fullmatch(r"campaigns_\d{8}", request.table_id)
    assert request.source_uris == (outcome.source_uri,)
    assert request.write_disposition == "WRITE_TRUNCATE"


@pytest.mark.asyncio
async def test_submitter_without_object_store_is_not_called(tmp_path: Path) -> None:
    submitter = FakeSubmitter()
    proc = TransferProcessor(
        make_config(), tmp_path, client=FakeClient(), load_job_submitter=submitter
    )
    outcome = await proc.process_transfer(
        None, make_transfer("https://wq.example/q"), FakeLimiter(), asyncio.Semaphore(1)
    )
    assert outcome.success is True
    assert outcome.report_id is None
    assert outcome.output_path.name.startswith("dswq_unknown_")
    assert submitter.requests == []


@pytest.mark.asyncio
async def test_process_transfer_captures_errors(tmp_path: Path, caplog) -> None:
    url = "https://wq.example/q?rid=13"
    proc = TransferProcessor(make_config(), tmp_path, client=FakeClient(failing=[url]))

    outcome = await proc.process_transfer(
        None, make_transfer(url), FakeLimiter(), asyncio.Semaphore(1)
    )

    assert outcome.success is False
    assert "boom" in outcome.error
    assert "[Report 13] error processing" in caplog.text


@pytest.mark.asyncio
async def test_upload_failure_marks_transfer_failed(tmp_path: Path) -> None:
    class BrokenStore:
        def upload_file(self, path, destination_uri):
            raise OSError("bucket unavailable")

    proc = TransferProcessor(
        make_config(), tmp_path, client=FakeClient(), object_store=BrokenStore()
    )
    outcome = await proc.process_transfer(
        None, make_transfer("https://wq.example/q?rid=2"), FakeLimiter(), asyncio.Semaphore(1)
    )
    assert outcome.success is False
    assert outcome.row_count == 1
    assert outcome.error == "bucket unavailable"


@pytest.mark.asyncio
async def test_missing_bucket_fails_before_upload(tmp_path: Path) -> None:
    store, submitter = FakeObjectStore(), FakeSubmitter()
    proc = TransferProcessor(
        make_config(),
        tmp_path,
        client=FakeClient(),
        object_store=store,
        load_job_submitter=submitter,
    )
    transfer = TransferConfig(
        BigQueryConfig("proj", "ds", "report"), "", "https://wq.example/q?rid=4"
    )

    outcome = await proc.process_transfer(
        None, transfer, FakeLimiter(), asyncio.Semaphore(1)
    )

    assert outcome.success is False
    assert "Bucket name must not be empty" in outcome.error
    assert outcome.source_uri is None
    assert store.uploads == []
    assert submitter.requests == []


@pytest.mark.asyncio
async def test_invalid_url_is_reported_per_transfer(tmp_path: Path) -> None:
    proc = TransferProcessor(make_config(), tmp_path, client=FakeClient())
    outcome = await proc.process_transfer(
        None, make_transfer(""), FakeLimiter(), asyncio.Semaphore(1)
    )
    assert outcome.success is False
    assert "must not be empty" in outcome.error


@pytest.mark.asyncio
async def test_process_all_isolates_failures(tmp_path: Path) -> None:
    failing = "https://wq.example/q?rid=2"
    client = FakeClient(failing=[failing])
    proc = TransferProcessor(make_config(), tmp_path, client=client)
    configs = [
        make_transfer("https://wq.example/q?rid=1"),
        make_transfer(failing),
        make_transfer("https://wq.example/q?rid=3"),
    ]

    stats = await proc.process_all(configs)

    assert stats == {
        "total_configs": 3,
        "successful_transfers": 2,
        "failed_transfers": 1,
        "rows_written": 2,
    }
    assert [o.report_id for o in proc.outcomes] == ["1", "2", "3"]
    assert [o.success for o in proc.outcomes] == [True, False, True]
    assert sorted(client.seen) == sorted(c.webquery_url for c in configs)
    assert len({o.output_path for o in proc.outcomes}) == 3


@pytest.mark.asyncio
async def test_process_all_empty_list(tmp_path: Path, caplog) -> None:
    proc = TransferProcessor(make_config(), tmp_path, client=FakeClient())
    stats = await proc.process_all([])
    assert stats["total_configs"] == 0
    assert proc.outcomes == []
    assert "No transfer configurations" in caplog.text


@pytest.mark.asyncio
async def test_concurrency_is_bounded_by_semaphore(tmp_path: Path) -> None:
    active = {"now": 0, "peak": 0}

    class SlowClient(FakeClient):
        async def write_as_csv(self, session, webquery, output_path):
            active["now"] += 1
            active["peak"] = max(active["peak"], active["now"])
            await asyncio.sleep(0.01)
            active["now"] -= 1
            return await super().write_as_csv(session, webquery, output_path)

    proc = TransferProcessor(
        make_config(max_concurrent_transfers=2), tmp_path, client=SlowClient()
    )
    stats = await proc.process_all(
        [make_transfer(f"https://wq.example/q?rid={i}") for i in range(5)]
    )
    assert stats["successful_transfers"] == 5
    assert active["peak"] <= 2


def test_outcome_defaults() -> None:
    outcome = TransferOutcome(make_transfer("https://wq.example/q"))
    assert outcome.success is False
    assert outcome.row_count == 0
    assert outcome.error is None
