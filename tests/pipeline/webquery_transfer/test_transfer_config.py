"""Configuration-related tests for the WebQuery transfer pipeline."""

from pathlib import Path

import pytest

import src.config as project_config
from src.exceptions import ConfigurationError
from src.pipeline.webquery_transfer.config import StaticTokenProvider, TransferSettings

NUMERIC_VARS = (
    "MAX_CONCURRENT_TRANSFERS",
    "TARGET_RPM",
    "MAX_RETRIES",
    "BACKOFF_FACTOR",
    "RETRY_SLEEP_ON_429",
    "REQUEST_TIMEOUT",
    "READ_CHUNK_SIZE",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path: Path):
    """Point PROJECT_ROOT at an empty folder and clear pipeline variables."""
    monkeypatch.setattr(project_config, "PROJECT_ROOT", tmp_path)
    for name in (*NUMERIC_VARS, "WEBQUERY_ACCESS_TOKEN", "GCS_FOLDER"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_missing_access_token_raises(clean_env) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        TransferSettings()
    assert "WEBQUERY_ACCESS_TOKEN" in excinfo.value.message


def test_defaults_apply_when_only_token_is_set(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("WEBQUERY_ACCESS_TOKEN", "tok")
    cfg = TransferSettings()
    assert cfg.access_token == "tok"
    assert cfg.max_concurrent_transfers == 10
    assert cfg.target_rpm == 60
    assert cfg.max_retries == 3
    assert cfg.backoff_factor == 2.0
    assert cfg.retry_sleep_on_429 == 60
    assert cfg.request_timeout == 300
    assert cfg.read_chunk_size == 64 * 1024
    assert cfg.gcs_folder == "tmp"
    assert cfg.token_provider().access_token() == "tok"


def test_environment_overrides(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("WEBQUERY_ACCESS_TOKEN", "tok")
    monkeypatch.setenv("MAX_CONCURRENT_TRANSFERS", "4")
    monkeypatch.setenv("TARGET_RPM", "120")
    monkeypatch.setenv("MAX_RETRIES", "0")
    monkeypatch.setenv("BACKOFF_FACTOR", "1.5")
    monkeypatch.setenv("READ_CHUNK_SIZE", "")
    monkeypatch.setenv("GCS_FOLDER", "staging")
    cfg = TransferSettings()
    assert cfg.max_concurrent_transfers == 4
    assert cfg.target_rpm == 120
    assert cfg.max_retries == 0
    assert cfg.backoff_factor == 1.5
    assert cfg.read_chunk_size == 64 * 1024
    assert cfg.gcs_folder == "staging"


def test_dotenv_file_is_loaded(clean_env, monkeypatch) -> None:
    # Pre-register the variables so monkeypatch restores them after load_dotenv
    monkeypatch.setenv("WEBQUERY_ACCESS_TOKEN", "from-env")
    monkeypatch.setenv("TARGET_RPM", "1")
    (clean_env / ".env").write_text(
        "WEBQUERY_ACCESS_TOKEN=from-dotenv\nTARGET_RPM=30\n", encoding="utf-8"
    )
    cfg = TransferSettings()
    assert cfg.access_token == "from-dotenv"
    assert cfg.target_rpm == 30


@pytest.mark.parametrize("name", ["MAX_RETRIES", "BACKOFF_FACTOR", "TARGET_RPM"])
def test_invalid_numbers_raise_configuration_error(clean_env, monkeypatch, name) -> None:
    monkeypatch.setenv("WEBQUERY_ACCESS_TOKEN", "tok")
    monkeypatch.setenv(name, "lots")
    with pytest.raises(ConfigurationError) as excinfo:
        TransferSettings()
    assert excinfo.value.context == {"variable": name}


def test_concurrency_must_be_positive(clean_env, monkeypatch) -> None:
    monkeypatch.setenv("WEBQUERY_ACCESS_TOKEN", "tok")
    monkeypatch.setenv("MAX_CONCURRENT_TRANSFERS", "0")
    with pytest.raises(ConfigurationError):
        TransferSettings()


def test_static_token_provider_rejects_empty_token() -> None:
    with pytest.raises(ConfigurationError):
        StaticTokenProvider("")
    assert StaticTokenProvider("abc").access_token() == "abc"
