"""Configuration and environment loader for the WebQuery transfer pipeline.

This module provides ``TransferSettings``, which loads, validates, and
exposes the runtime configuration of the transfer pipeline: the access
token used to read WebQueries, concurrency and rate limits, retry/backoff
behaviour and streaming parameters.

Role in Architecture
--------------------
- Forms the boundary between process runtime/CI/developer environments and
  the pipeline's typed runtime config.
- No business or client logic: only configuration loading and validation.
- Credential acquisition and refresh are external concerns; the pipeline
  only consumes an already issued token through ``TokenProvider``.

Examples
--------
>>> import os
>>> os.environ["WEBQUERY_ACCESS_TOKEN"] = "unit-test"
>>> cfg = TransferSettings()
>>> cfg.max_concurrent_transfers > 0
True
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol

from dotenv import load_dotenv

import src.config as _project_config
from src.config import (
    DEFAULT_BACKOFF_FACTOR,
    DEFAULT_GCS_FOLDER,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_THREADS,
    DEFAULT_READ_CHUNK_SIZE,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_SLEEP_ON_429,
    DEFAULT_TARGET_RPM,
)
from src.exceptions import ConfigurationError


class TokenProvider(Protocol):
    """Supplies the bearer token used to read WebQueries."""

    def access_token(self) -> str: ...


class StaticTokenProvider:
    """Token provider returning a fixed, already issued access token."""

    def __init__(self, token: str) -> None:
        if not token:
            raise ConfigurationError("Access token must not be empty")
        self._token = token

    def access_token(self) -> str:
        return self._token


def _env_number(name: str, default: float, cast: type) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return cast(default)
    try:
        return cast(raw)
    except ValueError as error:
        raise ConfigurationError(
            f"Invalid numeric value for {name}: {raw!r}", context={"variable": name}
        ) from error


class TransferSettings:
    r"""Runtime settings for the transfer pipeline.

    Attributes
    ----------
    access_token : str
        Bearer token sent with every WebQuery request.
    max_concurrent_transfers : int
        Maximum number of documents processed at the same time.
    target_rpm : int
        Target WebQuery requests per minute.
    max_retries : int
        Maximum retries for transient fetch errors.
    backoff_factor : float
        Exponential backoff base for retries.
    retry_sleep_on_429 : int
        Seconds to sleep on HTTP 429, multiplied by the attempt number.
    request_timeout : int
        Total timeout (seconds) for one WebQuery request.
    read_chunk_size : int
        Size of the response chunks fed to the tokenizer.
    gcs_folder : str
        Object-store folder receiving uploaded CSV files.

    Notes
    -----
    Instantiate once at process start. No runtime mutation is intended.
    """

    def __init__(self) -> None:
        """Load settings from the environment and an optional project ``.env``.

        Raises
        ------
        ConfigurationError
            If ``WEBQUERY_ACCESS_TOKEN`` is missing or a numeric variable
            cannot be parsed.
        """
        env_path = Path(_project_config.PROJECT_ROOT) / ".env"
        if env_path.exists():
            load_dotenv(env_path, override=True)
        self.access_token: str = os.getenv("WEBQUERY_ACCESS_TOKEN", "")
        if not self.access_token:
            raise ConfigurationError(
                "Missing WEBQUERY_ACCESS_TOKEN for WebQuery access"
            )
        self.max_concurrent_transfers = int(
            _env_number("MAX_CONCURRENT_TRANSFERS", DEFAULT_MAX_THREADS, int)
        )
        self.target_rpm = int(_env_number("TARGET_RPM", DEFAULT_TARGET_RPM, int))
        self.max_retries = int(_env_number("MAX_RETRIES", DEFAULT_MAX_RETRIES, int))
        self.backoff_factor = float(
            _env_number("BACKOFF_FACTOR", DEFAULT_BACKOFF_FACTOR, float)
        )
        self.retry_sleep_on_429 = int(
            _env_number("RETRY_SLEEP_ON_429", DEFAULT_RETRY_SLEEP_ON_429, int)
        )
        self.request_timeout = int(
            _env_number("REQUEST_TIMEOUT", DEFAULT_REQUEST_TIMEOUT, int)
        )
        self.read_chunk_size = int(
            _env_number("READ_CHUNK_SIZE", DEFAULT_READ_CHUNK_SIZE, int)
        )
        self.gcs_folder: str = os.getenv("GCS_FOLDER", DEFAULT_GCS_FOLDER)
        if self.max_concurrent_transfers < 1:
            raise ConfigurationError("MAX_CONCURRENT_TRANSFERS must be at least 1")

    def token_provider(self) -> StaticTokenProvider:
        """Return a token provider for the configured access token."""
        return StaticTokenProvider(self.access_token)
