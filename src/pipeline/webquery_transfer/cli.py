"""Thin orchestration CLI for WebQuery transfers.

This module is a slim entrypoint that loads the transfer configuration,
instantiates the pipeline components located under
``src.pipeline.webquery_transfer`` and runs the asynchronous transfer flow.
``--convert`` turns a local WebQuery HTML file into CSV without any network
access.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path

from src.config import LOG_DIR, LOG_FILENAME_TRANSFER, LOG_FORMAT
from src.exceptions import ConfigurationError

from .config import TransferSettings
from .file_handler import create_output_csv_path, load_transfer_configs
from .processor import TransferProcessor
from .summary import print_outcomes
from .webquery import convert_file_to_csv, extract_report_id

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED_TRANSFERS = 1
EXIT_CONFIGURATION_ERROR = 2


def configure_logging(level: str = "INFO", enable_file: bool = True) -> None:
    """Configure root logging for a transfer or conversion run.

    A console handler is always installed. When ``enable_file`` is true a
    file handler appending to the transfer log under ``LOG_DIR`` is added
    in front of it, using the format configured in ``src/config.py``.

    Parameters
    ----------
    level : str, optional
        Logging level name such as "DEBUG" or "WARNING". Unknown names fall
        back to INFO. Defaults to "INFO".
    enable_file : bool, optional
        Whether to also log to the transfer log file. Defaults to True.

    Returns
    -------
    None
        Configures the root logger as a side effect.

    Notes
    -----
    All existing root handlers are removed first, so repeated calls do not
    duplicate output. Errors creating the log directory or the file handler
    (for example a read-only checkout or a patched ``FileHandler`` in
    tests) are suppressed: a run must not fail because its log file cannot
    be opened, and console logging still works in that case.

    Examples
    --------
    >>> configure_logging("DEBUG", enable_file=False)
    >>> logging.getLogger(__name__).debug("console only")  # doctest: +SKIP
    """
    for h in logging.root.handlers[:]:
        logging.root.removeHandler(h)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if enable_file:
        try:
            LOG_DIR.mkdir(exist_ok=True)
            handlers.insert(
                0, logging.FileHandler(LOG_DIR / LOG_FILENAME_TRANSFER, mode="a")
            )
        except Exception:
            # Console logging is enough when the log file is unavailable.
            pass
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )


def _existing_directory(value: str) -> Path:
    path = Path(value)
    if not path.is_dir():
        raise argparse.ArgumentTypeError(f"provided path is not a folder: {value}")
    return path


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments for the transfer entrypoint.

    Parameters
    ----------
    argv : list[str] | None, optional
        Argument list to parse. Defaults to ``sys.argv[1:]``.

    Returns
    -------
    argparse.Namespace
        Parsed arguments with attributes ``config_csv``, ``output_dir``,
        ``convert`` and ``log_level``. ``config_csv`` is ``None`` only in
        ``--convert`` mode.
    """
    parser = argparse.ArgumentParser(
        description="Convert WebQuery reports into CSV files for warehouse loading."
    )
    parser.add_argument(
        "config_csv",
        type=Path,
        nargs="?",
        help="CSV with projectId,datasetId,tableId,webQueryUrl,gcsBucketName",
    )
    parser.add_argument("output_dir", type=_existing_directory, help="Folder for CSV reports")
    parser.add_argument(
        "--convert",
        type=Path,
        default=None,
        metavar="HTML_FILE",
        help="Convert a local WebQuery HTML file instead of running transfers",
    )
    parser.add_argument(
        "--log-level", type=str, default=os.environ.get("LOG_LEVEL", "INFO")
    )
    args = parser.parse_args(argv)
    if args.convert is None and args.config_csv is None:
        parser.error("config_csv is required unless --convert is given")
    return args


def convert_local_file(html_path: Path, output_dir: Path) -> Path:
    """Convert one local WebQuery HTML file into a CSV file.

    The report id is taken from a ``rid=<digits>`` fragment in the file name
    when present. The file is streamed chunk by chunk into the extractor.

    Parameters
    ----------
    html_path : Path
        Local WebQuery HTML file.
    output_dir : Path
        Existing folder receiving the timestamped CSV file.

    Returns
    -------
    Path
        The written CSV file.

    Raises
    ------
    StructuralInputError
        If the document does not have the expected table structure.
    SinkIOError
        If the CSV file cannot be written.
    """
    report_id = extract_report_id(html_path.name)
    output_path = create_output_csv_path(output_dir, report_id)
    result = convert_file_to_csv(html_path, output_path, report_id=report_id)
    logger.info("Wrote %d rows to %s", result.row_count, output_path)
    return output_path


def main(argv: list[str] | None = None) -> int:
    """Run the transfer CLI and return its process exit code.

    In ``--convert`` mode a single local file is converted. Otherwise the
    settings and the transfer configuration list are loaded and every
    transfer runs concurrently through :class:`TransferProcessor`.

    Parameters
    ----------
    argv : list[str] | None, optional
        Argument list; defaults to ``sys.argv[1:]``.

    Returns
    -------
    int
        ``EXIT_OK`` when everything succeeded, ``EXIT_FAILED_TRANSFERS`` when
        a conversion or at least one transfer failed or the run was
        interrupted, ``EXIT_CONFIGURATION_ERROR`` when settings or the
        configuration file could not be loaded.
    """
    args = parse_arguments(argv)
    disable_file = bool(
        os.environ.get("DISABLE_FILE_LOGS") or os.environ.get("PYTEST_CURRENT_TEST")
    )
    configure_logging(args.log_level, enable_file=not disable_file)

    if args.convert is not None:
        try:
            convert_local_file(args.convert, args.output_dir)
        except Exception:
            logger.exception("Conversion of %s failed.", args.convert)
            return EXIT_FAILED_TRANSFERS
        return EXIT_OK

    logger.info("config file: %s", args.config_csv)
    try:
        settings = TransferSettings()
        transfer_configs = load_transfer_configs(args.config_csv)
    except ConfigurationError as error:
        logger.error("Configuration error: %s", error)
        return EXIT_CONFIGURATION_ERROR
    logger.debug("Loaded %d configurations", len(transfer_configs))

    processor = TransferProcessor(settings, args.output_dir)
    try:
        stats = asyncio.run(processor.process_all(transfer_configs))
    except KeyboardInterrupt:
        logger.warning("Processing interrupted by user (KeyboardInterrupt).")
        return EXIT_FAILED_TRANSFERS
    logger.info("Processing finished. Stats: %s", stats)
    print_outcomes(processor.outcomes)
    return EXIT_OK if stats["failed_transfers"] == 0 else EXIT_FAILED_TRANSFERS
