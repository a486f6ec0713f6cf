"""Rendering helpers for transfer outcome summaries.

Provides a Rich table describing each transfer of a run, suitable for
printing to the terminal at the end of the CLI flow.
"""

from __future__ import annotations

from collections.abc import Iterable

from rich.console import Console
from rich.table import Table

from src.config import UNKNOWN_REPORT_ID

from .processor import TransferOutcome


def _status_label(outcome: TransferOutcome) -> str:
    """Return the status cell text for an outcome.

    Examples
    --------
    >>> from src.pipeline.webquery_transfer.file_handler import BigQueryConfig, TransferConfig
    >>> cfg = TransferConfig(BigQueryConfig("p", "d", "t"), "b", "https://x?rid=1")
    >>> _status_label(TransferOutcome(cfg, success=True))
    '✅ Done'
    """
    return "✅ Done" if outcome.success else "❌ Failed"


def render_outcomes_table(outcomes: Iterable[TransferOutcome]) -> Table:
    """Construct a table summarising every transfer outcome.

    Parameters
    ----------
    outcomes : Iterable[TransferOutcome]
        Outcomes as collected by ``TransferProcessor``.

    Returns
    -------
    rich.table.Table
        One row per transfer with report id, destination table, row count,
        status and the output location or error.
    """
    table = Table(title="WebQuery transfers", show_header=True, header_style="bold blue")
    table.add_column("Report", style="bold")
    table.add_column("Table")
    table.add_column("Rows", justify="right")
    table.add_column("Status")
    table.add_column("Details")
    for outcome in outcomes:
        bq = outcome.transfer_config.bigquery_config
        if outcome.success:
            details = outcome.job_id or outcome.source_uri or str(outcome.output_path)
        else:
            details = outcome.error or ""
        table.add_row(
            outcome.report_id or UNKNOWN_REPORT_ID,
            f"{bq.project_id}.{bq.dataset_id}.{bq.table_id}",
            str(outcome.row_count),
            _status_label(outcome),
            details,
        )
    return table


def print_outcomes(outcomes: Iterable[TransferOutcome], console: Console | None = None) -> None:
    """Print the outcome table to ``console`` (stdout by default)."""
    (console or Console()).print(render_outcomes_table(outcomes))
