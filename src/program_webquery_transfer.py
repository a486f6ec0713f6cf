"""Entrypoint for WebQuery transfers.

Usage:
    python -m src.program_webquery_transfer CONFIG_CSV OUTPUT_DIR [--log-level LEVEL]
    python -m src.program_webquery_transfer OUTPUT_DIR --convert REPORT.html

All logic lives in ``src.pipeline.webquery_transfer.cli``.
"""

from __future__ import annotations

import sys

from src.pipeline.webquery_transfer.cli import main

if __name__ == "__main__":
    sys.exit(main())
