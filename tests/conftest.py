"""Pytest configuration for test environment setup.

- Forces ``DISABLE_FILE_LOGS=1`` to avoid writing log files during tests.
- Ensures the project root is available on ``sys.path`` for imports.
- Provides small WebQuery documents shared by the engine and transfer tests.
"""

import os
import sys

os.environ.setdefault("DISABLE_FILE_LOGS", "1")  # Avoid creating log files during tests
from pathlib import Path

import pytest

# Ensure project root is on sys.path
ROOT = Path(__file__).resolve().parents[1]
root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

FIXED_TIMESTAMP = "2024-05-01 12:00:00"

SCENARIO_A_HTML = """<html><body><table>
<colgroup><col class="integral"></colgroup>
<thead><tr><th>Clicks!!</th></tr></thead>
<tbody>
<tr><td>1,234</td></tr>
<tr><td></td></tr>
</tbody>
</table></body></html>"""

MULTI_COLUMN_HTML = """<html><body><table>
<colgroup>
  <col class="date"><col class="text"><col class="decimal"><col>
</colgroup>
<thead><tr>
  <th>Day</th><th>Campaign Name</th><th>  Cost (USD)  </th><th>Notes</th>
</tr></thead>
<tbody>
  <tr><td>2024-04-30</td><td>Brand "Core"</td><td>12.50</td><td> padded</td></tr>
  <tr><td>2024-04-30</td><td>Spring, Sale</td><td>3</td><td>line
break</td></tr>
  <tr><td>2024-05-01</td><td>&quot;&quot;</td><td>0</td><td>a &amp; b</td></tr>
</tbody>
</table></body></html>"""

HEADER_ONLY_HTML = """<table>
<colgroup><col class="integral"><col class="percent"></colgroup>
<thead><tr><th>Impressions</th><th>CTR %</th></tr></thead>
<tbody></tbody>
</table>"""


@pytest.fixture
def fixed_timestamp() -> str:
    """Return the processing timestamp injected into extractors under test."""
    return FIXED_TIMESTAMP


@pytest.fixture
def scenario_a_html() -> str:
    """One integral column, header ``Clicks!!`` and two body rows."""
    return SCENARIO_A_HTML


@pytest.fixture
def multi_column_html() -> str:
    """Four typed columns with quoting, comma, whitespace and newline cells."""
    return MULTI_COLUMN_HTML


@pytest.fixture
def header_only_html() -> str:
    """Two typed columns and an empty body."""
    return HEADER_ONLY_HTML
