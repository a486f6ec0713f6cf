"""WebQuery Transfer package.

This module serves as the root of the WebQuery Transfer Python package,
which turns tabular HTML reports ("WebQueries") into CSV files ready for
bulk loading into a columnar data warehouse.

The package is layered: a thin program entrypoint, the transfer
orchestration layer (configuration, HTTP retrieval, bounded concurrency,
load-job preparation) and the core extraction engine (a streaming table
state machine and CSV serializer) that never touches the network.

Package Structure
-----------------
- `pipeline/webquery_csv/`:
    The streaming extraction engine: structural events, HTML tokenizer
    adapter, column type mapping, header sanitizing, CSV escaping and the
    output sink.
- `pipeline/webquery_transfer/`:
    Environment settings, transfer configuration loading, the WebQuery HTTP
    client, load-job request building and the concurrent processor/CLI.
- `config.py`: All configuration constants, as UPPER_SNAKE_CASE.
- `exceptions.py`: Project-specific exception classes.

Examples
--------
Basic import pattern:

>>> import src
>>> # See src/program_webquery_transfer.py for the entrypoint.

"""
