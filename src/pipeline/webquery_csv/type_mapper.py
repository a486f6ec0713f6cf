"""Mapping of WebQuery column classes to warehouse column types.

The table is process-wide, read-only data built once at import time. Lookups
are exact-match only: unknown, misspelled, empty or missing class tokens fall
back to ``DEFAULT_TYPE`` instead of failing the document.

The mapped types only shape header metadata and diagnostics; they are never
used to validate or encode cell values.

Examples
--------
>>> map_webquery_type("integral")
'INTEGER'
>>> map_webquery_type("Integral")
'STRING'
>>> map_webquery_type(None)
'STRING'
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

TIMESTAMP: str = "TIMESTAMP"
INTEGER: str = "INTEGER"
TEXT: str = "STRING"
DEFAULT_TYPE: str = "STRING"

WEBQUERY_TYPE_MAP: Mapping[str, str] = MappingProxyType(
    {
        "date": "DATE",
        "text": TEXT,
        "integral": INTEGER,
        "decimal": "FLOAT",
        "percent": "FLOAT",
    }
)


def map_webquery_type(class_token: str | None) -> str:
    """Translate a WebQuery column class into a warehouse column type.

    Parameters
    ----------
    class_token : str | None
        Value of the ``class`` attribute of a column definition, or ``None``
        when the attribute is absent.

    Returns
    -------
    str
        The mapped type, or ``DEFAULT_TYPE`` when no mapping exists.
    """
    if not class_token:
        return DEFAULT_TYPE
    return WEBQUERY_TYPE_MAP.get(class_token, DEFAULT_TYPE)


__all__ = [
    "DEFAULT_TYPE",
    "INTEGER",
    "TEXT",
    "TIMESTAMP",
    "WEBQUERY_TYPE_MAP",
    "map_webquery_type",
]
