"""Header name normalization for warehouse-safe column identifiers."""

from __future__ import annotations

import re

_NON_IDENTIFIER_CHARS = re.compile(r"[^A-Za-z0-9_]")
_UNDERSCORE_RUNS = re.compile(r"_{2,}")


def sanitize_header(text: str | None) -> str:
    """Return an identifier-safe, lowercase column name.

    Every character outside ``[A-Za-z0-9_]`` becomes ``_``, runs of two or
    more underscores collapse into one and the result is lowercased. The
    function is idempotent.

    Parameters
    ----------
    text : str | None
        Raw header cell text. ``None`` yields an empty string.

    Returns
    -------
    str
        Sanitized column name containing only ``[a-z0-9_]``.

    Examples
    --------
    >>> sanitize_header("  Cost (USD)  ")
    '_cost_usd_'
    >>> sanitize_header("Clicks!!")
    'clicks_'
    """
    if text is None:
        return ""
    replaced = _NON_IDENTIFIER_CHARS.sub("_", text)
    return _UNDERSCORE_RUNS.sub("_", replaced).lower()


__all__ = ["sanitize_header"]
