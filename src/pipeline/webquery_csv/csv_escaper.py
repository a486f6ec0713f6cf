"""CSV field escaping for extracted cell values.

Produces RFC-4180-compatible fields. The escaper never fails; any string is
representable.
"""

from __future__ import annotations

QUOTE: str = '"'
_EMPTY_EQUIVALENTS = frozenset({"", '""'})


def _needs_wrapping(cell: str) -> bool:
    return (
        "," in cell
        or "\n" in cell
        or "\r" in cell
        or cell[0].isspace()
        or cell[-1].isspace()
    )


def escape_csv_cell(cell: str | None) -> str:
    """Escape a raw cell value for inclusion in a CSV line.

    Rules, applied in order:

    1. ``None``, the empty string and the literal ``""`` yield ``""``.
    2. Every embedded ``"`` is doubled.
    3. If the original value contains a comma or a line break character
       (LF or CR), or starts or ends with whitespace, the doubled result is
       wrapped in quotes.
    4. Otherwise the doubled result is returned unwrapped.

    Parameters
    ----------
    cell : str | None
        Raw cell text as accumulated from the document.

    Returns
    -------
    str
        The CSV-safe field text.

    Examples
    --------
    >>> escape_csv_cell("1,234")
    '"1,234"'
    >>> escape_csv_cell('say "hi"')
    'say ""hi""'
    >>> escape_csv_cell(' padded')
    '" padded"'
    >>> escape_csv_cell('""')
    ''
    """
    if cell is None or cell in _EMPTY_EQUIVALENTS:
        return ""
    doubled = cell.replace(QUOTE, QUOTE * 2)
    if _needs_wrapping(cell):
        return f"{QUOTE}{doubled}{QUOTE}"
    return doubled


__all__ = ["QUOTE", "escape_csv_cell"]
