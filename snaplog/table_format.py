# File: snaplog/table_format.py
"""
ASCII tables for expression output.

    +------------------+---------------+
    | Message Property | Message Value |
    |------------------|---------------|
    | Message Number   | 0             |
    +------------------+---------------+

``parse_table`` reads the same layout back so values written to an
expression file can be recovered.
"""

from __future__ import annotations

import re
from typing import List, Optional, Sequence

# Matches one whole table (border, rows, border) anchored at line starts.
TABLE_BLOCK_RE = re.compile(
    r"^\+[-+]+\+[ \t]*\r?\n(?:\|[^\r\n]*\r?\n)+\+[-+]+\+[ \t]*(?:\r?\n|$)",
    re.MULTILINE,
)

_SEPARATOR_ROW_RE = re.compile(r"^\|-[-|]*-\|$")
_BORDER_RE = re.compile(r"^\+[-+]+\+$")


def format_table(headers: Sequence[str], rows: Sequence[Sequence[str]],
                 alignment: Optional[List[str]] = None) -> str:
    """Format data as an ASCII table. Empty headers give an empty string."""
    if not headers:
        return ""

    # Calculate column widths
    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            if i < len(col_widths):
                col_widths[i] = max(col_widths[i], len(str(cell)))

    # Default alignment
    if alignment is None:
        alignment = ['left'] * len(headers)

    def _cell(text: str, width: int, align: str) -> str:
        if align == 'center':
            return text.center(width)
        if align == 'right':
            return text.rjust(width)
        return text.ljust(width)

    border = '+-' + '-+-'.join('-' * w for w in col_widths) + '-+'
    formatted_rows = [border]

    # Header
    header_row = [_cell(h, w, a) for h, w, a in zip(headers, col_widths, alignment)]
    formatted_rows.append('| ' + ' | '.join(header_row) + ' |')
    formatted_rows.append('|-' + '-|-'.join('-' * w for w in col_widths) + '-|')

    # Data rows; short rows are padded with blank cells
    for row in rows:
        cells = [str(c) for c in row] + [''] * (len(headers) - len(row))
        formatted_row = [_cell(c, w, a) for c, w, a in zip(cells, col_widths, alignment)]
        formatted_rows.append('| ' + ' | '.join(formatted_row) + ' |')

    formatted_rows.append(border)
    return '\n'.join(formatted_rows)


def format_pairs(headers: Sequence[str], pairs: Sequence[Sequence[str]]) -> str:
    """Two-column property/value table."""
    return format_table(headers, [(label, value) for label, value in pairs])


def _split_row(line: str) -> List[str]:
    inner = line.strip()[1:-1]
    return [cell.strip() for cell in inner.split(' | ')]


def parse_table(text: str, include_headers: bool = False) -> List[List[str]]:
    """
    Data rows of every table found in ``text``, cells whitespace-trimmed.

    The header row of each table is skipped unless ``include_headers``.
    """
    rows: List[List[str]] = []
    for block in TABLE_BLOCK_RE.finditer(text):
        lines = [ln.strip() for ln in block.group(0).splitlines() if ln.strip()]
        body = [ln for ln in lines if not _BORDER_RE.match(ln)]
        if not body:
            continue
        header, data = body[0], body[1:]
        if include_headers:
            rows.append(_split_row(header))
        for line in data:
            if _SEPARATOR_ROW_RE.match(line):
                continue
            rows.append(_split_row(line))
    return rows


def strip_tables(text: str) -> str:
    """Remove every table block from ``text``."""
    return TABLE_BLOCK_RE.sub("", text)
