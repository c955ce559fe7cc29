# File: snaplog/splitter.py
"""
Cut a shim log into command blocks, and turn an exported expression file
back into log text.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Union

from .logger import get_logger
from .regex_models import PassThruRegexRegistry, default_registry
from .table_format import strip_tables

# Blank line between two separator rows marks the gap between expressions.
EXPRESSION_SPLIT_RE = re.compile(r"=+\r?\n\r?\n=+")
_SEPARATOR_LINE_RE = re.compile(r"^=+[ \t]*$", re.MULTILINE)

RAW_LINE_INDENT = 3
# Lines written in place of an empty extraction table.
SENTINEL_LINES = ("No Parameters", "No Messages Found!", "No Filter Content Found!")


def split_log(file_contents: str,
              registry: Optional[PassThruRegexRegistry] = None,
              logger: Optional[logging.Logger] = None) -> List[str]:
    """
    Split a whole log into command blocks.

    Each block runs from a time-marker match through the end of the next
    status-marker match. Scanning stops at the first of: no time marker, no
    status marker, a block identical to one already cut, or a block end that
    does not move the cursor forward.
    """
    registry = registry or default_registry()
    log = logger or get_logger(__name__)
    time_regex = registry.get("time_marker")
    status_regex = registry.get("status_marker")

    blocks: List[str] = []
    seen = set()
    cursor = 0
    while cursor < len(file_contents):
        time_match = time_regex.search(file_contents, cursor)
        if time_match is None:
            break
        start = time_match.start()

        status_match = status_regex.search(file_contents, start)
        if status_match is None:
            log.warning("command at offset %d has no status line, stopping split", start)
            break
        end = status_match.end()

        if end <= cursor:
            log.warning("split cursor did not advance at offset %d, stopping", cursor)
            break

        block = file_contents[start:end]
        if block in seen:
            log.warning("duplicate command block at offset %d, stopping split", start)
            break

        seen.add(block)
        blocks.append(block)
        cursor = end

    log.info("split log contents into %d command block(s)", len(blocks))
    return blocks


def expressions_to_log_text(content: str) -> str:
    """
    Recover the raw log lines from the text of an expression file.

    Tables, separator rows and sentinel lines are dropped; every remaining
    line loses the indent it was written with.
    """
    recovered = []
    for entry in EXPRESSION_SPLIT_RE.split(content):
        entry = strip_tables(_SEPARATOR_LINE_RE.sub("", entry))
        lines = [
            line.rstrip("\r")[RAW_LINE_INDENT:]
            for line in entry.split("\n")
            if len(line.rstrip("\r")) > RAW_LINE_INDENT
            and line.strip()
            and not any(s in line for s in SENTINEL_LINES)
        ]
        recovered.append("\n".join(lines))
    return "\n".join(part for part in recovered if part)


def import_expression_set(input_path: Union[str, Path],
                          output_dir: Optional[Union[str, Path]] = None,
                          logger: Optional[logging.Logger] = None) -> Path:
    """
    Convert an expression file into a plain log file.

    Writes ``ExpressionImport_<stem>.txt`` to ``output_dir`` (default
    ``config.CONVERSIONS_DIR``), replacing any earlier conversion, and
    returns its path.
    """
    log = logger or get_logger(__name__)
    if output_dir is None:
        from config import CONVERSIONS_DIR
        output_dir = CONVERSIONS_DIR

    input_path = Path(input_path)
    content = input_path.read_text(encoding="utf-8", errors="replace")
    log_text = expressions_to_log_text(content)

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"ExpressionImport_{input_path.stem}.txt"
    output_path.write_text(log_text, encoding="utf-8")

    log.info("imported expression file %s into %s", input_path.name, output_path)
    return output_path
