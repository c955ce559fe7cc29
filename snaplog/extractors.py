# File: snaplog/extractors.py
"""
Field extractors for PassThru expressions.

- find_message_contents : Msg[n] entries of PTReadMsgs / PTWriteMsgs
- find_filter_contents  : Mask / Pattern / FlowControl messages of PTStartMsgFilter
- find_ioctl_parameters : id:name=value parameters of PTIoctl

Each call re-parses ``expression.raw_lines`` and returns an ExtractionResult.
Calling one on the wrong kind of expression does not raise; the result
carries an UnsupportedVariant in ``failure`` instead.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from .errors import PayloadFormatError, UnsupportedVariant
from .expressions import PassThruCommandType, PassThruExpression
from .records import (
    FILTER_LABELS,
    FILTER_TABLE_HEADERS,
    IOCTL_LABELS,
    MESSAGE_TABLE_HEADERS,
    READ_MESSAGE_LABELS,
    WRITE_MESSAGE_LABELS,
    ExtractionResult,
    FilterRecord,
    IoctlParameterRecord,
    MessageRecord,
)
from .table_format import format_pairs, format_table

# Sentinel table text for "nothing to extract"
NO_MESSAGES_FOUND = "No Messages Found!"
NO_FILTER_CONTENT = "No Filter Content Found!"
NO_PARAMETERS = "No Parameters"

NO_FLAG_VALUE = "No Flag Value"
NO_VALUE = "No Value"
NULL_FLOW_CONTROL = "FlowControl is NULL"
ZERO_FLAGS = "0x00000000"
ZERO_MESSAGE_FLAGS = ("RxS=00000000", "TxF=00000000")

MESSAGE_TYPES = (PassThruCommandType.READ_MESSAGES, PassThruCommandType.WRITE_MESSAGES)
FILTER_TYPES = (PassThruCommandType.START_MESSAGE_FILTER,)
IOCTL_TYPES = (PassThruCommandType.IOCTL,)

_FILTER_SPLIT_RE = re.compile(r"\s+(Mask|Pattern|FlowControl)")
_PARAMETER_SPLIT_RE = re.compile(r"[\r\n]+")
_INT32_RE = re.compile(r"^[+-]?\d+$")


# ------------------------------------------------------------------
#  Helpers
# ------------------------------------------------------------------
def format_hex_payload(raw: str, framepad: bool = True) -> str:
    """
    Normalise a logged payload into ``0xHH`` groups.

    Whitespace (including line breaks of wrapped payloads) is removed and the
    rest is read as a hex byte stream: two characters per byte, uppercased,
    ``0x`` prefixed, space separated. With ``framepad`` a payload that still
    holds a ``[`` is kept as one unchunked group.

    Raises PayloadFormatError for an odd number of digits.
    """
    cleaned = "".join(raw.split())
    if framepad and "[" in cleaned:
        groups = [cleaned]
    else:
        if len(cleaned) % 2:
            raise PayloadFormatError(f"odd length hex payload ({len(cleaned)} chars): {cleaned!r}")
        groups = [cleaned[i:i + 2] for i in range(0, len(cleaned), 2)]
    return " ".join(f"0x{group.upper()}" for group in groups)


def format_parameter_id(raw_id: str) -> str:
    """``0xNNNNNNNN`` for a 32-bit decimal id, ``"<raw> (ERROR!)"`` otherwise."""
    text = raw_id.strip()
    if _INT32_RE.match(text):
        value = int(text)
        if -2 ** 31 <= value < 2 ** 31:
            return f"0x{value & 0xFFFFFFFF:08x}"
    return f"{text} (ERROR!)"


def _unsupported(name: str, expression: PassThruExpression, expected) -> ExtractionResult:
    failure = UnsupportedVariant(name, expression.command_type, expected)
    expression.logger.error("%s", failure)
    return ExtractionResult(failure=failure)


def _last_index(values: List[str], predicate: Callable[[str], bool]) -> int:
    for index in range(len(values) - 1, -1, -1):
        if predicate(values[index]):
            return index
    return -1


# ------------------------------------------------------------------
#  Messages
# ------------------------------------------------------------------
def split_message_blocks(raw_lines: str) -> List[str]:
    """``Msg[n] ...`` chunks of a read/write block, in order."""
    return ["Msg" + part for part in raw_lines.split("Msg") if part.startswith("[")]


def find_message_contents(expression: PassThruExpression) -> ExtractionResult:
    """Message records of a PTReadMsgs / PTWriteMsgs expression."""
    if expression.command_type not in MESSAGE_TYPES:
        return _unsupported("find_message_contents", expression, MESSAGE_TYPES)

    log = expression.logger
    is_read = expression.command_type is PassThruCommandType.READ_MESSAGES
    body_regex = expression.registry.get("read_message_body" if is_read else "write_message_body")
    labels = READ_MESSAGE_LABELS if is_read else WRITE_MESSAGE_LABELS

    message_blocks = split_message_blocks(expression.raw_lines)
    if not message_blocks:
        log.warning("no messages found for %s expression", expression.command_type.name)
        return ExtractionResult(table=NO_MESSAGES_FOUND)

    records: List[MessageRecord] = []
    tables: List[str] = []
    for block in message_blocks:
        matched, captures = body_regex.evaluate(block)
        if not matched:
            log.warning("no match for message block, moving on: %r", block.splitlines()[0])
            continue

        # all-zero flags: the capture after them becomes "No Flag Value"
        zero_index = _last_index(captures, lambda c: any(z in c for z in ZERO_MESSAGE_FLAGS))
        if zero_index != -1 and zero_index + 1 < len(captures):
            captures[zero_index + 1] = NO_FLAG_VALUE

        fields = [c for c in captures[1:] if c]
        if not fields:
            log.warning("no fields captured for message block, moving on: %r", block.splitlines()[0])
            continue
        try:
            fields[-1] = format_hex_payload(fields[-1], framepad=True)
        except PayloadFormatError as e:
            log.error("skipping message %s: %s", fields[0], e)
            continue

        record = MessageRecord.from_values(labels, fields)
        records.append(record)
        tables.append(format_pairs(MESSAGE_TABLE_HEADERS, record.pairs))
        log.debug("added message %s for %s", record.message_number, expression.command_type.name)

    log.info("built %d message record(s) for %s expression", len(records), expression.command_type.name)
    return ExtractionResult(table="\n".join(tables), records=records)


# ------------------------------------------------------------------
#  Filters
# ------------------------------------------------------------------
def split_filter_segments(raw_lines: str) -> List[str]:
    """Keyword + body chunks (``Mask ...``, ``Pattern ...``, ``FlowControl ...``)."""
    parts = _FILTER_SPLIT_RE.split(raw_lines)[1:]
    segments = []
    for index in range(0, len(parts), 2):
        segments.append("".join(parts[index:index + 2]))
    return segments


def _null_flow_control() -> FilterRecord:
    values = ["FlowControl", "-1"] + ["NULL"] * (len(FILTER_LABELS) - 2)
    return FilterRecord.from_values(FILTER_LABELS, values)


def find_filter_contents(expression: PassThruExpression) -> ExtractionResult:
    """Filter message records of a PTStartMsgFilter expression."""
    if expression.command_type not in FILTER_TYPES:
        return _unsupported("find_filter_contents", expression, FILTER_TYPES)

    log = expression.logger
    body_regex = expression.registry.get("filter_body")

    segments = split_filter_segments(expression.raw_lines)
    if not segments:
        log.warning("no filter messages found for %s expression", expression.command_type.name)
        return ExtractionResult(table=NO_FILTER_CONTENT)

    records: List[FilterRecord] = []
    tables: List[str] = []
    for segment in segments:
        # trailing newline so a payload on the last line still matches
        matched, captures = body_regex.evaluate(segment + "\n")
        if not matched:
            stripped = segment.strip()
            first_line = stripped.splitlines()[0].strip() if stripped else ""
            if first_line != NULL_FLOW_CONTROL:
                log.warning("no match for filter segment, moving on: %r", first_line)
                continue
            record = _null_flow_control()
            log.info("found NULL flow control filter")
        else:
            # first exact zero flag word gets a "No Value" label after it
            if ZERO_FLAGS in captures:
                captures.insert(captures.index(ZERO_FLAGS) + 1, NO_VALUE)

            fields = [c for c in captures[1:] if c]
            if not fields:
                log.warning("no fields captured for filter segment, moving on: %r", segment.strip().splitlines()[0])
                continue
            try:
                fields[-1] = format_hex_payload(fields[-1], framepad=False)
            except PayloadFormatError as e:
                log.error("skipping %s filter message: %s", fields[0], e)
                continue
            record = FilterRecord.from_values(FILTER_LABELS, fields)

        records.append(record)
        tables.append(format_pairs(FILTER_TABLE_HEADERS, record.pairs) + "\n")

    log.info("built %d filter record(s) for %s expression", len(records), expression.command_type.name)
    return ExtractionResult(table="\n".join(tables), records=records)


# ------------------------------------------------------------------
#  Ioctl parameters
# ------------------------------------------------------------------
def parse_ioctl_parameter(entry: str) -> Optional[IoctlParameterRecord]:
    """``id:name=value`` -> record, None when the entry lacks ':' or '='."""
    head, equals, value = entry.partition("=")
    raw_id, colon, name = head.partition(":")
    if not equals or not colon:
        return None
    return IoctlParameterRecord(format_parameter_id(raw_id), name.strip(), value.strip())


def find_ioctl_parameters(expression: PassThruExpression) -> ExtractionResult:
    """Parameter records of a PTIoctl expression."""
    if expression.command_type not in IOCTL_TYPES:
        return _unsupported("find_ioctl_parameters", expression, IOCTL_TYPES)

    log = expression.logger
    matched, captures = expression.registry.get("ioctl_body").evaluate(expression.raw_lines)
    if not matched:
        log.warning("no ioctl parameters found, returning no values")
        return ExtractionResult(table=NO_PARAMETERS)

    records: List[IoctlParameterRecord] = []
    for entry in _PARAMETER_SPLIT_RE.split(captures[-1]):
        entry = entry.strip()
        if not entry:
            continue
        record = parse_ioctl_parameter(entry)
        if record is None:
            log.warning("skipping malformed ioctl parameter %r", entry)
            continue
        if record.parameter_id.endswith("(ERROR!)"):
            log.warning("ioctl parameter id %r is not an integer", entry.partition(":")[0])
        records.append(record)

    table = format_table(IOCTL_LABELS, [r.values for r in records])
    log.info("built %d ioctl parameter record(s)", len(records))
    return ExtractionResult(table=table, records=records)


# ------------------------------------------------------------------
#  Dispatch
# ------------------------------------------------------------------
EXTRACTORS: Dict[PassThruCommandType, Callable[[PassThruExpression], ExtractionResult]] = {
    PassThruCommandType.READ_MESSAGES:        find_message_contents,
    PassThruCommandType.WRITE_MESSAGES:       find_message_contents,
    PassThruCommandType.START_MESSAGE_FILTER: find_filter_contents,
    PassThruCommandType.IOCTL:                find_ioctl_parameters,
}


def extract_fields(expression: PassThruExpression) -> Optional[ExtractionResult]:
    """Run whichever extractor fits the expression; None when none does."""
    extractor = EXTRACTORS.get(expression.command_type)
    if extractor is None:
        return None
    return extractor(expression)
