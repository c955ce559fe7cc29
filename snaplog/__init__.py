"""
snaplog - PassThru (J2534) shim log parsing.

    from snaplog import split_log, classify_expression, find_message_contents

    for block in split_log(log_text):
        expression = classify_expression(block)
"""

from .errors import PatternLoadError, PayloadFormatError, SnaplogError, UnsupportedVariant
from .expressions import (
    PassThruCommandType,
    PassThruExpression,
    classify_expression,
    get_type_from_lines,
)
from .extractors import (
    extract_fields,
    find_filter_contents,
    find_ioctl_parameters,
    find_message_contents,
    format_hex_payload,
)
from .generator import ExpressionsGenerator, generate_expression_batch, render_expressions
from .records import ExtractionResult, FilterRecord, IoctlParameterRecord, MessageRecord
from .regex_models import PassThruRegex, PassThruRegexRegistry, default_registry
from .splitter import expressions_to_log_text, import_expression_set, split_log
from .table_format import format_table, parse_table

__version__ = "0.1.0"

__all__ = [
    "ExpressionsGenerator",
    "ExtractionResult",
    "FilterRecord",
    "IoctlParameterRecord",
    "MessageRecord",
    "PassThruCommandType",
    "PassThruExpression",
    "PassThruRegex",
    "PassThruRegexRegistry",
    "PatternLoadError",
    "PayloadFormatError",
    "SnaplogError",
    "UnsupportedVariant",
    "classify_expression",
    "default_registry",
    "expressions_to_log_text",
    "extract_fields",
    "find_filter_contents",
    "find_ioctl_parameters",
    "find_message_contents",
    "format_hex_payload",
    "format_table",
    "generate_expression_batch",
    "get_type_from_lines",
    "import_expression_set",
    "parse_table",
    "render_expressions",
    "split_log",
]
