# File: snaplog/regex_models.py
"""
Named regex patterns for PassThru shim logs.

The shim writes one entry per J2534 call, e.g.::

    0.070s ++ PTReadMsgs(1, 0x0012F3C0, 0x0012F6B0=1, 100)
      Msg[0] 0.068s. ISO15765. 7 bytes. RxS=00000000
      \\__ 00 00 07 e8 06 50 03
      read 1 of 1 messages
    0.071s    0:STATUS_NOERROR

Every pattern here encodes that layout literally. Changing one changes how
every historical log parses, so overrides go through a pattern file
(``SNAPLOG_PATTERN_FILE``) instead of edits to the defaults.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .errors import PatternLoadError

# ------------------------------------------------------------------
#  Building blocks
# ------------------------------------------------------------------
# One payload token: a run of hex digits or a bracketed framepad note.
_PAYLOAD_TOKEN = r"(?:[0-9a-fA-F]+|\[[^\]\r\n]*\])(?=[ \t\r\n]|$)"

# Payload tokens may wrap onto indented continuation lines.
_PAYLOAD = rf"({_PAYLOAD_TOKEN}(?:(?:[ \t]+|[ \t]*\r?\n[ \t]+){_PAYLOAD_TOKEN})*)"

# Flag word, then an optional flag label on the rest of the line.
_FLAG_LABEL = r"[ \t]*([^\r\n]*?)[ \t]*\r?\n"

_DATA_LEAD = r"[ \t]*\\__[ \t]+"

# Any of CRLF, CR or LF.
_EOL = r"(?:\r\n?|\n)"

TIME_MARKER = r"(\d+\.\d+s)[ \t]+\+\+[ \t]+(PT\w+)\(([^\r\n]*)\)"

STATUS_MARKER = r"(\d+\.\d+s)[ \t]+(-?\d+):[ \t]*((?:STATUS|ERR)_[A-Z0-9_]+)"

READ_MESSAGE_BODY = (
    r"Msg\[(\d+)\][ \t]+"
    r"(\d+\.\d+s)\.[ \t]+"
    r"(\w+)\.[ \t]+"
    r"(\d+)[ \t]+bytes\.[ \t]+"
    r"(RxS=[0-9a-fA-F]{8})" + _FLAG_LABEL + _DATA_LEAD + _PAYLOAD
)

WRITE_MESSAGE_BODY = (
    r"Msg\[(\d+)\][ \t]+"
    r"(\w+)\.[ \t]+"
    r"(\d+)[ \t]+bytes\.[ \t]+"
    r"(TxF=[0-9a-fA-F]{8})" + _FLAG_LABEL + _DATA_LEAD + _PAYLOAD
)

FILTER_BODY = (
    r"(Mask|Pattern|FlowControl)[ \t]+"
    r"Msg\[(\d+)\][ \t]+"
    r"(\w+)\.[ \t]+"
    r"(\d+)[ \t]+bytes\.[ \t]+"
    r"TxF=(0x[0-9a-fA-F]{8})" + _FLAG_LABEL + _DATA_LEAD + _PAYLOAD
)

IOCTL_BODY = (
    r"PTIoctl\([^\r\n]*\)[ \t]*" + _EOL +
    r"[ \t]*(\d+)[ \t]+parameter\(s\):[ \t]*" + _EOL +
    r"((?:[ \t]*[^\s:=][^\r\n:=]*:[^\r\n=]*=[^\r\n]*(?:" + _EOL + r"|$))+)"
)

_LINE_VALUE = r"[ \t]*([^\r\n]+?)[ \t]*(?:\r?\n|$)"

DEFAULT_PATTERNS: Dict[str, str] = {
    # splitter
    "time_marker":        TIME_MARKER,
    "status_marker":      STATUS_MARKER,
    # field extractors
    "read_message_body":  READ_MESSAGE_BODY,
    "write_message_body": WRITE_MESSAGE_BODY,
    "filter_body":        FILTER_BODY,
    "ioctl_body":         IOCTL_BODY,
    # per-command result lines
    "device_id":          r"returning DeviceID:[ \t]*(\d+)",
    "channel_id":         r"returning ChannelID:[ \t]*(\d+)",
    "filter_id":          r"returning FilterID:[ \t]*(\d+)",
    "periodic_id":        r"returning MsgID:[ \t]*(\d+)",
    "messages_read":      r"read[ \t]+(\d+[ \t]+of[ \t]+\d+)[ \t]+messages",
    "messages_sent":      r"sent[ \t]+(\d+[ \t]+of[ \t]+\d+)[ \t]+messages",
    "firmware_version":   r"Firmware:" + _LINE_VALUE,
    "dll_version":        r"DLL:" + _LINE_VALUE,
    "api_version":        r"API:" + _LINE_VALUE,
    "error_string":       r"Error string:" + _LINE_VALUE,
    "battery_voltage":    r"(\d+(?:\.\d+)?)V\b",
}

# Names the parser can not run without.
REQUIRED_PATTERNS: Tuple[str, ...] = (
    "time_marker",
    "status_marker",
    "read_message_body",
    "write_message_body",
    "filter_body",
    "ioctl_body",
)


# ------------------------------------------------------------------
#  Pattern object
# ------------------------------------------------------------------
@dataclass(frozen=True)
class PassThruRegex:
    """A named, compiled pattern with the evaluate() contract used by the extractors."""
    name: str
    pattern: str
    flags: int = 0
    _compiled: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.pattern, self.flags)
        except re.error as e:
            raise PatternLoadError(f"pattern {self.name!r} is not a valid regex: {e}") from e
        object.__setattr__(self, "_compiled", compiled)

    @property
    def compiled(self) -> re.Pattern:
        return self._compiled

    def evaluate(self, text: str) -> Tuple[bool, List[str]]:
        """
        Search ``text`` once.

        Returns ``(matched, captures)``. ``captures[0]`` is the whole match and
        groups that did not take part come back as ``""``. No match gives
        ``(False, [])``.
        """
        m = self._compiled.search(text)
        if not m:
            return False, []
        return True, [m.group(0)] + [g if g is not None else "" for g in m.groups()]

    def search(self, text: str, pos: int = 0) -> Optional[re.Match]:
        return self._compiled.search(text, pos)

    def first_group(self, text: str) -> Optional[str]:
        """Value of the first capture group, or None when there is no match."""
        matched, captures = self.evaluate(text)
        if not matched or len(captures) < 2:
            return None
        return captures[1]


# ------------------------------------------------------------------
#  Registry
# ------------------------------------------------------------------
class PassThruRegexRegistry:
    """Name -> PassThruRegex lookup shared by the splitter, classifier and extractors."""

    def __init__(self, patterns: Optional[Dict[str, str]] = None):
        source = dict(DEFAULT_PATTERNS)
        if patterns:
            source.update(patterns)
        self._models: Dict[str, PassThruRegex] = {
            name: PassThruRegex(name, pattern) for name, pattern in source.items()
        }

    def __contains__(self, name: str) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[PassThruRegex]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def get(self, name: str) -> PassThruRegex:
        try:
            return self._models[name]
        except KeyError:
            raise KeyError(f"no PassThru regex named {name!r}") from None

    def as_dict(self) -> Dict[str, str]:
        return {model.name: model.pattern for model in self._models.values()}

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "PassThruRegexRegistry":
        """Defaults overlaid with a JSON object of ``{"name": "regex"}`` entries."""
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PatternLoadError(f"could not read pattern file {path}: {e}") from e

        if not isinstance(raw, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in raw.items()
        ):
            raise PatternLoadError(f"pattern file {path} must hold a JSON object of strings")
        return cls(raw)


_DEFAULT_REGISTRY: Optional[PassThruRegexRegistry] = None


def default_registry() -> PassThruRegexRegistry:
    """
    Registry built once from the defaults plus ``config.PATTERN_FILE`` (if set).
    """
    global _DEFAULT_REGISTRY
    if _DEFAULT_REGISTRY is None:
        from config import PATTERN_FILE
        if PATTERN_FILE:
            _DEFAULT_REGISTRY = PassThruRegexRegistry.from_file(PATTERN_FILE)
        else:
            _DEFAULT_REGISTRY = PassThruRegexRegistry()
    return _DEFAULT_REGISTRY
