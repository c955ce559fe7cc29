# File: snaplog/expressions.py
"""
PassThru expressions: one typed, immutable record per logged J2534 call.

A command block (time marker through status marker) is classified by the
``PT<Name>(`` token on its time-marker line. The lookup is a fixed table of
command names; anything not in it becomes an ``UnknownExpression`` so a bad
entry never stops the rest of the log from parsing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum, auto
from typing import ClassVar, Dict, List, Optional, Sequence, Tuple, Type, Union

from .logger import get_logger
from .regex_models import PassThruRegexRegistry, default_registry
from .table_format import format_pairs

EXPRESSION_TABLE_HEADERS = ("Expression Property", "Expression Value")


# ------------------------------------------------------------------
#  Command types
# ------------------------------------------------------------------
class PassThruCommandType(IntEnum):
    """J2534 API calls a shim log can contain."""
    UNKNOWN                 = 0
    OPEN                    = auto()
    CLOSE                   = auto()
    CONNECT                 = auto()
    DISCONNECT              = auto()
    READ_MESSAGES           = auto()
    WRITE_MESSAGES          = auto()
    START_PERIODIC_MESSAGE  = auto()
    STOP_PERIODIC_MESSAGE   = auto()
    START_MESSAGE_FILTER    = auto()
    STOP_MESSAGE_FILTER     = auto()
    SET_PROGRAMMING_VOLTAGE = auto()
    READ_VERSION            = auto()
    GET_LAST_ERROR          = auto()
    IOCTL                   = auto()
    READ_VOLTAGE            = auto()   # PTIoctl with READ_VBATT


# Command token as written by the shim -> command type
COMMAND_NAMES: Dict[str, PassThruCommandType] = {
    "PTOpen":                  PassThruCommandType.OPEN,
    "PTClose":                 PassThruCommandType.CLOSE,
    "PTConnect":               PassThruCommandType.CONNECT,
    "PTDisconnect":            PassThruCommandType.DISCONNECT,
    "PTReadMsgs":              PassThruCommandType.READ_MESSAGES,
    "PTWriteMsgs":             PassThruCommandType.WRITE_MESSAGES,
    "PTStartPeriodicMsg":      PassThruCommandType.START_PERIODIC_MESSAGE,
    "PTStopPeriodicMsg":       PassThruCommandType.STOP_PERIODIC_MESSAGE,
    "PTStartMsgFilter":        PassThruCommandType.START_MESSAGE_FILTER,
    "PTStopMsgFilter":         PassThruCommandType.STOP_MESSAGE_FILTER,
    "PTSetProgrammingVoltage": PassThruCommandType.SET_PROGRAMMING_VOLTAGE,
    "PTReadVersion":           PassThruCommandType.READ_VERSION,
    "PTGetLastError":          PassThruCommandType.GET_LAST_ERROR,
    "PTIoctl":                 PassThruCommandType.IOCTL,
}

READ_VBATT = "READ_VBATT"


# ------------------------------------------------------------------
#  Base expression
# ------------------------------------------------------------------
@dataclass(frozen=True)
class PassThruExpression:
    """
    One PassThru call as it appears in the log.

    - raw_lines: the command block text, kept for display and re-extraction
    - logger: diagnostics sink owned by the caller
    - registry: patterns used to read header/status/result lines

    Subclasses only change the class-level tables below; every view is
    recomputed from ``raw_lines`` on access.
    """
    raw_lines: str
    logger: logging.Logger = field(default_factory=lambda: get_logger(__name__),
                                   repr=False, compare=False)
    registry: PassThruRegexRegistry = field(default_factory=default_registry,
                                            repr=False, compare=False)

    COMMAND_TYPE: ClassVar[PassThruCommandType] = PassThruCommandType.UNKNOWN
    # labels for the comma separated call arguments
    ARGUMENT_LABELS: ClassVar[Tuple[str, ...]] = ()
    # (label, pattern name) pairs read from the result lines of the call
    RESULT_PATTERNS: ClassVar[Tuple[Tuple[str, str], ...]] = ()

    # ---- header / status views -------------------------------------
    @property
    def command_type(self) -> PassThruCommandType:
        return self.COMMAND_TYPE

    @property
    def lines(self) -> List[str]:
        return self.raw_lines.split("\n")

    def _header(self) -> List[str]:
        matched, captures = self.registry.get("time_marker").evaluate(self.raw_lines)
        return captures if matched else []

    def _status(self) -> List[str]:
        matched, captures = self.registry.get("status_marker").evaluate(self.raw_lines)
        return captures if matched else []

    @property
    def time_issued(self) -> Optional[str]:
        header = self._header()
        return header[1] if header else None

    @property
    def command_name(self) -> Optional[str]:
        header = self._header()
        return header[2] if header else None

    @property
    def arguments(self) -> List[str]:
        header = self._header()
        if not header or not header[3].strip():
            return []
        return [arg.strip() for arg in header[3].split(",")]

    @property
    def status_time(self) -> Optional[str]:
        status = self._status()
        return status[1] if status else None

    @property
    def status_code(self) -> Optional[int]:
        status = self._status()
        return int(status[2]) if status else None

    @property
    def status_message(self) -> Optional[str]:
        status = self._status()
        return status[3] if status else None

    @property
    def succeeded(self) -> bool:
        return self.status_code == 0

    # ---- labelled views --------------------------------------------
    def argument_pairs(self) -> List[Tuple[str, str]]:
        pairs = []
        for index, value in enumerate(self.arguments):
            label = (self.ARGUMENT_LABELS[index] if index < len(self.ARGUMENT_LABELS)
                     else f"Argument {index + 1}")
            pairs.append((label, value))
        return pairs

    def result_pairs(self) -> List[Tuple[str, str]]:
        pairs = []
        for label, pattern_name in self.RESULT_PATTERNS:
            value = self.registry.get(pattern_name).first_group(self.raw_lines)
            if value is None:
                self.logger.debug("no %s found for %s expression", label, self.command_type.name)
                continue
            pairs.append((label, value.strip()))
        return pairs

    def properties(self) -> List[Tuple[str, str]]:
        """Every labelled value this expression carries, in display order."""
        pairs = [("Command Type", self.command_type.name)]
        if self.time_issued is not None:
            pairs.append(("Time Issued", self.time_issued))
            pairs.append(("Command Name", self.command_name))
        pairs.extend(self.argument_pairs())
        pairs.extend(self.result_pairs())
        if self.status_code is not None:
            pairs.append(("Status Time", self.status_time))
            pairs.append(("Status Code", str(self.status_code)))
            pairs.append(("Status Message", self.status_message))
        return pairs

    def to_table(self) -> str:
        return format_pairs(EXPRESSION_TABLE_HEADERS, self.properties())

    def to_dict(self) -> dict:
        return {
            "command_type": self.command_type.name,
            "time_issued": self.time_issued,
            "command_name": self.command_name,
            "arguments": self.arguments,
            "status_code": self.status_code,
            "status_message": self.status_message,
            "properties": [list(pair) for pair in self.properties()],
            "raw_lines": self.raw_lines,
        }


# ------------------------------------------------------------------
#  Variants
# ------------------------------------------------------------------
class UnknownExpression(PassThruExpression):
    """Block with no recognised command token. Keeps the raw text only."""
    COMMAND_TYPE = PassThruCommandType.UNKNOWN


class OpenExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.OPEN
    ARGUMENT_LABELS = ("Device Name", "Device ID Pointer")
    RESULT_PATTERNS = (("Device ID", "device_id"),)


class CloseExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.CLOSE
    ARGUMENT_LABELS = ("Device ID",)


class ConnectExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.CONNECT
    ARGUMENT_LABELS = ("Device ID", "Protocol ID", "Connect Flags", "Baud Rate", "Channel ID Pointer")
    RESULT_PATTERNS = (("Channel ID", "channel_id"),)


class DisconnectExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.DISCONNECT
    ARGUMENT_LABELS = ("Channel ID",)


class ReadMessagesExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.READ_MESSAGES
    ARGUMENT_LABELS = ("Channel ID", "Message Pointer", "Message Count", "Timeout")
    RESULT_PATTERNS = (("Messages Read", "messages_read"),)


class WriteMessagesExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.WRITE_MESSAGES
    ARGUMENT_LABELS = ("Channel ID", "Message Pointer", "Message Count", "Timeout")
    RESULT_PATTERNS = (("Messages Sent", "messages_sent"),)


class StartPeriodicMessageExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.START_PERIODIC_MESSAGE
    ARGUMENT_LABELS = ("Channel ID", "Message Pointer", "Message ID Pointer", "Time Interval")
    RESULT_PATTERNS = (("Message ID", "periodic_id"),)


class StopPeriodicMessageExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.STOP_PERIODIC_MESSAGE
    ARGUMENT_LABELS = ("Channel ID", "Message ID")


class StartMessageFilterExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.START_MESSAGE_FILTER
    ARGUMENT_LABELS = ("Channel ID", "Filter Type", "Mask Pointer", "Pattern Pointer",
                       "Flow Control Pointer", "Filter ID Pointer")
    RESULT_PATTERNS = (("Filter ID", "filter_id"),)


class StopMessageFilterExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.STOP_MESSAGE_FILTER
    ARGUMENT_LABELS = ("Channel ID", "Filter ID")


class SetProgrammingVoltageExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.SET_PROGRAMMING_VOLTAGE
    ARGUMENT_LABELS = ("Device ID", "Pin Number", "Voltage")


class ReadVersionExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.READ_VERSION
    ARGUMENT_LABELS = ("Device ID", "Firmware Pointer", "DLL Pointer", "API Pointer")
    RESULT_PATTERNS = (
        ("Firmware Version", "firmware_version"),
        ("DLL Version", "dll_version"),
        ("API Version", "api_version"),
    )


class GetLastErrorExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.GET_LAST_ERROR
    ARGUMENT_LABELS = ("Error Description Pointer",)
    RESULT_PATTERNS = (("Error Description", "error_string"),)


class IoctlExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.IOCTL
    ARGUMENT_LABELS = ("Channel ID", "Ioctl Type", "Input Pointer", "Output Pointer")


class ReadVoltageExpression(PassThruExpression):
    COMMAND_TYPE = PassThruCommandType.READ_VOLTAGE
    ARGUMENT_LABELS = ("Device ID", "Ioctl Type", "Input Pointer", "Output Pointer")
    RESULT_PATTERNS = (("Battery Voltage", "battery_voltage"),)


EXPRESSION_CLASSES: Dict[PassThruCommandType, Type[PassThruExpression]] = {
    PassThruCommandType.UNKNOWN:                 UnknownExpression,
    PassThruCommandType.OPEN:                    OpenExpression,
    PassThruCommandType.CLOSE:                   CloseExpression,
    PassThruCommandType.CONNECT:                 ConnectExpression,
    PassThruCommandType.DISCONNECT:              DisconnectExpression,
    PassThruCommandType.READ_MESSAGES:           ReadMessagesExpression,
    PassThruCommandType.WRITE_MESSAGES:          WriteMessagesExpression,
    PassThruCommandType.START_PERIODIC_MESSAGE:  StartPeriodicMessageExpression,
    PassThruCommandType.STOP_PERIODIC_MESSAGE:   StopPeriodicMessageExpression,
    PassThruCommandType.START_MESSAGE_FILTER:    StartMessageFilterExpression,
    PassThruCommandType.STOP_MESSAGE_FILTER:     StopMessageFilterExpression,
    PassThruCommandType.SET_PROGRAMMING_VOLTAGE: SetProgrammingVoltageExpression,
    PassThruCommandType.READ_VERSION:            ReadVersionExpression,
    PassThruCommandType.GET_LAST_ERROR:          GetLastErrorExpression,
    PassThruCommandType.IOCTL:                   IoctlExpression,
    PassThruCommandType.READ_VOLTAGE:            ReadVoltageExpression,
}


# ------------------------------------------------------------------
#  Classifier
# ------------------------------------------------------------------
def _as_text(lines: Union[str, Sequence[str]]) -> str:
    return lines if isinstance(lines, str) else "\n".join(lines)


def get_type_from_lines(lines: Union[str, Sequence[str]],
                        registry: Optional[PassThruRegexRegistry] = None) -> PassThruCommandType:
    """Command type named by the first time-marker line, UNKNOWN if none/unrecognised."""
    registry = registry or default_registry()
    matched, captures = registry.get("time_marker").evaluate(_as_text(lines))
    if not matched:
        return PassThruCommandType.UNKNOWN

    command_type = COMMAND_NAMES.get(captures[2], PassThruCommandType.UNKNOWN)
    if command_type is PassThruCommandType.IOCTL:
        args = [a.strip() for a in captures[3].split(",")]
        if len(args) > 1 and args[1] == READ_VBATT:
            return PassThruCommandType.READ_VOLTAGE
    return command_type


def classify_expression(lines: Union[str, Sequence[str]],
                        logger: Optional[logging.Logger] = None,
                        registry: Optional[PassThruRegexRegistry] = None) -> PassThruExpression:
    """
    Build the expression for one command block.

    Accepts the block as a string or as its list of lines. Unrecognised or
    marker-less text gives an ``UnknownExpression``; this never raises on
    content.
    """
    logger = logger or get_logger(__name__)
    registry = registry or default_registry()

    text = _as_text(lines)
    command_type = get_type_from_lines(text, registry)
    expression = EXPRESSION_CLASSES[command_type](text, logger=logger, registry=registry)

    if command_type is PassThruCommandType.UNKNOWN:
        logger.warning("could not classify command block, stored as UNKNOWN (%d chars)", len(text))
    else:
        logger.debug("classified command block as %s", command_type.name)
    return expression
