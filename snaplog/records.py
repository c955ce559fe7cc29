# File: snaplog/records.py
# ------------------------------------------------------------------
#  Records pulled out of expressions by the field extractors
# ------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .errors import UnsupportedVariant

# Column labels, in capture order
READ_MESSAGE_LABELS: Tuple[str, ...] = (
    "Message Number", "TimeStamp", "Protocol ID", "Data Count",
    "RX Flags", "Flag Value", "Message Data",
)
WRITE_MESSAGE_LABELS: Tuple[str, ...] = (
    "Message Number", "Protocol ID", "Data Count",
    "TX Flags", "Flag Value", "Message Data",
)
FILTER_LABELS: Tuple[str, ...] = (
    "Message Type",     # Mask, Pattern or FlowControl
    "Message Number",   # Always 0
    "Protocol ID",      # Protocol of the message
    "Message Size",     # Size of message
    "TX Flags",         # Tx flags
    "Flag Value",       # String flag value
    "Message Content",  # Content of the filter message
)
IOCTL_LABELS: Tuple[str, ...] = ("Ioctl ID", "Ioctl Name", "Set Value")

MESSAGE_TABLE_HEADERS = ("Message Property", "Message Value")
FILTER_TABLE_HEADERS = ("Filter Message Property", "Filter Message Value")


@dataclass(frozen=True)
class FieldRecord:
    """Ordered (label, value) pairs for one message or filter."""
    pairs: Tuple[Tuple[str, str], ...]

    @classmethod
    def from_values(cls, labels: Tuple[str, ...], values: List[str]):
        # Extra values past the known labels are dropped, as are missing ones
        return cls(tuple(zip(labels, values)))

    @property
    def labels(self) -> List[str]:
        return [label for label, _ in self.pairs]

    @property
    def values(self) -> List[str]:
        return [value for _, value in self.pairs]

    def get(self, label: str, default: Optional[str] = None) -> Optional[str]:
        for key, value in self.pairs:
            if key == label:
                return value
        return default

    def to_dict(self) -> dict:
        return dict(self.pairs)


@dataclass(frozen=True)
class MessageRecord(FieldRecord):
    """One Msg[n] entry of a PTReadMsgs / PTWriteMsgs call."""

    @property
    def message_number(self) -> Optional[str]:
        return self.get("Message Number")

    @property
    def payload(self) -> Optional[str]:
        return self.get("Message Data")


@dataclass(frozen=True)
class FilterRecord(FieldRecord):
    """One Mask / Pattern / FlowControl message of a PTStartMsgFilter call."""

    @property
    def filter_kind(self) -> Optional[str]:
        return self.get("Message Type")

    @property
    def payload(self) -> Optional[str]:
        return self.get("Message Content")


@dataclass(frozen=True)
class IoctlParameterRecord:
    parameter_id: str
    name: str
    value: str

    @property
    def values(self) -> List[str]:
        return [self.parameter_id, self.name, self.value]

    def to_dict(self) -> dict:
        return dict(zip(IOCTL_LABELS, self.values))


Record = Union[MessageRecord, FilterRecord, IoctlParameterRecord]


@dataclass
class ExtractionResult:
    """
    What an extractor hands back: the human-readable table plus the parallel
    raw value arrays (one list per record, same order as ``records``).

    A wrong-variant call comes back with ``failure`` set and everything else
    empty; call ``raise_for_failure()`` to turn that into an exception.
    """
    table: str = ""
    records: List[Record] = field(default_factory=list)
    failure: Optional[UnsupportedVariant] = None

    @property
    def values(self) -> List[List[str]]:
        return [list(r.values) for r in self.records]

    @property
    def ok(self) -> bool:
        return self.failure is None

    def raise_for_failure(self) -> None:
        if self.failure is not None:
            raise self.failure

    def __len__(self) -> int:
        return len(self.records)
