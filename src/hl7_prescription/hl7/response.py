"""Minimal reader for HL7v2 acknowledgment (ACK) replies.

Only MSH-9, MSH-10 and the MSA acknowledgment fields are extracted; this is
not a general-purpose HL7 parser.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field

_SEGMENT_SPLIT_RE = re.compile(r"\r\n|\r|\n")


class AckStatus(str, Enum):
    ACCEPTED = "accepted"
    ERROR = "error"
    REJECTED = "rejected"
    UNKNOWN = "unknown"


ACK_CODES: dict[str, AckStatus] = {
    "AA": AckStatus.ACCEPTED,
    "AE": AckStatus.ERROR,
    "AR": AckStatus.REJECTED,
}


class Acknowledgment(BaseModel):
    """Contents of an MSA segment."""

    code: str = Field(..., description="MSA-1 acknowledgment code")
    control_id: str = Field(default="", description="MSA-2 control id being acknowledged")
    message: str = Field(default="", description="MSA-3 text message")


class ResponseSummary(BaseModel):
    """What the reader could extract from a reply message."""

    segments: list[str] = Field(default_factory=list, description="Segment ids in message order")
    message_type: str = ""
    message_control_id: str = ""
    acknowledgment: Acknowledgment | None = None
    status: AckStatus = AckStatus.UNKNOWN

    @property
    def accepted(self) -> bool:
        return self.status is AckStatus.ACCEPTED


def classify_ack_code(code: str) -> AckStatus:
    """Map ``AA``/``AE``/``AR`` to a status; anything else is unknown."""
    return ACK_CODES.get(code.strip(), AckStatus.UNKNOWN)


def parse_response(message: str) -> ResponseSummary:
    """Extract the message type, control id and ACK status from ``message``.

    Segments may be delimited by ``\\r``, ``\\n`` or ``\\r\\n``.
    """
    summary = ResponseSummary()
    field_sep = "|"
    for line in _SEGMENT_SPLIT_RE.split(message):
        if not line:
            continue
        summary.segments.append(line[:3])

        if line.startswith("MSH"):
            if len(line) > 3:
                field_sep = line[3]
            parts = line.split(field_sep)
            # MSH-1 is the separator itself, so MSH-N sits at index N - 1
            summary.message_type = _part(parts, 8)
            summary.message_control_id = _part(parts, 9)
        elif line.startswith("MSA"):
            parts = line.split(field_sep)
            if len(parts) >= 2:
                summary.acknowledgment = Acknowledgment(
                    code=parts[1],
                    control_id=_part(parts, 2),
                    message=_part(parts, 3),
                )
                summary.status = classify_ack_code(parts[1])
    return summary


def _part(parts: list[str], index: int) -> str:
    return parts[index] if index < len(parts) else ""
